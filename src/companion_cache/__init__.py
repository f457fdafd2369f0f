"""Shopping companion cache.

Local persistence cache for product listings, price history, orders,
preferences and interaction logs, with the cache-eviction and price-alert
policies that decide what to keep, refresh, evict and notify about.
"""

__version__ = "0.1.0"
