"""ARQ background workers for cache maintenance."""
