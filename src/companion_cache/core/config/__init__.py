"""Configuration module with YAML and environment variable support."""

from .settings import Settings, StoreBackend, get_settings


__all__ = [
    "Settings",
    "StoreBackend",
    "get_settings",
]
