"""Observability components: structured logging."""

from companion_cache.observability.logging import (
    bind_context,
    clear_context,
    get_context,
    get_logger,
    logger,
    logging_context,
    setup_logging,
    unbind_context,
)


__all__ = [
    "bind_context",
    "clear_context",
    "get_context",
    "get_logger",
    "logger",
    "logging_context",
    "setup_logging",
    "unbind_context",
]
