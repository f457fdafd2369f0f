"""ARQ worker configuration.

This module provides:
- Worker settings and configuration
- Redis connection settings for the job queue
- Startup/shutdown handlers building the store and services
- Cron job scheduling for cache maintenance
"""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any, ClassVar

from arq import cron
from arq.connections import RedisSettings

from companion_cache.core.config import StoreBackend, get_settings
from companion_cache.factory import create_services
from companion_cache.observability.logging import get_logger, setup_logging
from companion_cache.store.connection import create_redis_client, create_store
from companion_cache.workers.tasks.maintenance import (
    CACHE_SERVICE_KEY,
    INTERACTION_SERVICE_KEY,
    PRICE_TRACKING_SERVICE_KEY,
    clean_old_interactions,
    clean_old_price_history,
    clear_stale_cache,
    evict_low_value_products,
    refresh_cache_scores,
)


if TYPE_CHECKING:
    from arq.cron import CronJob

    from companion_cache.core.config import Settings


logger = get_logger(__name__)

# Type alias for ARQ worker functions
WorkerFunction = Callable[..., Coroutine[Any, Any, Any]]


async def startup(ctx: dict[str, Any]) -> None:
    """Worker startup handler.

    Builds the entry store and the services once; tasks read them from
    ``ctx``.

    Args:
        ctx: Worker context dictionary for storing shared state.
    """
    settings = get_settings()

    setup_logging(
        log_level=settings.logging.level,
        log_format=settings.logging.format,
        is_development=settings.is_development,
        log_file=settings.logging.file,
    )

    logger.info(
        "ARQ worker starting",
        environment=settings.APP_ENV,
        store_backend=str(settings.store.backend),
    )

    ctx["settings"] = settings

    # Store client uses the store DB, not the queue DB
    store_client = None
    if settings.store.backend == StoreBackend.REDIS:
        store_client = create_redis_client(settings)
    else:
        logger.warning(
            "Worker store is process-local; sweeps will not see entries "
            "written by other processes",
            store_backend=str(settings.store.backend),
        )
    ctx["store_client"] = store_client

    services = create_services(settings, create_store(settings, store_client))
    ctx[CACHE_SERVICE_KEY] = services.cache
    ctx[PRICE_TRACKING_SERVICE_KEY] = services.price_tracking
    ctx[INTERACTION_SERVICE_KEY] = services.interactions
    logger.debug("Initialized worker services")


async def shutdown(ctx: dict[str, Any]) -> None:
    """Worker shutdown handler.

    Args:
        ctx: Worker context dictionary containing initialized resources.
    """
    logger.info("ARQ worker shutting down")

    if ctx.get("store_client"):
        await ctx["store_client"].aclose()
        logger.debug("Closed store client")


def get_redis_settings(settings: Settings | None = None) -> RedisSettings:
    """Get Redis settings for ARQ.

    Returns:
        RedisSettings configured for the job queue.
    """
    settings = settings or get_settings()

    return RedisSettings(
        host=settings.redis.host,
        port=settings.redis.port,
        username=settings.redis.user,
        password=settings.REDIS_PASSWORD or None,
        database=settings.redis.queue_db,
    )


def get_cron_jobs(settings: Settings | None = None) -> list[CronJob]:
    """Maintenance schedule, empty when cron is disabled in settings."""
    settings = settings or get_settings()
    if not settings.arq.cron_enabled:
        return []
    return [
        # Age-based cleanup every hour at minute 0
        cron(clear_stale_cache, minute=0),  # type: ignore[arg-type]
        # Value-based eviction every hour at minute 15
        cron(evict_low_value_products, minute=15),  # type: ignore[arg-type]
        # Score refresh every hour at minute 30
        cron(refresh_cache_scores, minute=30),  # type: ignore[arg-type]
        # Retention pruning once a day
        cron(clean_old_price_history, hour=3, minute=0),  # type: ignore[arg-type]
        cron(clean_old_interactions, hour=3, minute=30),  # type: ignore[arg-type]
    ]


class WorkerSettings:
    """ARQ worker settings class.

    This class is used by the arq CLI to configure the worker.
    Run with: arq companion_cache.workers.arq.WorkerSettings
    """

    # Redis connection settings
    redis_settings = get_redis_settings()

    # Queue name and health key share the configured key prefix
    queue_name = get_settings().arq.queue_name
    health_check_key = get_settings().arq.health_check_key

    # Lifecycle hooks
    on_startup = startup
    on_shutdown = shutdown

    # Sweeps over a large cache can take a while
    job_timeout = 300

    max_jobs = 10

    # How long to keep job results (default: 1 hour)
    keep_result = 3600

    max_tries = 3

    # Registered task functions
    functions: ClassVar[list[WorkerFunction]] = [
        clear_stale_cache,
        evict_low_value_products,
        refresh_cache_scores,
        clean_old_price_history,
        clean_old_interactions,
    ]

    # Cron jobs (scheduled tasks)
    cron_jobs: ClassVar[list[CronJob]] = get_cron_jobs()
