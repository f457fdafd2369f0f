"""Job enqueue utilities.

This module provides functions for triggering maintenance sweeps on demand
from the host application, outside the cron schedule.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from arq.connections import ArqRedis, create_pool

from companion_cache.core.config import get_settings
from companion_cache.observability.logging import get_logger
from companion_cache.workers.arq import get_redis_settings


if TYPE_CHECKING:
    from arq.jobs import Job


logger = get_logger(__name__)

# Global connection pool for enqueuing jobs
_arq_pool: ArqRedis | None = None


async def get_arq_pool() -> ArqRedis:
    """Get or create the ARQ connection pool."""
    global _arq_pool  # noqa: PLW0603

    if _arq_pool is None:
        _arq_pool = await create_pool(get_redis_settings())
        logger.debug("Created ARQ connection pool")

    return _arq_pool


async def close_arq_pool() -> None:
    """Close the ARQ connection pool.

    Should be called during application shutdown.
    """
    global _arq_pool  # noqa: PLW0603

    if _arq_pool is not None:
        await _arq_pool.aclose()
        _arq_pool = None
        logger.debug("Closed ARQ connection pool")


async def enqueue_job(
    function_name: str,
    *args: Any,
    _job_id: str | None = None,
    **kwargs: Any,
) -> Job | None:
    """Enqueue a background job on the configured queue.

    Args:
        function_name: Name of the task function to execute.
        *args: Positional arguments for the task.
        _job_id: Optional unique job ID; a queued or running job with the
            same ID is not duplicated.
        **kwargs: Keyword arguments for the task.

    Returns:
        Job instance if enqueued, None if arq refused it (duplicate job id)
        or the queue could not be reached.
    """
    try:
        pool = await get_arq_pool()
        job = await pool.enqueue_job(
            function_name,
            *args,
            _job_id=_job_id,
            _queue_name=get_settings().arq.queue_name,
            **kwargs,
        )
        logger.info(
            "Enqueued job",
            function=function_name,
            job_id=job.job_id if job else None,
        )
    except Exception:
        logger.exception("Failed to enqueue job", function=function_name)
        return None
    else:
        return job


async def enqueue_eviction(limit: int | None = None) -> Job | None:
    """Run an eviction sweep now, e.g. after a storage-pressure signal."""
    return await enqueue_job(
        "evict_low_value_products",
        limit,
        _job_id="companion:evict_low_value_products",
    )


async def enqueue_stale_cleanup() -> Job | None:
    return await enqueue_job(
        "clear_stale_cache",
        _job_id="companion:clear_stale_cache",
    )
