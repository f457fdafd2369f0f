"""Unit tests for ARQ worker configuration.

Tests cover:
- Redis settings for the queue
- Cron schedule and its toggle
- Startup/shutdown handlers
- WorkerSettings registration
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from companion_cache.core.config import Settings
from companion_cache.services import (
    CacheService,
    InteractionLogService,
    PriceTrackingService,
)
from companion_cache.workers.arq import (
    WorkerSettings,
    get_cron_jobs,
    get_redis_settings,
    shutdown,
    startup,
)
from companion_cache.workers.tasks import (
    clean_old_interactions,
    clean_old_price_history,
    clear_stale_cache,
    evict_low_value_products,
    refresh_cache_scores,
)
from companion_cache.workers.tasks.maintenance import (
    CACHE_SERVICE_KEY,
    INTERACTION_SERVICE_KEY,
    PRICE_TRACKING_SERVICE_KEY,
)


pytestmark = pytest.mark.unit


def _create_mock_settings(password: str | None = None) -> MagicMock:
    """Create mock settings with nested structure."""
    mock_settings = MagicMock()
    mock_settings.redis.host = "redis.internal"
    mock_settings.redis.port = 6380
    mock_settings.redis.user = None
    mock_settings.redis.queue_db = 3
    mock_settings.REDIS_PASSWORD = password
    return mock_settings


class TestGetRedisSettings:
    """Tests for get_redis_settings function."""

    def test_uses_queue_database(self) -> None:
        """Should point ARQ at the queue database."""
        with patch(
            "companion_cache.workers.arq.get_settings",
            return_value=_create_mock_settings(password="pw"),
        ):
            result = get_redis_settings()

        assert result.host == "redis.internal"
        assert result.port == 6380
        assert result.database == 3
        assert result.password == "pw"

    def test_empty_password_becomes_none(self) -> None:
        """Should treat an empty password as no password."""
        result = get_redis_settings(_create_mock_settings(password=""))

        assert result.password is None


class TestGetCronJobs:
    """Tests for the maintenance schedule."""

    def test_disabled(self) -> None:
        """Should schedule nothing when cron is disabled."""
        assert get_cron_jobs(Settings(arq={"cron_enabled": False})) == []

    def test_enabled_schedules_every_sweep(self) -> None:
        """Should schedule each maintenance task once."""
        jobs = get_cron_jobs(Settings(arq={"cron_enabled": True}))

        assert [job.coroutine for job in jobs] == [
            clear_stale_cache,
            evict_low_value_products,
            refresh_cache_scores,
            clean_old_price_history,
            clean_old_interactions,
        ]
        assert jobs[0].minute == 0
        assert jobs[3].hour == 3


class TestStartup:
    """Tests for startup handler."""

    @pytest.mark.asyncio
    async def test_memory_backend(self) -> None:
        """Should configure logging and build services without a Redis client."""
        ctx: dict[str, Any] = {}
        settings = Settings(store={"backend": "memory"})

        with (
            patch("companion_cache.workers.arq.get_settings", return_value=settings),
            patch("companion_cache.workers.arq.setup_logging") as mock_setup,
            patch("companion_cache.workers.arq.logger") as mock_logger,
        ):
            await startup(ctx)

        mock_setup.assert_called_once_with(
            log_level=settings.logging.level,
            log_format=settings.logging.format,
            is_development=settings.is_development,
            log_file=settings.logging.file,
        )
        assert ctx["settings"] is settings
        assert ctx["store_client"] is None
        assert isinstance(ctx[CACHE_SERVICE_KEY], CacheService)
        assert isinstance(ctx[PRICE_TRACKING_SERVICE_KEY], PriceTrackingService)
        assert isinstance(ctx[INTERACTION_SERVICE_KEY], InteractionLogService)
        mock_logger.warning.assert_called_once()
        assert mock_logger.warning.call_args.kwargs["store_backend"] == "memory"

    @pytest.mark.asyncio
    async def test_redis_backend_creates_client(self) -> None:
        """Should create and keep the store client for shutdown."""
        ctx: dict[str, Any] = {}
        settings = Settings(store={"backend": "redis"})
        mock_client = MagicMock()

        with (
            patch("companion_cache.workers.arq.get_settings", return_value=settings),
            patch("companion_cache.workers.arq.setup_logging"),
            patch(
                "companion_cache.workers.arq.create_redis_client",
                return_value=mock_client,
            ),
            patch("companion_cache.workers.arq.logger") as mock_logger,
        ):
            await startup(ctx)

        assert ctx["store_client"] is mock_client
        mock_logger.warning.assert_not_called()


class TestShutdown:
    """Tests for shutdown handler."""

    @pytest.mark.asyncio
    async def test_closes_store_client(self) -> None:
        """Should close the store client when present."""
        client = MagicMock()
        client.aclose = AsyncMock()

        await shutdown({"store_client": client})

        client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_without_client(self) -> None:
        """Should do nothing for the memory backend."""
        await shutdown({"store_client": None})


class TestWorkerSettings:
    """Tests for WorkerSettings class."""

    def test_registers_all_tasks(self) -> None:
        """Should register every maintenance task."""
        assert set(WorkerSettings.functions) == {
            clear_stale_cache,
            evict_low_value_products,
            refresh_cache_scores,
            clean_old_price_history,
            clean_old_interactions,
        }

    def test_lifecycle_hooks(self) -> None:
        assert WorkerSettings.on_startup is startup
        assert WorkerSettings.on_shutdown is shutdown

    def test_queue_name_from_settings(self) -> None:
        """Should use the configured queue name."""
        assert WorkerSettings.queue_name == "companion:queue:jobs"

    def test_limits(self) -> None:
        assert WorkerSettings.job_timeout == 300
        assert WorkerSettings.max_tries == 3
