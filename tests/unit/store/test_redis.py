"""Unit tests for RedisEntryStore.

Tests cover:
- Hash and sequence key layout
- Document encoding on reads and writes
- WATCH/MULTI read-modify-write, retries and exhaustion
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import orjson
import pytest
from redis.exceptions import WatchError

from companion_cache.schemas.enums import EntityKind
from companion_cache.store.redis import MAX_WATCH_ATTEMPTS, RedisEntryStore


pytestmark = pytest.mark.unit


@pytest.fixture
def pipe() -> MagicMock:
    """Mock transactional pipeline."""
    pipeline = MagicMock()
    pipeline.watch = AsyncMock()
    pipeline.unwatch = AsyncMock()
    pipeline.hget = AsyncMock()
    pipeline.execute = AsyncMock(return_value=[1])
    return pipeline


@pytest.fixture
def client(pipe: MagicMock) -> MagicMock:
    """Mock redis.asyncio client whose pipeline() yields ``pipe``."""
    mock_client = MagicMock()
    mock_client.hvals = AsyncMock(return_value=[])
    mock_client.hget = AsyncMock(return_value=None)
    mock_client.hset = AsyncMock()
    mock_client.hdel = AsyncMock(return_value=0)
    mock_client.hlen = AsyncMock(return_value=0)
    mock_client.incr = AsyncMock(return_value=1)
    mock_client.delete = AsyncMock()
    mock_client.pipeline.return_value.__aenter__.return_value = pipe
    mock_client.pipeline.return_value.__aexit__.return_value = False
    return mock_client


@pytest.fixture
def redis_store(client: MagicMock) -> RedisEntryStore:
    return RedisEntryStore(client, key_prefix="test")


class TestReads:
    """Tests for hash reads."""

    @pytest.mark.asyncio
    async def test_get_all_decodes_values(
        self, redis_store: RedisEntryStore, client: MagicMock
    ) -> None:
        """Should decode every hash value."""
        client.hvals.return_value = [b'{"id":"a"}', b'{"id":"b"}']

        documents = await redis_store.get_all(EntityKind.PRODUCTS)

        client.hvals.assert_awaited_once_with("test:products")
        assert documents == [{"id": "a"}, {"id": "b"}]

    @pytest.mark.asyncio
    async def test_get_by_id_missing(
        self, redis_store: RedisEntryStore, client: MagicMock
    ) -> None:
        """Should return None for an absent field."""
        assert await redis_store.get_by_id(EntityKind.ORDERS, "o1") is None
        client.hget.assert_awaited_once_with("test:orders", "o1")

    @pytest.mark.asyncio
    async def test_query_filters_locally(
        self, redis_store: RedisEntryStore, client: MagicMock
    ) -> None:
        """Should apply the predicate to decoded documents."""
        client.hvals.return_value = [b'{"v":1}', b'{"v":2}']

        result = await redis_store.query(EntityKind.PRODUCTS, lambda d: d["v"] == 2)

        assert result == [{"v": 2}]


class TestWrites:
    """Tests for hash writes."""

    @pytest.mark.asyncio
    async def test_append_uses_sequence_counter(
        self, redis_store: RedisEntryStore, client: MagicMock
    ) -> None:
        """Should take the id from INCR and store it in the document."""
        client.incr.return_value = 7

        new_id = await redis_store.append(EntityKind.PRICE_HISTORY, {"price": "9.99"})

        assert new_id == 7
        client.incr.assert_awaited_once_with("test:price_history:seq")
        client.hset.assert_awaited_once_with(
            "test:price_history", "7", orjson.dumps({"price": "9.99", "id": 7})
        )

    @pytest.mark.asyncio
    async def test_delete_by_ids(
        self, redis_store: RedisEntryStore, client: MagicMock
    ) -> None:
        """Should HDEL the keys and skip the call for an empty list."""
        client.hdel.return_value = 2

        assert await redis_store.delete_by_ids(EntityKind.PRODUCTS, ["a", "b"]) == 2
        assert await redis_store.delete_by_ids(EntityKind.PRODUCTS, []) == 0
        client.hdel.assert_awaited_once_with("test:products", "a", "b")

    @pytest.mark.asyncio
    async def test_clear_counts_then_deletes(
        self, redis_store: RedisEntryStore, client: MagicMock
    ) -> None:
        """Should report the hash size and delete the hash."""
        client.hlen.return_value = 3

        assert await redis_store.clear(EntityKind.PRODUCTS) == 3
        client.delete.assert_awaited_once_with("test:products")


class TestReadModifyWrite:
    """Tests for WATCH/MULTI updates."""

    @pytest.mark.asyncio
    async def test_update_merges_under_watch(
        self, redis_store: RedisEntryStore, pipe: MagicMock
    ) -> None:
        """Should watch the hash, merge fields and execute the transaction."""
        pipe.hget.return_value = orjson.dumps({"id": "p1", "price": "1"})

        assert await redis_store.update(EntityKind.PRODUCTS, "p1", {"price": "2"})

        pipe.watch.assert_awaited_once_with("test:products")
        pipe.multi.assert_called_once()
        pipe.hset.assert_called_once_with(
            "test:products", "p1", orjson.dumps({"id": "p1", "price": "2"})
        )
        pipe.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_missing_unwatches(
        self, redis_store: RedisEntryStore, pipe: MagicMock
    ) -> None:
        """Should release the watch and write nothing."""
        pipe.hget.return_value = None

        assert await redis_store.update(EntityKind.PRODUCTS, "p1", {"a": 1}) is False

        pipe.unwatch.assert_awaited_once()
        pipe.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_increment_applies_counter_and_fields(
        self, redis_store: RedisEntryStore, pipe: MagicMock
    ) -> None:
        """Should add to the counter and merge set_fields in one write."""
        pipe.hget.return_value = orjson.dumps({"accessCount": 4})

        await redis_store.increment(
            EntityKind.PRODUCTS, "p1", "accessCount", set_fields={"x": 1}
        )

        pipe.hset.assert_called_once_with(
            "test:products", "p1", orjson.dumps({"accessCount": 5, "x": 1})
        )

    @pytest.mark.asyncio
    async def test_retries_after_watch_error(
        self, redis_store: RedisEntryStore, pipe: MagicMock
    ) -> None:
        """Should retry when another client changed the hash."""
        pipe.hget.return_value = orjson.dumps({"a": 1})
        pipe.execute.side_effect = [WatchError(), [1]]

        assert await redis_store.update(EntityKind.PRODUCTS, "p1", {"a": 2}) is True
        assert pipe.watch.await_count == 2

    @pytest.mark.asyncio
    async def test_raises_after_max_attempts(
        self, redis_store: RedisEntryStore, pipe: MagicMock
    ) -> None:
        """Should surface WatchError once every attempt collided."""
        pipe.hget.return_value = orjson.dumps({"a": 1})
        pipe.execute.side_effect = WatchError()

        with pytest.raises(WatchError):
            await redis_store.update(EntityKind.PRODUCTS, "p1", {"a": 2})

        assert pipe.execute.await_count == MAX_WATCH_ATTEMPTS


class TestConditionalDelete:
    """Tests for WATCH/MULTI conditional deletes."""

    @pytest.mark.asyncio
    async def test_deletes_when_predicate_holds(
        self, redis_store: RedisEntryStore, pipe: MagicMock
    ) -> None:
        """Should delete inside the watched transaction."""
        pipe.hget.return_value = orjson.dumps({"isInWishlist": False})

        removed = await redis_store.delete_if(
            EntityKind.PRODUCTS, "p1", lambda doc: not doc["isInWishlist"]
        )

        assert removed is True
        pipe.watch.assert_awaited_once_with("test:products")
        pipe.multi.assert_called_once()
        pipe.hdel.assert_called_once_with("test:products", "p1")
        pipe.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_keeps_document_when_predicate_fails(
        self, redis_store: RedisEntryStore, pipe: MagicMock
    ) -> None:
        """Should release the watch and delete nothing."""
        pipe.hget.return_value = orjson.dumps({"isInWishlist": True})

        removed = await redis_store.delete_if(
            EntityKind.PRODUCTS, "p1", lambda doc: not doc["isInWishlist"]
        )

        assert removed is False
        pipe.unwatch.assert_awaited_once()
        pipe.hdel.assert_not_called()
        pipe.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rechecks_after_watch_error(
        self, redis_store: RedisEntryStore, pipe: MagicMock
    ) -> None:
        """Should re-read and re-check when the hash changed mid-delete."""
        pipe.hget.side_effect = [
            orjson.dumps({"isInWishlist": False}),
            orjson.dumps({"isInWishlist": True}),
        ]
        pipe.execute.side_effect = [WatchError()]

        removed = await redis_store.delete_if(
            EntityKind.PRODUCTS, "p1", lambda doc: not doc["isInWishlist"]
        )

        assert removed is False
        assert pipe.watch.await_count == 2
        pipe.unwatch.assert_awaited_once()
