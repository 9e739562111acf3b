"""Tests for the Redis vector index, document store and connection adapters."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError
from redisvl.exceptions import RedisSearchError

from travel_cache.entities import Neighbor
from travel_cache.exceptions import IndexUnavailable, StoreUnavailable
from travel_cache.repositories import RedisConnection, RedisDocumentStore, RedisVectorIndex
from travel_cache.repositories import redis_vector_index

pytestmark = pytest.mark.anyio


def async_iter(items):
    async def gen():
        for item in items:
            yield item

    return gen()


@pytest.fixture
def mock_redis_client():
    """Create a mock asyncio Redis client with a RedisJSON command group."""
    client = MagicMock()
    client.json.return_value.set = AsyncMock(return_value=True)
    client.json.return_value.get = AsyncMock(return_value=None)
    client.expire = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=1)
    return client


class TestRedisDocumentStore:
    @pytest.fixture
    def documents(self, mock_redis_client):
        return RedisDocumentStore(mock_redis_client, scan_batch_size=2)

    async def test_put_sets_document_then_ttl(self, documents, mock_redis_client):
        await documents.put("response", "abc", {"response_id": "r1"}, ttl=3600)

        mock_redis_client.json.return_value.set.assert_awaited_once_with(
            "response:abc", "$", {"response_id": "r1"}
        )
        mock_redis_client.expire.assert_awaited_once_with("response:abc", 3600)

    async def test_put_without_ttl_does_not_expire(self, documents, mock_redis_client):
        await documents.put("query", "abc", {"location": "Paris"})

        mock_redis_client.expire.assert_not_awaited()

    async def test_get_returns_document(self, documents, mock_redis_client):
        mock_redis_client.json.return_value.get.return_value = {"query_id": "abc"}

        assert await documents.get("query", "abc") == {"query_id": "abc"}
        mock_redis_client.json.return_value.get.assert_awaited_once_with("query:abc")

    async def test_get_missing_returns_none(self, documents):
        assert await documents.get("query", "missing") is None

    async def test_errors_become_store_unavailable(self, documents, mock_redis_client):
        mock_redis_client.json.return_value.get.side_effect = RedisConnectionError("refused")
        mock_redis_client.json.return_value.set.side_effect = RedisConnectionError("refused")

        with pytest.raises(StoreUnavailable):
            await documents.get("query", "abc")
        with pytest.raises(StoreUnavailable):
            await documents.put("query", "abc", {})

    async def test_expire_and_delete(self, documents, mock_redis_client):
        mock_redis_client.expire.return_value = False
        mock_redis_client.delete.return_value = 0

        assert await documents.expire("query", "gone", 60) is False
        assert await documents.delete("query", "gone") is False

    async def test_delete_all_deletes_in_batches(self, documents, mock_redis_client):
        mock_redis_client.scan_iter = MagicMock(
            return_value=async_iter(["query:a", "query:b", "query:c"])
        )
        mock_redis_client.delete.side_effect = [2, 1]

        assert await documents.delete_all("query:") == 3
        mock_redis_client.scan_iter.assert_called_once_with(match="query:*", count=2)
        assert mock_redis_client.delete.await_count == 2

    async def test_delete_all_with_no_keys(self, documents, mock_redis_client):
        mock_redis_client.scan_iter = MagicMock(return_value=async_iter([]))

        assert await documents.delete_all("response:") == 0
        mock_redis_client.delete.assert_not_awaited()


class TestRedisVectorIndex:
    @pytest.fixture
    def search_class(self, monkeypatch):
        search_class = MagicMock()
        search_class.from_dict.return_value.create = AsyncMock()
        search_class.from_dict.return_value.query = AsyncMock(return_value=[])
        monkeypatch.setattr(redis_vector_index, "AsyncSearchIndex", search_class)
        return search_class

    @pytest.fixture
    def search_index(self, search_class):
        return search_class.from_dict.return_value

    @pytest.fixture
    def index(self, mock_redis_client, search_class):
        return RedisVectorIndex(mock_redis_client, dimension=3, index_name="idx:test")

    async def test_create_builds_schema(self, index, search_class, search_index):
        await index.create()

        schema = search_class.from_dict.call_args.args[0]
        assert schema["index"] == {"name": "idx:test", "prefix": "query:", "storage_type": "json"}
        [vector_field] = [f for f in schema["fields"] if f["type"] == "vector"]
        assert vector_field["attrs"]["dims"] == 3
        assert vector_field["attrs"]["distance_metric"] == "cosine"
        search_index.create.assert_awaited_once_with(overwrite=False)

    async def test_create_is_idempotent(self, index, search_index):
        search_index.create.side_effect = ResponseError("Index already exists")

        await index.create()
        await index.nearest([0.1, 0.2, 0.3], 10)

        search_index.create.assert_awaited_once()

    async def test_create_failure_raises_index_unavailable(self, index, search_index):
        search_index.create.side_effect = RedisConnectionError("refused")

        with pytest.raises(IndexUnavailable):
            await index.create()

    async def test_failed_create_is_retried_on_next_search(self, index, search_index):
        search_index.create.side_effect = [RedisConnectionError("refused"), None]
        search_index.query.return_value = [{"id": "query:abc", "vector_distance": "0.01"}]

        with pytest.raises(IndexUnavailable):
            await index.create()

        assert await index.nearest([0.1, 0.2, 0.3], 10) == [Neighbor("abc", 0.01)]
        assert search_index.create.await_count == 2

        await index.nearest([0.1, 0.2, 0.3], 10)
        assert search_index.create.await_count == 2

    async def test_search_while_index_cannot_be_created_raises(self, index, search_index):
        search_index.create.side_effect = RedisConnectionError("refused")

        with pytest.raises(IndexUnavailable):
            await index.nearest([0.1, 0.2, 0.3], 10)
        search_index.query.assert_not_awaited()

    async def test_upsert_creates_missing_index_first(self, index, search_index, mock_redis_client):
        await index.upsert("abc", [0.1, 0.2, 0.3], {})

        search_index.create.assert_awaited_once()
        mock_redis_client.json.return_value.set.assert_awaited_once()

    async def test_upsert_writes_document_with_embedding(self, index, mock_redis_client):
        await index.upsert("abc", [0.1, 0.2, 0.3], {"location": "Paris", "duration": 3})

        mock_redis_client.json.return_value.set.assert_awaited_once_with(
            "query:abc",
            "$",
            {"location": "Paris", "duration": 3, "embedding": [0.1, 0.2, 0.3]},
        )

    async def test_upsert_rejects_wrong_dimension(self, index, mock_redis_client):
        with pytest.raises(IndexUnavailable):
            await index.upsert("abc", [0.1, 0.2], {})
        mock_redis_client.json.return_value.set.assert_not_awaited()

    async def test_upsert_failure_raises_index_unavailable(self, index, mock_redis_client):
        mock_redis_client.json.return_value.set.side_effect = RedisConnectionError("refused")

        with pytest.raises(IndexUnavailable):
            await index.upsert("abc", [0.1, 0.2, 0.3], {})

    async def test_nearest_returns_sorted_neighbors(self, index, search_index):
        search_index.query.return_value = [
            {"id": "query:far", "vector_distance": "0.2", "location": "Lyon"},
            {"id": "query:near", "vector_distance": "0.01", "location": "Paris"},
        ]

        neighbors = await index.nearest([0.1, 0.2, 0.3], 10)

        assert neighbors == [Neighbor("near", 0.01), Neighbor("far", 0.2)]
        assert neighbors[0].similarity == pytest.approx(0.99)

    async def test_missing_index_is_empty_then_recreated(self, index, search_index):
        search_index.query.side_effect = [
            RedisSearchError("Error while searching: idx:test: no such index"),
            [],
        ]

        assert await index.nearest([0.1, 0.2, 0.3], 10) == []
        assert await index.nearest([0.1, 0.2, 0.3], 10) == []
        assert search_index.create.await_count == 2

    async def test_nearest_backend_down_raises(self, index, search_index):
        search_index.query.side_effect = RedisConnectionError("refused")

        with pytest.raises(IndexUnavailable):
            await index.nearest([0.1, 0.2, 0.3], 10)

    async def test_older_than_returns_ids(self, index, search_index):
        search_index.query.return_value = [{"id": "query:old1"}, {"id": "query:old2"}]

        assert await index.older_than(1_700_000_000.0) == ["old1", "old2"]


class TestRedisConnection:
    async def test_open_ping_close(self, monkeypatch):
        client = MagicMock()
        client.ping = AsyncMock(return_value=True)
        client.aclose = AsyncMock()
        from_url = MagicMock(return_value=client)
        monkeypatch.setattr("travel_cache.repositories.redis_connection.redis.from_url", from_url)

        connection = RedisConnection(url="redis://cache:6379", socket_timeout=2.0)
        assert connection.is_open is False

        async with connection as opened:
            assert opened is client
            assert connection.client is client
            assert await connection.ping() is True

        from_url.assert_called_once_with(
            "redis://cache:6379",
            password=None,
            socket_timeout=2.0,
            decode_responses=True,
        )
        client.aclose.assert_awaited_once()
        assert connection.is_open is False

    async def test_ping_failure_is_false(self, monkeypatch):
        client = MagicMock()
        client.ping = AsyncMock(side_effect=RedisConnectionError("refused"))
        monkeypatch.setattr(
            "travel_cache.repositories.redis_connection.redis.from_url",
            MagicMock(return_value=client),
        )

        connection = RedisConnection(url="redis://cache:6379")
        await connection.open()

        assert await connection.ping() is False

    def test_client_before_open_raises(self):
        with pytest.raises(RuntimeError):
            RedisConnection().client
