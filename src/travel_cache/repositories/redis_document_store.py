"""Redis JSON implementation of DocumentStore."""

import logging
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from travel_cache.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)


class RedisDocumentStore:
    """Stores query and response documents as RedisJSON values.

    This class satisfies the DocumentStore protocol through structural
    typing - no explicit inheritance needed.

    Keys are ``{collection}:{id}``, e.g. ``response:3f2a...``.
    """

    def __init__(self, redis_client: redis.Redis, scan_batch_size: int = 500) -> None:
        """Initialize the document store.

        Args:
            redis_client: Open asyncio Redis client.
            scan_batch_size: COUNT hint for SCAN and DEL batch size in delete_all.
        """
        self._client = redis_client
        self._scan_batch_size = scan_batch_size

    @staticmethod
    def key(collection: str, id: str) -> str:
        return f"{collection}:{id}"

    async def put(
        self,
        collection: str,
        id: str,
        record: dict[str, Any],
        ttl: int | None = None,
    ) -> None:
        """Write a document and, once written, set its expiry.

        Args:
            collection: Key namespace ("query" or "response")
            id: Record id
            record: JSON-serializable document
            ttl: Time-to-live in seconds, or None for no expiry

        Raises:
            StoreUnavailable: If Redis rejects either command
        """
        key = self.key(collection, id)
        try:
            await self._client.json().set(key, "$", record)
            if ttl:
                await self._client.expire(key, ttl)
        except RedisError as e:
            raise StoreUnavailable(f"Could not write {key}: {e}") from e
        logger.debug("Stored %s (ttl=%s)", key, ttl)

    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        """Read a document.

        Returns:
            The document, or None if it expired or was never written

        Raises:
            StoreUnavailable: If Redis cannot be read
        """
        key = self.key(collection, id)
        try:
            document = await self._client.json().get(key)
        except RedisError as e:
            raise StoreUnavailable(f"Could not read {key}: {e}") from e
        return document if isinstance(document, dict) else None

    async def expire(self, collection: str, id: str, ttl: int) -> bool:
        key = self.key(collection, id)
        try:
            return bool(await self._client.expire(key, ttl))
        except RedisError as e:
            raise StoreUnavailable(f"Could not set expiry on {key}: {e}") from e

    async def delete(self, collection: str, id: str) -> bool:
        key = self.key(collection, id)
        try:
            result: int = await self._client.delete(key)
        except RedisError as e:
            raise StoreUnavailable(f"Could not delete {key}: {e}") from e
        return result > 0

    async def delete_all(self, prefix: str) -> int:
        """Delete every key starting with prefix.

        Args:
            prefix: Key prefix, e.g. "query:"

        Returns:
            Number of keys deleted

        Raises:
            StoreUnavailable: If Redis fails mid-scan. Keys deleted before the
                failure stay deleted.
        """
        count = 0
        batch: list[str] = []
        try:
            async for key in self._client.scan_iter(
                match=f"{prefix}*", count=self._scan_batch_size
            ):
                batch.append(key)
                if len(batch) >= self._scan_batch_size:
                    count += await self._client.delete(*batch)
                    batch = []
            if batch:
                count += await self._client.delete(*batch)
        except RedisError as e:
            raise StoreUnavailable(f"Could not clear {prefix}*: {e}") from e

        logger.info("Deleted %d keys with prefix %s", count, prefix)
        return count
