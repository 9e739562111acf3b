"""Explicitly managed Redis connection.

One instance is created at startup and its client is injected into the
vector index, document store and metric recorder. Nothing in the package
reaches for a global client.
"""

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from travel_cache.config import settings

logger = logging.getLogger(__name__)


class RedisConnection:
    """Owns the lifecycle of an asyncio Redis client.

    Example:
        ```python
        connection = RedisConnection.create()
        client = await connection.open()
        try:
            documents = RedisDocumentStore(client)
            ...
        finally:
            await connection.close()
        ```
    """

    def __init__(
        self,
        url: str | None = None,
        password: str | None = None,
        socket_timeout: float | None = None,
    ) -> None:
        """Initialize the connection (no I/O happens here).

        Args:
            url: Redis URL. Defaults to settings.redis_url.
            password: Redis password. Defaults to settings.redis_password.
            socket_timeout: Socket timeout in seconds. Defaults to settings.
        """
        self._url = url or settings.redis_url
        self._password = password or settings.redis_password
        self._socket_timeout = socket_timeout or settings.redis_socket_timeout
        self._client: redis.Redis | None = None

    @classmethod
    def create(cls) -> "RedisConnection":
        """Factory method to create a connection from settings."""
        return cls()

    async def open(self) -> redis.Redis:
        """Create the client if needed and return it."""
        if self._client is None:
            self._client = redis.from_url(
                self._url,
                password=self._password,
                socket_timeout=self._socket_timeout,
                decode_responses=True,
            )
            logger.info("Opened Redis connection to %s", self._url)
        return self._client

    @property
    def client(self) -> redis.Redis:
        """Get the open client.

        Raises:
            RuntimeError: If open() has not been called
        """
        if self._client is None:
            raise RuntimeError("Redis connection is not open. Call open() first.")
        return self._client

    @property
    def is_open(self) -> bool:
        return self._client is not None

    async def ping(self) -> bool:
        """Check if Redis is reachable.

        Returns:
            True if healthy, False otherwise
        """
        if self._client is None:
            return False
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            logger.warning("Redis ping failed: %s", e)
            return False

    async def close(self) -> None:
        """Close the client. Safe to call twice."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Closed Redis connection")

    async def __aenter__(self) -> redis.Redis:
        return await self.open()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
