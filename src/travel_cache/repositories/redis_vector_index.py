"""Redis implementation of VectorIndex.

Uses Redis Stack vector search (HNSW, COSINE) over JSON documents stored
under the ``query:`` prefix. The same documents are read back through the
document store, so a query record is indexed and stored in a single write.
"""

import logging
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError
from redisvl.exceptions import RedisSearchError
from redisvl.index import AsyncSearchIndex
from redisvl.query import FilterQuery, VectorQuery
from redisvl.query.filter import Num

from travel_cache.config import settings
from travel_cache.entities import Neighbor
from travel_cache.exceptions import IndexUnavailable

logger = logging.getLogger(__name__)

QUERY_PREFIX = "query"

_MISSING_INDEX_MARKERS = ("no such index", "unknown index name")


def _is_missing_index(error: Exception) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in _MISSING_INDEX_MARKERS)


class RedisVectorIndex:
    """Redis vector index over stored query documents.

    This class satisfies the VectorIndex protocol through structural
    typing - no explicit inheritance needed.

    Index schema (JSON storage, prefix ``query:``):
    - embedding: HNSW vector, COSINE distance, FLOAT32
    - location: text
    - categories: tag
    - duration, timestamp: numeric

    Only the vector is used for matching today. The scalar fields are
    indexed so filtered search can be added without a reindex.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        dimension: int | None = None,
        index_name: str | None = None,
    ) -> None:
        """Initialize the index adapter (no I/O happens here).

        Args:
            redis_client: Open asyncio Redis client.
            dimension: Embedding dimension. Defaults to settings.embedding_dimension.
            index_name: Redis search index name. Defaults to settings.cache_index_name.
        """
        self._client = redis_client
        self._dimension = dimension or settings.embedding_dimension
        self._index_name = index_name or settings.cache_index_name
        self._index: AsyncSearchIndex | None = None
        self._ready = False

    def _schema(self) -> dict[str, Any]:
        return {
            "index": {
                "name": self._index_name,
                "prefix": f"{QUERY_PREFIX}:",
                "storage_type": "json",
            },
            "fields": [
                {"name": "location", "type": "text", "path": "$.location"},
                {"name": "categories", "type": "tag", "path": "$.categories[*]"},
                {"name": "duration", "type": "numeric", "path": "$.duration"},
                {"name": "timestamp", "type": "numeric", "path": "$.timestamp"},
                {
                    "name": "embedding",
                    "type": "vector",
                    "path": "$.embedding",
                    "attrs": {
                        "dims": self._dimension,
                        "algorithm": "hnsw",
                        "distance_metric": "cosine",
                        "datatype": "float32",
                    },
                },
            ],
        }

    async def create(self) -> None:
        """Ensure the Redis vector index exists.

        Raises:
            IndexUnavailable: If Redis refused for any reason other than
                the index already existing
        """
        if self._index is None:
            self._index = AsyncSearchIndex.from_dict(self._schema(), redis_client=self._client)

        try:
            await self._index.create(overwrite=False)
            logger.info("Created vector index %s (%d dims)", self._index_name, self._dimension)
        except (RedisError, RedisSearchError) as e:
            if "already exists" in str(e).lower():
                logger.info("Using existing vector index %s", self._index_name)
                self._ready = True
                return
            raise IndexUnavailable(f"Could not create index {self._index_name}: {e}") from e

        self._ready = True

    async def _ensure_index(self) -> None:
        # Creation is retried on every call until it succeeds
        if not self._ready:
            await self.create()

    def _key(self, id: str) -> str:
        return f"{QUERY_PREFIX}:{id}"

    def _strip_prefix(self, key: str) -> str:
        prefix = f"{QUERY_PREFIX}:"
        return key[len(prefix):] if key.startswith(prefix) else key

    async def upsert(self, id: str, vector: list[float], metadata: dict[str, Any]) -> None:
        """Write the query document with its embedding.

        Args:
            id: The query id
            vector: The embedding vector
            metadata: The rest of the query document

        Raises:
            IndexUnavailable: If the vector does not fit the index, the index
                cannot be created or the write fails
        """
        if len(vector) != self._dimension:
            raise IndexUnavailable(
                f"Vector has {len(vector)} dimensions, index expects {self._dimension}"
            )
        await self._ensure_index()

        document = {**metadata, "embedding": [float(x) for x in vector]}
        try:
            await self._client.json().set(self._key(id), "$", document)
        except RedisError as e:
            raise IndexUnavailable(f"Could not index query {id}: {e}") from e

    async def nearest(self, vector: list[float], k: int) -> list[Neighbor]:
        """Find the k closest stored queries.

        Args:
            vector: The query embedding vector
            k: Maximum number of neighbors

        Returns:
            Neighbors sorted by distance (closest first). Empty if the index
            has gone missing on the server; it is recreated on the next call.

        Raises:
            IndexUnavailable: If Redis cannot be reached or the index cannot
                be created
        """
        await self._ensure_index()

        query = VectorQuery(
            vector=vector,
            vector_field_name="embedding",
            return_fields=["location", "duration", "timestamp"],
            num_results=k,
        )

        try:
            results = await self._index.query(query)
        except (RedisError, RedisSearchError) as e:
            if _is_missing_index(e):
                logger.warning("Vector index %s does not exist, no candidates", self._index_name)
                self._ready = False
                return []
            raise IndexUnavailable(f"Vector search failed: {e}") from e

        neighbors = []
        for result in results:
            distance = float(result.get("vector_distance", 2.0))
            neighbors.append(Neighbor(id=self._strip_prefix(result["id"]), distance=distance))
            logger.debug(
                "Candidate %s: distance=%.4f location=%s",
                result["id"],
                distance,
                result.get("location"),
            )

        # Stable sort keeps the server's order for equal distances
        neighbors.sort(key=lambda n: n.distance)
        return neighbors[:k]

    async def older_than(self, timestamp: float, limit: int = 1000) -> list[str]:
        """Find query ids created before a Unix timestamp.

        Raises:
            IndexUnavailable: If Redis cannot be reached
        """
        await self._ensure_index()

        query = FilterQuery(
            filter_expression=Num("timestamp") <= timestamp,
            return_fields=["timestamp"],
            num_results=limit,
        )

        try:
            results = await self._index.query(query)
        except (RedisError, RedisSearchError) as e:
            if _is_missing_index(e):
                self._ready = False
                return []
            raise IndexUnavailable(f"Expiry scan failed: {e}") from e

        return [self._strip_prefix(result["id"]) for result in results]

    @property
    def index_name(self) -> str:
        return self._index_name

    @property
    def dimension(self) -> int:
        return self._dimension
