"""Semantic cache service for travel itineraries.

This service orchestrates cache decisions by coordinating the embedding
provider, the vector index, the document store and the metric recorder.

Lookup path (strictly sequential):
    canonical string -> embedding -> nearest neighbors -> best candidate
    above threshold -> stored query -> compatibility check -> stored response

Every operational failure on that path ends in a miss. Metric recording runs
in background tasks and never changes a decision.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import replace

from travel_cache.config import settings
from travel_cache.entities import CacheResult, CacheStats, QueryRecord, ResponseRecord
from travel_cache.exceptions import (
    IndexUnavailable,
    MetricBackendUnavailable,
    ProviderError,
    RecordNotFound,
    StoreUnavailable,
    TravelCacheError,
)
from travel_cache.protocols import DocumentStore, EmbeddingProvider, MetricRecorder, VectorIndex
from travel_cache.serialization import (
    query_from_document,
    query_to_document,
    response_from_document,
    response_to_document,
)
from travel_cache.services.canonical import build_query_string
from travel_cache.services.compatibility import is_compatible

logger = logging.getLogger(__name__)

QUERIES = "query"
RESPONSES = "response"

HITS = "cache_hits"
MISSES = "cache_misses"
STORES = "cache_stores"
ERRORS = "cache_errors"


class CacheService:
    """Core semantic cache orchestration service.

    This service depends on PROTOCOLS, not concrete implementations:
    - VectorIndex / DocumentStore: Redis Stack by default
    - EmbeddingProvider: OpenAI-compatible API or a local model
    - MetricRecorder: RedisTimeSeries or the capped list fallback

    Example:
        ```python
        cache = CacheService.create(
            vector_index=RedisVectorIndex(client),
            documents=RedisDocumentStore(client),
            embedding_provider=OpenAIEmbeddingProvider.create(),
            metrics=await create_metric_recorder(client),
        )

        result = await cache.lookup(query)
        if not result.cache_hit:
            response = await generate_itinerary(query)
            await cache.store(query, response)
        ```
    """

    def __init__(
        self,
        vector_index: VectorIndex,
        documents: DocumentStore,
        embedding_provider: EmbeddingProvider,
        metrics: MetricRecorder,
        similarity_threshold: float | None = None,
        ttl: int | None = None,
        category_overlap: float | None = None,
        neighbors: int | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """Initialize the cache service.

        Args:
            vector_index: Nearest-neighbor search over query embeddings.
            documents: Storage for query and response documents.
            embedding_provider: Embedding generation service.
            metrics: Hit/miss/store recorder.
            similarity_threshold: Minimum cosine similarity (0-1). Defaults to settings.
            ttl: Expiry of stored pairs in seconds. Defaults to settings.
            category_overlap: Minimum Jaccard category overlap. Defaults to settings.
            neighbors: How many nearest neighbors to fetch. Defaults to settings.
            clock: Returns the current Unix time. Defaults to time.time.
        """
        self._index = vector_index
        self._documents = documents
        self._embeddings = embedding_provider
        self._metrics = metrics
        self._threshold = (
            settings.cache_similarity_threshold
            if similarity_threshold is None
            else similarity_threshold
        )
        self._ttl = ttl or settings.cache_ttl
        self._category_overlap = (
            settings.cache_category_overlap if category_overlap is None else category_overlap
        )
        self._neighbors = neighbors or settings.cache_neighbors
        self._clock = clock or time.time
        self._pending: set[asyncio.Task] = set()

    @classmethod
    def create(
        cls,
        vector_index: VectorIndex,
        documents: DocumentStore,
        embedding_provider: EmbeddingProvider,
        metrics: MetricRecorder,
        similarity_threshold: float | None = None,
        ttl: int | None = None,
    ) -> "CacheService":
        """Factory method to create CacheService with settings defaults.

        Args:
            vector_index: Vector index implementation (required).
            documents: Document store implementation (required).
            embedding_provider: Embedding provider (required).
            metrics: Metric recorder (required).
            similarity_threshold: Min similarity for hits. If None, uses settings.
            ttl: Time-to-live in seconds. If None, uses settings.

        Returns:
            Configured CacheService instance
        """
        return cls(
            vector_index=vector_index,
            documents=documents,
            embedding_provider=embedding_provider,
            metrics=metrics,
            similarity_threshold=similarity_threshold,
            ttl=ttl,
        )

    async def lookup(self, query: QueryRecord) -> CacheResult:
        """Look for a stored itinerary that can serve this query.

        Args:
            query: The incoming query (embedding may be absent)

        Returns:
            A hit carrying the stored response and its similarity, or a miss.
            Operational failures produce a miss with ``error`` set.
        """
        start = time.perf_counter()
        error: str | None = None

        try:
            match = await self._find_match(query)
        except ProviderError as e:
            logger.warning("Embedding failed for query %s, treating as miss: %s", query.query_id, e)
            self._record(ERRORS, {"stage": "embedding", "operation": "lookup"})
            match, error = None, str(e)
        except (IndexUnavailable, StoreUnavailable) as e:
            logger.warning("Cache backend unavailable for query %s: %s", query.query_id, e)
            self._record(ERRORS, {"stage": "search", "operation": "lookup"})
            match, error = None, str(e)

        elapsed_ms = (time.perf_counter() - start) * 1000

        if match is None:
            self._record(MISSES, self._labels(query))
            logger.info("Cache miss for %s in %.1fms", query.location, elapsed_ms)
            return CacheResult.miss(elapsed_ms, error=error)

        response, similarity = match
        self._record(HITS, {**self._labels(query), "similarity": f"{similarity:.4f}"})
        logger.info(
            "Cache hit for %s (similarity %.4f) in %.1fms", query.location, similarity, elapsed_ms
        )
        return CacheResult(
            cache_hit=True,
            search_time_ms=elapsed_ms,
            response=replace(response, cache_hit=True),
            similarity=similarity,
        )

    async def _find_match(self, query: QueryRecord) -> tuple[ResponseRecord, float] | None:
        """Run the lookup pipeline without recording metrics.

        Only the single best candidate above the threshold is considered. If
        it fails validation the result is a miss, even when a lower-ranked
        candidate would have passed.

        Returns:
            (response, similarity) on a hit, None on a miss

        Raises:
            ProviderError: If the embedding could not be generated
            IndexUnavailable: If the vector search backend is down
            StoreUnavailable: If the candidate documents cannot be read
        """
        embedding = query.embedding or await self._embed(query)

        neighbors = await self._index.nearest(embedding, self._neighbors)
        candidates = [n for n in neighbors if n.similarity >= self._threshold]
        logger.debug(
            "Vector search returned %d neighbors, %d at or above %.4f",
            len(neighbors),
            len(candidates),
            self._threshold,
        )
        if not candidates:
            return None

        best = candidates[0]
        try:
            cached_query = await self._load_query(best.id)
            if not is_compatible(query, cached_query, self._category_overlap):
                return None
            response = await self._load_response(best.id)
        except RecordNotFound as e:
            logger.info("Candidate vanished before it could be served: %s", e)
            return None

        return response, best.similarity

    async def _embed(self, query: QueryRecord) -> list[float]:
        return await self._embeddings.encode(build_query_string(query))

    async def _load_query(self, query_id: str) -> QueryRecord:
        document = await self._documents.get(QUERIES, query_id)
        if document is None:
            raise RecordNotFound(QUERIES, query_id)
        try:
            return query_from_document(document)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Stored query %s is malformed: %s", query_id, e)
            raise RecordNotFound(QUERIES, query_id) from e

    async def _load_response(self, query_id: str) -> ResponseRecord:
        document = await self._documents.get(RESPONSES, query_id)
        if document is None:
            raise RecordNotFound(RESPONSES, query_id)
        try:
            return response_from_document(document)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Stored response %s is malformed: %s", query_id, e)
            raise RecordNotFound(RESPONSES, query_id) from e

    async def store(self, query: QueryRecord, response: ResponseRecord) -> bool:
        """Store a query/response pair for future lookups.

        The embedding is computed first, so a provider failure leaves nothing
        behind. The query is indexed, the response written, and only then are
        both keys given the cache TTL.

        Args:
            query: The query that produced the response
            response: The freshly generated response

        Returns:
            True if both documents were written, False otherwise
        """
        start = time.perf_counter()

        try:
            embedding = query.embedding or await self._embed(query)
        except ProviderError as e:
            logger.warning("Not caching query %s, embedding failed: %s", query.query_id, e)
            self._record(ERRORS, {"stage": "embedding", "operation": "store"})
            return False

        record = replace(query, embedding=embedding)
        query_id = record.query_id

        try:
            await self._index.upsert(query_id, embedding, query_to_document(record))
            await self._documents.put(RESPONSES, query_id, response_to_document(response))
            await asyncio.gather(
                self._documents.expire(QUERIES, query_id, self._ttl),
                self._documents.expire(RESPONSES, query_id, self._ttl),
            )
        except (IndexUnavailable, StoreUnavailable) as e:
            logger.error("Failed to store query %s in cache: %s", query_id, e)
            self._record(ERRORS, {"stage": "write", "operation": "store"})
            return False

        self._record(
            STORES,
            {"location": query.location, "categories": ",".join(query.categories)},
        )
        logger.info("Stored %s in cache in %.1fms", query_id, (time.perf_counter() - start) * 1000)
        return True

    async def warm(self, pairs: list[tuple[QueryRecord, ResponseRecord]]) -> int:
        """Preload the cache, e.g. with popular destinations.

        A pair is skipped when a compatible entry already serves its query.

        Args:
            pairs: (query, response) tuples

        Returns:
            Number of pairs stored
        """
        count = 0
        for query, response in pairs:
            try:
                if query.embedding is None:
                    query = replace(query, embedding=await self._embed(query))
                if await self._find_match(query) is not None:
                    logger.info("Already cached, skipping preload of %s", query.location)
                    continue
            except TravelCacheError as e:
                logger.warning("Error preloading %s: %s", query.location, e)
                continue

            if await self.store(query, response):
                count += 1
        return count

    async def stats(self, window: int | None = None) -> CacheStats:
        """Aggregate hits, misses and stores over a trailing window.

        Args:
            window: Window length in seconds. Defaults to settings.stats_window.

        Returns:
            CacheStats; zeros when nothing was recorded or the backend is down
        """
        window = window or settings.stats_window
        to_ts = self._now_ms()
        from_ts = to_ts - window * 1000

        hits, misses, stores = await asyncio.gather(
            self._sum(HITS, from_ts, to_ts),
            self._sum(MISSES, from_ts, to_ts),
            self._sum(STORES, from_ts, to_ts),
        )
        return CacheStats(hits=int(hits), misses=int(misses), stores=int(stores))

    async def _sum(self, series: str, from_ts: int, to_ts: int) -> float:
        try:
            points = await self._metrics.query(series, from_ts, to_ts)
        except MetricBackendUnavailable as e:
            logger.warning("Could not read %s: %s", series, e)
            return 0.0
        return sum(point.value for point in points)

    async def clear(self) -> int:
        """Delete every cached query and response.

        Returns:
            Number of keys deleted

        Raises:
            StoreUnavailable: If the store cannot be cleared
        """
        queries = await self._documents.delete_all(f"{QUERIES}:")
        responses = await self._documents.delete_all(f"{RESPONSES}:")
        logger.info("Cleared %d cached items (%d queries, %d responses)", queries + responses, queries, responses)
        return queries + responses

    async def cleanup_expired(self) -> int:
        """Delete pairs older than the TTL that the store has not expired yet.

        Best effort: errors are logged and the sweep stops early.

        Returns:
            Number of query/response pairs removed
        """
        cutoff = self._clock() - self._ttl
        removed = 0
        try:
            for query_id in await self._index.older_than(cutoff):
                if await self._documents.delete(QUERIES, query_id):
                    removed += 1
                await self._documents.delete(RESPONSES, query_id)
        except (IndexUnavailable, StoreUnavailable) as e:
            logger.warning("Expiry sweep stopped after %d entries: %s", removed, e)

        if removed:
            logger.info("Cleaned up %d expired cache entries", removed)
        return removed

    async def check_health(self) -> dict[str, bool]:
        """Probe each backend.

        Returns:
            {"store": ..., "embeddings": ...} reachability flags
        """
        try:
            await self._documents.get("health", "probe")
            store_healthy = True
        except StoreUnavailable:
            store_healthy = False
        return {"store": store_healthy, "embeddings": await self._embeddings.is_available()}

    async def is_healthy(self) -> bool:
        """Check if cache is healthy.

        Returns:
            True if both the document store and embeddings are reachable
        """
        return all((await self.check_health()).values())

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    @staticmethod
    def _labels(query: QueryRecord) -> dict[str, str]:
        return {
            "location": query.location,
            "duration": str(query.duration),
            "categories": ",".join(query.categories),
            "budget": query.preferences.budget_or_any,
        }

    def _record(self, series: str, labels: dict[str, str], value: float = 1) -> None:
        """Record a metric sample in the background."""
        task = asyncio.create_task(self._safe_record(series, self._now_ms(), value, labels))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _safe_record(
        self, series: str, timestamp: int, value: float, labels: dict[str, str]
    ) -> None:
        try:
            await self._metrics.record(series, timestamp, value, labels)
        except Exception as e:
            logger.warning("Could not record %s: %s", series, e)

    async def flush_metrics(self) -> None:
        """Wait for in-flight metric writes. Call on shutdown."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def set_threshold(self, threshold: float) -> None:
        """Update the similarity threshold.

        Args:
            threshold: New threshold value (0-1, higher = more strict)
        """
        if not 0 <= threshold <= 1:
            raise ValueError("Threshold must be between 0 and 1")
        self._threshold = threshold

    @property
    def threshold(self) -> float:
        """Get current similarity threshold."""
        return self._threshold

    @property
    def ttl(self) -> int:
        return self._ttl

    @property
    def embedding_provider(self) -> EmbeddingProvider:
        """Get the underlying embedding provider (for testing)."""
        return self._embeddings


async def run_periodic_cleanup(service: CacheService, interval: int) -> None:
    """Run ``cleanup_expired`` every ``interval`` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        await service.cleanup_expired()
