"""HTTP handlers for cache operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes, validation, and error handling.
"""

import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status

from travel_cache.config import settings
from travel_cache.dto import (
    CacheCleanupResponse,
    CacheClearResponse,
    CacheLookupResponse,
    CacheStatsResponse,
    CacheStoreResponse,
    CacheWarmResponse,
    HealthCheckResponse,
    ItineraryPayload,
    ItineraryResponse,
    QueryRequest,
    StoreCacheRequest,
    WarmCacheRequest,
)
from travel_cache.entities import Preferences, QueryRecord, ResponseRecord
from travel_cache.serialization import itinerary_from_dict, itinerary_to_dict, parse_itinerary
from travel_cache.services import CacheService

logger = logging.getLogger(__name__)


def to_query_record(request: QueryRequest) -> QueryRecord:
    """Convert a query DTO into the domain entity."""
    prefs = request.preferences
    fields = {}
    if request.query_id:
        fields["query_id"] = request.query_id
    return QueryRecord(
        location=request.location,
        categories=list(request.categories),
        duration=request.duration,
        preferences=Preferences(
            budget=prefs.budget,
            dietary=list(prefs.dietary),
            accessibility=prefs.accessibility,
        ),
        **fields,
    )


def to_response_record(request: StoreCacheRequest, query_id: str) -> ResponseRecord:
    """Build the response entity, parsing raw content when no itinerary is given."""
    if request.itinerary is not None:
        itinerary = itinerary_from_dict(request.itinerary.model_dump(exclude_none=True))
    else:
        itinerary = parse_itinerary(request.content or "")
    return ResponseRecord(
        response_id=request.response_id or str(uuid.uuid4()),
        query_id=query_id,
        itinerary=itinerary,
        generated_at=request.generated_at or datetime.now(timezone.utc),
    )


def to_itinerary_response(response: ResponseRecord) -> ItineraryResponse:
    return ItineraryResponse(
        response_id=response.response_id,
        query_id=response.query_id,
        itinerary=ItineraryPayload.model_validate(itinerary_to_dict(response.itinerary)),
        generated_at=response.generated_at,
        cache_hit=response.cache_hit,
    )


class CacheHandler:
    """HTTP handlers for cache operations.

    This handler delegates business logic to CacheService
    and handles HTTP-specific concerns like:
    - Converting DTOs to entities and back
    - Setting appropriate status codes
    - Error handling and responses

    Example:
        ```python
        handler = CacheHandler(cache_service=cache_service)

        @app.post("/cache/lookup", response_model=CacheLookupResponse)
        async def lookup(request: QueryRequest):
            return await handler.lookup(request)
        ```
    """

    def __init__(self, cache_service: CacheService) -> None:
        """Initialize the cache handler.

        Args:
            cache_service: The cache service for business logic (required).
        """
        self._cache = cache_service

    async def lookup(self, request: QueryRequest) -> CacheLookupResponse:
        """Handle POST /cache/lookup requests.

        Args:
            request: The query DTO

        Returns:
            CacheLookupResponse with the hit/miss decision

        Raises:
            HTTPException: If an unexpected error occurs during lookup
        """
        try:
            result = await self._cache.lookup(to_query_record(request))

            return CacheLookupResponse(
                cache_hit=result.cache_hit,
                response=to_itinerary_response(result.response) if result.response else None,
                similarity=result.similarity,
                search_time_ms=result.search_time_ms,
                error=result.error,
            )

        except Exception as e:
            logger.exception("Lookup failed")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to look up cache: {e}",
            ) from e

    async def store(self, request: StoreCacheRequest) -> CacheStoreResponse:
        """Handle POST /cache/store requests.

        Args:
            request: The store request DTO

        Returns:
            CacheStoreResponse; ``success`` is False when the cache declined the write

        Raises:
            HTTPException: If an unexpected error occurs during storage
        """
        try:
            query = to_query_record(request.query)
            stored = await self._cache.store(query, to_response_record(request, query.query_id))

            return CacheStoreResponse(
                success=stored,
                query_id=query.query_id,
                message="Entry stored successfully" if stored else "Entry was not cached",
            )

        except Exception as e:
            logger.exception("Store failed")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to store entry: {e}",
            ) from e

    async def warm(self, request: WarmCacheRequest) -> CacheWarmResponse:
        """Handle POST /cache/warm requests."""
        try:
            pairs = []
            for entry in request.entries:
                query = to_query_record(entry.query)
                pairs.append((query, to_response_record(entry, query.query_id)))

            count = await self._cache.warm(pairs)

            return CacheWarmResponse(
                success=True,
                count=count,
                message=f"Preloaded {count} of {len(pairs)} entries",
            )

        except Exception as e:
            logger.exception("Warm-up failed")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to warm cache: {e}",
            ) from e

    async def get_stats(self, window: int | None = None) -> CacheStatsResponse:
        """Handle GET /cache/stats requests.

        Args:
            window: Trailing window in seconds. Defaults to settings.stats_window.

        Returns:
            CacheStatsResponse with counters and configuration

        Raises:
            HTTPException: If an error occurs while fetching stats
        """
        window = window or settings.stats_window
        try:
            stats = await self._cache.stats(window)

            return CacheStatsResponse(
                **stats.to_dict(),
                window_seconds=window,
                threshold=self._cache.threshold,
                ttl_seconds=self._cache.ttl,
            )

        except Exception as e:
            logger.exception("Stats failed")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to get stats: {e}",
            ) from e

    async def cleanup(self) -> CacheCleanupResponse:
        """Handle POST /cache/cleanup requests."""
        removed = await self._cache.cleanup_expired()
        return CacheCleanupResponse(removed=removed, message=f"Removed {removed} expired entries")

    async def clear_cache(self) -> CacheClearResponse:
        """Handle DELETE /cache requests.

        Returns:
            CacheClearResponse with the number of deleted keys
        """
        try:
            count = await self._cache.clear()

            return CacheClearResponse(
                success=True,
                deleted_count=count,
                message="Cache cleared successfully",
            )

        except Exception as e:
            logger.exception("Clear failed")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to clear cache: {e}",
            ) from e

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests.

        Returns:
            HealthCheckResponse with per-backend status
        """
        health = await self._cache.check_health()
        is_healthy = all(health.values())

        return HealthCheckResponse(
            status="healthy" if is_healthy else "unhealthy",
            cache_healthy=health["store"],
            embedding_healthy=health["embeddings"],
        )
