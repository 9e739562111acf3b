"""Response DTOs for API endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field

from .requests import ItineraryPayload


class ItineraryResponse(BaseModel):
    """A computed itinerary as delivered to the client."""

    response_id: str
    query_id: str = Field(..., description="The query that originally produced this itinerary")
    itinerary: ItineraryPayload
    generated_at: datetime
    cache_hit: bool = Field(..., description="Whether this delivery was served from cache")


class CacheLookupResponse(BaseModel):
    """Response DTO for cache lookup operation."""

    cache_hit: bool = Field(..., description="Whether a compatible cached itinerary was found")
    response: ItineraryResponse | None = Field(None, description="The cached itinerary on a hit")
    similarity: float | None = Field(
        None,
        description="Cosine similarity of the matched query (1 = identical)",
        le=1.0,
    )
    search_time_ms: float = Field(..., description="Time taken for the lookup in milliseconds")
    error: str | None = Field(None, description="Why the lookup degraded to a miss, if it did")


class CacheStoreResponse(BaseModel):
    """Response DTO for cache store operation."""

    success: bool = Field(..., description="Whether the entry was written")
    query_id: str = Field(..., description="The id the entry is stored under")
    message: str = Field(..., description="Human-readable status message")


class CacheWarmResponse(BaseModel):
    """Response DTO for cache preloading."""

    success: bool
    count: int = Field(..., description="Number of entries stored", ge=0)
    message: str


class CacheStatsResponse(BaseModel):
    """Response DTO for cache statistics."""

    hits: int = Field(..., ge=0)
    misses: int = Field(..., ge=0)
    stores: int = Field(..., ge=0)
    hit_rate: float = Field(..., description="hits / (hits + misses) as a percentage", ge=0.0, le=100.0)
    total_requests: int = Field(..., description="hits + misses", ge=0)
    window_seconds: int = Field(..., description="Trailing window the counters cover", gt=0)
    threshold: float = Field(..., description="Current similarity threshold", ge=0.0, le=1.0)
    ttl_seconds: int = Field(..., description="Time-to-live for cache entries in seconds", ge=0)


class CacheClearResponse(BaseModel):
    """Response DTO for clearing the cache."""

    success: bool
    deleted_count: int = Field(..., ge=0)
    message: str


class CacheCleanupResponse(BaseModel):
    """Response DTO for an expiry sweep."""

    removed: int = Field(..., description="Expired entries deleted", ge=0)
    message: str


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    cache_healthy: bool = Field(..., description="Whether the cache backend is reachable")
    embedding_healthy: bool | None = Field(
        None,
        description="Whether the embedding service is reachable",
    )
