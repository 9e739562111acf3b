"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import (
    ActivityPayload,
    CoordinatesPayload,
    ItineraryPayload,
    PreferencesPayload,
    QueryRequest,
    StoreCacheRequest,
    WarmCacheRequest,
)
from .responses import (
    CacheCleanupResponse,
    CacheClearResponse,
    CacheLookupResponse,
    CacheStatsResponse,
    CacheStoreResponse,
    CacheWarmResponse,
    HealthCheckResponse,
    ItineraryResponse,
)

__all__ = [
    "ActivityPayload",
    "CoordinatesPayload",
    "ItineraryPayload",
    "PreferencesPayload",
    "QueryRequest",
    "StoreCacheRequest",
    "WarmCacheRequest",
    "CacheCleanupResponse",
    "CacheClearResponse",
    "CacheLookupResponse",
    "CacheStatsResponse",
    "CacheStoreResponse",
    "CacheWarmResponse",
    "HealthCheckResponse",
    "ItineraryResponse",
]
