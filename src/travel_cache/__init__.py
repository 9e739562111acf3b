"""Travel Cache - Semantic caching of travel itineraries with vector search.

This package provides a layered architecture for itinerary caching:

Layers:
    - protocols: Interface contracts (VectorIndex, DocumentStore, EmbeddingProvider, MetricRecorder)
    - repositories: Redis Stack and embedding implementations
    - services: Cache engine, canonical query strings, compatibility rules
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from travel_cache import CacheService, QueryRecord

    result = await cache.lookup(QueryRecord(location="Kyoto", categories=["temples"], duration=3))
    ```

For HTTP API:
    ```python
    from travel_cache.api.app import app
    ```
"""

from travel_cache.config import settings
from travel_cache.entities import (
    CacheResult,
    CacheStats,
    FreeformItinerary,
    Preferences,
    QueryRecord,
    ResponseRecord,
    StructuredItinerary,
)
from travel_cache.exceptions import (
    IndexUnavailable,
    MetricBackendUnavailable,
    ProviderError,
    RecordNotFound,
    StoreUnavailable,
    TravelCacheError,
)
from travel_cache.protocols import DocumentStore, EmbeddingProvider, MetricRecorder, VectorIndex
from travel_cache.serialization import parse_itinerary
from travel_cache.services import CacheService, is_compatible

__all__ = [
    # Configuration
    "settings",
    # Protocols (interfaces)
    "DocumentStore",
    "EmbeddingProvider",
    "MetricRecorder",
    "VectorIndex",
    # Services (business logic)
    "CacheService",
    "is_compatible",
    # Entities (domain models)
    "CacheResult",
    "CacheStats",
    "FreeformItinerary",
    "Preferences",
    "QueryRecord",
    "ResponseRecord",
    "StructuredItinerary",
    "parse_itinerary",
    # Errors
    "TravelCacheError",
    "ProviderError",
    "IndexUnavailable",
    "RecordNotFound",
    "StoreUnavailable",
    "MetricBackendUnavailable",
]
