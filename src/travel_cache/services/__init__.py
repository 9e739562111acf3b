"""Service layer for business logic.

This layer contains the semantic cache engine and the pure helpers it uses.
Services depend on protocols (interfaces), not concrete implementations,
making them testable against in-memory fakes.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)

Usage:
    ```python
    from travel_cache.services import CacheService

    cache = CacheService.create(
        vector_index=index,
        documents=documents,
        embedding_provider=provider,
        metrics=recorder,
    )
    result = await cache.lookup(query)
    ```
"""

from .cache_service import CacheService, run_periodic_cleanup
from .canonical import build_query_string, trip_type
from .compatibility import category_overlap, is_compatible

__all__ = [
    "CacheService",
    "build_query_string",
    "category_overlap",
    "is_compatible",
    "run_periodic_cleanup",
    "trip_type",
]
