"""Domain entities for internal representation.

These are plain dataclasses used internally by services and repositories.
They are NOT used for API contracts - use DTOs from the dto package for that.
Conversion to and from stored documents lives in ``travel_cache.serialization``.
"""

from .itinerary import (
    Activity,
    Coordinates,
    FreeformItinerary,
    Itinerary,
    ResponseRecord,
    StructuredItinerary,
)
from .query import Preferences, QueryRecord
from .result import CacheResult, CacheStats, MetricPoint, Neighbor

__all__ = [
    "Activity",
    "CacheResult",
    "CacheStats",
    "Coordinates",
    "FreeformItinerary",
    "Itinerary",
    "MetricPoint",
    "Neighbor",
    "Preferences",
    "QueryRecord",
    "ResponseRecord",
    "StructuredItinerary",
]
