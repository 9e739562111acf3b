"""Itinerary and response domain entities.

An itinerary is decided once, when the model output is parsed, to be either
structured (day -> ordered activities) or free text. The variant is carried
through storage and retrieval untouched.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Activity:
    """A single stop in a day plan."""

    place: str
    time: str = ""
    type: str = ""
    description: str = ""
    duration: str = ""
    cost: str = ""
    address: str = ""
    coordinates: Coordinates | None = None


@dataclass(frozen=True)
class StructuredItinerary:
    """Itinerary parsed into days, keyed like "day_1", "day_2"."""

    days: dict[str, list[Activity]]
    summary: str = ""
    kind: str = field(default="structured", init=False)


@dataclass(frozen=True)
class FreeformItinerary:
    """Fallback when the generated itinerary could not be parsed."""

    text: str
    summary: str = ""
    kind: str = field(default="freeform", init=False)


Itinerary = StructuredItinerary | FreeformItinerary


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ResponseRecord:
    """Domain entity for a computed itinerary result.

    Attributes:
        response_id: Unique identifier of this result
        query_id: The query that produced it (lookup only, no ownership)
        itinerary: Structured or free-text itinerary
        generated_at: When the itinerary was generated
        cache_hit: Whether this delivery was served from cache. Set per
            delivery and never persisted.
    """

    response_id: str
    query_id: str
    itinerary: Itinerary
    generated_at: datetime = field(default_factory=_utc_now)
    cache_hit: bool = False
