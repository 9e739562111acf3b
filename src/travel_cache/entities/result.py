"""Cache decision, statistics and metric point entities."""

from dataclasses import dataclass, field

from .itinerary import ResponseRecord


@dataclass(frozen=True)
class Neighbor:
    """A nearest-neighbor hit from the vector index.

    Attributes:
        id: The query id (without key prefix)
        distance: Cosine distance (0 = identical, 2 = opposite)
    """

    id: str
    distance: float

    @property
    def similarity(self) -> float:
        """Cosine similarity (1 - distance), clamped to [0, 1].

        Float32 distances for identical vectors can come back slightly
        negative.
        """
        return min(1.0, max(0.0, 1.0 - self.distance))


@dataclass(frozen=True)
class CacheResult:
    """Outcome of a cache lookup.

    Attributes:
        cache_hit: Whether a compatible stored response was found
        search_time_ms: Time spent deciding, in milliseconds
        response: The stored response on a hit
        similarity: Cosine similarity of the matched query on a hit
        error: Diagnostic text when the miss was caused by a failure
    """

    cache_hit: bool
    search_time_ms: float
    response: ResponseRecord | None = None
    similarity: float | None = None
    error: str | None = None

    @classmethod
    def miss(cls, search_time_ms: float, error: str | None = None) -> "CacheResult":
        return cls(cache_hit=False, search_time_ms=search_time_ms, error=error)


@dataclass(frozen=True)
class CacheStats:
    """Hit/miss/store counters over a trailing window."""

    hits: int = 0
    misses: int = 0
    stores: int = 0

    @property
    def total_requests(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Hit rate as a percentage rounded to two decimals."""
        if self.total_requests == 0:
            return 0.0
        return round(self.hits / self.total_requests * 100, 2)

    def to_dict(self) -> dict[str, float | int]:
        """Convert to dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "stores": self.stores,
            "hit_rate": self.hit_rate,
            "total_requests": self.total_requests,
        }


@dataclass(frozen=True)
class MetricPoint:
    """One recorded sample of a metric series."""

    timestamp: int  # milliseconds since epoch
    value: float
    labels: dict[str, str] = field(default_factory=dict)
