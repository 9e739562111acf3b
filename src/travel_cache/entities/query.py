"""Travel query domain entity."""

import time
import uuid
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Preferences:
    """Hard constraints attached to a travel query.

    Attributes:
        budget: One of a small closed set (e.g. "budget", "mid-range", "luxury"),
            or None meaning "any"
        dietary: Dietary restriction tags (order-insensitive)
        accessibility: Whether accessible venues are required
    """

    budget: str | None = None
    dietary: list[str] = field(default_factory=list)
    accessibility: bool = False

    @property
    def budget_or_any(self) -> str:
        """Budget with the implicit "any" default applied."""
        return self.budget or "any"


@dataclass(frozen=True)
class QueryRecord:
    """Domain entity for one travel-planning request considered for caching.

    Attributes:
        location: Free-text destination
        categories: Category tags such as "attractions" or "dining"
        duration: Trip length in days, matched exactly
        preferences: Budget, dietary and accessibility constraints
        query_id: Opaque unique identifier, assigned at creation
        embedding: Vector of the canonical query string, None until computed
        timestamp: Creation time (Unix timestamp)
    """

    location: str
    categories: list[str]
    duration: int
    preferences: Preferences = field(default_factory=Preferences)
    query_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    embedding: list[float] | None = None
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        if isinstance(self.duration, bool) or not isinstance(self.duration, int):
            raise TypeError(f"duration must be an int, got {type(self.duration).__name__}")
        if self.duration < 1:
            raise ValueError(f"duration must be a positive number of days, got {self.duration}")
