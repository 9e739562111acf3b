"""Vector index protocol."""

from typing import Any, Protocol, runtime_checkable

from travel_cache.entities import Neighbor


@runtime_checkable
class VectorIndex(Protocol):
    """Protocol for approximate nearest-neighbor search over query vectors."""

    async def create(self) -> None:
        """Create the index if it does not exist. Idempotent."""
        ...

    async def upsert(self, id: str, vector: list[float], metadata: dict[str, Any]) -> None:
        """Insert or replace a vector with its metadata.

        Args:
            id: The query id
            vector: Fixed-dimension embedding
            metadata: Scalar fields kept for filtered search (location,
                categories, duration, timestamp) plus the rest of the record

        Raises:
            IndexUnavailable: If the backend cannot be reached
        """
        ...

    async def nearest(self, vector: list[float], k: int) -> list[Neighbor]:
        """Find the k closest vectors by cosine distance.

        Returns:
            Neighbors ordered by ascending distance. Empty when the index is
            empty or not created yet.

        Raises:
            IndexUnavailable: If the backend cannot be reached
        """
        ...

    async def older_than(self, timestamp: float, limit: int = 1000) -> list[str]:
        """Return ids of entries created before the given Unix timestamp."""
        ...
