"""Pytest configuration and in-memory fakes for travel cache tests."""

import hashlib
import random
from datetime import datetime, timezone

import numpy as np
import pytest

from travel_cache.entities import (
    Activity,
    MetricPoint,
    Neighbor,
    Preferences,
    QueryRecord,
    ResponseRecord,
    StructuredItinerary,
)
from travel_cache.exceptions import (
    IndexUnavailable,
    MetricBackendUnavailable,
    ProviderError,
    StoreUnavailable,
)
from travel_cache.services import CacheService

DIMENSION = 64


@pytest.fixture
def anyio_backend():
    """Configure anyio to use asyncio backend."""
    return "asyncio"


class FakeClock:
    """Controllable replacement for time.time."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeEmbeddingProvider:
    """Deterministic embeddings: the same text always maps to the same vector.

    Unrelated texts map to pseudo-random vectors, which are nearly orthogonal
    at this dimension. ``constant`` makes every text map to one vector.
    """

    def __init__(self, dimension: int = DIMENSION, constant: list[float] | None = None) -> None:
        self._dimension = dimension
        self._constant = constant
        self.fail = False
        self.calls: list[str] = []

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return "fake-embedding"

    async def encode(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail:
            raise ProviderError("embedding service timed out")
        if self._constant is not None:
            return list(self._constant)
        seed = int(hashlib.sha256(text.encode()).hexdigest()[:16], 16)
        rng = random.Random(seed)
        return [rng.gauss(0.0, 1.0) for _ in range(self._dimension)]

    async def is_available(self) -> bool:
        return not self.fail

    async def close(self) -> None:
        pass


class InMemoryCacheStore:
    """VectorIndex and DocumentStore over a dict, with expiry driven by a clock."""

    def __init__(self, clock: FakeClock) -> None:
        self._clock = clock
        self._data: dict[str, dict] = {}
        self._expires: dict[str, float] = {}
        self.index_down = False
        self.store_down = False

    def _alive(self, key: str) -> bool:
        expires = self._expires.get(key)
        if expires is not None and expires <= self._clock():
            self._data.pop(key, None)
            self._expires.pop(key, None)
        return key in self._data

    def keys(self) -> list[str]:
        return [key for key in list(self._data) if self._alive(key)]

    # VectorIndex

    async def create(self) -> None:
        pass

    async def upsert(self, id: str, vector: list[float], metadata: dict) -> None:
        if self.index_down:
            raise IndexUnavailable("connection refused")
        self._data[f"query:{id}"] = {**metadata, "embedding": list(vector)}
        self._expires.pop(f"query:{id}", None)

    async def nearest(self, vector: list[float], k: int) -> list[Neighbor]:
        if self.index_down:
            raise IndexUnavailable("connection refused")
        target = np.asarray(vector, dtype=float)
        neighbors = []
        for key in self.keys():
            document = self._data[key]
            if not key.startswith("query:") or "embedding" not in document:
                continue
            stored = np.asarray(document["embedding"], dtype=float)
            cosine = float(target @ stored / (np.linalg.norm(target) * np.linalg.norm(stored)))
            neighbors.append(Neighbor(id=key.split(":", 1)[1], distance=1.0 - cosine))
        neighbors.sort(key=lambda n: n.distance)
        return neighbors[:k]

    async def older_than(self, timestamp: float, limit: int = 1000) -> list[str]:
        if self.index_down:
            raise IndexUnavailable("connection refused")
        ids = [
            key.split(":", 1)[1]
            for key in self.keys()
            if key.startswith("query:") and self._data[key].get("timestamp", 0) <= timestamp
        ]
        return ids[:limit]

    # DocumentStore

    async def put(self, collection: str, id: str, record: dict, ttl: int | None = None) -> None:
        if self.store_down:
            raise StoreUnavailable("connection refused")
        key = f"{collection}:{id}"
        self._data[key] = dict(record)
        if ttl:
            self._expires[key] = self._clock() + ttl

    async def get(self, collection: str, id: str) -> dict | None:
        if self.store_down:
            raise StoreUnavailable("connection refused")
        key = f"{collection}:{id}"
        return dict(self._data[key]) if self._alive(key) else None

    async def expire(self, collection: str, id: str, ttl: int) -> bool:
        if self.store_down:
            raise StoreUnavailable("connection refused")
        key = f"{collection}:{id}"
        if not self._alive(key):
            return False
        self._expires[key] = self._clock() + ttl
        return True

    async def delete(self, collection: str, id: str) -> bool:
        if self.store_down:
            raise StoreUnavailable("connection refused")
        key = f"{collection}:{id}"
        self._expires.pop(key, None)
        return self._data.pop(key, None) is not None

    async def delete_all(self, prefix: str) -> int:
        if self.store_down:
            raise StoreUnavailable("connection refused")
        doomed = [key for key in self.keys() if key.startswith(prefix)]
        for key in doomed:
            self._data.pop(key, None)
            self._expires.pop(key, None)
        return len(doomed)


class StubVectorIndex:
    """VectorIndex that answers every search with preset neighbors."""

    def __init__(self, neighbors: list[Neighbor] | None = None) -> None:
        self.neighbors = neighbors or []
        self.searches = 0

    async def create(self) -> None:
        pass

    async def upsert(self, id: str, vector: list[float], metadata: dict) -> None:
        pass

    async def nearest(self, vector: list[float], k: int) -> list[Neighbor]:
        self.searches += 1
        return self.neighbors[:k]

    async def older_than(self, timestamp: float, limit: int = 1000) -> list[str]:
        return []


class InMemoryMetricRecorder:
    def __init__(self) -> None:
        self.points: dict[str, list[MetricPoint]] = {}
        self.fail = False

    async def record(
        self, series: str, timestamp: int, value: float, labels: dict[str, str] | None = None
    ) -> None:
        if self.fail:
            raise MetricBackendUnavailable("TS.ADD failed")
        self.points.setdefault(series, []).append(MetricPoint(timestamp, value, dict(labels or {})))

    async def query(self, series: str, from_ts: int, to_ts: int) -> list[MetricPoint]:
        if self.fail:
            raise MetricBackendUnavailable("TS.RANGE failed")
        return [p for p in self.points.get(series, []) if from_ts <= p.timestamp <= to_ts]


def make_query(**overrides) -> QueryRecord:
    """Build a Paris query, overriding any field."""
    fields = {
        "location": "Paris, France",
        "categories": ["attractions", "dining"],
        "duration": 3,
        "preferences": Preferences(budget="mid-range"),
    }
    fields.update(overrides)
    return QueryRecord(**fields)


def make_response(query: QueryRecord, summary: str = "Three days in Paris") -> ResponseRecord:
    return ResponseRecord(
        response_id=f"resp-{query.query_id}",
        query_id=query.query_id,
        itinerary=StructuredItinerary(
            days={
                "day_1": [
                    Activity(place="Louvre Museum", time="09:00", type="attraction"),
                    Activity(place="Le Comptoir", time="13:00", type="restaurant", cost="$$"),
                ],
                "day_2": [Activity(place="Eiffel Tower", time="10:00", type="attraction")],
            },
            summary=summary,
        ),
        generated_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def embeddings() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def store(clock) -> InMemoryCacheStore:
    return InMemoryCacheStore(clock)


@pytest.fixture
def metrics() -> InMemoryMetricRecorder:
    return InMemoryMetricRecorder()


@pytest.fixture
def cache(store, embeddings, metrics, clock) -> CacheService:
    """CacheService wired to in-memory fakes with the default policy."""
    return CacheService(
        vector_index=store,
        documents=store,
        embedding_provider=embeddings,
        metrics=metrics,
        similarity_threshold=0.95,
        ttl=3600,
        category_overlap=0.6,
        neighbors=10,
        clock=clock,
    )
