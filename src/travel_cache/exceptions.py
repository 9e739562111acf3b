"""Domain exceptions for the travel semantic cache.

Adapters translate backend errors (``redis.RedisError``, ``httpx.HTTPError``,
redisvl search errors) into these types. ``CacheService`` absorbs every one
of them into a cache miss or a failed store, so callers of ``lookup`` and
``store`` never see them.
"""


class TravelCacheError(Exception):
    """Base class for all cache errors."""


class ProviderError(TravelCacheError):
    """The embedding provider failed or timed out."""


class IndexUnavailable(TravelCacheError):
    """The vector search backend is down or unreachable."""


class RecordNotFound(TravelCacheError):
    """A candidate's query or response document disappeared after a vector match."""

    def __init__(self, collection: str, record_id: str) -> None:
        super().__init__(f"{collection}:{record_id} not found")
        self.collection = collection
        self.record_id = record_id


class StoreUnavailable(TravelCacheError):
    """The document store could not be read or written."""


class MetricBackendUnavailable(TravelCacheError):
    """The metric backend rejected a write or a range query."""
