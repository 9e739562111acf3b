"""Repository layer for data access.

Adapters for Redis Stack (RediSearch vector index, RedisJSON documents,
RedisTimeSeries metrics) and for embedding backends. Each one translates its
library's errors into the domain exceptions from ``travel_cache.exceptions``.

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from .local_embedding_provider import LocalEmbeddingProvider
from .openai_embedding_provider import OpenAIEmbeddingProvider
from .redis_connection import RedisConnection
from .redis_document_store import RedisDocumentStore
from .redis_metrics import ListMetricRecorder, TimeSeriesMetricRecorder, create_metric_recorder
from .redis_vector_index import RedisVectorIndex

__all__ = [
    "ListMetricRecorder",
    "LocalEmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "RedisConnection",
    "RedisDocumentStore",
    "RedisVectorIndex",
    "TimeSeriesMetricRecorder",
    "create_metric_recorder",
]
