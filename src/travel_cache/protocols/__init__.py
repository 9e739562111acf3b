"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (RedisTimeSeries -> list fallback, OpenAI -> local, etc.)
- Unit testing with in-memory fakes
- Clear separation of concerns

Usage:
    ```python
    from travel_cache.protocols import DocumentStore, VectorIndex

    index: VectorIndex = RedisVectorIndex(client, dimension=1536)
    documents: DocumentStore = RedisDocumentStore(client)
    ```
"""

from .document_store import DocumentStore
from .embedding_provider import EmbeddingProvider
from .metric_recorder import MetricRecorder
from .vector_index import VectorIndex

__all__ = [
    "DocumentStore",
    "EmbeddingProvider",
    "MetricRecorder",
    "VectorIndex",
]
