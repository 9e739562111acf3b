"""Local sentence-transformers embedding provider.

Runs a sentence-transformers model in-process, no API calls required.
Useful for development and offline tests of the full stack. The vector
index must be created with this provider's dimension, so switching between
providers requires clearing the cache.
"""

import asyncio
import logging
import time

import numpy as np
from sentence_transformers import SentenceTransformer

from travel_cache.exceptions import ProviderError

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_MODEL = "all-MiniLM-L6-v2"


class LocalEmbeddingProvider:
    """Local sentence-transformers implementation of EmbeddingProvider.

    This class satisfies the EmbeddingProvider protocol through structural
    typing - no explicit inheritance needed.

    Encoding is CPU-bound, so it runs in a worker thread to keep the event
    loop free.
    """

    def __init__(self, model_name: str | None = None) -> None:
        """Initialize the local embedding provider.

        Args:
            model_name: Name of the sentence-transformers model.
                       Defaults to all-MiniLM-L6-v2.
        """
        self._model_name = model_name or DEFAULT_LOCAL_MODEL
        self._model: SentenceTransformer | None = None
        self._dimension: int | None = None

    @classmethod
    def create(cls, model_name: str | None = None) -> "LocalEmbeddingProvider":
        """Factory method to create LocalEmbeddingProvider with defaults."""
        return cls(model_name=model_name)

    @property
    def model(self) -> SentenceTransformer:
        """Lazy-load the embedding model."""
        if self._model is None:
            logger.info("Loading embedding model: %s", self._model_name)
            start_time = time.time()
            self._model = SentenceTransformer(self._model_name)
            logger.info("Model loaded in %.2fs", time.time() - start_time)
        return self._model

    @property
    def dimension(self) -> int:
        """Get the embedding vector dimension."""
        if self._dimension is None:
            self._dimension = int(self.model.get_sentence_embedding_dimension())
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._model_name

    def _encode_sync(self, text: str) -> list[float]:
        embedding = self.model.encode(
            text,
            show_progress_bar=False,
            normalize_embeddings=True,
        )
        vector = np.asarray(embedding, dtype=np.float32)
        if vector.ndim > 1:
            vector = vector[0]
        return vector.tolist()

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Raises:
            ProviderError: If the model cannot be loaded or encoding fails
        """
        try:
            return await asyncio.to_thread(self._encode_sync, text)
        except (OSError, RuntimeError, ValueError) as e:
            raise ProviderError(f"Local embedding with {self._model_name} failed: {e}") from e

    async def is_available(self) -> bool:
        """Check if the model can be loaded."""
        try:
            await asyncio.to_thread(lambda: self.model)
            return True
        except (OSError, RuntimeError, ValueError) as e:
            logger.warning("Local embedding model unavailable: %s", e)
            return False

    async def close(self) -> None:
        self._model = None
