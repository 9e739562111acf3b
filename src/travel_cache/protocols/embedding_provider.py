"""Embedding provider protocol.

Defines the interface for any embedding generation service that can
convert a canonical query string to a vector embedding.

Implementations can include:
- OpenAI-compatible embeddings API (default, 1536 dimensions)
- sentence-transformers (local)
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol for embedding generation services.

    Any type that implements these methods satisfies the protocol,
    no explicit inheritance needed.
    """

    @property
    def dimension(self) -> int:
        """Return the dimension of the embedding vectors.

        Returns:
            The vector dimension (e.g., 1536 for text-embedding-ada-002)
        """
        ...

    @property
    def model_name(self) -> str:
        """Return the name/identifier of the model."""
        ...

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Args:
            text: The text to encode

        Returns:
            The embedding vector as a list of floats

        Raises:
            ProviderError: If the embedding could not be generated
        """
        ...

    async def is_available(self) -> bool:
        """Check if the embedding provider is available."""
        ...

    async def close(self) -> None:
        """Release any resources held by the provider."""
        ...
