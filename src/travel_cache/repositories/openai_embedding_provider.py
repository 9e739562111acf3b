"""OpenAI-compatible embedding provider.

Calls the ``/embeddings`` endpoint of the OpenAI API, or of any server that
speaks the same protocol (Azure OpenAI proxies, vLLM, Ollama's ``/v1``).

Default model: text-embedding-ada-002 (1536 dimensions)
"""

import logging

import httpx

from travel_cache.config import settings
from travel_cache.exceptions import ProviderError

logger = logging.getLogger(__name__)


class OpenAIEmbeddingProvider:
    """OpenAI-compatible implementation of EmbeddingProvider protocol.

    This class satisfies the EmbeddingProvider protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        provider = OpenAIEmbeddingProvider.create()
        embedding = await provider.encode("destination: paris, france ...")
        print(len(embedding))  # 1536
        ```
    """

    def __init__(
        self,
        model_name: str | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
        dimension: int | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            model_name: Embedding model. Defaults to settings.embedding_model.
            api_key: Bearer token. Defaults to settings.openai_api_key.
            base_url: API root, e.g. "https://api.openai.com/v1".
                Defaults to settings.openai_base_url.
            dimension: Expected vector length. Defaults to settings.embedding_dimension.
            timeout: Request timeout in seconds. Defaults to settings.embedding_timeout.
            client: Pre-built httpx client (mainly for tests). Created lazily if None.
        """
        self._model_name = model_name or settings.embedding_model
        self._api_key = api_key or settings.openai_api_key
        self._base_url = (base_url or settings.openai_base_url).rstrip("/")
        self._dimension = dimension or settings.embedding_dimension
        self._timeout = timeout or settings.embedding_timeout
        self._client = client

    @classmethod
    def create(
        cls,
        model_name: str | None = None,
        base_url: str | None = None,
    ) -> "OpenAIEmbeddingProvider":
        """Factory method to create OpenAIEmbeddingProvider with defaults.

        Args:
            model_name: Model name. If None, uses settings.
            base_url: API root URL. If None, uses settings.

        Returns:
            Configured OpenAIEmbeddingProvider
        """
        return cls(model_name=model_name, base_url=base_url)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._model_name

    def _headers(self) -> dict[str, str]:
        if not self._api_key:
            return {}
        return {"Authorization": f"Bearer {self._api_key}"}

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Args:
            text: The text to encode

        Returns:
            The embedding vector as a list of floats

        Raises:
            ProviderError: On timeout, HTTP error, malformed payload or a
                vector of the wrong length
        """
        url = f"{self._base_url}/embeddings"
        payload = {"model": self._model_name, "input": text}

        try:
            response = await self.client.post(url, json=payload, headers=self._headers())
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise ProviderError(f"Embedding request timed out after {self._timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                f"Embedding API returned {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Embedding API error: {e}") from e
        except ValueError as e:
            raise ProviderError(f"Embedding API returned invalid JSON: {e}") from e

        try:
            embedding = data["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(f"Unexpected embedding response format: {str(data)[:200]}") from e

        if len(embedding) != self._dimension:
            raise ProviderError(
                f"Model {self._model_name} returned {len(embedding)} dimensions, "
                f"expected {self._dimension}"
            )
        return [float(x) for x in embedding]

    async def is_available(self) -> bool:
        """Check if the embedding API answers.

        Returns:
            True if a test embedding succeeds, False otherwise
        """
        try:
            await self.encode("test")
            return True
        except ProviderError as e:
            logger.warning("Embedding provider unavailable: %s", e)
            return False

    async def close(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None
