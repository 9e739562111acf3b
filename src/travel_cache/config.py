import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Redis
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")
    redis_socket_timeout: float = float(os.getenv("REDIS_SOCKET_TIMEOUT", "5.0"))

    # Cache
    cache_similarity_threshold: float = float(os.getenv("CACHE_SIMILARITY_THRESHOLD", "0.95"))
    cache_ttl: int = int(os.getenv("CACHE_TTL", "3600"))  # 1 hour default
    cache_category_overlap: float = float(os.getenv("CACHE_CATEGORY_OVERLAP", "0.6"))
    cache_neighbors: int = int(os.getenv("CACHE_NEIGHBORS", "10"))
    cache_index_name: str = os.getenv("CACHE_INDEX_NAME", "idx:queries")

    # Stats and housekeeping
    stats_window: int = int(os.getenv("STATS_WINDOW", "3600"))
    cleanup_interval: int = int(os.getenv("CLEANUP_INTERVAL", "600"))  # 0 disables the sweep
    metrics_fallback_max_entries: int = int(os.getenv("METRICS_FALLBACK_MAX_ENTRIES", "1000"))
    metrics_fallback_ttl: int = int(os.getenv("METRICS_FALLBACK_TTL", "3600"))
    metrics_retention: int = int(os.getenv("METRICS_RETENTION", "86400"))  # TimeSeries, seconds

    # Embedding ("openai" for any OpenAI-compatible API, "local" for sentence-transformers)
    embedding_provider: str = os.getenv("EMBEDDING_PROVIDER", "openai")
    embedding_model: str = os.getenv("EMBEDDING_MODEL", "text-embedding-ada-002")
    embedding_dimension: int = int(os.getenv("EMBEDDING_DIMENSION", "1536"))
    embedding_timeout: float = float(os.getenv("EMBEDDING_TIMEOUT", "30.0"))

    # OpenAI-compatible embedding API
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "false").lower() == "true"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if not 0 <= self.cache_similarity_threshold <= 1:
            raise ValueError("CACHE_SIMILARITY_THRESHOLD must be between 0 and 1")

        if not 0 <= self.cache_category_overlap <= 1:
            raise ValueError("CACHE_CATEGORY_OVERLAP must be between 0 and 1")

        if self.cache_ttl <= 0:
            raise ValueError(f"CACHE_TTL must be positive, got {self.cache_ttl}")

        if self.cache_neighbors < 1:
            raise ValueError(f"CACHE_NEIGHBORS must be at least 1, got {self.cache_neighbors}")

        if self.metrics_retention < self.stats_window:
            raise ValueError("METRICS_RETENTION must be at least STATS_WINDOW")

        if self.embedding_provider not in ("openai", "local"):
            raise ValueError(
                f"EMBEDDING_PROVIDER must be 'openai' or 'local', got {self.embedding_provider}"
            )

        if self.embedding_dimension < 1:
            raise ValueError(
                f"EMBEDDING_DIMENSION must be positive, got {self.embedding_dimension}"
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
