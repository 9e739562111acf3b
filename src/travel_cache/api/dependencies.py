"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from travel_cache.config import settings
from travel_cache.exceptions import IndexUnavailable
from travel_cache.handlers import CacheHandler
from travel_cache.logging_config import configure_logging
from travel_cache.protocols import EmbeddingProvider
from travel_cache.repositories import (
    LocalEmbeddingProvider,
    OpenAIEmbeddingProvider,
    RedisConnection,
    RedisDocumentStore,
    RedisVectorIndex,
    create_metric_recorder,
)
from travel_cache.services import CacheService, run_periodic_cleanup

logger = logging.getLogger(__name__)


def get_handler(request: Request) -> CacheHandler:
    """Dependency injection for CacheHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The CacheHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "cache_handler", None)
    if handler is None:
        raise RuntimeError("CacheHandler not initialized. Check lifespan setup.")
    return handler


def create_embedding_provider() -> EmbeddingProvider:
    """Build the provider named by EMBEDDING_PROVIDER.

    Any OpenAI-compatible server works for "openai", e.g.
    OPENAI_BASE_URL=http://localhost:11434/v1 for Ollama. When switching
    models or dimensions, clear the cache first.
    """
    if settings.embedding_provider == "local":
        return LocalEmbeddingProvider.create()
    return OpenAIEmbeddingProvider.create()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores in app.state:
    1. Redis connection, shared by the index, documents and metrics
    2. Service (business logic) - stored in app.state.cache_service
    3. Handler (HTTP endpoints) - stored in app.state.cache_handler
    4. Periodic expiry sweep, unless CLEANUP_INTERVAL is 0

    Args:
        app: The FastAPI application instance

    Yields:
        None

    Cleanup:
        Stops the sweep, flushes pending metrics, closes clients and
        removes all services from app.state
    """
    configure_logging()

    connection = RedisConnection.create()
    client = await connection.open()
    if not await connection.ping():
        logger.warning("Redis is not reachable at %s, lookups will miss until it is", settings.redis_url)

    embedding_provider = create_embedding_provider()

    vector_index = RedisVectorIndex(client, dimension=embedding_provider.dimension)
    try:
        await vector_index.create()
    except IndexUnavailable as e:
        logger.warning("Vector index unavailable, retrying on first use: %s", e)

    cache_service = CacheService.create(
        vector_index=vector_index,
        documents=RedisDocumentStore(client),
        embedding_provider=embedding_provider,
        metrics=await create_metric_recorder(client),
    )
    cache_handler = CacheHandler(cache_service=cache_service)

    cleanup_task = None
    if settings.cleanup_interval > 0:
        cleanup_task = asyncio.create_task(
            run_periodic_cleanup(cache_service, settings.cleanup_interval)
        )

    # Store in app.state (FastAPI pattern)
    app.state.cache_service = cache_service
    app.state.cache_handler = cache_handler
    app.state.embedding_provider = embedding_provider
    app.state.redis = connection

    logger.info(
        "Cache service initialized (model=%s, threshold=%.2f, ttl=%ds)",
        embedding_provider.model_name,
        cache_service.threshold,
        cache_service.ttl,
    )

    yield

    if cleanup_task is not None:
        cleanup_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await cleanup_task

    await cache_service.flush_metrics()
    await embedding_provider.close()
    await connection.close()

    # Cleanup - remove from app.state
    del app.state.cache_handler
    del app.state.cache_service
    del app.state.embedding_provider
    del app.state.redis
    logger.info("Cache service shut down")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[CacheHandler, Depends(get_handler)]
