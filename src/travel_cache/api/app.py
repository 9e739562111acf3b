from typing import Any

from fastapi import FastAPI, Query, Response, status
from fastapi.middleware.cors import CORSMiddleware

from travel_cache.api.dependencies import HandlerDep, lifespan
from travel_cache.config import settings
from travel_cache.dto import (
    CacheCleanupResponse,
    CacheClearResponse,
    CacheLookupResponse,
    CacheStatsResponse,
    CacheStoreResponse,
    CacheWarmResponse,
    HealthCheckResponse,
    QueryRequest,
    StoreCacheRequest,
    WarmCacheRequest,
)

API_NAME = "Travel Cache API"
API_VERSION = "0.1.0"
API_DESCRIPTION = "Semantic caching of travel itineraries using Redis Stack vector search"


def create_app(lifespan_handler=lifespan) -> FastAPI:
    """Build the FastAPI application.

    Args:
        lifespan_handler: Startup/shutdown context manager. Tests pass one
            that wires in-memory fakes.

    Returns:
        The configured application
    """
    app = FastAPI(
        title=API_NAME,
        description=API_DESCRIPTION,
        version=API_VERSION,
        lifespan=lifespan_handler,
    )

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": API_NAME,
            "version": API_VERSION,
            "description": API_DESCRIPTION,
            "endpoints": {
                "lookup": "/cache/lookup",
                "store": "/cache/store",
                "warm": "/cache/warm",
                "stats": "/cache/stats",
                "cleanup": "/cache/cleanup",
                "health": "/health",
                "docs": "/docs",
            },
        }

    @app.get("/health", response_model=HealthCheckResponse)
    async def health(handler: HandlerDep, response: Response) -> HealthCheckResponse:
        """Health check endpoint. Responds 503 when a backend is down."""
        result = await handler.health_check()
        if result.status != "healthy":
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return result

    @app.post("/cache/lookup", response_model=CacheLookupResponse)
    async def lookup(request: QueryRequest, handler: HandlerDep) -> CacheLookupResponse:
        """
        Look for a cached itinerary compatible with the query.

        Always answers 200: backend failures come back as a miss with ``error`` set.
        """
        return await handler.lookup(request)

    @app.post("/cache/store", response_model=CacheStoreResponse)
    async def store(request: StoreCacheRequest, handler: HandlerDep) -> CacheStoreResponse:
        """Store a generated itinerary for its query."""
        return await handler.store(request)

    @app.post("/cache/warm", response_model=CacheWarmResponse)
    async def warm(request: WarmCacheRequest, handler: HandlerDep) -> CacheWarmResponse:
        """Preload itineraries for popular destinations."""
        return await handler.warm(request)

    @app.get("/cache/stats", response_model=CacheStatsResponse)
    async def stats(
        handler: HandlerDep,
        window: int | None = Query(None, gt=0, description="Trailing window in seconds"),
    ) -> CacheStatsResponse:
        """Hit/miss/store counters over a trailing window."""
        return await handler.get_stats(window)

    @app.post("/cache/cleanup", response_model=CacheCleanupResponse)
    async def cleanup(handler: HandlerDep) -> CacheCleanupResponse:
        """Run the expiry sweep now."""
        return await handler.cleanup()

    @app.delete("/cache", response_model=CacheClearResponse)
    async def clear_cache(handler: HandlerDep) -> CacheClearResponse:
        """Clear all entries from the cache."""
        return await handler.clear_cache()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "travel_cache.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
