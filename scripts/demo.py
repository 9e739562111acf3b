#!/usr/bin/env python3
"""
Demo script for the travel itinerary cache.

This script preloads a few popular destinations, then looks up variations of
them to show which requests are served from cache and which are rejected by
the compatibility rules. Requires Redis Stack and an embedding backend
configured through the usual environment variables.
"""

import asyncio
import uuid

from travel_cache.api.dependencies import create_embedding_provider
from travel_cache.entities import Activity, Preferences, QueryRecord, ResponseRecord, StructuredItinerary
from travel_cache.logging_config import configure_logging
from travel_cache.repositories import (
    RedisConnection,
    RedisDocumentStore,
    RedisVectorIndex,
    create_metric_recorder,
)
from travel_cache.services import CacheService

POPULAR_DESTINATIONS = [
    QueryRecord(
        location="Paris, France",
        categories=["attractions", "dining"],
        duration=3,
        preferences=Preferences(budget="mid-range"),
    ),
    QueryRecord(
        location="Tokyo, Japan",
        categories=["dining", "activities"],
        duration=5,
        preferences=Preferences(budget="mid-range"),
    ),
    QueryRecord(
        location="New York, USA",
        categories=["attractions", "activities"],
        duration=4,
        preferences=Preferences(budget="mid-range"),
    ),
]


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def sample_response(query: QueryRecord) -> ResponseRecord:
    """A placeholder itinerary standing in for generated content."""
    days = {
        f"day_{day}": [Activity(place=f"{query.location} highlight {day}", time="10:00")]
        for day in range(1, query.duration + 1)
    }
    return ResponseRecord(
        response_id=str(uuid.uuid4()),
        query_id=query.query_id,
        itinerary=StructuredItinerary(days=days, summary=f"{query.duration} days in {query.location}"),
    )


async def demo_warm(cache: CacheService) -> None:
    print_section("Preloading Popular Destinations")

    count = await cache.warm([(query, sample_response(query)) for query in POPULAR_DESTINATIONS])
    print(f"\n📝 Stored {count} of {len(POPULAR_DESTINATIONS)} destinations")


async def demo_lookups(cache: CacheService) -> None:
    print_section("Cache Lookups")

    queries = [
        # Same request, different category order and casing
        QueryRecord(
            location="paris, france",
            categories=["Dining", "attractions"],
            duration=3,
            preferences=Preferences(budget="mid-range"),
        ),
        # Different duration must never be served from cache
        QueryRecord(
            location="Paris, France",
            categories=["attractions", "dining"],
            duration=4,
            preferences=Preferences(budget="mid-range"),
        ),
        # Dietary restriction added
        QueryRecord(
            location="Tokyo, Japan",
            categories=["dining", "activities"],
            duration=5,
            preferences=Preferences(budget="mid-range", dietary=["vegan"]),
        ),
        QueryRecord(location="Reykjavik, Iceland", categories=["nature"], duration=2),
    ]

    for query in queries:
        result = await cache.lookup(query)
        print(f"\n  Query: {query.location}, {query.duration} days, {query.categories}")
        if result.cache_hit:
            print(f"  ✓ HIT - Similarity: {result.similarity:.4f} ({result.search_time_ms:.1f}ms)")
        else:
            print(f"  ✗ MISS ({result.search_time_ms:.1f}ms)")
        if result.error:
            print(f"  ⚠️  {result.error}")


async def demo_stats(cache: CacheService) -> None:
    print_section("Statistics")

    await cache.flush_metrics()
    stats = await cache.stats()
    for name, value in stats.to_dict().items():
        print(f"  {name:<16} {value}")


async def main() -> None:
    """Run all demos."""
    configure_logging("WARNING")

    print("\n🚀 Travel Cache Demo")
    print("=" * 70)

    connection = RedisConnection.create()
    client = await connection.open()
    if not await connection.ping():
        print("\n❌ Redis is not reachable. Make sure Redis Stack is running.")
        await connection.close()
        return

    embedding_provider = create_embedding_provider()
    vector_index = RedisVectorIndex(client, dimension=embedding_provider.dimension)
    await vector_index.create()

    cache = CacheService.create(
        vector_index=vector_index,
        documents=RedisDocumentStore(client),
        embedding_provider=embedding_provider,
        metrics=await create_metric_recorder(client),
    )

    try:
        await demo_warm(cache)
        await demo_lookups(cache)
        await demo_stats(cache)
        print("\n✅ Demo completed!")
    finally:
        await cache.flush_metrics()
        await embedding_provider.close()
        await connection.close()


if __name__ == "__main__":
    asyncio.run(main())
