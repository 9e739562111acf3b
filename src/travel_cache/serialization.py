"""Conversion between domain entities and stored JSON documents.

Query documents live under ``query:{query_id}`` and double as the vector
index's source documents, so their top-level ``location``, ``categories``,
``duration``, ``timestamp`` and ``embedding`` fields must keep the names the
index schema expects. Response documents live under ``response:{query_id}``.
"""

import json
import logging
from datetime import datetime
from typing import Any

from travel_cache.entities import (
    Activity,
    Coordinates,
    FreeformItinerary,
    Itinerary,
    Preferences,
    QueryRecord,
    ResponseRecord,
    StructuredItinerary,
)

logger = logging.getLogger(__name__)

FREEFORM_SUMMARY = "Generated itinerary (text format)"


def query_to_document(query: QueryRecord) -> dict[str, Any]:
    """Serialize a query record, embedding included when present."""
    document: dict[str, Any] = {
        "query_id": query.query_id,
        "location": query.location,
        "categories": list(query.categories),
        "duration": query.duration,
        "preferences": {
            "budget": query.preferences.budget,
            "dietary": list(query.preferences.dietary),
            "accessibility": query.preferences.accessibility,
        },
        "timestamp": query.timestamp,
    }
    if query.embedding is not None:
        document["embedding"] = list(query.embedding)
    return document


def query_from_document(document: dict[str, Any]) -> QueryRecord:
    """Rebuild a query record from its stored document."""
    prefs = document.get("preferences") or {}
    return QueryRecord(
        query_id=document["query_id"],
        location=document["location"],
        categories=list(document.get("categories") or []),
        duration=int(document["duration"]),
        preferences=Preferences(
            budget=prefs.get("budget"),
            dietary=list(prefs.get("dietary") or []),
            accessibility=bool(prefs.get("accessibility", False)),
        ),
        embedding=document.get("embedding"),
        timestamp=float(document.get("timestamp", 0.0)),
    )


def _activity_to_dict(activity: Activity) -> dict[str, Any]:
    data: dict[str, Any] = {
        "time": activity.time,
        "place": activity.place,
        "type": activity.type,
        "description": activity.description,
        "duration": activity.duration,
        "cost": activity.cost,
        "address": activity.address,
    }
    if activity.coordinates is not None:
        data["coordinates"] = {
            "latitude": activity.coordinates.latitude,
            "longitude": activity.coordinates.longitude,
        }
    return data


def _activity_from_dict(data: dict[str, Any]) -> Activity:
    coordinates = None
    coords = data.get("coordinates")
    if isinstance(coords, dict) and "latitude" in coords and "longitude" in coords:
        coordinates = Coordinates(
            latitude=float(coords["latitude"]),
            longitude=float(coords["longitude"]),
        )
    return Activity(
        place=str(data.get("place", "")),
        time=str(data.get("time", "")),
        type=str(data.get("type", "")),
        description=str(data.get("description", "")),
        duration=str(data.get("duration", "")),
        cost=str(data.get("cost", "")),
        address=str(data.get("address", "")),
        coordinates=coordinates,
    )


def itinerary_to_dict(itinerary: Itinerary) -> dict[str, Any]:
    """Serialize an itinerary with its variant tag."""
    if isinstance(itinerary, StructuredItinerary):
        return {
            "kind": itinerary.kind,
            "days": {
                day: [_activity_to_dict(a) for a in activities]
                for day, activities in itinerary.days.items()
            },
            "summary": itinerary.summary,
        }
    return {"kind": itinerary.kind, "text": itinerary.text, "summary": itinerary.summary}


def itinerary_from_dict(data: dict[str, Any]) -> Itinerary:
    """Rebuild an itinerary from its tagged dictionary form."""
    if data.get("kind") == "structured":
        return StructuredItinerary(
            days={
                day: [_activity_from_dict(a) for a in activities]
                for day, activities in (data.get("days") or {}).items()
            },
            summary=data.get("summary", ""),
        )
    return FreeformItinerary(text=data.get("text", ""), summary=data.get("summary", ""))


def response_to_document(response: ResponseRecord) -> dict[str, Any]:
    """Serialize a response record. ``cache_hit`` is per delivery and not stored."""
    return {
        "response_id": response.response_id,
        "query_id": response.query_id,
        "generated_at": response.generated_at.isoformat(),
        "itinerary": itinerary_to_dict(response.itinerary),
    }


def response_from_document(document: dict[str, Any]) -> ResponseRecord:
    """Rebuild a response record from its stored document."""
    return ResponseRecord(
        response_id=document["response_id"],
        query_id=document["query_id"],
        itinerary=itinerary_from_dict(document.get("itinerary") or {}),
        generated_at=datetime.fromisoformat(document["generated_at"]),
    )


def parse_itinerary(content: str, fallback_summary: str = FREEFORM_SUMMARY) -> Itinerary:
    """Decide the itinerary variant for raw generated content.

    Content that parses as JSON with an ``itinerary`` object of
    ``day_N -> [activity, ...]`` becomes a StructuredItinerary. Anything else
    is kept verbatim as a FreeformItinerary.

    Args:
        content: Raw text returned by the itinerary generator
        fallback_summary: Summary used for the free-text variant

    Returns:
        The parsed itinerary
    """
    try:
        payload = json.loads(content)
    except json.JSONDecodeError:
        logger.warning("Itinerary is not valid JSON, keeping it as text")
        return FreeformItinerary(text=content, summary=fallback_summary)

    days = payload.get("itinerary") if isinstance(payload, dict) else None
    if not isinstance(days, dict) or not all(isinstance(v, list) for v in days.values()):
        logger.warning("Itinerary JSON has no day plan, keeping it as text")
        return FreeformItinerary(text=content, summary=fallback_summary)

    return StructuredItinerary(
        days={
            day: [_activity_from_dict(a) for a in activities if isinstance(a, dict)]
            for day, activities in days.items()
        },
        summary=str(payload.get("summary", "")),
    )
