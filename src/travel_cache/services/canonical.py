"""Canonical query strings for embedding.

Two logically identical queries must produce the same string regardless of
the order their categories or dietary tags arrived in, or embeddings would
not be comparable.
"""

from travel_cache.entities import QueryRecord


def normalize_text(value: str) -> str:
    """Lower-case and collapse internal whitespace."""
    return " ".join(value.split()).lower()


def normalize_tags(tags: list[str]) -> list[str]:
    """Normalize, de-duplicate and sort a list of tags."""
    return sorted({normalize_text(tag) for tag in tags if tag and tag.strip()})


def trip_type(query: QueryRecord) -> str:
    """Tag combining duration, categories and budget.

    Repeating these fields in one token gives them more weight in the
    embedding than the free-text destination.
    """
    categories = "_".join(normalize_tags(query.categories)) or "general"
    budget = normalize_text(query.preferences.budget_or_any)
    return f"{query.duration}_day_{categories}_{budget}"


def build_query_string(query: QueryRecord) -> str:
    """Build the canonical, lower-cased string embedded for a query.

    Example:
        ```python
        build_query_string(QueryRecord("Paris, France", ["dining", "attractions"], 3))
        # 'destination: paris, france duration: 3 days categories: attractions, dining
        #  dietary: none budget: any accessibility: standard
        #  trip_type: 3_day_attractions_dining_any'
        ```
    """
    categories = normalize_tags(query.categories)
    dietary = normalize_tags(query.preferences.dietary)

    parts = [
        f"destination: {normalize_text(query.location)}",
        f"duration: {query.duration} days",
        f"categories: {', '.join(categories) if categories else 'any'}",
        f"dietary: {', '.join(dietary) if dietary else 'none'}",
        f"budget: {normalize_text(query.preferences.budget_or_any)}",
        f"accessibility: {'required' if query.preferences.accessibility else 'standard'}",
        f"trip_type: {trip_type(query)}",
    ]
    return " ".join(parts).lower()
