"""Hard-constraint validation between a new query and a cached one.

Embedding similarity cannot tell a 3-day trip from a 4-day one, or a vegan
plan from an unrestricted one. Every candidate that clears the similarity
threshold must also pass ``is_compatible`` before its response is served.
"""

import logging

from travel_cache.config import settings
from travel_cache.entities import QueryRecord
from travel_cache.services.canonical import normalize_tags, normalize_text

logger = logging.getLogger(__name__)


def category_overlap(a: list[str], b: list[str]) -> float | None:
    """Jaccard overlap of two category lists.

    Returns:
        intersection / union, or None when either side is empty
    """
    set_a = set(normalize_tags(a))
    set_b = set(normalize_tags(b))
    if not set_a or not set_b:
        return None
    return len(set_a & set_b) / len(set_a | set_b)


def is_compatible(
    query: QueryRecord,
    cached: QueryRecord,
    min_category_overlap: float | None = None,
) -> bool:
    """Check whether a cached query's result can serve a new query.

    Rules:
    - duration, budget ("any" when absent), dietary set and accessibility
      must match exactly
    - categories must overlap by at least ``min_category_overlap`` (Jaccard)
      when both queries name categories. If either side has none, the check
      is skipped and the similarity threshold alone decides.

    Args:
        query: The incoming query
        cached: The stored query of the best vector match
        min_category_overlap: Jaccard floor. Defaults to settings.

    Returns:
        True if every hard constraint is satisfied
    """
    if min_category_overlap is None:
        min_category_overlap = settings.cache_category_overlap

    if query.duration != cached.duration:
        logger.info("Rejected %s: duration %d != %d", cached.query_id, query.duration, cached.duration)
        return False

    budget = normalize_text(query.preferences.budget_or_any)
    cached_budget = normalize_text(cached.preferences.budget_or_any)
    if budget != cached_budget:
        logger.info("Rejected %s: budget %s != %s", cached.query_id, budget, cached_budget)
        return False

    # Omitting or adding a restriction are both unsafe, so the sets must be equal
    if set(normalize_tags(query.preferences.dietary)) != set(
        normalize_tags(cached.preferences.dietary)
    ):
        logger.info("Rejected %s: dietary restrictions differ", cached.query_id)
        return False

    if query.preferences.accessibility != cached.preferences.accessibility:
        logger.info("Rejected %s: accessibility differs", cached.query_id)
        return False

    overlap = category_overlap(query.categories, cached.categories)
    if overlap is not None and overlap < min_category_overlap:
        logger.info(
            "Rejected %s: category overlap %.2f < %.2f",
            cached.query_id,
            overlap,
            min_category_overlap,
        )
        return False

    return True
