from collections.abc import Callable
from typing import TypeVar

from vidfed.constants import TIER_PRIORITY
from vidfed.models import ConfidenceTier, Hit

T = TypeVar("T")


def tier_priority(tier: ConfidenceTier) -> int:
    return TIER_PRIORITY.get(tier.value, 0)


def sort_by_tier(
    items: list[T],
    tier: Callable[[T], ConfidenceTier],
    score: Callable[[T], float | None],
) -> list[T]:
    """Stable sort: tier priority desc, then score desc (missing score counts as 0).

    Items with equal tier and score keep their input order.
    """
    return sorted(items, key=lambda item: (-tier_priority(tier(item)), -(score(item) or 0.0)))


def rank(hits: list[Hit]) -> list[Hit]:
    return sort_by_tier(hits, tier=lambda h: h.confidence, score=lambda h: h.score)
