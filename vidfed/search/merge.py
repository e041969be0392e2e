from collections.abc import Iterable

from vidfed.models import Hit


def identity_key(hit: Hit) -> tuple[str, float, float]:
    """Dedup key: the same entity over a different time range is a distinct result."""
    return hit.key


def merge_hits(existing: list[Hit], incoming: Iterable[Hit]) -> list[Hit]:
    """Append incoming hits whose identity key is not yet present.

    Existing order is preserved and incoming hits keep their arrival order.
    Duplicates inside `incoming` are collapsed to their first occurrence.
    Returns a new list; `existing` is not modified.
    """
    seen = {identity_key(hit) for hit in existing}
    merged = list(existing)
    for hit in incoming:
        key = identity_key(hit)
        if key in seen:
            continue
        seen.add(key)
        merged.append(hit)
    return merged
