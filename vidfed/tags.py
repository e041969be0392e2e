import json

from vidfed.constants import TAG_EXCLUDED_KEYS, TAG_LIMIT, TAG_MAX_LENGTH, TAG_UNWANTED_PATTERNS
from vidfed.logging import get_logger

_logger = get_logger(__name__)


def _is_unwanted(tag: str) -> bool:
    lower = tag.lower()
    return any(pattern in lower for pattern in TAG_UNWANTED_PATTERNS)


def _title_case(tag: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in tag.lower().split(" "))


def _brands(user_metadata: dict) -> list[str]:
    raw = user_metadata.get("brand_product_events")
    if not raw:
        return []
    try:
        events = json.loads(raw) if isinstance(raw, str) else raw
    except json.JSONDecodeError:
        _logger.warning("Failed to parse brand_product_events")
        return []
    if not isinstance(events, list):
        return []

    brands: list[str] = []
    for event in events:
        if isinstance(event, dict) and isinstance(event.get("brand"), str):
            brand = event["brand"].strip()
            if brand and brand not in brands:
                brands.append(brand)
    return brands


def _split_string(value: str) -> list[str]:
    if value.startswith("[") and value.endswith("]"):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            pass
        else:
            if isinstance(parsed, list):
                return [item.strip() for item in parsed if isinstance(item, str) and item.strip()]
    elif value.startswith("{") and value.endswith("}"):
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _values(value) -> list[str]:
    if isinstance(value, str):
        return _split_string(value)
    if isinstance(value, bool | int | float):
        return [str(value)]
    if isinstance(value, list):
        return [item.strip() if isinstance(item, str) else str(item) for item in value if item is not None]
    return []


def extract_tags(user_metadata: dict | None, limit: int = TAG_LIMIT) -> list[str]:
    """Display tags for a video: brands first, then the remaining metadata values."""
    if not user_metadata:
        return []

    tags: list[str] = []
    for key, value in user_metadata.items():
        if key in TAG_EXCLUDED_KEYS or value is None:
            continue
        for tag in _values(value):
            tag = tag.strip()
            if not tag or len(tag) > TAG_MAX_LENGTH or _is_unwanted(tag):
                continue
            tags.append(_title_case(tag))
    tags = tags[:limit]

    brands = [b for b in _brands(user_metadata) if not _is_unwanted(b)]
    return (brands + tags)[:limit]
