# --- Partitions ---

BRAND_PARTITION = "brand"
CREATOR_PARTITION = "creator"
ALL_PARTITIONS = "all"


# --- Pagination ---

DEFAULT_PAGE_LIMIT = 24
MAX_PAGE_LIMIT = 100
DEFAULT_GALLERY_LIMIT = 12


# --- Timeouts / concurrency ---

DEFAULT_REQUEST_TIMEOUT = 30.0  # seconds per partition call
DETAIL_CONCURRENCY = 8
READINESS_CONCURRENCY = 4
READINESS_CANDIDATE_LIMIT = 20  # target videos prepared before cross-modal matching


# --- Confidence tiers ---

# Sort priority, higher first
TIER_PRIORITY: dict[str, int] = {
    "high": 3,
    "medium": 2,
    "low": 1,
    "unknown": 0,
}

# Cross-modal: entities returned by both text and video similarity get a 15% boost
BOTH_SOURCES_BOOST = 1.15
MATCH_HIGH_THRESHOLD = 1.0
MATCH_MEDIUM_THRESHOLD = 0.5


# --- Tags ---

TAG_LIMIT = 10
TAG_MAX_LENGTH = 50
TAG_EXCLUDED_KEYS = frozenset(
    {
        "source",
        "brand_product_events",
        "analysis",
        "brand_product_analyzed_at",
        "brand_product_source",
    }
)
TAG_UNWANTED_PATTERNS = (
    "not explicitly visible",
    "not explicitly",
    "explicitly visible",
    "none",
    "not visible",
)


# --- User-facing failure messages ---

MSG_UNAVAILABLE = "Search service is temporarily unavailable. Please try again in a few moments."
MSG_RATE_LIMITED = "Too many requests. Please wait a moment before searching again."
MSG_AUTH = "Authentication error. Please contact support."
MSG_FAILED = "Search failed. Please try again."
