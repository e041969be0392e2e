from vidfed.search.facets import FacetSegment, derive_format, filter_hits
from vidfed.search.merge import identity_key, merge_hits
from vidfed.search.pagination import PaginationState
from vidfed.search.ranking import rank, sort_by_tier, tier_priority
from vidfed.search.session import AggregatedResultSet, AggregationSession, SessionState

__all__ = [
    "AggregatedResultSet",
    "AggregationSession",
    "FacetSegment",
    "PaginationState",
    "SessionState",
    "derive_format",
    "filter_hits",
    "identity_key",
    "merge_hits",
    "rank",
    "sort_by_tier",
    "tier_priority",
]
