from vidfed.match.combine import classify_match, combine_matches
from vidfed.match.matcher import CrossModalMatcher
from vidfed.match.readiness import ReadinessGate

__all__ = [
    "CrossModalMatcher",
    "ReadinessGate",
    "classify_match",
    "combine_matches",
]
