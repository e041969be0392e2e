from dataclasses import replace

from vidfed.constants import BOTH_SOURCES_BOOST, MATCH_HIGH_THRESHOLD, MATCH_MEDIUM_THRESHOLD
from vidfed.models import ConfidenceTier, OriginSource, SimilarityMatch
from vidfed.search.ranking import sort_by_tier


def classify_match(score: float, origin: OriginSource) -> ConfidenceTier:
    # Corroboration by both signals outranks any single raw score
    if origin is OriginSource.BOTH:
        return ConfidenceTier.HIGH
    if score >= MATCH_HIGH_THRESHOLD:
        return ConfidenceTier.HIGH
    if score >= MATCH_MEDIUM_THRESHOLD:
        return ConfidenceTier.MEDIUM
    return ConfidenceTier.LOW


def _score_of(match: SimilarityMatch, origin: OriginSource) -> float:
    if origin is OriginSource.TEXT and match.text_score is not None:
        return match.text_score
    if origin is OriginSource.VIDEO and match.video_score is not None:
        return match.video_score
    return match.combined_score


def combine_matches(
    text_results: list[SimilarityMatch],
    video_results: list[SimilarityMatch],
) -> list[SimilarityMatch]:
    """Merge text- and video-derived similarity lists for one target partition.

    Entities found by both get max(text, video) * 1.15 and origin BOTH. The
    result is tiered and sorted by tier, then combined score.
    """
    combined: dict[str, SimilarityMatch] = {}

    for m in text_results:
        score = _score_of(m, OriginSource.TEXT)
        combined[m.entity_id] = replace(
            m,
            text_score=score,
            video_score=None,
            combined_score=score,
            origin=OriginSource.TEXT,
        )

    for m in video_results:
        video_score = _score_of(m, OriginSource.VIDEO)
        existing = combined.get(m.entity_id)
        if existing is not None:
            text_score = existing.text_score or 0.0
            combined[m.entity_id] = replace(
                existing,
                text_score=text_score,
                video_score=video_score,
                combined_score=max(text_score, video_score) * BOTH_SOURCES_BOOST,
                origin=OriginSource.BOTH,
            )
        else:
            combined[m.entity_id] = replace(
                m,
                text_score=None,
                video_score=video_score,
                combined_score=video_score,
                origin=OriginSource.VIDEO,
            )

    tiered = [replace(m, tier=classify_match(m.combined_score, m.origin)) for m in combined.values()]
    return sort_by_tier(tiered, tier=lambda m: m.tier, score=lambda m: m.combined_score)
