import pytest

from tests.fakes import text_match, video_match
from vidfed.match.combine import classify_match, combine_matches
from vidfed.models import ConfidenceTier, OriginSource


class TestClassifyMatch:
    @pytest.mark.parametrize(
        "score,origin,expected",
        [
            (1.2, OriginSource.TEXT, ConfidenceTier.HIGH),
            (1.0, OriginSource.VIDEO, ConfidenceTier.HIGH),
            (0.5, OriginSource.TEXT, ConfidenceTier.MEDIUM),
            (0.49, OriginSource.VIDEO, ConfidenceTier.LOW),
            (0.01, OriginSource.BOTH, ConfidenceTier.HIGH),
        ],
    )
    def test_thresholds(self, score, origin, expected):
        assert classify_match(score, origin) is expected


class TestCombineMatches:
    def test_text_and_video_fusion(self):
        matches = combine_matches(
            [text_match("v1", 0.8)],
            [video_match("v1", 0.6), video_match("v2", 1.2)],
        )

        assert [m.entity_id for m in matches] == ["v2", "v1"]
        v2, v1 = matches
        assert v1.origin is OriginSource.BOTH
        assert v1.combined_score == pytest.approx(0.92)
        assert v1.tier is ConfidenceTier.HIGH
        assert v1.text_score == pytest.approx(0.8)
        assert v1.video_score == pytest.approx(0.6)
        assert v2.origin is OriginSource.VIDEO
        assert v2.combined_score == pytest.approx(1.2)
        assert v2.tier is ConfidenceTier.HIGH

    def test_corroborated_low_scores_outrank_single_high_tier_peers(self):
        matches = combine_matches(
            [text_match("both", 0.1), text_match("solo", 0.7)],
            [video_match("both", 0.2)],
        )

        assert [m.entity_id for m in matches] == ["both", "solo"]
        assert matches[0].tier is ConfidenceTier.HIGH
        assert matches[0].combined_score == pytest.approx(0.23)
        assert matches[1].tier is ConfidenceTier.MEDIUM

    def test_boost_uses_the_larger_signal(self):
        [m] = combine_matches([text_match("v", 0.3)], [video_match("v", 0.9)])
        assert m.combined_score == pytest.approx(0.9 * 1.15)

    def test_single_signal(self):
        matches = combine_matches([text_match("t1", 0.4), text_match("t2", 0.6)], [])
        assert [(m.entity_id, m.origin, m.tier) for m in matches] == [
            ("t2", OriginSource.TEXT, ConfidenceTier.MEDIUM),
            ("t1", OriginSource.TEXT, ConfidenceTier.LOW),
        ]

    def test_entity_appears_once(self):
        matches = combine_matches(
            [text_match("a", 0.5), text_match("b", 0.5)],
            [video_match("b", 0.5), video_match("c", 0.5)],
        )
        assert sorted(m.entity_id for m in matches) == ["a", "b", "c"]

    def test_empty(self):
        assert combine_matches([], []) == []
