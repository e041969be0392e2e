from tests.fakes import make_hit
from vidfed.models import ConfidenceTier
from vidfed.search.ranking import rank, tier_priority


class TestTierPriority:
    def test_order(self):
        assert tier_priority(ConfidenceTier.HIGH) == 3
        assert tier_priority(ConfidenceTier.MEDIUM) == 2
        assert tier_priority(ConfidenceTier.LOW) == 1
        assert tier_priority(ConfidenceTier.UNKNOWN) == 0

    def test_parse_unknown_values(self):
        assert ConfidenceTier.parse("HIGH") is ConfidenceTier.HIGH
        assert ConfidenceTier.parse(" Medium ") is ConfidenceTier.MEDIUM
        assert ConfidenceTier.parse("very high") is ConfidenceTier.UNKNOWN
        assert ConfidenceTier.parse(None) is ConfidenceTier.UNKNOWN


class TestRank:
    def test_tier_outranks_score(self):
        hits = [
            make_hit("low", confidence="low", score=99.0),
            make_hit("high", confidence="high", score=0.1),
            make_hit("unknown", confidence="whatever", score=100.0),
            make_hit("medium", confidence="medium", score=50.0),
        ]
        assert [h.entity_id for h in rank(hits)] == ["high", "medium", "low", "unknown"]

    def test_score_desc_within_tier(self):
        hits = [
            make_hit("a", confidence="high", score=0.2),
            make_hit("b", confidence="high", score=0.9),
            make_hit("c", confidence="high", score=0.5),
        ]
        assert [h.entity_id for h in rank(hits)] == ["b", "c", "a"]

    def test_missing_score_counts_as_zero(self):
        hits = [
            make_hit("none", confidence="medium", score=None),
            make_hit("neg", confidence="medium", score=-0.5),
            make_hit("pos", confidence="medium", score=0.1),
        ]
        assert [h.entity_id for h in rank(hits)] == ["pos", "none", "neg"]

    def test_stable_for_ties(self):
        hits = [make_hit(f"v{i}", confidence="medium", score=0.5) for i in range(6)]
        assert [h.entity_id for h in rank(hits)] == [f"v{i}" for i in range(6)]

    def test_deterministic(self):
        hits = [
            make_hit("a", confidence="low", score=0.3),
            make_hit("b", confidence="high", score=0.3),
            make_hit("c", confidence="low", score=0.3),
            make_hit("d", confidence="high", score=0.7),
        ]
        first = [h.entity_id for h in rank(hits)]
        assert all([h.entity_id for h in rank(hits)] == first for _ in range(5))
        assert first == ["d", "b", "a", "c"]

    def test_does_not_reorder_input(self):
        hits = [make_hit("a", confidence="low"), make_hit("b", confidence="high")]
        rank(hits)
        assert [h.entity_id for h in hits] == ["a", "b"]
