import pytest

from tests.fakes import BRAND, CREATOR, make_hit
from vidfed.models import VideoDetails, VideoFormat
from vidfed.search.facets import derive_format, filter_hits, parse_formats


def with_dims(hit, width, height):
    hit.details = VideoDetails(entity_id=hit.entity_id, partition_id=hit.partition_id, width=width, height=height)
    return hit


class TestDeriveFormat:
    @pytest.mark.parametrize(
        "width,height,expected",
        [
            (1920, 1080, VideoFormat.HORIZONTAL),
            (1080, 1920, VideoFormat.VERTICAL),
            (1000, 1000, VideoFormat.HORIZONTAL),
        ],
    )
    def test_orientation(self, width, height, expected):
        assert derive_format(width, height) is expected

    def test_missing_dimensions(self):
        assert derive_format(None, 1080) is None
        assert derive_format(1920, None) is None
        assert derive_format(0, 0) is None


class TestFilterHits:
    @pytest.fixture
    def hits(self):
        return [
            with_dims(make_hit("wide", BRAND), 1920, 1080),
            with_dims(make_hit("tall", CREATOR), 1080, 1920),
            with_dims(make_hit("square", CREATOR), 1000, 1000),
            make_hit("bare", BRAND),
        ]

    def test_all_without_formats_returns_everything(self, hits):
        assert [h.entity_id for h in filter_hits(hits)] == ["wide", "tall", "square", "bare"]

    def test_partition_selection(self, hits):
        assert [h.entity_id for h in filter_hits(hits, partition=CREATOR)] == ["tall", "square"]

    def test_format_selection(self, hits):
        view = filter_hits(hits, formats={VideoFormat.HORIZONTAL})
        assert [h.entity_id for h in view] == ["wide", "square"]

    def test_both_formats_excludes_hits_without_dimensions(self, hits):
        view = filter_hits(hits, formats=parse_formats(["vertical", "horizontal"]))
        assert "bare" not in [h.entity_id for h in view]

    def test_combined_selection(self, hits):
        view = filter_hits(hits, partition=CREATOR, formats={VideoFormat.VERTICAL})
        assert [h.entity_id for h in view] == ["tall"]

    def test_does_not_mutate_input(self, hits):
        before = list(hits)
        view = filter_hits(hits, partition=BRAND)
        view.clear()
        assert hits == before

    def test_parse_formats_rejects_unknown(self):
        with pytest.raises(ValueError):
            parse_formats(["diagonal"])
