from collections.abc import Iterable
from dataclasses import dataclass

from vidfed.constants import ALL_PARTITIONS
from vidfed.models import Hit, VideoFormat


@dataclass(frozen=True)
class FacetSegment:
    selector: str
    label: str
    count: int


def derive_format(width: int | None, height: int | None) -> VideoFormat | None:
    """Orientation from source dimensions; square media counts as horizontal."""
    if not width or not height:
        return None
    return VideoFormat.HORIZONTAL if width >= height else VideoFormat.VERTICAL


def parse_formats(values: Iterable[str | VideoFormat]) -> frozenset[VideoFormat]:
    return frozenset(v if isinstance(v, VideoFormat) else VideoFormat(v.lower()) for v in values)


def filter_hits(
    hits: list[Hit],
    partition: str = ALL_PARTITIONS,
    formats: Iterable[VideoFormat] = (),
) -> list[Hit]:
    """Return the hits matching the partition and format selection.

    Never mutates `hits`. A hit without dimensions never matches a non-empty format
    selection.
    """
    wanted = frozenset(formats)
    view = hits if partition == ALL_PARTITIONS else [h for h in hits if h.partition_id == partition]
    if wanted:
        view = [h for h in view if h.format in wanted]
    return list(view)
