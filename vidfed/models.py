from dataclasses import dataclass, field
from enum import Enum


class ConfidenceTier(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> "ConfidenceTier":
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.UNKNOWN


class VideoFormat(Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class OriginSource(Enum):
    TEXT = "TEXT"
    VIDEO = "VIDEO"
    BOTH = "BOTH"


@dataclass(frozen=True)
class Partition:
    id: str
    name: str


@dataclass(frozen=True)
class TemporalRange:
    start: float
    end: float


@dataclass
class VideoDetails:
    """Per-entity metadata from the detail endpoint, used for format and display."""

    entity_id: str
    partition_id: str
    width: int | None = None
    height: int | None = None
    duration: float | None = None
    filename: str | None = None
    video_title: str | None = None
    video_url: str | None = None
    thumbnail_urls: list[str] = field(default_factory=list)
    user_metadata: dict = field(default_factory=dict)

    @property
    def display_title(self) -> str:
        return self.filename or self.video_title or f"Video {self.entity_id}"

    @property
    def format(self) -> VideoFormat | None:
        # Imported lazily: facets depends on models
        from vidfed.search.facets import derive_format

        return derive_format(self.width, self.height)


@dataclass
class Hit:
    """One search result returned by a partition."""

    entity_id: str
    partition_id: str
    score: float | None
    confidence: ConfidenceTier
    temporal_range: TemporalRange
    thumbnail_url: str | None = None
    metadata: dict = field(default_factory=dict)
    details: VideoDetails | None = None

    @property
    def key(self) -> tuple[str, float, float]:
        return (self.entity_id, self.temporal_range.start, self.temporal_range.end)

    @property
    def format(self) -> VideoFormat | None:
        if self.details is None:
            return None
        return self.details.format


@dataclass
class PartitionPage:
    """One page returned by a partition search or continuation call."""

    hits: list[Hit]
    continuation_token: str | None = None
    total_count: int | None = None


@dataclass
class SearchQuery:
    text: str | None = None
    image_bytes: bytes | None = None
    image_url: str | None = None
    filename: str | None = None
    content_type: str | None = None

    def __post_init__(self):
        if self.text is not None:
            self.text = self.text.strip()
            if not self.text:
                raise ValueError("Search text must not be empty")
        if self.image_bytes is not None and not self.image_bytes:
            raise ValueError("Image upload is empty")
        if self.text is None and self.image_bytes is None and not self.image_url:
            raise ValueError("A query needs text, image bytes or an image URL")

    @property
    def is_image(self) -> bool:
        return self.text is None


@dataclass
class SimilarityMatch:
    entity_id: str
    combined_score: float
    origin: OriginSource
    text_score: float | None = None
    video_score: float | None = None
    tier: ConfidenceTier = ConfidenceTier.UNKNOWN
    metadata: dict = field(default_factory=dict)


@dataclass
class ReadinessState:
    processed_count: int
    total_count: int
    success: bool


@dataclass
class MatchResult:
    matches: list[SimilarityMatch]
    readiness: ReadinessState
