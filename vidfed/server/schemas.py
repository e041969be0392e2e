from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from vidfed.models import Hit, SimilarityMatch, VideoDetails
from vidfed.search.details import format_time
from vidfed.tags import extract_tags

# --- Requests ---


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=2000)


class ImageSearchRequest(BaseModel):
    image_url: str = Field(..., min_length=1)


class FilterRequest(BaseModel):
    partition: str | None = None
    formats: list[Literal["vertical", "horizontal"]] | None = None


class MatchRequest(BaseModel):
    video_id: str = Field(..., min_length=1)
    source: str = "brand"


# --- Responses ---


class HitOut(BaseModel):
    video_id: str
    index_id: str
    partition: str
    start: float
    end: float
    time_range: str
    confidence: str
    score: float | None
    thumbnail_url: str | None = None
    format: str | None = None
    title: str
    video_url: str | None = None

    @classmethod
    def from_hit(cls, hit: Hit, partition_name: str) -> "HitOut":
        details = hit.details
        return cls(
            video_id=hit.entity_id,
            index_id=hit.partition_id,
            partition=partition_name,
            start=hit.temporal_range.start,
            end=hit.temporal_range.end,
            time_range=f"{format_time(hit.temporal_range.start)} - {format_time(hit.temporal_range.end)}",
            confidence=hit.confidence.value,
            score=hit.score,
            thumbnail_url=hit.thumbnail_url,
            format=hit.format.value if hit.format else None,
            title=details.display_title if details else f"Video {hit.entity_id}",
            video_url=details.video_url if details else None,
        )


class PageInfoOut(BaseModel):
    total_results: int
    next_page_token: str | None = None


class FacetOut(BaseModel):
    selector: str
    label: str
    count: int


class SearchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data: list[HitOut]
    page_info_by_index: dict[str, PageInfoOut] = Field(alias="pageInfoByIndex")
    has_more: bool = Field(alias="hasMore")
    page: int
    facets: list[FacetOut]
    errors: dict[str, str]


class VideoOut(BaseModel):
    video_id: str
    index_id: str
    partition: str
    title: str
    video_url: str | None = None
    thumbnail_url: str | None = None
    format: str | None = None
    tags: list[str]

    @classmethod
    def from_details(cls, details: VideoDetails, partition_name: str) -> "VideoOut":
        return cls(
            video_id=details.entity_id,
            index_id=details.partition_id,
            partition=partition_name,
            title=details.display_title,
            video_url=details.video_url,
            thumbnail_url=details.thumbnail_urls[0] if details.thumbnail_urls else None,
            format=details.format.value if details.format else None,
            tags=extract_tags(details.user_metadata),
        )


class MatchOut(BaseModel):
    video_id: str
    tier: str
    origin: str
    score: float
    text_score: float | None = None
    video_score: float | None = None
    video: VideoOut | None = None

    @classmethod
    def from_match(cls, match: SimilarityMatch, video: VideoOut | None) -> "MatchOut":
        return cls(
            video_id=match.entity_id,
            tier=match.tier.value,
            origin=match.origin.value,
            score=match.combined_score,
            text_score=match.text_score,
            video_score=match.video_score,
            video=video,
        )


class ReadinessOut(BaseModel):
    processed: int
    total: int
    success: bool


class MatchResponse(BaseModel):
    source: VideoOut | None = None
    matches: list[MatchOut]
    readiness: ReadinessOut


class GalleryResponse(BaseModel):
    data: list[VideoOut]
