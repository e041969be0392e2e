from pydantic import BaseModel, ConfigDict, Field

from vidfed.models import (
    ConfidenceTier,
    Hit,
    OriginSource,
    PartitionPage,
    SimilarityMatch,
    TemporalRange,
    VideoDetails,
)


class WireHit(BaseModel):
    model_config = ConfigDict(extra="allow")

    video_id: str
    start: float = 0.0
    end: float = 0.0
    confidence: str | None = None
    score: float | None = None
    thumbnail_url: str | None = None
    index_id: str | None = None

    def to_hit(self, partition_id: str) -> Hit:
        return Hit(
            entity_id=self.video_id,
            partition_id=self.index_id or partition_id,
            score=self.score,
            confidence=ConfidenceTier.parse(self.confidence),
            temporal_range=TemporalRange(self.start, self.end),
            thumbnail_url=self.thumbnail_url,
            metadata=dict(self.model_extra or {}),
        )


class WirePageInfo(BaseModel):
    next_page_token: str | None = None
    total_results: int | None = None


class WirePage(BaseModel):
    data: list[WireHit] = Field(default_factory=list)
    page_info: WirePageInfo = Field(default_factory=WirePageInfo, alias="pageInfo")

    def to_page(self, partition_id: str) -> PartitionPage:
        return PartitionPage(
            hits=[h.to_hit(partition_id) for h in self.data],
            continuation_token=self.page_info.next_page_token or None,
            total_count=self.page_info.total_results,
        )


class WireHls(BaseModel):
    video_url: str | None = None
    thumbnail_urls: list[str] = Field(default_factory=list)


class WireSystemMetadata(BaseModel):
    filename: str | None = None
    video_title: str | None = None
    duration: float | None = None
    width: int | None = None
    height: int | None = None


class WireVideo(BaseModel):
    id: str = Field(alias="_id")
    hls: WireHls | None = None
    system_metadata: WireSystemMetadata | None = None
    user_metadata: dict | None = None

    def to_details(self, partition_id: str) -> VideoDetails:
        system = self.system_metadata or WireSystemMetadata()
        hls = self.hls or WireHls()
        return VideoDetails(
            entity_id=self.id,
            partition_id=partition_id,
            width=system.width,
            height=system.height,
            duration=system.duration,
            filename=system.filename,
            video_title=system.video_title,
            video_url=hls.video_url,
            thumbnail_urls=list(hls.thumbnail_urls),
            user_metadata=dict(self.user_metadata or {}),
        )


class WireVideoList(BaseModel):
    data: list[WireVideo] = Field(default_factory=list)


class WireSimilarity(BaseModel):
    score: float
    metadata: dict = Field(default_factory=dict)

    @property
    def entity_id(self) -> str | None:
        return self.metadata.get("tl_video_id")


class WireSimilarityList(BaseModel):
    results: list[WireSimilarity] = Field(default_factory=list)

    def to_matches(self, origin: OriginSource) -> list[SimilarityMatch]:
        matches = []
        for r in self.results:
            if not r.entity_id:
                continue
            matches.append(
                SimilarityMatch(
                    entity_id=r.entity_id,
                    combined_score=r.score,
                    origin=origin,
                    text_score=r.score if origin is OriginSource.TEXT else None,
                    video_score=r.score if origin is OriginSource.VIDEO else None,
                    metadata=r.metadata,
                )
            )
        return matches


class WireEnsureResult(BaseModel):
    success: bool = False
