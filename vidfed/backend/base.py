from typing import Protocol

from vidfed.models import PartitionPage, SearchQuery, SimilarityMatch, VideoDetails


class PartitionClient(Protocol):
    """Stateless request/response access to one partition's search backend."""

    partition_id: str

    async def search(self, query: SearchQuery) -> PartitionPage: ...

    async def continue_page(self, token: str) -> PartitionPage: ...


class DetailFetcher(Protocol):
    async def fetch_details(self, entity_id: str, partition_id: str) -> VideoDetails: ...


class VideoCatalog(Protocol):
    async def list_videos(self, partition_id: str, page: int = 1, limit: int = 12) -> list[VideoDetails]: ...


class SimilarityBackend(Protocol):
    async def text_similarity(
        self, source_entity: str, source_partition: str, target_partition: str
    ) -> list[SimilarityMatch]: ...

    async def video_similarity(
        self, source_entity: str, source_partition: str, target_partition: str
    ) -> list[SimilarityMatch]: ...


class EmbeddingBackend(Protocol):
    async def ensure_embedding(self, entity_id: str, partition_id: str) -> bool: ...
