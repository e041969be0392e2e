import asyncio

from vidfed.backend.base import SimilarityBackend, VideoCatalog
from vidfed.constants import READINESS_CANDIDATE_LIMIT
from vidfed.errors import ReadinessFailure
from vidfed.logging import get_logger
from vidfed.match.combine import combine_matches
from vidfed.match.readiness import ProgressCallback, ReadinessGate
from vidfed.models import MatchResult, SimilarityMatch

_logger = get_logger(__name__)


class CrossModalMatcher:
    def __init__(
        self,
        similarity: SimilarityBackend,
        gate: ReadinessGate,
        catalog: VideoCatalog | None = None,
        candidate_limit: int = READINESS_CANDIDATE_LIMIT,
    ):
        self.similarity = similarity
        self.gate = gate
        self.catalog = catalog
        self.candidate_limit = candidate_limit

    async def _candidates(self, target_partition: str) -> list[str]:
        if self.catalog is None:
            return []
        try:
            videos = await self.catalog.list_videos(target_partition, page=1, limit=self.candidate_limit)
        except Exception as e:
            _logger.warning("Could not list target candidates", partition=target_partition, error=str(e))
            return []
        return [v.entity_id for v in videos]

    async def _search(self, kind: str, search, *args) -> list[SimilarityMatch]:
        try:
            return await search(*args)
        except Exception as e:
            _logger.warning("Similarity search failed, signal contributes no matches", kind=kind, error=str(e))
            return []

    async def find_matches(
        self,
        source_entity: str,
        source_partition: str,
        target_partition: str,
        candidates: list[str] | None = None,
        progress: ProgressCallback | None = None,
    ) -> MatchResult:
        """Readiness gate, then both similarity searches, then combine.

        Raises ReadinessFailure without running any search when an embedding is missing.
        """
        if candidates is None:
            candidates = await self._candidates(target_partition)

        readiness = await self.gate.ensure_ready(
            source_entity, source_partition, target_partition, candidates, progress=progress
        )
        if not readiness.success:
            raise ReadinessFailure(readiness)

        args = (source_entity, source_partition, target_partition)
        text_results, video_results = await asyncio.gather(
            self._search("text", self.similarity.text_similarity, *args),
            self._search("video", self.similarity.video_similarity, *args),
        )
        matches = combine_matches(text_results, video_results)
        _logger.info(
            "Cross-modal matches ready",
            source=source_entity,
            text=len(text_results),
            video=len(video_results),
            combined=len(matches),
        )
        return MatchResult(matches=matches, readiness=readiness)
