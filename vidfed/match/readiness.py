import asyncio
from collections.abc import Callable

from vidfed.backend.base import EmbeddingBackend
from vidfed.constants import READINESS_CONCURRENCY
from vidfed.logging import get_logger
from vidfed.models import ReadinessState

_logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


class ReadinessGate:
    """Makes sure similarity vectors exist before cross-modal matching runs.

    Entities already known to be embedded are skipped, so repeated calls are cheap
    and still report success. The known set is unbounded and lives as long as
    the gate, i.e. one runtime. Call `clear()` after embeddings were rebuilt on the
    backend; the runtime also clears it on shutdown.
    """

    def __init__(self, backend: EmbeddingBackend, concurrency: int = READINESS_CONCURRENCY):
        self.backend = backend
        self.concurrency = max(1, concurrency)
        self._ready: set[tuple[str, str]] = set()

    def is_ready(self, entity_id: str, partition_id: str) -> bool:
        return (entity_id, partition_id) in self._ready

    def clear(self) -> None:
        self._ready.clear()

    async def _ensure_one(self, entity_id: str, partition_id: str) -> bool:
        if self.is_ready(entity_id, partition_id):
            return True
        try:
            ok = await self.backend.ensure_embedding(entity_id, partition_id)
        except Exception as e:
            _logger.warning("Embedding could not be ensured", entity=entity_id, partition=partition_id, error=str(e))
            return False
        if ok:
            self._ready.add((entity_id, partition_id))
        return ok

    async def ensure_ready(
        self,
        source_entity: str,
        source_partition: str,
        target_partition: str,
        target_candidates: list[str],
        progress: ProgressCallback | None = None,
    ) -> ReadinessState:
        required = list(
            dict.fromkeys([(source_entity, source_partition)] + [(c, target_partition) for c in target_candidates])
        )
        total = len(required)
        processed = 0
        success = True
        semaphore = asyncio.Semaphore(self.concurrency)

        async def ensure(entity_id: str, partition_id: str) -> bool:
            async with semaphore:
                return await self._ensure_one(entity_id, partition_id)

        for done in asyncio.as_completed([ensure(eid, pid) for eid, pid in required]):
            if await done:
                processed += 1
            else:
                success = False
            if progress:
                progress(processed, total)

        return ReadinessState(processed_count=processed, total_count=total, success=success)
