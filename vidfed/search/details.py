import asyncio

from vidfed.backend.base import DetailFetcher
from vidfed.constants import DETAIL_CONCURRENCY
from vidfed.errors import DetailFetchFailure
from vidfed.logging import get_logger
from vidfed.models import Hit, VideoDetails

_logger = get_logger(__name__)


async def fetch_details(
    fetcher: DetailFetcher,
    keys: list[tuple[str, str]],
    concurrency: int = DETAIL_CONCURRENCY,
) -> dict[tuple[str, str], VideoDetails]:
    """Fetch details for (entity_id, partition_id) pairs.

    Failures are isolated: a failed pair is logged and left out of the result.
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))
    found: dict[tuple[str, str], VideoDetails] = {}

    async def fetch_one(entity_id: str, partition_id: str) -> None:
        async with semaphore:
            try:
                found[(entity_id, partition_id)] = await fetcher.fetch_details(entity_id, partition_id)
            except Exception as e:
                failure = DetailFetchFailure(entity_id, partition_id, str(e))
                _logger.warning("Detail fetch failed, keeping minimal hit", error=str(failure))

    await asyncio.gather(*(fetch_one(eid, pid) for eid, pid in dict.fromkeys(keys)))
    return found


async def enrich_hits(
    hits: list[Hit],
    fetcher: DetailFetcher | None,
    concurrency: int = DETAIL_CONCURRENCY,
) -> list[Hit]:
    """Attach VideoDetails to hits that have none yet; hits are never dropped."""
    if fetcher is None:
        return hits
    pending = [h for h in hits if h.details is None]
    if not pending:
        return hits

    # Several time ranges of one video share a single fetch
    found = await fetch_details(fetcher, [(h.entity_id, h.partition_id) for h in pending], concurrency)
    for hit in pending:
        hit.details = found.get((hit.entity_id, hit.partition_id))
    return hits


def format_time(seconds: float) -> str:
    mins, secs = divmod(int(max(seconds, 0)), 60)
    return f"{mins}:{secs:02d}"
