import asyncio

from vidfed.backend.base import DetailFetcher, VideoCatalog
from vidfed.constants import DEFAULT_GALLERY_LIMIT, DETAIL_CONCURRENCY
from vidfed.logging import get_logger
from vidfed.models import Partition, VideoDetails
from vidfed.search.details import fetch_details

_logger = get_logger(__name__)


async def load_gallery(
    partitions: list[Partition],
    catalog: VideoCatalog,
    details: DetailFetcher | None = None,
    limit: int = DEFAULT_GALLERY_LIMIT,
    concurrency: int = DETAIL_CONCURRENCY,
) -> list[VideoDetails]:
    """Videos shown while no query is active.

    Lists every partition concurrently and keeps partition order without
    re-sorting. Listed items are replaced by their full details when available.
    """

    async def list_partition(partition: Partition) -> list[VideoDetails]:
        try:
            return await catalog.list_videos(partition.id, page=1, limit=limit)
        except Exception as e:
            _logger.warning("Gallery listing failed", partition=partition.id, error=str(e))
            return []

    listed = await asyncio.gather(*(list_partition(p) for p in partitions))
    videos = [video for batch in listed for video in batch]
    if details is None or not videos:
        return videos

    found = await fetch_details(details, [(v.entity_id, v.partition_id) for v in videos], concurrency)
    return [found.get((v.entity_id, v.partition_id), v) for v in videos]
