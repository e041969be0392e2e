import httpx
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential_jitter

from vidfed.backend.wire import WireEnsureResult, WirePage, WireSimilarityList, WireVideo, WireVideoList
from vidfed.constants import DEFAULT_GALLERY_LIMIT, DEFAULT_PAGE_LIMIT, DEFAULT_REQUEST_TIMEOUT
from vidfed.logging import get_logger
from vidfed.models import OriginSource, PartitionPage, SearchQuery, SimilarityMatch, VideoDetails

_logger = get_logger(__name__)

MAX_ATTEMPTS = 3


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status in {408, 409, 429} or status >= 500
    return isinstance(exc, httpx.TransportError)


def _log_retry(retry_state) -> None:
    _logger.warning(
        "Backend call failed (attempt %d/%d), retrying: %s",
        retry_state.attempt_number,
        MAX_ATTEMPTS,
        retry_state.outcome.exception(),
    )


with_retry = retry(
    retry=retry_if_exception(_is_retryable),
    stop=stop_after_attempt(MAX_ATTEMPTS),
    wait=wait_exponential_jitter(initial=0.5, max=8, jitter=2),
    reraise=True,
    before_sleep=_log_retry,
)


class HttpBackend:
    """REST access to the video search service.

    Implements DetailFetcher, VideoCatalog, SimilarityBackend and EmbeddingBackend;
    partition search goes through HttpPartitionClient.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    def partition(self, partition_id: str, page_limit: int = DEFAULT_PAGE_LIMIT) -> "HttpPartitionClient":
        return HttpPartitionClient(self, partition_id, page_limit)

    @with_retry
    async def _get(self, path: str, params: dict | None = None) -> dict:
        resp = await self._client.get(path, params=params)
        resp.raise_for_status()
        return resp.json()

    @with_retry
    async def _post(self, path: str, json: dict | None = None, data: dict | None = None, files: dict | None = None) -> dict:
        resp = await self._client.post(path, json=json, data=data, files=files)
        resp.raise_for_status()
        return resp.json()

    async def search_partition(self, partition_id: str, query: SearchQuery, page_limit: int) -> PartitionPage:
        if query.is_image:
            form = {"index_id": partition_id, "page_limit": str(page_limit), "scope": partition_id}
            files = None
            if query.image_bytes is not None:
                files = {
                    "file": (query.filename or "image.jpg", query.image_bytes, query.content_type or "image/jpeg")
                }
            else:
                form["image_url"] = query.image_url
            body = await self._post("/search/image", data=form, files=files)
        else:
            body = await self._post(
                "/search/text",
                json={"query": query.text, "index_id": partition_id, "page_limit": page_limit},
            )
        return WirePage.model_validate(body).to_page(partition_id)

    async def continue_partition(self, partition_id: str, token: str) -> PartitionPage:
        body = await self._get("/search/byToken", params={"pageToken": token, "indexId": partition_id})
        return WirePage.model_validate(body).to_page(partition_id)

    async def fetch_details(self, entity_id: str, partition_id: str) -> VideoDetails:
        body = await self._get(f"/videos/{entity_id}", params={"index_id": partition_id})
        return WireVideo.model_validate(body).to_details(partition_id)

    async def list_videos(self, partition_id: str, page: int = 1, limit: int = DEFAULT_GALLERY_LIMIT) -> list[VideoDetails]:
        body = await self._get("/videos", params={"index_id": partition_id, "page": page, "limit": limit})
        return [v.to_details(partition_id) for v in WireVideoList.model_validate(body).data]

    async def _similarity(
        self, kind: str, source_entity: str, source_partition: str, target_partition: str
    ) -> list[SimilarityMatch]:
        body = await self._post(
            f"/embeddings/search/{kind}",
            json={"videoId": source_entity, "indexId": source_partition, "targetIndexId": target_partition},
        )
        origin = OriginSource.TEXT if kind == "text" else OriginSource.VIDEO
        return WireSimilarityList.model_validate(body).to_matches(origin)

    async def text_similarity(
        self, source_entity: str, source_partition: str, target_partition: str
    ) -> list[SimilarityMatch]:
        return await self._similarity("text", source_entity, source_partition, target_partition)

    async def video_similarity(
        self, source_entity: str, source_partition: str, target_partition: str
    ) -> list[SimilarityMatch]:
        return await self._similarity("video", source_entity, source_partition, target_partition)

    async def ensure_embedding(self, entity_id: str, partition_id: str) -> bool:
        body = await self._post("/embeddings/ensure", json={"videoId": entity_id, "indexId": partition_id})
        return WireEnsureResult.model_validate(body).success


class HttpPartitionClient:
    def __init__(self, backend: HttpBackend, partition_id: str, page_limit: int = DEFAULT_PAGE_LIMIT):
        self.backend = backend
        self.partition_id = partition_id
        self.page_limit = page_limit

    async def search(self, query: SearchQuery) -> PartitionPage:
        return await self.backend.search_partition(self.partition_id, query, self.page_limit)

    async def continue_page(self, token: str) -> PartitionPage:
        return await self.backend.continue_partition(self.partition_id, token)
