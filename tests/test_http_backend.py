import json

import httpx
import pytest

from vidfed.backend.http import HttpBackend, _is_retryable
from vidfed.models import ConfidenceTier, OriginSource, SearchQuery

PAGE = {
    "data": [
        {"video_id": "v1", "start": 10, "end": 20, "confidence": "High", "score": 0.9, "thumbnail_url": "t.jpg"},
        {"video_id": "v2", "start": 0, "end": 5, "confidence": "meh", "rank": 2},
    ],
    "pageInfo": {"next_page_token": "tok-2", "total_results": 40},
}


def make_backend(handler) -> HttpBackend:
    return HttpBackend("http://svc/api/", api_key="secret", transport=httpx.MockTransport(handler))


class TestPartitionSearch:
    @pytest.mark.asyncio
    async def test_text_search(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=PAGE)

        backend = make_backend(handler)
        page = await backend.partition("idx-a", page_limit=12).search(SearchQuery(text="running shoes"))
        await backend.close()

        [request] = seen
        assert request.url.path == "/api/search/text"
        assert request.headers["Authorization"] == "Bearer secret"
        assert json.loads(request.content) == {"query": "running shoes", "index_id": "idx-a", "page_limit": 12}

        assert page.continuation_token == "tok-2"
        assert page.total_count == 40
        v1, v2 = page.hits
        assert v1.key == ("v1", 10, 20)
        assert v1.confidence is ConfidenceTier.HIGH
        assert v1.partition_id == "idx-a"
        assert v2.confidence is ConfidenceTier.UNKNOWN
        assert v2.score is None
        assert v2.metadata == {"rank": 2}

    @pytest.mark.asyncio
    async def test_continuation(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/search/byToken"
            assert request.url.params["pageToken"] == "tok-2"
            assert request.url.params["indexId"] == "idx-a"
            return httpx.Response(200, json={"data": [], "pageInfo": {"next_page_token": ""}})

        backend = make_backend(handler)
        page = await backend.partition("idx-a").continue_page("tok-2")
        await backend.close()

        assert page.hits == []
        assert page.continuation_token is None

    @pytest.mark.asyncio
    async def test_image_search_by_url(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/search/image"
            assert b"image_url" in request.content
            assert b"https://img.example/cat.png" in request.content
            return httpx.Response(200, json={"data": []})

        backend = make_backend(handler)
        page = await backend.search_partition("idx-a", SearchQuery(image_url="https://img.example/cat.png"), 24)
        await backend.close()

        assert page.continuation_token is None

    @pytest.mark.asyncio
    async def test_image_search_by_upload(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/search/image"
            assert request.headers["content-type"].startswith("multipart/form-data")
            body = request.content
            assert b'name="file"; filename="cat.png"' in body
            assert b"Content-Type: image/png" in body
            assert b"\x89PNG-payload" in body
            assert b'name="index_id"' in body
            assert b"idx-a" in body
            assert b"image_url" not in body
            return httpx.Response(200, json=PAGE)

        backend = make_backend(handler)
        query = SearchQuery(image_bytes=b"\x89PNG-payload", filename="cat.png", content_type="image/png")
        page = await backend.partition("idx-a").search(query)
        await backend.close()

        assert [h.entity_id for h in page.hits] == ["v1", "v2"]

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(404, json={"error": "no index"})

        backend = make_backend(handler)
        with pytest.raises(httpx.HTTPStatusError):
            await backend.partition("idx-a").search(SearchQuery(text="q"))
        await backend.close()

        assert len(calls) == 1


class TestVideoEndpoints:
    @pytest.mark.asyncio
    async def test_fetch_details(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/videos/v1"
            return httpx.Response(
                200,
                json={
                    "_id": "v1",
                    "hls": {"video_url": "https://cdn/v1.m3u8", "thumbnail_urls": ["https://cdn/v1.jpg"]},
                    "system_metadata": {"filename": "v1.mp4", "width": 1080, "height": 1920, "duration": 31.5},
                    "user_metadata": {"topic": "dance"},
                },
            )

        backend = make_backend(handler)
        details = await backend.fetch_details("v1", "idx-a")
        await backend.close()

        assert details.entity_id == "v1"
        assert details.partition_id == "idx-a"
        assert details.display_title == "v1.mp4"
        assert details.thumbnail_urls == ["https://cdn/v1.jpg"]
        assert details.user_metadata == {"topic": "dance"}

    @pytest.mark.asyncio
    async def test_list_videos(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["limit"] == "5"
            return httpx.Response(200, json={"data": [{"_id": "a"}, {"_id": "b"}]})

        backend = make_backend(handler)
        videos = await backend.list_videos("idx-a", limit=5)
        await backend.close()

        assert [v.entity_id for v in videos] == ["a", "b"]


class TestEmbeddingEndpoints:
    @pytest.mark.asyncio
    async def test_similarity_skips_results_without_video_id(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/embeddings/search/video"
            assert json.loads(request.content) == {"videoId": "src", "indexId": "idx-a", "targetIndexId": "idx-b"}
            return httpx.Response(
                200,
                json={"results": [{"score": 0.7, "metadata": {"tl_video_id": "m1"}}, {"score": 0.9, "metadata": {}}]},
            )

        backend = make_backend(handler)
        matches = await backend.video_similarity("src", "idx-a", "idx-b")
        await backend.close()

        [m] = matches
        assert m.entity_id == "m1"
        assert m.origin is OriginSource.VIDEO
        assert m.video_score == 0.7
        assert m.text_score is None

    @pytest.mark.asyncio
    async def test_ensure_embedding(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": json.loads(request.content)["videoId"] == "ok"})

        backend = make_backend(handler)
        assert await backend.ensure_embedding("ok", "idx-a") is True
        assert await backend.ensure_embedding("nope", "idx-a") is False
        await backend.close()


class TestRetryPolicy:
    def _status_error(self, status: int) -> httpx.HTTPStatusError:
        request = httpx.Request("GET", "http://svc/api/videos")
        return httpx.HTTPStatusError("err", request=request, response=httpx.Response(status, request=request))

    @pytest.mark.parametrize("status", [408, 409, 429, 500, 502, 503])
    def test_retryable_statuses(self, status):
        assert _is_retryable(self._status_error(status)) is True

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 422])
    def test_non_retryable_statuses(self, status):
        assert _is_retryable(self._status_error(status)) is False

    def test_transport_errors_are_retryable(self):
        assert _is_retryable(httpx.ConnectError("refused")) is True
        assert _is_retryable(ValueError("bad json")) is False
