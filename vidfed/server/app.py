from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from vidfed import __version__
from vidfed.gallery import load_gallery
from vidfed.logging import configure_logging
from vidfed.models import SearchQuery
from vidfed.search.details import fetch_details
from vidfed.server.runtime import Runtime, get_runtime, get_runtime_async, reset_runtime
from vidfed.server.schemas import (
    FacetOut,
    FilterRequest,
    GalleryResponse,
    HitOut,
    ImageSearchRequest,
    MatchOut,
    MatchRequest,
    MatchResponse,
    PageInfoOut,
    ReadinessOut,
    SearchRequest,
    SearchResponse,
    VideoOut,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    runtime = await get_runtime_async()
    configure_logging(runtime.config.log_level)
    yield
    await reset_runtime()


app = FastAPI(
    title="vidfed",
    description="Federated video search across brand and creator partitions",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _search_response(runtime: Runtime) -> SearchResponse:
    session = runtime.session
    return SearchResponse(
        data=[HitOut.from_hit(h, runtime.partition_name(h.partition_id)) for h in session.view()],
        page_info_by_index={
            p.id: PageInfoOut(
                total_results=session.total_for(p.id),
                next_page_token=session.pagination.token_for(p.id),
            )
            for p in runtime.partitions
        },
        has_more=session.has_more(),
        page=session.page,
        facets=[FacetOut(selector=s.selector, label=s.label, count=s.count) for s in session.facet_counts()],
        errors=session.errors,
    )


async def _run_search(query: SearchQuery) -> SearchResponse:
    runtime = get_runtime()
    await runtime.session.search(query)
    return _search_response(runtime)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/search")
async def search(request: SearchRequest) -> SearchResponse:
    try:
        query = SearchQuery(text=request.query)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return await _run_search(query)


@app.post("/search/image")
async def search_image(request: ImageSearchRequest) -> SearchResponse:
    return await _run_search(SearchQuery(image_url=request.image_url))


@app.post("/search/image/upload")
async def search_image_upload(file: Annotated[UploadFile, File()]) -> SearchResponse:
    payload = await file.read()
    try:
        query = SearchQuery(image_bytes=payload, filename=file.filename, content_type=file.content_type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return await _run_search(query)


@app.post("/search/more")
async def search_more() -> SearchResponse:
    runtime = get_runtime()
    await runtime.session.load_more()
    return _search_response(runtime)


@app.post("/search/filters")
async def search_filters(request: FilterRequest) -> SearchResponse:
    runtime = get_runtime()
    try:
        runtime.session.set_filters(partition=request.partition, formats=request.formats)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _search_response(runtime)


@app.delete("/search")
async def clear_search():
    runtime = get_runtime()
    await runtime.session.clear()
    return {"status": "cleared"}


@app.post("/match")
async def match(request: MatchRequest) -> MatchResponse:
    runtime = get_runtime()
    try:
        source = runtime.config.partition_named(request.source)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    target = runtime.config.other_partition(source)

    result = await runtime.session.find_matches(request.video_id, source.id, target.id)

    keys = [(request.video_id, source.id)] + [(m.entity_id, target.id) for m in result.matches]
    found = await fetch_details(runtime.backend, keys, runtime.config.detail_concurrency)

    def video(entity_id: str, partition_id: str) -> VideoOut | None:
        details = found.get((entity_id, partition_id))
        return VideoOut.from_details(details, runtime.partition_name(partition_id)) if details else None

    return MatchResponse(
        source=video(request.video_id, source.id),
        matches=[MatchOut.from_match(m, video(m.entity_id, target.id)) for m in result.matches],
        readiness=ReadinessOut(
            processed=result.readiness.processed_count,
            total=result.readiness.total_count,
            success=result.readiness.success,
        ),
    )


@app.get("/gallery")
async def gallery() -> GalleryResponse:
    runtime = get_runtime()
    videos = await load_gallery(
        runtime.partitions,
        catalog=runtime.backend,
        details=runtime.backend,
        limit=runtime.config.gallery_limit,
        concurrency=runtime.config.detail_concurrency,
    )
    return GalleryResponse(data=[VideoOut.from_details(v, runtime.partition_name(v.partition_id)) for v in videos])
