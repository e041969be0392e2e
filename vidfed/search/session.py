import asyncio
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum

from vidfed.backend.base import DetailFetcher, PartitionClient
from vidfed.constants import ALL_PARTITIONS, DEFAULT_REQUEST_TIMEOUT, DETAIL_CONCURRENCY
from vidfed.errors import PartitionUnavailable, ReadinessFailure, StaleResponse, describe_failure, status_code_of
from vidfed.logging import get_logger, session_context
from vidfed.models import Hit, MatchResult, Partition, PartitionPage, ReadinessState, SearchQuery, VideoFormat
from vidfed.search.details import enrich_hits
from vidfed.search.facets import FacetSegment, filter_hits, parse_formats
from vidfed.search.merge import merge_hits
from vidfed.search.pagination import PaginationState
from vidfed.search.ranking import rank

_logger = get_logger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    DISPATCHING = "dispatching"
    MERGING = "merging"
    RANKING = "ranking"
    READY = "ready"


StateCallback = Callable[[SessionState], Awaitable[None]]
ProgressCallback = Callable[[int, int], None]
PartitionCall = Callable[[], Awaitable[PartitionPage]]


@dataclass
class AggregatedResultSet:
    """Hits in arrival order plus per-partition pagination.

    Grows monotonically until the session is reset.
    """

    hits: list[Hit] = field(default_factory=list)
    pagination: PaginationState = field(default_factory=PaginationState)

    def count_for(self, partition_id: str) -> int:
        return sum(1 for h in self.hits if h.partition_id == partition_id)


@dataclass
class RoundOutcome:
    # (partition_id, page) in the order responses completed
    pages: list[tuple[str, PartitionPage]] = field(default_factory=list)
    failures: dict[str, PartitionUnavailable] = field(default_factory=dict)
    messages: dict[str, str] = field(default_factory=dict)


class AggregationSession:
    """Owns the combined state of one user query across all partitions.

    Single writer: partition requests of a round run concurrently, but state is
    only mutated after every request of the round has settled and only if the
    round still belongs to the current session version.
    """

    def __init__(
        self,
        partitions: list[Partition],
        clients: Mapping[str, PartitionClient],
        details: DetailFetcher | None = None,
        matcher=None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        detail_concurrency: int = DETAIL_CONCURRENCY,
        on_state: StateCallback | None = None,
    ):
        if not partitions:
            raise ValueError("At least one partition is required")
        missing = [p.id for p in partitions if p.id not in clients]
        if missing:
            raise ValueError(f"No client for partitions: {', '.join(missing)}")

        self.partitions = list(partitions)
        self.clients = dict(clients)
        self.details = details
        self.matcher = matcher
        self.request_timeout = request_timeout
        self.detail_concurrency = detail_concurrency
        self.on_state = on_state

        self.version = 0
        self.state = SessionState.IDLE
        self.query: SearchQuery | None = None
        self.results = AggregatedResultSet()
        self.ranked: list[Hit] = []
        self.match_result: MatchResult | None = None
        self.errors: dict[str, str] = {}
        self.page = 0

        self.partition_filter = ALL_PARTITIONS
        self.format_filter: frozenset[VideoFormat] = frozenset()

    # --- State ---

    @property
    def hits(self) -> list[Hit]:
        return self.results.hits

    @property
    def pagination(self) -> PaginationState:
        return self.results.pagination

    def has_more(self) -> bool:
        return self.pagination.has_more()

    def resolve_partition(self, selector: str) -> str:
        if selector == ALL_PARTITIONS:
            return selector
        for p in self.partitions:
            if selector in (p.id, p.name):
                return p.id
        raise ValueError(f"Unknown partition: {selector}")

    async def _set_state(self, state: SessionState) -> None:
        self.state = state
        if self.on_state is not None:
            await self.on_state(state)

    def _begin(self) -> int:
        self.version += 1
        self.query = None
        self.results = AggregatedResultSet()
        self.ranked = []
        self.match_result = None
        self.errors = {}
        self.page = 0
        return self.version

    def _check_current(self, version: int) -> None:
        if version != self.version:
            raise StaleResponse(version, self.version)

    async def clear(self) -> None:
        """Drop all results; in-flight rounds of the previous query become stale."""
        self._begin()
        self.reset_filters()
        await self._set_state(SessionState.IDLE)

    # --- Rounds ---

    async def _dispatch(self, calls: dict[str, PartitionCall]) -> RoundOutcome:
        outcome = RoundOutcome()

        async def run(partition_id: str, call: PartitionCall) -> None:
            try:
                page = await asyncio.wait_for(call(), timeout=self.request_timeout)
            except Exception as e:
                failure = PartitionUnavailable(partition_id, str(e) or type(e).__name__, status_code_of(e))
                outcome.failures[partition_id] = failure
                outcome.messages[partition_id] = describe_failure(e)
                _logger.warning("Partition unavailable for this round", partition=partition_id, error=str(failure))
                return
            outcome.pages.append((partition_id, page))

        # Join: a slow partition delays the whole round
        await asyncio.gather(*(run(pid, call) for pid, call in calls.items()))
        return outcome

    async def _merge_round(self, version: int, outcome: RoundOutcome) -> list[Hit]:
        await self._set_state(SessionState.MERGING)
        incoming = [hit for _, page in outcome.pages for hit in page.hits]
        merged = merge_hits(self.results.hits, incoming)
        added = merged[len(self.results.hits) :]
        await enrich_hits(added, self.details, self.detail_concurrency)
        self._check_current(version)
        return merged

    async def _rank(self, version: int) -> None:
        await self._set_state(SessionState.RANKING)
        # The state callback may have yielded to a clear or a newer round
        self._check_current(version)
        self.ranked = rank(self.results.hits)
        await self._set_state(SessionState.READY)

    async def search(self, query: SearchQuery) -> list[Hit]:
        """Start a new query on every partition and return the filtered, ranked view."""
        version = self._begin()
        self.query = query
        await self._set_state(SessionState.DISPATCHING)

        calls = {pid: (lambda c=client: c.search(query)) for pid, client in self.clients.items()}
        try:
            with session_context(version):
                outcome = await self._dispatch(calls)
                self._check_current(version)
                merged = await self._merge_round(version, outcome)

            self.results.hits = merged
            for pid, page in outcome.pages:
                self.pagination.record_initial(pid, page.continuation_token, page.total_count)
            self.errors = outcome.messages
            await self._rank(version)
        except StaleResponse as e:
            _logger.debug("Discarding stale search round", error=str(e))
            return self.view()

        _logger.info(
            "Search round complete",
            hits=len(self.hits),
            has_more=self.has_more(),
            failed=sorted(outcome.failures),
        )
        return self.view()

    async def load_more(self) -> list[Hit]:
        """Continue every partition that still has a token.

        A no-op while another round is in flight or once every partition is exhausted.
        """
        if self.state is not SessionState.READY or not self.has_more():
            return self.view()

        version = self.version
        await self._set_state(SessionState.DISPATCHING)
        calls = {
            pid: (lambda c=self.clients[pid], t=self.pagination.token_for(pid): c.continue_page(t))
            for pid in sorted(self.pagination.tokens_needing_continuation())
        }
        try:
            with session_context(version):
                outcome = await self._dispatch(calls)
                self._check_current(version)
                merged = await self._merge_round(version, outcome)

            self.results.hits = merged
            # Failed partitions keep their token so a later trigger retries them
            for pid, page in outcome.pages:
                self.pagination.record_continuation(pid, page.continuation_token)
            if outcome.pages:
                self.page += 1
            self.errors = outcome.messages
            await self._rank(version)
        except StaleResponse as e:
            _logger.debug("Discarding stale continuation round", error=str(e))
        return self.view()

    async def find_matches(
        self,
        source_entity: str,
        source_partition: str,
        target_partition: str,
        candidates: list[str] | None = None,
        progress: ProgressCallback | None = None,
    ) -> MatchResult:
        """Rank entities of the target partition against a reference video.

        Reports no matches at all when embeddings are not ready.
        """
        if self.matcher is None:
            raise RuntimeError("Cross-modal matching is not configured")
        source_partition = self.resolve_partition(source_partition)
        target_partition = self.resolve_partition(target_partition)

        version = self._begin()
        await self._set_state(SessionState.DISPATCHING)
        try:
            with session_context(version):
                result = await self.matcher.find_matches(
                    source_entity, source_partition, target_partition, candidates=candidates, progress=progress
                )
            self._check_current(version)
            await self._set_state(SessionState.RANKING)
            self._check_current(version)
        except ReadinessFailure as e:
            if version != self.version:
                return MatchResult(matches=[], readiness=e.state)
            _logger.warning("Embeddings not ready, reporting no matches", error=str(e))
            self.match_result = MatchResult(matches=[], readiness=e.state)
            await self._set_state(SessionState.READY)
            return self.match_result
        except StaleResponse as e:
            _logger.debug("Discarding stale match round", error=str(e))
            return MatchResult(matches=[], readiness=ReadinessState(0, 0, False))

        self.match_result = result
        await self._set_state(SessionState.READY)
        return result

    # --- View ---

    def set_filters(
        self,
        partition: str | None = None,
        formats: Iterable[str | VideoFormat] | None = None,
    ) -> list[Hit]:
        if partition is not None:
            self.partition_filter = self.resolve_partition(partition)
        if formats is not None:
            self.format_filter = parse_formats(formats)
        return self.view()

    def reset_filters(self) -> None:
        self.partition_filter = ALL_PARTITIONS
        self.format_filter = frozenset()

    def view(self) -> list[Hit]:
        return filter_hits(self.ranked, self.partition_filter, self.format_filter)

    def total_for(self, partition_id: str) -> int:
        declared = self.pagination.declared_total(partition_id)
        if declared:
            return declared
        return self.results.count_for(partition_id)

    def total_all(self) -> int:
        declared = sum(self.pagination.declared_total(p.id) or 0 for p in self.partitions)
        return declared if declared > 0 else len(self.hits)

    def facet_counts(self) -> list[FacetSegment]:
        total = self.total_all()
        segments = [FacetSegment(ALL_PARTITIONS, f"All ({total})", total)]
        for p in self.partitions:
            count = self.total_for(p.id)
            if count > 0:
                segments.append(FacetSegment(p.id, f"{p.name.title()} ({count})", count))
        return segments
