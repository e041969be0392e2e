import asyncio

from vidfed.backend.http import HttpBackend
from vidfed.config import Config, get_config
from vidfed.logging import get_logger
from vidfed.match.matcher import CrossModalMatcher
from vidfed.match.readiness import ReadinessGate
from vidfed.search.session import AggregationSession

_logger = get_logger(__name__)


class Runtime:
    """Single-user wiring of backend, session and matcher."""

    def __init__(self, config: Config | None = None, backend=None):
        self.config = config or get_config()
        self.backend = backend or HttpBackend(
            self.config.api_url,
            api_key=self.config.api_key,
            timeout=self.config.request_timeout,
        )
        self.partitions = self.config.partitions
        self.gate = ReadinessGate(self.backend, concurrency=self.config.readiness_concurrency)
        self.matcher = CrossModalMatcher(
            similarity=self.backend,
            gate=self.gate,
            catalog=self.backend,
            candidate_limit=self.config.readiness_candidate_limit,
        )
        self.session = AggregationSession(
            partitions=self.partitions,
            clients={p.id: self.backend.partition(p.id, self.config.page_limit) for p in self.partitions},
            details=self.backend,
            matcher=self.matcher,
            request_timeout=self.config.request_timeout,
            detail_concurrency=self.config.detail_concurrency,
        )

    def partition_name(self, partition_id: str) -> str:
        for p in self.partitions:
            if p.id == partition_id:
                return p.name
        return partition_id

    async def close(self) -> None:
        await self.session.clear()
        self.gate.clear()
        await self.backend.close()


_runtime: Runtime | None = None
_runtime_lock = asyncio.Lock()


async def get_runtime_async() -> Runtime:
    global _runtime
    async with _runtime_lock:
        if _runtime is None:
            _runtime = Runtime()
            _logger.info("Runtime ready", partitions=[p.name for p in _runtime.partitions])
    return _runtime


def get_runtime() -> Runtime:
    if _runtime is None:
        raise RuntimeError("Runtime not initialized. Call get_runtime_async() first.")
    return _runtime


def set_runtime(runtime: Runtime) -> None:
    global _runtime
    _runtime = runtime


async def reset_runtime() -> None:
    global _runtime
    if _runtime is not None:
        await _runtime.close()
        _runtime = None
