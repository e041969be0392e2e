from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from vidfed.constants import MSG_AUTH, MSG_FAILED, MSG_RATE_LIMITED, MSG_UNAVAILABLE

if TYPE_CHECKING:
    from vidfed.models import ReadinessState


class VidfedError(Exception):
    """Base error for vidfed."""


class PartitionUnavailable(VidfedError):
    """A partition's search or continuation call failed or timed out.

    The partition contributes zero hits for the round and keeps its stored token.
    """

    def __init__(self, partition_id: str, message: str = "", status_code: int | None = None):
        self.partition_id = partition_id
        self.status_code = status_code
        super().__init__(message or f"partition {partition_id} unavailable")


class ReadinessFailure(VidfedError):
    """Embeddings required for cross-modal matching could not be produced."""

    def __init__(self, state: ReadinessState):
        self.state = state
        super().__init__(f"embeddings not ready ({state.processed_count}/{state.total_count})")


class DetailFetchFailure(VidfedError):
    """Auxiliary metadata for one hit could not be fetched."""

    def __init__(self, entity_id: str, partition_id: str, message: str = ""):
        self.entity_id = entity_id
        self.partition_id = partition_id
        super().__init__(message or f"details unavailable for {entity_id} in {partition_id}")


class StaleResponse(VidfedError):
    """Responses arrived for a query that has since been superseded."""

    def __init__(self, issued_version: int, current_version: int):
        self.issued_version = issued_version
        self.current_version = current_version
        super().__init__(f"response for version {issued_version} arrived at version {current_version}")


def status_code_of(exc: BaseException) -> int | None:
    if isinstance(exc, PartitionUnavailable):
        return exc.status_code
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    return None


def describe_failure(exc: BaseException) -> str:
    """Map a partition failure to the message shown next to its results."""
    if isinstance(exc, TimeoutError):
        return MSG_UNAVAILABLE
    status = status_code_of(exc)
    if status is None:
        return MSG_FAILED
    if status >= 500:
        return MSG_UNAVAILABLE
    if status == 429:
        return MSG_RATE_LIMITED
    if status in (401, 403):
        return MSG_AUTH
    return MSG_FAILED
