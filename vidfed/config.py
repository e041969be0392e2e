import json
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from vidfed.constants import (
    BRAND_PARTITION,
    CREATOR_PARTITION,
    DEFAULT_GALLERY_LIMIT,
    DEFAULT_PAGE_LIMIT,
    DEFAULT_REQUEST_TIMEOUT,
    DETAIL_CONCURRENCY,
    MAX_PAGE_LIMIT,
    READINESS_CANDIDATE_LIMIT,
    READINESS_CONCURRENCY,
)
from vidfed.logging import get_logger
from vidfed.models import Partition

VIDFED_DIR = Path.home() / ".vidfed"
SETTINGS_PATH = VIDFED_DIR / "settings.json"

_logger = get_logger(__name__)


def load_user_settings() -> dict:
    if not SETTINGS_PATH.exists():
        return {}
    try:
        return json.loads(SETTINGS_PATH.read_text())
    except (json.JSONDecodeError, OSError):
        _logger.warning("Failed to load user settings", exc_info=True)
        return {}


def save_user_settings(settings: dict) -> None:
    VIDFED_DIR.mkdir(exist_ok=True)
    SETTINGS_PATH.write_text(json.dumps(settings, indent=2))


class Config(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="VIDFED_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
        populate_by_name=True,
    )

    # Search service
    api_url: str = "http://localhost:3000/api"
    api_key: str | None = Field(default=None, alias="VIDEO_SEARCH_API_KEY")

    # Backend index ids of the two content partitions
    brand_partition_id: str
    creator_partition_id: str

    page_limit: int = DEFAULT_PAGE_LIMIT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    detail_concurrency: int = DETAIL_CONCURRENCY
    readiness_concurrency: int = READINESS_CONCURRENCY
    readiness_candidate_limit: int = READINESS_CANDIDATE_LIMIT
    gallery_limit: int = DEFAULT_GALLERY_LIMIT

    log_level: str = "INFO"

    @model_validator(mode="after")
    def _distinct_partitions(self) -> "Config":
        if self.brand_partition_id == self.creator_partition_id:
            raise ValueError("brand_partition_id and creator_partition_id must differ")
        return self

    @field_validator("brand_partition_id", "creator_partition_id")
    @classmethod
    def _validate_partition_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Partition id must not be empty")
        return v

    @field_validator("page_limit")
    @classmethod
    def _validate_page_limit(cls, v: int) -> int:
        if not 1 <= v <= MAX_PAGE_LIMIT:
            raise ValueError(f"page_limit must be 1-{MAX_PAGE_LIMIT}, got {v}")
        return v

    @field_validator("request_timeout")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"request_timeout must be positive, got {v}")
        return v

    @field_validator("detail_concurrency", "readiness_concurrency", "readiness_candidate_limit", "gallery_limit")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"must be at least 1, got {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {v}")
        return v

    @property
    def partitions(self) -> list[Partition]:
        return [
            Partition(id=self.brand_partition_id, name=BRAND_PARTITION),
            Partition(id=self.creator_partition_id, name=CREATOR_PARTITION),
        ]

    def partition_named(self, name: str) -> Partition:
        for p in self.partitions:
            if name in (p.name, p.id):
                return p
        raise ValueError(f"Unknown partition: {name}")

    def other_partition(self, partition: Partition) -> Partition:
        return next(p for p in self.partitions if p.id != partition.id)


PERSIST_KEYS = frozenset(
    {
        "api_url",
        "brand_partition_id",
        "creator_partition_id",
        "page_limit",
        "request_timeout",
        "gallery_limit",
        "log_level",
    }
)


def get_config() -> Config:
    settings = load_user_settings()

    # Build config: init args (settings.json) > env vars > defaults
    overrides = {k: settings[k] for k in PERSIST_KEYS if k in settings}
    return Config(**overrides)  # type: ignore - pydantic handles validation
