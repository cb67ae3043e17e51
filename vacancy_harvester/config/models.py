"""Pydantic models used across vacancy-harvester configuration flow."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_SCHEDULE_URLS = [
    "https://hh.ru/search/vacancy?text=java&area=1",
    "https://www.superjob.ru/vacancy/search/?keywords=java",
    "https://career.habr.com/vacancies?q=java",
]


class FetchSettings(BaseModel):
    """HTTP behaviour of the fetcher."""

    timeout_ms: int = 30000
    user_agent: str = DEFAULT_USER_AGENT
    user_agent_list: list[str] | Path | None = None
    accept_language: str = "ru-RU,ru;q=0.9,en-US;q=0.8,en;q=0.7"

    @field_validator("timeout_ms")
    @classmethod
    def _positive_timeout(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("timeout_ms must be > 0")
        return value

    @model_validator(mode="after")
    def _apply_user_agents(self) -> "FetchSettings":
        if isinstance(self.user_agent_list, Path):
            if not self.user_agent_list.exists():
                raise ValueError(f"UA file not found: {self.user_agent_list}")
            content = self.user_agent_list.read_text(encoding="utf-8").splitlines()
            self.user_agent_list = [line.strip() for line in content if line.strip()]
        return self

    def effective_user_agent(self) -> str:
        """Prefer a Windows UA from the configured list, else the first entry."""

        ua_list = self.user_agent_list
        if isinstance(ua_list, list) and ua_list:
            return next((ua for ua in ua_list if "Windows NT" in ua), ua_list[0])
        return self.user_agent


class IngestSettings(BaseModel):
    """Batch execution knobs."""

    thread_pool_workers: int = Field(default=10, ge=1, le=64)
    task_deadline_seconds: float = 30.0
    default_page_limit: int = Field(default=5, ge=1)
    hydrate_seen_on_start: bool = True

    @field_validator("task_deadline_seconds")
    @classmethod
    def _positive_deadline(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("task_deadline_seconds must be > 0")
        return float(value)


class StorageSettings(BaseModel):
    database_path: Path = Field(default=Path("data/vacancies.db"))

    @field_validator("database_path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)

    def resolved_database_path(self, base_dir: Path) -> Path:
        """Return database path relative to the project root."""

        if not self.database_path.is_absolute():
            return (base_dir / self.database_path).resolve()
        return self.database_path


class ScheduleSettings(BaseModel):
    """Periodic ingestion trigger."""

    interval_seconds: float = 300.0
    initial_delay_seconds: float = 5.0
    urls: list[str] = Field(default_factory=lambda: list(DEFAULT_SCHEDULE_URLS))
    page_limit: int = Field(default=5, ge=1)

    @model_validator(mode="after")
    def _validate_timing(self) -> "ScheduleSettings":
        if self.interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        if self.initial_delay_seconds < 0:
            raise ValueError("initial_delay_seconds must be >= 0")
        return self


class GlobalConfig(BaseModel):
    """Global controls shared by every batch."""

    fetch: FetchSettings = Field(default_factory=FetchSettings)
    ingest: IngestSettings = Field(default_factory=IngestSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    schedule: ScheduleSettings = Field(default_factory=ScheduleSettings)


__all__ = [
    "DEFAULT_SCHEDULE_URLS",
    "DEFAULT_USER_AGENT",
    "FetchSettings",
    "GlobalConfig",
    "IngestSettings",
    "ScheduleSettings",
    "StorageSettings",
]
