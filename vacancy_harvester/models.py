"""Domain records flowing through the ingestion pipeline."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

from .errors import IngestionError

UNSPECIFIED = "unspecified"


class SourceName(str, Enum):
    """Listing sites known to the router."""

    HH = "hh"
    SUPERJOB = "superjob"
    HABR = "habr"
    UNKNOWN = "unknown"


class TaskState(str, Enum):
    """Lifecycle of a single URL task."""

    PENDING = "pending"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    DEDUPING = "deduping"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"
    SKIPPED = "skipped"


class BatchState(str, Enum):
    STARTED = "started"
    AWAITING_TASKS = "awaiting_tasks"
    AGGREGATING = "aggregating"
    COMPLETED = "completed"


class OutcomeStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class JobRecord:
    """A vacancy extracted from one listing fragment."""

    title: str
    source_url: str
    source_name: SourceName
    company: str = ""
    salary_text: str | None = None
    requirements_text: str | None = None
    city: str = ""
    published_at: datetime | None = None
    ingested_at: datetime | None = None

    @property
    def is_valid(self) -> bool:
        return bool(self.title and self.title.strip())

    def with_defaults(self, now: datetime) -> "JobRecord":
        """Backfill display fields that the listing did not provide."""

        return replace(
            self,
            company=self.company.strip() if self.company and self.company.strip() else UNSPECIFIED,
            city=self.city.strip() if self.city and self.city.strip() else UNSPECIFIED,
            published_at=self.published_at or now,
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "company": self.company,
            "salary_text": self.salary_text,
            "requirements_text": self.requirements_text,
            "city": self.city,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "source_url": self.source_url,
            "source_name": self.source_name.value,
            "ingested_at": self.ingested_at.isoformat() if self.ingested_at else None,
        }


@dataclass(slots=True)
class IngestionOutcome:
    """Per-URL result produced by one orchestrator task."""

    url: str
    source_name: SourceName
    status: OutcomeStatus
    state: TaskState
    records_found: int = 0
    records_persisted: int = 0
    error: IngestionError | None = None
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED

    def as_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "source": self.source_name.value,
            "status": self.status.value,
            "state": self.state.value,
            "records_found": self.records_found,
            "records_persisted": self.records_persisted,
            "error_kind": self.error.kind if self.error else None,
            "error": str(self.error) if self.error else None,
            "duration_seconds": round(self.duration_seconds, 3),
        }


@dataclass(slots=True)
class BatchSummary:
    """Aggregate view over one ingestion batch."""

    outcomes: list[IngestionOutcome] = field(default_factory=list)
    page_limit_hint: int | None = None
    database_total: int | None = None
    duration_seconds: float = 0.0

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is status)

    @property
    def succeeded(self) -> int:
        return self._count(OutcomeStatus.SUCCEEDED)

    @property
    def failed(self) -> int:
        return self._count(OutcomeStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(OutcomeStatus.SKIPPED)

    @property
    def records_found(self) -> int:
        return sum(outcome.records_found for outcome in self.outcomes)

    @property
    def records_persisted(self) -> int:
        return sum(outcome.records_persisted for outcome in self.outcomes)

    def failures_by_kind(self) -> dict[str, int]:
        counter = Counter(
            outcome.error.kind
            for outcome in self.outcomes
            if outcome.status is OutcomeStatus.FAILED and outcome.error is not None
        )
        return dict(counter)

    def outcome_for(self, url: str) -> IngestionOutcome | None:
        return next((outcome for outcome in self.outcomes if outcome.url == url), None)

    def as_dict(self) -> dict[str, Any]:
        return {
            "urls": len(self.outcomes),
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "records_found": self.records_found,
            "records_persisted": self.records_persisted,
            "database_total": self.database_total,
            "page_limit_hint": self.page_limit_hint,
            "duration_seconds": round(self.duration_seconds, 3),
            "failures_by_kind": self.failures_by_kind(),
            "outcomes": [outcome.as_dict() for outcome in self.outcomes],
        }


__all__ = [
    "BatchState",
    "BatchSummary",
    "IngestionOutcome",
    "JobRecord",
    "OutcomeStatus",
    "SourceName",
    "TaskState",
    "UNSPECIFIED",
]
