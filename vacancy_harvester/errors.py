"""Error taxonomy for the ingestion pipeline.

Every error here is recoverable at the task boundary: the orchestrator turns
it into a failed (or skipped) outcome and carries on with sibling tasks.
"""

from __future__ import annotations


class IngestionError(Exception):
    """Base class; ``kind`` is the stable label used in summaries and metrics."""

    kind = "ingestion"

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class UnknownSourceError(IngestionError):
    kind = "routing_unknown"


class FetchError(IngestionError):
    kind = "fetch"

    def __init__(
        self, message: str, *, url: str | None = None, status_code: int | None = None
    ) -> None:
        super().__init__(message, url=url)
        self.status_code = status_code


class ExtractionError(IngestionError):
    kind = "extraction"


class PersistenceError(IngestionError):
    kind = "persistence"


class TaskTimeout(IngestionError):
    kind = "timeout"

    def __init__(self, message: str, *, url: str | None = None, deadline: float | None = None) -> None:
        super().__init__(message, url=url)
        self.deadline = deadline


__all__ = [
    "ExtractionError",
    "FetchError",
    "IngestionError",
    "PersistenceError",
    "TaskTimeout",
    "UnknownSourceError",
]
