"""Batch orchestrator wiring together routing, fetching, extraction, dedup and storage."""

from __future__ import annotations

import time
from concurrent.futures import CancelledError, Future
from concurrent.futures import TimeoutError as FutureTimeout
from datetime import datetime, timezone
from typing import Callable, Mapping, Sequence

import structlog

from .config import GlobalConfig
from .engine import Fetcher, ParsedDocument, SeenUrlSet, WorkerPool, resolve_source
from .engine.extractors import EXTRACTORS, Extractor, get_extractor
from .errors import (
    ExtractionError,
    IngestionError,
    PersistenceError,
    TaskTimeout,
    UnknownSourceError,
)
from .infra import VacancyStore
from .logging_conf import configure_logging, source_logger
from .models import (
    BatchState,
    BatchSummary,
    IngestionOutcome,
    JobRecord,
    OutcomeStatus,
    SourceName,
    TaskState,
)
from .observability import IngestionObserver, NullObserver, timed


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IngestionOrchestrator:
    """Run one fetch/extract/dedup/persist task per URL on a bounded pool."""

    def __init__(
        self,
        config: GlobalConfig,
        repository: VacancyStore,
        *,
        fetcher: Fetcher | None = None,
        pool: WorkerPool | None = None,
        observer: IngestionObserver | None = None,
        seen: SeenUrlSet | None = None,
        router: Callable[[str], SourceName] = resolve_source,
        extractors: Mapping[SourceName, Extractor] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.config = config
        self.repository = repository
        self.logger = configure_logging().bind(component="orchestrator")
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher if fetcher is not None else Fetcher(config.fetch)
        self.pool = pool if pool is not None else WorkerPool(config.ingest.thread_pool_workers)
        self.observer: IngestionObserver = observer if observer is not None else NullObserver()
        self.seen = seen if seen is not None else SeenUrlSet()
        self.router = router
        self.extractors = dict(extractors if extractors is not None else EXTRACTORS)
        self._clock = clock
        if config.ingest.hydrate_seen_on_start:
            self.hydrate_seen()

    # ------------------------------------------------------------------
    def close(self) -> None:
        self.pool.shutdown(wait=False)
        if self._owns_fetcher:
            self.fetcher.close()

    def __enter__(self) -> "IngestionOrchestrator":
        return self

    def __exit__(self, *_exc_info) -> None:
        self.close()

    def hydrate_seen(self) -> int:
        """Load already stored source URLs into the seen set."""

        try:
            urls = self.repository.all_source_urls()
        except Exception as exc:  # noqa: BLE001
            self.logger.warning("seen_hydration_failed", error=str(exc))
            return 0
        added = self.seen.hydrate(urls)
        self.logger.info("seen_hydrated", added=added, total=len(self.seen))
        return added

    # ------------------------------------------------------------------
    def ingest(self, urls: Sequence[str], page_limit_hint: int | None = None) -> BatchSummary:
        """Ingest a batch of listing URLs; per-URL failures never escape."""

        page_limit = page_limit_hint or self.config.ingest.default_page_limit
        deadline = self.config.ingest.task_deadline_seconds
        batch_log = self.logger.bind(batch_size=len(urls), page_limit_hint=page_limit)
        started = time.perf_counter()
        self._batch_state(batch_log, BatchState.STARTED)

        submitted: list[tuple[str, Future[IngestionOutcome]]] = [
            (url, self.pool.submit(self._run_task, url)) for url in urls
        ]

        self._batch_state(batch_log, BatchState.AWAITING_TASKS)
        outcomes = [self._join(url, future, deadline) for url, future in submitted]

        self._batch_state(batch_log, BatchState.AGGREGATING)
        summary = BatchSummary(outcomes=outcomes, page_limit_hint=page_limit)
        for outcome in outcomes:
            # a skipped URL finished without error and counts as parsed
            if outcome.status is OutcomeStatus.FAILED:
                self.observer.parsing_failed(outcome.source_name)
            else:
                self.observer.parsing_succeeded(outcome.source_name)
        summary.duration_seconds = time.perf_counter() - started
        self.observer.record_duration("parsing.batch", summary.duration_seconds)
        summary.database_total = self._database_total(batch_log)

        self._batch_state(batch_log, BatchState.COMPLETED)
        batch_log.info(
            "batch_completed",
            succeeded=summary.succeeded,
            failed=summary.failed,
            skipped=summary.skipped,
            records_found=summary.records_found,
            records_persisted=summary.records_persisted,
            database_total=summary.database_total,
            failures=summary.failures_by_kind(),
        )
        return summary

    # ------------------------------------------------------------------
    def _join(
        self, url: str, future: Future[IngestionOutcome], deadline: float
    ) -> IngestionOutcome:
        try:
            return future.result(timeout=deadline)
        except (FutureTimeout, CancelledError):
            # Running tasks cannot be interrupted; the attempt is orphaned.
            future.cancel()
            source = self.router(url)
            error = TaskTimeout(
                f"Task for {url} exceeded {deadline:g}s deadline", url=url, deadline=deadline
            )
            self.logger.warning("task_timeout", url=url, source=source.value, deadline=deadline)
            return IngestionOutcome(
                url=url,
                source_name=source,
                status=OutcomeStatus.FAILED,
                state=TaskState.FAILED,
                error=error,
                duration_seconds=deadline,
            )

    def _run_task(self, url: str) -> IngestionOutcome:
        started = time.perf_counter()
        source = self.router(url)
        log = source_logger(source.value).bind(url=url)
        state = TaskState.PENDING
        found = 0

        def finish(
            status: OutcomeStatus,
            final: TaskState,
            persisted: int = 0,
            error: IngestionError | None = None,
        ) -> IngestionOutcome:
            return IngestionOutcome(
                url=url,
                source_name=source,
                status=status,
                state=final,
                records_found=found,
                records_persisted=persisted,
                error=error,
                duration_seconds=time.perf_counter() - started,
            )

        try:
            try:
                extractor = get_extractor(source, self.extractors, url=url)
            except UnknownSourceError as exc:
                log.warning("unknown_source_skipped")
                return finish(OutcomeStatus.SKIPPED, TaskState.SKIPPED, error=exc)

            with timed(self.observer, f"parsing.{source.value}"):
                state = self._advance(log, state, TaskState.FETCHING)
                document = self.fetcher.fetch(url)
                state = self._advance(log, state, TaskState.EXTRACTING)
                candidates = self._extract(extractor, document, url)
            found = len(candidates)

            state = self._advance(log, state, TaskState.DEDUPING)
            fresh, claimed = self._claim_new(candidates)

            persisted = 0
            if fresh:
                state = self._advance(log, state, TaskState.PERSISTING)
                persisted = self._persist(fresh, claimed, url)
                if persisted:
                    self.observer.records_persisted(persisted)
                log.info("vacancies_saved", records_found=found, records_persisted=persisted)
            else:
                log.warning("no_new_vacancies", records_found=found)
            self._advance(log, state, TaskState.DONE)
            return finish(OutcomeStatus.SUCCEEDED, TaskState.DONE, persisted=persisted)
        except IngestionError as exc:
            log.error("task_failed", state=state.value, error_kind=exc.kind, error=str(exc))
            return finish(OutcomeStatus.FAILED, TaskState.FAILED, error=exc)
        except Exception as exc:  # noqa: BLE001
            wrapped = ExtractionError(f"Unexpected error while processing {url}: {exc}", url=url)
            wrapped.__cause__ = exc
            log.error("task_failed", state=state.value, error_kind=wrapped.kind, error=str(exc), exc_info=True)
            return finish(OutcomeStatus.FAILED, TaskState.FAILED, error=wrapped)

    def _extract(self, extractor: Extractor, document: ParsedDocument, url: str) -> list[JobRecord]:
        try:
            return list(extractor(document))
        except IngestionError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise ExtractionError(f"Extractor failed for {url}: {exc}", url=url) from exc

    def _claim_new(self, candidates: Sequence[JobRecord]) -> tuple[list[JobRecord], list[str]]:
        """Drop invalid candidates, then atomically reserve unseen source URLs."""

        now = self._clock()
        by_url: dict[str, JobRecord] = {}
        for candidate in candidates:
            if candidate.is_valid:
                by_url.setdefault(candidate.source_url, candidate.with_defaults(now))
        claimed = self.seen.claim(by_url)
        return [by_url[url] for url in claimed], claimed

    def _persist(self, records: list[JobRecord], claimed: list[str], url: str) -> int:
        # Mark seen only after storage accepted the write.
        try:
            persisted = self.repository.save_all(records)
        except PersistenceError:
            self.seen.release(claimed)
            raise
        except Exception as exc:  # noqa: BLE001
            self.seen.release(claimed)
            raise PersistenceError(f"Failed to persist vacancies from {url}: {exc}", url=url) from exc
        self.seen.commit(claimed)
        return len(persisted)

    def _database_total(self, log: structlog.BoundLogger) -> int | None:
        try:
            total = self.repository.count_all()
        except Exception as exc:  # noqa: BLE001
            log.warning("database_total_failed", error=str(exc))
            return None
        self.observer.database_total(total)
        return total

    @staticmethod
    def _advance(log: structlog.BoundLogger, current: TaskState, new: TaskState) -> TaskState:
        log.debug("task_state", previous=current.value, state=new.value)
        return new

    @staticmethod
    def _batch_state(log: structlog.BoundLogger, state: BatchState) -> None:
        log.debug("batch_state", state=state.value)


__all__ = ["IngestionOrchestrator"]
