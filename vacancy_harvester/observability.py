"""Observer interface receiving ingestion signals.

The orchestrator always calls through an :class:`IngestionObserver`;
:class:`NullObserver` is the default so no call site checks for ``None``.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator, Protocol, Sequence

import structlog
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

from .models import SourceName


class IngestionObserver(Protocol):
    def parsing_succeeded(self, source: SourceName) -> None:
        ...

    def parsing_failed(self, source: SourceName) -> None:
        ...

    def records_persisted(self, count: int) -> None:
        ...

    def database_total(self, count: int) -> None:
        ...

    def record_duration(self, name: str, seconds: float) -> None:
        ...


class NullObserver:
    """Discard every signal."""

    def parsing_succeeded(self, source: SourceName) -> None:
        return

    def parsing_failed(self, source: SourceName) -> None:
        return

    def records_persisted(self, count: int) -> None:
        return

    def database_total(self, count: int) -> None:
        return

    def record_duration(self, name: str, seconds: float) -> None:
        return


class LoggingObserver:
    """Emit each signal as a structlog event."""

    def __init__(self, logger: structlog.BoundLogger | None = None) -> None:
        self.logger = logger or structlog.get_logger("vacancy_harvester.metrics")

    def parsing_succeeded(self, source: SourceName) -> None:
        self.logger.info("metric_parsing_succeeded", source=source.value)

    def parsing_failed(self, source: SourceName) -> None:
        self.logger.info("metric_parsing_failed", source=source.value)

    def records_persisted(self, count: int) -> None:
        self.logger.info("metric_records_persisted", count=count)

    def database_total(self, count: int) -> None:
        self.logger.info("metric_database_total", count=count)

    def record_duration(self, name: str, seconds: float) -> None:
        self.logger.info("metric_duration", name=name, seconds=round(seconds, 4))


class PrometheusObserver:
    """Counters, gauge and histogram on a dedicated registry."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.parsing_success = Counter(
            "vacancy_parsing_success",
            "Successful page parses",
            ["source"],
            registry=self.registry,
        )
        self.parsing_error = Counter(
            "vacancy_parsing_error",
            "Failed page parses",
            ["source"],
            registry=self.registry,
        )
        self.saved = Counter(
            "vacancy_saved",
            "Vacancies stored in the database",
            registry=self.registry,
        )
        self.total = Gauge(
            "vacancy_database_total",
            "Vacancies currently in the database",
            registry=self.registry,
        )
        self.duration = Histogram(
            "vacancy_parsing_duration_seconds",
            "Parsing duration",
            ["name"],
            registry=self.registry,
        )

    def parsing_succeeded(self, source: SourceName) -> None:
        self.parsing_success.labels(source=source.value).inc()

    def parsing_failed(self, source: SourceName) -> None:
        self.parsing_error.labels(source=source.value).inc()

    def records_persisted(self, count: int) -> None:
        self.saved.inc(count)
        self.total.inc(count)

    def database_total(self, count: int) -> None:
        self.total.set(count)

    def record_duration(self, name: str, seconds: float) -> None:
        self.duration.labels(name=name).observe(seconds)


class CompositeObserver:
    """Fan every signal out to several observers."""

    def __init__(self, observers: Sequence[IngestionObserver]) -> None:
        self.observers = list(observers)

    def parsing_succeeded(self, source: SourceName) -> None:
        for observer in self.observers:
            observer.parsing_succeeded(source)

    def parsing_failed(self, source: SourceName) -> None:
        for observer in self.observers:
            observer.parsing_failed(source)

    def records_persisted(self, count: int) -> None:
        for observer in self.observers:
            observer.records_persisted(count)

    def database_total(self, count: int) -> None:
        for observer in self.observers:
            observer.database_total(count)

    def record_duration(self, name: str, seconds: float) -> None:
        for observer in self.observers:
            observer.record_duration(name, seconds)


@contextmanager
def timed(observer: IngestionObserver, name: str) -> Iterator[None]:
    started = time.perf_counter()
    try:
        yield
    finally:
        observer.record_duration(name, time.perf_counter() - started)


__all__ = [
    "CompositeObserver",
    "IngestionObserver",
    "LoggingObserver",
    "NullObserver",
    "PrometheusObserver",
    "timed",
]
