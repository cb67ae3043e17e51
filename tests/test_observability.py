from __future__ import annotations

import pytest
from prometheus_client import generate_latest

from vacancy_harvester.models import SourceName
from vacancy_harvester.observability import (
    CompositeObserver,
    LoggingObserver,
    NullObserver,
    PrometheusObserver,
    timed,
)


def _sample(observer: PrometheusObserver, name: str, labels: dict | None = None) -> float | None:
    return observer.registry.get_sample_value(name, labels or {})


def test_prometheus_observer_metric_names() -> None:
    observer = PrometheusObserver()

    observer.parsing_succeeded(SourceName.HH)
    observer.parsing_succeeded(SourceName.HH)
    observer.parsing_failed(SourceName.HABR)
    observer.records_persisted(5)
    observer.database_total(42)
    observer.record_duration("parsing.hh", 0.25)

    assert _sample(observer, "vacancy_parsing_success_total", {"source": "hh"}) == 2
    assert _sample(observer, "vacancy_parsing_error_total", {"source": "habr"}) == 1
    assert _sample(observer, "vacancy_saved_total") == 5
    assert _sample(observer, "vacancy_database_total") == 42
    assert _sample(observer, "vacancy_parsing_duration_seconds_count", {"name": "parsing.hh"}) == 1
    assert b"vacancy_parsing_duration_seconds_bucket" in generate_latest(observer.registry)


def test_prometheus_observers_have_independent_registries() -> None:
    first = PrometheusObserver()
    second = PrometheusObserver()
    first.records_persisted(1)
    assert _sample(second, "vacancy_saved_total") == 0


def test_composite_fans_out() -> None:
    left, right = PrometheusObserver(), PrometheusObserver()
    composite = CompositeObserver([left, NullObserver(), right])

    composite.parsing_failed(SourceName.SUPERJOB)
    composite.database_total(3)

    for observer in (left, right):
        assert _sample(observer, "vacancy_parsing_error_total", {"source": "superjob"}) == 1
        assert _sample(observer, "vacancy_database_total") == 3


def test_logging_observer_emits_events() -> None:
    events: list[tuple[str, dict]] = []

    class Capture:
        def info(self, event: str, **kwargs) -> None:
            events.append((event, kwargs))

    observer = LoggingObserver(logger=Capture())
    observer.parsing_succeeded(SourceName.HH)
    observer.records_persisted(2)

    assert events == [
        ("metric_parsing_succeeded", {"source": "hh"}),
        ("metric_records_persisted", {"count": 2}),
    ]


def test_timed_records_even_on_error() -> None:
    observer = PrometheusObserver()
    with pytest.raises(RuntimeError):
        with timed(observer, "parsing.superjob"):
            raise RuntimeError("boom")
    assert _sample(observer, "vacancy_parsing_duration_seconds_count", {"name": "parsing.superjob"}) == 1
