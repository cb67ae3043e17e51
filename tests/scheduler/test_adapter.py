from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from apscheduler.triggers.interval import IntervalTrigger

from vacancy_harvester.config import ScheduleSettings
from vacancy_harvester.scheduler import INGEST_JOB_ID, APSchedulerAdapter


class StubScheduler:
    def __init__(self) -> None:
        self.calls: list[dict] = []

    def add_job(self, callback, trigger, id, args, replace_existing, max_instances, coalesce):  # noqa: ANN001
        self.calls.append(
            {
                "callback": callback,
                "trigger": trigger,
                "id": id,
                "args": args,
                "replace_existing": replace_existing,
                "max_instances": max_instances,
                "coalesce": coalesce,
            }
        )

    def get_jobs(self):
        return []

    def start(self):
        self.calls.append({"event": "started"})

    def shutdown(self, wait=False):  # noqa: ARG002
        self.calls.append({"event": "shutdown"})

    def remove_job(self, job_id):  # noqa: ANN001
        if job_id != INGEST_JOB_ID:
            raise KeyError(job_id)
        self.calls.append({"event": "remove", "id": job_id})


def test_schedule_ingestion_builds_interval_trigger() -> None:
    stub = StubScheduler()
    adapter = APSchedulerAdapter(scheduler=stub)
    urls = ["https://hh.ru/search/vacancy?text=java"]

    before = datetime.now(timezone.utc)
    adapter.schedule_ingestion(lambda u, p: None, urls, 5, interval_seconds=300, initial_delay_seconds=5)

    job = stub.calls[0]
    assert job["id"] == INGEST_JOB_ID
    assert job["args"] == [urls, 5]
    assert job["replace_existing"] is True
    assert job["max_instances"] == 1
    trigger = job["trigger"]
    assert isinstance(trigger, IntervalTrigger)
    assert trigger.interval.total_seconds() == 300
    assert before + timedelta(seconds=4) <= trigger.start_date <= before + timedelta(seconds=10)


def test_schedule_from_settings_uses_defaults() -> None:
    stub = StubScheduler()
    adapter = APSchedulerAdapter(scheduler=stub)
    settings = ScheduleSettings()
    callback = object()

    adapter.schedule_from_settings(settings, callback)  # type: ignore[arg-type]

    job = stub.calls[0]
    assert job["callback"] is callback
    assert job["args"] == [settings.urls, settings.page_limit]
    assert job["trigger"].interval.total_seconds() == 300


def test_lifecycle_and_remove() -> None:
    stub = StubScheduler()
    adapter = APSchedulerAdapter(scheduler=stub)

    adapter.start()
    adapter.start()
    adapter.remove()
    adapter.remove("missing")
    adapter.shutdown()
    adapter.shutdown()

    assert stub.calls == [{"event": "started"}, {"event": "remove", "id": INGEST_JOB_ID}, {"event": "shutdown"}]
    assert adapter.list_jobs() == []


def test_rejects_non_positive_interval() -> None:
    adapter = APSchedulerAdapter(scheduler=StubScheduler())
    with pytest.raises(ValueError):
        adapter.schedule_ingestion(lambda u, p: None, [], 5, interval_seconds=0)


def test_real_scheduler_registers_job() -> None:
    adapter = APSchedulerAdapter()
    adapter.schedule_ingestion(lambda u, p: None, ["https://hh.ru/"], 1, interval_seconds=60, initial_delay_seconds=30)
    jobs = adapter.list_jobs()
    assert [job["id"] for job in jobs] == [INGEST_JOB_ID]
    assert "interval" in jobs[0]["trigger"]
