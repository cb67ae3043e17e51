"""Periodic ingestion on top of an APScheduler background scheduler."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Sequence

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..config import ScheduleSettings
from ..logging_conf import configure_logging

INGEST_JOB_ID = "ingest::periodic"

IngestCallback = Callable[[Sequence[str], int], object]


def _describe(job) -> dict:
    return {
        "id": job.id,
        "trigger": str(job.trigger),
        # pending jobs of a scheduler that has not started have no next run yet
        "next_run_time": getattr(job, "next_run_time", None),
    }


class APSchedulerAdapter:
    """Owns the scheduler and the single periodic ingestion job."""

    def __init__(self, scheduler: BackgroundScheduler | None = None) -> None:
        self.scheduler = scheduler or BackgroundScheduler(timezone=timezone.utc)
        self.logger = configure_logging().bind(component="scheduler")
        self.running = False

    def start(self) -> None:
        if self.running:
            return
        self.scheduler.start()
        self.running = True
        self.logger.info("scheduler_started", jobs=len(self.list_jobs()))

    def shutdown(self) -> None:
        if not self.running:
            return
        self.scheduler.shutdown(wait=False)
        self.running = False
        self.logger.info("scheduler_stopped")

    def schedule_ingestion(
        self,
        callback: IngestCallback,
        urls: Sequence[str],
        page_limit: int,
        interval_seconds: float,
        initial_delay_seconds: float = 0.0,
        job_id: str = INGEST_JOB_ID,
    ) -> None:
        """Run ``callback(urls, page_limit)`` every ``interval_seconds``.

        The first run happens ``initial_delay_seconds`` from now. Runs never
        overlap: a tick that fires while the previous batch is still busy is
        dropped, and missed ticks collapse into one.
        """

        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        first_run = datetime.now(timezone.utc) + timedelta(seconds=max(initial_delay_seconds, 0.0))
        self.scheduler.add_job(
            callback,
            trigger=IntervalTrigger(seconds=float(interval_seconds), start_date=first_run),
            id=job_id,
            args=[list(urls), page_limit],
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.logger.info(
            "job_scheduled",
            job_id=job_id,
            urls=len(urls),
            page_limit=page_limit,
            interval_seconds=interval_seconds,
            first_run=first_run.isoformat(),
        )

    def schedule_from_settings(self, settings: ScheduleSettings, callback: IngestCallback) -> None:
        self.schedule_ingestion(
            callback,
            settings.urls,
            settings.page_limit,
            settings.interval_seconds,
            settings.initial_delay_seconds,
        )

    def remove(self, job_id: str = INGEST_JOB_ID) -> None:
        try:
            self.scheduler.remove_job(job_id)
        except Exception as exc:  # noqa: BLE001
            self.logger.warning("job_remove_failed", job_id=job_id, error=str(exc))

    def list_jobs(self) -> list[dict]:
        return [_describe(job) for job in self.scheduler.get_jobs()]


__all__ = ["APSchedulerAdapter", "INGEST_JOB_ID"]
