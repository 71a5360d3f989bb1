"""APScheduler wrapper driving the fixed-interval poll."""

from __future__ import annotations

from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..config import ScheduleConfig
from ..logging_conf import configure_logging

POLL_JOB_ID = "poll::feed"


class APSchedulerAdapter:
    """Manage the single interval job that triggers poll cycles."""

    def __init__(self) -> None:
        self.scheduler = BackgroundScheduler()
        self.logger = configure_logging().bind(component="scheduler")
        self.started = False

    def start(self) -> None:
        if not self.started:
            self.scheduler.start()
            self.started = True
            self.logger.info("apscheduler_started")

    def shutdown(self) -> None:
        if self.started:
            self.scheduler.shutdown(wait=False)
            self.started = False
            self.logger.info("apscheduler_stopped")

    def schedule_poll(self, callback: Callable[[], object], schedule: ScheduleConfig) -> None:
        trigger = self._build_trigger(schedule)
        # A tick that lands while the previous cycle is still running is dropped
        self.scheduler.add_job(
            callback,
            trigger=trigger,
            id=POLL_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.logger.info("job_scheduled", job=POLL_JOB_ID, interval_seconds=schedule.interval_seconds)

    def _build_trigger(self, schedule: ScheduleConfig) -> IntervalTrigger:
        if schedule.interval_seconds <= 0:
            raise ValueError("Interval schedule requires a positive number of seconds")
        return IntervalTrigger(seconds=float(schedule.interval_seconds))

    def list_jobs(self) -> list[dict]:
        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append(
                {
                    "id": job.id,
                    "next_run_time": getattr(job, "next_run_time", None),
                    "trigger": str(job.trigger),
                }
            )
        return jobs


__all__ = ["APSchedulerAdapter", "POLL_JOB_ID"]
