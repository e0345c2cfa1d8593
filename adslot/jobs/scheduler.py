"""Background scheduler wiring (APScheduler, one process-local thread)."""
from __future__ import annotations

from typing import Any

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from adslot.config import LIFECYCLE_SETTINGS
from adslot.jobs.lifecycle_jobs import assignment_cleanup_job, expiring_adverts_job, lifecycle_sweep_job
from adslot.utils import get_logger
from adslot.utils.time import schedule_tz

logger = get_logger(__name__)

LIFECYCLE_SWEEP_JOB_ID = "lifecycle_sweep"
ASSIGNMENT_CLEANUP_JOB_ID = "assignment_cleanup"
EXPIRING_ADVERTS_JOB_ID = "expiring_adverts"


class LifecycleScheduler:
    def __init__(self, settings: dict[str, Any] | None = None):
        self.settings = settings or LIFECYCLE_SETTINGS
        self.tz = schedule_tz()
        self._scheduler = BackgroundScheduler(timezone=self.tz)
        self._register()

    def _cron(self, **fields: Any) -> CronTrigger:
        return CronTrigger(timezone=self.tz, **fields)

    def _register(self) -> None:
        s = self.settings
        common = {"replace_existing": True, "max_instances": 1, "coalesce": True}
        self._scheduler.add_job(
            lifecycle_sweep_job,
            self._cron(hour=s["sweep_hour"], minute=s["sweep_minute"]),
            id=LIFECYCLE_SWEEP_JOB_ID,
            **common,
        )
        self._scheduler.add_job(
            assignment_cleanup_job,
            self._cron(day_of_week=s["cleanup_day_of_week"], hour=s["cleanup_hour"], minute=s["cleanup_minute"]),
            id=ASSIGNMENT_CLEANUP_JOB_ID,
            **common,
        )
        self._scheduler.add_job(
            expiring_adverts_job,
            self._cron(hour=s["expiry_notice_hour"], minute=s["expiry_notice_minute"]),
            id=EXPIRING_ADVERTS_JOB_ID,
            **common,
        )

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def jobs(self) -> list[dict[str, Any]]:
        listing = []
        for job in self._scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)  # unset until the scheduler starts
            listing.append({"id": job.id, "next_run": next_run.isoformat() if next_run else None})
        return listing

    def start(self) -> None:
        if self._scheduler.running:  # pragma: no cover
            return
        self._scheduler.start()
        logger.info("Lifecycle scheduler started", timezone=str(self.tz), jobs=[j["id"] for j in self.jobs()])

    def stop(self) -> None:
        if not self._scheduler.running:
            return
        self._scheduler.shutdown(wait=False)
        logger.info("Lifecycle scheduler stopped")


__all__ = [
    "LifecycleScheduler",
    "LIFECYCLE_SWEEP_JOB_ID",
    "ASSIGNMENT_CLEANUP_JOB_ID",
    "EXPIRING_ADVERTS_JOB_ID",
]
