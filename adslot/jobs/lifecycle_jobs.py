"""Scheduled job bodies for the advert lifecycle.

Each job opens its own session, runs one service call and logs the outcome.
Failures are logged and swallowed so the scheduler thread keeps running;
the next tick simply tries again.
"""
from __future__ import annotations

import time
from datetime import date
from typing import Any, Callable, Optional

from sqlalchemy.orm import Session

from adslot.database import SessionLocal
from adslot.services.lifecycle import cleanup_old_assignments, notify_expiring_adverts, run_lifecycle_sweep
from adslot.utils import get_logger, log_performance

logger = get_logger(__name__)

# Last failure per job name; the detailed health endpoint reports these.
LAST_FAILURES: dict[str, dict[str, Any]] = {}


def _run(job_name: str, work: Callable[[Session], Any]) -> Optional[Any]:
    start = time.time()
    logger.info("Scheduled job started", job=job_name)
    session: Session = SessionLocal()
    try:
        outcome = work(session)
    except Exception as e:
        logger.error("Scheduled job failed", job=job_name, error=str(e), exc_info=True)
        LAST_FAILURES[job_name] = {"error": str(e), "type": type(e).__name__, "at": time.time()}
        return None
    finally:
        session.close()
    LAST_FAILURES.pop(job_name, None)
    log_performance(f"job:{job_name}", (time.time() - start) * 1000)
    return outcome


def lifecycle_sweep_job(today: Optional[date] = None) -> Optional[dict[str, int]]:
    result = _run("lifecycle_sweep", lambda s: run_lifecycle_sweep(s, today))
    if result is None:
        return None
    logger.info("Lifecycle sweep job finished", **result.as_dict())
    return result.as_dict()


def assignment_cleanup_job(today: Optional[date] = None) -> Optional[int]:
    return _run("assignment_cleanup", lambda s: cleanup_old_assignments(s, today))


def expiring_adverts_job(today: Optional[date] = None) -> Optional[int]:
    return _run("expiring_adverts", lambda s: notify_expiring_adverts(s, today))


__all__ = ["LAST_FAILURES", "lifecycle_sweep_job", "assignment_cleanup_job", "expiring_adverts_job"]
