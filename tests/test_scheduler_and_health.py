from adslot.jobs import lifecycle_jobs
from adslot.jobs.scheduler import (
    ASSIGNMENT_CLEANUP_JOB_ID,
    EXPIRING_ADVERTS_JOB_ID,
    LIFECYCLE_SWEEP_JOB_ID,
    LifecycleScheduler,
)
from adslot.main import ensure_bootstrap_admin
from adslot.models.db import User
from adslot.models.db.enums import UserRole


def test_scheduler_registers_three_jobs():
    scheduler = LifecycleScheduler()
    assert scheduler.running is False
    ids = sorted(job["id"] for job in scheduler.jobs())
    assert ids == sorted([LIFECYCLE_SWEEP_JOB_ID, ASSIGNMENT_CLEANUP_JOB_ID, EXPIRING_ADVERTS_JOB_ID])


def test_scheduler_start_and_stop():
    scheduler = LifecycleScheduler()
    scheduler.start()
    try:
        assert scheduler.running is True
        assert all(job["next_run"] is not None for job in scheduler.jobs())
    finally:
        scheduler.stop()
    assert scheduler.running is False


def test_health_endpoints(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"

    r = client.get("/health/detailed")
    assert r.status_code == 200
    body = r.json()
    assert body["checks"]["database"] == "healthy"
    assert body["checks"]["scheduler"] == "disabled"
    assert body["status"] == "healthy"


def test_detailed_health_reports_job_failures(client):
    lifecycle_jobs.LAST_FAILURES["lifecycle_sweep"] = {"error": "boom", "type": "RuntimeError", "at": 0}

    body = client.get("/health/detailed").json()

    assert body["status"] == "degraded"
    assert body["checks"]["job_failures"]["lifecycle_sweep"]["error"] == "boom"


def test_bootstrap_admin_is_created_once(db_session, monkeypatch):
    monkeypatch.setattr("adslot.main.ADMIN_BOOTSTRAP_EMAIL", "ops@example.com")
    monkeypatch.setattr("adslot.main.ADMIN_BOOTSTRAP_API_KEY", "bootstrap-key-123")

    ensure_bootstrap_admin(db_session)
    ensure_bootstrap_admin(db_session)

    admins = db_session.query(User).filter(User.email == "ops@example.com").all()
    assert len(admins) == 1
    assert admins[0].role == UserRole.ADMIN
