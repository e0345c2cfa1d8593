import os
import secrets
import sys
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Ensure project root on sys.path so 'adslot' resolves without an editable install
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# Must be set before adslot.config is imported
os.environ.setdefault("ENABLE_SCHEDULER", "false")
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("SCHEDULE_TIMEZONE", "UTC")

from adslot.main import app  # noqa: E402
from adslot.database import Base  # noqa: E402
from adslot.api import deps  # noqa: E402
# All models import through adslot.models.db so create_all() maps every relationship target.
from adslot.models.db import Advert, DailySlotAssignment, TimeSlot, User  # noqa: E402
from adslot.models.db.enums import AdvertCategory, AdvertStatus, UserRole  # noqa: E402
from adslot.services.slot_catalog import seed_default_slots  # noqa: E402

# File-based SQLite so notification writes (own session) and job code
# (own SessionLocal) see the same data as the test session.
SQLALCHEMY_TEST_URL = "sqlite+pysqlite:///./test_adslot.db"
engine = create_engine(
    SQLALCHEMY_TEST_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Job modules imported SessionLocal at import time; point them at the test DB.
import adslot.database as _adslot_database  # noqa: E402
_adslot_database.SessionLocal = TestingSessionLocal  # type: ignore
import adslot.jobs.lifecycle_jobs as _jobs_mod  # noqa: E402
_jobs_mod.SessionLocal = TestingSessionLocal  # type: ignore

@pytest.fixture(scope="session", autouse=True)
def create_test_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    with TestingSessionLocal() as session:
        seed_default_slots(session)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    try:
        os.remove("test_adslot.db")
    except OSError:
        pass

@pytest.fixture(autouse=True)
def _clean_tables(create_test_db):
    """Empty every table except the seeded slot grid after each test."""
    yield
    with TestingSessionLocal() as session:
        for table in reversed(Base.metadata.sorted_tables):
            if table.name != TimeSlot.__tablename__:
                session.execute(table.delete())
        session.commit()
    _jobs_mod.LAST_FAILURES.clear()

@pytest.fixture()
def db_session():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

# Override dependency
def _override_get_db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

app.dependency_overrides[deps.get_db] = _override_get_db

@pytest.fixture()
def client():
    return TestClient(app)

# ---------- Data factory helpers ----------

@pytest.fixture()
def slots(db_session):
    return db_session.query(TimeSlot).order_by(TimeSlot.slot_time).all()

@pytest.fixture()
def slot(slots):
    return slots[0]

@pytest.fixture()
def user_factory(db_session):
    def _create(role: UserRole = UserRole.SALES_REP, *, full_name: str | None = None, is_active: bool = True):
        suffix = secrets.token_hex(4)
        user = User(
            full_name=full_name or f"{role.value.title()} {suffix}",
            email=f"{role.value}_{suffix}@example.com",
            api_key=f"key_{secrets.token_hex(12)}",
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _create

@pytest.fixture()
def admin(user_factory):
    return user_factory(UserRole.ADMIN, full_name="Ada Admin")

@pytest.fixture()
def sales_rep(user_factory):
    return user_factory(UserRole.SALES_REP, full_name="Sam Sales")

def bearer(user: User) -> dict:
    return {"Authorization": f"Bearer {user.api_key}"}

@pytest.fixture()
def admin_headers(admin):
    return bearer(admin)

@pytest.fixture()
def rep_headers(sales_rep):
    return bearer(sales_rep)

@pytest.fixture()
def advert_factory(db_session, sales_rep):
    """Create an advert directly in the DB (pending unless a slot is given).

    Passing ``slot`` creates a scheduled advert together with one assignment
    row per day of its run, the way approval would have left it.
    """
    def _create(
        *,
        client_name: str | None = None,
        category: AdvertCategory = AdvertCategory.FINANCE,
        start_date: date = date(2024, 1, 1),
        days_paid: int = 3,
        amount_paid: Decimal = Decimal("100.00"),
        status: AdvertStatus | None = None,
        slot: TimeSlot | None = None,
        remaining_days: int | None = None,
        owner: User | None = None,
        with_assignments: bool = True,
    ):
        scheduled = slot is not None
        advert = Advert(
            client_name=client_name or f"Client {secrets.token_hex(3)}",
            category=category,
            caption="Fresh deals every day",
            days_paid=days_paid,
            payment_date=start_date,
            amount_paid=amount_paid,
            start_date=start_date,
            status=status or (AdvertStatus.ACTIVE if scheduled else AdvertStatus.PENDING),
            sales_rep_id=(owner or sales_rep).id,
        )
        if scheduled:
            advert.assigned_slot_id = slot.id
            advert.end_date = start_date + timedelta(days=days_paid - 1)
            advert.remaining_days = days_paid if remaining_days is None else remaining_days
        db_session.add(advert)
        db_session.flush()
        if scheduled and with_assignments:
            db_session.add_all(
                DailySlotAssignment(
                    advert_id=advert.id,
                    slot_id=slot.id,
                    assignment_date=start_date + timedelta(days=i),
                )
                for i in range(days_paid)
            )
        db_session.commit()
        db_session.refresh(advert)
        return advert
    return _create

@pytest.fixture()
def occupy(advert_factory):
    """Book ``slot`` for a single ``day`` with an active advert of ``category``."""
    def _occupy(slot: TimeSlot, day: date, *, category: AdvertCategory = AdvertCategory.OTHER, client_name: str | None = None):
        return advert_factory(
            slot=slot,
            start_date=day,
            days_paid=1,
            category=category,
            client_name=client_name,
        )
    return _occupy

def assignment_dates(session, advert_id: int) -> list[date]:
    rows = (
        session.query(DailySlotAssignment.assignment_date)
        .filter(DailySlotAssignment.advert_id == advert_id)
        .order_by(DailySlotAssignment.assignment_date)
        .all()
    )
    return [r.assignment_date for r in rows]
