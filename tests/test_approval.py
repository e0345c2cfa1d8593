import threading
import time
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import SQLAlchemyError

from adslot.errors import ConflictError, InvalidStateError, NotFoundError
from adslot.models.db import DailySlotAssignment, Invoice, Notification
from adslot.models.db.enums import AdvertCategory, AdvertStatus, NotificationSeverity
from adslot.services.reservations import approve_advert
from conftest import TestingSessionLocal, assignment_dates


def test_clean_approval_schedules_every_day(db_session, slot, admin, advert_factory):
    advert = advert_factory(start_date=date(2024, 1, 1), days_paid=3, category=AdvertCategory.FINANCE)

    approved = approve_advert(db_session, advert.id, slot.id, admin.id)

    assert approved.status == AdvertStatus.ACTIVE
    assert approved.assigned_slot_id == slot.id
    assert approved.end_date == date(2024, 1, 3)
    assert approved.remaining_days == 3
    assert approved.approved_by == admin.id
    assert approved.approved_at is not None
    assert assignment_dates(db_session, advert.id) == [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)]


def test_approval_raises_commission_invoice_and_notifies_rep(db_session, slot, admin, sales_rep, advert_factory):
    advert = advert_factory(amount_paid=Decimal("250.00"), client_name="Acme Bank")

    approve_advert(db_session, advert.id, slot.id, admin.id)

    invoice = db_session.query(Invoice).filter_by(advert_id=advert.id).one()
    assert invoice.amount == Decimal("250.00")
    assert invoice.commission_amount == Decimal("25.00")
    assert invoice.sales_rep_id == sales_rep.id
    assert invoice.approved_by == admin.id

    note = db_session.query(Notification).filter_by(user_id=sales_rep.id).one()
    assert note.title == "Advert Approved"
    assert note.severity == NotificationSeverity.SUCCESS
    assert note.related_advert_id == advert.id
    assert "Acme Bank" in note.message


def test_capacity_conflict_inserts_nothing(db_session, slot, admin, advert_factory, occupy):
    occupy(slot, date(2024, 1, 2), category=AdvertCategory.SOLAR)
    occupy(slot, date(2024, 1, 2), category=AdvertCategory.HERBS)
    advert = advert_factory(start_date=date(2024, 1, 1), days_paid=3, category=AdvertCategory.FINANCE)

    with pytest.raises(ConflictError) as excinfo:
        approve_advert(db_session, advert.id, slot.id, admin.id)

    assert excinfo.value.kind == "capacity"
    assert excinfo.value.date == date(2024, 1, 2)
    db_session.expire_all()
    assert db_session.get(type(advert), advert.id).status == AdvertStatus.PENDING
    assert assignment_dates(db_session, advert.id) == []
    assert db_session.query(Invoice).count() == 0


def test_category_conflict_is_category_specific(db_session, slot, admin, advert_factory, occupy):
    occupy(slot, date(2024, 1, 2), category=AdvertCategory.FINANCE, client_name="Acme Bank")
    finance = advert_factory(start_date=date(2024, 1, 1), days_paid=3, category=AdvertCategory.FINANCE)
    technology = advert_factory(start_date=date(2024, 1, 1), days_paid=3, category=AdvertCategory.TECHNOLOGY)

    with pytest.raises(ConflictError) as excinfo:
        approve_advert(db_session, finance.id, slot.id, admin.id)
    assert excinfo.value.kind == "category"
    assert excinfo.value.conflicting_client == "Acme Bank"
    assert excinfo.value.date == date(2024, 1, 2)

    approved = approve_advert(db_session, technology.id, slot.id, admin.id)
    assert approved.status == AdvertStatus.ACTIVE


def test_slot_never_exceeds_capacity_across_approvals(db_session, slot, admin, advert_factory):
    categories = [AdvertCategory.FINANCE, AdvertCategory.SOLAR, AdvertCategory.TRAVEL]
    adverts = [advert_factory(start_date=date(2024, 5, 1), days_paid=2, category=c) for c in categories]

    approve_advert(db_session, adverts[0].id, slot.id, admin.id)
    approve_advert(db_session, adverts[1].id, slot.id, admin.id)
    with pytest.raises(ConflictError):
        approve_advert(db_session, adverts[2].id, slot.id, admin.id)

    for day in (date(2024, 5, 1), date(2024, 5, 2)):
        count = db_session.query(DailySlotAssignment).filter_by(slot_id=slot.id, assignment_date=day).count()
        assert count == 2


def test_failure_after_rows_staged_rolls_everything_back(db_session, slot, admin, advert_factory, monkeypatch):
    advert = advert_factory()

    def broken_invoice(*args, **kwargs):
        raise RuntimeError("invoice store unavailable")

    monkeypatch.setattr("adslot.services.reservations.create_invoice", broken_invoice)

    with pytest.raises(RuntimeError):
        approve_advert(db_session, advert.id, slot.id, admin.id)

    db_session.expire_all()
    reloaded = db_session.get(type(advert), advert.id)
    assert reloaded.status == AdvertStatus.PENDING
    assert reloaded.assigned_slot_id is None
    assert reloaded.end_date is None
    assert assignment_dates(db_session, advert.id) == []


def test_notification_failure_keeps_the_reservation(db_session, slot, admin, advert_factory, monkeypatch):
    advert = advert_factory()

    def broken_notification(**kwargs):
        raise SQLAlchemyError("notifications table locked")

    monkeypatch.setattr("adslot.services.notifications.Notification", broken_notification)

    approved = approve_advert(db_session, advert.id, slot.id, admin.id)

    assert approved.status == AdvertStatus.ACTIVE
    assert len(assignment_dates(db_session, advert.id)) == 3
    assert db_session.query(Notification).count() == 0


def test_only_pending_adverts_can_be_approved(db_session, slot, admin, advert_factory):
    advert = advert_factory(slot=slot)

    with pytest.raises(InvalidStateError):
        approve_advert(db_session, advert.id, slot.id, admin.id)


def test_missing_advert_or_slot(db_session, slot, admin, advert_factory):
    with pytest.raises(NotFoundError) as missing_advert:
        approve_advert(db_session, 987654, slot.id, admin.id)
    assert missing_advert.value.entity == "advert"

    advert = advert_factory()
    with pytest.raises(NotFoundError) as missing_slot:
        approve_advert(db_session, advert.id, 987654, admin.id)
    assert missing_slot.value.entity == "time_slot"
    db_session.expire_all()
    assert db_session.get(type(advert), advert.id).status == AdvertStatus.PENDING


def test_concurrent_approvals_cannot_overbook(db_session, slot, admin, advert_factory, occupy, monkeypatch):
    day = date(2024, 7, 1)
    occupy(slot, day, category=AdvertCategory.OTHER)
    advert_ids = [
        advert_factory(start_date=day, days_paid=1, category=category).id
        for category in (AdvertCategory.FINANCE, AdvertCategory.SOLAR)
    ]
    slot_id, admin_id = slot.id, admin.id

    from adslot.services import reservations

    real_ensure = reservations.ensure_available

    def slow_ensure(*args, **kwargs):
        # Hold each approval between its check and its insert.
        real_ensure(*args, **kwargs)
        time.sleep(0.3)

    monkeypatch.setattr(reservations, "ensure_available", slow_ensure)

    start = threading.Barrier(len(advert_ids))
    outcomes = {}

    def approve_in_thread(advert_id):
        session = TestingSessionLocal()
        try:
            start.wait(timeout=5)
            approve_advert(session, advert_id, slot_id, admin_id)
            outcomes[advert_id] = "ok"
        except ConflictError as e:
            outcomes[advert_id] = e.kind
        finally:
            session.close()

    threads = [threading.Thread(target=approve_in_thread, args=(advert_id,)) for advert_id in advert_ids]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert sorted(outcomes.values()) == ["capacity", "ok"]
    db_session.expire_all()
    assert db_session.query(DailySlotAssignment).filter_by(slot_id=slot_id, assignment_date=day).count() == 2
