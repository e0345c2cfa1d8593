from datetime import date

from adslot.models.db import TimeSlot
from adslot.models.db.enums import AdvertCategory
from adslot.services.slot_catalog import default_slot_grid, seed_default_slots


def test_slot_grid_lists_fifteen_hourly_slots(client, rep_headers):
    r = client.get("/api/v1/slots/", headers=rep_headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert len(body) == 15
    assert body[0]["slot_time"] == "06:00"
    assert body[0]["slot_label"] == "06:00 AM"
    assert body[7]["slot_label"] == "01:00 PM"
    assert body[-1]["slot_time"] == "20:00"


def test_seeding_again_adds_nothing(db_session):
    assert seed_default_slots(db_session) == 0
    assert db_session.query(TimeSlot).count() == len(default_slot_grid())


def test_slots_require_authentication(client):
    r = client.get("/api/v1/slots/")
    assert r.status_code in (401, 403)

    r = client.get("/api/v1/slots/", headers={"Authorization": "Bearer not-a-real-key"})
    assert r.status_code == 401


def test_inactive_user_is_rejected(client, user_factory):
    ghost = user_factory(is_active=False)
    r = client.get("/api/v1/slots/", headers={"Authorization": f"Bearer {ghost.api_key}"})
    assert r.status_code == 401


def test_check_availability_lists_conflicts(client, rep_headers, slot, advert_factory, occupy):
    occupy(slot, date(2024, 1, 2), category=AdvertCategory.FINANCE, client_name="Acme Bank")
    advert = advert_factory(start_date=date(2024, 1, 1), days_paid=3, category=AdvertCategory.FINANCE)

    r = client.get(
        "/api/v1/slots/check-availability",
        params={"advertId": advert.id, "slotId": slot.id},
        headers=rep_headers,
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["available"] is False
    assert body["day_count"] == 3
    assert body["conflicts"] == [
        {
            "date": "2024-01-02",
            "kind": "category",
            "detail": body["conflicts"][0]["detail"],
            "conflicting_client": "Acme Bank",
        }
    ]


def test_check_availability_clean_slot(client, rep_headers, slots, advert_factory):
    advert = advert_factory()
    r = client.get(
        "/api/v1/slots/check-availability",
        params={"advertId": advert.id, "slotId": slots[3].id},
        headers=rep_headers,
    )
    assert r.status_code == 200
    assert r.json()["available"] is True
    assert r.json()["conflicts"] == []


def test_check_availability_unknown_slot_or_advert(client, rep_headers, slot, advert_factory):
    advert = advert_factory()
    r = client.get(
        "/api/v1/slots/check-availability",
        params={"advertId": advert.id, "slotId": 9999},
        headers=rep_headers,
    )
    assert r.status_code == 404
    assert r.json()["error"] == "not_found"

    r = client.get(
        "/api/v1/slots/check-availability",
        params={"advertId": 9999, "slotId": slot.id},
        headers=rep_headers,
    )
    assert r.status_code == 404


def test_calendar_shows_occupants_per_slot(client, rep_headers, slots, occupy):
    occupy(slots[0], date(2024, 6, 1), category=AdvertCategory.SOLAR, client_name="Sunny Panels")

    r = client.get("/api/v1/slots/calendar", params={"date": "2024-06-01"}, headers=rep_headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["date"] == "2024-06-01"
    first = body["slots"][0]
    assert first["available"] == 1
    assert first["capacity"] == 2
    assert [a["client_name"] for a in first["adverts"]] == ["Sunny Panels"]
    assert all(s["adverts"] == [] for s in body["slots"][1:])


def test_today_schedule_has_every_slot(client, rep_headers):
    r = client.get("/api/v1/slots/today", headers=rep_headers)
    assert r.status_code == 200
    assert len(r.json()["slots"]) == 15


def test_vacant_slots_skip_full_pairs(client, rep_headers, slots, occupy):
    occupy(slots[0], date(2024, 6, 1), category=AdvertCategory.SOLAR)
    occupy(slots[0], date(2024, 6, 1), category=AdvertCategory.HERBS)
    occupy(slots[1], date(2024, 6, 1), category=AdvertCategory.HERBS)

    r = client.get(
        "/api/v1/slots/vacant",
        params={"startDate": "2024-06-01", "endDate": "2024-06-02"},
        headers=rep_headers,
    )
    assert r.status_code == 200, r.text
    rows = r.json()
    assert len(rows) == 15 * 2 - 1
    assert {"date": "2024-06-01", "slot_id": slots[0].id} not in [
        {"date": row["date"], "slot_id": row["slot_id"]} for row in rows
    ]
    half = next(row for row in rows if row["date"] == "2024-06-01" and row["slot_id"] == slots[1].id)
    assert half["occupied"] == 1
    assert half["available_capacity"] == 1


def test_vacant_slots_range_is_validated(client, rep_headers):
    r = client.get(
        "/api/v1/slots/vacant",
        params={"startDate": "2024-06-05", "endDate": "2024-06-01"},
        headers=rep_headers,
    )
    assert r.status_code == 400
    assert r.json()["error"] == "validation_error"

    r = client.get(
        "/api/v1/slots/vacant",
        params={"startDate": "2024-01-01", "endDate": "2024-12-31"},
        headers=rep_headers,
    )
    assert r.status_code == 400
