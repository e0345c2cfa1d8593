from datetime import date

from adslot.models.db.enums import AdvertCategory, ConflictKind
from adslot.services.availability import Occupant, covered_dates, evaluate_day, run_end_date


DAY = date(2024, 1, 2)


def test_covered_dates_are_consecutive_and_inclusive():
    assert covered_dates(date(2024, 1, 30), 3) == [date(2024, 1, 30), date(2024, 1, 31), date(2024, 2, 1)]
    assert run_end_date(date(2024, 1, 30), 3) == date(2024, 2, 1)
    assert run_end_date(DAY, 1) == DAY


def test_empty_day_is_free():
    assert evaluate_day(DAY, [], AdvertCategory.FINANCE, capacity=2) is None


def test_full_day_reports_capacity_only():
    occupants = [
        Occupant(1, AdvertCategory.FINANCE, "Acme Bank"),
        Occupant(2, AdvertCategory.SOLAR, "Sunny"),
    ]
    conflict = evaluate_day(DAY, occupants, AdvertCategory.FINANCE, capacity=2)
    assert conflict is not None
    assert conflict.kind == ConflictKind.CAPACITY
    assert conflict.date == DAY
    assert conflict.conflicting_client is None
    assert "2024-01-02" in conflict.detail


def test_same_category_reports_client():
    occupants = [Occupant(1, AdvertCategory.FINANCE, "Acme Bank")]
    conflict = evaluate_day(DAY, occupants, AdvertCategory.FINANCE, capacity=2)
    assert conflict is not None
    assert conflict.kind == ConflictKind.CATEGORY
    assert conflict.conflicting_client == "Acme Bank"


def test_different_category_shares_the_slot():
    occupants = [Occupant(1, AdvertCategory.FINANCE, "Acme Bank")]
    assert evaluate_day(DAY, occupants, AdvertCategory.TECHNOLOGY, capacity=2) is None


def test_conflict_converts_to_error_with_details():
    conflict = evaluate_day(DAY, [Occupant(1, AdvertCategory.LOANS, "QuickCash")], AdvertCategory.LOANS, capacity=2)
    error = conflict.to_error(slot_id=4)
    assert error.kind == "category"
    assert error.details == {
        "date": "2024-01-02",
        "kind": "category",
        "slot_id": 4,
        "conflicting_client": "QuickCash",
    }
