import pytest

from intercessors.app import db
from intercessors.models import AvailableSlot
from intercessors.services import assignments, slots
from intercessors.services.errors import ConflictError, NotFoundError, ValidationError
from intercessors.shared.slot_times import (
    all_slot_ranges,
    is_time_in_slot,
    normalize_slot_range,
    parse_slot_range,
)


pytestmark = pytest.mark.smoke


def test_catalog_has_48_half_hour_slots(app):
    labels = [slot.slot_time for slot in slots.list_slots()]
    assert len(labels) == 48
    assert labels[0] == "00:00–00:30"
    assert labels[1] == "00:30–01:00"
    assert labels[-1] == "23:30–24:00"
    assert labels == all_slot_ranges()


def test_seed_catalog_is_idempotent(app):
    assert slots.seed_catalog() == 0
    assert AvailableSlot.query.count() == 48


def test_list_available_excludes_held_and_unavailable(app):
    assignments.claim("u1", "u1@example.com", "22:00–22:30")
    slots.mark_availability("03:00-03:30", False)
    db.session.commit()

    available = [slot.slot_time for slot in slots.list_available()]
    assert "22:00–22:30" not in available
    assert "03:00–03:30" not in available
    assert len(available) == 46
    assert available == sorted(available, key=all_slot_ranges().index)


def test_mark_availability_unknown_slot(app):
    with pytest.raises(ValidationError):
        slots.mark_availability("not a slot", True)


def test_add_duplicate_slot_is_conflict(app):
    with pytest.raises(ConflictError):
        slots.add_slot("05:00–05:30")


def test_get_slot_missing_is_not_found(app):
    db.session.query(AvailableSlot).filter_by(slot_time="05:00–05:30").delete()
    db.session.commit()
    with pytest.raises(NotFoundError):
        slots.get_slot("05:00–05:30")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("22:00-22:30", "22:00–22:30"),
        ("22:00 — 22:30", "22:00–22:30"),
        ("9:30–10:00", "09:30–10:00"),
        ("23:30–24:00", "23:30–24:00"),
    ],
)
def test_normalize_slot_range(raw, expected):
    assert normalize_slot_range(raw) == expected


@pytest.mark.parametrize(
    "raw", ["", "22:00", "22:15–22:45", "22:00–23:00", "24:00–24:30", "25:00–25:30"]
)
def test_malformed_slot_range(raw):
    with pytest.raises(ValidationError):
        parse_slot_range(raw)


def test_is_time_in_slot_boundaries():
    from datetime import datetime, timezone

    assert is_time_in_slot(
        datetime(2025, 3, 7, 22, 0, tzinfo=timezone.utc), "22:00–22:30"
    )
    assert not is_time_in_slot(
        datetime(2025, 3, 7, 22, 30, tzinfo=timezone.utc), "22:00–22:30"
    )
    assert is_time_in_slot(
        datetime(2025, 3, 7, 22, 30, tzinfo=timezone.utc), "22:30–23:00"
    )
    assert not is_time_in_slot(
        datetime(2025, 3, 7, 22, 31, tzinfo=timezone.utc), "22:00–22:30"
    )
    assert is_time_in_slot(
        datetime(2025, 3, 7, 23, 59, tzinfo=timezone.utc), "23:30–24:00"
    )


def test_coverage_report_states(app):
    covered = assignments.claim("u1", "u1@example.com", "01:00–01:30")
    at_risk = assignments.claim("u2", "u2@example.com", "02:00–02:30")
    slots.mark_availability("03:00–03:30", False)
    db.session.commit()
    assignments.record_outcome(at_risk.id, "missed")
    db.session.commit()

    report = slots.coverage_report()
    by_time = {row["slot_time"]: row for row in report["slots"]}
    assert by_time["01:00–01:30"]["coverage"] == "covered"
    assert by_time["01:00–01:30"]["assignment_id"] == covered.id
    assert by_time["02:00–02:30"]["coverage"] == "at_risk"
    assert by_time["03:00–03:30"]["coverage"] == "unavailable"
    assert by_time["04:00–04:30"]["coverage"] == "open"
    summary = report["summary"]
    assert summary == {
        "total_slots": 48,
        "covered": 1,
        "at_risk": 1,
        "open": 45,
        "unavailable": 1,
        "coverage_rate": round(2 * 100.0 / 48, 2),
    }
