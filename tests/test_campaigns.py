from datetime import datetime, timedelta, timezone

import pytest

from intercessors.app import db
from intercessors.models import (
    FastingEventTemplate,
    FastingProgram,
    FastingRegistration,
    Update,
)
from intercessors.services import campaigns
from intercessors.services.errors import (
    ConflictError,
    NotFoundError,
    StateError,
    ValidationError,
)
from intercessors.shared.time import as_utc


pytestmark = pytest.mark.smoke

UTC = timezone.utc
MONTHLY = "Monthly 3-Day Fast"


def at(*args):
    return datetime(*args, tzinfo=UTC)


def _create(start=None, now=None, **kwargs):
    program = campaigns.create_from_template(
        MONTHLY, start, now=now or at(2025, 3, 1, 12), **kwargs
    )
    db.session.commit()
    return program


OPEN = at(2025, 3, 1)
CLOSE = at(2025, 3, 6, 18)
START = at(2025, 3, 7, 18)
END = at(2025, 3, 10, 18)


@pytest.mark.parametrize(
    "now, expected",
    [
        (at(2025, 2, 28), "upcoming"),
        (OPEN, "registration_open"),
        (at(2025, 3, 4), "registration_open"),
        (CLOSE, "registration_open"),
        (at(2025, 3, 7, 12), "preparation"),
        (START, "active"),
        (END, "active"),
        (END + timedelta(seconds=1), "completed"),
    ],
)
def test_status_is_a_function_of_now_and_dates(now, expected):
    assert campaigns.compute_program_status(now, START, END, OPEN, CLOSE) == expected
    # same inputs, same answer
    assert campaigns.compute_program_status(now, START, END, OPEN, CLOSE) == expected


def test_naive_datetimes_are_treated_as_utc():
    naive = datetime(2025, 3, 4)
    assert (
        campaigns.compute_program_status(
            naive,
            START.replace(tzinfo=None),
            END.replace(tzinfo=None),
            OPEN.replace(tzinfo=None),
            CLOSE.replace(tzinfo=None),
        )
        == "registration_open"
    )


def test_template_scenario_dates(app):
    program = _create(START)
    assert as_utc(program.start_date) == START
    assert as_utc(program.end_date) == at(2025, 3, 10, 18)
    assert as_utc(program.registration_close_date) == at(2025, 3, 6, 18)
    assert as_utc(program.registration_open_date) == at(2025, 3, 1, 12)
    assert program.program_status == "registration_open"
    assert program.template_name == MONTHLY
    assert program.is_active is True
    assert program.created_by == app.config["DEFAULT_ADMIN_EMAIL"]


def test_default_start_is_next_week_evening(app):
    assert campaigns.default_start_date(at(2025, 3, 1, 10, 30)) == at(2025, 3, 8, 18)
    program = _create(now=at(2025, 3, 1, 10, 30))
    assert as_utc(program.start_date) == at(2025, 3, 8, 18)


def test_only_one_program_is_active(app):
    first = _create(START)
    second = _create(at(2025, 4, 4, 18))
    assert FastingProgram.query.filter_by(is_active=True).count() == 1
    assert db.session.get(FastingProgram, first.id).is_active is False
    assert campaigns.active_program().id == second.id


def test_concurrent_creation_is_conflict(app):
    first = _create(START)
    rival = FastingProgram(
        program_title="Rival",
        start_date=START,
        end_date=START + timedelta(days=3),
        registration_open_date=START - timedelta(days=7),
        registration_close_date=START - timedelta(days=1),
        is_active=True,
    )
    # skip the deactivate step, as a transaction that missed the first row would
    with pytest.raises(ConflictError):
        campaigns._insert_active(rival)
    assert FastingProgram.query.filter_by(is_active=True).one().id == first.id


def test_unknown_template_is_not_found(app):
    with pytest.raises(NotFoundError):
        campaigns.create_from_template("No Such Template")


def test_template_without_title_is_state_error(app):
    db.session.add(FastingEventTemplate(template_name="Blank", default_title=""))
    db.session.commit()
    existing = _create(START)
    with pytest.raises(StateError):
        campaigns.create_from_template("Blank", START)
    db.session.rollback()
    # the previous program is untouched
    assert db.session.get(FastingProgram, existing.id).is_active is True


@pytest.mark.parametrize(
    "year, month, expected",
    [
        (2025, 3, at(2025, 3, 28, 18)),
        (2025, 2, at(2025, 2, 28, 18)),
        (2025, 12, at(2025, 12, 26, 18)),
        (2026, 1, at(2026, 1, 30, 18)),
    ],
)
def test_last_friday_at(year, month, expected):
    result = campaigns.last_friday_at(year, month)
    assert result == expected
    assert result.weekday() == 4


def test_schedule_next_monthly(app):
    program = campaigns.schedule_next_monthly(1, "ops@example.com", now=at(2025, 11, 15))
    db.session.commit()
    assert as_utc(program.start_date) == at(2025, 12, 26, 18)
    assert program.program_title == "3 Days & 3 Nights Prayer & Fasting"
    assert program.program_subtitle == "December 2025 - Global Intercession"
    assert program.created_by == "ops@example.com"


def test_schedule_next_monthly_wraps_the_year(app):
    program = campaigns.schedule_next_monthly(2, now=at(2025, 11, 15))
    assert as_utc(program.start_date) == at(2026, 1, 30, 18)


def test_negative_offset_is_rejected(app):
    with pytest.raises(ValidationError):
        campaigns.schedule_next_monthly(-1)


def test_refresh_status_moves_the_active_program(app):
    program = _create(START)
    assert campaigns.refresh_status(at(2025, 3, 8)).program_status == "active"
    assert campaigns.refresh_status(at(2025, 3, 11)).program_status == "completed"
    db.session.commit()
    assert db.session.get(FastingProgram, program.id).program_status == "completed"


def test_refresh_status_leaves_cancelled_programs(app):
    _create(START)
    campaigns.cancel_active_program()
    db.session.commit()
    assert campaigns.refresh_status(at(2025, 3, 8)).program_status == "cancelled"
    with pytest.raises(StateError):
        campaigns.cancel_active_program()


def test_refresh_without_program(app):
    assert campaigns.refresh_status() is None


def test_program_view_fields(app):
    program = _create(START)
    view = campaigns.program_view(program, now=at(2025, 3, 4, 18))
    assert view["program_status"] == "registration_open"
    assert view["current_phase"] == "registration_open"
    assert view["registration_is_open"] is True
    assert view["program_has_started"] is False
    assert view["program_has_ended"] is False
    assert view["days_until_start"] == 3
    assert view["days_remaining"] == 3
    assert view["current_participants"] == 0
    assert view["registration_progress_percentage"] == 0.0

    view = campaigns.program_view(program, now=at(2025, 3, 8, 6))
    assert view["current_phase"] == "active_fasting"
    assert view["program_has_started"] is True
    assert view["days_remaining"] == 2


def _register(name="Ada", now=at(2025, 3, 4)):
    registration = campaigns.register(name, "+100000", "Lusaka", now=now)
    db.session.commit()
    return registration


def test_registration_counts_toward_participants(app):
    program = _create(START)
    _register("Ada")
    _register("Grace")
    view = campaigns.program_view(program, now=at(2025, 3, 4))
    assert view["current_participants"] == 2
    assert view["registration_progress_percentage"] == 0.2


def test_registration_outside_window_is_state_error(app):
    _create(START)
    with pytest.raises(StateError):
        _register(now=at(2025, 3, 8))
    assert FastingRegistration.query.count() == 0


def test_full_program_is_conflict(app):
    program = _create(START)
    program.max_participants = 1
    db.session.commit()
    _register("Ada")
    with pytest.raises(ConflictError):
        _register("Grace")


def test_registration_requires_fields(app):
    _create(START)
    with pytest.raises(ValidationError):
        campaigns.register("", "+1", "Lusaka", now=at(2025, 3, 4))


def test_significant_edit_posts_announcement(app):
    _create(START)
    campaigns.update_active_program(
        {"program_title": "March Fast", "start_date": at(2025, 3, 8, 18)},
        now=at(2025, 3, 2),
    )
    db.session.commit()

    update = Update.query.one()
    assert update.title == "Fasting Program Updated: March Fast"
    assert update.type == "announcement"
    assert update.priority == "high"
    assert update.pin_to_top is True
    assert "March 08, 2025 at 18:00 UTC" in update.description


def test_minor_edit_is_silent(app):
    _create(START)
    program = campaigns.update_active_program({"contact_phone": "+260"})
    db.session.commit()
    assert program.contact_phone == "+260"
    assert Update.query.count() == 0


def test_edit_rejects_inverted_dates(app):
    _create(START)
    with pytest.raises(ValidationError):
        campaigns.update_active_program({"end_date": at(2025, 3, 1)})


def test_edit_rejects_unknown_fields(app):
    _create(START)
    with pytest.raises(ValidationError):
        campaigns.update_active_program({"is_active": False})


def test_seeded_templates(app):
    names = [t.template_name for t in campaigns.list_templates()]
    assert MONTHLY in names
    assert len(names) == 4
