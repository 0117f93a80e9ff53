from datetime import timedelta

import pytest

from intercessors.app import db
from intercessors.models import AdminUser, AvailableSlot, FastingProgram, PrayerSlot
from intercessors.services import assignments
from intercessors.shared.time import now_utc
from manage import (
    add_admin,
    create_program,
    refresh_program_status,
    restore_skips,
    schedule_next_monthly,
    seed_slots,
    seed_templates,
    sweep_missed,
)


pytestmark = pytest.mark.smoke


@pytest.fixture
def runner(app):
    for command in (
        add_admin,
        create_program,
        refresh_program_status,
        restore_skips,
        schedule_next_monthly,
        seed_slots,
        seed_templates,
        sweep_missed,
    ):
        app.cli.add_command(command)
    return app.test_cli_runner()


def test_seed_commands_are_idempotent(runner):
    db.session.query(AvailableSlot).filter_by(slot_time="00:00–00:30").delete()
    db.session.commit()
    res = runner.invoke(args=["seed_slots"])
    assert res.exit_code == 0
    assert "Added 1 slot(s)" in res.output
    res = runner.invoke(args=["seed_templates"])
    assert "Added 0 template(s)" in res.output
    assert AvailableSlot.query.count() == 48


def test_add_admin_upserts(runner):
    res = runner.invoke(args=["add_admin", "--email", "Lead@Example.com"])
    assert res.exit_code == 0
    assert "Added lead@example.com" in res.output
    res = runner.invoke(args=["add_admin", "--email", "lead@example.com", "--role", "super"])
    assert "Updated lead@example.com" in res.output
    admin = AdminUser.query.one()
    assert admin.role == "super"


def test_program_commands(runner):
    start = (now_utc() + timedelta(days=5)).replace(microsecond=0)
    res = runner.invoke(
        args=[
            "create_program",
            "--template",
            "Monthly 3-Day Fast",
            "--start",
            start.isoformat(),
        ]
    )
    assert res.exit_code == 0, res.output
    assert "starts" in res.output

    res = runner.invoke(args=["refresh_program_status"])
    assert res.exit_code == 0
    assert "registration_open" in res.output

    res = runner.invoke(args=["schedule_next_monthly", "--offset", "1"])
    assert res.exit_code == 0, res.output
    assert FastingProgram.query.count() == 2
    assert FastingProgram.query.filter_by(is_active=True).count() == 1


def test_refresh_without_program(runner):
    res = runner.invoke(args=["refresh_program_status"])
    assert "No active program" in res.output


def test_sweep_and_restore_commands(runner):
    assignment = assignments.claim("u1", "u1@example.com", "22:00–22:30")
    db.session.commit()
    today = now_utc().date().isoformat()

    res = runner.invoke(args=["sweep_missed", "--date", today])
    assert res.exit_code == 0
    assert "missed=1" in res.output
    assert db.session.get(PrayerSlot, assignment.id).missed_count == 1

    res = runner.invoke(args=["restore_skips"])
    assert "restored=0" in res.output
