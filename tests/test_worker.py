from datetime import datetime, timedelta, timezone

import pytest

from intercessors import jobs
from intercessors.app import db
from intercessors.services import campaigns
from worker import build_scheduler


pytestmark = pytest.mark.smoke


def test_scheduler_registers_jobs(app):
    scheduler = build_scheduler(app)
    assert {job.id for job in scheduler.get_jobs()} == {
        "hourly-program-status",
        "daily-missed-sweep",
        "daily-skip-expiry",
        "monthly-fast",
    }


def test_refresh_job_commits_status(app):
    now = datetime(2025, 3, 1, tzinfo=timezone.utc)
    campaigns.create_from_template(
        "Monthly 3-Day Fast", now + timedelta(days=6), now=now
    )
    db.session.commit()
    assert jobs.refresh_program_status(now + timedelta(days=10)) == "completed"
    db.session.expire_all()
    assert campaigns.active_program().program_status == "completed"
