#!/usr/bin/env python3
"""
Scheduler process for campaign status refresh and attendance maintenance.
Runs separately from the web process.
"""

import logging
import os

from dotenv import load_dotenv
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

load_dotenv()

from intercessors.app import create_app  # noqa: E402
from intercessors import jobs  # noqa: E402

logger = logging.getLogger("intercessors.worker")


def _in_app(app, fn, *args):
    def run():
        with app.app_context():
            try:
                fn(*args)
            except Exception:
                # the job logs and rolls back its own failure
                logger.warning("job %s failed", fn.__name__)

    run.__name__ = fn.__name__
    return run


def build_scheduler(app=None) -> BlockingScheduler:
    app = app or create_app()
    scheduler = BlockingScheduler(timezone="UTC")

    scheduler.add_job(
        _in_app(app, jobs.refresh_program_status),
        CronTrigger(minute=5),
        id="hourly-program-status",
        replace_existing=True,
    )
    scheduler.add_job(
        _in_app(app, jobs.sweep_missed),
        CronTrigger(hour=0, minute=15),
        id="daily-missed-sweep",
        replace_existing=True,
    )
    scheduler.add_job(
        _in_app(app, jobs.restore_expired_skips),
        CronTrigger(hour=0, minute=20),
        id="daily-skip-expiry",
        replace_existing=True,
    )
    # monthly fast for next month, created on the 1st
    scheduler.add_job(
        _in_app(
            app,
            jobs.schedule_next_monthly,
            1,
            os.getenv("DEFAULT_ADMIN_EMAIL"),
        ),
        CronTrigger(day=1, hour=6),
        id="monthly-fast",
        replace_existing=True,
    )
    return scheduler


def run_scheduler():
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    scheduler = build_scheduler()
    logger.info("Starting intercessors scheduler")
    try:
        scheduler.start()
    except KeyboardInterrupt:
        scheduler.shutdown()


if __name__ == "__main__":
    run_scheduler()
