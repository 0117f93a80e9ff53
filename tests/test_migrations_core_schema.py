import os
from pathlib import Path

import pytest
import sqlalchemy as sa
from alembic import command
from alembic.config import Config


PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _alembic_config(db_url: str) -> Config:
    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("sqlalchemy.url", db_url)
    config.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    return config


@pytest.mark.no_smoke
def test_core_schema_migrations_idempotent(tmp_path):
    db_path = tmp_path / "migration.sqlite"
    db_url = f"sqlite:///{db_path}"
    original_url = os.environ.get("DATABASE_URL")
    os.environ["DATABASE_URL"] = db_url
    config = _alembic_config(db_url)

    command.upgrade(config, "head")
    command.upgrade(config, "head")

    engine = sa.create_engine(db_url)
    try:
        with engine.begin() as conn:
            inspector = sa.inspect(conn)
            tables = set(inspector.get_table_names())
            assert {
                "admin_users",
                "available_slots",
                "prayer_slots",
                "attendance_log",
                "skip_requests",
                "updates",
                "fasting_event_templates",
                "fasting_program_details",
                "fasting_registrations",
            } <= tables

            slot_count = conn.execute(
                sa.text("SELECT COUNT(*) FROM available_slots")
            ).scalar_one()
            assert slot_count == 48
            template_count = conn.execute(
                sa.text("SELECT COUNT(*) FROM fasting_event_templates")
            ).scalar_one()
            assert template_count == 4

            conn.execute(
                sa.text(
                    """
                    INSERT INTO prayer_slots (user_id, user_email, slot_time, status)
                    VALUES ('u1', 'u1@example.com', '22:00–22:30', 'released')
                    """
                )
            )
            conn.execute(
                sa.text(
                    """
                    INSERT INTO prayer_slots (user_id, user_email, slot_time)
                    VALUES ('u2', 'u2@example.com', '22:00–22:30')
                    """
                )
            )

        # a second holder for a held range trips the partial unique index
        with pytest.raises(sa.exc.IntegrityError):
            with engine.begin() as conn:
                conn.execute(
                    sa.text(
                        """
                        INSERT INTO prayer_slots (user_id, user_email, slot_time)
                        VALUES ('u3', 'u3@example.com', '22:00–22:30')
                        """
                    )
                )
        with pytest.raises(sa.exc.IntegrityError):
            with engine.begin() as conn:
                conn.execute(
                    sa.text(
                        """
                        INSERT INTO skip_requests (user_id, user_email, skip_days, reason)
                        VALUES ('u1', 'u1@example.com', 31, 'too long')
                        """
                    )
                )
    finally:
        engine.dispose()
        if original_url is not None:
            os.environ["DATABASE_URL"] = original_url
        else:
            os.environ.pop("DATABASE_URL", None)
