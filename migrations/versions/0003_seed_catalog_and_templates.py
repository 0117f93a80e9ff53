"""Seed the half-hour slot catalog and default fasting templates (idempotent)"""

from alembic import op
import sqlalchemy as sa

from intercessors.shared.constants import DEFAULT_TEMPLATES
from intercessors.shared.slot_times import all_slot_ranges


revision = "0003_seed_catalog_and_templates"
down_revision = "0002_fasting_programs"
branch_labels = None
depends_on = None


_INSERT_SLOT = """
    INSERT INTO available_slots (slot_time, is_available, timezone)
    SELECT :slot_time, :is_available, 'UTC'
     WHERE NOT EXISTS (
       SELECT 1 FROM available_slots WHERE slot_time = :slot_time
     )
"""

_INSERT_TEMPLATE = """
    INSERT INTO fasting_event_templates (
        template_name, template_description, duration_days, default_title,
        default_subtitle, default_description, default_prayer_focus,
        default_instructions, is_active
    )
    SELECT :template_name, :template_description, :duration_days, :default_title,
           :default_subtitle, :default_description, :default_prayer_focus,
           :default_instructions, :is_active
     WHERE NOT EXISTS (
       SELECT 1 FROM fasting_event_templates WHERE template_name = :template_name
     )
"""


def upgrade():
    conn = op.get_bind()
    for slot_time in all_slot_ranges():
        conn.execute(
            sa.text(_INSERT_SLOT), {"slot_time": slot_time, "is_available": True}
        )
    for template in DEFAULT_TEMPLATES:
        conn.execute(sa.text(_INSERT_TEMPLATE), {**template, "is_active": True})


def downgrade():
    # Forward-only: catalog rows may already be referenced by assignments.
    pass
