"""create modules, plant_configs and calendar_audits tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

MODULE_STATUSES = (
    "not_started",
    "scheduled",
    "in_queue",
    "in_progress",
    "qc_hold",
    "rework",
    "completed",
    "staged",
    "shipped",
)


def upgrade() -> None:
    op.create_table(
        "modules",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("factory_id", sa.Integer(), nullable=False),
        sa.Column("serial_number", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=True),
        sa.Column("sequence_number", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("current_station_id", sa.Integer(), nullable=True),
        sa.Column("scheduled_start", sa.Date(), nullable=True),
        sa.Column("scheduled_end", sa.Date(), nullable=True),
        sa.Column("actual_start", sa.DateTime(), nullable=True),
        sa.Column("actual_end", sa.DateTime(), nullable=True),
        sa.Column("is_rush", sa.Boolean(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", "serial_number", name="uq_modules_project_serial"),
        sa.CheckConstraint(
            "status IN (" + ", ".join(f"'{s}'" for s in MODULE_STATUSES) + ")",
            name="ck_modules_status",
        ),
        sa.CheckConstraint(
            "scheduled_end IS NULL OR scheduled_start IS NULL OR scheduled_end >= scheduled_start",
            name="ck_modules_schedule_order",
        ),
    )
    op.create_index("ix_modules_id", "modules", ["id"], unique=False)
    op.create_index("ix_modules_project_id", "modules", ["project_id"], unique=False)
    op.create_index("ix_modules_factory_id", "modules", ["factory_id"], unique=False)
    op.create_index("ix_modules_current_station_id", "modules", ["current_station_id"], unique=False)
    op.create_index("ix_modules_factory_scheduled_start", "modules", ["factory_id", "scheduled_start"], unique=False)
    op.create_index("ix_modules_factory_status", "modules", ["factory_id", "status"], unique=False)

    op.create_table(
        "plant_configs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("factory_id", sa.Integer(), nullable=False),
        sa.Column("target_throughput_per_day", sa.Integer(), nullable=False),
        sa.Column("max_wip_per_station", sa.Integer(), nullable=True),
        sa.Column("work_days_json", sa.Text(), nullable=False),
        sa.Column("holidays_json", sa.Text(), nullable=False),
        sa.Column("auto_schedule_enabled", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "max_wip_per_station IS NULL OR max_wip_per_station >= 1",
            name="ck_plant_configs_wip_min_1",
        ),
    )
    op.create_index("ix_plant_configs_id", "plant_configs", ["id"], unique=False)
    op.create_index("ix_plant_configs_factory_id", "plant_configs", ["factory_id"], unique=True)

    op.create_table(
        "calendar_audits",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("factory_id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(length=30), nullable=False),
        sa.Column("entity_type", sa.String(length=30), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("requested_count", sa.Integer(), nullable=False),
        sa.Column("applied_count", sa.Integer(), nullable=False),
        sa.Column("payload_json", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("from_simulation", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "action IN ('auto_schedule', 'manual_schedule', 'sim_publish')",
            name="ck_calendar_audits_action",
        ),
        sa.CheckConstraint("applied_count >= 0", name="ck_calendar_audits_applied_non_negative"),
        sa.CheckConstraint("applied_count <= requested_count", name="ck_calendar_audits_applied_le_requested"),
    )
    op.create_index("ix_calendar_audits_id", "calendar_audits", ["id"], unique=False)
    op.create_index("ix_calendar_audits_factory_id", "calendar_audits", ["factory_id"], unique=False)
    op.create_index("ix_calendar_audits_user_id", "calendar_audits", ["user_id"], unique=False)
    op.create_index(
        "ix_calendar_audits_factory_created",
        "calendar_audits",
        ["factory_id", "created_at"],
        unique=False,
    )
    op.create_index("ix_calendar_audits_action", "calendar_audits", ["action"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_calendar_audits_action", table_name="calendar_audits")
    op.drop_index("ix_calendar_audits_factory_created", table_name="calendar_audits")
    op.drop_index("ix_calendar_audits_user_id", table_name="calendar_audits")
    op.drop_index("ix_calendar_audits_factory_id", table_name="calendar_audits")
    op.drop_index("ix_calendar_audits_id", table_name="calendar_audits")
    op.drop_table("calendar_audits")

    op.drop_index("ix_plant_configs_factory_id", table_name="plant_configs")
    op.drop_index("ix_plant_configs_id", table_name="plant_configs")
    op.drop_table("plant_configs")

    op.drop_index("ix_modules_factory_status", table_name="modules")
    op.drop_index("ix_modules_factory_scheduled_start", table_name="modules")
    op.drop_index("ix_modules_current_station_id", table_name="modules")
    op.drop_index("ix_modules_factory_id", table_name="modules")
    op.drop_index("ix_modules_project_id", table_name="modules")
    op.drop_index("ix_modules_id", table_name="modules")
    op.drop_table("modules")
