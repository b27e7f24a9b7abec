"""create scheduling tables

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:10:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


availability_status_enum = sa.Enum("available", "preferred", "unavailable", name="availability_status")
timetable_type_enum = sa.Enum("lesson", "exam", "other", name="timetable_type")
timetable_status_enum = sa.Enum("draft", "published", "archived", name="timetable_status")
notification_type_enum = sa.Enum("timetable", "system", name="notification_type")


def upgrade() -> None:
    op.create_table(
        "timetable_slots",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("school_id", sa.String(length=36), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
    )
    op.create_index("ix_timetable_slots_school_id", "timetable_slots", ["school_id"])
    op.create_index("ix_timetable_slots_day_of_week", "timetable_slots", ["day_of_week"])

    op.create_table(
        "subject_requirements",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("term_id", sa.String(length=36), nullable=False),
        sa.Column("class_id", sa.String(length=36), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("lessons_per_week", sa.Integer(), nullable=False),
        sa.Column("requires_venue_type", sa.String(length=50), nullable=True),
        sa.Column("is_double_period", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            "term_id",
            "class_id",
            "subject_id",
            name="uq_subject_requirements_term_class_subject",
        ),
    )
    op.create_index("ix_subject_requirements_term_id", "subject_requirements", ["term_id"])

    op.create_table(
        "teacher_availability",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("term_id", sa.String(length=36), nullable=False),
        sa.Column("slot_id", sa.String(length=36), nullable=False),
        sa.Column("status", availability_status_enum, nullable=False),
        sa.UniqueConstraint("teacher_id", "term_id", "slot_id", name="uq_teacher_availability_teacher_term_slot"),
    )
    op.create_index("ix_teacher_availability_teacher_id", "teacher_availability", ["teacher_id"])
    op.create_index("ix_teacher_availability_term_id", "teacher_availability", ["term_id"])

    op.create_table(
        "teacher_subject_assignments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("class_id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("teacher_id", "subject_id", "class_id", name="uq_teacher_subject_assignments_identity"),
    )
    op.create_index("ix_teacher_subject_assignments_teacher_id", "teacher_subject_assignments", ["teacher_id"])
    op.create_index("ix_teacher_subject_assignments_class_id", "teacher_subject_assignments", ["class_id"])

    op.create_table(
        "timetable_versions",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("term_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("timetable_type", timetable_type_enum, nullable=False),
        sa.Column("status", timetable_status_enum, nullable=False),
        sa.Column("created_by_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_timetable_versions_term_id", "timetable_versions", ["term_id"])
    op.create_index("ix_timetable_versions_status", "timetable_versions", ["status"])

    op.create_table(
        "lessons",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("timetable_version_id", sa.String(length=36), nullable=False),
        sa.Column("term_id", sa.String(length=36), nullable=False),
        sa.Column("slot_id", sa.String(length=36), nullable=False),
        sa.Column("class_id", sa.String(length=36), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("venue_id", sa.String(length=36), nullable=True),
    )
    op.create_index("ix_lessons_timetable_version_id", "lessons", ["timetable_version_id"])
    op.create_index("ix_lessons_term_id", "lessons", ["term_id"])
    op.create_index("ix_lessons_slot_id", "lessons", ["slot_id"])
    op.create_index("ix_lessons_teacher_id", "lessons", ["teacher_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("notification_type", notification_type_enum, nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("actor_id", sa.String(length=36), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=True),
        sa.Column("entity_id", sa.String(length=100), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_actor_id", "activity_logs", ["actor_id"])
    op.create_index("ix_activity_logs_entity_id", "activity_logs", ["entity_id"])


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_table("notifications")
    op.drop_table("lessons")
    op.drop_table("timetable_versions")
    op.drop_table("teacher_subject_assignments")
    op.drop_table("teacher_availability")
    op.drop_table("subject_requirements")
    op.drop_table("timetable_slots")
    bind = op.get_bind()
    notification_type_enum.drop(bind, checkfirst=True)
    timetable_status_enum.drop(bind, checkfirst=True)
    timetable_type_enum.drop(bind, checkfirst=True)
    availability_status_enum.drop(bind, checkfirst=True)
