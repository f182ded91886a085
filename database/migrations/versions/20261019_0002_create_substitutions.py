"""create educational groups, substitutions and activity logs

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


substitution_reason_enum = sa.Enum(
    "unexpected_absence",
    "illness",
    "personal_matters",
    "other",
    name="substitution_reason",
)
lesson_period_enum = sa.Enum(
    "first",
    "second",
    "third",
    "fourth",
    "fifth",
    "recess",
    "reading_hour",
    name="lesson_period",
)


def upgrade() -> None:
    op.create_table(
        "educational_groups",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("level", sa.String(length=100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("level", "name", name="uq_educational_groups_level_name"),
    )

    op.create_table(
        "substitutions",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("substitution_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("assigned_teacher_id", sa.String(length=36), nullable=False),
        sa.Column("absent_teacher_id", sa.String(length=36), nullable=True),
        sa.Column("group_id", sa.String(length=36), nullable=True),
        sa.Column("reason", substitution_reason_enum, nullable=False),
        sa.Column("reason_other", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("period", lesson_period_enum, nullable=True),
        sa.Column("transport_duty", sa.String(length=10), nullable=True),
        sa.Column("seen", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("confirmed_by_teacher", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_by", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_substitutions_substitution_date", "substitutions", ["substitution_date"])
    op.create_index("ix_substitutions_assigned_teacher_id", "substitutions", ["assigned_teacher_id"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("actor_id", sa.String(length=36), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=True),
        sa.Column("entity_id", sa.String(length=36), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_entity", "activity_logs", ["entity_type", "entity_id"])
    op.create_index("ix_activity_logs_created_at", "activity_logs", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_activity_logs_created_at", table_name="activity_logs")
    op.drop_index("ix_activity_logs_entity", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_index("ix_substitutions_assigned_teacher_id", table_name="substitutions")
    op.drop_index("ix_substitutions_substitution_date", table_name="substitutions")
    op.drop_table("substitutions")
    op.drop_table("educational_groups")
    lesson_period_enum.drop(op.get_bind(), checkfirst=True)
    substitution_reason_enum.drop(op.get_bind(), checkfirst=True)
