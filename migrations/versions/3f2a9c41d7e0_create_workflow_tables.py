"""create schools, staff, delegation, lesson plan and notification tables

Revision ID: 3f2a9c41d7e0
Revises:
Create Date: 2026-10-19 08:12:40.118203
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3f2a9c41d7e0"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(*, updated: bool = True) -> list[sa.Column]:
    cols = [sa.Column("created_at", sa.DateTime(), nullable=False)]
    if updated:
        cols.append(sa.Column("updated_at", sa.DateTime(), nullable=False))
    return cols


def upgrade() -> None:
    op.create_table(
        "schools",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("role", sa.String(32), nullable=False),
        sa.Column("school_id", sa.String(64), sa.ForeignKey("schools.id"), nullable=True),
        sa.Column("team_id", sa.String(36), nullable=True),
        sa.Column("zalo_phone", sa.String(32), nullable=True),
        sa.Column("drive_folder_link", sa.String(512), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_school_id", "users", ["school_id"])
    op.create_index("ix_users_team_id", "users", ["team_id"])

    op.create_table(
        "teams",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("school_id", sa.String(64), sa.ForeignKey("schools.id"), nullable=False),
        sa.Column("leader_id", sa.String(36), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("deputy_leader_id", sa.String(36), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_teams_school_id", "teams", ["school_id"])

    op.create_table(
        "school_delegations",
        sa.Column("school_id", sa.String(64), sa.ForeignKey("schools.id"), primary_key=True),
        sa.Column("principal_to_vp", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "team_delegations",
        sa.Column("team_id", sa.String(36), sa.ForeignKey("teams.id"), primary_key=True),
        sa.Column("school_id", sa.String(64), sa.ForeignKey("schools.id"), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_team_delegations_school_id", "team_delegations", ["school_id"])

    op.create_table(
        "lesson_plans",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("school_id", sa.String(64), sa.ForeignKey("schools.id"), nullable=False),
        sa.Column("team_id", sa.String(36), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("submitted_by_id", sa.String(36), nullable=False),
        sa.Column("submitted_by_name", sa.String(255), nullable=False),
        sa.Column("submitted_by_role", sa.String(32), nullable=False),
        sa.Column("submitted_at", sa.DateTime(), nullable=False),
        sa.Column("subject", sa.String(128), nullable=True),
        sa.Column("grade", sa.String(64), nullable=True),
        sa.Column("class_name", sa.String(64), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_url", sa.String(1024), nullable=False),
        sa.Column("file_is_external", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("drive_folder_id", sa.String(255), nullable=True),
        sa.Column("drive_folder_name", sa.String(512), nullable=True),
        sa.Column("final_approver_id", sa.String(36), nullable=True),
        sa.Column("final_approver_name", sa.String(255), nullable=True),
        sa.Column("final_approver_role", sa.String(32), nullable=True),
        sa.Column("final_approved_at", sa.DateTime(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_lesson_plans_school_id", "lesson_plans", ["school_id"])
    op.create_index("ix_lesson_plans_team_id", "lesson_plans", ["team_id"])
    op.create_index("ix_lesson_plans_submitted_by_id", "lesson_plans", ["submitted_by_id"])
    op.create_index("ix_lesson_plans_school_status", "lesson_plans", ["school_id", "status"])

    op.create_table(
        "lesson_plan_history",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("plan_id", sa.String(36), sa.ForeignKey("lesson_plans.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(32), nullable=False),
        sa.Column("actor_id", sa.String(36), nullable=False),
        sa.Column("actor_name", sa.String(255), nullable=False),
        sa.Column("actor_role", sa.String(32), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.UniqueConstraint("plan_id", "position", name="uq_history_plan_position"),
    )

    op.create_table(
        "lesson_plan_comments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("plan_id", sa.String(36), sa.ForeignKey("lesson_plans.id", ondelete="CASCADE"), nullable=False),
        sa.Column("author_id", sa.String(36), nullable=False),
        sa.Column("author_name", sa.String(255), nullable=False),
        sa.Column("author_role", sa.String(32), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_index("ix_lesson_plan_comments_plan_id", "lesson_plan_comments", ["plan_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("school_id", sa.String(64), sa.ForeignKey("schools.id"), nullable=True),
        sa.Column("to_user_id", sa.String(36), nullable=False),
        sa.Column("plan_id", sa.String(36), nullable=True),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="QUEUED"),
        *_timestamps(),
    )
    op.create_index("ix_notifications_school_id", "notifications", ["school_id"])
    op.create_index("ix_notifications_to_user_id", "notifications", ["to_user_id"])


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("lesson_plan_comments")
    op.drop_table("lesson_plan_history")
    op.drop_table("lesson_plans")
    op.drop_table("team_delegations")
    op.drop_table("school_delegations")
    op.drop_table("teams")
    op.drop_table("users")
    op.drop_table("schools")
