"""Initial schema: users, projects, groups, tasks, subtasks.

Revision ID: a1c2e3f4b5d6
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a1c2e3f4b5d6"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(64), nullable=False, unique=True),
        sa.Column("first_name", sa.String(128), nullable=False),
        sa.Column("last_name", sa.String(128), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
    )
    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
    )
    op.create_index("idx_projects_user_id", "projects", ["user_id"])
    op.create_table(
        "groups",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("projects.id"), nullable=False),
    )
    op.create_index("idx_groups_project_id", "groups", ["project_id"])
    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("group_id", sa.Integer(), sa.ForeignKey("groups.id"), nullable=False),
    )
    op.create_index("idx_tasks_group_id", "tasks", ["group_id"])
    op.create_table(
        "subtasks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("task_id", sa.Integer(), sa.ForeignKey("tasks.id"), nullable=False),
    )
    op.create_index("idx_subtasks_task_id", "subtasks", ["task_id"])


def downgrade() -> None:
    op.drop_index("idx_subtasks_task_id", table_name="subtasks")
    op.drop_table("subtasks")
    op.drop_index("idx_tasks_group_id", table_name="tasks")
    op.drop_table("tasks")
    op.drop_index("idx_groups_project_id", table_name="groups")
    op.drop_table("groups")
    op.drop_index("idx_projects_user_id", table_name="projects")
    op.drop_table("projects")
    op.drop_table("users")
