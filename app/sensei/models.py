from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    first_name: Mapped[str] = mapped_column(String(128), nullable=False)
    last_name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)


class Project(Base):
    """
    Root of a hierarchy. `user_id` is the owner and never changes after insert.
    """

    __tablename__ = "projects"
    __table_args__ = (Index("idx_projects_user_id", "user_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)


class Group(Base):
    __tablename__ = "groups"
    __table_args__ = (Index("idx_groups_project_id", "project_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id"), nullable=False)


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (Index("idx_tasks_group_id", "group_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    group_id: Mapped[int] = mapped_column(ForeignKey("groups.id"), nullable=False)


class Subtask(Base):
    __tablename__ = "subtasks"
    __table_args__ = (Index("idx_subtasks_task_id", "task_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    task_id: Mapped[int] = mapped_column(ForeignKey("tasks.id"), nullable=False)


# Table names the running app expects; used by the startup schema check.
EXPECTED_TABLES = ("users", "projects", "groups", "tasks", "subtasks")
