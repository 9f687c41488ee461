from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.sensei.errors import DuplicateUsername, NotFound, StorageUnavailable
from app.sensei.models import Group, Project, Subtask, Task, User
from app.sensei.store.base import EntityStore, ProjectNode, assemble_tree, id_in_range

logger = logging.getLogger(__name__)


class SqlStore(EntityStore):
    """
    SQLAlchemy-backed store.

    `session_getter` returns the session to use for the current unit of work:
    inside Flask that is the request-scoped `db_session`, in scripts and tests
    any session works. Every write commits immediately.
    """

    backend_name = "sql"

    def __init__(self, session_getter: Callable[[], Session]) -> None:
        self._session_getter = session_getter

    @contextmanager
    def _session(self) -> Iterator[Session]:
        s = self._session_getter()
        try:
            yield s
        except IntegrityError:
            s.rollback()
            raise
        except SQLAlchemyError as e:
            s.rollback()
            logger.exception("Storage error: %s", e)
            raise StorageUnavailable() from e

    @staticmethod
    def _get(s: Session, model, ident: int):
        # Out-of-range ids overflow the driver; no row can have one.
        if not id_in_range(ident):
            return None
        return s.get(model, ident)

    def _add(self, obj):
        with self._session() as s:
            s.add(obj)
            s.commit()
        return obj

    # ---- users ----

    def create_user(self, *, username: str, password_hash: str, first_name: str, last_name: str, email: str) -> User:
        user = User(
            username=username,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            email=email,
        )
        try:
            return self._add(user)
        except IntegrityError as e:
            raise DuplicateUsername() from e

    def get_user(self, user_id: int) -> User | None:
        with self._session() as s:
            return self._get(s, User, user_id)

    def get_user_by_username(self, username: str) -> User | None:
        with self._session() as s:
            return s.execute(select(User).where(User.username == username)).scalar_one_or_none()

    # ---- hierarchy ----

    def create_project(self, *, name: str, user_id: int) -> Project:
        return self._add(Project(name=name, user_id=user_id))

    def get_project(self, project_id: int) -> Project | None:
        with self._session() as s:
            return self._get(s, Project, project_id)

    def create_group(self, *, name: str, project_id: int) -> Group:
        return self._add(Group(name=name, project_id=project_id))

    def get_group(self, group_id: int) -> Group | None:
        with self._session() as s:
            return self._get(s, Group, group_id)

    def create_task(self, *, title: str, group_id: int) -> Task:
        return self._add(Task(title=title, completed=False, group_id=group_id))

    def get_task(self, task_id: int) -> Task | None:
        with self._session() as s:
            return self._get(s, Task, task_id)

    def update_task_completion(self, task_id: int, completed: bool) -> Task:
        with self._session() as s:
            task = self._get(s, Task, task_id)
            if task is None:
                raise NotFound("task", task_id)
            task.completed = completed
            s.commit()
            return task

    def create_subtask(self, *, title: str, task_id: int) -> Subtask:
        return self._add(Subtask(title=title, completed=False, task_id=task_id))

    def get_subtask(self, subtask_id: int) -> Subtask | None:
        with self._session() as s:
            return self._get(s, Subtask, subtask_id)

    def update_subtask_completion(self, subtask_id: int, completed: bool) -> Subtask:
        with self._session() as s:
            subtask = self._get(s, Subtask, subtask_id)
            if subtask is None:
                raise NotFound("subtask", subtask_id)
            subtask.completed = completed
            s.commit()
            return subtask

    def get_projects_with_children(self, user_id: int) -> list[ProjectNode]:
        # One query per level; each level filters on the ids of the level above.
        with self._session() as s:
            projects = s.execute(select(Project).where(Project.user_id == user_id).order_by(Project.id)).scalars().all()
            project_ids = [p.id for p in projects]
            if not project_ids:
                return []
            groups = s.execute(select(Group).where(Group.project_id.in_(project_ids)).order_by(Group.id)).scalars().all()
            group_ids = [grp.id for grp in groups]
            tasks: list[Task] = []
            if group_ids:
                tasks = list(s.execute(select(Task).where(Task.group_id.in_(group_ids)).order_by(Task.id)).scalars().all())
            task_ids = [t.id for t in tasks]
            subtasks: list[Subtask] = []
            if task_ids:
                subtasks = list(
                    s.execute(select(Subtask).where(Subtask.task_id.in_(task_ids)).order_by(Subtask.id)).scalars()
                )
        return assemble_tree(projects, groups, tasks, subtasks)
