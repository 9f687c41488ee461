from __future__ import annotations

import itertools
import logging
import threading

from app.sensei.errors import DuplicateUsername, NotFound
from app.sensei.models import Group, Project, Subtask, Task, User
from app.sensei.store.base import EntityStore, ProjectNode, assemble_tree

logger = logging.getLogger(__name__)


class MemoryStore(EntityStore):
    """
    Process-local store: one dict per entity type plus a monotonic id counter.

    Entities are plain (transient) ORM model instances that are never attached
    to a session. A single lock serializes every operation, which keeps ids
    unique under a threaded server. Nothing survives a restart.
    """

    backend_name = "memory"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._users: dict[int, User] = {}
        self._projects: dict[int, Project] = {}
        self._groups: dict[int, Group] = {}
        self._tasks: dict[int, Task] = {}
        self._subtasks: dict[int, Subtask] = {}
        self._ids = {name: itertools.count(1) for name in ("user", "project", "group", "task", "subtask")}
        logger.info("MemoryStore ready")

    def _next_id(self, kind: str) -> int:
        return next(self._ids[kind])

    # ---- users ----

    def create_user(self, *, username: str, password_hash: str, first_name: str, last_name: str, email: str) -> User:
        with self._lock:
            if any(u.username == username for u in self._users.values()):
                raise DuplicateUsername()
            user = User(
                id=self._next_id("user"),
                username=username,
                password_hash=password_hash,
                first_name=first_name,
                last_name=last_name,
                email=email,
            )
            self._users[user.id] = user
            return user

    def get_user(self, user_id: int) -> User | None:
        with self._lock:
            return self._users.get(user_id)

    def get_user_by_username(self, username: str) -> User | None:
        with self._lock:
            for u in self._users.values():
                if u.username == username:
                    return u
            return None

    # ---- hierarchy ----

    def create_project(self, *, name: str, user_id: int) -> Project:
        with self._lock:
            project = Project(id=self._next_id("project"), name=name, user_id=user_id)
            self._projects[project.id] = project
            return project

    def get_project(self, project_id: int) -> Project | None:
        with self._lock:
            return self._projects.get(project_id)

    def create_group(self, *, name: str, project_id: int) -> Group:
        with self._lock:
            group = Group(id=self._next_id("group"), name=name, project_id=project_id)
            self._groups[group.id] = group
            return group

    def get_group(self, group_id: int) -> Group | None:
        with self._lock:
            return self._groups.get(group_id)

    def create_task(self, *, title: str, group_id: int) -> Task:
        with self._lock:
            task = Task(id=self._next_id("task"), title=title, completed=False, group_id=group_id)
            self._tasks[task.id] = task
            return task

    def get_task(self, task_id: int) -> Task | None:
        with self._lock:
            return self._tasks.get(task_id)

    def update_task_completion(self, task_id: int, completed: bool) -> Task:
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                raise NotFound("task", task_id)
            task.completed = completed
            return task

    def create_subtask(self, *, title: str, task_id: int) -> Subtask:
        with self._lock:
            subtask = Subtask(id=self._next_id("subtask"), title=title, completed=False, task_id=task_id)
            self._subtasks[subtask.id] = subtask
            return subtask

    def get_subtask(self, subtask_id: int) -> Subtask | None:
        with self._lock:
            return self._subtasks.get(subtask_id)

    def update_subtask_completion(self, subtask_id: int, completed: bool) -> Subtask:
        with self._lock:
            subtask = self._subtasks.get(subtask_id)
            if subtask is None:
                raise NotFound("subtask", subtask_id)
            subtask.completed = completed
            return subtask

    def get_projects_with_children(self, user_id: int) -> list[ProjectNode]:
        with self._lock:
            projects = [p for p in self._projects.values() if p.user_id == user_id]
            project_ids = {p.id for p in projects}
            groups = [grp for grp in self._groups.values() if grp.project_id in project_ids]
            group_ids = {grp.id for grp in groups}
            tasks = [t for t in self._tasks.values() if t.group_id in group_ids]
            task_ids = {t.id for t in tasks}
            subtasks = [st for st in self._subtasks.values() if st.task_id in task_ids]
        return assemble_tree(projects, groups, tasks, subtasks)
