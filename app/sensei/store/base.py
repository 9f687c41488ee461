from __future__ import annotations

from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from app.sensei.models import Group, Project, Subtask, Task, User

# Primary keys are INTEGER columns, 32-bit on Postgres.
MAX_ID = 2**31 - 1


def id_in_range(ident: int) -> bool:
    return 1 <= ident <= MAX_ID


@dataclass
class TaskNode:
    task: Task
    subtasks: list[Subtask] = field(default_factory=list)


@dataclass
class GroupNode:
    group: Group
    tasks: list[TaskNode] = field(default_factory=list)


@dataclass
class ProjectNode:
    project: Project
    groups: list[GroupNode] = field(default_factory=list)


def _by_id(rows: Iterable) -> list:
    return sorted(rows, key=lambda r: r.id)


def assemble_tree(
    projects: Iterable[Project],
    groups: Iterable[Group],
    tasks: Iterable[Task],
    subtasks: Iterable[Subtask],
) -> list[ProjectNode]:
    """
    Build Project -> Group -> Task -> Subtask nodes from four flat row lists.

    Every level comes back in id (creation) order. Rows whose parent is not in
    the level above are dropped, so a child inserted between the reads of two
    levels can never show up detached from its parent.
    """
    subtasks_by_task: dict[int, list[Subtask]] = defaultdict(list)
    for st in _by_id(subtasks):
        subtasks_by_task[st.task_id].append(st)

    tasks_by_group: dict[int, list[TaskNode]] = defaultdict(list)
    for t in _by_id(tasks):
        tasks_by_group[t.group_id].append(TaskNode(t, subtasks_by_task.get(t.id, [])))

    groups_by_project: dict[int, list[GroupNode]] = defaultdict(list)
    for grp in _by_id(groups):
        groups_by_project[grp.project_id].append(GroupNode(grp, tasks_by_group.get(grp.id, [])))

    return [ProjectNode(p, groups_by_project.get(p.id, [])) for p in _by_id(projects)]


class EntityStore(ABC):
    """
    Storage contract shared by the in-memory and SQL backends.

    Lookups return None for a missing id. Updates raise NotFound.
    Backend failures surface as StorageUnavailable.
    """

    backend_name = "abstract"

    # ---- users ----

    @abstractmethod
    def create_user(self, *, username: str, password_hash: str, first_name: str, last_name: str, email: str) -> User: ...

    @abstractmethod
    def get_user(self, user_id: int) -> User | None: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> User | None: ...

    # ---- hierarchy ----

    @abstractmethod
    def create_project(self, *, name: str, user_id: int) -> Project: ...

    @abstractmethod
    def get_project(self, project_id: int) -> Project | None: ...

    @abstractmethod
    def create_group(self, *, name: str, project_id: int) -> Group: ...

    @abstractmethod
    def get_group(self, group_id: int) -> Group | None: ...

    @abstractmethod
    def create_task(self, *, title: str, group_id: int) -> Task: ...

    @abstractmethod
    def get_task(self, task_id: int) -> Task | None: ...

    @abstractmethod
    def update_task_completion(self, task_id: int, completed: bool) -> Task: ...

    @abstractmethod
    def create_subtask(self, *, title: str, task_id: int) -> Subtask: ...

    @abstractmethod
    def get_subtask(self, subtask_id: int) -> Subtask | None: ...

    @abstractmethod
    def update_subtask_completion(self, subtask_id: int, completed: bool) -> Subtask: ...

    @abstractmethod
    def get_projects_with_children(self, user_id: int) -> list[ProjectNode]: ...

    # ---- generic ----

    def get(self, kind: str, ident: int):
        """Point lookup by entity kind name ("project", "group", "task", "subtask")."""
        getter = {
            "project": self.get_project,
            "group": self.get_group,
            "task": self.get_task,
            "subtask": self.get_subtask,
        }.get(kind)
        if getter is None:
            raise ValueError(f"Unknown entity kind: {kind!r}")
        return getter(ident)
