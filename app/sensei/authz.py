from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import Any, NamedTuple

from flask import g

from app.sensei.errors import Forbidden, NotFound, Unauthenticated
from app.sensei.models import Project, User
from app.sensei.store import EntityStore

# kind -> (parent kind, attribute holding the parent id)
PARENT_OF: dict[str, tuple[str, str]] = {
    "subtask": ("task", "task_id"),
    "task": ("group", "group_id"),
    "group": ("project", "project_id"),
}


class Authorized(NamedTuple):
    resource: Any
    project: Project


def resolve_project(store: EntityStore, kind: str, ident: int) -> tuple[Any, Project]:
    """
    Walk parent pointers from (kind, ident) up to the owning Project.
    Returns (resource, project). Any missing hop raises NotFound for that hop.
    """
    if kind != "project" and kind not in PARENT_OF:
        raise ValueError(f"Unknown entity kind: {kind!r}")
    resource = None
    current_kind, current_id = kind, ident
    while True:
        obj = store.get(current_kind, current_id)
        if obj is None:
            raise NotFound(current_kind, current_id)
        if resource is None:
            resource = obj
        if current_kind == "project":
            return resource, obj
        current_kind, attr = PARENT_OF[current_kind]
        current_id = getattr(obj, attr)


def authorize(store: EntityStore, kind: str, ident: int, user_id: int) -> Authorized:
    """
    Confirm `user_id` owns the project at the root of (kind, ident)'s chain.
    Raises NotFound for a broken chain and Forbidden for someone else's project.
    """
    resource, project = resolve_project(store, kind, ident)
    if project.user_id != user_id:
        raise Forbidden(kind, ident, owner_id=project.user_id)
    return Authorized(resource, project)


def current_user() -> User | None:
    return getattr(g, "current_user", None)


def login_required(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        if current_user() is None:
            raise Unauthenticated()
        return fn(*args, **kwargs)

    return wrapped
