from __future__ import annotations

from flask import Flask

from app.sensei.store.base import EntityStore, GroupNode, ProjectNode, TaskNode, assemble_tree
from app.sensei.store.memory import MemoryStore
from app.sensei.store.sql import SqlStore

__all__ = [
    "EntityStore",
    "GroupNode",
    "MemoryStore",
    "ProjectNode",
    "SqlStore",
    "TaskNode",
    "assemble_tree",
    "build_store",
    "get_store",
]


def build_store(app: Flask) -> EntityStore:
    """Pick the backend named by STORE_BACKEND. The SQL backend needs init_db(app) first."""
    backend = (app.config.get("STORE_BACKEND") or "sql").lower()
    if backend == "memory":
        return MemoryStore()
    if backend == "sql":
        from app.sensei.db import db_session

        return SqlStore(lambda: db_session(app))
    raise RuntimeError(f"Unknown STORE_BACKEND {backend!r}; expected 'sql' or 'memory'.")


def get_store() -> EntityStore:
    """The store wired into the running app by create_app()."""
    from flask import current_app

    return current_app.extensions["sensei_store"]
