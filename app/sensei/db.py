from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from collections.abc import Generator

from flask import Flask, g
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)


def build_engine(db_url: str, *, debug_checkouts: bool = False) -> Engine:
    """
    Engine for the app and the scripts. Postgres gets a bounded pool;
    SQLite (local dev and tests) keeps SQLAlchemy's defaults.
    """
    engine_kwargs: dict[str, object] = {
        "future": True,
        "pool_pre_ping": True,
    }
    if db_url.startswith("postgres"):
        engine_kwargs.update(
            {
                "pool_recycle": 1800,
                "pool_size": 5,
                "max_overflow": 10,
                "pool_timeout": 30,
            }
        )
    engine = create_engine(db_url, **engine_kwargs)
    if debug_checkouts:
        @event.listens_for(engine, "checkout")
        def _receive_checkout(dbapi_connection, connection_record, connection_proxy):  # type: ignore[no-redef]
            logger.debug("Store connection checked out for %s", engine.url.get_backend_name())
    return engine


def make_sessionmaker(engine: Engine) -> sessionmaker[Session]:
    # expire_on_commit=False: entities returned by SqlStore stay readable after the request commits.
    return sessionmaker(
        bind=engine,
        class_=Session,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        future=True,
    )


def init_db(app: Flask) -> None:
    engine = build_engine(app.config["DATABASE_URL"], debug_checkouts=app.config.get("ENV") != "production")
    app.extensions["sqlalchemy_engine"] = engine
    app.extensions["sqlalchemy_sessionmaker"] = make_sessionmaker(engine)
    _dispose_engine_on_fork(app)


def _dispose_engine_on_fork(app: Flask) -> None:
    # gunicorn --preload forks after create_app(); children must not share pooled connections.
    if not hasattr(os, "register_at_fork"):
        return

    def _after_fork_child() -> None:
        engine = app.extensions.get("sqlalchemy_engine")
        if engine is not None:
            engine.dispose()
            app.logger.info("Disposed store engine after fork (pid=%s)", os.getpid())

    os.register_at_fork(after_in_child=_after_fork_child)


def db_session(app: Flask | None = None) -> Session:
    """
    Request-scoped session backing SqlStore; closed by teardown_db_session.
    """
    if getattr(g, "db_session", None) is not None:
        return g.db_session
    if app is None:
        from flask import current_app

        app = current_app
    g.db_session = app.extensions["sqlalchemy_sessionmaker"]()  # type: ignore[assignment]
    return g.db_session


def teardown_db_session(_exc: BaseException | None) -> None:
    s: Session | None = getattr(g, "db_session", None)
    if s is not None:
        s.close()
        g.db_session = None


@contextmanager
def session_scope(sm: sessionmaker[Session]) -> Generator[Session, None, None]:
    """
    Unit of work outside a request (scripts, seeding): commits on success, rolls back on error.
    """
    s: Session = sm()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
