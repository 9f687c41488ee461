import logging
import time
from datetime import timedelta

from dotenv import load_dotenv
from flask import Flask, g, jsonify, request
from sqlalchemy import inspect as sa_inspect
from werkzeug.exceptions import HTTPException

from app.sensei.api import bp as api_bp
from app.sensei.auth import bp as auth_bp, load_current_user
from app.sensei.config import load_config
from app.sensei.db import init_db, teardown_db_session
from app.sensei.errors import CsrfError, Forbidden, SenseiError, StorageUnavailable
from app.sensei.models import EXPECTED_TABLES
from app.sensei.routes import bp as routes_bp
from app.sensei.security import validate_csrf
from app.sensei.store import EntityStore, SqlStore, build_store

_LOG_LINE_MAX = 80


def create_app(store: EntityStore | None = None) -> Flask:
    """
    Build the Flask app. `store` overrides the STORE_BACKEND choice (tests, embedding).
    """
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=8)
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True
    app.logger.setLevel(app.config.get("LOG_LEVEL") or "INFO")

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if store is None and app.config.get("STORE_BACKEND") == "sql":
            if not str(app.config.get("DATABASE_URL") or "").strip():
                raise RuntimeError("DATABASE_URL is required in production.")
            if str(app.config["DATABASE_URL"]).startswith("sqlite"):
                raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    if store is None and app.config.get("STORE_BACKEND") == "sql":
        init_db(app)

    if store is None:
        store = build_store(app)
    app.extensions["sensei_store"] = store
    app.logger.info("Entity store backend: %s", store.backend_name)

    @app.before_request
    def _start_timer():
        g.request_started = time.perf_counter()

    app.before_request(load_current_user)

    @app.before_request
    def _csrf_guard():
        if not app.config.get("CSRF_ENABLED"):
            return None
        # Anonymous callers fall through to login_required and get 401.
        if getattr(g, "current_user", None) is None:
            return None
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            # Session bootstrap endpoints (register/login/logout) pass through.
            if (request.endpoint or "").startswith("auth."):
                return None
            if not validate_csrf(request):
                raise CsrfError()
        return None

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/api")
    app.register_blueprint(api_bp, url_prefix="/api")

    app.teardown_appcontext(teardown_db_session)

    @app.after_request
    def _log_api_request(response):
        if not request.path.startswith("/api"):
            return response
        started = getattr(g, "request_started", None)
        duration_ms = int((time.perf_counter() - started) * 1000) if started else 0
        line = f"{request.method} {request.path} {response.status_code} in {duration_ms}ms"
        if response.is_json and not response.direct_passthrough:
            line += f" :: {response.get_data(as_text=True).strip()}"
        if len(line) > _LOG_LINE_MAX:
            line = line[: _LOG_LINE_MAX - 1] + "…"
        app.logger.info(line)
        return response

    # Schema health (lean): warn when the database hasn't been migrated yet.
    def _run_schema_health_check() -> None:
        engine = app.extensions.get("sqlalchemy_engine")
        if engine is None:
            return
        try:
            insp = sa_inspect(engine)
            missing = [t for t in EXPECTED_TABLES if not insp.has_table(t)]
        except Exception as e:
            app.logger.exception("Schema health check failed: %s", e)
            return
        if missing:
            app.logger.warning("DB schema out of date; run `alembic upgrade head`. Missing: %s", ", ".join(missing))

    if isinstance(store, SqlStore):
        _run_schema_health_check()

    @app.errorhandler(SenseiError)
    def _err_sensei(e: SenseiError):
        rid = getattr(g, "request_id", None)
        if isinstance(e, Forbidden):
            user = getattr(g, "current_user", None)
            app.logger.warning(
                "Forbidden: user_id=%s %s=%s owner_id=%s request_id=%s",
                getattr(user, "id", None),
                e.kind,
                e.ident,
                e.owner_id,
                rid,
            )
        elif isinstance(e, StorageUnavailable):
            app.logger.error("Storage unavailable (request_id=%s): %s", rid, e.__cause__)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def _err_http(e: HTTPException):
        return jsonify({"message": e.name}), e.code

    @app.errorhandler(Exception)
    def _err_500(e: Exception):
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return jsonify({"message": "Internal Server Error"}), 500

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
