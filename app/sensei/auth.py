from __future__ import annotations

import time
import uuid
from collections import defaultdict

from flask import Blueprint, current_app, g, jsonify, request, session

from app.sensei.authz import current_user, login_required
from app.sensei.errors import DuplicateUsername, RateLimited, Unauthenticated
from app.sensei.security import hash_password, verify_password
from app.sensei.serialize import user_to_dict
from app.sensei.store import get_store
from app.sensei.validation import parse_login, parse_register

bp = Blueprint("auth", __name__)
_login_attempts: dict[str, list[float]] = defaultdict(list)
_LOGIN_RATE_LIMIT = 5
_LOGIN_RATE_WINDOW = 300  # seconds


def _check_rate_limit(ip: str) -> bool:
    cutoff = time.monotonic() - _LOGIN_RATE_WINDOW
    _login_attempts[ip] = [t for t in _login_attempts[ip] if t > cutoff]
    return len(_login_attempts[ip]) >= _LOGIN_RATE_LIMIT


def _record_attempt(ip: str) -> None:
    _login_attempts[ip].append(time.monotonic())


def reset_rate_limits() -> None:
    _login_attempts.clear()


def load_current_user() -> None:
    """
    Loads g.current_user from the signed session cookie.
    Also assigns a simple per-request request_id (for log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = uuid.uuid4().hex
    if request.path.startswith(("/static/", "/health", "/healthz")):
        g.current_user = None
        return

    user_id = session.get("user_id")
    if not user_id:
        g.current_user = None
        return

    user = get_store().get_user(int(user_id))
    if user is None:
        current_app.logger.info("Session references unknown user_id=%s; clearing", user_id)
        session.pop("user_id", None)
    g.current_user = user


def _login(user) -> None:
    session["user_id"] = user.id
    session.permanent = True
    g.current_user = user


@bp.post("/register")
def register():
    data = parse_register(request.get_json(silent=True))
    store = get_store()
    if store.get_user_by_username(data.username) is not None:
        raise DuplicateUsername()
    user = store.create_user(
        username=data.username,
        password_hash=hash_password(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
    )
    _login(user)
    current_app.logger.info("Registered user id=%s username=%s", user.id, user.username)
    return jsonify(user_to_dict(user)), 201


@bp.post("/login")
def login():
    ip = request.remote_addr or "unknown"
    if _check_rate_limit(ip):
        current_app.logger.warning("Login rate limit hit ip=%s request_id=%s", ip, g.request_id)
        raise RateLimited()
    _record_attempt(ip)

    data = parse_login(request.get_json(silent=True))
    user = get_store().get_user_by_username(data.username)
    if user is None or not verify_password(user.password_hash, data.password):
        current_app.logger.info("Login failed username=%s request_id=%s", data.username, g.request_id)
        raise Unauthenticated("Invalid credentials")

    _login(user)
    _login_attempts[ip].clear()
    return jsonify(user_to_dict(user))


@bp.post("/logout")
def logout():
    session.pop("user_id", None)
    g.current_user = None
    return jsonify({"ok": True})


@bp.get("/user")
@login_required
def me():
    return jsonify(user_to_dict(current_user()))
