"""Tests for the identity endpoints (register/login/logout/user)."""
import pytest

from app.sensei import create_app
from app.sensei.auth import reset_rate_limits
from app.sensei.models import Base


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("STORE_BACKEND", "sql")
    monkeypatch.delenv("CSRF_ENABLED", raising=False)
    reset_rate_limits()

    app = create_app()
    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)
    return app.test_client()


def _profile(username="alice", **overrides):
    data = {
        "username": username,
        "password": "secret123",
        "firstName": "Alice",
        "lastName": "Liddell",
        "email": f"{username}@example.com",
    }
    data.update(overrides)
    return data


def test_register_logs_in_and_hides_password(client):
    r = client.post("/api/register", json=_profile())
    assert r.status_code == 201
    body = r.json
    assert body["id"] == 1
    assert body["username"] == "alice"
    assert body["firstName"] == "Alice"
    assert "password" not in body and "password_hash" not in body

    r = client.get("/api/user")
    assert r.status_code == 200
    assert r.json["username"] == "alice"


def test_register_duplicate_username(client):
    assert client.post("/api/register", json=_profile()).status_code == 201
    client.post("/api/logout")
    r = client.post("/api/register", json=_profile(email="other@example.com"))
    assert r.status_code == 400
    assert r.json["message"] == "Username already exists"


def test_register_reports_every_bad_field(client):
    r = client.post(
        "/api/register",
        json={"username": "al", "password": "123", "firstName": "", "email": "not-an-email"},
    )
    assert r.status_code == 400
    errors = r.json["errors"]
    assert set(errors) == {"username", "password", "firstName", "lastName", "email"}
    assert errors["email"] == "Invalid email address"


def test_register_rejects_non_object_body(client):
    r = client.post("/api/register", data="hello", content_type="text/plain")
    assert r.status_code == 400
    assert "body" in r.json["errors"]


def test_login_and_logout(client):
    client.post("/api/register", json=_profile())
    client.post("/api/logout")
    assert client.get("/api/user").status_code == 401

    r = client.post("/api/login", json={"username": "alice", "password": "secret123"})
    assert r.status_code == 200
    assert r.json["username"] == "alice"
    assert client.get("/api/user").status_code == 200

    r = client.post("/api/logout")
    assert r.status_code == 200
    assert client.get("/api/user").status_code == 401


def test_login_bad_credentials(client):
    client.post("/api/register", json=_profile())
    client.post("/api/logout")
    r = client.post("/api/login", json={"username": "alice", "password": "wrong-password"})
    assert r.status_code == 401
    r = client.post("/api/login", json={"username": "nobody", "password": "secret123"})
    assert r.status_code == 401


def test_login_rate_limited(client):
    for _ in range(5):
        r = client.post("/api/login", json={"username": "nobody", "password": "whatever"})
        assert r.status_code == 401
    r = client.post("/api/login", json={"username": "nobody", "password": "whatever"})
    assert r.status_code == 429


def test_login_rate_limit_window_expires(client, monkeypatch):
    from types import SimpleNamespace

    import app.sensei.auth as auth_module

    clock = SimpleNamespace(now=1000.0)
    monkeypatch.setattr(auth_module, "time", SimpleNamespace(monotonic=lambda: clock.now))
    for _ in range(5):
        client.post("/api/login", json={"username": "nobody", "password": "whatever"})
    assert client.post("/api/login", json={"username": "nobody", "password": "whatever"}).status_code == 429

    clock.now += 301
    r = client.post("/api/login", json={"username": "nobody", "password": "whatever"})
    assert r.status_code == 401


def test_login_with_seeded_user(tmp_path, monkeypatch):
    from werkzeug.security import generate_password_hash

    from app.sensei.db import session_scope
    from app.sensei.models import User

    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'seeded.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("STORE_BACKEND", "sql")
    reset_rate_limits()

    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
    with session_scope(app.extensions["sqlalchemy_sessionmaker"]) as s:
        s.add(
            User(
                username="seeded",
                first_name="S",
                last_name="D",
                email="seeded@example.com",
                password_hash=generate_password_hash("pw12345"),
            )
        )

    client = app.test_client()
    r = client.post("/api/login", json={"username": "seeded", "password": "pw12345"})
    assert r.status_code == 200
    assert r.json["email"] == "seeded@example.com"
