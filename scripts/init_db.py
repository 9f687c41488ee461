"""
Local development helper: create tables directly (no Alembic) and optionally
seed a demo account.

Usage:
  python scripts/init_db.py
  DEMO_USERNAME=demo DEMO_PASSWORD=secret123 python scripts/init_db.py
"""

import os
import sys
from pathlib import Path

from sqlalchemy import select
from werkzeug.security import generate_password_hash

# Ensure repo root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.sensei.db import build_engine, make_sessionmaker, session_scope  # noqa: E402
from app.sensei.models import Base, User  # noqa: E402


def init(*, database_url: str | None = None) -> None:
    """
    Create all tables and, when DEMO_USERNAME is set, a demo user.
    Does NOT overwrite an existing user's password.
    """
    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///sensei.db").strip()
    demo_username = (os.environ.get("DEMO_USERNAME") or "").strip()
    demo_password = os.environ.get("DEMO_PASSWORD") or "change-me"

    engine = build_engine(db_url)
    try:
        Base.metadata.create_all(bind=engine)
        with session_scope(make_sessionmaker(engine)) as s:
            print(f"Schema ready at {db_url}", flush=True)
            if not demo_username:
                return
            existing = s.execute(select(User).where(User.username == demo_username)).scalar_one_or_none()
            if existing:
                print(f"Demo user '{demo_username}' already exists (id={existing.id})", flush=True)
                return
            u = User(
                username=demo_username,
                first_name="Demo",
                last_name="User",
                email=f"{demo_username}@example.com",
                password_hash=generate_password_hash(demo_password),
            )
            s.add(u)
            s.flush()
            print(f"Created demo user '{demo_username}' (id={u.id})", flush=True)
    finally:
        engine.dispose()


def main() -> None:
    init()


if __name__ == "__main__":
    main()
