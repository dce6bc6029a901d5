"""
SQLAlchemy engine and the request-scoped session dependency.

Production runs on PostgreSQL, configured by DATABASE_URL or the POSTGRES_*
variables. Test runs get an in-memory SQLite engine, or whatever
BYTEINIT_TEST_DB points at.
"""
import os
import sys
from typing import Any, Dict, Tuple

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

_POSTGRES_PARTS = ("POSTGRES_USER", "POSTGRES_PASSWORD", "POSTGRES_HOST", "POSTGRES_PORT", "POSTGRES_DB")


def _postgres_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    parts = {name: os.getenv(name) for name in _POSTGRES_PARTS}
    missing = [name for name, value in parts.items() if not value]
    if missing:
        raise ValueError(f"Set DATABASE_URL or all of: {', '.join(missing)}")
    return "postgresql://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}".format(**parts)


def _under_pytest() -> bool:
    # Collection imports this module before PYTEST_CURRENT_TEST exists
    return os.getenv("PYTEST_RUNNING") == "1" or "PYTEST_CURRENT_TEST" in os.environ or "pytest" in sys.modules


def _engine_config() -> Tuple[str, Dict[str, Any]]:
    override = os.getenv("BYTEINIT_TEST_DB")
    if override:
        if override.startswith("sqlite"):
            return override, {"connect_args": {"check_same_thread": False}}
        return override, {}
    if _under_pytest():
        # One connection for the whole process so every session sees the same memory database
        return "sqlite+pysqlite:///:memory:", {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return _postgres_url(), {"pool_pre_ping": True}


DATABASE_URL, _engine_kwargs = _engine_config()
engine = create_engine(DATABASE_URL, **_engine_kwargs)

if engine.dialect.name == "sqlite":
    # Cascading deletes of comments, reactions and saves rely on this
    @event.listens_for(engine, "connect")
    def _sqlite_foreign_keys(dbapi_connection, connection_record):  # pragma: no cover - trivial
        dbapi_connection.execute("PRAGMA foreign_keys=ON")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
