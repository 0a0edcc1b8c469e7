import os
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

# Absolute path to project root
BASE_DIR = Path(__file__).resolve().parent.parent.parent


def normalize_database_url(url: str) -> str:
    """Hosted Postgres often hands out postgres:// URLs; SQLAlchemy 2.x wants the driver spelled out."""
    url = url.strip()
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


DATABASE_URL = normalize_database_url(os.getenv("DATABASE_URL", "sqlite:///./fitlive.db"))


def _enable_sqlite_foreign_keys(dbapi_connection, _record):
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(url: str = DATABASE_URL, **kwargs) -> Engine:
    """
    Engine for *url* with the per-backend settings the app relies on.
    Shared by the app and Alembic so both see the same SQLite behaviour.
    """
    if url.startswith("sqlite"):
        # FastAPI runs sync routes in a threadpool
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", True)

    db_engine = create_engine(url, echo=os.getenv("SQL_ECHO", "0") == "1", future=True, **kwargs)
    if db_engine.url.get_backend_name() == "sqlite":
        event.listen(db_engine, "connect", _enable_sqlite_foreign_keys)
    return db_engine


engine = make_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def log_engine_diagnostics(db_engine: Engine) -> None:
    """One-time startup line(s) saying which database is in use."""
    url_safe = db_engine.url.render_as_string(hide_password=True)
    backend = db_engine.url.get_backend_name()
    print(f"[DB] Using database backend={backend} url={url_safe}", flush=True)

    if backend == "sqlite" and db_engine.url.database not in (None, "", ":memory:"):
        db_path = Path(db_engine.url.database).resolve()
        exists = db_path.exists()
        size = db_path.stat().st_size if exists else 0
        print(f"[DB] SQLite path={db_path} exists={exists} size_bytes={size}", flush=True)


try:
    log_engine_diagnostics(engine)
except Exception as exc:
    # Never crash app on logging
    print("[DB] Failed to log DB diagnostics:", repr(exc), flush=True)
