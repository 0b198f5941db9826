"""Database engine and session management."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator
from urllib.parse import urlparse

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from cfs_core.core.config import get_settings


def _ensure_sqlite_directory(database_url: str) -> None:
    parsed = urlparse(database_url)
    if parsed.scheme != "sqlite" or parsed.path in ("", ":memory:", "/:memory:"):
        return
    Path(parsed.path).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:  # noqa: ANN001
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str, *, echo: bool = False) -> Engine:
    """Build an engine for ``url``; in-memory SQLite shares a single connection."""

    if not url.startswith("sqlite"):
        return create_engine(url, future=True, echo=echo, pool_pre_ping=True)

    _ensure_sqlite_directory(url)
    engine_kwargs: dict[str, object] = {
        "future": True,
        "echo": echo,
        "connect_args": {"check_same_thread": False},
    }
    if url.endswith(":memory:") or url == "sqlite://":
        engine_kwargs["poolclass"] = StaticPool
    sqlite_engine = create_engine(url, **engine_kwargs)
    event.listen(sqlite_engine, "connect", _enable_sqlite_foreign_keys)
    return sqlite_engine


_settings = get_settings()
engine: Engine = create_db_engine(_settings.database_url, echo=_settings.sql_echo)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    future=True,
    class_=Session,
)


def create_schema() -> None:
    """Create all tables directly; used for local SQLite runs without Alembic."""

    from cfs_core.models import Base

    Base.metadata.create_all(bind=engine)


def get_session() -> Iterator[Session]:
    """FastAPI dependency for acquiring a database session."""

    session: Session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Provide a transactional scope for scripts, background jobs and tests."""

    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
