"""Lazily built engine and transaction scopes for the progress store."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from ..config import Settings, get_settings
from .monitoring import instrument_engine

# Seconds a SQLite writer waits on the file lock before giving up.
SQLITE_BUSY_TIMEOUT = 15

_engine: Optional[Engine] = None
_sessions: Optional[sessionmaker[Session]] = None


def _engine_options(url: str, settings: Settings) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.database_echo, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT}
    else:
        options["pool_size"] = settings.database_pool_size
        options["max_overflow"] = settings.database_max_overflow
    return options


def get_engine() -> Engine:
    """Return the process-wide engine, building and instrumenting it on first use."""
    global _engine, _sessions
    if _engine is not None:
        return _engine

    settings = get_settings()
    url = settings.database_url
    if not url:
        raise RuntimeError("PHAZUR_DATABASE_URL must be configured before using the database.")

    engine = create_engine(url, **_engine_options(url, settings))
    instrument_engine(engine)
    _sessions = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    _engine = engine
    return engine


@contextmanager
def session_scope(*, commit: bool = True) -> Iterator[Session]:
    """One transaction: committed on success when ``commit`` is set, rolled back on error."""
    get_engine()
    assert _sessions is not None
    with _sessions() as session:
        try:
            yield session
            if commit:
                session.commit()
        except Exception:  # noqa: BLE001
            session.rollback()
            raise


def dispose_engine() -> None:
    global _engine, _sessions
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _sessions = None


__all__ = [
    "dispose_engine",
    "get_engine",
    "session_scope",
]
