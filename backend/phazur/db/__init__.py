"""Database utilities for the progression engine."""

from .session import dispose_engine, get_engine, session_scope

__all__ = [
    "dispose_engine",
    "get_engine",
    "session_scope",
]
