from __future__ import annotations

from typing import Iterator, List

import pytest

from phazur.config import get_settings
from phazur.db import models  # noqa: F401  # registers tables on Base.metadata
from phazur.db.base import Base
from phazur.db.session import dispose_engine, get_engine
from phazur.telemetry import TelemetryEvent, register_listener, unregister_listener


@pytest.fixture
def database(tmp_path, monkeypatch) -> Iterator[str]:
    """Point the engine at a fresh SQLite file with the schema created."""
    url = f"sqlite:///{tmp_path / 'progress.sqlite'}"
    monkeypatch.setenv("PHAZUR_DATABASE_URL", url)
    get_settings.cache_clear()
    dispose_engine()
    Base.metadata.create_all(get_engine())
    try:
        yield url
    finally:
        dispose_engine()
        get_settings.cache_clear()


@pytest.fixture
def captured_events() -> Iterator[List[TelemetryEvent]]:
    events: List[TelemetryEvent] = []
    register_listener(events.append)
    try:
        yield events
    finally:
        unregister_listener(events.append)
