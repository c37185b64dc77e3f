from __future__ import annotations

from sqlalchemy import create_engine, text

from phazur.db import monitoring
from phazur.milestone_store import milestone_store
from scripts import db_metrics


def test_instrument_engine_emits_telemetry(monkeypatch) -> None:
    emitted: list[tuple[str, dict[str, object]]] = []

    def record(event_name: str, **payload: object) -> None:
        emitted.append((event_name, payload))

    monkeypatch.setattr(monitoring, "_TELEMETRY_INTERVAL", 0)
    monkeypatch.setattr(monitoring, "emit_event", record)

    engine = create_engine("sqlite:///:memory:", future=True)
    try:
        monitoring.instrument_engine(engine)
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        assert emitted, "Expected telemetry emission when instrumentation is active."
        event_name, payload = emitted[0]
        assert event_name == "db_pool_status"
        assert payload["trigger"] == "connect"
        assert payload["connects"] >= 1
    finally:
        engine.dispose()


def test_pool_snapshot_counts_checkins(monkeypatch) -> None:
    monkeypatch.setattr(monitoring, "emit_event", lambda *_, **__: None)
    engine = create_engine("sqlite:///:memory:", future=True)
    try:
        monitoring.instrument_engine(engine)
        monitoring.instrument_engine(engine)
        for _ in range(2):
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        snapshot = monitoring.get_pool_snapshot(engine)
        assert snapshot["checkouts"] == 2
        assert snapshot["checkins"] == 2
        assert isinstance(snapshot["status"], str)
    finally:
        engine.dispose()


def test_db_metrics_counts_statuses(database) -> None:
    milestone_store.enroll("metrics-learner", "student")
    payload = db_metrics.collect()
    assert payload["milestones_by_status"] == {"active": 1, "locked": 9}
    assert "checkouts" in payload["pool"]
