"""Usage counters against plan quotas, stored per calendar month."""

from __future__ import annotations

from datetime import date

import pytest
from fastapi.testclient import TestClient

from phazur.db.session import session_scope
from phazur.errors import QuotaExceededError
from phazur.main import app
from phazur.repositories.usage import current_period, usage_repository
from phazur.usage_service import record_usage, usage_store

USER = "learner-usage"
client = TestClient(app)


def test_period_is_the_calendar_month() -> None:
    assert current_period(date(2026, 10, 19)) == (date(2026, 10, 1), date(2026, 11, 1))
    assert current_period(date(2026, 12, 31)) == (date(2026, 12, 1), date(2027, 1, 1))


def test_new_period_starts_at_zero(database) -> None:
    usage = usage_store.current(USER, today=date(2026, 10, 19))
    assert usage["tutor_sessions"] == 0
    assert usage["agent_executions"] == 0
    assert usage["skill_uses"] == 0
    assert usage["period_start"] == date(2026, 10, 1)
    assert usage["period_end"] == date(2026, 11, 1)


def test_increment_stops_at_limit(database) -> None:
    today = date(2026, 10, 19)
    assert usage_store.increment(USER, "agent", limit=2, today=today) == 1
    assert usage_store.increment(USER, "agent", limit=2, today=today) == 2
    assert usage_store.increment(USER, "agent", limit=2, today=today) is None
    assert usage_store.current(USER, today=today)["agent_executions"] == 2


def test_counters_reset_with_the_month(database) -> None:
    usage_store.increment(USER, "skill", today=date(2026, 10, 30))
    usage_store.increment(USER, "skill", today=date(2026, 10, 31))
    assert usage_store.current(USER, today=date(2026, 11, 1))["skill_uses"] == 0
    assert usage_store.current(USER, today=date(2026, 10, 2))["skill_uses"] == 2


def test_unknown_feature_is_rejected(database) -> None:
    with session_scope() as session:
        with pytest.raises(ValueError, match="Must be one of: tutor, agent, skill"):
            usage_repository.increment_usage(session, USER, "video")


def test_record_usage_raises_once_quota_spent(database, captured_events) -> None:
    for expected in (1, 2, 3):
        record = record_usage(USER, "free", "tutor")
        assert record.new_count == expected
    assert record.quota.remaining == 0
    assert record.quota.allowed is False

    with pytest.raises(QuotaExceededError) as excinfo:
        record_usage(USER, "free", "tutor")
    assert excinfo.value.limit == 3
    assert excinfo.value.used == 3
    assert [event.name for event in captured_events].count("usage_incremented") == 3
    assert captured_events[-1].name == "quota_exceeded"


def test_unlimited_plan_never_blocks(database) -> None:
    for _ in range(5):
        record = record_usage(USER, "professional", "tutor")
    assert record.new_count == 5
    assert record.quota.unlimited is True


def test_usage_routes(database) -> None:
    headers = {"X-User-Id": USER}
    summary = client.get("/api/usage", headers=headers).json()
    assert summary["usage"]["tutorSessions"] == 0
    assert summary["quotas"]["agent"]["limit"] == 5

    response = client.post("/api/usage", json={"feature": "skill"}, headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["newCount"] == 1
    assert body["feature"] == "skill"
    assert body["quota"]["remaining"] == 9

    assert client.post("/api/usage", json={"feature": "video"}, headers=headers).status_code == 422
    assert client.post("/api/usage", json={"feature": "tutor"}).status_code == 401


def test_usage_route_reports_exhausted_quota(database) -> None:
    headers = {"X-User-Id": USER}
    for _ in range(3):
        client.post("/api/usage", json={"feature": "tutor"}, headers=headers)

    response = client.post("/api/usage", json={"feature": "tutor"}, headers=headers)
    assert response.status_code == 429
    detail = response.json()["detail"]
    assert detail["error"] == "quota_exceeded"
    assert detail["limit"] == 3
    assert detail["used"] == 3
    assert client.get("/api/usage", headers=headers).json()["usage"]["tutorSessions"] == 3
