from __future__ import annotations

import logging

import pytest

from phazur.config import get_settings
from phazur.identity import get_plan_id
from phazur.logging_config import configure_logging
from phazur.telemetry import _sanitize
from phazur.milestones import MilestoneStatus


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_settings_read_prefixed_environment(monkeypatch) -> None:
    monkeypatch.setenv("PHAZUR_DATABASE_URL", "sqlite://")
    monkeypatch.setenv("PHAZUR_DATABASE_POOL_SIZE", "3")
    monkeypatch.setenv("PHAZUR_DEFAULT_PLAN", "starter")
    monkeypatch.setenv("PHAZUR_DEBUG_ENDPOINTS", "true")
    settings = get_settings()
    assert settings.database_url == "sqlite://"
    assert settings.database_pool_size == 3
    assert settings.default_plan_id == "starter"
    assert settings.debug_endpoints is True


def test_invalid_settings_raise_runtime_error(monkeypatch) -> None:
    monkeypatch.setenv("PHAZUR_DATABASE_POOL_SIZE", "many")
    with pytest.raises(RuntimeError, match="Invalid backend configuration"):
        get_settings()


def test_plan_header_falls_back_to_configured_default(monkeypatch) -> None:
    monkeypatch.setenv("PHAZUR_DEFAULT_PLAN", "professional")
    assert get_plan_id(None) == "professional"
    assert get_plan_id("enterprise") == "enterprise"
    assert get_plan_id("gold") == "free"


def test_debug_sql_flag_raises_engine_log_level(monkeypatch) -> None:
    engine_logger = logging.getLogger("sqlalchemy.engine")
    previous = engine_logger.level
    monkeypatch.setenv("PHAZUR_DEBUG_SQL", "1")
    try:
        configure_logging()
        assert engine_logger.level == logging.DEBUG
    finally:
        engine_logger.setLevel(previous)


def test_telemetry_payload_sanitized() -> None:
    assert _sanitize({"status": MilestoneStatus.APPROVED, "count": 2}) == {"status": "approved", "count": 2}
