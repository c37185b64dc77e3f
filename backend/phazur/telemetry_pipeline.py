"""Telemetry listener that writes events raised outside a committed transaction to the audit log.

Events raised while reading progress are not listed here, so reads stay log-only.
"""

from __future__ import annotations

import logging
from typing import Set

from .milestone_store import milestone_store
from .telemetry import TelemetryEvent, register_listener

logger = logging.getLogger(__name__)

_MONITORED_EVENTS: Set[str] = {
    "milestone_transition_conflict",
    "path_access_denied",
}


def _persist_event(event: TelemetryEvent) -> None:
    if event.name not in _MONITORED_EVENTS:
        return
    user_id = event.payload.get("user_id")
    if not isinstance(user_id, str) or not user_id.strip():
        return
    try:
        milestone_store.record_telemetry_event(user_id, event.name, event.payload)
    except Exception:  # noqa: BLE001
        logger.exception("Failed to persist telemetry event %s for user_id=%s", event.name, user_id)


def install() -> None:
    register_listener(_persist_event)


__all__ = ["_MONITORED_EVENTS", "install"]
