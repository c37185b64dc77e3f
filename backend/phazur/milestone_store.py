"""Transaction-scoped facade over the milestone repository."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Protocol

from sqlalchemy.exc import IntegrityError

from .db.session import session_scope
from .milestones import MilestoneStatus
from .transitions import MilestoneEvent, TransitionOutcome

if TYPE_CHECKING:
    from .repositories.milestones import MilestoneRepository

logger = logging.getLogger(__name__)


def _repo() -> "MilestoneRepository":
    from .repositories.milestones import milestone_repository as repository

    return repository


class ProgressStore(Protocol):
    """Read side used by the progress service; lets tests substitute a fake store."""

    def fetch_rows(self, user_id: str) -> List[Dict[str, Any]]:  # pragma: no cover - protocol
        ...

    def fetch_conversation_rows(self, user_id: str) -> List[Dict[str, Any]]:  # pragma: no cover - protocol
        ...


class MilestoneStore:
    """Each call runs in its own transaction; nothing is cached between calls."""

    def fetch_rows(self, user_id: str) -> List[Dict[str, Any]]:
        with session_scope(commit=False) as session:
            return _repo().list_rows(session, user_id)

    def fetch_conversation_rows(self, user_id: str) -> List[Dict[str, Any]]:
        with session_scope(commit=False) as session:
            return _repo().list_conversation_rows(session, user_id)

    def enroll(self, user_id: str, path: str) -> List[Dict[str, Any]]:
        try:
            with session_scope() as session:
                return _repo().enroll(session, user_id, path)
        except IntegrityError:
            # A concurrent enrollment created the rows first; theirs are as good as ours.
            logger.info("Concurrent enrollment detected for user=%s path=%s", user_id, path)
            with session_scope(commit=False) as session:
                return [row for row in _repo().list_rows(session, user_id) if row["path"] == path]

    def transition(
        self,
        user_id: str,
        path: str,
        milestone_number: int,
        event: MilestoneEvent,
        *,
        expected_status: MilestoneStatus,
        actor: str = "learner",
    ) -> TransitionOutcome:
        with session_scope() as session:
            return _repo().transition(
                session,
                user_id,
                path,
                milestone_number,
                event,
                expected_status=expected_status,
                actor=actor,
            )

    def record_telemetry_event(self, user_id: str, event_type: str, payload: Dict[str, Any]) -> None:
        with session_scope() as session:
            _repo().record_telemetry_event(session, user_id, event_type, payload)

    def recent_audit_events(self, user_id: str, limit: int = 50):
        with session_scope(commit=False) as session:
            return _repo().recent_audit_events(session, user_id, limit=limit)

    def delete(self, user_id: str) -> bool:
        with session_scope() as session:
            return _repo().delete_user(session, user_id)


milestone_store = MilestoneStore()

__all__ = ["MilestoneStore", "ProgressStore", "milestone_store"]
