"""Database-backed milestone record repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from ..curriculum import get_milestones, total_milestones
from ..db.models import (
    CertificationSubmissionModel,
    PersistenceAuditEventModel,
    TutorConversationModel,
    UsageTrackingModel,
    UserMilestoneModel,
)
from ..errors import InvalidTransitionError, MilestoneConflictError, MilestoneNotFoundError
from ..milestones import MilestoneStatus
from ..transitions import MilestoneEvent, TransitionOutcome, resolve_transition


def _normalize_user_id(user_id: str) -> str:
    normalized = user_id.strip()
    if not normalized:
        raise ValueError("User id cannot be empty.")
    return normalized


def _row_payload(model: UserMilestoneModel) -> Dict[str, Any]:
    return {
        "user_id": model.user_id,
        "path": model.path,
        "milestone_number": model.milestone_number,
        "status": model.status,
        "submitted_at": model.submitted_at,
        "approved_at": model.approved_at,
    }


class MilestoneRepository:
    """Session-scoped access to ``user_milestones`` and its companion tables.

    Status writes are compare-and-set: an UPDATE only lands when the row still carries the
    status and version the caller observed.
    """

    def list_rows(self, session: Session, user_id: str) -> List[Dict[str, Any]]:
        stmt = (
            select(UserMilestoneModel)
            .where(UserMilestoneModel.user_id == _normalize_user_id(user_id))
            .order_by(
                UserMilestoneModel.path.asc(),
                UserMilestoneModel.milestone_number.asc(),
                UserMilestoneModel.updated_at.asc(),
            )
        )
        return [_row_payload(model) for model in session.execute(stmt).scalars().all()]

    def list_conversation_rows(self, session: Session, user_id: str) -> List[Dict[str, Any]]:
        stmt = select(TutorConversationModel).where(
            TutorConversationModel.user_id == _normalize_user_id(user_id)
        )
        return [
            {"path": model.path, "current_milestone_number": model.current_milestone}
            for model in session.execute(stmt).scalars().all()
        ]

    def get(self, session: Session, user_id: str, path: str, milestone_number: int) -> UserMilestoneModel | None:
        stmt = select(UserMilestoneModel).where(
            UserMilestoneModel.user_id == _normalize_user_id(user_id),
            UserMilestoneModel.path == path,
            UserMilestoneModel.milestone_number == milestone_number,
        )
        return session.execute(stmt).scalar_one_or_none()

    def enroll(self, session: Session, user_id: str, path: str) -> List[Dict[str, Any]]:
        """Create the locked/active record set for ``path``; existing records are left alone."""
        normalized = _normalize_user_id(user_id)
        catalog = get_milestones(path)
        existing = {
            model.milestone_number
            for model in session.execute(
                select(UserMilestoneModel).where(
                    UserMilestoneModel.user_id == normalized,
                    UserMilestoneModel.path == path,
                )
            ).scalars()
        }
        created = 0
        for definition in catalog:
            if definition.number in existing:
                continue
            first = definition.number == 1 and not existing
            session.add(
                UserMilestoneModel(
                    user_id=normalized,
                    path=path,
                    milestone_number=definition.number,
                    status=(MilestoneStatus.ACTIVE if first else MilestoneStatus.LOCKED).value,
                )
            )
            created += 1
        if not existing:
            self.set_conversation_milestone(session, normalized, path, 1)
        session.flush()
        if created:
            self._record_audit(session, normalized, "path_enrolled", {"path": path, "created": created})
        return [row for row in self.list_rows(session, normalized) if row["path"] == path]

    def compare_and_set(
        self,
        session: Session,
        record_id: str,
        *,
        expected_status: MilestoneStatus,
        expected_version: int,
        new_status: MilestoneStatus,
        now: Optional[datetime] = None,
    ) -> bool:
        """Apply ``new_status`` only if the row is unchanged since it was read."""
        now = now or datetime.now(timezone.utc)
        values: Dict[str, Any] = {
            "status": new_status.value,
            "version": expected_version + 1,
            "updated_at": now,
        }
        if new_status is MilestoneStatus.SUBMITTED:
            values["submitted_at"] = now
        elif new_status is MilestoneStatus.APPROVED:
            values["approved_at"] = now
        stmt = (
            update(UserMilestoneModel)
            .where(
                UserMilestoneModel.id == record_id,
                UserMilestoneModel.status == expected_status.value,
                UserMilestoneModel.version == expected_version,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = session.execute(stmt)
        return result.rowcount == 1

    def transition(
        self,
        session: Session,
        user_id: str,
        path: str,
        milestone_number: int,
        event: MilestoneEvent,
        *,
        expected_status: MilestoneStatus,
        actor: str = "learner",
    ) -> TransitionOutcome:
        event = MilestoneEvent(event)
        expected = MilestoneStatus(expected_status)
        normalized = _normalize_user_id(user_id)
        model = self.get(session, normalized, path, milestone_number)
        if model is None:
            raise MilestoneNotFoundError(normalized, path, milestone_number)

        try:
            observed = MilestoneStatus(model.status)
        except ValueError:
            raise InvalidTransitionError(model.status, event.value, "Stored status is not recognised.") from None

        if observed is MilestoneStatus.APPROVED:
            outcome = resolve_transition(observed, event)
            self._record_audit(
                session,
                normalized,
                "milestone_transition_ignored",
                {"path": path, "milestone_number": milestone_number, "event": event.value},
                actor=actor,
            )
            return outcome

        if observed is not expected:
            raise MilestoneConflictError(
                path=path,
                milestone_number=milestone_number,
                expected_status=expected.value,
                observed_status=observed.value,
            )

        outcome = resolve_transition(observed, event)
        if event is MilestoneEvent.UNLOCK:
            self._require_predecessor_approved(session, normalized, path, milestone_number)

        now = datetime.now(timezone.utc)
        changed = self.compare_and_set(
            session,
            model.id,
            expected_status=observed,
            expected_version=model.version,
            new_status=outcome.status,
            now=now,
        )
        if not changed:
            raise MilestoneConflictError(
                path=path,
                milestone_number=milestone_number,
                expected_status=expected.value,
                observed_status=self._current_status(session, model.id),
            )

        if outcome.status is MilestoneStatus.APPROVED:
            self._unlock_next(session, normalized, path, milestone_number, now)
        elif outcome.status is MilestoneStatus.ACTIVE:
            self.set_conversation_milestone(session, normalized, path, milestone_number)

        self._record_audit(
            session,
            normalized,
            "milestone_transition",
            {
                "path": path,
                "milestone_number": milestone_number,
                "event": event.value,
                "from": outcome.previous.value,
                "to": outcome.status.value,
            },
            actor=actor,
        )
        session.flush()
        return outcome

    def set_conversation_milestone(self, session: Session, user_id: str, path: str, milestone_number: int) -> None:
        normalized = _normalize_user_id(user_id)
        stmt = select(TutorConversationModel).where(
            TutorConversationModel.user_id == normalized,
            TutorConversationModel.path == path,
        )
        model = session.execute(stmt).scalar_one_or_none()
        if model is None:
            session.add(TutorConversationModel(user_id=normalized, path=path, current_milestone=milestone_number))
        else:
            model.current_milestone = milestone_number

    def record_telemetry_event(
        self, session: Session, user_id: str, event_type: str, payload: Dict[str, Any], *, actor: str = "telemetry"
    ) -> None:
        self._record_audit(session, _normalize_user_id(user_id), event_type, payload, actor=actor)

    def recent_audit_events(self, session: Session, user_id: str, limit: int = 50) -> List[PersistenceAuditEventModel]:
        stmt = (
            select(PersistenceAuditEventModel)
            .where(PersistenceAuditEventModel.user_id == _normalize_user_id(user_id))
            .order_by(PersistenceAuditEventModel.created_at.desc())
            .limit(limit)
        )
        return list(session.execute(stmt).scalars().all())

    def delete_user(self, session: Session, user_id: str) -> bool:
        normalized = _normalize_user_id(user_id)
        removed = session.execute(
            delete(UserMilestoneModel).where(UserMilestoneModel.user_id == normalized)
        ).rowcount
        for model in (TutorConversationModel, UsageTrackingModel, CertificationSubmissionModel):
            session.execute(delete(model).where(model.user_id == normalized))
        if removed:
            self._record_audit(session, normalized, "progress_delete", {"records": removed})
        return bool(removed)

    def _require_predecessor_approved(self, session: Session, user_id: str, path: str, milestone_number: int) -> None:
        if milestone_number == 1:
            return
        predecessor = self.get(session, user_id, path, milestone_number - 1)
        if predecessor is None or predecessor.status != MilestoneStatus.APPROVED.value:
            raise InvalidTransitionError(
                MilestoneStatus.LOCKED.value,
                MilestoneEvent.UNLOCK.value,
                f"Milestone {milestone_number - 1} must be approved first.",
            )

    def _unlock_next(self, session: Session, user_id: str, path: str, milestone_number: int, now: datetime) -> None:
        total = total_milestones(path)
        following = self.get(session, user_id, path, milestone_number + 1) if milestone_number < total else None
        if following is not None and following.status == MilestoneStatus.LOCKED.value:
            self.compare_and_set(
                session,
                following.id,
                expected_status=MilestoneStatus.LOCKED,
                expected_version=following.version,
                new_status=MilestoneStatus.ACTIVE,
                now=now,
            )
        self.set_conversation_milestone(session, user_id, path, min(milestone_number + 1, total))

    def _current_status(self, session: Session, record_id: str) -> str:
        stmt = select(UserMilestoneModel.status).where(UserMilestoneModel.id == record_id)
        return session.execute(stmt).scalar_one()

    def _record_audit(
        self,
        session: Session,
        user_id: Optional[str],
        event_type: str,
        payload: Dict[str, Any],
        *,
        actor: str = "system",
    ) -> None:
        session.add(
            PersistenceAuditEventModel(
                user_id=user_id,
                event_type=event_type,
                payload=payload,
                actor=actor,
            )
        )


milestone_repository = MilestoneRepository()

__all__ = ["MilestoneRepository", "milestone_repository"]
