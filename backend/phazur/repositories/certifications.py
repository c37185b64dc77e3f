"""Certification submissions gated on milestone progress."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..curriculum import total_milestones
from ..db.models import CertificationSubmissionModel, UserMilestoneModel
from ..errors import AlreadyCertifiedError, CertificationNotEligibleError
from ..milestones import MilestoneStatus
from ..progress import is_eligible_for_certification
from ..transitions import MilestoneEvent
from .milestones import MilestoneRepository, milestone_repository

SUBMISSION_STATUSES = ("submitted", "under_review", "passed", "failed")
PENDING_STATUSES = frozenset({"submitted", "under_review"})


def submission_payload(model: CertificationSubmissionModel) -> Dict[str, Any]:
    return {
        "id": model.id,
        "user_id": model.user_id,
        "path": model.path,
        "status": model.status,
        "project_title": model.project_title,
        "artifacts": dict(model.artifacts or {}),
        "submitted_at": model.submitted_at,
    }


class CertificationRepository:
    def __init__(self, milestones: MilestoneRepository = milestone_repository) -> None:
        self._milestones = milestones

    def approved_count(self, session: Session, user_id: str, path: str) -> int:
        stmt = select(func.count()).select_from(UserMilestoneModel).where(
            UserMilestoneModel.user_id == user_id,
            UserMilestoneModel.path == path,
            UserMilestoneModel.status == MilestoneStatus.APPROVED.value,
        )
        return int(session.execute(stmt).scalar_one())

    def latest(self, session: Session, user_id: str, path: str) -> Optional[CertificationSubmissionModel]:
        stmt = (
            select(CertificationSubmissionModel)
            .where(
                CertificationSubmissionModel.user_id == user_id,
                CertificationSubmissionModel.path == path,
            )
            .order_by(
                CertificationSubmissionModel.submitted_at.desc(),
                CertificationSubmissionModel.created_at.desc(),
            )
            .limit(1)
        )
        return session.execute(stmt).scalars().first()

    def list_for_user(self, session: Session, user_id: str) -> List[Dict[str, Any]]:
        stmt = (
            select(CertificationSubmissionModel)
            .where(CertificationSubmissionModel.user_id == user_id)
            .order_by(CertificationSubmissionModel.submitted_at.desc())
        )
        return [submission_payload(model) for model in session.execute(stmt).scalars().all()]

    def submit(
        self,
        session: Session,
        user_id: str,
        path: str,
        *,
        project_title: Optional[str] = None,
        artifacts: Optional[Dict[str, str]] = None,
    ) -> Tuple[Dict[str, Any], bool]:
        """Open a submission for ``path``; returns the submission and whether it was created.

        A pending submission is returned as is. A failed one may be resubmitted. The final
        milestone moves to ``submitted`` alongside a new submission when it is still open.
        """
        total = total_milestones(path)
        completed = self.approved_count(session, user_id, path)
        if not is_eligible_for_certification(completed, total):
            raise CertificationNotEligibleError(path, required=total - 1, completed=completed)

        existing = self.latest(session, user_id, path)
        if existing is not None and existing.status == "passed":
            raise AlreadyCertifiedError(path, existing.id)
        if existing is not None and existing.status in PENDING_STATUSES:
            return submission_payload(existing), False

        model = CertificationSubmissionModel(
            user_id=user_id,
            path=path,
            status="submitted",
            project_title=project_title,
            artifacts=dict(artifacts or {}),
        )
        session.add(model)
        session.flush()

        final = self._milestones.get(session, user_id, path, total)
        if final is not None and final.status in (MilestoneStatus.ACTIVE.value, MilestoneStatus.NEEDS_REVISION.value):
            self._milestones.transition(
                session,
                user_id,
                path,
                total,
                MilestoneEvent.SUBMIT,
                expected_status=MilestoneStatus(final.status),
                actor="certification",
            )
        self._milestones.record_telemetry_event(
            session,
            user_id,
            "certification_submitted",
            {"path": path, "submission_id": model.id},
            actor="certification",
        )
        return submission_payload(model), True


certification_repository = CertificationRepository()

__all__ = [
    "CertificationRepository",
    "PENDING_STATUSES",
    "SUBMISSION_STATUSES",
    "certification_repository",
    "submission_payload",
]
