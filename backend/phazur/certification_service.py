"""Certification submission gate; payment and grading stay with external collaborators."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .curriculum import is_known_path, total_milestones
from .db.session import session_scope
from .errors import UnknownPathError
from .progress import completion_percent, is_eligible_for_certification
from .repositories.certifications import certification_repository, submission_payload
from .telemetry import emit_event

logger = logging.getLogger(__name__)


class CertificationArtifacts(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    architecture_diagram_url: Optional[str] = None
    demo_video_url: Optional[str] = None
    execution_logs_url: Optional[str] = None
    roi_document_url: Optional[str] = None
    documentation_url: Optional[str] = None


class CertificationRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    project_title: Optional[str] = Field(default=None, max_length=255)
    artifacts: CertificationArtifacts = Field(default_factory=CertificationArtifacts)


class CertificationStore:
    def submit(
        self, user_id: str, path: str, request: CertificationRequest
    ) -> Tuple[Dict[str, Any], bool]:
        with session_scope() as session:
            return certification_repository.submit(
                session,
                user_id,
                path,
                project_title=request.project_title,
                artifacts=request.artifacts.model_dump(exclude_none=True),
            )

    def latest(self, user_id: str, path: str) -> Optional[Dict[str, Any]]:
        with session_scope(commit=False) as session:
            model = certification_repository.latest(session, user_id, path)
            return submission_payload(model) if model is not None else None

    def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        with session_scope(commit=False) as session:
            return certification_repository.list_for_user(session, user_id)

    def approved_count(self, user_id: str, path: str) -> int:
        with session_scope(commit=False) as session:
            return certification_repository.approved_count(session, user_id, path)


certification_store = CertificationStore()


def submit_certification(
    user_id: str,
    path: str,
    request: Optional[CertificationRequest] = None,
    *,
    store: CertificationStore = certification_store,
) -> Tuple[Dict[str, Any], bool]:
    if not is_known_path(path):
        raise UnknownPathError(path)
    submission, created = store.submit(user_id, path, request or CertificationRequest())
    if created:
        emit_event("certification_submitted", user_id=user_id, path=path, submission_id=submission["id"])
    else:
        logger.info("Submission already exists for user=%s path=%s", user_id, path)
    return submission, created


def certification_status(
    user_id: str, path: str, *, store: CertificationStore = certification_store
) -> Dict[str, Any]:
    """Latest submission for ``path`` alongside the progress that gates it."""
    if not is_known_path(path):
        raise UnknownPathError(path)
    total = total_milestones(path)
    approved = store.approved_count(user_id, path)
    return {
        "submission": store.latest(user_id, path),
        "progress": {
            "totalMilestones": total,
            "approvedMilestones": approved,
            "completionPercentage": completion_percent(approved, total),
            "isEligibleForCertification": is_eligible_for_certification(approved, total),
        },
    }


def list_certifications(user_id: str, *, store: CertificationStore = certification_store) -> List[Dict[str, Any]]:
    return store.list_for_user(user_id)


__all__ = [
    "CertificationArtifacts",
    "CertificationRequest",
    "CertificationStore",
    "certification_status",
    "list_certifications",
    "submit_certification",
]
