"""Certification submission and status endpoints."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Response, status
from fastapi.encoders import jsonable_encoder

from .certification_service import (
    CertificationRequest,
    certification_status,
    list_certifications,
    submit_certification,
)
from .errors import (
    AlreadyCertifiedError,
    CertificationNotEligibleError,
    MilestoneConflictError,
    UnknownPathError,
)
from .identity import get_current_user_id

router = APIRouter(prefix="/api/certification", tags=["certification"])


def _camel(submission: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if submission is None:
        return None
    return jsonable_encoder(
        {
            "id": submission["id"],
            "path": submission["path"],
            "status": submission["status"],
            "projectTitle": submission["project_title"],
            "artifacts": submission["artifacts"],
            "submittedAt": submission["submitted_at"],
        }
    )


@router.post("/{path}/submit", status_code=status.HTTP_201_CREATED)
def submit(
    path: str,
    response: Response,
    payload: Optional[CertificationRequest] = Body(default=None),
    user_id: str = Depends(get_current_user_id),
) -> Dict[str, Any]:
    try:
        submission, created = submit_certification(user_id, path, payload)
    except UnknownPathError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except CertificationNotEligibleError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Not all milestones completed",
                "required": exc.required,
                "completed": exc.completed,
            },
        ) from exc
    except AlreadyCertifiedError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except MilestoneConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    if not created:
        response.status_code = status.HTTP_200_OK
        return {"submission": _camel(submission), "message": "Submission already exists"}
    return {"submission": _camel(submission), "message": "Certification submitted"}


@router.get("")
def status_for_user(
    path: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
) -> Dict[str, Any]:
    if path is None:
        return {"submissions": [_camel(item) for item in list_certifications(user_id)]}
    try:
        result = certification_status(user_id, path)
    except UnknownPathError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return {"submission": _camel(result["submission"]), "progress": result["progress"]}
