"""Learner progress and milestone transition endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict, Literal

from fastapi import APIRouter, Depends, HTTPException, Path, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .errors import (
    InvalidTransitionError,
    MilestoneConflictError,
    MilestoneNotFoundError,
    PathAccessDeniedError,
    UnknownPathError,
)
from .identity import get_current_user_id, get_plan_id
from .milestones import MilestoneStatus
from .progress_service import enroll_path, get_learning_progress, transition_milestone
from .transitions import MilestoneEvent

router = APIRouter(prefix="/api/user", tags=["progress"])
logger = logging.getLogger(__name__)


class MilestoneTransitionRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    event: MilestoneEvent
    expected_status: MilestoneStatus
    actor: Literal["learner", "reviewer", "tutor"] = "learner"


class MilestoneTransitionResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    path: str
    milestone_number: int = Field(..., ge=1)
    applied: bool
    previous_status: MilestoneStatus
    status: MilestoneStatus


@router.get("/learning-progress")
def learning_progress(
    user_id: str = Depends(get_current_user_id),
    plan_id: str = Depends(get_plan_id),
) -> Dict[str, Any]:
    return get_learning_progress(user_id, plan_id).to_payload()


@router.post("/paths/{path}/enroll", status_code=status.HTTP_201_CREATED)
def enroll(
    path: str,
    user_id: str = Depends(get_current_user_id),
    plan_id: str = Depends(get_plan_id),
) -> Dict[str, Any]:
    try:
        progress = enroll_path(user_id, plan_id, path)
    except UnknownPathError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except PathAccessDeniedError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "upgrade_required", "message": str(exc), "upgradePlan": exc.upgrade_plan},
        ) from exc
    return progress.model_dump(mode="json", by_alias=True)


@router.post("/milestones/{path}/{milestone_number}/transitions")
def apply_transition(
    payload: MilestoneTransitionRequest,
    path: str,
    milestone_number: int = Path(..., ge=1),
    user_id: str = Depends(get_current_user_id),
) -> Dict[str, Any]:
    # Approve and request_revision belong to the reviewer collaborator. This route trusts the
    # ``actor`` field, so it must only be mounted behind that collaborator's gateway.
    try:
        outcome = transition_milestone(
            user_id,
            path,
            milestone_number,
            payload.event,
            payload.expected_status,
            actor=payload.actor,
        )
    except (UnknownPathError, MilestoneNotFoundError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except MilestoneConflictError as exc:
        logger.info("Stale milestone transition for user=%s: %s", user_id, exc)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": "conflict",
                "message": str(exc),
                "expectedStatus": exc.expected_status,
                "observedStatus": exc.observed_status,
            },
        ) from exc

    response = MilestoneTransitionResponse(
        path=path,
        milestone_number=milestone_number,
        applied=outcome.applied,
        previous_status=outcome.previous,
        status=outcome.status,
    )
    return response.model_dump(mode="json", by_alias=True)
