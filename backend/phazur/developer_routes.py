"""Developer utilities: catalog inspection and progress resets."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Response, status
from pydantic import BaseModel, Field

from .curriculum import PATH_ORDER, PATH_TITLES, get_milestones
from .milestone_store import milestone_store
from .plans import PLAN_FEATURES, PLAN_NAMES
from .telemetry import emit_event

router = APIRouter(prefix="/api/developer", tags=["developer"])


class DeveloperResetRequest(BaseModel):
    user_id: str = Field(..., min_length=1)


@router.get("/catalog")
def developer_catalog() -> Dict[str, Any]:
    return {
        "paths": [
            {
                "path": path,
                "title": PATH_TITLES[path],
                "milestones": [asdict(milestone) for milestone in get_milestones(path)],
            }
            for path in PATH_ORDER
        ],
        "plans": {
            plan_id: {"name": PLAN_NAMES[plan_id], "features": features.model_dump(by_alias=True)}
            for plan_id, features in PLAN_FEATURES.items()
        },
    }


@router.post("/reset", status_code=status.HTTP_204_NO_CONTENT)
def developer_reset(payload: DeveloperResetRequest) -> Response:
    user_id = payload.user_id.strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="User id cannot be empty.",
        )
    deleted = milestone_store.delete(user_id)
    emit_event("developer_progress_reset", user_id=user_id, deleted=deleted)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
