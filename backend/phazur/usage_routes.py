"""Usage counters for the tutor, agent and skill quotas."""

from __future__ import annotations

import logging
from typing import Any, Dict, Literal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from .errors import QuotaExceededError
from .identity import get_current_user_id, get_plan_id
from .usage_service import get_usage, record_usage

router = APIRouter(prefix="/api/usage", tags=["usage"])
logger = logging.getLogger(__name__)


class UsageIncrementRequest(BaseModel):
    feature: Literal["tutor", "agent", "skill"]


@router.get("")
def current_usage(
    user_id: str = Depends(get_current_user_id),
    plan_id: str = Depends(get_plan_id),
) -> Dict[str, Any]:
    return get_usage(user_id, plan_id)


@router.post("")
def increment_usage(
    payload: UsageIncrementRequest,
    user_id: str = Depends(get_current_user_id),
    plan_id: str = Depends(get_plan_id),
) -> Dict[str, Any]:
    try:
        record = record_usage(user_id, plan_id, payload.feature)
    except QuotaExceededError as exc:
        logger.info("Quota exhausted for user=%s: %s", user_id, exc)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "quota_exceeded",
                "message": str(exc),
                "quota": exc.quota,
                "limit": exc.limit,
                "used": exc.used,
            },
        ) from exc
    return {"success": True, **record.model_dump(mode="json", by_alias=True)}
