"""Entitlement lookups for request handlers that gate actions."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic.alias_generators import to_camel

from .curriculum import is_known_path
from .entitlements import (
    has_path_access,
    quota_for_usage_feature,
    summarize_entitlements,
    upgrade_plan_for,
)
from .identity import get_current_user_id, get_plan_id
from .usage_service import USAGE_FEATURES, check_usage_quota

router = APIRouter(prefix="/api/entitlements", tags=["entitlements"])

# Quota names in snake or camel case resolve to their usage feature.
_USAGE_FEATURE_BY_QUOTA = {
    name: feature
    for feature in USAGE_FEATURES
    for name in (quota_for_usage_feature(feature), to_camel(quota_for_usage_feature(feature)))
}


@router.get("")
def entitlements(plan_id: str = Depends(get_plan_id)) -> Dict[str, Any]:
    return summarize_entitlements(plan_id).model_dump(mode="json", by_alias=True)


@router.get("/paths/{path}")
def path_access(path: str, plan_id: str = Depends(get_plan_id)) -> Dict[str, Any]:
    if not is_known_path(path):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown learning path '{path}'.")
    allowed = has_path_access(plan_id, path)
    return {
        "path": path,
        "planId": plan_id,
        "allowed": allowed,
        "upgradePlan": None if allowed else upgrade_plan_for(f"{path}_path"),
    }


@router.get("/quotas/{quota}")
def quota(
    quota: str,
    user_id: str = Depends(get_current_user_id),
    plan_id: str = Depends(get_plan_id),
) -> Dict[str, Any]:
    """Decision for a usage quota against this period's stored counter."""
    feature = _USAGE_FEATURE_BY_QUOTA.get(quota, quota)
    try:
        decision = check_usage_quota(user_id, plan_id, feature)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return decision.model_dump(mode="json", by_alias=True)
