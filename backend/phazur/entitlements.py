"""Resolve what a subscription plan entitles a learner to do.

Every lookup here is total: an unknown, empty or non-string plan identifier resolves to the
``free`` tier instead of raising, so callers can gate actions without special-casing bad
billing data. Quotas use ``UNLIMITED`` (-1) as a sentinel; always go through
:func:`is_unlimited` before comparing a quota against a usage counter.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .curriculum import PATH_ORDER, is_known_path
from .plans import (
    DEFAULT_PLAN_ID,
    FEATURE_UNLOCK_PLAN,
    PLAN_FEATURES,
    PLAN_NAMES,
    QUOTA_FIELDS,
    UNLIMITED,
    PlanFeatures,
)

logger = logging.getLogger(__name__)

QuotaName = Literal[
    "tutor_sessions_per_month",
    "agent_executions_per_month",
    "skill_uses_per_month",
    "team_members",
]
UsageFeature = Literal["tutor", "agent", "skill"]

_USAGE_QUOTAS: Dict[str, str] = {
    "tutor": "tutor_sessions_per_month",
    "agent": "agent_executions_per_month",
    "skill": "skill_uses_per_month",
}

_PATH_FLAGS: Dict[str, str] = {
    "student": "student_path",
    "employee": "employee_path",
    "owner": "owner_path",
}


class QuotaDecision(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    plan_id: str
    quota: str
    limit: int
    used: int
    remaining: Optional[int] = None
    unlimited: bool
    allowed: bool


class EntitlementSummary(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    plan_id: str
    plan_name: str
    features: PlanFeatures
    limits: Dict[str, str] = Field(default_factory=dict)
    accessible_paths: List[str] = Field(default_factory=list)


def resolve_plan_id(plan_id: object) -> str:
    """Return the plan identifier that lookups for ``plan_id`` actually use."""
    if isinstance(plan_id, str) and plan_id in PLAN_FEATURES:
        return plan_id
    if plan_id:
        logger.debug("Unknown plan identifier %r resolved to %s", plan_id, DEFAULT_PLAN_ID)
    return DEFAULT_PLAN_ID


def get_plan_features(plan_id: object) -> PlanFeatures:
    return PLAN_FEATURES[resolve_plan_id(plan_id)]


def has_path_access(plan_id: object, path: str) -> bool:
    if not is_known_path(path):
        return False
    features = get_plan_features(plan_id)
    return bool(getattr(features, _PATH_FLAGS[path]))


def is_unlimited(value: int) -> bool:
    return value == UNLIMITED


def format_limit(value: int) -> str:
    """Presentation-only rendering of a quota."""
    return "Unlimited" if is_unlimited(value) else str(value)


def to_display_limit(value: int) -> Union[int, str]:
    return "unlimited" if is_unlimited(value) else value


def quota_for_usage_feature(feature: str) -> str:
    try:
        return _USAGE_QUOTAS[feature]
    except KeyError:
        raise ValueError(f"Invalid feature '{feature}'. Must be one of: tutor, agent, skill") from None


def _feature_field(feature: str) -> str:
    if feature in PlanFeatures.model_fields:
        return feature
    for name in PlanFeatures.model_fields:
        if to_camel(name) == feature:
            return name
    raise ValueError(f"Unknown plan feature '{feature}'.")


def check_quota(plan_id: object, quota: str, used: int) -> QuotaDecision:
    """Decide whether one more use of ``quota`` fits within the plan's allowance."""
    field = _feature_field(quota)
    if field not in QUOTA_FIELDS:
        raise ValueError(f"'{quota}' is not a quota.")
    if used < 0:
        raise ValueError("Usage counters cannot be negative.")

    resolved = resolve_plan_id(plan_id)
    limit = int(getattr(PLAN_FEATURES[resolved], field))
    if is_unlimited(limit):
        return QuotaDecision(
            plan_id=resolved,
            quota=field,
            limit=limit,
            used=used,
            remaining=None,
            unlimited=True,
            allowed=True,
        )
    return QuotaDecision(
        plan_id=resolved,
        quota=field,
        limit=limit,
        used=used,
        remaining=max(limit - used, 0),
        unlimited=False,
        allowed=used < limit,
    )


def needs_upgrade_for(plan_id: object, feature: str) -> bool:
    value = getattr(get_plan_features(plan_id), _feature_field(feature))
    if isinstance(value, bool):
        return not value
    return value == 0


def upgrade_plan_for(feature: str) -> Optional[str]:
    return FEATURE_UNLOCK_PLAN.get(_feature_field(feature))


def summarize_entitlements(plan_id: object) -> EntitlementSummary:
    resolved = resolve_plan_id(plan_id)
    features = PLAN_FEATURES[resolved]
    return EntitlementSummary(
        plan_id=resolved,
        plan_name=PLAN_NAMES[resolved],
        features=features,
        limits={to_camel(field): format_limit(getattr(features, field)) for field in QUOTA_FIELDS},
        accessible_paths=[path for path in PATH_ORDER if has_path_access(resolved, path)],
    )


__all__ = [
    "EntitlementSummary",
    "QuotaDecision",
    "QuotaName",
    "UsageFeature",
    "check_quota",
    "format_limit",
    "get_plan_features",
    "has_path_access",
    "is_unlimited",
    "needs_upgrade_for",
    "quota_for_usage_feature",
    "resolve_plan_id",
    "summarize_entitlements",
    "to_display_limit",
    "upgrade_plan_for",
]
