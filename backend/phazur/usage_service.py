"""Monthly usage counters checked against the plan's quotas."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import IntegrityError

from .db.session import session_scope
from .entitlements import (
    QuotaDecision,
    check_quota,
    get_plan_features,
    is_unlimited,
    quota_for_usage_feature,
    resolve_plan_id,
)
from .errors import QuotaExceededError
from .repositories.usage import COUNTER_COLUMNS, usage_repository
from .telemetry import emit_event

logger = logging.getLogger(__name__)

USAGE_FEATURES = ("tutor", "agent", "skill")


class UsageRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    feature: str
    new_count: int
    quota: QuotaDecision


class UsageStore:
    """Transaction-per-call facade; a lost race creating the period row is retried once."""

    def current(self, user_id: str, *, today: Optional[date] = None) -> Dict[str, Any]:
        try:
            with session_scope() as session:
                return usage_repository.get_current_usage(session, user_id, today=today)
        except IntegrityError:
            logger.info("Concurrent usage period creation for user=%s", user_id)
            with session_scope() as session:
                return usage_repository.get_current_usage(session, user_id, today=today)

    def increment(
        self,
        user_id: str,
        feature: str,
        *,
        limit: Optional[int] = None,
        today: Optional[date] = None,
    ) -> Optional[int]:
        try:
            with session_scope() as session:
                return usage_repository.increment_usage(session, user_id, feature, limit=limit, today=today)
        except IntegrityError:
            logger.info("Concurrent usage period creation for user=%s", user_id)
            with session_scope() as session:
                return usage_repository.increment_usage(session, user_id, feature, limit=limit, today=today)


usage_store = UsageStore()


def _used(usage: Dict[str, Any], feature: str) -> int:
    return int(usage[COUNTER_COLUMNS[feature]])


def get_usage(user_id: str, plan_id: Optional[str], *, store: UsageStore = usage_store) -> Dict[str, Any]:
    resolved = resolve_plan_id(plan_id)
    usage = store.current(user_id)
    quotas = {
        feature: check_quota(resolved, quota_for_usage_feature(feature), _used(usage, feature)).model_dump(
            mode="json", by_alias=True
        )
        for feature in USAGE_FEATURES
    }
    return {
        "usage": {
            "tutorSessions": usage["tutor_sessions"],
            "agentExecutions": usage["agent_executions"],
            "skillUses": usage["skill_uses"],
            "periodStart": usage["period_start"].isoformat(),
            "periodEnd": usage["period_end"].isoformat(),
        },
        "planId": resolved,
        "quotas": quotas,
    }


def check_usage_quota(
    user_id: str, plan_id: Optional[str], feature: str, *, store: UsageStore = usage_store
) -> QuotaDecision:
    """Quota decision for ``feature`` against the stored counter for the current period."""
    quota = quota_for_usage_feature(feature)
    return check_quota(resolve_plan_id(plan_id), quota, _used(store.current(user_id), feature))


def record_usage(
    user_id: str, plan_id: Optional[str], feature: str, *, store: UsageStore = usage_store
) -> UsageRecord:
    """Count one use of ``feature``; raises :class:`QuotaExceededError` once the allowance is spent."""
    quota = quota_for_usage_feature(feature)
    resolved = resolve_plan_id(plan_id)
    limit = int(getattr(get_plan_features(resolved), quota))

    new_count = store.increment(user_id, feature, limit=None if is_unlimited(limit) else limit)
    if new_count is None:
        used = _used(store.current(user_id), feature)
        emit_event("quota_exceeded", user_id=user_id, plan_id=resolved, quota=quota, limit=limit, used=used)
        raise QuotaExceededError(resolved, quota, limit, used)

    emit_event("usage_incremented", user_id=user_id, plan_id=resolved, feature=feature, count=new_count)
    return UsageRecord(feature=feature, new_count=new_count, quota=check_quota(resolved, quota, new_count))


__all__ = [
    "USAGE_FEATURES",
    "UsageRecord",
    "UsageStore",
    "check_usage_quota",
    "get_usage",
    "record_usage",
    "usage_store",
]
