"""Monthly usage counters behind the tutor, agent and skill quotas."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..db.models import UsageTrackingModel

COUNTER_COLUMNS: Dict[str, str] = {
    "tutor": "tutor_sessions",
    "agent": "agent_executions",
    "skill": "skill_uses",
}


def current_period(today: date) -> Tuple[date, date]:
    """Calendar month containing ``today``: first day inclusive, first day of next month exclusive."""
    start = today.replace(day=1)
    if start.month == 12:
        return start, start.replace(year=start.year + 1, month=1)
    return start, start.replace(month=start.month + 1)


def _counter(feature: str) -> str:
    try:
        return COUNTER_COLUMNS[feature]
    except KeyError:
        raise ValueError(f"Invalid feature '{feature}'. Must be one of: tutor, agent, skill") from None


def _usage_payload(model: UsageTrackingModel) -> Dict[str, Any]:
    return {
        "tutor_sessions": model.tutor_sessions,
        "agent_executions": model.agent_executions,
        "skill_uses": model.skill_uses,
        "period_start": model.period_start,
        "period_end": model.period_end,
    }


class UsageRepository:
    """Counters are only ever changed by a single conditional UPDATE, never read-modify-write."""

    def get_or_create(self, session: Session, user_id: str, today: Optional[date] = None) -> UsageTrackingModel:
        period_start, period_end = current_period(today or datetime.now(timezone.utc).date())
        stmt = select(UsageTrackingModel).where(
            UsageTrackingModel.user_id == user_id,
            UsageTrackingModel.period_start == period_start,
        )
        model = session.execute(stmt).scalar_one_or_none()
        if model is None:
            model = UsageTrackingModel(user_id=user_id, period_start=period_start, period_end=period_end)
            session.add(model)
            session.flush()
        return model

    def get_current_usage(self, session: Session, user_id: str, *, today: Optional[date] = None) -> Dict[str, Any]:
        return _usage_payload(self.get_or_create(session, user_id, today))

    def increment_usage(
        self,
        session: Session,
        user_id: str,
        feature: str,
        *,
        limit: Optional[int] = None,
        today: Optional[date] = None,
    ) -> Optional[int]:
        """Add one use of ``feature`` and return the new count.

        With a ``limit`` the increment only lands while the counter is below it; ``None`` is
        returned when the period's allowance is already spent.
        """
        field = _counter(feature)
        model = self.get_or_create(session, user_id, today)
        column = getattr(UsageTrackingModel, field)
        stmt = update(UsageTrackingModel).where(UsageTrackingModel.id == model.id)
        if limit is not None:
            stmt = stmt.where(column < limit)
        stmt = stmt.values({field: column + 1, "updated_at": datetime.now(timezone.utc)}).execution_options(
            synchronize_session=False
        )
        if session.execute(stmt).rowcount != 1:
            return None
        return session.execute(select(column).where(UsageTrackingModel.id == model.id)).scalar_one()

    def current_count(self, session: Session, user_id: str, feature: str, *, today: Optional[date] = None) -> int:
        return getattr(self.get_or_create(session, user_id, today), _counter(feature))


usage_repository = UsageRepository()

__all__ = ["COUNTER_COLUMNS", "UsageRepository", "current_period", "usage_repository"]
