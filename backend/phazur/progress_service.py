"""Progress read path and milestone write path, with entitlement checks merged in."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .curriculum import PATH_ORDER, get_milestones, is_known_path
from .entitlements import has_path_access, resolve_plan_id, upgrade_plan_for
from .errors import MilestoneConflictError, PathAccessDeniedError, UnknownPathError
from .milestone_store import MilestoneStore, ProgressStore, milestone_store
from .milestones import (
    MilestoneStatus,
    PathProgress,
    ProgressOverview,
    RecordBatch,
    RejectedRecord,
    parse_conversation_hints,
    parse_milestone_records,
)
from .progress import aggregate_path, build_path_progress, select_primary
from .telemetry import emit_event
from .transitions import MilestoneEvent, TransitionOutcome

logger = logging.getLogger(__name__)

MAX_REPORTED_REJECTIONS = 10


def _path_access(plan_id: str) -> Dict[str, bool]:
    return {path: has_path_access(plan_id, path) for path in PATH_ORDER}


def _partition_foreign_records(user_id: str, batch: RecordBatch) -> RecordBatch:
    owned = RecordBatch(rejected=list(batch.rejected))
    for record in batch.records:
        if record.user_id == user_id:
            owned.records.append(record)
        else:
            owned.rejected.append(
                RejectedRecord(row=record.model_dump(mode="json"), reason="record belongs to another user")
            )
    return owned


def _report_rejected(user_id: str, rejected: List[RejectedRecord]) -> None:
    reasons = [entry.reason for entry in rejected[:MAX_REPORTED_REJECTIONS]]
    logger.warning(
        "Excluded %d malformed milestone record(s) for user=%s: %s",
        len(rejected),
        user_id,
        reasons,
    )
    emit_event("milestone_records_rejected", user_id=user_id, count=len(rejected), reasons=reasons)


def get_learning_progress(
    user_id: str,
    plan_id: Optional[str] = None,
    *,
    store: ProgressStore = milestone_store,
) -> ProgressOverview:
    """Build the dashboard progress view. Never raises: faults degrade to "no progress"."""
    resolved_plan = resolve_plan_id(plan_id)
    access = _path_access(resolved_plan)
    empty = ProgressOverview(plan_id=resolved_plan, path_access=access)

    try:
        rows = store.fetch_rows(user_id)
    except Exception:  # noqa: BLE001
        logger.exception("Milestone store unavailable for user=%s; reporting no progress", user_id)
        return empty

    try:
        conversation_rows = store.fetch_conversation_rows(user_id)
    except Exception:  # noqa: BLE001
        logger.warning("Conversation hints unavailable for user=%s", user_id, exc_info=True)
        conversation_rows = []

    try:
        batch = _partition_foreign_records(user_id, parse_milestone_records(rows))
        if batch.rejected:
            _report_rejected(user_id, batch.rejected)
        all_paths = build_path_progress(batch.records, parse_conversation_hints(conversation_rows))
        primary = select_primary(all_paths)
    except Exception:  # noqa: BLE001
        logger.exception("Failed to derive learning progress for user=%s", user_id)
        return empty

    emit_event(
        "learning_progress_computed",
        user_id=user_id,
        plan_id=resolved_plan,
        primary_path=primary.path if primary else None,
        path_count=len(all_paths),
    )
    return ProgressOverview(
        progress=primary,
        all_paths=all_paths,
        plan_id=resolved_plan,
        primary_path_access=access.get(primary.path) if primary and primary.path else None,
        path_access=access,
    )


def enroll_path(
    user_id: str,
    plan_id: Optional[str],
    path: str,
    *,
    store: MilestoneStore = milestone_store,
) -> PathProgress:
    """Start ``path`` for the learner if their plan includes it."""
    if not is_known_path(path):
        raise UnknownPathError(path)
    resolved_plan = resolve_plan_id(plan_id)
    if not has_path_access(resolved_plan, path):
        upgrade = upgrade_plan_for(f"{path}_path")
        emit_event("path_access_denied", user_id=user_id, plan_id=resolved_plan, path=path, upgrade_plan=upgrade)
        raise PathAccessDeniedError(resolved_plan, path, upgrade)

    rows = store.enroll(user_id, path)
    batch = parse_milestone_records(rows)
    if batch.rejected:
        _report_rejected(user_id, batch.rejected)
    emit_event("path_enrolled", user_id=user_id, plan_id=resolved_plan, path=path)
    return aggregate_path(path, get_milestones(path), batch.records)


def transition_milestone(
    user_id: str,
    path: str,
    milestone_number: int,
    event: MilestoneEvent,
    expected_status: MilestoneStatus,
    *,
    actor: str = "learner",
    store: MilestoneStore = milestone_store,
) -> TransitionOutcome:
    if not is_known_path(path):
        raise UnknownPathError(path)
    try:
        outcome = store.transition(
            user_id,
            path,
            milestone_number,
            event,
            expected_status=expected_status,
            actor=actor,
        )
    except MilestoneConflictError as exc:
        emit_event(
            "milestone_transition_conflict",
            user_id=user_id,
            path=path,
            milestone_number=milestone_number,
            event=event,
            expected_status=exc.expected_status,
            observed_status=exc.observed_status,
        )
        raise

    emit_event(
        "milestone_transition_applied" if outcome.applied else "milestone_transition_ignored",
        user_id=user_id,
        path=path,
        milestone_number=milestone_number,
        event=event,
        previous=outcome.previous,
        status=outcome.status,
        actor=actor,
    )
    return outcome


__all__ = [
    "enroll_path",
    "get_learning_progress",
    "transition_milestone",
]
