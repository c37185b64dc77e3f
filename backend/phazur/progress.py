"""Aggregate raw milestone records into per-path progress and pick the primary path."""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .curriculum import PATH_ORDER, MilestoneDefinition, get_milestones, path_title
from .milestones import (
    IN_FLIGHT_STATUSES,
    MilestoneProgress,
    MilestoneStatus,
    PathProgress,
    UserMilestoneRecord,
)

ACTIVE_PATH_BONUS = 100
UNKNOWN_MILESTONE_TITLE = "Unknown"


def completion_percent(completed: int, total: int) -> int:
    """``round(completed / total * 100)`` with halves rounded up, in integer arithmetic."""
    if total <= 0:
        return 0
    return (completed * 200 + total) // (2 * total)


def is_eligible_for_certification(completed: int, total: int) -> bool:
    # One short of complete: the final milestone may still be under review.
    return total > 0 and completed >= total - 1


def latest_by_number(records: Iterable[UserMilestoneRecord]) -> Dict[int, UserMilestoneRecord]:
    """Collapse history to one record per milestone number; later records win."""
    latest: Dict[int, UserMilestoneRecord] = {}
    for record in records:
        latest[record.milestone_number] = record
    return latest


def _resolve_current(
    by_number: Mapping[int, UserMilestoneRecord],
    completed: int,
    total: int,
    last_active_hint: Optional[int],
) -> int:
    for number in sorted(by_number):
        if by_number[number].status in IN_FLIGHT_STATUSES:
            return number
    if last_active_hint is not None and 1 <= last_active_hint <= total:
        return last_active_hint
    return min(completed + 1, total)


def aggregate_path(
    path: str,
    curriculum: Sequence[MilestoneDefinition],
    records: Iterable[UserMilestoneRecord],
    *,
    last_active_hint: Optional[int] = None,
) -> PathProgress:
    """Build the progress view for one path. Missing data degrades to defaults."""
    catalog = {milestone.number: milestone for milestone in curriculum}
    by_number = {
        number: record
        for number, record in latest_by_number(r for r in records if r.path == path).items()
        if number in catalog
    }
    total = len(curriculum)
    completed = sum(1 for record in by_number.values() if record.status == MilestoneStatus.APPROVED)
    current = _resolve_current(by_number, completed, total, last_active_hint)
    current_definition = catalog.get(current)

    milestones: List[MilestoneProgress] = []
    for definition in curriculum:
        record = by_number.get(definition.number)
        milestones.append(
            MilestoneProgress(
                number=definition.number,
                title=definition.title,
                goal=definition.goal,
                status=record.status if record else MilestoneStatus.LOCKED,
                submitted_at=record.submitted_at if record else None,
                approved_at=record.approved_at if record else None,
            )
        )

    return PathProgress(
        path=path,
        path_title=path_title(path),
        current_milestone_number=current,
        current_milestone_title=current_definition.title if current_definition else UNKNOWN_MILESTONE_TITLE,
        completed_count=completed,
        total_milestones=total,
        progress_percent=completion_percent(completed, total),
        milestones=milestones,
        is_eligible_for_certification=is_eligible_for_certification(completed, total),
    )


def build_path_progress(
    records: Iterable[UserMilestoneRecord],
    hints: Optional[Mapping[str, int]] = None,
) -> Dict[str, PathProgress]:
    """Aggregate every path the user has at least one record in, in catalog order."""
    hints = hints or {}
    grouped: Dict[str, List[UserMilestoneRecord]] = {}
    for record in records:
        grouped.setdefault(record.path, []).append(record)

    progress: Dict[str, PathProgress] = {}
    for path in PATH_ORDER:
        path_records = grouped.get(path)
        if not path_records:
            continue
        progress[path] = aggregate_path(
            path,
            get_milestones(path),
            path_records,
            last_active_hint=hints.get(path),
        )
    return progress


def score_path(progress: PathProgress) -> int:
    return progress.completed_count + (ACTIVE_PATH_BONUS if progress.has_active_milestone() else 0)


def select_primary(progress_by_path: Mapping[str, PathProgress]) -> Optional[PathProgress]:
    """Pick the highest-scoring path; ties go to the earliest path in ``PATH_ORDER``."""
    ordered = [path for path in PATH_ORDER if path in progress_by_path]
    ordered.extend(sorted(path for path in progress_by_path if path not in PATH_ORDER))

    primary: Optional[PathProgress] = None
    best_score = -1
    for path in ordered:
        candidate = progress_by_path[path]
        score = score_path(candidate)
        if score > best_score:
            best_score = score
            primary = candidate
    return primary


__all__ = [
    "ACTIVE_PATH_BONUS",
    "aggregate_path",
    "build_path_progress",
    "completion_percent",
    "is_eligible_for_certification",
    "latest_by_number",
    "score_path",
    "select_primary",
]
