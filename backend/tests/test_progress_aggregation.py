"""Aggregation of raw milestone records into per-path progress."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from phazur.curriculum import get_milestones
from phazur.milestones import (
    MilestoneStatus,
    UserMilestoneRecord,
    parse_conversation_hints,
    parse_milestone_records,
)
from phazur.progress import (
    aggregate_path,
    build_path_progress,
    completion_percent,
    is_eligible_for_certification,
)


def _row(path: str = "student", number: int = 1, status: str = "active", **extra: Any) -> Dict[str, Any]:
    row: Dict[str, Any] = {"user_id": "learner-1", "path": path, "milestone_number": number, "status": status}
    row.update(extra)
    return row


def _records(*rows: Dict[str, Any]):
    batch = parse_milestone_records(rows)
    assert not batch.rejected
    return batch.records


def test_completion_percent_rounds_half_up() -> None:
    assert completion_percent(0, 10) == 0
    assert completion_percent(3, 10) == 30
    assert completion_percent(1, 3) == 33
    assert completion_percent(2, 3) == 67
    assert completion_percent(1, 8) == 13
    assert completion_percent(10, 10) == 100
    assert completion_percent(0, 0) == 0


def test_certification_allows_final_milestone_in_review() -> None:
    assert is_eligible_for_certification(9, 10)
    assert is_eligible_for_certification(10, 10)
    assert not is_eligible_for_certification(8, 10)
    assert not is_eligible_for_certification(0, 0)


def test_aggregate_counts_approved_and_uses_in_flight_as_current() -> None:
    records = _records(
        _row(number=1, status="approved"),
        _row(number=2, status="approved"),
        _row(number=3, status="submitted"),
        _row(number=4, status="locked"),
    )
    progress = aggregate_path("student", get_milestones("student"), records)
    assert progress.completed_count == 2
    assert progress.total_milestones == 10
    assert progress.progress_percent == 20
    assert progress.current_milestone_number == 3
    assert progress.current_milestone_title == "Tool Setup"
    assert progress.path_title == "The Student"
    assert [m.status for m in progress.milestones[:5]] == [
        MilestoneStatus.APPROVED,
        MilestoneStatus.APPROVED,
        MilestoneStatus.SUBMITTED,
        MilestoneStatus.LOCKED,
        MilestoneStatus.LOCKED,
    ]
    assert not progress.is_eligible_for_certification


def test_lowest_numbered_in_flight_milestone_wins() -> None:
    records = _records(
        _row(number=5, status="needs_revision"),
        _row(number=2, status="active"),
    )
    progress = aggregate_path("student", get_milestones("student"), records)
    assert progress.current_milestone_number == 2


def test_hint_used_only_without_in_flight_records() -> None:
    approved = _records(_row(number=1, status="approved"))
    progress = aggregate_path("student", get_milestones("student"), approved, last_active_hint=4)
    assert progress.current_milestone_number == 4

    out_of_range = aggregate_path("student", get_milestones("student"), approved, last_active_hint=12)
    assert out_of_range.current_milestone_number == 2

    with_active = _records(_row(number=1, status="approved"), _row(number=2, status="active"))
    progress = aggregate_path("student", get_milestones("student"), with_active, last_active_hint=7)
    assert progress.current_milestone_number == 2


def test_current_milestone_capped_at_total_when_all_approved() -> None:
    records = _records(*(_row(number=n, status="approved") for n in range(1, 11)))
    progress = aggregate_path("student", get_milestones("student"), records)
    assert progress.completed_count == 10
    assert progress.progress_percent == 100
    assert progress.current_milestone_number == 10
    assert progress.is_eligible_for_certification


def test_nine_approved_without_in_flight_is_eligible_and_points_at_final() -> None:
    records = _records(*(_row(number=n, status="approved") for n in range(1, 10)))
    progress = aggregate_path("student", get_milestones("student"), records)
    assert progress.completed_count == 9
    assert progress.progress_percent == 90
    assert progress.current_milestone_number == 10
    assert progress.milestones[9].status is MilestoneStatus.LOCKED
    assert progress.is_eligible_for_certification


def test_latest_record_per_milestone_wins() -> None:
    records = _records(
        _row(number=1, status="submitted"),
        _row(number=1, status="approved"),
    )
    progress = aggregate_path("student", get_milestones("student"), records)
    assert progress.completed_count == 1
    assert progress.milestones[0].status == MilestoneStatus.APPROVED


def test_empty_curriculum_degrades_to_unknown() -> None:
    progress = aggregate_path("student", (), [])
    assert progress.total_milestones == 0
    assert progress.progress_percent == 0
    assert progress.current_milestone_title == "Unknown"
    assert not progress.is_eligible_for_certification


def test_timestamps_carried_into_view() -> None:
    approved_at = datetime(2026, 10, 1, tzinfo=timezone.utc)
    records = _records(_row(number=1, status="approved", approved_at=approved_at))
    progress = aggregate_path("student", get_milestones("student"), records)
    assert progress.milestones[0].approved_at == approved_at
    payload = progress.model_dump(mode="json", by_alias=True)
    assert payload["currentMilestone"] == 2
    assert payload["completedMilestones"] == 1
    assert payload["milestones"][0]["approvedAt"].startswith("2026-10-01")


def test_malformed_records_are_rejected_not_aggregated() -> None:
    batch = parse_milestone_records(
        [
            _row(number=1, status="approved"),
            _row(number=11, status="approved"),
            _row(number=0, status="approved"),
            _row(number="2", status="approved"),
            _row(number=3, status="finished"),
            _row(path="manager", number=1),
            {"user_id": "", "path": "student", "milestone_number": 4, "status": "active"},
            "not a row",
        ]
    )
    assert len(batch.records) == 1
    assert len(batch.rejected) == 7
    assert batch.rejected[-1].reason == "record is not a mapping"


def test_record_ignores_unknown_columns() -> None:
    record = UserMilestoneRecord.model_validate(_row(status="active", id="abc", version=3))
    assert record.status is MilestoneStatus.ACTIVE


def test_build_path_progress_only_includes_paths_with_records() -> None:
    records = _records(
        _row(path="owner", number=1, status="active"),
        _row(path="student", number=1, status="approved"),
    )
    progress = build_path_progress(records, {"owner": 3})
    assert list(progress) == ["student", "owner"]
    assert progress["owner"].current_milestone_number == 1


def test_conversation_hints_last_wins_and_invalid_dropped() -> None:
    hints = parse_conversation_hints(
        [
            {"path": "student", "current_milestone": 2},
            {"path": "student", "current_milestone_number": 4},
            {"path": "employee", "current_milestone": 0},
            {"path": "manager", "current_milestone": 1},
            None,
        ]
    )
    assert hints == {"student": 4}
