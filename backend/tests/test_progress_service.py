"""Progress read path: degraded stores, malformed rows and plan gating."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import pytest

from phazur.errors import MilestoneConflictError, PathAccessDeniedError, UnknownPathError
from phazur.milestones import MilestoneStatus
from phazur.progress_service import enroll_path, get_learning_progress, transition_milestone
from phazur.transitions import MilestoneEvent, TransitionOutcome


class _FakeStore:
    def __init__(self, rows: List[Any] | None = None, hints: List[Any] | None = None) -> None:
        self.rows = rows or []
        self.hints = hints or []
        self.fail_rows = False
        self.fail_hints = False
        self.enrolled: List[tuple[str, str]] = []
        self.conflict: MilestoneConflictError | None = None

    def fetch_rows(self, user_id: str) -> List[Any]:
        if self.fail_rows:
            raise RuntimeError("db unavailable")
        return list(self.rows)

    def fetch_conversation_rows(self, user_id: str) -> List[Any]:
        if self.fail_hints:
            raise RuntimeError("conversations unavailable")
        return list(self.hints)

    def enroll(self, user_id: str, path: str) -> List[Dict[str, Any]]:
        self.enrolled.append((user_id, path))
        return [
            {"user_id": user_id, "path": path, "milestone_number": n, "status": "active" if n == 1 else "locked"}
            for n in range(1, 11)
        ]

    def transition(self, user_id, path, milestone_number, event, *, expected_status, actor="learner"):
        if self.conflict is not None:
            raise self.conflict
        return TransitionOutcome(previous=MilestoneStatus.ACTIVE, status=MilestoneStatus.SUBMITTED, applied=True)


def _row(path: str, number: int, status: str, user_id: str = "learner-1") -> Dict[str, Any]:
    return {"user_id": user_id, "path": path, "milestone_number": number, "status": status}


def test_no_records_means_no_progress() -> None:
    overview = get_learning_progress("learner-1", "free", store=_FakeStore())
    assert overview.progress is None
    assert overview.all_paths == {}
    assert overview.path_access == {"student": True, "employee": False, "owner": False}

    payload = overview.to_payload()
    assert payload["progress"] is None
    assert payload["allPaths"] == {}
    assert payload["planId"] == "free"


def test_store_failure_degrades_to_empty(caplog) -> None:
    store = _FakeStore(rows=[_row("student", 1, "active")])
    store.fail_rows = True
    caplog.set_level(logging.ERROR, logger="phazur.progress_service")
    overview = get_learning_progress("learner-1", "professional", store=store)
    assert overview.progress is None
    assert overview.plan_id == "professional"
    assert overview.path_access["employee"] is True
    assert "Milestone store unavailable" in caplog.text


def test_hint_failure_still_reports_progress() -> None:
    store = _FakeStore(rows=[_row("student", 1, "approved")])
    store.fail_hints = True
    overview = get_learning_progress("learner-1", "free", store=store)
    assert overview.progress is not None
    assert overview.progress.current_milestone_number == 2


def test_primary_path_and_access_merged() -> None:
    store = _FakeStore(
        rows=[
            _row("student", 1, "approved"),
            _row("student", 2, "submitted"),
            _row("owner", 1, "active"),
        ],
        hints=[{"path": "student", "current_milestone": 5}],
    )
    overview = get_learning_progress("learner-1", "starter", store=store)
    assert overview.progress.path == "owner"
    assert overview.primary_path_access is False
    assert set(overview.all_paths) == {"student", "owner"}
    assert overview.all_paths["student"].current_milestone_number == 2


def test_unknown_plan_treated_as_free() -> None:
    overview = get_learning_progress("learner-1", "diamond", store=_FakeStore())
    assert overview.plan_id == "free"


def test_malformed_and_foreign_rows_excluded_and_reported(caplog, captured_events) -> None:
    store = _FakeStore(
        rows=[
            _row("student", 1, "approved"),
            _row("student", 2, "approved", user_id="someone-else"),
            _row("student", 12, "approved"),
            {"user_id": "learner-1", "path": "student", "milestone_number": 3},
        ]
    )
    caplog.set_level(logging.WARNING, logger="phazur.progress_service")
    overview = get_learning_progress("learner-1", "free", store=store)

    assert overview.progress.completed_count == 1
    assert "Excluded 3 malformed milestone record(s)" in caplog.text
    rejected = [event for event in captured_events if event.name == "milestone_records_rejected"]
    assert len(rejected) == 1
    assert rejected[0].payload["count"] == 3
    assert any("another user" in reason for reason in rejected[0].payload["reasons"])

    computed = [event for event in captured_events if event.name == "learning_progress_computed"]
    assert computed and computed[0].payload["primary_path"] == "student"


def test_enroll_denied_for_plan_without_path(captured_events) -> None:
    store = _FakeStore()
    with pytest.raises(PathAccessDeniedError) as excinfo:
        enroll_path("learner-1", "free", "owner", store=store)
    assert excinfo.value.upgrade_plan == "enterprise"
    assert store.enrolled == []
    assert [event.name for event in captured_events] == ["path_access_denied"]


def test_enroll_unknown_path() -> None:
    with pytest.raises(UnknownPathError):
        enroll_path("learner-1", "enterprise", "manager", store=_FakeStore())


def test_enroll_returns_path_progress(captured_events) -> None:
    store = _FakeStore()
    progress = enroll_path("learner-1", "professional", "employee", store=store)
    assert store.enrolled == [("learner-1", "employee")]
    assert progress.path == "employee"
    assert progress.current_milestone_number == 1
    assert progress.current_milestone_title == "Time Audit"
    assert progress.progress_percent == 0
    assert "path_enrolled" in [event.name for event in captured_events]


def test_transition_conflict_is_emitted_and_reraised(captured_events) -> None:
    store = _FakeStore()
    store.conflict = MilestoneConflictError(
        path="student", milestone_number=1, expected_status="active", observed_status="submitted"
    )
    with pytest.raises(MilestoneConflictError):
        transition_milestone(
            "learner-1", "student", 1, MilestoneEvent.SUBMIT, MilestoneStatus.ACTIVE, store=store
        )
    conflict = [event for event in captured_events if event.name == "milestone_transition_conflict"]
    assert conflict[0].payload["observed_status"] == "submitted"
    assert conflict[0].payload["event"] == "submit"


def test_transition_applied_event() -> None:
    outcome = transition_milestone(
        "learner-1", "student", 1, MilestoneEvent.SUBMIT, MilestoneStatus.ACTIVE, store=_FakeStore()
    )
    assert outcome.applied
    with pytest.raises(UnknownPathError):
        transition_milestone("learner-1", "manager", 1, MilestoneEvent.SUBMIT, MilestoneStatus.ACTIVE, store=_FakeStore())
