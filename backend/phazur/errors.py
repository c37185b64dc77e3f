"""Exception types raised by the progression engine."""

from __future__ import annotations

from typing import Optional


class UnknownPathError(LookupError):
    """Raised when a learning path identifier is not part of the catalog."""

    def __init__(self, path: object) -> None:
        super().__init__(f"Unknown learning path '{path}'.")
        self.path = path


class MilestoneNotFoundError(LookupError):
    def __init__(self, user_id: str, path: str, milestone_number: int) -> None:
        super().__init__(
            f"No milestone record for user '{user_id}' on path '{path}' milestone {milestone_number}."
        )
        self.user_id = user_id
        self.path = path
        self.milestone_number = milestone_number


class InvalidTransitionError(ValueError):
    """Raised when an event is not permitted from the observed milestone status."""

    def __init__(self, status: str, event: str, reason: Optional[str] = None) -> None:
        message = f"Cannot apply '{event}' to a milestone in status '{status}'."
        if reason:
            message = f"{message} {reason}"
        super().__init__(message)
        self.status = status
        self.event = event


class MilestoneConflictError(RuntimeError):
    """Optimistic-concurrency failure: the record changed since the caller last read it.

    Callers are expected to re-read the record and retry; the engine never retries on
    their behalf.
    """

    def __init__(self, *, path: str, milestone_number: int, expected_status: str, observed_status: str) -> None:
        super().__init__(
            f"Milestone {milestone_number} on path '{path}' is '{observed_status}', expected '{expected_status}'."
        )
        self.path = path
        self.milestone_number = milestone_number
        self.expected_status = expected_status
        self.observed_status = observed_status


class PathAccessDeniedError(PermissionError):
    def __init__(self, plan_id: str, path: str, upgrade_plan: Optional[str]) -> None:
        super().__init__(f"Plan '{plan_id}' does not include the '{path}' path.")
        self.plan_id = plan_id
        self.path = path
        self.upgrade_plan = upgrade_plan


class QuotaExceededError(PermissionError):
    """Raised when a usage counter is already at the plan's monthly allowance."""

    def __init__(self, plan_id: str, quota: str, limit: int, used: int) -> None:
        super().__init__(f"Plan '{plan_id}' allows {limit} {quota} and {used} have been used.")
        self.plan_id = plan_id
        self.quota = quota
        self.limit = limit
        self.used = used


class CertificationNotEligibleError(ValueError):
    def __init__(self, path: str, required: int, completed: int) -> None:
        super().__init__(
            f"Not all milestones completed on path '{path}': {completed} approved, {required} required."
        )
        self.path = path
        self.required = required
        self.completed = completed


class AlreadyCertifiedError(ValueError):
    def __init__(self, path: str, submission_id: str) -> None:
        super().__init__(f"Path '{path}' has already been certified.")
        self.path = path
        self.submission_id = submission_id


__all__ = [
    "AlreadyCertifiedError",
    "CertificationNotEligibleError",
    "InvalidTransitionError",
    "MilestoneConflictError",
    "MilestoneNotFoundError",
    "PathAccessDeniedError",
    "QuotaExceededError",
    "UnknownPathError",
]
