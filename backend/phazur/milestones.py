"""Milestone record schema and the derived progress models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from .curriculum import LearningPath, total_milestones


class MilestoneStatus(str, Enum):
    LOCKED = "locked"
    ACTIVE = "active"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    NEEDS_REVISION = "needs_revision"


# Statuses that mark a milestone the learner is currently working on.
IN_FLIGHT_STATUSES = frozenset(
    {MilestoneStatus.ACTIVE, MilestoneStatus.SUBMITTED, MilestoneStatus.NEEDS_REVISION}
)


class UserMilestoneRecord(BaseModel):
    """One learner's status for one milestone, as read from the durable store."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    user_id: str = Field(..., min_length=1)
    path: LearningPath
    milestone_number: int = Field(..., ge=1, strict=True)
    status: MilestoneStatus
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_number_in_catalog(self) -> "UserMilestoneRecord":
        limit = total_milestones(self.path)
        if self.milestone_number > limit:
            raise ValueError(
                f"milestone_number {self.milestone_number} is outside 1..{limit} for path '{self.path}'"
            )
        return self


class ConversationHint(BaseModel):
    """Last milestone a tutor conversation was working on for a path."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    path: LearningPath
    current_milestone_number: int = Field(
        ...,
        ge=1,
        validation_alias=AliasChoices("current_milestone_number", "current_milestone"),
    )


class MilestoneProgress(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    number: int
    title: str
    goal: str
    status: MilestoneStatus = MilestoneStatus.LOCKED
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None


class PathProgress(BaseModel):
    """Aggregate of one learner's records for one path (serialised as LearningProgress)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    path: Optional[LearningPath] = None
    path_title: str
    current_milestone_number: int = Field(..., alias="currentMilestone")
    current_milestone_title: str
    completed_count: int = Field(..., ge=0, alias="completedMilestones")
    total_milestones: int = Field(..., ge=0)
    progress_percent: int = Field(..., ge=0, le=100)
    milestones: List[MilestoneProgress] = Field(default_factory=list)
    is_eligible_for_certification: bool = False

    def has_active_milestone(self) -> bool:
        return any(milestone.status == MilestoneStatus.ACTIVE for milestone in self.milestones)


class ProgressOverview(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    progress: Optional[PathProgress] = None
    all_paths: Dict[str, PathProgress] = Field(default_factory=dict)
    plan_id: Optional[str] = None
    primary_path_access: Optional[bool] = None
    path_access: Dict[str, bool] = Field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


@dataclass(frozen=True)
class RejectedRecord:
    row: Any
    reason: str


@dataclass
class RecordBatch:
    records: List[UserMilestoneRecord] = field(default_factory=list)
    rejected: List[RejectedRecord] = field(default_factory=list)


def _describe(exc: ValidationError) -> str:
    parts: List[str] = []
    for error in exc.errors():
        location = ".".join(str(piece) for piece in error.get("loc", ()))
        message = error.get("msg", "invalid")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


def parse_milestone_records(rows: Iterable[Any]) -> RecordBatch:
    """Validate raw store rows, keeping malformed ones aside instead of aggregating them."""
    batch = RecordBatch()
    for row in rows:
        if not isinstance(row, Mapping):
            batch.rejected.append(RejectedRecord(row=row, reason="record is not a mapping"))
            continue
        try:
            batch.records.append(UserMilestoneRecord.model_validate(dict(row)))
        except ValidationError as exc:
            batch.rejected.append(RejectedRecord(row=dict(row), reason=_describe(exc)))
    return batch


def parse_conversation_hints(rows: Iterable[Any]) -> Dict[str, int]:
    """Map path to the last hinted milestone number; invalid hints are dropped."""
    hints: Dict[str, int] = {}
    for row in rows:
        if not isinstance(row, Mapping):
            continue
        try:
            hint = ConversationHint.model_validate(dict(row))
        except ValidationError:
            continue
        hints[hint.path] = hint.current_milestone_number
    return hints


__all__ = [
    "ConversationHint",
    "IN_FLIGHT_STATUSES",
    "MilestoneProgress",
    "MilestoneStatus",
    "PathProgress",
    "ProgressOverview",
    "RecordBatch",
    "RejectedRecord",
    "UserMilestoneRecord",
    "parse_conversation_hints",
    "parse_milestone_records",
]
