"""ORM models backing the milestone progress store."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import Date, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from .base import Base, TimestampMixin

JSONType = JSON


class UserMilestoneModel(TimestampMixin, Base):
    __tablename__ = "user_milestones"
    __table_args__ = (
        UniqueConstraint("user_id", "path", "milestone_number", name="uq_user_milestone"),
        Index("ix_user_milestones_user", "user_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    path: Mapped[str] = mapped_column(String(32), nullable=False)
    milestone_number: Mapped[int] = mapped_column(Integer, nullable=False)
    # Stored as free text; values are validated when read back into the domain model.
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="locked")
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class TutorConversationModel(TimestampMixin, Base):
    __tablename__ = "tutor_conversations"
    __table_args__ = (UniqueConstraint("user_id", "path", name="uq_tutor_conversation_path"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    path: Mapped[str] = mapped_column(String(32), nullable=False)
    current_milestone: Mapped[int] = mapped_column(Integer, nullable=False, default=1)


class PersistenceAuditEventModel(Base):
    __tablename__ = "persistence_audit_events"
    __table_args__ = (Index("ix_audit_events_user", "user_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    payload: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    actor: Mapped[str | None] = mapped_column(String(128))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )


class UsageTrackingModel(TimestampMixin, Base):
    """Per-period usage counters; one row per user per billing period."""

    __tablename__ = "usage_tracking"
    __table_args__ = (UniqueConstraint("user_id", "period_start", name="uq_usage_period"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    tutor_sessions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    agent_executions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    skill_uses: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class CertificationSubmissionModel(TimestampMixin, Base):
    __tablename__ = "certification_submissions"
    __table_args__ = (Index("ix_certification_submissions_user", "user_id", "path"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    path: Mapped[str] = mapped_column(String(32), nullable=False)
    # submitted, under_review, passed or failed; reviews are recorded by the grading collaborator.
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="submitted")
    project_title: Mapped[str | None] = mapped_column(String(255))
    artifacts: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )


__all__ = [
    "CertificationSubmissionModel",
    "PersistenceAuditEventModel",
    "TutorConversationModel",
    "UsageTrackingModel",
    "UserMilestoneModel",
]
