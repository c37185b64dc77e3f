"""Milestone status state machine.

Every write path resolves the next status through :func:`resolve_transition`::

    locked          --unlock-->            active
    active          --submit-->            submitted
    submitted       --approve-->           approved   (terminal)
    submitted       --request_revision-->  needs_revision
    needs_revision  --submit-->            submitted

Events against an ``approved`` milestone are ignored rather than rejected so that a stale
client retry cannot reopen certified work.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

from .errors import InvalidTransitionError
from .milestones import MilestoneStatus


class MilestoneEvent(str, Enum):
    UNLOCK = "unlock"
    SUBMIT = "submit"
    APPROVE = "approve"
    REQUEST_REVISION = "request_revision"


TRANSITIONS: Dict[Tuple[MilestoneStatus, MilestoneEvent], MilestoneStatus] = {
    (MilestoneStatus.LOCKED, MilestoneEvent.UNLOCK): MilestoneStatus.ACTIVE,
    (MilestoneStatus.ACTIVE, MilestoneEvent.SUBMIT): MilestoneStatus.SUBMITTED,
    (MilestoneStatus.SUBMITTED, MilestoneEvent.APPROVE): MilestoneStatus.APPROVED,
    (MilestoneStatus.SUBMITTED, MilestoneEvent.REQUEST_REVISION): MilestoneStatus.NEEDS_REVISION,
    (MilestoneStatus.NEEDS_REVISION, MilestoneEvent.SUBMIT): MilestoneStatus.SUBMITTED,
}


@dataclass(frozen=True)
class TransitionOutcome:
    previous: MilestoneStatus
    status: MilestoneStatus
    applied: bool


def resolve_transition(current: MilestoneStatus, event: MilestoneEvent) -> TransitionOutcome:
    current = MilestoneStatus(current)
    event = MilestoneEvent(event)
    if current is MilestoneStatus.APPROVED:
        return TransitionOutcome(previous=current, status=current, applied=False)
    target = TRANSITIONS.get((current, event))
    if target is None:
        raise InvalidTransitionError(current.value, event.value)
    return TransitionOutcome(previous=current, status=target, applied=True)


def allowed_events(current: MilestoneStatus) -> Tuple[MilestoneEvent, ...]:
    return tuple(event for (status, event) in TRANSITIONS if status == current)


__all__ = [
    "MilestoneEvent",
    "TRANSITIONS",
    "TransitionOutcome",
    "allowed_events",
    "resolve_transition",
]
