"""Subscription plan entitlement table."""

from __future__ import annotations

from typing import Dict, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

PlanId = Literal[
    "free",
    "starter",
    "professional",
    "enterprise",
    "team_starter",
    "team_growth",
    "team_enterprise",
]

DEFAULT_PLAN_ID: PlanId = "free"

# Reserved quota value meaning "no limit". Compare through entitlements.is_unlimited().
UNLIMITED = -1


class PlanFeatures(BaseModel):
    """Entitlements granted by a single plan. Every field is required."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    student_path: bool
    employee_path: bool
    owner_path: bool

    tutor_sessions_per_month: int
    agent_executions_per_month: int
    skill_uses_per_month: int
    custom_skill_creation: bool

    # 0 means no team seats.
    team_members: int
    team_analytics: bool
    shared_skill_library: bool

    api_access: bool
    custom_agents: bool
    priority_support: bool
    sso_integration: bool


QUOTA_FIELDS = (
    "tutor_sessions_per_month",
    "agent_executions_per_month",
    "skill_uses_per_month",
    "team_members",
)

PLAN_NAMES: Dict[str, str] = {
    "free": "Free",
    "starter": "Starter",
    "professional": "Professional",
    "enterprise": "Enterprise",
    "team_starter": "Team Starter",
    "team_growth": "Team Growth",
    "team_enterprise": "Team Enterprise",
}

_TEAM_FEATURES = dict(
    student_path=True,
    employee_path=True,
    owner_path=True,
    tutor_sessions_per_month=UNLIMITED,
    agent_executions_per_month=UNLIMITED,
    skill_uses_per_month=UNLIMITED,
    custom_skill_creation=True,
    team_analytics=True,
    shared_skill_library=True,
    api_access=True,
    custom_agents=True,
    priority_support=True,
    sso_integration=True,
)

PLAN_FEATURES: Dict[str, PlanFeatures] = {
    "free": PlanFeatures(
        student_path=True,
        employee_path=False,
        owner_path=False,
        tutor_sessions_per_month=3,
        agent_executions_per_month=5,
        skill_uses_per_month=10,
        custom_skill_creation=False,
        team_members=0,
        team_analytics=False,
        shared_skill_library=False,
        api_access=False,
        custom_agents=False,
        priority_support=False,
        sso_integration=False,
    ),
    "starter": PlanFeatures(
        student_path=True,
        employee_path=False,
        owner_path=False,
        tutor_sessions_per_month=10,
        agent_executions_per_month=50,
        skill_uses_per_month=100,
        custom_skill_creation=False,
        team_members=0,
        team_analytics=False,
        shared_skill_library=False,
        api_access=False,
        custom_agents=False,
        priority_support=False,
        sso_integration=False,
    ),
    "professional": PlanFeatures(
        student_path=True,
        employee_path=True,
        owner_path=False,
        tutor_sessions_per_month=UNLIMITED,
        agent_executions_per_month=100,
        skill_uses_per_month=500,
        custom_skill_creation=True,
        team_members=0,
        team_analytics=False,
        shared_skill_library=False,
        api_access=False,
        custom_agents=False,
        priority_support=False,
        sso_integration=False,
    ),
    "enterprise": PlanFeatures(
        student_path=True,
        employee_path=True,
        owner_path=True,
        tutor_sessions_per_month=UNLIMITED,
        agent_executions_per_month=UNLIMITED,
        skill_uses_per_month=UNLIMITED,
        custom_skill_creation=True,
        team_members=5,
        team_analytics=False,
        shared_skill_library=False,
        api_access=True,
        custom_agents=True,
        priority_support=True,
        sso_integration=False,
    ),
    "team_starter": PlanFeatures(team_members=10, **_TEAM_FEATURES),
    "team_growth": PlanFeatures(team_members=50, **_TEAM_FEATURES),
    "team_enterprise": PlanFeatures(team_members=UNLIMITED, **_TEAM_FEATURES),
}

# Cheapest plan that unlocks a gated feature, used for upgrade prompts.
FEATURE_UNLOCK_PLAN: Dict[str, str] = {
    "employee_path": "professional",
    "owner_path": "enterprise",
    "custom_skill_creation": "professional",
    "api_access": "enterprise",
    "custom_agents": "enterprise",
    "team_analytics": "team_starter",
    "sso_integration": "team_starter",
}

if set(PLAN_FEATURES) != set(PLAN_NAMES):
    raise RuntimeError("Every plan identifier must have both a feature record and a display name.")


__all__ = [
    "DEFAULT_PLAN_ID",
    "FEATURE_UNLOCK_PLAN",
    "PLAN_FEATURES",
    "PLAN_NAMES",
    "PlanFeatures",
    "PlanId",
    "QUOTA_FIELDS",
    "UNLIMITED",
]
