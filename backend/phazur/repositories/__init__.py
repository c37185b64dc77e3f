"""Persistence repositories."""

from .certifications import CertificationRepository, certification_repository
from .milestones import MilestoneRepository, milestone_repository
from .usage import UsageRepository, usage_repository

__all__ = [
    "CertificationRepository",
    "MilestoneRepository",
    "UsageRepository",
    "certification_repository",
    "milestone_repository",
    "usage_repository",
]
