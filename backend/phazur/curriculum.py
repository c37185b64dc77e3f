"""Static milestone catalog for the three learning paths."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Literal, Optional, Tuple

from .errors import UnknownPathError

LearningPath = Literal["student", "employee", "owner"]

PATH_ORDER: Tuple[LearningPath, ...] = ("student", "employee", "owner")
PATH_TITLES: Dict[str, str] = {
    "student": "The Student",
    "employee": "The Employee",
    "owner": "The Owner",
}
TOTAL_MILESTONES = 10


@dataclass(frozen=True)
class MilestoneDefinition:
    path: str
    number: int
    title: str
    goal: str
    completion_criteria: Tuple[str, ...] = ()
    validation_focus: str = ""


_RawMilestone = Tuple[str, str, Tuple[str, ...], str]

_STUDENT: Tuple[_RawMilestone, ...] = (
    (
        "Concept Exploration",
        "Understand AI capabilities",
        ("Explored 3+ AI tools", "Documented observations", "Identified area of interest"),
        "Assess understanding and guide toward project ideas",
    ),
    (
        "Project Selection",
        "Choose portfolio project",
        ("Project idea defined", "Problem/solution articulated", "Scope is realistic"),
        "Validate idea is achievable and impressive",
    ),
    (
        "Tool Setup",
        "Configure development environment",
        ("Dev environment configured", "API access working", "Hello world with AI call"),
        "Troubleshoot setup issues",
    ),
    (
        "Prototype",
        "Build v0.1",
        ("Core feature working", "End-to-end flow functional", "Known issues documented"),
        "Review code and approach",
    ),
    (
        "Iteration",
        "Improve based on feedback",
        ("Major issues fixed", "AI logic improved", "Edge cases handled"),
        "Review improvements",
    ),
    (
        "Deployment",
        "Ship to production",
        ("Live URL working", "Secrets secured", "Mobile-responsive"),
        "Test live deployment",
    ),
    (
        "Documentation",
        "README and demo",
        ("README complete", "Setup instructions work", "Visual demo included"),
        "Review documentation quality",
    ),
    (
        "Polish",
        "UI/UX improvements",
        ("UI looks professional", "UX is smooth", "States handled properly"),
        "Review polish and professionalism",
    ),
    (
        "Presentation Prep",
        "Create walkthrough",
        ("Demo script written", "Talking points clear", "Can articulate learnings"),
        "Coach on presentation",
    ),
    (
        "Certification Submission",
        "Submit portfolio piece",
        ("Live URL submitted", "GitHub repo public", "Demo video recorded", "Write-up complete"),
        "Full certification review",
    ),
)

_EMPLOYEE: Tuple[_RawMilestone, ...] = (
    (
        "Time Audit",
        "Find your time drains",
        ("List of 10+ repetitive tasks", "Weekly time estimate for each", "Pain level noted (low/medium/high)"),
        "Help identify highest-impact automations",
    ),
    (
        "Quick Win Selection",
        "Pick first automation target",
        ("One task selected", "Detailed process description", "Success criteria defined"),
        "Validate selection is achievable and valuable",
    ),
    (
        "Tool Discovery",
        "Find the right no-code tools",
        ("Tool selected", "Account created", "Test automation completed"),
        "Confirm tool fits use case",
    ),
    (
        "First Automation",
        "Build and test your automation",
        ("Automation built", "5 test runs completed", "Results documented"),
        "Review quality of outputs",
    ),
    (
        "Workflow Integration",
        "Connect to your daily tools",
        ("Integrated with daily tools", "Triggers automatically", "Notifications configured"),
        "Validate integration is practical",
    ),
    (
        "Expansion",
        "Add 2 more automations",
        ("2 additional automations built", "All 3 tested and working", "Integrated into workflow"),
        "Review quality and coverage",
    ),
    (
        "Error Proofing",
        "Handle edge cases",
        ("Error cases identified", "Fallbacks implemented", "Notifications for failures"),
        "Validate robustness",
    ),
    (
        "Documentation",
        "Create runbook",
        ("All automations documented", "Troubleshooting steps included", "Clear and readable"),
        "Review completeness and clarity",
    ),
    (
        "ROI Calculation",
        "Prove time saved",
        ("Time savings calculated", "Before/after comparison", "Value articulated"),
        "Validate numbers are credible",
    ),
    (
        "Certification Submission",
        "Demo your automations",
        ("Demo video uploaded", "Runbook complete", "ROI documented", "Usage logs provided"),
        "Full certification review",
    ),
)

_OWNER: Tuple[_RawMilestone, ...] = (
    (
        "The Automation Audit",
        "Identify what to automate",
        ("List of 10+ repetitive tasks", "Each task includes: frequency, time spent, current pain"),
        "Review list completeness, ask clarifying questions, help rank by automation ROI",
    ),
    (
        "Process Mapping",
        "Document your target process",
        ("Complete process flow (text or diagram)", "All decision points identified", "Input/output clearly defined"),
        "Review for completeness, identify gaps, ensure process is well-understood",
    ),
    (
        "Architecture Design",
        "Design your multi-agent system",
        ("Architecture diagram or description", "Each agent has clear role and tools", "Data flow is defined"),
        "Review architecture for clarity, suggest improvements, validate feasibility",
    ),
    (
        "Stack Selection",
        "Choose your tools",
        ("Stack chosen with reasoning", "Accounts created", "Basic test completed (screenshot/proof)"),
        "Confirm setup works, help troubleshoot issues, validate stack choice",
    ),
    (
        "First Agent",
        "Build one working agent",
        ("Agent built and functional", "3 real test cases completed", "Input/output examples shared"),
        "Review outputs for quality, help debug issues, suggest improvements",
    ),
    (
        "Full System Integration",
        "Connect all agents together",
        ("All agents built", "End-to-end flow works", "5 real test runs documented"),
        "Review end-to-end results, identify weak points, suggest optimizations",
    ),
    (
        "Error Handling",
        "Make it robust",
        ("3+ failure modes identified and handled", "Retry/fallback logic implemented", "Human escalation path defined"),
        "Review error handling coverage, test edge cases, validate escalation logic",
    ),
    (
        "Production Deployment",
        "Get it running 24/7",
        ("System deployed (screenshot of hosting)", "48+ hours of production logs", "Real work processed automatically"),
        "Review production logs, confirm stability, check for issues",
    ),
    (
        "Cost & Performance",
        "Make it efficient",
        (
            "Cost per task calculated",
            "Time savings documented",
            "ROI analysis complete",
            "Optimization opportunities identified",
        ),
        "Review numbers for accuracy, suggest optimizations, validate ROI",
    ),
    (
        "Certification Submission",
        "Prove you built something real",
        ("All 5 artifacts submitted", "System is actually running in production", "Clear business value demonstrated"),
        "Full review against certification rubric, detailed scoring feedback",
    ),
)


def _build(path: str, raw: Tuple[_RawMilestone, ...]) -> Tuple[MilestoneDefinition, ...]:
    return tuple(
        MilestoneDefinition(
            path=path,
            number=index,
            title=title,
            goal=goal,
            completion_criteria=criteria,
            validation_focus=focus,
        )
        for index, (title, goal, criteria, focus) in enumerate(raw, start=1)
    )


_CATALOG: Dict[str, Tuple[MilestoneDefinition, ...]] = {
    "student": _build("student", _STUDENT),
    "employee": _build("employee", _EMPLOYEE),
    "owner": _build("owner", _OWNER),
}


def _validate_catalog(catalog: Dict[str, Tuple[MilestoneDefinition, ...]]) -> None:
    if set(catalog) != set(PATH_ORDER):
        raise RuntimeError("Curriculum catalog must define exactly the known learning paths.")
    for path, milestones in catalog.items():
        if len(milestones) != TOTAL_MILESTONES:
            raise RuntimeError(f"Path '{path}' must define {TOTAL_MILESTONES} milestones, found {len(milestones)}.")
        for expected, milestone in enumerate(milestones, start=1):
            if milestone.number != expected or milestone.path != path:
                raise RuntimeError(f"Path '{path}' milestone numbering is not contiguous at {expected}.")


_validate_catalog(_CATALOG)


def is_known_path(path: object) -> bool:
    return isinstance(path, str) and path in _CATALOG


def get_milestones(path: str) -> Tuple[MilestoneDefinition, ...]:
    """Return the ordered milestone definitions for ``path``."""
    if not is_known_path(path):
        raise UnknownPathError(path)
    return _CATALOG[path]


def get_milestone(path: str, number: int) -> Optional[MilestoneDefinition]:
    milestones = get_milestones(path)
    if 1 <= number <= len(milestones):
        return milestones[number - 1]
    return None


def total_milestones(path: str) -> int:
    return len(get_milestones(path))


def path_title(path: str) -> str:
    if not is_known_path(path):
        raise UnknownPathError(path)
    return PATH_TITLES[path]


__all__ = [
    "LearningPath",
    "MilestoneDefinition",
    "PATH_ORDER",
    "PATH_TITLES",
    "TOTAL_MILESTONES",
    "get_milestone",
    "get_milestones",
    "is_known_path",
    "path_title",
    "total_milestones",
]
