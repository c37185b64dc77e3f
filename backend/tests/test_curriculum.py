from __future__ import annotations

import pytest

from phazur.curriculum import (
    PATH_ORDER,
    TOTAL_MILESTONES,
    get_milestone,
    get_milestones,
    is_known_path,
    path_title,
    total_milestones,
)
from phazur.errors import UnknownPathError


def test_every_path_has_contiguous_milestones() -> None:
    for path in PATH_ORDER:
        milestones = get_milestones(path)
        assert len(milestones) == TOTAL_MILESTONES
        assert [milestone.number for milestone in milestones] == list(range(1, TOTAL_MILESTONES + 1))
        assert all(milestone.path == path for milestone in milestones)
        assert all(milestone.completion_criteria for milestone in milestones)


def test_catalog_titles_follow_path() -> None:
    assert get_milestone("student", 1).title == "Concept Exploration"
    assert get_milestone("employee", 1).title == "Time Audit"
    assert get_milestone("owner", 1).title == "The Automation Audit"
    assert get_milestone("owner", 10).title == "Certification Submission"


def test_get_milestone_out_of_range_returns_none() -> None:
    assert get_milestone("student", 0) is None
    assert get_milestone("student", 11) is None


def test_unknown_path_raises() -> None:
    assert not is_known_path("manager")
    assert not is_known_path(None)
    with pytest.raises(UnknownPathError) as excinfo:
        get_milestones("manager")
    assert excinfo.value.path == "manager"
    with pytest.raises(UnknownPathError):
        path_title("manager")


def test_titles_and_totals() -> None:
    assert path_title("student") == "The Student"
    assert path_title("employee") == "The Employee"
    assert path_title("owner") == "The Owner"
    assert total_milestones("employee") == 10
