"""Tests for progress/status derivation (progress.py)."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from project_tracker.model import Priority, Project, Status, Task
from project_tracker.progress import (
    ProjectFilter,
    completion_percentage,
    count_tasks_by_status,
    dashboard_stats,
    derive_status,
    filter_projects,
    group_projects_by_status,
    group_tasks_by_status,
    owners,
    priority_label,
    project_schedule_status,
    status_label,
)
from project_tracker.model import ScheduleStatus

TODAY = date(2026, 3, 10)


def _tasks(*statuses: str) -> list[Task]:
    return [Task(id=f"t{i}", project_id="p", name=f"T{i}", status=Status(s)) for i, s in enumerate(statuses)]


class TestCompletionPercentage:
    def test_empty_is_zero(self) -> None:
        assert completion_percentage([]) == 0

    @pytest.mark.parametrize(
        "statuses, expected",
        [
            (["todo"], 0),
            (["completed"], 100),
            (["completed", "todo"], 50),
            (["completed", "todo", "todo"], 33),
            (["completed", "completed", "todo"], 67),
            (["in_progress", "in_progress"], 0),
        ],
    )
    def test_ratio(self, statuses: list[str], expected: int) -> None:
        assert completion_percentage(_tasks(*statuses)) == expected

    def test_rounds_half_up(self) -> None:
        # 1/8 = 12.5% and 5/8 = 62.5%; banker's rounding would give 12 and 62
        assert completion_percentage(_tasks("completed", *["todo"] * 7)) == 13
        assert completion_percentage(_tasks(*["completed"] * 5, *["todo"] * 3)) == 63


class TestDeriveStatus:
    def test_empty_is_todo(self) -> None:
        assert derive_status([]) == Status.TODO

    def test_all_todo(self) -> None:
        assert derive_status(_tasks("todo", "todo")) == Status.TODO

    def test_all_completed(self) -> None:
        assert derive_status(_tasks("completed", "completed")) == Status.COMPLETED

    def test_any_in_progress(self) -> None:
        assert derive_status(_tasks("todo", "in_progress")) == Status.IN_PROGRESS

    def test_partially_completed_is_in_progress(self) -> None:
        assert derive_status(_tasks("todo", "completed")) == Status.IN_PROGRESS

    def test_is_idempotent(self) -> None:
        tasks = _tasks("todo", "completed", "in_progress")
        assert derive_status(tasks) == derive_status(tasks)
        assert [t.status for t in tasks] == [Status.TODO, Status.COMPLETED, Status.IN_PROGRESS]


class TestDashboardStats:
    def test_counts(self) -> None:
        projects = [
            Project(id="a", status=Status.TODO, due_date=TODAY + timedelta(days=30)),
            Project(id="b", status=Status.IN_PROGRESS, due_date=TODAY + timedelta(days=3)),
            Project(id="c", status=Status.IN_PROGRESS, due_date=TODAY - timedelta(days=1)),
            # completed projects are never at risk or delayed
            Project(id="d", status=Status.COMPLETED, due_date=TODAY - timedelta(days=10)),
        ]
        stats = dashboard_stats(projects, TODAY)
        assert stats.to_dict() == {
            "total": 4,
            "todo": 1,
            "in_progress": 2,
            "completed": 1,
            "at_risk": 1,
            "delayed": 1,
        }

    def test_empty(self) -> None:
        assert dashboard_stats([], TODAY).total == 0

    def test_completed_project_schedule_is_on_track(self) -> None:
        p = Project(status=Status.COMPLETED, due_date=TODAY - timedelta(days=5))
        assert project_schedule_status(p, TODAY) == ScheduleStatus.ON_TRACK
        p.status = Status.IN_PROGRESS
        assert project_schedule_status(p, TODAY) == ScheduleStatus.DELAYED


class TestGrouping:
    def test_count_tasks_by_status(self) -> None:
        counts = count_tasks_by_status(_tasks("todo", "todo", "completed"))
        assert counts == {Status.TODO: 2, Status.IN_PROGRESS: 0, Status.COMPLETED: 1}

    def test_group_tasks_keeps_order(self) -> None:
        tasks = _tasks("completed", "todo", "completed")
        groups = group_tasks_by_status(tasks)
        assert [t.id for t in groups[Status.COMPLETED]] == ["t0", "t2"]
        assert groups[Status.IN_PROGRESS] == []

    def test_group_projects(self) -> None:
        projects = [Project(id="a"), Project(id="b", status=Status.COMPLETED)]
        groups = group_projects_by_status(projects)
        assert [p.id for p in groups[Status.TODO]] == ["a"]
        assert [p.id for p in groups[Status.COMPLETED]] == ["b"]


class TestLabels:
    def test_status_label(self) -> None:
        assert status_label(Status.TODO) == "To Do"
        assert status_label(Status.IN_PROGRESS) == "In Progress"
        assert status_label("completed") == "Completed"

    def test_priority_label(self) -> None:
        assert priority_label(Priority.HIGH) == "High"
        assert priority_label("low") == "Low"


class TestFilterProjects:
    @pytest.fixture
    def projects(self) -> list[Project]:
        return [
            Project(id="a", name="Website redesign", description="New look", owner="Dana",
                    priority=Priority.HIGH, category="Design"),
            Project(id="b", name="API", description="Public endpoints", owner="Sam",
                    priority=Priority.LOW, category="Development", status=Status.IN_PROGRESS),
            Project(id="c", name="Launch", description="Website go-live", owner="Dana",
                    priority=Priority.HIGH, category="Marketing", status=Status.COMPLETED),
        ]

    def test_no_filter_returns_all(self, projects: list[Project]) -> None:
        assert [p.id for p in filter_projects(projects, ProjectFilter())] == ["a", "b", "c"]

    def test_search_is_case_insensitive_over_name_description_owner(self, projects: list[Project]) -> None:
        assert [p.id for p in filter_projects(projects, ProjectFilter(search="WEBSITE"))] == ["a", "c"]
        assert [p.id for p in filter_projects(projects, ProjectFilter(search="sam"))] == ["b"]

    def test_combined_filters(self, projects: list[Project]) -> None:
        flt = ProjectFilter(priority="high", status="completed")
        assert [p.id for p in filter_projects(projects, flt)] == ["c"]
        assert [p.id for p in filter_projects(projects, ProjectFilter(category="Development"))] == ["b"]

    def test_owners(self, projects: list[Project]) -> None:
        assert owners(projects) == ["Dana", "Sam"]
