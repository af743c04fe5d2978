"""Tests for the project/task model (model.py)."""

from __future__ import annotations

from datetime import date

from project_tracker.model import Priority, Project, Status, Task


class TestDefaults:
    def test_project_defaults(self) -> None:
        p = Project(name="P")
        assert p.id.startswith("proj-")
        assert p.status == Status.TODO
        assert p.priority == Priority.MEDIUM
        assert p.tasks == []
        assert p.completed_date is None

    def test_task_defaults(self) -> None:
        t = Task(name="T")
        assert t.id.startswith("task-")
        assert t.status == Status.TODO
        assert t.completed_date is None


class TestSerialization:
    def test_project_round_trip_with_tasks(self) -> None:
        p = Project(id="p1", name="P", due_date=date(2026, 4, 1))
        p.tasks.append(Task(id="t1", project_id="p1", name="T", status=Status.IN_PROGRESS))
        data = p.to_dict()
        assert data["due_date"] == "2026-04-01"
        assert data["tasks"][0]["status"] == "in_progress"
        assert Project.from_dict(data) == p

    def test_flat_row(self) -> None:
        assert "tasks" not in Project(id="p1").to_dict(include_tasks=False)

    def test_from_dict_is_lenient(self) -> None:
        t = Task.from_dict(
            {
                "id": "t1",
                "project_id": "p1",
                "status": "COMPLETED",
                "due_date": "2026-03-10T09:00:00Z",
                "completed_date": "",
            }
        )
        assert t.status == Status.COMPLETED
        assert t.due_date == date(2026, 3, 10)
        assert t.completed_date is None

    def test_from_dict_rehomes_embedded_tasks(self) -> None:
        p = Project.from_dict({"id": "p1", "tasks": [{"id": "t1", "project_id": "other"}]})
        assert p.tasks[0].project_id == "p1"


def test_task_transition() -> None:
    t = Task(name="T")
    t.transition(Status.COMPLETED, date(2026, 3, 10))
    assert t.completed_date == date(2026, 3, 10)
    assert t.updated_at == date(2026, 3, 10)
    assert t.status == Status.COMPLETED
    t.transition(Status.TODO, date(2026, 3, 11))
    assert t.completed_date is None
