"""Project and task model for the tracker.

A :class:`Project` owns an ordered list of :class:`Task` objects.  Project
``status`` and ``completed_date`` are derived from the tasks by the engine;
nothing in this module recomputes them.  Both classes round-trip through
plain dicts for YAML persistence.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Optional

from .utils import _date_iso, _generate_id, _parse_date


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Status(str, Enum):
    """Workflow stage shared by projects and tasks."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Priority(str, Enum):
    """Project priority."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ScheduleStatus(str, Enum):
    """How a due date sits relative to today."""

    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    DELAYED = "delayed"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _enum(enum_cls: type[Enum], raw: Any, default: Enum) -> Any:
    if raw is None or raw == "":
        return default
    if isinstance(raw, enum_cls):
        return raw
    try:
        return enum_cls(str(raw).strip().lower())
    except (ValueError, KeyError):
        return default


def _required_date(raw: Any) -> date:
    parsed = _parse_date(raw)
    return parsed if parsed is not None else date.today()


# ---------------------------------------------------------------------------
# Task
# ---------------------------------------------------------------------------

@dataclass
class Task:
    """A unit of work inside a project."""

    id: str = field(default_factory=lambda: _generate_id("task"))
    project_id: str = ""
    name: str = ""
    description: str = ""
    status: Status = Status.TODO
    due_date: date = field(default_factory=date.today)
    completed_date: Optional[date] = None
    created_at: date = field(default_factory=date.today)
    updated_at: date = field(default_factory=date.today)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "due_date": _date_iso(self.due_date),
            "completed_date": _date_iso(self.completed_date),
            "created_at": _date_iso(self.created_at),
            "updated_at": _date_iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Deserialize from a plain dict, coercing enums and dates gracefully."""
        return cls(
            id=str(data.get("id") or _generate_id("task")),
            project_id=str(data.get("project_id") or ""),
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            status=_enum(Status, data.get("status"), Status.TODO),
            due_date=_required_date(data.get("due_date")),
            completed_date=_parse_date(data.get("completed_date")),
            created_at=_required_date(data.get("created_at")),
            updated_at=_required_date(data.get("updated_at")),
        )

    def touch(self, today: date) -> None:
        """Bump ``updated_at`` to *today*."""
        self.updated_at = today

    def transition(self, new_status: Status, today: date) -> None:
        """Move to *new_status*, keeping ``completed_date`` in step with it."""
        self.status = new_status
        self.completed_date = today if new_status == Status.COMPLETED else None
        self.touch(today)


# ---------------------------------------------------------------------------
# Project
# ---------------------------------------------------------------------------

@dataclass
class Project:
    """A tracked project and the tasks it owns.

    ``status`` and ``completed_date`` are derived fields: the engine
    recomputes them after task mutations, and only the explicit status
    override sets them directly.
    """

    id: str = field(default_factory=lambda: _generate_id("proj"))
    name: str = ""
    description: str = ""
    owner: str = ""
    priority: Priority = Priority.MEDIUM
    category: str = ""
    start_date: date = field(default_factory=date.today)
    due_date: date = field(default_factory=date.today)

    # Derived
    status: Status = Status.TODO
    completed_date: Optional[date] = None

    tasks: list[Task] = field(default_factory=list)
    created_at: date = field(default_factory=date.today)
    updated_at: date = field(default_factory=date.today)

    def to_dict(self, include_tasks: bool = True) -> dict[str, Any]:
        """Serialize to a plain dict.

        With ``include_tasks=False`` the result is a flat project row, the
        shape used by the file store which keeps tasks in their own section.
        """
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "owner": self.owner,
            "priority": self.priority.value,
            "category": self.category,
            "start_date": _date_iso(self.start_date),
            "due_date": _date_iso(self.due_date),
            "status": self.status.value,
            "completed_date": _date_iso(self.completed_date),
            "created_at": _date_iso(self.created_at),
            "updated_at": _date_iso(self.updated_at),
        }
        if include_tasks:
            data["tasks"] = [t.to_dict() for t in self.tasks]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Project":
        project = cls(
            id=str(data.get("id") or _generate_id("proj")),
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            owner=str(data.get("owner") or ""),
            priority=_enum(Priority, data.get("priority"), Priority.MEDIUM),
            category=str(data.get("category") or ""),
            start_date=_required_date(data.get("start_date")),
            due_date=_required_date(data.get("due_date")),
            status=_enum(Status, data.get("status"), Status.TODO),
            completed_date=_parse_date(data.get("completed_date")),
            created_at=_required_date(data.get("created_at")),
            updated_at=_required_date(data.get("updated_at")),
        )
        for raw in data.get("tasks") or []:
            if isinstance(raw, dict):
                task = Task.from_dict(raw)
                task.project_id = project.id
                project.tasks.append(task)
        return project

    def get_task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def touch(self, today: date) -> None:
        self.updated_at = today
