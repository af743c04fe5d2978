"""Roll task state up into project progress, status and dashboard counts.

Every function here is pure: the result depends only on the arguments.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable, Optional, Sequence

from .dates import DateLike, schedule_status
from .model import Priority, Project, ScheduleStatus, Status, Task

_STATUS_LABELS = {
    Status.TODO: "To Do",
    Status.IN_PROGRESS: "In Progress",
    Status.COMPLETED: "Completed",
}


@dataclass(frozen=True)
class DashboardStats:
    total: int = 0
    todo: int = 0
    in_progress: int = 0
    completed: int = 0
    at_risk: int = 0
    delayed: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def completion_percentage(tasks: Sequence[Task]) -> int:
    """Percentage of *tasks* that are completed, rounded half up.

    An empty task list is 0%.
    """
    total = len(tasks)
    if total == 0:
        return 0
    completed = sum(1 for t in tasks if t.status == Status.COMPLETED)
    # floor(100 * completed / total + 0.5) in integer arithmetic
    return (200 * completed + total) // (2 * total)


def derive_status(tasks: Sequence[Task]) -> Status:
    """Derive a project's workflow status from its tasks.

    - no tasks -> todo
    - every task completed -> completed
    - any task in progress or completed -> in_progress
    - otherwise -> todo
    """
    if not tasks:
        return Status.TODO
    if all(t.status == Status.COMPLETED for t in tasks):
        return Status.COMPLETED
    if any(t.status in (Status.IN_PROGRESS, Status.COMPLETED) for t in tasks):
        return Status.IN_PROGRESS
    return Status.TODO


def dashboard_stats(projects: Iterable[Project], today: Optional[DateLike] = None) -> DashboardStats:
    """Count projects by status, plus schedule risk for unfinished ones."""
    counts = {
        "total": 0,
        "todo": 0,
        "in_progress": 0,
        "completed": 0,
        "at_risk": 0,
        "delayed": 0,
    }
    for project in projects:
        counts["total"] += 1
        counts[project.status.value] += 1
        if project.status == Status.COMPLETED:
            continue
        sched = schedule_status(project.due_date, today)
        if sched == ScheduleStatus.AT_RISK:
            counts["at_risk"] += 1
        elif sched == ScheduleStatus.DELAYED:
            counts["delayed"] += 1
    return DashboardStats(**counts)


def project_schedule_status(project: Project, today: Optional[DateLike] = None) -> ScheduleStatus:
    """Schedule status for display: completed projects are always on track."""
    if project.status == Status.COMPLETED:
        return ScheduleStatus.ON_TRACK
    return schedule_status(project.due_date, today)


def count_tasks_by_status(tasks: Iterable[Task]) -> dict[Status, int]:
    counts = {s: 0 for s in Status}
    for task in tasks:
        counts[task.status] += 1
    return counts


def group_projects_by_status(projects: Iterable[Project]) -> dict[Status, list[Project]]:
    """Kanban columns, each keeping the input order."""
    groups: dict[Status, list[Project]] = {s: [] for s in Status}
    for project in projects:
        groups[project.status].append(project)
    return groups


def group_tasks_by_status(tasks: Iterable[Task]) -> dict[Status, list[Task]]:
    groups: dict[Status, list[Task]] = {s: [] for s in Status}
    for task in tasks:
        groups[task.status].append(task)
    return groups


def status_label(status: Status) -> str:
    return _STATUS_LABELS[Status(status)]


def priority_label(priority: Any) -> str:
    value = priority.value if isinstance(priority, Priority) else str(priority)
    return value[:1].upper() + value[1:]


def owners(projects: Iterable[Project]) -> list[str]:
    """Distinct non-empty owners, sorted (owner suggestions for forms)."""
    return sorted({p.owner for p in projects if p.owner})


# ---------------------------------------------------------------------------
# Dashboard filters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProjectFilter:
    """Dashboard filter bar state.

    ``"all"`` or an empty value means the dimension is not filtered.
    """

    search: str = ""
    status: str = "all"
    priority: str = "all"
    category: str = ""


def _is_unset(value: Any) -> bool:
    return value is None or value == "" or value == "all"


def filter_projects(projects: Iterable[Project], flt: ProjectFilter) -> list[Project]:
    needle = flt.search.strip().lower()
    status = None if _is_unset(flt.status) else Status(flt.status)
    priority = None if _is_unset(flt.priority) else Priority(flt.priority)
    out: list[Project] = []
    for p in projects:
        if needle and not (
            needle in p.name.lower()
            or needle in p.description.lower()
            or needle in p.owner.lower()
        ):
            continue
        if status is not None and p.status != status:
            continue
        if priority is not None and p.priority != priority:
            continue
        if flt.category and p.category != flt.category:
            continue
        out.append(p)
    return out
