"""Project engine: the single authority over projects and their tasks.

Every mutation runs inside a transaction over a private copy of the current
snapshot.  The copy becomes the new snapshot only when the operation
finishes, so an operation that raises leaves the previous snapshot exactly
as it was.  After each task mutation the owning project's ``status`` and
``completed_date`` are recomputed from its tasks.
"""

from __future__ import annotations

import copy
from contextlib import contextmanager
from datetime import date
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional, Union

from loguru import logger
from pydantic import BaseModel

from .errors import NotFoundError, ValidationError
from .forms import (
    PROJECT_REQUIRED,
    TASK_REQUIRED,
    ProjectForm,
    ProjectUpdate,
    TaskForm,
    TaskUpdate,
    coerce_form,
    missing_required,
)
from .model import Project, Status, Task
from .progress import derive_status
from .utils import _generate_id

Snapshot = tuple[Project, ...]
Listener = Callable[[Snapshot], None]
FormData = Union[Mapping[str, Any], BaseModel]


def _coerce_status(value: Union[Status, str]) -> Status:
    if isinstance(value, Status):
        return value
    try:
        return Status(str(value))
    except ValueError:
        valid = [s.value for s in Status]
        raise ValidationError({"status": f"'status' must be one of {valid}, got '{value}'"}) from None


def _recompute_status(project: Project, today: date) -> None:
    """Re-derive ``status``/``completed_date`` after a task mutation.

    A project that newly becomes completed is stamped with *today*; one that
    was already completed keeps its date; anything else clears it.
    """
    was_completed = project.status == Status.COMPLETED
    project.status = derive_status(project.tasks)
    if project.status == Status.COMPLETED:
        if not was_completed or project.completed_date is None:
            project.completed_date = today
    else:
        project.completed_date = None


# ---------------------------------------------------------------------------
# Transaction
# ---------------------------------------------------------------------------

class _ProjectTx:
    """Working copy of the project list for one engine operation."""

    def __init__(self, projects: Iterable[Project], today: date) -> None:
        self.projects: list[Project] = copy.deepcopy(list(projects))
        self.today = today
        self.dirty = False
        self._index: dict[str, int] = {p.id: i for i, p in enumerate(self.projects)}

    def get(self, project_id: str) -> Optional[Project]:
        idx = self._index.get(project_id)
        return self.projects[idx] if idx is not None else None

    def require(self, project_id: str) -> Project:
        project = self.get(project_id)
        if project is None:
            raise NotFoundError("project", project_id)
        return project

    def require_task(self, project: Project, task_id: str) -> Task:
        task = project.get_task(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        return task

    def add(self, project: Project) -> Project:
        self._index[project.id] = len(self.projects)
        self.projects.append(project)
        self.dirty = True
        return project

    def remove(self, project_id: str) -> Project:
        idx = self._index.get(project_id)
        if idx is None:
            raise NotFoundError("project", project_id)
        project = self.projects.pop(idx)
        self._index = {p.id: i for i, p in enumerate(self.projects)}
        self.dirty = True
        return project


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class ProjectEngine:
    """Apply project and task operations to one canonical snapshot.

    Parameters
    ----------
    projects:
        Initial project collection (for example, what the store loaded).
    clock:
        Returns today's date; injected so tests can pin the calendar.
    """

    def __init__(self, projects: Iterable[Project] = (), clock: Callable[[], date] = date.today) -> None:
        self._clock = clock
        self._projects: Snapshot = ()
        self._listeners: list[Listener] = []
        self._known_ids: set[str] = set()
        self._seed(projects)

    # ------------------------------------------------------------------
    # Snapshot access
    # ------------------------------------------------------------------

    @property
    def projects(self) -> Snapshot:
        """Current snapshot.  Callers must treat it as read-only."""
        return self._projects

    def get_project(self, project_id: str) -> Optional[Project]:
        for project in self._projects:
            if project.id == project_id:
                return project
        return None

    def require_project(self, project_id: str) -> Project:
        project = self.get_project(project_id)
        if project is None:
            raise NotFoundError("project", project_id)
        return project

    def get_task(self, project_id: str, task_id: str) -> Optional[Task]:
        project = self.get_project(project_id)
        return project.get_task(task_id) if project is not None else None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with every committed snapshot.

        Returns a callable that removes the listener again.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def replace_all(self, projects: Iterable[Project]) -> Snapshot:
        """Replace the whole collection, e.g. after loading from a store."""
        self._seed(projects)
        self._publish()
        return self._projects

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _seed(self, projects: Iterable[Project]) -> None:
        seeded = copy.deepcopy(list(projects))
        errors: dict[str, str] = {}
        project_ids: set[str] = set()
        task_ids: set[str] = set()
        for project in seeded:
            if project.id in project_ids:
                errors[f"projects.{project.id}"] = "Duplicate project id"
            project_ids.add(project.id)
            for task in project.tasks:
                if task.id in task_ids:
                    errors[f"tasks.{task.id}"] = "Duplicate task id"
                task_ids.add(task.id)
                if task.project_id != project.id:
                    errors[f"tasks.{task.id}.project_id"] = (
                        f"Task belongs to {task.project_id!r}, not {project.id!r}"
                    )
        if errors:
            raise ValidationError(errors)
        self._projects = tuple(seeded)
        self._known_ids |= project_ids | task_ids

    def _new_id(self, prefix: str) -> str:
        new_id = _generate_id(prefix)
        while new_id in self._known_ids:
            new_id = _generate_id(prefix)
        self._known_ids.add(new_id)
        return new_id

    @contextmanager
    def _transaction(self) -> Iterator[_ProjectTx]:
        tx = _ProjectTx(self._projects, self._clock())
        yield tx
        if tx.dirty:
            self._projects = tuple(tx.projects)
            self._publish()

    def _publish(self) -> None:
        snapshot = self._projects
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener {} failed", listener)

    # ------------------------------------------------------------------
    # Project operations
    # ------------------------------------------------------------------

    def create_project(self, form_data: FormData) -> Snapshot:
        """Append a new, empty project.  It is the last item of the result."""
        form = coerce_form(ProjectForm, form_data)
        values = form.model_dump()
        errors = missing_required(values, PROJECT_REQUIRED)
        if errors:
            raise ValidationError(errors)

        with self._transaction() as tx:
            project = Project(
                id=self._new_id("proj"),
                name=form.name,
                description=form.description,
                owner=form.owner,
                priority=form.priority,
                category=form.category,
                start_date=form.start_date,
                due_date=form.due_date,
                status=Status.TODO,
                completed_date=None,
                tasks=[],
                created_at=tx.today,
                updated_at=tx.today,
            )
            tx.add(project)

        logger.info("Created project {}: {}", project.id, project.name)
        return self._projects

    def update_project(self, project_id: str, partial_data: FormData) -> Snapshot:
        """Merge editable fields.  Status, completion date and tasks are untouched."""
        form = coerce_form(ProjectUpdate, partial_data)
        changes = form.model_dump(exclude_none=True)
        errors = missing_required(changes, PROJECT_REQUIRED, partial=True)
        if errors:
            raise ValidationError(errors)

        with self._transaction() as tx:
            project = tx.require(project_id)
            for key, value in changes.items():
                setattr(project, key, value)
            project.touch(tx.today)
            tx.dirty = True

        logger.info("Updated project {} ({})", project_id, ", ".join(sorted(changes)) or "no fields")
        return self._projects

    def delete_project(self, project_id: str) -> Snapshot:
        """Remove a project together with all of its tasks."""
        with self._transaction() as tx:
            project = tx.remove(project_id)

        logger.info("Deleted project {} and {} task(s)", project_id, len(project.tasks))
        return self._projects

    def set_project_status(self, project_id: str, status: Union[Status, str]) -> Snapshot:
        """Manually override a project's status.

        The override holds only until the next task status change or task
        deletion recomputes the status from the tasks.
        """
        target = _coerce_status(status)
        with self._transaction() as tx:
            project = tx.require(project_id)
            project.status = target
            project.completed_date = tx.today if target == Status.COMPLETED else None
            project.touch(tx.today)
            tx.dirty = True

        logger.info("Project {} status set to {}", project_id, target.value)
        return self._projects

    # ------------------------------------------------------------------
    # Task operations
    # ------------------------------------------------------------------

    def create_task(self, project_id: str, form_data: FormData) -> Snapshot:
        """Append a ``todo`` task to a project and recompute its status."""
        form = coerce_form(TaskForm, form_data)
        errors = missing_required(form.model_dump(), TASK_REQUIRED)
        if errors:
            raise ValidationError(errors)

        with self._transaction() as tx:
            project = tx.require(project_id)
            task = Task(
                id=self._new_id("task"),
                project_id=project.id,
                name=form.name,
                description=form.description,
                status=Status.TODO,
                due_date=form.due_date,
                completed_date=None,
                created_at=tx.today,
                updated_at=tx.today,
            )
            project.tasks.append(task)
            _recompute_status(project, tx.today)
            project.touch(tx.today)
            tx.dirty = True

        logger.info("Created task {} in project {}: {}", task.id, project_id, task.name)
        return self._projects

    def update_task(self, project_id: str, task_id: str, partial_data: FormData) -> Snapshot:
        """Merge editable task fields.  Statuses are not recomputed."""
        form = coerce_form(TaskUpdate, partial_data)
        changes = form.model_dump(exclude_none=True)
        errors = missing_required(changes, TASK_REQUIRED, partial=True)
        if errors:
            raise ValidationError(errors)

        with self._transaction() as tx:
            project = tx.require(project_id)
            task = tx.require_task(project, task_id)
            for key, value in changes.items():
                setattr(task, key, value)
            task.touch(tx.today)
            project.touch(tx.today)
            tx.dirty = True

        logger.info("Updated task {} ({})", task_id, ", ".join(sorted(changes)) or "no fields")
        return self._projects

    def set_task_status(self, project_id: str, task_id: str, status: Union[Status, str]) -> Snapshot:
        """Move a task to *status* and re-derive the project's status."""
        target = _coerce_status(status)
        with self._transaction() as tx:
            project = tx.require(project_id)
            task = tx.require_task(project, task_id)
            previous = project.status
            task.transition(target, tx.today)
            _recompute_status(project, tx.today)
            project.touch(tx.today)
            tx.dirty = True

        logger.info(
            "Task {} -> {}; project {} {} -> {}",
            task_id,
            target.value,
            project_id,
            previous.value,
            project.status.value,
        )
        return self._projects

    def delete_task(self, project_id: str, task_id: str) -> Snapshot:
        """Remove a task and re-derive the project's status."""
        with self._transaction() as tx:
            project = tx.require(project_id)
            task = tx.require_task(project, task_id)
            project.tasks.remove(task)
            _recompute_status(project, tx.today)
            project.touch(tx.today)
            tx.dirty = True

        logger.info("Deleted task {} from project {}", task_id, project_id)
        return self._projects
