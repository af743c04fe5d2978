"""Tie a :class:`ProjectEngine` to a :class:`ProjectStore`.

The session loads once, then saves every committed snapshot.  Saving is
best effort: a failure is logged and remembered in ``last_save_error`` but
never undoes the in-memory change.
"""

from __future__ import annotations

from datetime import date
from typing import Callable, Optional, Union

from loguru import logger

from .engine import FormData, ProjectEngine, Snapshot
from .errors import ValidationError
from .model import Project, Status
from .progress import DashboardStats, dashboard_stats
from .store import ProjectStore


class TrackerSession:
    def __init__(self, store: ProjectStore, clock: Callable[[], date] = date.today) -> None:
        self.store = store
        self.engine = ProjectEngine(clock=clock)
        self.load_error: Optional[str] = None
        self.last_save_error: Optional[str] = None
        self.is_saving = False
        self._backed_up = False
        self._clock = clock
        self._unsubscribe: Optional[Callable[[], None]] = None

    def open(self) -> "TrackerSession":
        """Seed the engine from the store; fall back to empty on failure."""
        projects, err = self.store.load()
        if err is None:
            try:
                self.engine = ProjectEngine(projects, clock=self._clock)
            except ValidationError as exc:
                err = f"Inconsistent data: {exc}"
        if err is not None:
            logger.error("Failed to load projects, starting empty: {}", err)
            self.load_error = err
            self.engine = ProjectEngine(clock=self._clock)
        else:
            logger.info("Loaded {} project(s)", len(self.engine.projects))
        self._unsubscribe = self.engine.subscribe(self._save)
        return self

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _save(self, snapshot: Snapshot) -> None:
        if self.load_error and not self._backed_up:
            backup = self.store.backup()
            if backup is not None:
                logger.warning("Backed up unreadable data file to {}", backup)
            self._backed_up = True
        self.is_saving = True
        try:
            err = self.store.save(snapshot)
        finally:
            self.is_saving = False
        if err:
            logger.warning("Failed to save projects: {}", err)
        self.last_save_error = err

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def projects(self) -> Snapshot:
        return self.engine.projects

    def get_project(self, project_id: str) -> Optional[Project]:
        return self.engine.get_project(project_id)

    def stats(self, today: Optional[date] = None) -> DashboardStats:
        return dashboard_stats(self.engine.projects, today or self._clock())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_project(self, form_data: FormData) -> Snapshot:
        return self.engine.create_project(form_data)

    def update_project(self, project_id: str, partial_data: FormData) -> Snapshot:
        return self.engine.update_project(project_id, partial_data)

    def delete_project(self, project_id: str) -> Snapshot:
        return self.engine.delete_project(project_id)

    def set_project_status(self, project_id: str, status: Union[Status, str]) -> Snapshot:
        return self.engine.set_project_status(project_id, status)

    def create_task(self, project_id: str, form_data: FormData) -> Snapshot:
        return self.engine.create_task(project_id, form_data)

    def update_task(self, project_id: str, task_id: str, partial_data: FormData) -> Snapshot:
        return self.engine.update_task(project_id, task_id, partial_data)

    def set_task_status(self, project_id: str, task_id: str, status: Union[Status, str]) -> Snapshot:
        return self.engine.set_task_status(project_id, task_id, status)

    def delete_task(self, project_id: str, task_id: str) -> Snapshot:
        return self.engine.delete_task(project_id, task_id)
