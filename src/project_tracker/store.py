"""Persistence for the project collection.

The engine never touches storage.  Its caller picks one :class:`ProjectStore`
at startup, calls :meth:`~ProjectStore.load` once to seed the engine, and
:meth:`~ProjectStore.save` after every committed change.  Both report
failures as error strings instead of raising.

:class:`YamlProjectStore` keeps everything in a single YAML data file with
three sections, mirroring a workbook with one sheet each:

``projects``
    One flat row per project (no tasks).
``tasks``
    Every task of every project, in project order; regrouped under their
    owners by ``project_id`` on load.
``settings``
    Owned by :class:`~project_tracker.settings.SettingsStore`.
"""

from __future__ import annotations

import copy
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable, Optional

import yaml
from filelock import FileLock, Timeout
from loguru import logger

from .io_utils import _atomic_write_yaml, _load_data_with_error
from .model import Project, Task

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DATA_VERSION = 1
LOCK_TIMEOUT = 30  # seconds


# ---------------------------------------------------------------------------
# Shared data file
# ---------------------------------------------------------------------------

class DataFile:
    """The YAML data file shared by the project and settings stores.

    Each store owns some sections; writing one section preserves the rest.
    """

    def __init__(self, path: Path, lock_timeout: float = LOCK_TIMEOUT) -> None:
        self.path = path
        self._lock = FileLock(str(path.with_suffix(path.suffix + ".lock")), timeout=lock_timeout)

    def read(self) -> tuple[dict[str, Any], Optional[str]]:
        if not self.path.exists():
            return {}, None
        try:
            with self._lock:
                return _load_data_with_error(self.path, {})
        except Timeout as exc:
            return {}, f"{self.path.name}: lock timeout: {exc}"

    def write_sections(self, sections: dict[str, Any]) -> Optional[str]:
        """Replace *sections* in the file, keeping all other sections."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self._lock:
                data, err = _load_data_with_error(self.path, {})
                if err:
                    target = self.path.with_suffix(self.path.suffix + ".bak")
                    shutil.copy2(self.path, target)
                    logger.warning("Overwriting unreadable data file (copy kept at {}): {}", target, err)
                    data = {}
                payload = {"version": DATA_VERSION}
                payload.update({k: v for k, v in data.items() if k != "version"})
                payload.update(sections)
                _atomic_write_yaml(self.path, payload)
            return None
        except Timeout as exc:
            return f"{self.path.name}: lock timeout: {exc}"
        except (OSError, yaml.YAMLError) as exc:
            return f"{self.path.name}: {exc.__class__.__name__}: {exc}"

    def backup(self) -> Optional[Path]:
        """Copy the current file aside (``<name>.bak``) if it exists."""
        if not self.path.exists():
            return None
        target = self.path.with_suffix(self.path.suffix + ".bak")
        try:
            with self._lock:
                shutil.copy2(self.path, target)
        except (OSError, Timeout) as exc:
            logger.error("Failed to back up {}: {}", self.path, exc)
            return None
        return target


# ---------------------------------------------------------------------------
# Row conversion
# ---------------------------------------------------------------------------

def projects_to_rows(projects: Iterable[Project]) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """Flatten projects into (project rows, task rows)."""
    project_rows: list[dict[str, Any]] = []
    task_rows: list[dict[str, Any]] = []
    for project in projects:
        project_rows.append(project.to_dict(include_tasks=False))
        for task in project.tasks:
            row = task.to_dict()
            row["project_id"] = project.id
            task_rows.append(row)
    return project_rows, task_rows


def rows_to_projects(project_rows: Any, task_rows: Any) -> list[Project]:
    """Rebuild projects from flat rows, attaching tasks by ``project_id``."""
    projects: list[Project] = []
    by_id: dict[str, Project] = {}
    for row in project_rows if isinstance(project_rows, list) else []:
        if not isinstance(row, dict):
            continue
        row = {k: v for k, v in row.items() if k != "tasks"}
        project = Project.from_dict(row)
        projects.append(project)
        by_id[project.id] = project

    dropped = 0
    for row in task_rows if isinstance(task_rows, list) else []:
        if not isinstance(row, dict):
            continue
        task = Task.from_dict(row)
        owner = by_id.get(task.project_id)
        if owner is None:
            dropped += 1
            continue
        owner.tasks.append(task)
    if dropped:
        logger.warning("Dropped {} task(s) that reference unknown projects", dropped)
    return projects


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------

class ProjectStore(ABC):
    @abstractmethod
    def load(self) -> tuple[list[Project], Optional[str]]:
        """Return ``(projects, error)``; on error the list is empty."""
        raise NotImplementedError

    @abstractmethod
    def save(self, projects: Iterable[Project]) -> Optional[str]:
        """Persist *projects*; return an error message or None."""
        raise NotImplementedError

    def backup(self) -> Optional[Path]:
        return None


class MemoryProjectStore(ProjectStore):
    """Keeps the last saved collection in memory."""

    def __init__(self, projects: Iterable[Project] = ()) -> None:
        self._projects: list[Project] = copy.deepcopy(list(projects))
        self.save_count = 0

    def load(self) -> tuple[list[Project], Optional[str]]:
        return copy.deepcopy(self._projects), None

    def save(self, projects: Iterable[Project]) -> Optional[str]:
        self._projects = copy.deepcopy(list(projects))
        self.save_count += 1
        return None


class YamlProjectStore(ProjectStore):
    """Project store backed by the shared YAML data file.

    Parameters
    ----------
    path:
        Data file location; created on first save.
    """

    def __init__(self, path: Path, lock_timeout: float = LOCK_TIMEOUT) -> None:
        self.file = DataFile(path, lock_timeout=lock_timeout)

    @property
    def path(self) -> Path:
        return self.file.path

    def load(self) -> tuple[list[Project], Optional[str]]:
        data, err = self.file.read()
        if err:
            return [], err
        projects = rows_to_projects(data.get("projects"), data.get("tasks"))
        logger.debug("Loaded {} project(s) from {}", len(projects), self.path)
        return projects, None

    def save(self, projects: Iterable[Project]) -> Optional[str]:
        project_rows, task_rows = projects_to_rows(projects)
        err = self.file.write_sections({"projects": project_rows, "tasks": task_rows})
        if err is None:
            logger.debug("Saved {} project(s), {} task(s) to {}", len(project_rows), len(task_rows), self.path)
        return err

    def backup(self) -> Optional[Path]:
        return self.file.backup()

    def export(self, target: Path) -> Optional[str]:
        """Write the saved projects and tasks to *target*; settings are left out."""
        data, err = self.file.read()
        if err:
            return err
        payload = {
            "version": DATA_VERSION,
            "projects": data.get("projects") or [],
            "tasks": data.get("tasks") or [],
        }
        try:
            _atomic_write_yaml(target, payload)
        except (OSError, yaml.YAMLError) as exc:
            return f"{target.name}: {exc.__class__.__name__}: {exc}"
        logger.info("Exported {} project(s) to {}", len(payload["projects"]), target)
        return None
