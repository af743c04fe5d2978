"""Tests for the engine/store session (session.py)."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Iterable, Optional

from project_tracker.model import Project, Status, Task
from project_tracker.session import TrackerSession
from project_tracker.store import MemoryProjectStore, ProjectStore, YamlProjectStore

TODAY = date(2026, 3, 10)

PROJECT = {
    "name": "Website",
    "description": "Relaunch",
    "owner": "Dana",
    "start_date": "2026-03-01",
    "due_date": "2026-03-13",
}


class FlakyStore(ProjectStore):
    def __init__(self, load_error: Optional[str] = None) -> None:
        self.load_error = load_error
        self.fail_saves = True
        self.saved: list[list[Project]] = []
        self.backups = 0

    def load(self) -> tuple[list[Project], Optional[str]]:
        return [], self.load_error

    def save(self, projects: Iterable[Project]) -> Optional[str]:
        if self.fail_saves:
            return "disk full"
        self.saved.append(list(projects))
        return None

    def backup(self) -> Optional[Path]:
        self.backups += 1
        return Path("backup.yaml")


def test_open_seeds_from_store() -> None:
    p = Project(id="p1", name="Seeded")
    store = MemoryProjectStore([p])
    session = TrackerSession(store, clock=lambda: TODAY).open()
    assert [x.id for x in session.projects] == ["p1"]
    assert session.load_error is None
    assert store.save_count == 0


def test_every_mutation_is_saved() -> None:
    store = MemoryProjectStore()
    session = TrackerSession(store, clock=lambda: TODAY).open()
    project = session.create_project(PROJECT)[-1]
    session.create_task(project.id, {"name": "Copy", "due_date": "2026-03-12"})
    task = session.get_project(project.id).tasks[0]
    session.set_task_status(project.id, task.id, "completed")
    assert store.save_count == 3

    saved, _ = store.load()
    assert saved[0].status == Status.COMPLETED
    assert saved[0].completed_date == TODAY


def test_save_failure_keeps_snapshot() -> None:
    store = FlakyStore()
    session = TrackerSession(store, clock=lambda: TODAY).open()
    session.create_project(PROJECT)
    assert session.last_save_error == "disk full"
    assert len(session.projects) == 1
    assert not session.is_saving

    store.fail_saves = False
    session.create_project(PROJECT)
    assert session.last_save_error is None
    assert len(store.saved[-1]) == 2


def test_load_error_starts_empty_and_backs_up_once() -> None:
    store = FlakyStore(load_error="tracker-data.yaml: YAMLError: bad")
    store.fail_saves = False
    session = TrackerSession(store, clock=lambda: TODAY).open()
    assert session.projects == ()
    assert session.load_error is not None

    session.create_project(PROJECT)
    session.create_project(PROJECT)
    assert store.backups == 1
    assert len(store.saved) == 2


def test_inconsistent_data_is_a_load_error() -> None:
    p = Project(id="p1")
    p.tasks.append(Task(id="t1", project_id="elsewhere"))
    store = MemoryProjectStore([p])
    session = TrackerSession(store, clock=lambda: TODAY).open()
    assert session.projects == ()
    assert session.load_error is not None and "Inconsistent" in session.load_error


def test_close_stops_saving() -> None:
    store = MemoryProjectStore()
    session = TrackerSession(store, clock=lambda: TODAY).open()
    session.close()
    session.create_project(PROJECT)
    assert store.save_count == 0


def test_stats_and_yaml_persistence(tmp_path: Path) -> None:
    path = tmp_path / "data.yaml"
    session = TrackerSession(YamlProjectStore(path), clock=lambda: TODAY).open()
    session.create_project(PROJECT)
    stats = session.stats()
    assert stats.total == 1
    assert stats.at_risk == 1

    reopened = TrackerSession(YamlProjectStore(path), clock=lambda: TODAY).open()
    assert [p.name for p in reopened.projects] == ["Website"]
