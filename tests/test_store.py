"""Tests for the YAML project store (store.py)."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest
import yaml

from project_tracker.model import Priority, Project, Status, Task
from project_tracker.settings import SettingsStore, UserSettings
from project_tracker.store import MemoryProjectStore, YamlProjectStore


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "home" / "tracker-data.yaml"


def _sample() -> list[Project]:
    p1 = Project(
        id="p1",
        name="Website",
        description="Relaunch",
        owner="Dana",
        priority=Priority.HIGH,
        category="Design",
        start_date=date(2026, 3, 1),
        due_date=date(2026, 4, 30),
        status=Status.COMPLETED,
        completed_date=date(2026, 3, 9),
    )
    p1.tasks.append(
        Task(id="t1", project_id="p1", name="Copy", status=Status.COMPLETED,
             due_date=date(2026, 3, 5), completed_date=date(2026, 3, 9))
    )
    p2 = Project(id="p2", name="API", description="Endpoints", owner="Sam")
    p2.tasks.append(Task(id="t2", project_id="p2", name="Auth", due_date=date(2026, 5, 1)))
    p2.tasks.append(Task(id="t3", project_id="p2", name="Docs", due_date=date(2026, 5, 2)))
    return [p1, p2]


class TestYamlProjectStore:
    def test_missing_file_loads_empty(self, data_file: Path) -> None:
        projects, err = YamlProjectStore(data_file).load()
        assert projects == []
        assert err is None

    def test_save_then_load(self, data_file: Path) -> None:
        store = YamlProjectStore(data_file)
        assert store.save(_sample()) is None

        loaded, err = store.load()
        assert err is None
        assert loaded == _sample()

    def test_file_layout_has_flat_sections(self, data_file: Path) -> None:
        YamlProjectStore(data_file).save(_sample())
        raw = yaml.safe_load(data_file.read_text(encoding="utf-8"))
        assert raw["version"] == 1
        assert [row["id"] for row in raw["projects"]] == ["p1", "p2"]
        assert "tasks" not in raw["projects"][0]
        assert [(row["id"], row["project_id"]) for row in raw["tasks"]] == [
            ("t1", "p1"),
            ("t2", "p2"),
            ("t3", "p2"),
        ]
        assert raw["projects"][1]["completed_date"] is None

    def test_orphan_tasks_dropped(self, data_file: Path) -> None:
        data_file.parent.mkdir(parents=True)
        data_file.write_text(
            yaml.safe_dump(
                {
                    "projects": [{"id": "p1", "name": "P", "status": "bogus", "priority": "urgent"}],
                    "tasks": [
                        {"id": "t1", "project_id": "p1", "name": "kept", "completed_date": ""},
                        {"id": "t2", "project_id": "gone", "name": "orphan"},
                    ],
                }
            ),
            encoding="utf-8",
        )
        projects, err = YamlProjectStore(data_file).load()
        assert err is None
        assert len(projects) == 1
        assert projects[0].status == Status.TODO
        assert projects[0].priority == Priority.MEDIUM
        assert [t.id for t in projects[0].tasks] == ["t1"]
        assert projects[0].tasks[0].completed_date is None

    def test_corrupt_file_reports_error(self, data_file: Path) -> None:
        data_file.parent.mkdir(parents=True)
        data_file.write_text("projects: [unclosed\n", encoding="utf-8")
        projects, err = YamlProjectStore(data_file).load()
        assert projects == []
        assert err is not None and "YAMLError" in err

    def test_backup(self, data_file: Path) -> None:
        store = YamlProjectStore(data_file)
        assert store.backup() is None
        store.save(_sample())
        backup = store.backup()
        assert backup is not None and backup.exists()
        assert backup.read_text(encoding="utf-8") == data_file.read_text(encoding="utf-8")

    def test_save_error_is_reported(self, tmp_path: Path) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x", encoding="utf-8")
        err = YamlProjectStore(blocker / "data.yaml", lock_timeout=1).save(_sample())
        assert err is not None

    def test_sections_are_preserved(self, data_file: Path) -> None:
        settings = SettingsStore(data_file)
        settings.save(UserSettings(user_name="Ada Lovelace", user_initials="AL"))
        YamlProjectStore(data_file).save(_sample())

        loaded, err = settings.load()
        assert err is None
        assert loaded.user_initials == "AL"

        settings.save(UserSettings(user_name="Grace", user_initials="GR"))
        projects, _ = YamlProjectStore(data_file).load()
        assert [p.id for p in projects] == ["p1", "p2"]

    def test_export_writes_projects_and_tasks_only(self, data_file: Path, tmp_path: Path) -> None:
        SettingsStore(data_file).save(UserSettings(user_name="Ada Lovelace", user_initials="AL"))
        store = YamlProjectStore(data_file)
        store.save(_sample())
        target = tmp_path / "exports" / "tracker-export.yaml"

        assert store.export(target) is None

        exported = yaml.safe_load(target.read_text(encoding="utf-8"))
        assert "settings" not in exported
        assert [row["id"] for row in exported["projects"]] == ["p1", "p2"]
        assert [row["id"] for row in exported["tasks"]] == ["t1", "t2", "t3"]
        assert not target.with_suffix(".yaml.tmp").exists()
        projects, err = YamlProjectStore(target).load()
        assert err is None
        assert [len(p.tasks) for p in projects] == [1, 2]

    def test_export_of_missing_file_is_empty(self, data_file: Path, tmp_path: Path) -> None:
        target = tmp_path / "export.yaml"
        assert YamlProjectStore(data_file).export(target) is None
        exported = yaml.safe_load(target.read_text(encoding="utf-8"))
        assert exported["projects"] == [] and exported["tasks"] == []

    def test_export_errors_are_reported(self, data_file: Path, tmp_path: Path) -> None:
        store = YamlProjectStore(data_file)
        store.save(_sample())
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x", encoding="utf-8")
        assert store.export(blocker / "export.yaml") is not None

        data_file.write_text("projects: [unclosed\n", encoding="utf-8")
        err = store.export(tmp_path / "export.yaml")
        assert err is not None and "YAMLError" in err
        assert not (tmp_path / "export.yaml").exists()


class TestMemoryProjectStore:
    def test_save_and_load_are_copies(self) -> None:
        store = MemoryProjectStore()
        projects = _sample()
        store.save(projects)
        projects[0].name = "changed"
        loaded, err = store.load()
        assert err is None
        assert loaded[0].name == "Website"
        assert store.save_count == 1
