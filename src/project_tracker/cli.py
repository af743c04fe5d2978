from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path
from typing import Any, Optional

from loguru import logger
from rich.console import Console
from rich.table import Table

from .config import get_categories, get_data_file, get_log_level, load_tracker_config, resolve_home
from .constants import VALID_LOG_LEVELS
from .dates import days_remaining_text, format_date_short, parse_date, schedule_status_label
from .errors import NotFoundError, StoreError, ValidationError
from .forms import validate_project_dates
from .logging_utils import configure_logging, summarize_project
from .model import Priority, Status
from .progress import (
    ProjectFilter,
    completion_percentage,
    filter_projects,
    priority_label,
    project_schedule_status,
    status_label,
)
from .session import TrackerSession
from .settings import SettingsStore, apply_settings_update
from .store import YamlProjectStore

_STATUS_CHOICES = [s.value for s in Status]
_PRIORITY_CHOICES = [p.value for p in Priority]


def _date_arg(value: str) -> date:
    try:
        return parse_date(value)
    except ValidationError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _emit(payload: Any) -> None:
    sys.stdout.write(json.dumps(payload, indent=2, default=str) + "\n")


def _ctx(args: argparse.Namespace) -> tuple[TrackerSession, SettingsStore, dict[str, Any]]:
    home = resolve_home(args.home)
    config, err = load_tracker_config(home)
    if err:
        logger.warning("Ignoring unreadable config: {}", err)
    data_file = get_data_file(config, home)
    session = TrackerSession(YamlProjectStore(data_file)).open()
    return session, SettingsStore(data_file), config


def _settings_ctx(args: argparse.Namespace) -> tuple[SettingsStore, dict[str, Any]]:
    home = resolve_home(args.home)
    config, _err = load_tracker_config(home)
    return SettingsStore(get_data_file(config, home)), config


def _finish(session: TrackerSession) -> int:
    if session.last_save_error:
        sys.stderr.write(f"Warning: changes kept in memory but not saved: {session.last_save_error}\n")
    session.close()
    return 0


def _pick(args: argparse.Namespace, *names: str) -> dict[str, Any]:
    return {name: getattr(args, name) for name in names if getattr(args, name, None) is not None}


# ---------------------------------------------------------------------------
# Project commands
# ---------------------------------------------------------------------------

def _project_add(args: argparse.Namespace) -> int:
    session, _, _ = _ctx(args)
    errors = validate_project_dates(args.start_date, args.due_date)
    if errors:
        raise ValidationError(errors)
    snapshot = session.create_project(
        {
            "name": args.name,
            "description": args.description,
            "owner": args.owner,
            "priority": args.priority,
            "category": args.category,
            "start_date": args.start_date,
            "due_date": args.due_date,
        }
    )
    _emit({"project": summarize_project(snapshot[-1])})
    return _finish(session)


def _project_list(args: argparse.Namespace) -> int:
    session, _, _ = _ctx(args)
    flt = ProjectFilter(
        search=args.search or "",
        status=args.status or "all",
        priority=args.priority or "all",
        category=args.category or "",
    )
    projects = filter_projects(session.projects, flt)
    _emit({"projects": [summarize_project(p) for p in projects]})
    return _finish(session)


def _project_show(args: argparse.Namespace) -> int:
    session, _, _ = _ctx(args)
    project = session.engine.require_project(args.project_id)
    payload = project.to_dict()
    payload["progress"] = completion_percentage(project.tasks)
    _emit({"project": payload})
    return _finish(session)


def _project_edit(args: argparse.Namespace) -> int:
    session, _, _ = _ctx(args)
    current = session.engine.require_project(args.project_id)
    changes = _pick(args, "name", "description", "owner", "priority", "category", "start_date", "due_date")
    errors = validate_project_dates(
        changes.get("start_date", current.start_date),
        changes.get("due_date", current.due_date),
    )
    if errors:
        raise ValidationError(errors)
    session.update_project(args.project_id, changes)
    _emit({"project": summarize_project(session.engine.require_project(args.project_id))})
    return _finish(session)


def _project_delete(args: argparse.Namespace) -> int:
    session, _, _ = _ctx(args)
    session.delete_project(args.project_id)
    _emit({"deleted": args.project_id})
    return _finish(session)


def _project_status(args: argparse.Namespace) -> int:
    session, _, _ = _ctx(args)
    session.set_project_status(args.project_id, args.status)
    _emit({"project": summarize_project(session.engine.require_project(args.project_id))})
    return _finish(session)


# ---------------------------------------------------------------------------
# Task commands
# ---------------------------------------------------------------------------

def _task_add(args: argparse.Namespace) -> int:
    session, _, _ = _ctx(args)
    session.create_task(
        args.project_id,
        {"name": args.name, "description": args.description, "due_date": args.due_date},
    )
    project = session.engine.require_project(args.project_id)
    _emit({"task": project.tasks[-1].to_dict(), "project": summarize_project(project)})
    return _finish(session)


def _task_edit(args: argparse.Namespace) -> int:
    session, _, _ = _ctx(args)
    session.update_task(args.project_id, args.task_id, _pick(args, "name", "description", "due_date"))
    task = session.engine.get_task(args.project_id, args.task_id)
    _emit({"task": task.to_dict() if task else None})
    return _finish(session)


def _task_status(args: argparse.Namespace) -> int:
    session, _, _ = _ctx(args)
    session.set_task_status(args.project_id, args.task_id, args.status)
    project = session.engine.require_project(args.project_id)
    task = project.get_task(args.task_id)
    _emit({"task": task.to_dict() if task else None, "project": summarize_project(project)})
    return _finish(session)


def _task_delete(args: argparse.Namespace) -> int:
    session, _, _ = _ctx(args)
    session.delete_task(args.project_id, args.task_id)
    _emit({"deleted": args.task_id, "project": summarize_project(session.engine.require_project(args.project_id))})
    return _finish(session)


# ---------------------------------------------------------------------------
# Dashboard / settings
# ---------------------------------------------------------------------------

def _dashboard(args: argparse.Namespace) -> int:
    session, settings_store, _ = _ctx(args)
    settings, _err = settings_store.load()
    today = date.today()
    stats = session.stats(today)

    console = Console()
    if settings.user_name:
        console.print(f"[bold]{settings.user_name}[/bold] ({settings.user_initials})")
    console.print(
        f"Total [bold]{stats.total}[/bold]  |  To Do {stats.todo}  |  In Progress {stats.in_progress}"
        f"  |  Completed {stats.completed}  |  [yellow]At Risk {stats.at_risk}[/yellow]"
        f"  |  [red]Delayed {stats.delayed}[/red]"
    )

    table = Table(title="Projects")
    table.add_column("ID", style="dim")
    table.add_column("Project")
    table.add_column("Owner")
    table.add_column("Priority")
    table.add_column("Status")
    table.add_column("Progress", justify="right")
    table.add_column("Schedule")
    table.add_column("Due")
    for project in session.projects:
        if project.completed_date is not None:
            due = f"Completed {format_date_short(project.completed_date)}"
        else:
            due = f"{format_date_short(project.due_date)} ({days_remaining_text(project.due_date, today)})"
        table.add_row(
            project.id,
            project.name,
            project.owner,
            priority_label(project.priority),
            status_label(project.status),
            f"{completion_percentage(project.tasks)}%",
            schedule_status_label(project_schedule_status(project, today)),
            due,
        )
    console.print(table)
    return _finish(session)


def _settings_show(args: argparse.Namespace) -> int:
    settings_store, config = _settings_ctx(args)
    settings, err = settings_store.load()
    if err:
        sys.stderr.write(f"Warning: {err}\n")
    _emit(
        {
            "user_name": settings.user_name,
            "user_initials": settings.user_initials,
            "categories": get_categories(config),
            "data_file": str(settings_store.file.path),
        }
    )
    return 0


def _settings_set(args: argparse.Namespace) -> int:
    settings_store, _ = _settings_ctx(args)
    current, _err = settings_store.load()
    updated = apply_settings_update(current, user_name=args.name, user_initials=args.initials)
    err = settings_store.save(updated)
    if err:
        raise StoreError(f"settings not saved: {err}")
    _emit({"user_name": updated.user_name, "user_initials": updated.user_initials})
    return 0


def _export(args: argparse.Namespace) -> int:
    home = resolve_home(args.home)
    config, _err = load_tracker_config(home)
    store = YamlProjectStore(get_data_file(config, home))
    target = args.path.expanduser().resolve()
    if target == store.path.resolve():
        raise ValidationError({"path": "Export target must differ from the data file"})
    err = store.export(target)
    if err:
        raise StoreError(f"export failed: {err}")
    _emit({"exported": str(target), "data_file": str(store.path)})
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Project tracker: projects, tasks and progress rollups")
    parser.add_argument("--home", default=None, help="Tracker home directory (default: $PROJECT_TRACKER_HOME or ~/.project_tracker)")
    parser.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=sorted(VALID_LOG_LEVELS),
        help="Log level (default: from config, else INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    project = subparsers.add_parser("project", help="Manage projects")
    project_sub = project.add_subparsers(dest="project_cmd", required=True)
    padd = project_sub.add_parser("add", help="Create a project")
    padd.add_argument("name")
    padd.add_argument("--description", required=True)
    padd.add_argument("--owner", required=True)
    padd.add_argument("--priority", default="medium", choices=_PRIORITY_CHOICES)
    padd.add_argument("--category", default="")
    padd.add_argument("--start", dest="start_date", type=_date_arg, default=date.today())
    padd.add_argument("--due", dest="due_date", type=_date_arg, required=True)
    padd.set_defaults(func=_project_add)
    plist = project_sub.add_parser("list", help="List projects")
    plist.add_argument("--search", default=None)
    plist.add_argument("--status", default=None, choices=_STATUS_CHOICES)
    plist.add_argument("--priority", default=None, choices=_PRIORITY_CHOICES)
    plist.add_argument("--category", default=None)
    plist.set_defaults(func=_project_list)
    pshow = project_sub.add_parser("show", help="Show a project with its tasks")
    pshow.add_argument("project_id")
    pshow.set_defaults(func=_project_show)
    pedit = project_sub.add_parser("edit", help="Edit project fields")
    pedit.add_argument("project_id")
    pedit.add_argument("--name", default=None)
    pedit.add_argument("--description", default=None)
    pedit.add_argument("--owner", default=None)
    pedit.add_argument("--priority", default=None, choices=_PRIORITY_CHOICES)
    pedit.add_argument("--category", default=None)
    pedit.add_argument("--start", dest="start_date", type=_date_arg, default=None)
    pedit.add_argument("--due", dest="due_date", type=_date_arg, default=None)
    pedit.set_defaults(func=_project_edit)
    pdel = project_sub.add_parser("delete", help="Delete a project and all its tasks")
    pdel.add_argument("project_id")
    pdel.set_defaults(func=_project_delete)
    pstatus = project_sub.add_parser("status", help="Override a project's status")
    pstatus.add_argument("project_id")
    pstatus.add_argument("status", choices=_STATUS_CHOICES)
    pstatus.set_defaults(func=_project_status)

    task = subparsers.add_parser("task", help="Manage tasks")
    task_sub = task.add_subparsers(dest="task_cmd", required=True)
    tadd = task_sub.add_parser("add", help="Add a task to a project")
    tadd.add_argument("project_id")
    tadd.add_argument("name")
    tadd.add_argument("--description", default="")
    tadd.add_argument("--due", dest="due_date", type=_date_arg, required=True)
    tadd.set_defaults(func=_task_add)
    tedit = task_sub.add_parser("edit", help="Edit task fields")
    tedit.add_argument("project_id")
    tedit.add_argument("task_id")
    tedit.add_argument("--name", default=None)
    tedit.add_argument("--description", default=None)
    tedit.add_argument("--due", dest="due_date", type=_date_arg, default=None)
    tedit.set_defaults(func=_task_edit)
    tstatus = task_sub.add_parser("status", help="Move a task to another status")
    tstatus.add_argument("project_id")
    tstatus.add_argument("task_id")
    tstatus.add_argument("status", choices=_STATUS_CHOICES)
    tstatus.set_defaults(func=_task_status)
    tdel = task_sub.add_parser("delete", help="Delete a task")
    tdel.add_argument("project_id")
    tdel.add_argument("task_id")
    tdel.set_defaults(func=_task_delete)

    dashboard = subparsers.add_parser("dashboard", help="Show dashboard counts and the project table")
    dashboard.set_defaults(func=_dashboard)

    settings = subparsers.add_parser("settings", help="Show or change the user profile")
    settings_sub = settings.add_subparsers(dest="settings_cmd", required=True)
    sshow = settings_sub.add_parser("show", help="Show settings")
    sshow.set_defaults(func=_settings_show)
    sset = settings_sub.add_parser("set", help="Change settings")
    sset.add_argument("--name", default=None)
    sset.add_argument("--initials", default=None)
    sset.set_defaults(func=_settings_set)

    export = subparsers.add_parser("export", help="Export projects and tasks to a YAML file")
    export.add_argument("path", type=Path, help="Destination file")
    export.set_defaults(func=_export)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.log_level:
        configure_logging(args.log_level)
    else:
        config, _ = load_tracker_config(resolve_home(args.home))
        configure_logging(get_log_level(config))

    handler = getattr(args, "func", None)
    if handler is None:
        parser.print_help()
        return 1
    try:
        return int(handler(args) or 0)
    except ValidationError as exc:
        for field_name, message in exc.errors.items():
            sys.stderr.write(f"{field_name}: {message}\n")
        return 2
    except NotFoundError as exc:
        sys.stderr.write(f"{exc}\n")
        return 3
    except StoreError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 4


if __name__ == "__main__":
    raise SystemExit(main())
