"""Configure logging and summarize projects for logs and CLI output."""

from __future__ import annotations

import sys
from datetime import date
from typing import Any, Optional

from loguru import logger

from .model import Project
from .progress import completion_percentage, count_tasks_by_status, project_schedule_status


def configure_logging(level: str = "INFO") -> None:
    """Configure loguru logger with the specified level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{module}</cyan>:<cyan>{line}</cyan> - "
            "{message}"
        ),
    )


def summarize_project(project: Project, today: Optional[date] = None) -> dict[str, Any]:
    """Render a compact, JSON-friendly summary of a project.

    Args:
        project: Project to summarize.
        today: Reference date for the schedule status (default: today).

    Returns:
        A dictionary suitable for logging or serialization.
    """
    counts = count_tasks_by_status(project.tasks)
    return {
        "id": project.id,
        "name": project.name,
        "owner": project.owner,
        "priority": project.priority.value,
        "status": project.status.value,
        "schedule": project_schedule_status(project, today).value,
        "progress": completion_percentage(project.tasks),
        "tasks": {status.value: n for status, n in counts.items()},
        "due_date": project.due_date.isoformat(),
        "completed_date": project.completed_date.isoformat() if project.completed_date else None,
    }
