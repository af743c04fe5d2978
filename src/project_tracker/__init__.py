"""Project and task tracker.

This package provides the project/task model, the derivation helpers that
roll task state up into project status, progress and schedule risk, and the
engine that applies every mutation to a single in-memory snapshot.  The
file-backed store, settings store and CLI sit on top of the engine.
"""

from .engine import ProjectEngine
from .errors import NotFoundError, StoreError, TrackerError, ValidationError
from .model import Priority, Project, ScheduleStatus, Status, Task

__all__ = [
    "NotFoundError",
    "Priority",
    "Project",
    "ProjectEngine",
    "ScheduleStatus",
    "Status",
    "StoreError",
    "Task",
    "TrackerError",
    "ValidationError",
]

__version__ = "0.1.0"
