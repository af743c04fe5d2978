"""Errors raised by the tracker engine and its stores."""

from __future__ import annotations

from typing import Optional


class TrackerError(Exception):
    """Base class for tracker errors."""

    pass


class ValidationError(TrackerError, ValueError):
    """A required field is missing or a value is invalid.

    ``errors`` maps each offending field to a message suitable for showing
    inline next to the form input.
    """

    def __init__(self, errors: dict[str, str], message: Optional[str] = None) -> None:
        self.errors = dict(errors)
        if message is None:
            message = "; ".join(f"{k}: {v}" for k, v in self.errors.items()) or "Invalid input"
        super().__init__(message)


class NotFoundError(TrackerError, LookupError):
    """An operation referenced an unknown project or task id."""

    def __init__(self, kind: str, item_id: str) -> None:
        self.kind = kind
        self.id = item_id
        super().__init__(f"{kind.capitalize()} {item_id} not found")


class StoreError(TrackerError):
    """Persistence failure that leaves nothing usable in memory."""

    pass
