"""User profile settings (display name and initials).

Settings are independent of the project model; they live in the
``settings`` section of the shared data file as ``key``/``value`` rows.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from .store import LOCK_TIMEOUT, DataFile


@dataclass(frozen=True)
class UserSettings:
    user_name: str = ""
    user_initials: str = ""

    def to_rows(self) -> list[dict[str, str]]:
        return [
            {"key": "userName", "value": self.user_name},
            {"key": "userInitials", "value": self.user_initials},
        ]

    @classmethod
    def from_rows(cls, rows: Any) -> "UserSettings":
        values: dict[str, str] = {}
        for row in rows if isinstance(rows, list) else []:
            if isinstance(row, dict) and "key" in row:
                value = row.get("value")
                values[str(row["key"])] = "" if value is None else str(value)
        return cls(
            user_name=values.get("userName", ""),
            user_initials=values.get("userInitials", ""),
        )


def generate_initials(name: str) -> str:
    """``"Ada Lovelace"`` -> ``"AL"``; ``"Ada"`` -> ``"AD"``; blank -> ``""``."""
    parts = name.split()
    if not parts:
        return ""
    if len(parts) == 1:
        return parts[0][:2].upper()
    return (parts[0][0] + parts[-1][0]).upper()


def apply_settings_update(
    current: UserSettings,
    user_name: Optional[str] = None,
    user_initials: Optional[str] = None,
) -> UserSettings:
    """Merge an update; a new name without initials regenerates them."""
    updated = current
    if user_name is not None:
        updated = replace(updated, user_name=user_name)
        if user_initials is None:
            updated = replace(updated, user_initials=generate_initials(user_name))
    if user_initials is not None:
        updated = replace(updated, user_initials=user_initials)
    return updated


class SettingsStore:
    """Reads and writes the ``settings`` section of the data file."""

    def __init__(self, path: Path, lock_timeout: float = LOCK_TIMEOUT) -> None:
        self.file = DataFile(path, lock_timeout=lock_timeout)

    def load(self) -> tuple[UserSettings, Optional[str]]:
        data, err = self.file.read()
        if err:
            return UserSettings(), err
        return UserSettings.from_rows(data.get("settings")), None

    def save(self, settings: UserSettings) -> Optional[str]:
        err = self.file.write_sections({"settings": settings.to_rows()})
        if err:
            logger.warning("Failed to save settings: {}", err)
        return err
