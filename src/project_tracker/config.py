"""Load optional tracker configuration from `<home>/config.yaml`."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from .constants import (
    CONFIG_FILE,
    DEFAULT_DATA_FILE,
    DEFAULT_HOME_DIR_NAME,
    DEFAULT_LOG_LEVEL,
    HOME_ENV_VAR,
    VALID_LOG_LEVELS,
)
from .forms import DEFAULT_CATEGORIES
from .io_utils import _load_data_with_error


def resolve_home(home: Optional[str] = None) -> Path:
    """Resolve the tracker home directory.

    Args:
        home: Explicit directory (e.g. from ``--home``).

    Returns:
        *home* if given, else ``$PROJECT_TRACKER_HOME``, else ``~/.project_tracker``.
    """
    raw = home or os.environ.get(HOME_ENV_VAR)
    if raw:
        return Path(raw).expanduser().resolve()
    return (Path.home() / DEFAULT_HOME_DIR_NAME).resolve()


def load_tracker_config(home: Path) -> tuple[dict[str, Any], str | None]:
    """Load the optional config file.

    Args:
        home: Tracker home directory.

    Returns:
        A tuple of `(config, error_message)`. If the file is missing, returns `({}, None)`.
    """
    path = home / CONFIG_FILE
    if not path.exists():
        return {}, None
    data, err = _load_data_with_error(path, {})
    if err:
        return {}, err
    return data, None


def get_data_file(config: dict[str, Any], home: Path) -> Path:
    """Data file path; relative paths are resolved against *home*."""
    raw = config.get("data_file")
    if isinstance(raw, str) and raw.strip():
        path = Path(raw).expanduser()
        return path if path.is_absolute() else home / path
    return home / DEFAULT_DATA_FILE


def get_log_level(config: dict[str, Any]) -> str:
    raw = config.get("log_level")
    if isinstance(raw, str) and raw.upper() in VALID_LOG_LEVELS:
        return raw.upper()
    return DEFAULT_LOG_LEVEL


def get_categories(config: dict[str, Any]) -> list[str]:
    """Suggested project categories (free text is still accepted)."""
    raw = config.get("categories")
    if isinstance(raw, list):
        cats = [str(c).strip() for c in raw if str(c).strip()]
        if cats:
            return cats
    return list(DEFAULT_CATEGORIES)
