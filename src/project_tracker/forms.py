"""Form payloads accepted by the engine.

These pydantic models are the only way raw user input reaches the engine.
They check types (dates must be calendar dates) and reject unknown fields,
so derived fields such as ``status`` or ``tasks`` cannot be written through
an edit.  Required-text checks live in :func:`missing_required` and are run
by the engine itself.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, TypeVar, Union

import pydantic
from pydantic import BaseModel, ConfigDict

from .errors import ValidationError
from .model import Priority

DEFAULT_CATEGORIES = [
    "Development",
    "Design",
    "Marketing",
    "Research",
    "Operations",
    "Infrastructure",
    "Other",
]

PROJECT_REQUIRED = {
    "name": "Project name is required",
    "description": "Description is required",
    "owner": "Owner is required",
}
TASK_REQUIRED = {
    "name": "Task name is required",
}


class _Form(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ProjectForm(_Form):
    name: str
    description: str
    priority: Priority = Priority.MEDIUM
    category: str = ""
    owner: str
    start_date: date
    due_date: date


class ProjectUpdate(_Form):
    name: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[Priority] = None
    category: Optional[str] = None
    owner: Optional[str] = None
    start_date: Optional[date] = None
    due_date: Optional[date] = None


class TaskForm(_Form):
    name: str
    description: str = ""
    due_date: date


class TaskUpdate(_Form):
    name: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[date] = None


FormT = TypeVar("FormT", bound=_Form)


def _field_errors(exc: pydantic.ValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "__root__"
        errors.setdefault(loc, str(err.get("msg", "Invalid value")))
    return errors


def coerce_form(model: type[FormT], data: Union[FormT, Mapping[str, Any]]) -> FormT:
    """Return *data* as a *model* instance.

    Raises:
        ValidationError: If a field has the wrong type or is not editable.
    """
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    if not isinstance(data, Mapping):
        raise ValidationError({"__root__": f"Expected a mapping, got {type(data).__name__}"})
    try:
        return model.model_validate(dict(data))
    except pydantic.ValidationError as exc:
        raise ValidationError(_field_errors(exc)) from exc


def missing_required(values: Mapping[str, Any], required: Mapping[str, str], *, partial: bool = False) -> dict[str, str]:
    """Per-field messages for required text fields that are blank.

    With ``partial=True`` only fields present in *values* are checked, which
    is how edits are validated.
    """
    errors: dict[str, str] = {}
    for name, message in required.items():
        if partial and name not in values:
            continue
        value = values.get(name)
        if value is None or not str(value).strip():
            errors[name] = message
    return errors


def validate_project_dates(start_date: Optional[date], due_date: Optional[date]) -> dict[str, str]:
    """Form-layer date order check; the engine does not enforce this."""
    if start_date and due_date and start_date > due_date:
        return {"due_date": "Due date must be after start date"}
    return {}
