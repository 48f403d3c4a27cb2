"""The accident log record and its form encodings for the Procore API."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

_FORM_PREFIX = "accident_log"

# Fields that are always sent when a log is created.
_CREATE_REQUIRED = (
    "comments",
    "date",
    "datetime",
    "involved_company",
    "involved_name",
    "time_hour",
    "time_minute",
)
# Fields sent on creation only when they carry a value.
_CREATE_OPTIONAL = ("severity", "location")


@dataclass
class AccidentLog:
    """A single accident log entry as exchanged with clients and Procore."""

    id: int = 0
    comments: str = ""
    date: str = ""
    datetime: str = ""
    involved_company: str = ""
    involved_name: str = ""
    time_hour: int = 0
    time_minute: int = 0
    severity: str = ""
    location: str = ""

    @classmethod
    def from_json(cls, data: Any) -> AccidentLog:
        """Build a log from decoded JSON, rejecting values of the wrong type.

        Unknown keys are ignored, missing or null keys keep their defaults.
        """
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ValueError("accident log must be a JSON object")
        values: dict[str, Any] = {}
        for field in fields(cls):
            value = data.get(field.name)
            if value is None:
                continue
            if isinstance(field.default, int):
                if isinstance(value, bool) or not isinstance(value, int):
                    raise ValueError(
                        f"field {field.name!r} must be an integer, got {value!r}"
                    )
            elif not isinstance(value, str):
                raise ValueError(
                    f"field {field.name!r} must be a string, got {value!r}"
                )
            values[field.name] = value
        return cls(**values)

    def _form_value(self, name: str) -> str:
        return str(getattr(self, name))

    @staticmethod
    def _form_key(name: str) -> str:
        return f"{_FORM_PREFIX}[{name}]"

    def create_form(self) -> dict[str, str]:
        """Form fields for creating this log, keys in sorted order."""
        form = {self._form_key(name): self._form_value(name) for name in _CREATE_REQUIRED}
        form.update(
            (self._form_key(name), getattr(self, name))
            for name in _CREATE_OPTIONAL
            if getattr(self, name)
        )
        return dict(sorted(form.items()))

    def update_form(self) -> dict[str, str]:
        """Form fields for updating this log: only the fields that hold a value."""
        form = {
            self._form_key(field.name): self._form_value(field.name)
            for field in fields(self)
            if field.name != "id" and getattr(self, field.name)
        }
        return dict(sorted(form.items()))