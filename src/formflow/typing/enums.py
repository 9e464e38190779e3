"""Project enums."""

from __future__ import annotations

from enum import StrEnum


class _EnumMixin(StrEnum):
    """Shared conversion helpers for user-facing enums."""

    @classmethod
    def from_str(cls, value: str) -> _EnumMixin:
        """Parse enum from string.

        Args:
            value: Raw string value.

        Raises:
            ValueError: If the value is not supported.

        Returns:
            _EnumMixin: Parsed enum value.
        """
        try:
            return cls(value)
        except ValueError as exc:
            supported = ", ".join(member.value for member in cls)
            message = f"Unsupported {cls.__name__} value '{value}'. Expected one of: {supported}"
            raise ValueError(message) from exc

    def to_str(self) -> str:
        """Return string representation.

        Returns:
            str: Enum string value.
        """
        return self.value


class FieldType(_EnumMixin):
    """Supported form field types."""

    TEXT = "text"
    EMAIL = "email"
    PASSWORD = "password"  # noqa: S105
    URL = "url"
    TEXTAREA = "textarea"
    NUMBER = "number"
    SELECT = "select"
    MULTISELECT = "multiselect"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    DATE = "date"
    FILE = "file"
    MULTIFILE = "multifile"
    HIDDEN = "hidden"

    @property
    def has_options(self) -> bool:
        """Return whether the field picks its value from declared options."""
        return self in _OPTION_TYPES

    @property
    def is_multiple(self) -> bool:
        """Return whether the field holds a sequence of values."""
        return self in _MULTIPLE_TYPES


_OPTION_TYPES = frozenset({FieldType.SELECT, FieldType.MULTISELECT, FieldType.RADIO})
_MULTIPLE_TYPES = frozenset({FieldType.MULTISELECT, FieldType.MULTIFILE})


class StepStatus(_EnumMixin):
    """Position of a step relative to the current one."""

    COMPLETED = "completed"
    CURRENT = "current"
    PENDING = "pending"
