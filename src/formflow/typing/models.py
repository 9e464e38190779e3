"""Core domain models."""

from __future__ import annotations

import datetime
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from formflow.typing.enums import FieldType

_STRING_TYPES = frozenset(
    {
        FieldType.TEXT,
        FieldType.EMAIL,
        FieldType.PASSWORD,
        FieldType.URL,
        FieldType.TEXTAREA,
        FieldType.SELECT,
        FieldType.RADIO,
        FieldType.HIDDEN,
    },
)


class SelectOption(BaseModel):
    """One choice offered by a select, multiselect or radio field."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    value: str
    label: str
    disabled: bool = False


class UploadedFile(BaseModel):
    """File picked by the user for a file or multifile field."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    content_type: str
    size: int = Field(ge=0)
    content: bytes | None = Field(default=None, repr=False)


class FieldDescriptor(BaseModel):
    """Declarative description of one form field.

    Metadata such as `min`, `max_length` or `accept` is informative for the
    rendering layer. Only `required` and `validators` produce field errors.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: FieldType
    label: str
    required: bool = False
    validators: tuple[Callable[..., str | None], ...] = ()
    default_value: Any = None
    placeholder: str | None = None
    help_text: str | None = None
    disabled: bool = False
    trim: bool = False
    depends_on: tuple[str, ...] = ()

    options: tuple[SelectOption, ...] = ()
    max_selections: int | None = Field(default=None, ge=1)

    min: float | None = None
    max: float | None = None
    step: float | None = Field(default=None, gt=0)

    min_length: int | None = Field(default=None, ge=0)
    max_length: int | None = Field(default=None, ge=0)
    rows: int | None = Field(default=None, ge=1)

    accept: str | None = None
    max_size: int | None = Field(default=None, ge=0)

    @property
    def option_values(self) -> tuple[str, ...]:
        """Return declared option values in declaration order."""
        return tuple(option.value for option in self.options)

    def shape_mismatch(self, value: Any) -> str | None:
        """Describe the expected shape when `value` does not fit the field type.

        Args:
            value: Candidate value. `None` always fits.

        Returns:
            str | None: Expected shape description, or None when the value fits.
        """
        if value is None:
            return None
        if self.type in _STRING_TYPES:
            return None if isinstance(value, str) else "str"
        if self.type == FieldType.NUMBER:
            fits = isinstance(value, int | float) and not isinstance(value, bool)
            return None if fits else "int | float"
        if self.type == FieldType.CHECKBOX:
            return None if isinstance(value, bool) else "bool"
        if self.type == FieldType.DATE:
            return None if isinstance(value, datetime.date) else "date"
        if self.type == FieldType.FILE:
            return None if isinstance(value, UploadedFile) else "UploadedFile"
        if self.type == FieldType.MULTISELECT:
            fits = isinstance(value, list | tuple) and all(isinstance(item, str) for item in value)
            return None if fits else "list[str]"
        if self.type == FieldType.MULTIFILE:
            fits = isinstance(value, list | tuple) and all(isinstance(item, UploadedFile) for item in value)
            return None if fits else "list[UploadedFile]"
        return None

    @model_validator(mode="after")
    def _validate_descriptor(self) -> FieldDescriptor:
        """Reject descriptors that cannot be rendered or validated.

        Raises:
            ValueError: If options, bounds or the default value are inconsistent.

        Returns:
            FieldDescriptor: The validated descriptor.
        """
        if self.type.has_options:
            values = self.option_values
            if not values:
                raise ValueError(f"'{self.type}' fields must declare at least one option")  # noqa: TRY003
            duplicates = sorted({value for value in values if values.count(value) > 1})
            if duplicates:
                raise ValueError(f"Duplicate option values: {', '.join(duplicates)}")  # noqa: TRY003
        elif self.options:
            raise ValueError(f"'{self.type}' fields do not accept options")  # noqa: TRY003

        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError("'min' must not be greater than 'max'")  # noqa: TRY003
        if self.min_length is not None and self.max_length is not None and self.min_length > self.max_length:
            raise ValueError("'min_length' must not be greater than 'max_length'")  # noqa: TRY003

        expected = self.shape_mismatch(self.default_value)
        if expected:
            raise ValueError(  # noqa: TRY003
                f"default_value must be {expected}, got {type(self.default_value).__name__}",
            )
        self._validate_default_option()
        return self

    def _validate_default_option(self) -> None:
        """Ensure option-backed defaults reference declared options."""
        if not self.type.has_options or self.default_value in (None, ""):
            return
        defaults = self.default_value if self.type.is_multiple else [self.default_value]
        unknown = [value for value in defaults if value not in self.option_values]
        if unknown:
            raise ValueError(f"default_value references undeclared options: {', '.join(unknown)}")  # noqa: TRY003


class FieldState(BaseModel):
    """Runtime validation state of one field."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    touched: bool = False
    dirty: bool = False
    errors: tuple[str, ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_valid(self) -> bool:
        """Return whether the current value passes every validator."""
        return not self.errors

    @property
    def error(self) -> str | None:
        """Return the first error message, if any."""
        return self.errors[0] if self.errors else None

    @property
    def visible_errors(self) -> tuple[str, ...]:
        """Return errors the UI should display, gated on the touched flag."""
        return self.errors if self.touched else ()


class FormStep(BaseModel):
    """Named, ordered subset of a schema's fields."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(min_length=1)
    title: str
    description: str = ""
    fields: tuple[str, ...] = ()


class StepValidationResult(BaseModel):
    """Outcome of validating the fields of a single step."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    step: int
    is_valid: bool
    missing_fields: tuple[str, ...] = ()
    errors: dict[str, tuple[str, ...]] = Field(default_factory=dict)
