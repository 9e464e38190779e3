"""Built-in field validators.

A validator receives the current field value and returns an error message, or
None when the value is acceptable. Validators wrapped with `cross_field` also
receive the full values mapping.

Every validator except `required` accepts empty values. Whether a field may be
left empty is decided by `required` alone.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sized
from fnmatch import fnmatch
from typing import Any
from urllib.parse import urlparse

from formflow.settings import DEFAULT_REQUIRED_MESSAGE
from formflow.typing.models import UploadedFile

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_BYTES_PER_MB = 1024 * 1024

type Validator = Callable[[Any], str | None]


def is_empty(value: Any) -> bool:
    """Return whether a value counts as "no input".

    `None`, blank strings and empty collections are empty. `0` and `False` are values.

    Args:
        value: Value to inspect.

    Returns:
        bool: True when the value is empty.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, list | tuple | set | frozenset | dict):
        return not value
    return False


class Required:
    """Fails on empty values.

    Without an explicit message, forms report their configured required message.
    """

    def __init__(self, message: str | None = None) -> None:
        self.message = message

    def __call__(self, value: Any) -> str | None:
        return (self.message or DEFAULT_REQUIRED_MESSAGE) if is_empty(value) else None

    def __repr__(self) -> str:
        return f"Required(message={self.message!r})"


required = Required()


class CrossFieldValidator:
    """Validator that also sees every other value of the form."""

    def __init__(self, func: Callable[[Any, Mapping[str, Any]], str | None]) -> None:
        self.func = func

    def __call__(self, value: Any, values: Mapping[str, Any] | None = None) -> str | None:
        return self.func(value, values or {})

    def __repr__(self) -> str:
        return f"CrossFieldValidator({getattr(self.func, '__name__', self.func)!r})"


def cross_field(func: Callable[[Any, Mapping[str, Any]], str | None]) -> CrossFieldValidator:
    """Wrap a `(value, values)` function as a cross-field validator."""
    return CrossFieldValidator(func)


def matches(other_key: str, message: str | None = None) -> CrossFieldValidator:
    """Require the value to equal the value of another field.

    Args:
        other_key: Key of the field to compare with.
        message: Optional custom error message.

    Returns:
        CrossFieldValidator: The validator.
    """

    def validate(value: Any, values: Mapping[str, Any]) -> str | None:
        if is_empty(value) or value == values.get(other_key):
            return None
        return message or f"Must match {other_key}."

    return CrossFieldValidator(validate)


def min_length(length: int, message: str | None = None) -> Validator:
    """Create a validator checking a minimum length."""

    def validate(value: Any) -> str | None:
        if is_empty(value) or not isinstance(value, Sized):
            return None
        if len(value) < length:
            return message or f"Must be at least {length} characters long."
        return None

    return validate


def max_length(length: int, message: str | None = None) -> Validator:
    """Create a validator checking a maximum length."""

    def validate(value: Any) -> str | None:
        if is_empty(value) or not isinstance(value, Sized):
            return None
        if len(value) > length:
            return message or f"Must be at most {length} characters long."
        return None

    return validate


def _as_number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return value
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return None


def min_value(minimum: float, message: str | None = None) -> Validator:
    """Create a validator checking a lower numeric bound (inclusive)."""

    def validate(value: Any) -> str | None:
        if is_empty(value):
            return None
        number = _as_number(value)
        if number is None:
            return "Must be a valid number."
        if number < minimum:
            return message or f"Must be greater than or equal to {minimum}."
        return None

    return validate


def max_value(maximum: float, message: str | None = None) -> Validator:
    """Create a validator checking an upper numeric bound (inclusive)."""

    def validate(value: Any) -> str | None:
        if is_empty(value):
            return None
        number = _as_number(value)
        if number is None:
            return "Must be a valid number."
        if number > maximum:
            return message or f"Must be less than or equal to {maximum}."
        return None

    return validate


def integer(value: Any) -> str | None:
    """Require a whole number."""
    if is_empty(value):
        return None
    number = _as_number(value)
    if number is None or not number.is_integer():
        return "Must be a whole number."
    return None


def pattern(regex: str | re.Pattern[str], message: str = "Invalid format.") -> Validator:
    """Create a validator requiring the whole value to match `regex`."""
    compiled = re.compile(regex) if isinstance(regex, str) else regex

    def validate(value: Any) -> str | None:
        if is_empty(value):
            return None
        return None if compiled.fullmatch(str(value)) else message

    return validate


def email(value: Any) -> str | None:
    """Require a syntactically valid email address."""
    if is_empty(value):
        return None
    return None if _EMAIL_PATTERN.fullmatch(str(value).strip()) else "Must be a valid email address."


def url(value: Any) -> str | None:
    """Require an absolute URL with a scheme and a host."""
    if is_empty(value):
        return None
    try:
        parsed = urlparse(str(value).strip())
    except ValueError:
        return "Must be a valid URL."
    if not parsed.scheme or not parsed.netloc:
        return "Must be a valid URL."
    return None


def _files(value: Any) -> list[UploadedFile]:
    if isinstance(value, UploadedFile):
        return [value]
    if isinstance(value, list | tuple):
        return [item for item in value if isinstance(item, UploadedFile)]
    return []


def file_type(allowed: list[str] | tuple[str, ...], message: str | None = None) -> Validator:
    """Create a validator restricting file MIME types.

    Entries may use wildcards, e.g. `image/*`. Works for file and multifile fields.
    """

    def validate(value: Any) -> str | None:
        for uploaded in _files(value):
            if not any(fnmatch(uploaded.content_type, accepted) for accepted in allowed):
                return message or f"File type not allowed. Allowed: {', '.join(allowed)}"
        return None

    return validate


def file_size(max_mb: float, message: str | None = None) -> Validator:
    """Create a validator limiting each file to `max_mb` megabytes."""
    limit = max_mb * _BYTES_PER_MB

    def validate(value: Any) -> str | None:
        if any(uploaded.size > limit for uploaded in _files(value)):
            return message or f"File must be smaller than {max_mb}MB."
        return None

    return validate


def max_selections(count: int, message: str | None = None) -> Validator:
    """Create a validator limiting how many options a multiselect may hold."""

    def validate(value: Any) -> str | None:
        if is_empty(value) or not isinstance(value, Sized):
            return None
        if len(value) > count:
            return message or f"Select at most {count} options."
        return None

    return validate
