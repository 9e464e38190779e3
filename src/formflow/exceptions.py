"""Package exceptions."""

from __future__ import annotations

from dataclasses import dataclass


class PackageError(Exception):
    """Root exception for the package."""


@dataclass(frozen=True)
class SettingsError(PackageError):
    """Raised when settings cannot be loaded or validated."""

    message: str = "Failed to load settings"
    exc: BaseException | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.exc}" if self.exc else self.message


@dataclass(frozen=True)
class AsyncExecutionError(PackageError):
    """Raised when an async operation fails in compatibility runner."""

    result: BaseException
    message: str = "Async operation failed"

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.result}"


@dataclass(frozen=True)
class SchemaError(PackageError):
    """Raised when a form schema or one of its descriptors is malformed."""

    message: str
    exc: BaseException | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.exc}" if self.exc else self.message


@dataclass(frozen=True)
class UnknownFieldError(PackageError):
    """Raised when a field key is not declared by the governing schema."""

    key: str

    def __str__(self) -> str:
        """Return error message payload."""
        return f"Unknown form field '{self.key}'"


@dataclass(frozen=True)
class FieldValueError(PackageError):
    """Raised when a value does not have the shape required by its field type."""

    key: str
    expected: str
    actual: str

    def __str__(self) -> str:
        """Return error message payload."""
        return f"Invalid value for field '{self.key}': expected {self.expected}, got {self.actual}"


@dataclass(frozen=True)
class StepError(PackageError):
    """Raised when form steps are malformed or navigation targets an unknown step."""

    message: str

    def __str__(self) -> str:
        """Return error message payload."""
        return self.message
