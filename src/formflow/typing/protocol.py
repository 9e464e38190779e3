"""Interfaces of the collaborators a form talks to."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Awaitable, Mapping

    from formflow.controller import FormController


class FieldValidator(Protocol):
    """Validator inspecting a single field value."""

    def __call__(self, value: Any, /) -> str | None:
        """Validate a value.

        Args:
            value: Current field value.

        Returns:
            str | None: Error message, or None when the value is valid.
        """


class SubmitHandler(Protocol):
    """External collaborator receiving validated form values, usually an API call."""

    def __call__(self, values: dict[str, Any], /) -> Awaitable[None] | None:
        """Submit values.

        Args:
            values: Snapshot of the normalized form values.

        Returns:
            Awaitable[None] | None: An awaitable for async handlers.
        """


class SubmitEvent(Protocol):
    """UI event whose default action the controller cancels on submit."""

    def prevent_default(self) -> None:
        """Cancel the default browser/UI submit behaviour."""


class StateListener(Protocol):
    """Callback notified after a controller state change."""

    def __call__(self, controller: FormController, /) -> None:
        """React to a state change.

        Args:
            controller: The controller whose state changed.
        """


class Derivation(Protocol):
    """Computes a field value from the current form values."""

    def __call__(self, values: Mapping[str, Any], /) -> Any:
        """Derive a value.

        Args:
            values: Current form values.

        Returns:
            Any: The derived value.
        """
