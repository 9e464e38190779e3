"""Stateful form controller: values, field states, validation and submission."""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterable, Mapping
from copy import deepcopy
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from formflow import logger
from formflow.async_runner import run_async
from formflow.exceptions import AsyncExecutionError, SchemaError
from formflow.processing.normalization import normalize_field_value
from formflow.schema import (
    FormSchema,
    check_value_shape,
    create_form_schema,
    field_errors,
    get_default_values,
    is_form_valid,
)
from formflow.settings import get_settings
from formflow.typing.models import FieldState

if TYPE_CHECKING:
    from formflow.settings import Settings
    from formflow.typing.protocol import Derivation, StateListener, SubmitEvent, SubmitHandler


@dataclass(frozen=True)
class _DerivationRule:
    target: str
    sources: tuple[str, ...]
    compute: Derivation


class FormController:
    """Tracks the values and validation state of one form instance.

    Validation errors never raise: they are reported per field through
    `fields`. Exceptions are reserved for programmer errors (unknown keys,
    wrongly typed values) and for failures of the injected submit handler,
    which propagate unchanged out of `handle_submit`.
    """

    def __init__(
        self,
        schema: FormSchema | Mapping[str, Any],
        on_submit: SubmitHandler,
        initial_values: Mapping[str, Any] | None = None,
        *,
        validate_on_change: bool | None = None,
        validate_on_blur: bool | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._schema = schema if isinstance(schema, FormSchema) else create_form_schema(schema)
        self._on_submit = on_submit
        self._overrides = deepcopy(dict(initial_values or {}))
        for key, value in self._overrides.items():
            check_value_shape(key, self._schema.descriptor(key), value)

        config = settings or get_settings()
        self._validate_on_change = config.validate_on_change if validate_on_change is None else validate_on_change
        self._validate_on_blur = config.validate_on_blur if validate_on_blur is None else validate_on_blur
        self._required_message = config.required_message

        self._listeners: list[StateListener] = []
        self._derivations: list[_DerivationRule] = []
        self._is_submitting = False
        self._submit_count = 0

        self._initial_values: dict[str, Any] = {}
        self._values: dict[str, Any] = {}
        self._states: dict[str, FieldState] = {}
        self._validated: set[str] = set()
        self._manual: set[str] = set()
        self._restore()
        logger.debug("Form controller created", extra={"fields": list(self._schema)})

    def __repr__(self) -> str:
        return (
            f"FormController(fields={len(self._schema)}, is_valid={self.is_valid}, "
            f"is_dirty={self.is_dirty}, is_submitting={self._is_submitting})"
        )

    @property
    def schema(self) -> FormSchema:
        """Return the governing schema."""
        return self._schema

    @property
    def values(self) -> dict[str, Any]:
        """Return a copy of the current form values."""
        return deepcopy(self._values)

    @property
    def initial_values(self) -> dict[str, Any]:
        """Return a copy of the values the form was (re)initialized with."""
        return deepcopy(self._initial_values)

    @property
    def fields(self) -> Mapping[str, FieldState]:
        """Return a snapshot of every field state."""
        return MappingProxyType(dict(self._states))

    @property
    def errors(self) -> Mapping[str, FieldState]:
        """Return field states keyed by field, as the UI binding layer names them."""
        return self.fields

    @property
    def is_valid(self) -> bool:
        """Return whether every field currently passes validation, touched or not."""
        return is_form_valid(self._states)

    @property
    def is_dirty(self) -> bool:
        """Return whether any value differs from its initial value."""
        return any(state.dirty for state in self._states.values())

    @property
    def is_submitting(self) -> bool:
        """Return whether a submission is in flight."""
        return self._is_submitting

    @property
    def submit_count(self) -> int:
        """Return how many times the submit handler was invoked."""
        return self._submit_count

    def get_value(self, key: str) -> Any:
        """Return a copy of one field value."""
        self._schema.descriptor(key)
        return deepcopy(self._values[key])

    def field(self, key: str) -> FieldState:
        """Return the state of one field."""
        self._schema.descriptor(key)
        return self._states[key]

    def normalized_values(self) -> dict[str, Any]:
        """Return current values after per-field normalization (trimming, email casing)."""
        return {
            key: normalize_field_value(value=deepcopy(self._values[key]), descriptor=descriptor)
            for key, descriptor in self._schema.items()
        }

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener called after every state change.

        Args:
            listener: Callback receiving this controller.

        Returns:
            Callable[[], None]: Function removing the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def add_derivation(self, target: str, sources: Iterable[str], compute: Derivation) -> None:
        """Keep `target` computed from `sources` until the user edits it directly.

        Args:
            target: Key of the derived field.
            sources: Keys whose changes recompute the target.
            compute: Function of the current values returning the target value.

        Raises:
            SchemaError: If the target is listed among its own sources.
        """
        source_keys = tuple(sources)
        self._schema.descriptor(target)
        for source in source_keys:
            self._schema.descriptor(source)
        if target in source_keys:
            raise SchemaError(message=f"Derived field '{target}' cannot be one of its own sources")
        self._derivations.append(_DerivationRule(target=target, sources=source_keys, compute=compute))

    def set_value(self, key: str, value: Any) -> None:
        """Set a field value and refresh the affected field states.

        Raises:
            UnknownFieldError: If the key is not in the schema.
            FieldValueError: If the value does not fit the field type.
        """
        check_value_shape(key, self._schema.descriptor(key), value)
        staged = {**self._values, key: value}
        manual = self._manual | {key}
        derived = self._apply_derivations(key, staged, manual)
        self._values = staged
        self._manual = manual

        changed = [key, *derived]
        affected = list(changed)
        for changed_key in changed:
            for dependent in self._schema.dependents_of(changed_key):
                if dependent not in affected:
                    affected.append(dependent)

        normalized = self.normalized_values()
        for affected_key in affected:
            if self._validate_on_change and affected_key in changed:
                self._validated.add(affected_key)
            self._refresh(affected_key, revalidate=self._validate_on_change, normalized=normalized)
        self._notify()

    def set_field_touched(self, key: str, touched: bool = True) -> None:  # noqa: FBT001, FBT002
        """Set the touched flag of a field.

        A field that never went through `set_value` or a validation pass is
        validated when first touched, so blurring an empty required field
        reveals its error.
        """
        self._schema.descriptor(key)
        revalidate = touched and self._validate_on_blur and key not in self._validated
        if revalidate:
            self._validated.add(key)
        self._refresh(key, touched=touched, revalidate=revalidate)
        self._notify()

    def validate_field(self, key: str) -> bool:
        """Validate one field, mark it touched and return its validity."""
        return self.validate_fields([key])

    def validate_fields(self, keys: Iterable[str]) -> bool:
        """Validate the given fields, mark them touched and return whether all pass."""
        selected = list(keys)
        for key in selected:
            self._schema.descriptor(key)
        normalized = self.normalized_values()
        for key in selected:
            self._validated.add(key)
            self._refresh(key, touched=True, revalidate=True, normalized=normalized)
        self._notify()
        return all(self._states[key].is_valid for key in selected)

    def validate_all(self) -> bool:
        """Validate every field, mark every field touched and return overall validity."""
        return self.validate_fields(self._schema)

    async def handle_submit(self, event: SubmitEvent | None = None) -> bool:
        """Validate the whole form and pass its values to the submit handler.

        Only one submission runs at a time: a call made while another is in
        flight does nothing. Exceptions raised by the handler propagate after
        `is_submitting` is cleared.

        Args:
            event: Optional UI event; its default action is prevented.

        Returns:
            bool: True when the submit handler ran to completion.
        """
        prevent_default = getattr(event, "prevent_default", None)
        if callable(prevent_default):
            prevent_default()

        if self._is_submitting:
            logger.debug("Submission already in progress, ignoring submit")
            return False

        if not self.validate_all():
            invalid = [key for key, state in self._states.items() if not state.is_valid]
            logger.info("Form submission blocked by validation errors", extra={"invalid_fields": invalid})
            return False

        payload = self.normalized_values()
        self._is_submitting = True
        self._submit_count += 1
        self._notify()
        try:
            result = self._on_submit(payload)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            logger.warning("Form submission failed", extra={"error": repr(exc)})
            raise
        finally:
            self._is_submitting = False
            self._notify()

        logger.info("Form submitted", extra={"submit_count": self._submit_count})
        return True

    def handle_submit_sync(self, event: SubmitEvent | None = None) -> bool:
        """Run `handle_submit` from synchronous code.

        Inside a running event loop the submission runs on a worker thread.
        Submit handler errors reach the caller unwrapped either way.

        Returns:
            bool: Same result as `handle_submit`.
        """
        try:
            return run_async(self.handle_submit(event))
        except AsyncExecutionError as exc:
            logger.debug("Unwrapping submission error from worker thread", extra={"error": repr(exc.result)})
            raise exc.result from None

    def reset_form(self) -> None:
        """Return to the pristine state with a fresh copy of the initial values.

        An in-flight submission keeps `is_submitting` set until its handler settles.
        """
        self._restore()
        logger.debug("Form reset")
        self._notify()

    def _restore(self) -> None:
        """Rebuild initial values, current values and field states from scratch."""
        self._initial_values = {**get_default_values(self._schema), **deepcopy(self._overrides)}
        self._values = deepcopy(self._initial_values)
        self._validated = set()
        self._manual = set()
        normalized = self.normalized_values()
        self._states = {key: FieldState(errors=self._errors_for(key, normalized)) for key in self._schema}

    def _apply_derivations(self, source: str, values: dict[str, Any], manual: set[str]) -> list[str]:
        """Recompute into `values` the derived fields reachable from `source`.

        Raises:
            FieldValueError: If a derivation returns a value that does not fit its field.

        Returns:
            list[str]: Keys of the derived fields that were updated.
        """
        updated: list[str] = []
        pending = [source]
        while pending:
            current = pending.pop(0)
            for rule in self._derivations:
                if current not in rule.sources or rule.target in manual or rule.target in updated:
                    continue
                value = rule.compute(MappingProxyType(values))
                check_value_shape(rule.target, self._schema[rule.target], value)
                values[rule.target] = value
                updated.append(rule.target)
                pending.append(rule.target)
        return updated

    def _errors_for(self, key: str, normalized: Mapping[str, Any] | None = None) -> tuple[str, ...]:
        current = self.normalized_values() if normalized is None else normalized
        return field_errors(
            self._schema[key],
            current[key],
            current,
            required_message=self._required_message,
        )

    def _refresh(
        self,
        key: str,
        *,
        touched: bool | None = None,
        revalidate: bool = False,
        normalized: Mapping[str, Any] | None = None,
    ) -> None:
        """Replace the state of one field."""
        state = self._states[key]
        errors = self._errors_for(key, normalized) if revalidate else state.errors
        self._states[key] = FieldState(
            touched=state.touched if touched is None else touched,
            dirty=self._values[key] != self._initial_values[key],
            errors=errors,
        )
        if revalidate:
            logger.debug("Field validated", extra={"field": key, "errors": list(errors)})

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
