"""Form schema construction and schema-wide validation helpers."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from copy import deepcopy
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from formflow.exceptions import FieldValueError, SchemaError, UnknownFieldError
from formflow.settings import DEFAULT_REQUIRED_MESSAGE
from formflow.typing.enums import FieldType
from formflow.typing.models import FieldDescriptor, FieldState
from formflow.validators import CrossFieldValidator, Required, is_empty

_TYPE_DEFAULTS: dict[FieldType, Any] = {
    FieldType.TEXT: "",
    FieldType.EMAIL: "",
    FieldType.PASSWORD: "",
    FieldType.URL: "",
    FieldType.TEXTAREA: "",
    FieldType.SELECT: "",
    FieldType.RADIO: "",
    FieldType.HIDDEN: "",
    FieldType.NUMBER: None,
    FieldType.CHECKBOX: False,
    FieldType.MULTISELECT: [],
    FieldType.DATE: None,
    FieldType.FILE: None,
    FieldType.MULTIFILE: [],
}


class FormSchema(Mapping[str, FieldDescriptor]):
    """Immutable mapping of field keys to descriptors.

    Dotted keys such as ``"address.street"`` are plain keys; no nesting is implied.
    """

    __slots__ = ("_fields", "_dependents")

    def __init__(self, fields: Mapping[str, FieldDescriptor]) -> None:
        self._fields = MappingProxyType(dict(fields))
        dependents: dict[str, list[str]] = {key: [] for key in self._fields}
        for key, descriptor in self._fields.items():
            for source in descriptor.depends_on:
                dependents[source].append(key)
        self._dependents = MappingProxyType({key: tuple(keys) for key, keys in dependents.items()})

    def __getitem__(self, key: str) -> FieldDescriptor:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"FormSchema({list(self._fields)!r})"

    def descriptor(self, key: str) -> FieldDescriptor:
        """Return a field descriptor.

        Raises:
            UnknownFieldError: If the key is not declared.
        """
        try:
            return self._fields[key]
        except KeyError:
            raise UnknownFieldError(key=key) from None

    def dependents_of(self, key: str) -> tuple[str, ...]:
        """Return the keys whose descriptors list `key` in `depends_on`."""
        return self._dependents.get(key, ())


def create_form_schema(descriptors: Mapping[str, FieldDescriptor | Mapping[str, Any]]) -> FormSchema:
    """Build an immutable form schema from a literal descriptor map.

    Args:
        descriptors: Mapping of field key to descriptor or descriptor payload.

    Raises:
        SchemaError: If a key or descriptor is malformed.

    Returns:
        FormSchema: The validated schema.
    """
    if not isinstance(descriptors, Mapping):
        raise SchemaError(message=f"Schema must be a mapping, got {type(descriptors).__name__}")

    fields: dict[str, FieldDescriptor] = {}
    for key, raw in descriptors.items():
        if not isinstance(key, str) or not key.strip():
            raise SchemaError(message=f"Field keys must be non-empty strings, got {key!r}")
        fields[key] = _build_descriptor(key, raw)

    for key, descriptor in fields.items():
        for source in descriptor.depends_on:
            if source == key:
                raise SchemaError(message=f"Field '{key}' cannot depend on itself")
            if source not in fields:
                raise SchemaError(message=f"Field '{key}' depends on undeclared field '{source}'")

    return FormSchema(fields)


def _build_descriptor(key: str, raw: FieldDescriptor | Mapping[str, Any]) -> FieldDescriptor:
    """Validate a single descriptor payload.

    Raises:
        SchemaError: If the payload is not a valid descriptor.
    """
    if isinstance(raw, FieldDescriptor):
        return raw
    if not isinstance(raw, Mapping):
        raise SchemaError(message=f"Descriptor for field '{key}' must be a mapping or FieldDescriptor")
    try:
        return FieldDescriptor.model_validate(dict(raw))
    except ValidationError as exc:
        raise SchemaError(message=f"Invalid descriptor for field '{key}'", exc=exc) from exc


def default_value_for(descriptor: FieldDescriptor) -> Any:
    """Return a fresh default value for a descriptor."""
    if descriptor.default_value is not None:
        return deepcopy(descriptor.default_value)
    return deepcopy(_TYPE_DEFAULTS.get(descriptor.type))


def get_default_values(schema: FormSchema) -> dict[str, Any]:
    """Return fresh default values for every field of the schema."""
    return {key: default_value_for(descriptor) for key, descriptor in schema.items()}


def check_value_shape(key: str, descriptor: FieldDescriptor, value: Any) -> None:
    """Ensure a value fits the field type.

    Raises:
        FieldValueError: If the value has the wrong shape.
    """
    expected = descriptor.shape_mismatch(value)
    if expected:
        raise FieldValueError(key=key, expected=expected, actual=type(value).__name__)


def field_errors(
    descriptor: FieldDescriptor,
    value: Any,
    values: Mapping[str, Any],
    *,
    required_message: str = DEFAULT_REQUIRED_MESSAGE,
) -> tuple[str, ...]:
    """Run a field's validators and collect every failure message.

    Empty values only go through the required check: a required field yields a
    single required message, an optional one yields nothing.

    Args:
        descriptor: Field descriptor.
        value: Value to validate.
        values: Every current form value, for cross-field validators.
        required_message: Message of the implicit check added by `required=True`.

    Returns:
        tuple[str, ...]: Failure messages in declaration order.
    """
    required_checks = [validator for validator in descriptor.validators if isinstance(validator, Required)]
    if is_empty(value):
        if required_checks:
            return (required_checks[0].message or required_message,)
        return (required_message,) if descriptor.required else ()

    errors: list[str] = []
    for validator in descriptor.validators:
        if isinstance(validator, Required):
            continue
        if isinstance(validator, CrossFieldValidator):
            message = validator(value, values)
        else:
            message = validator(value)
        if message:
            errors.append(message)
    return tuple(errors)


def validate_form_values(
    schema: FormSchema,
    values: Mapping[str, Any],
    *,
    required_message: str = DEFAULT_REQUIRED_MESSAGE,
) -> dict[str, FieldState]:
    """Validate every field and return fresh, untouched field states."""
    return {
        key: FieldState(
            errors=field_errors(descriptor, values.get(key), values, required_message=required_message),
        )
        for key, descriptor in schema.items()
    }


def is_form_valid(states: Mapping[str, FieldState]) -> bool:
    """Return whether every field state is valid."""
    return all(state.is_valid for state in states.values())
