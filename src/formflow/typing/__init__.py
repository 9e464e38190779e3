"""Typing-centric domain modules."""

from formflow.typing.enums import FieldType, StepStatus
from formflow.typing.models import (
    FieldDescriptor,
    FieldState,
    FormStep,
    SelectOption,
    StepValidationResult,
    UploadedFile,
)
from formflow.typing.protocol import (
    Derivation,
    FieldValidator,
    StateListener,
    SubmitEvent,
    SubmitHandler,
)

__all__ = [
    "Derivation",
    "FieldDescriptor",
    "FieldState",
    "FieldType",
    "FieldValidator",
    "FormStep",
    "SelectOption",
    "StateListener",
    "StepStatus",
    "StepValidationResult",
    "SubmitEvent",
    "SubmitHandler",
    "UploadedFile",
]
