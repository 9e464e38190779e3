"""formflow package."""

from formflow.logging import configure_logging, get_logger

__version__ = "0.1.0"

# Initialize package logger at import time via `get_logger`.
logger = get_logger("formflow")

from formflow.async_runner import run_async  # noqa: E402
from formflow.controller import FormController  # noqa: E402
from formflow.exceptions import (  # noqa: E402
    AsyncExecutionError,
    FieldValueError,
    PackageError,
    SchemaError,
    SettingsError,
    StepError,
    UnknownFieldError,
)
from formflow.schema import FormSchema, create_form_schema, get_default_values  # noqa: E402
from formflow.settings import Settings, get_settings  # noqa: E402
from formflow.steps import StepNavigator  # noqa: E402

__all__ = [
    "AsyncExecutionError",
    "FieldValueError",
    "FormController",
    "FormSchema",
    "PackageError",
    "SchemaError",
    "Settings",
    "SettingsError",
    "StepError",
    "StepNavigator",
    "UnknownFieldError",
    "__version__",
    "configure_logging",
    "create_form_schema",
    "get_default_values",
    "get_logger",
    "get_settings",
    "logger",
    "run_async",
]
