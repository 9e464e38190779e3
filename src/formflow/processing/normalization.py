"""Field value normalization helpers."""

from __future__ import annotations

import re
import unicodedata
from typing import TYPE_CHECKING, Any

from formflow.typing.enums import FieldType

if TYPE_CHECKING:
    from formflow.typing.models import FieldDescriptor


def normalize_field_value(*, value: Any, descriptor: FieldDescriptor) -> Any:
    """Normalize a raw UI value before validation and submission.

    Args:
        value (Any): Value as typed by the user.
        descriptor (FieldDescriptor): Field descriptor.

    Returns:
        Any: Normalized value. Non-string values are returned unchanged.
    """
    if not isinstance(value, str):
        return value

    normalized = value.strip() if descriptor.trim else value
    if descriptor.type == FieldType.EMAIL:
        normalized = normalized.strip().lower()
    elif descriptor.type == FieldType.URL:
        normalized = normalized.strip()
    return normalized


def slugify(value: str) -> str:
    """Build a URL slug from free text, e.g. a company name.

    Args:
        value (str): Source text.

    Returns:
        str: Lowercase ASCII slug with single dashes between words.
    """
    ascii_text = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    compact = re.sub(r"[^a-z0-9\s-]", "", ascii_text.lower())
    compact = re.sub(r"\s+", "-", compact.strip())
    return re.sub(r"-+", "-", compact).strip("-")
