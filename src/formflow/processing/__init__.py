"""Value processing helpers."""

from formflow.processing.normalization import normalize_field_value, slugify

__all__ = [
    "normalize_field_value",
    "slugify",
]
