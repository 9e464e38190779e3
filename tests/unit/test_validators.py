from __future__ import annotations

import re

import pytest

from formflow import validators
from formflow.settings import DEFAULT_REQUIRED_MESSAGE
from formflow.typing.models import UploadedFile


@pytest.mark.parametrize("value", [None, "", "   ", [], (), {}, set()])
def test_required_fails_on_empty_values(value: object) -> None:
    assert validators.required(value) == DEFAULT_REQUIRED_MESSAGE


@pytest.mark.parametrize("value", ["Ana", 0, False, ["a"], 0.0])
def test_required_accepts_falsy_but_present_values(value: object) -> None:
    assert validators.required(value) is None


def test_required_custom_message() -> None:
    check = validators.Required("Name is mandatory.")

    assert check("") == "Name is mandatory."
    assert validators.required.message is None


def test_length_validators() -> None:
    at_least_two = validators.min_length(2)
    at_most_three = validators.max_length(3, message="Too long.")

    assert at_least_two("A") == "Must be at least 2 characters long."
    assert at_least_two("Ana") is None
    assert at_most_three("Anna") == "Too long."
    assert at_most_three("Ana") is None


def test_numeric_bounds() -> None:
    adult = validators.min_value(18)
    capped = validators.max_value(120)

    assert adult(17) == "Must be greater than or equal to 18."
    assert adult(18) is None
    assert capped(121) == "Must be less than or equal to 120."
    assert capped(120.0) is None
    assert adult("abc") == "Must be a valid number."


def test_integer() -> None:
    assert validators.integer(3) is None
    assert validators.integer(3.0) is None
    assert validators.integer(3.5) == "Must be a whole number."


def test_numeric_validators_handle_huge_integers() -> None:
    huge = 10**400

    assert validators.max_value(120)(huge) == "Must be less than or equal to 120."
    assert validators.min_value(18)(huge) is None
    assert validators.integer(huge) is None
    assert validators.max_value(120)("1" * 400) == "Must be less than or equal to 120."


@pytest.mark.parametrize(
    ("value", "expected"),
    [("ana@example.com", None), ("ana@example", "Must be a valid email address.")],
)
def test_email(value: str, expected: str | None) -> None:
    assert validators.email(value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("https://example.com/path?q=1", None),
        ("ftp://files.example.com", None),
        ("example.com", "Must be a valid URL."),
        ("https://", "Must be a valid URL."),
    ],
)
def test_url(value: str, expected: str | None) -> None:
    assert validators.url(value) == expected


def test_pattern_uses_full_match() -> None:
    tax_id = validators.pattern(r"\d{7,8}-[\dkK]", "Invalid tax id.")

    assert tax_id("12345678-9") is None
    assert tax_id("x12345678-9") == "Invalid tax id."


def test_pattern_accepts_compiled_regex() -> None:
    hex_color = validators.pattern(re.compile(r"#[0-9a-fA-F]{6}"))

    assert hex_color("#1A2B3C") is None
    assert hex_color("blue") == "Invalid format."


@pytest.mark.parametrize(
    "check",
    [
        validators.min_length(2),
        validators.max_length(2),
        validators.min_value(1),
        validators.max_value(1),
        validators.integer,
        validators.email,
        validators.url,
        validators.pattern(r"\d+"),
        validators.max_selections(1),
    ],
)
def test_non_required_validators_accept_empty_values(check) -> None:
    assert check("") is None
    assert check(None) is None


def test_file_validators() -> None:
    avatar = UploadedFile(name="me.png", content_type="image/png", size=2 * 1024 * 1024)
    document = UploadedFile(name="cv.pdf", content_type="application/pdf", size=10)

    images_only = validators.file_type(["image/*"])
    small = validators.file_size(1)

    assert images_only(avatar) is None
    assert images_only(document) == "File type not allowed. Allowed: image/*"
    assert images_only([avatar, document]) == "File type not allowed. Allowed: image/*"
    assert small(document) is None
    assert small(avatar) == "File must be smaller than 1MB."
    assert small(None) is None


def test_max_selections() -> None:
    check = validators.max_selections(2)

    assert check(["a", "b"]) is None
    assert check(["a", "b", "c"]) == "Select at most 2 options."


def test_matches_compares_against_other_field() -> None:
    confirm = validators.matches("password", message="Passwords do not match.")

    assert confirm("secret", {"password": "secret"}) is None
    assert confirm("secreT", {"password": "secret"}) == "Passwords do not match."
    assert confirm("", {"password": "secret"}) is None


def test_cross_field_wraps_plain_function() -> None:
    def _end_after_start(value, values):
        return None if value >= values["start"] else "End must be after start."

    check = validators.cross_field(_end_after_start)

    assert isinstance(check, validators.CrossFieldValidator)
    assert check(5, {"start": 1}) is None
    assert check(0, {"start": 1}) == "End must be after start."
