"""Tests for contact field validation."""

import pytest

from src.shared.contact.config import DEFAULT_MAX_LENGTHS
from src.shared.contact.errors import ValidationError
from src.shared.contact.input_validation import validate_contact_fields, trim_fields


def _body(**overrides):
    body = {"name": "Ada", "email": "ada@example.com", "message": "Hi"}
    body.update(overrides)
    return body


def _error(body):
    with pytest.raises(ValidationError) as exc_info:
        validate_contact_fields(body, DEFAULT_MAX_LENGTHS)
    assert exc_info.value.status_code == 400
    return exc_info.value.detail


def test_valid_fields_are_trimmed():
    result = validate_contact_fields(
        _body(name="  Ada  ", email=" ada@example.com\n", message="\tHi "),
        DEFAULT_MAX_LENGTHS,
    )
    assert result == ("Ada", "ada@example.com", "Hi")


def test_trim_leaves_non_strings_alone():
    assert trim_fields({"name": 123, "email": " a@b.co "}) == {"name": 123, "email": "a@b.co", "message": None}


@pytest.mark.parametrize("overrides", [
    {"name": ""},
    {"email": "   "},
    {"message": None},
])
def test_missing_fields(overrides):
    assert "required" in _error(_body(**overrides))


def test_absent_field():
    body = _body()
    del body["message"]
    assert "required" in _error(body)


@pytest.mark.parametrize("overrides", [
    {"name": 123},
    {"email": ["ada@example.com"]},
    {"message": True},
    {"name": 0},
])
def test_wrong_types(overrides):
    assert _error(_body(**overrides)) == "Invalid field types."


@pytest.mark.parametrize("field, limit", [("name", 100), ("message", 5000)])
def test_length_limits(field, limit):
    assert validate_contact_fields(_body(**{field: "x" * limit}), DEFAULT_MAX_LENGTHS)
    assert _error(_body(**{field: "x" * (limit + 1)})) == f"{field} exceeds {limit} characters."


def test_email_length_limit():
    email = "a" * 245 + "@example.com"
    assert _error(_body(email=email)) == "email exceeds 254 characters."


@pytest.mark.parametrize("email", [
    "invalid-email",
    "ada@example",
    "ada example@example.com",
    "@example.com",
    "ada@@example.com",
])
def test_bad_email_format(email):
    assert _error(_body(email=email)) == "Invalid email format."


def test_custom_limits():
    limits = dict(DEFAULT_MAX_LENGTHS, name=3)
    with pytest.raises(ValidationError):
        validate_contact_fields(_body(name="Adam"), limits)
