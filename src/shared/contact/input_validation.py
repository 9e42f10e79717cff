"""
Validation of submitted contact form fields.
Cheap, synchronous checks that must pass before any rate limit budget is spent.
"""

import re
from typing import Any, Dict, Mapping, Tuple

from src.shared.contact.errors import ValidationError

CONTACT_FIELDS = ("name", "email", "message")

# Sanity filter only, not full RFC 5322: local@domain.tld without whitespace
EMAIL_PATTERN = re.compile(r'[^\s@]+@[^\s@]+\.[^\s@]+')


def trim_fields(body: Mapping[str, Any]) -> Dict[str, Any]:
    """Strip surrounding whitespace from string fields; other values pass through untouched."""
    trimmed = {}
    for field in CONTACT_FIELDS:
        value = body.get(field)
        trimmed[field] = value.strip() if isinstance(value, str) else value
    return trimmed


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def validate_contact_fields(body: Mapping[str, Any], max_lengths: Mapping[str, int]) -> Tuple[str, str, str]:
    """
    Validate name, email and message from a parsed request body.

    Args:
        body: Parsed JSON object from the request
        max_lengths: Maximum length per field name

    Returns:
        Tuple of trimmed (name, email, message)

    Raises:
        ValidationError with a field-specific message; the first failing check wins
    """
    fields = trim_fields(body)

    if any(_is_missing(fields[field]) for field in CONTACT_FIELDS):
        raise ValidationError("All fields are required (name, email, message).")

    # A submitted number or list is a different failure from an empty field
    if not all(isinstance(fields[field], str) for field in CONTACT_FIELDS):
        raise ValidationError("Invalid field types.")

    for field in CONTACT_FIELDS:
        limit = max_lengths.get(field)
        if limit is not None and len(fields[field]) > limit:
            raise ValidationError(f"{field} exceeds {limit} characters.")

    if not EMAIL_PATTERN.fullmatch(fields["email"]):
        raise ValidationError("Invalid email format.")

    return fields["name"], fields["email"], fields["message"]
