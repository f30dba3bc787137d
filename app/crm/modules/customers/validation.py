"""
Request-body validation for customer payloads.

Rules are plain data: `FIELD_RULES` maps each accepted JSON key to its
column, whether it is required on create, its max length and an optional
syntax check. `validate_customer_payload` applies them and returns a dict
keyed by column name, ready for the repository.
"""

from __future__ import annotations

import re
from typing import Any

from email_validator import EmailNotValidError, validate_email

from app.crm.errors import ValidationError

FIELD_RULES: dict[str, dict[str, Any]] = {
    "firstName": {"column": "first_name", "required": True, "max_length": 255},
    "lastName": {"column": "last_name", "required": True, "max_length": 255},
    "email": {"column": "email", "required": True, "max_length": 255, "kind": "email"},
    "phoneNumber": {"column": "phone_number", "required": True, "max_length": 50, "kind": "phone"},
    "address": {"column": "address", "required": False, "max_length": None},
    "city": {"column": "city", "required": False, "max_length": 100},
    "state": {"column": "state", "required": False, "max_length": 100},
    "country": {"column": "country", "required": False, "max_length": 100},
}

# A number is an optional leading "+" then digit groups split by single
# separators. A group is plain digits or a parenthesised area code that may be
# followed directly by digits: "(555)123".
_PHONE_SEPARATORS = re.compile(r"[ .\-]")
_PHONE_GROUP_RE = re.compile(r"\(\d+\)\d*|\d+")
_PHONE_MIN_DIGITS = 7
_PHONE_MAX_DIGITS = 15  # E.164


def is_valid_phone(value: str) -> bool:
    body = value[1:] if value.startswith("+") else value
    groups = _PHONE_SEPARATORS.split(body)
    for i, group in enumerate(groups):
        if not _PHONE_GROUP_RE.fullmatch(group):
            return False
        # Only the leading (country code) group may be a single digit.
        if i > 0 and sum(ch.isdigit() for ch in group) < 2:
            return False
    digits = sum(ch.isdigit() for ch in body)
    return _PHONE_MIN_DIGITS <= digits <= _PHONE_MAX_DIGITS


def is_valid_email(value: str) -> bool:
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def _check_kind(kind: str | None, value: str) -> str | None:
    if kind == "email" and not is_valid_email(value):
        return "Must be a valid email address."
    if kind == "phone" and not is_valid_phone(value):
        return "Must be a valid phone number."
    return None


def validate_customer_payload(payload: Any, *, partial: bool = False) -> dict[str, Any]:
    """
    Validate a create (partial=False) or update (partial=True) payload.

    Returns {column: value} for the supplied fields only. Raises
    ValidationError with a {field: message} map on any failure.
    """
    if not isinstance(payload, dict):
        raise ValidationError(message="Request body must be a JSON object")

    errors: dict[str, str] = {}
    out: dict[str, Any] = {}

    for key in payload:
        if key not in FIELD_RULES:
            errors[key] = "Unknown field."

    for key, rule in FIELD_RULES.items():
        if key not in payload:
            if rule["required"] and not partial:
                errors[key] = "This field is required."
            continue

        raw = payload[key]
        if raw is None:
            if rule["required"]:
                errors[key] = "This field may not be null."
            else:
                out[rule["column"]] = None
            continue
        if not isinstance(raw, str):
            errors[key] = "Must be a string."
            continue

        value = raw.strip()
        if not value:
            if rule["required"]:
                errors[key] = "This field may not be blank."
            else:
                out[rule["column"]] = None
            continue

        max_length = rule["max_length"]
        if max_length is not None and len(value) > max_length:
            errors[key] = f"Must be at most {max_length} characters."
            continue

        problem = _check_kind(rule.get("kind"), value)
        if problem:
            errors[key] = problem
            continue

        out[rule["column"]] = value

    if errors:
        raise ValidationError(errors)
    return out
