"""Shared utilities used across the booking service."""

import re
from typing import Any


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("082 123 4567")
        '0821234567'
        >>> normalize_phone("+27 (82) 123-4567")
        '+27821234567'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def full_name(first_name: str, last_name: str) -> str:
    """Join first and last name, tolerating blanks on either side."""
    return f"{first_name} {last_name}".strip()


def date_part(timestamp: str) -> str:
    """Return the calendar date of an ISO 8601 timestamp ("2025-05-01T09:00Z" -> "2025-05-01")."""
    return timestamp.split("T")[0]


def dig(payload: Any, *keys: str) -> Any:
    """Walk nested dicts, returning None as soon as a level is missing or not a dict."""
    current = payload
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current
