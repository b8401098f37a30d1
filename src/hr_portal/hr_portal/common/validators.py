from __future__ import annotations

import re
from typing import Any

from ..core.constants import MOBILE_MAX_LENGTH, MOBILE_MIN_DIGITS, MOBILE_MIN_LENGTH
from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_MOBILE_RE = re.compile(r"[0-9+\-\s().]{%d,%d}" % (MOBILE_MIN_LENGTH, MOBILE_MAX_LENGTH))


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def is_valid_email(value: str) -> bool:
    return bool(_EMAIL_RE.fullmatch(value))


def is_valid_mobile(value: str | None) -> bool:
    """Optional field: blank passes, otherwise >= 7 digits and phone punctuation only."""
    if is_blank(value):
        return True
    trimmed = value.strip()
    if sum(ch.isdigit() for ch in trimmed) < MOBILE_MIN_DIGITS:
        return False
    return bool(_MOBILE_RE.fullmatch(trimmed))
