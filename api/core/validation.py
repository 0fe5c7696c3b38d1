"""
Small helpers shared by the per-feature validators.
"""

from __future__ import annotations

from typing import Any

from .errors import ValidationFailure


def clean_text(value: Any) -> str:
    """
    Trim a loosely-typed body value. None becomes "".
    """
    if value is None:
        return ""
    return str(value).strip()


def optional_text(value: Any) -> str | None:
    """
    Trimmed text, or None when blank.
    """
    text = clean_text(value)
    return text or None


def require(**fields: Any) -> None:
    """
    Raise ValidationFailure naming every field that is None or blank.

    Numbers are checked for presence only, so 0 is a real value.
    """
    missing = []
    for name, value in fields.items():
        if value is None:
            missing.append(name)
        elif isinstance(value, str) and not value.strip():
            missing.append(name)
    if missing:
        raise ValidationFailure(missing)
