"""Coercion of submitted form / query values.

Invalid numbers or dates become `ValidationError` with the field label, so
controllers can flash them like any other validation failure.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional

from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.exceptions import ValidationError
from .datetime_utils import parse_iso_date

_TRUE = {"1", "true", "on", "yes", "si", "sí"}


def _text(data: Mapping[str, Any], name: str) -> Optional[str]:
    value = data.get(name)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def opt_int(data: Mapping[str, Any], name: str, label: str) -> Optional[int]:
    value = _text(data, name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{label} debe ser un número entero")


def opt_float(data: Mapping[str, Any], name: str, label: str) -> Optional[float]:
    value = _text(data, name)
    if value is None:
        return None
    try:
        return float(value.replace(",", "."))
    except ValueError:
        raise ValidationError(f"{label} debe ser numérico")


def opt_date(data: Mapping[str, Any], name: str, label: str) -> Optional[date]:
    value = _text(data, name)
    if value is None:
        return None
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{label} debe tener el formato AAAA-MM-DD")


def opt_text(data: Mapping[str, Any], name: str) -> Optional[str]:
    return _text(data, name)


def flag(data: Mapping[str, Any], name: str, default: bool = False) -> bool:
    value = _text(data, name)
    if value is None:
        return default
    return value.lower() in _TRUE


def opt_flag(data: Mapping[str, Any], name: str) -> Optional[bool]:
    """Tri-state filter: empty means "any"."""

    value = _text(data, name)
    if value is None:
        return None
    return value.lower() in _TRUE


def page_args(data: Mapping[str, Any], *, default_size: int = DEFAULT_PAGE_SIZE) -> tuple[int, int]:
    try:
        page = max(1, int(data.get("page") or 1))
    except (TypeError, ValueError):
        page = 1
    try:
        size = int(data.get("page_size") or default_size)
    except (TypeError, ValueError):
        size = default_size
    return page, min(max(1, size), max(MAX_PAGE_SIZE, default_size))
