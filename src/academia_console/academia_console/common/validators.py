from __future__ import annotations

from typing import Iterable, Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} es obligatorio")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} debe tener al menos {min_len} caracteres")
    return value


def require_max_length(value: str, field_name: str, max_len: int) -> str:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} no puede superar {max_len} caracteres")
    return value


def require_range(value: float, field_name: str, low: float, high: float) -> float:
    if value is None or value < low or value > high:
        raise ValidationError(f"{field_name} debe estar entre {low} y {high}")
    return value


def require_positive_id(value: Optional[int], field_name: str) -> int:
    try:
        v = int(value or 0)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} no es válido")
    if v <= 0:
        raise ValidationError(f"{field_name} no es válido")
    return v


def require_choice(value: str, field_name: str, choices: Iterable[str]) -> str:
    allowed = list(choices)
    if value not in allowed:
        raise ValidationError(f"{field_name} debe ser uno de: {', '.join(allowed)}")
    return value


def optional_text(value: Optional[str]) -> Optional[str]:
    v = (value or "").strip()
    return v or None
