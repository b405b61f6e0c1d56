"""Normalization boundary for backend payloads.

Each `api_*_repository` reads raw JSON only through `PayloadReader`, so the
camelCase / PascalCase mix of the backend is handled in a single place and an
unexpected shape fails loudly with `SchemaError` instead of leaking `None`s
into the views.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Mapping, Optional

from ..core.exceptions import SchemaError
from .datetime_utils import parse_api_datetime

_MISSING = object()


def _pascal(name: str) -> str:
    return name[:1].upper() + name[1:]


class PayloadReader:
    def __init__(self, payload: Any, entity: str):
        if not isinstance(payload, Mapping):
            raise SchemaError(f"{entity}: se esperaba un objeto, llegó {type(payload).__name__}")
        self._payload = payload
        self._entity = entity

    def raw(self, name: str, default: Any = _MISSING) -> Any:
        for key in (name, _pascal(name)):
            if key in self._payload and self._payload[key] is not None:
                return self._payload[key]
        if default is _MISSING:
            raise SchemaError(f"{self._entity}: falta el campo '{name}'")
        return default

    def has(self, name: str) -> bool:
        return self.raw(name, None) is not None

    def _fail(self, name: str, value: Any, expected: str) -> SchemaError:
        return SchemaError(f"{self._entity}: '{name}' debe ser {expected}, llegó {value!r}")

    def req_int(self, name: str) -> int:
        value = self.raw(name)
        if isinstance(value, bool):
            raise self._fail(name, value, "entero")
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str) and value.strip().lstrip("-").isdigit():
            return int(value.strip())
        raise self._fail(name, value, "entero")

    def opt_int(self, name: str) -> Optional[int]:
        return self.req_int(name) if self.has(name) else None

    def req_float(self, name: str) -> float:
        value = self.raw(name)
        if isinstance(value, bool):
            raise self._fail(name, value, "numérico")
        try:
            return float(value)
        except (TypeError, ValueError):
            raise self._fail(name, value, "numérico")

    def opt_float(self, name: str) -> Optional[float]:
        return self.req_float(name) if self.has(name) else None

    def req_str(self, name: str) -> str:
        value = self.raw(name)
        if isinstance(value, (dict, list)):
            raise self._fail(name, value, "texto")
        return str(value)

    def opt_str(self, name: str) -> Optional[str]:
        return self.req_str(name) if self.has(name) else None

    def flag(self, name: str, default: Optional[bool] = None) -> bool:
        value = self.raw(name, default if default is not None else _MISSING)
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in {"true", "false", "1", "0"}:
            return value.strip().lower() in {"true", "1"}
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        raise self._fail(name, value, "booleano")

    def opt_datetime(self, name: str) -> Optional[datetime]:
        value = self.opt_str(name)
        if value is None:
            return None
        try:
            return parse_api_datetime(value)
        except ValueError:
            raise self._fail(name, value, "fecha ISO")

    def req_datetime(self, name: str) -> datetime:
        value = self.opt_datetime(name)
        if value is None:
            raise SchemaError(f"{self._entity}: falta el campo '{name}'")
        return value

    def opt_date(self, name: str) -> Optional[date]:
        value = self.opt_datetime(name)
        return value.date() if value else None

    def opt_time(self, name: str) -> Optional[time]:
        value = self.opt_str(name)
        if value is None:
            return None
        parts = value.strip().split(":")
        try:
            hours, minutes = int(parts[0]), int(parts[1])
            seconds = int(float(parts[2])) if len(parts) > 2 and parts[2] else 0
            return time(hour=hours, minute=minutes, second=seconds)
        except (IndexError, ValueError):
            raise self._fail(name, value, "hora HH:MM[:SS]")

    def opt_reader(self, name: str) -> Optional["PayloadReader"]:
        value = self.raw(name, None)
        if value is None:
            return None
        return PayloadReader(value, f"{self._entity}.{name}")

    def items(self, name: str, *, default: Any = _MISSING) -> list:
        value = self.raw(name, default)
        if not isinstance(value, list):
            raise self._fail(name, value, "lista")
        return value

    def mapping(self, name: str) -> Optional[dict]:
        value = self.raw(name, None)
        if value is None:
            return None
        if not isinstance(value, Mapping):
            raise self._fail(name, value, "objeto")
        return dict(value)


def require_list(payload: Any, entity: str) -> list:
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise SchemaError(f"{entity}: se esperaba una lista, llegó {type(payload).__name__}")
    return payload
