from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..common.payload import PayloadReader


@dataclass(frozen=True)
class Notification:
    """Server-pushed envelope `{tipo, datos, timestamp}`."""

    type: str
    data: Any = None
    timestamp: Optional[datetime] = None
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_payload(cls, payload: Any) -> "Notification":
        r = PayloadReader(payload, "Notificacion")
        return cls(
            type=r.req_str("tipo"),
            data=r.raw("datos", None),
            timestamp=r.opt_datetime("timestamp"),
            raw=dict(payload),
        )
