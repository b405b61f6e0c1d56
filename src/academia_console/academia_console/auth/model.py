from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Identity:
    """Authenticated person as returned by `/Auth/login`.

    Note: the token is the only credential; role checks here are for UI
    gating only, the backend enforces authorization again.
    """

    token: str
    first_name: str
    last_name: str
    email: str
    role: Role
    person_id: Optional[int]
    is_teacher: bool = False
    is_admin: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict:
        d = asdict(self)
        d["role"] = self.role.value
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "Identity":
        return cls(
            token=str(d["token"]),
            first_name=str(d.get("first_name") or ""),
            last_name=str(d.get("last_name") or ""),
            email=str(d.get("email") or ""),
            role=Role(d["role"]),
            person_id=int(d["person_id"]) if d.get("person_id") is not None else None,
            is_teacher=bool(d.get("is_teacher")),
            is_admin=bool(d.get("is_admin")),
        )
