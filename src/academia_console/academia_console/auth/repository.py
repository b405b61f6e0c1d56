from __future__ import annotations

from typing import Optional, Protocol

from .model import Identity


class AuthRepository(Protocol):
    """Credentials exchange against the backend."""

    def login(self, *, email: str, password: str) -> Identity:
        raise NotImplementedError

    def register(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        phone: Optional[str] = None,
        role: Optional[str] = None,
    ) -> dict:
        raise NotImplementedError
