from __future__ import annotations

from typing import Optional

from ..common.validators import optional_text, require_max_length, require_min_length, require_non_empty
from ..core.constants import MAX_NAME_LENGTH, MIN_PASSWORD_LENGTH
from ..core.exceptions import AuthenticationError
from .model import Identity
from .repository import AuthRepository


class AuthService:
    """Use case: authenticate a person (login) and self-registration."""

    def __init__(self, auth: AuthRepository):
        self._auth = auth

    def authenticate(self, email: str, password: str) -> Identity:
        if not (email or "").strip() or not password:
            raise AuthenticationError("Ingrese correo y contraseña")
        return self._auth.login(email=email.strip(), password=password)

    def register(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        phone: Optional[str] = None,
    ) -> dict:
        first_name = require_max_length(require_non_empty(first_name, "Nombre"), "Nombre", MAX_NAME_LENGTH)
        last_name = require_max_length(require_non_empty(last_name, "Apellido"), "Apellido", MAX_NAME_LENGTH)
        email = require_non_empty(email, "Correo")
        require_min_length(password, "Contraseña", MIN_PASSWORD_LENGTH)

        return self._auth.register(
            first_name=first_name,
            last_name=last_name,
            email=email,
            password=password,
            phone=optional_text(phone),
        )
