from __future__ import annotations

from typing import Optional

from ..api import endpoints
from ..api.gateway import ApiGateway
from ..common.payload import PayloadReader
from ..core.enums import Role
from ..core.exceptions import ApiError, AuthenticationError, SchemaError
from .jwt_utils import decode_claims, person_id_from_claims
from .model import Identity
from .repository import AuthRepository


def identity_from_login(payload) -> Identity:
    r = PayloadReader(payload, "LoginResponse")
    token = r.req_str("token")
    person_id = r.opt_int("idPersona")
    if person_id is None:
        person_id = person_id_from_claims(decode_claims(token))

    try:
        role = Role(r.req_str("rol").strip().lower())
    except ValueError:
        raise SchemaError(f"LoginResponse: rol desconocido {r.raw('rol')!r}")

    return Identity(
        token=token,
        first_name=r.opt_str("nombre") or "",
        last_name=r.opt_str("apellido") or "",
        email=r.opt_str("email") or "",
        role=role,
        person_id=person_id,
        is_teacher=r.flag("esProfesor", default=role == Role.TEACHER),
        is_admin=r.flag("esAdmin", default=role == Role.ADMIN),
    )


class ApiAuthRepository(AuthRepository):
    def __init__(self, gateway: ApiGateway):
        self._gateway = gateway

    def login(self, *, email: str, password: str) -> Identity:
        try:
            payload = self._gateway.post(endpoints.AUTH_LOGIN, json={"email": email, "password": password}, raw=True)
        except ApiError as e:
            # The login endpoint answers bad credentials with 400/401.
            if e.status in (400, 401):
                raise AuthenticationError(str(e) if e.status == 400 else "Credenciales incorrectas") from e
            raise
        return identity_from_login(payload)

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
        body = {
            "nombre": first_name,
            "apellido": last_name,
            "correo": email,
            "contraseña": password,
            "telefono": phone,
            "rol": role,
        }
        return self._gateway.post(endpoints.AUTH_REGISTER, json={k: v for k, v in body.items() if v is not None}, raw=True) or {}
