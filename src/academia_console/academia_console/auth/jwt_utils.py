from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import jwt

NAME_IDENTIFIER_CLAIM = "http://schemas.xmlsoap.org/ws/2005/05/identity/claims/nameidentifier"


def decode_claims(token: Optional[str]) -> Optional[dict]:
    """Read the JWT payload without verifying the signature.

    The console never trusts these claims for authorization; it only needs
    `exp` for the route guard and the person id as a login fallback.
    """

    if not token:
        return None
    try:
        return jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
    except jwt.PyJWTError:
        return None


def is_expired(claims: Optional[dict], *, now: Optional[datetime] = None) -> bool:
    if not claims or "exp" not in claims:
        return False
    now = now or datetime.now(timezone.utc)
    try:
        return float(claims["exp"]) < now.timestamp()
    except (TypeError, ValueError):
        return True


def person_id_from_claims(claims: Optional[dict]) -> Optional[int]:
    if not claims:
        return None
    for key in ("sub", "nameid", NAME_IDENTIFIER_CLAIM):
        value = claims.get(key)
        if value is None:
            continue
        try:
            return int(value)
        except (TypeError, ValueError):
            continue
    return None
