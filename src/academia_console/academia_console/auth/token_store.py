from __future__ import annotations

import json
from typing import Optional, Protocol

from flask import session

from .model import Identity

TOKEN_KEY = "academia_token"
USER_KEY = "academia_user"
SIDEBAR_KEY = "sidebar_collapsed"


class TokenStore(Protocol):
    """Where the bearer token and the serialized profile are persisted."""

    def load(self) -> Optional[tuple[str, str]]:
        """Return `(token, serialized_user)` or None."""

        raise NotImplementedError

    def save(self, identity: Identity) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def get_sidebar_collapsed(self) -> bool:
        raise NotImplementedError

    def set_sidebar_collapsed(self, value: bool) -> None:
        raise NotImplementedError


class FlaskSessionTokenStore(TokenStore):
    """Persist the session in Flask's signed cookie session.

    The same token is mirrored in a plain `academia_token` cookie by the auth
    controller so the route guard can read it without the session.
    """

    def load(self) -> Optional[tuple[str, str]]:
        token = session.get(TOKEN_KEY)
        user = session.get(USER_KEY)
        if not token or not user:
            return None
        return str(token), str(user)

    def save(self, identity: Identity) -> None:
        session[TOKEN_KEY] = identity.token
        session[USER_KEY] = json.dumps(identity.to_dict())

    def clear(self) -> None:
        session.pop(TOKEN_KEY, None)
        session.pop(USER_KEY, None)

    def get_sidebar_collapsed(self) -> bool:
        return bool(session.get(SIDEBAR_KEY, False))

    def set_sidebar_collapsed(self, value: bool) -> None:
        session[SIDEBAR_KEY] = bool(value)
