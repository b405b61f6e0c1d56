from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

import requests

from ..core.exceptions import (
    ApiError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    SchemaError,
    ServerError,
    SessionExpiredError,
    TransportError,
)

log = logging.getLogger(__name__)

CONFLICT_DETAIL = "HAS_ASSOCIATIONS"

_FILENAME_RE = re.compile(r'filename\*?=(?:UTF-8\'\')?"?([^";]+)"?', re.IGNORECASE)


@dataclass(frozen=True)
class ApiConfig:
    base_url: str
    timeout: Optional[float] = None


@dataclass(frozen=True)
class DownloadedFile:
    content: bytes
    content_type: str
    filename: Optional[str] = None


def build_query_params(params: Optional[Mapping[str, Any]]) -> dict:
    """Drop parameters the backend should not see (None / empty string)."""

    out: dict = {}
    for key, value in (params or {}).items():
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        out[key] = value
    return out


def _is_page(body: Mapping) -> bool:
    # paged listings carry their counters next to `data` and are kept whole
    return "totalRecords" in body or "TotalRecords" in body


class ApiGateway:
    """Single entry point to the academy REST API.

    - attaches the bearer token of the current session
    - unwraps the `{success, message, data}` envelope (paged bodies stay whole)
    - turns HTTP failures into the `ApiError` family
    """

    def __init__(
        self,
        config: ApiConfig,
        *,
        token_provider: Callable[[], Optional[str]] = lambda: None,
        on_unauthorized: Optional[Callable[[], None]] = None,
        session: Optional[requests.Session] = None,
    ):
        self._config = config
        self._token_provider = token_provider
        self._on_unauthorized = on_unauthorized
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return self._config.base_url.rstrip("/")

    def _headers(self, *, json_body: bool) -> dict:
        headers = {"Accept": "application/json"}
        if json_body:
            headers["Content-Type"] = "application/json"
        token = self._token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _send(self, method: str, path: str, *, params=None, json=None, accept: Optional[str] = None) -> requests.Response:
        url = f"{self.base_url}{path}"
        headers = self._headers(json_body=json is not None)
        if accept:
            headers["Accept"] = accept
        try:
            return self._session.request(
                method,
                url,
                params=build_query_params(params),
                json=json,
                headers=headers,
                timeout=self._config.timeout,
            )
        except requests.RequestException as e:
            log.warning("API %s %s failed: %s", method, path, e)
            raise TransportError("No se pudo conectar con el servidor") from e

    @staticmethod
    def _body(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    def _raise_for_status(self, method: str, path: str, response: requests.Response) -> None:
        status = response.status_code
        if 200 <= status < 300:
            return

        body = self._body(response)
        message = None
        details = None
        if isinstance(body, Mapping):
            message = body.get("message") or body.get("Message")
            details = body.get("details") or body.get("Details") or body.get("errors")

        log.warning("API %s %s -> %s %s", method, path, status, message or "")

        if status == 401:
            if self._on_unauthorized:
                self._on_unauthorized()
            raise SessionExpiredError("Sesión expirada", status=status, details=details)
        if status == 409 or details == CONFLICT_DETAIL:
            raise ConflictError(message or "El registro tiene datos asociados", status=status, details=details)
        if status == 403:
            raise ForbiddenError(message or "No tienes permisos para realizar esta acción", status=status, details=details)
        if status == 404:
            raise NotFoundError(message or "Recurso no encontrado", status=status, details=details)
        if status >= 500:
            raise ServerError(message or "Error interno del servidor", status=status, details=details)
        raise ApiError(message or f"Error en la petición ({status})", status=status, details=details)

    def request(self, method: str, path: str, *, params=None, json=None, raw: bool = False) -> Any:
        response = self._send(method, path, params=params, json=json)
        self._raise_for_status(method, path, response)

        body = self._body(response)
        if raw or body is None:
            return body
        if not isinstance(body, Mapping):
            raise SchemaError(f"Respuesta inesperada de {path}")
        if _is_page(body):
            return body
        if "data" in body or "Data" in body:
            return body.get("data", body.get("Data"))
        return body

    def get(self, path: str, *, params=None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, *, json=None, params=None, raw: bool = False) -> Any:
        return self.request("POST", path, json=json, params=params, raw=raw)

    def put(self, path: str, *, json=None) -> Any:
        return self.request("PUT", path, json=json)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

    def download(self, path: str, *, params=None) -> DownloadedFile:
        response = self._send("GET", path, params=params, accept="*/*")
        self._raise_for_status("GET", path, response)

        disposition = response.headers.get("Content-Disposition", "")
        match = _FILENAME_RE.search(disposition)
        return DownloadedFile(
            content=response.content,
            content_type=response.headers.get("Content-Type", "application/octet-stream"),
            filename=match.group(1) if match else None,
        )
