"""SignalR JSON hub client over the server-sent-events transport.

Only what the console needs: negotiate, open the event stream, send the
protocol handshake and deliver `Notificacion` invocations.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Callable, Iterable, Iterator, Optional

import requests

from ..core.exceptions import TransportError
from .model import Notification

log = logging.getLogger(__name__)

RECORD_SEPARATOR = "\x1e"
HUB_METHOD = "Notificacion"

MSG_INVOCATION = 1
MSG_PING = 6
MSG_CLOSE = 7


def hub_url_for(api_base_url: str, hub_path: str) -> str:
    """The hub is served next to the API, not under its `/api` prefix."""

    base = api_base_url.rstrip("/")
    if base.endswith("/api"):
        base = base[: -len("/api")]
    return f"{base}/{hub_path.lstrip('/')}"


def iter_sse_data(lines: Iterable[str]) -> Iterator[str]:
    """Group `data:` lines of an event stream into one payload per event."""

    buffer: list[str] = []
    for line in lines:
        if line is None:
            continue
        if line == "":
            if buffer:
                yield "\n".join(buffer)
                buffer = []
            continue
        if line.startswith(":"):
            continue
        if line.startswith("data:"):
            buffer.append(line[5:].lstrip(" "))
    if buffer:
        yield "\n".join(buffer)


def split_records(data: str) -> list[dict]:
    """Split a payload into the `\\x1e`-terminated JSON hub messages it holds."""

    messages = []
    for chunk in data.split(RECORD_SEPARATOR):
        chunk = chunk.strip()
        if chunk:
            messages.append(json.loads(chunk))
    return messages


class SignalRSseTransport:
    def __init__(self, hub_url: str, *, session_factory: Callable[[], requests.Session] = requests.Session):
        self._hub_url = hub_url.rstrip("/")
        self._session_factory = session_factory
        self._session: Optional[requests.Session] = None
        self._response: Optional[requests.Response] = None
        self._thread: Optional[threading.Thread] = None
        self._stopping = threading.Event()

    def _negotiate(self, session: requests.Session, token: str) -> str:
        resp = session.post(
            f"{self._hub_url}/negotiate",
            params={"negotiateVersion": 1},
            headers={"Authorization": f"Bearer {token}"},
        )
        resp.raise_for_status()
        body = resp.json()
        connection_token = body.get("connectionToken") or body.get("connectionId")
        if not connection_token:
            raise TransportError("Negociación sin connectionToken")
        transports = [t.get("transport") for t in body.get("availableTransports", [])]
        if transports and "ServerSentEvents" not in transports:
            raise TransportError("El hub no ofrece ServerSentEvents")
        return connection_token

    def start(self, *, token: str, on_message, on_close) -> None:
        self._stopping.clear()
        session = self._session_factory()
        try:
            connection_token = self._negotiate(session, token)
            auth = {"Authorization": f"Bearer {token}"}

            response = session.get(
                self._hub_url,
                params={"id": connection_token},
                headers={**auth, "Accept": "text/event-stream"},
                stream=True,
            )
            response.raise_for_status()

            handshake = json.dumps({"protocol": "json", "version": 1}) + RECORD_SEPARATOR
            session.post(
                self._hub_url,
                params={"id": connection_token},
                data=handshake.encode("utf-8"),
                headers={**auth, "Content-Type": "text/plain;charset=UTF-8"},
            ).raise_for_status()
        except requests.RequestException as e:
            session.close()
            raise TransportError(f"No se pudo conectar al hub de notificaciones: {e}") from e

        self._session = session
        self._response = response
        self._thread = threading.Thread(
            target=self._read_loop,
            args=(response, on_message, on_close),
            name="academia-notifications",
            daemon=True,
        )
        self._thread.start()

    def _read_loop(self, response: requests.Response, on_message, on_close) -> None:
        error: Optional[Exception] = None
        try:
            for data in iter_sse_data(response.iter_lines(decode_unicode=True)):
                if self._handle_payload(data, on_message):
                    break
        except Exception as e:
            if not self._stopping.is_set():
                error = e
        finally:
            response.close()
            on_close(error)

    def _handle_payload(self, data: str, on_message) -> bool:
        """Process one SSE event; return True when the server closed the hub."""

        for message in split_records(data):
            if "error" in message and "type" not in message:
                raise TransportError(f"Handshake rechazado: {message['error']}")
            kind = message.get("type")
            if kind == MSG_INVOCATION and message.get("target") == HUB_METHOD:
                for argument in message.get("arguments") or []:
                    on_message(Notification.from_payload(argument))
            elif kind == MSG_CLOSE:
                if message.get("error"):
                    log.warning("Hub closed connection: %s", message["error"])
                return True
            elif kind == MSG_PING or kind is None:
                continue
        return False

    def stop(self) -> None:
        self._stopping.set()
        if self._response is not None:
            self._response.close()
            self._response = None
        if self._session is not None:
            self._session.close()
            self._session = None
