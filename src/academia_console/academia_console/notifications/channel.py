from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Protocol

from ..core.constants import (
    NOTIFICATION_BASE_BACKOFF_SECONDS,
    NOTIFICATION_MAX_BACKOFF_SECONDS,
    NOTIFICATION_MAX_RECONNECT_ATTEMPTS,
)
from .model import Notification

log = logging.getLogger(__name__)

ALL = "*"

NotificationCallback = Callable[[Notification], None]


class Transport(Protocol):
    """Persistent push connection to the notifications hub."""

    def start(
        self,
        *,
        token: str,
        on_message: NotificationCallback,
        on_close: Callable[[Optional[Exception]], None],
    ) -> None:
        """Open the connection; return once it is established.

        Messages arrive on `on_message` from a background thread; `on_close`
        is called exactly once when the connection ends.
        """

        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError


class _Cancellable(Protocol):
    def cancel(self) -> None:
        ...


def _timer_scheduler(delay: float, fn: Callable[[], None]) -> _Cancellable:
    timer = threading.Timer(delay, fn)
    timer.daemon = True
    timer.start()
    return timer


class NotificationChannel:
    """Fan-out of server-pushed events to topic subscribers.

    Reconnects with exponential backoff (2s, 4s, 8s, ... capped) up to a fixed
    number of attempts; any successful connection resets the counter.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        token_provider: Callable[[], Optional[str]],
        max_reconnect_attempts: int = NOTIFICATION_MAX_RECONNECT_ATTEMPTS,
        base_backoff: float = NOTIFICATION_BASE_BACKOFF_SECONDS,
        max_backoff: float = NOTIFICATION_MAX_BACKOFF_SECONDS,
        scheduler: Callable[[float, Callable[[], None]], _Cancellable] = _timer_scheduler,
    ):
        self._transport = transport
        self._token_provider = token_provider
        self._max_attempts = int(max_reconnect_attempts)
        self._base_backoff = float(base_backoff)
        self._max_backoff = float(max_backoff)
        self._scheduler = scheduler

        self._lock = threading.RLock()
        self._callbacks: dict[str, list[NotificationCallback]] = {}
        self._connected = False
        self._connecting = False
        self._stopped = False
        self._attempts = 0
        self._pending: Optional[_Cancellable] = None

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def reconnect_attempts(self) -> int:
        return self._attempts

    def connect(self) -> None:
        with self._lock:
            if self._connected or self._connecting:
                return
            token = self._token_provider()
            if not token:
                log.warning("No token available, notifications not connected")
                return
            self._connecting = True
            self._stopped = False
            self._pending = None

        try:
            self._transport.start(token=token, on_message=self._dispatch, on_close=self._handle_close)
        except Exception as e:
            log.error("Notification connection failed: %s", e)
            with self._lock:
                self._connecting = False
            self._schedule_reconnect()
            return

        with self._lock:
            self._connecting = False
            stopped = self._stopped
            if not stopped:
                self._connected = True
                self._attempts = 0
        if stopped:
            # disconnect() ran while the stream was opening
            self._transport.stop()
            log.info("Notifications stopped during connect")
            return
        log.info("Notifications connected")

    def disconnect(self) -> None:
        with self._lock:
            self._stopped = True
            pending, self._pending = self._pending, None
            was_connected = self._connected
            self._connected = False
        if pending:
            pending.cancel()
        if was_connected:
            self._transport.stop()

    def _handle_close(self, error: Optional[Exception] = None) -> None:
        with self._lock:
            self._connected = False
            stopped = self._stopped
        if stopped:
            return
        log.info("Notifications disconnected%s", f": {error}" if error else "")
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        with self._lock:
            if self._stopped or self._attempts >= self._max_attempts:
                if not self._stopped:
                    log.warning("Notifications gave up after %s attempts", self._attempts)
                return
            self._attempts += 1
            delay = min(self._base_backoff * (2 ** self._attempts), self._max_backoff)
            log.info("Reconnecting notifications in %ss (attempt %s)", delay, self._attempts)
            self._pending = self._scheduler(delay, self.connect)

    def subscribe(self, notification_type: str, callback: NotificationCallback) -> Callable[[], None]:
        """Register `callback` for one `tipo`; returns the unsubscribe function."""

        with self._lock:
            self._callbacks.setdefault(notification_type, []).append(callback)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._callbacks.get(notification_type)
                if callbacks and callback in callbacks:
                    callbacks.remove(callback)

        return unsubscribe

    def subscribe_all(self, callback: NotificationCallback) -> Callable[[], None]:
        return self.subscribe(ALL, callback)

    def _dispatch(self, notification: Notification) -> None:
        with self._lock:
            targets = list(self._callbacks.get(ALL, [])) + list(self._callbacks.get(notification.type, []))
        for callback in targets:
            try:
                callback(notification)
            except Exception:
                log.exception("Notification subscriber failed for %s", notification.type)
