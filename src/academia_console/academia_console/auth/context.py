"""Per-browser application state.

One `ApplicationContext` per signed-in console: it owns the API gateway,
the services built on it, the notification channel and the attendance page
workflow. Nothing here is a module-level singleton; the Flask app keeps a
`ContextRegistry` and the auth controller looks the context up per request.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

import requests

from ..api.gateway import ApiConfig, ApiGateway
from ..attendance.workflow import AttendanceWorkflow
from ..container import Container, build_container
from ..core.constants import CONTEXT_IDLE_TTL_SECONDS, TOGGLE_FEEDBACK_DELAY_SECONDS
from ..core.enums import Role
from ..notifications.channel import ALL, NotificationChannel
from ..notifications.model import Notification
from .jwt_utils import decode_claims, is_expired
from .model import Identity
from .token_store import TokenStore

log = logging.getLogger(__name__)

ChannelFactory = Callable[[Callable[[], Optional[str]]], NotificationChannel]


class ApplicationContext:
    def __init__(
        self,
        api_config: ApiConfig,
        store: TokenStore,
        *,
        channel_factory: Optional[ChannelFactory] = None,
        toggle_delay: float = TOGGLE_FEEDBACK_DELAY_SECONDS,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        gateway: Optional[ApiGateway] = None,
        http_session: Optional[requests.Session] = None,
    ):
        self._store = store
        self._channel_factory = channel_factory
        self._toggle_delay = toggle_delay
        self._clock = clock
        self._lock = threading.RLock()

        self._identity: Optional[Identity] = None
        self._session_expired = False
        self.gateway = gateway or ApiGateway(
            api_config,
            token_provider=self.token,
            on_unauthorized=self._on_unauthorized,
            session=http_session,
        )
        self.services: Container = build_container(gateway=self.gateway)
        self.channel: Optional[NotificationChannel] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._workflow: Optional[AttendanceWorkflow] = None
        self._revisions: Dict[str, int] = {}

    @property
    def store(self) -> TokenStore:
        return self._store

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    def token(self) -> Optional[str]:
        identity = self._identity
        return identity.token if identity else None

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None

    def has_role(self, role: Role) -> bool:
        return self._identity is not None and self._identity.role == Role(role)

    @property
    def is_admin(self) -> bool:
        return bool(self._identity and self._identity.is_admin)

    @property
    def is_teacher(self) -> bool:
        return bool(self._identity and self._identity.is_teacher)

    @property
    def session_expired(self) -> bool:
        return self._session_expired

    def _on_unauthorized(self) -> None:
        # the gateway may run outside a request (push-triggered reloads); the
        # request that notices the flag performs the teardown
        self._session_expired = True

    def hydrate(self) -> Optional[Identity]:
        """Restore the identity from the store; expired or unreadable state is wiped."""

        stored = self._store.load()
        if stored is None:
            if self._identity is not None:
                self.teardown()
            return None

        token, serialized = stored
        try:
            identity = Identity.from_dict(json.loads(serialized))
        except (ValueError, KeyError, TypeError) as e:
            log.warning("Discarding unreadable stored profile: %s", e)
            self.teardown()
            return None

        if is_expired(decode_claims(token), now=self._clock()):
            log.info("Stored token expired, ending session for %s", identity.email)
            self.teardown()
            return None

        with self._lock:
            self._identity = identity
            self._session_expired = False
        self._start_notifications()
        return identity

    def login(self, email: str, password: str) -> Identity:
        identity = self.services.auth_service.authenticate(email, password)
        self._store.save(identity)
        with self._lock:
            self._identity = identity
            self._session_expired = False
        log.info("Signed in %s (%s)", identity.email, identity.role.value)
        self._start_notifications()
        return identity

    def teardown(self) -> None:
        """Logout: forget the identity and wipe the persisted state."""

        identity = self._identity
        self.release()
        self._store.clear()
        if identity is not None:
            log.info("Session ended for %s", identity.email)

    def release(self) -> None:
        """Stop background work and drop in-memory state; the store is left alone."""

        with self._lock:
            self._identity = None
            channel, self.channel = self.channel, None
            unsubscribe, self._unsubscribe = self._unsubscribe, None
            workflow, self._workflow = self._workflow, None
            self._revisions.clear()
        if workflow is not None:
            workflow.detach()
        if unsubscribe is not None:
            unsubscribe()
        if channel is not None:
            channel.disconnect()

    def _start_notifications(self) -> None:
        if self._channel_factory is None:
            return
        with self._lock:
            if self.channel is not None:
                return
            channel = self._channel_factory(self.token)
            self.channel = channel
            self._unsubscribe = channel.subscribe_all(self._bump_revision)
            workflow = self._workflow
        if workflow is not None:
            workflow.attach(channel)
        channel.connect()

    def _bump_revision(self, notification: Notification) -> None:
        with self._lock:
            self._revisions[notification.type] = self._revisions.get(notification.type, 0) + 1
            self._revisions[ALL] = self._revisions.get(ALL, 0) + 1

    def revision(self, topic: str = ALL) -> int:
        """How many pushes of `topic` arrived; pages poll it to know when to reload."""

        with self._lock:
            return self._revisions.get(topic, 0)

    @property
    def attendance(self) -> AttendanceWorkflow:
        with self._lock:
            if self._workflow is None:
                self._workflow = AttendanceWorkflow(
                    self.services.attendance_service,
                    self.services.class_service,
                    identity_provider=lambda: self._identity,
                    reports=self.services.report_service,
                    enrollments=self.services.enrollment_service,
                    toggle_delay=self._toggle_delay,
                )
                if self.channel is not None:
                    self._workflow.attach(self.channel)
            return self._workflow


class ContextRegistry:
    """Browser console key -> `ApplicationContext`.

    Contexts idle for longer than `idle_ttl` seconds are released on the next
    lookup; a browser that comes back later gets a fresh context hydrated from
    its session cookie.
    """

    def __init__(
        self,
        factory: Callable[[], ApplicationContext],
        *,
        idle_ttl: float = CONTEXT_IDLE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._factory = factory
        self._idle_ttl = idle_ttl
        self._clock = clock
        self._contexts: Dict[str, ApplicationContext] = {}
        self._last_access: Dict[str, float] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> ApplicationContext:
        now = self._clock()
        with self._lock:
            idle = [k for k, seen in self._last_access.items() if k != key and now - seen > self._idle_ttl]
            evicted = [self._contexts.pop(k) for k in idle]
            for k in idle:
                del self._last_access[k]
            ctx = self._contexts.get(key)
            if ctx is None:
                ctx = self._factory()
                self._contexts[key] = ctx
            self._last_access[key] = now
        if evicted:
            log.info("Released %d idle console contexts", len(evicted))
        for stale in evicted:
            stale.release()
        return ctx

    def discard(self, key: str) -> None:
        with self._lock:
            ctx = self._contexts.pop(key, None)
            self._last_access.pop(key, None)
        if ctx is not None:
            ctx.release()

    def __len__(self) -> int:
        with self._lock:
            return len(self._contexts)
