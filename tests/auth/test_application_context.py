from __future__ import annotations

import json
from datetime import timedelta

import jwt
import pytest

from conftest import admin_identity
from src.academia_console.academia_console.api.gateway import ApiConfig
from src.academia_console.academia_console.auth.context import ApplicationContext, ContextRegistry
from src.academia_console.academia_console.notifications.channel import ALL, NotificationChannel
from src.academia_console.academia_console.notifications.model import Notification


class InMemoryTokenStore:
    def __init__(self, token=None, user=None):
        self.token = token
        self.user = user
        self.sidebar = False

    def load(self):
        if not self.token or not self.user:
            return None
        return self.token, self.user

    def save(self, identity):
        self.token = identity.token
        self.user = json.dumps(identity.to_dict())

    def clear(self):
        self.token = None
        self.user = None

    def get_sidebar_collapsed(self):
        return self.sidebar

    def set_sidebar_collapsed(self, value):
        self.sidebar = bool(value)


class RecordingTransport:
    def __init__(self):
        self.on_message = None
        self.stopped = False

    def start(self, *, token, on_message, on_close):
        self.on_message = on_message

    def stop(self):
        self.stopped = True


def _token(exp) -> str:
    return jwt.encode({"sub": "1", "exp": int(exp.timestamp())}, "console-test-signing-key-0123456789", algorithm="HS256")


@pytest.fixture
def transport():
    return RecordingTransport()


def _context(store, transport, fixed_now):
    return ApplicationContext(
        ApiConfig(base_url="http://backend.test/api"),
        store,
        channel_factory=lambda token_provider: NotificationChannel(transport, token_provider=token_provider),
        toggle_delay=0,
        clock=lambda: fixed_now,
    )


def _stored(token):
    identity = admin_identity(token=token)
    return InMemoryTokenStore(token=token, user=json.dumps(identity.to_dict()))


def test_hydrate_restores_identity_and_connects_notifications(transport, fixed_now):
    store = _stored(_token(fixed_now + timedelta(days=1)))
    ctx = _context(store, transport, fixed_now)

    identity = ctx.hydrate()

    assert identity is not None and ctx.is_admin
    assert ctx.token() == store.token
    assert ctx.channel is not None and ctx.channel.is_connected


def test_hydrate_with_expired_token_clears_everything(transport, fixed_now):
    store = _stored(_token(fixed_now - timedelta(minutes=5)))
    ctx = _context(store, transport, fixed_now)

    assert ctx.hydrate() is None
    assert store.load() is None
    assert ctx.is_authenticated is False
    assert ctx.channel is None


def test_hydrate_discards_unreadable_profile(transport, fixed_now):
    store = InMemoryTokenStore(token=_token(fixed_now + timedelta(days=1)), user="{not json")
    ctx = _context(store, transport, fixed_now)

    assert ctx.hydrate() is None
    assert store.token is None


def test_pushes_bump_per_topic_revisions(transport, fixed_now):
    ctx = _context(_stored(_token(fixed_now + timedelta(days=1))), transport, fixed_now)
    ctx.hydrate()

    transport.on_message(Notification(type="nuevo_cobro"))
    transport.on_message(Notification(type="nuevo_cobro"))
    transport.on_message(Notification(type="nueva_asistencia"))

    assert ctx.revision("nuevo_cobro") == 2
    assert ctx.revision("nueva_asistencia") == 1
    assert ctx.revision(ALL) == 3
    assert ctx.revision("cambio_clase") == 0


def test_teardown_detaches_and_disconnects(transport, fixed_now):
    store = _stored(_token(fixed_now + timedelta(days=1)))
    ctx = _context(store, transport, fixed_now)
    ctx.hydrate()
    workflow = ctx.attendance
    calls = []
    workflow.reload_active_view = lambda: calls.append(True)

    ctx.teardown()
    transport.on_message(Notification(type="nueva_asistencia"))

    assert transport.stopped is True
    assert store.load() is None
    assert ctx.identity is None
    assert ctx.revision() == 0
    assert calls == []


class StubContext:
    def __init__(self):
        self.released = False

    def release(self):
        self.released = True


def test_registry_keeps_one_context_per_browser_key():
    registry = ContextRegistry(StubContext)
    first = registry.get("a")

    assert registry.get("a") is first
    assert registry.get("b") is not first
    registry.discard("a")
    assert first.released is True
    assert len(registry) == 1
    assert registry.get("a") is not first


def test_registry_releases_idle_contexts_on_lookup():
    now = [0.0]
    registry = ContextRegistry(StubContext, idle_ttl=60, clock=lambda: now[0])
    idle = registry.get("idle")
    now[0] = 30.0
    busy = registry.get("busy")

    now[0] = 75.0
    registry.get("busy")

    assert idle.released is True
    assert busy.released is False
    assert len(registry) == 1


def test_release_keeps_the_persisted_session(transport, fixed_now):
    store = _stored(_token(fixed_now + timedelta(days=1)))
    ctx = _context(store, transport, fixed_now)
    ctx.hydrate()

    ctx.release()

    assert transport.stopped is True
    assert ctx.identity is None
    assert store.load() is not None
    assert ctx.hydrate() is not None
