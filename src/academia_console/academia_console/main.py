from __future__ import annotations

import importlib
import logging
from types import ModuleType
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .api.gateway import ApiConfig
from .attendance.controller import register as register_attendance
from .audit.controller import register as register_audit
from .auth.context import ApplicationContext, ContextRegistry
from .auth.controller import register as register_auth
from .auth.token_store import FlaskSessionTokenStore
from .billing.controller import register as register_billing
from .classes.controller import register as register_classes
from .common.datetime_utils import format_display_date
from .core.constants import CONTEXT_IDLE_TTL_SECONDS
from .dashboard.controller import register as register_dashboard
from .enrollments.controller import register as register_enrollments
from .notifications.channel import NotificationChannel
from .notifications.signalr import SignalRSseTransport, hub_url_for
from .people.controller import register as register_people
from .reports.controller import register as register_reports
from .styles.controller import register as register_styles


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def build_registry(settings: ModuleType) -> ContextRegistry:
    api_config = ApiConfig(
        base_url=str(getattr(settings, "API_BASE_URL")),
        timeout=getattr(settings, "API_TIMEOUT_SECONDS", None),
    )
    channel_factory = None
    if bool(getattr(settings, "NOTIFICATIONS_ENABLED", False)):
        hub_url = hub_url_for(api_config.base_url, getattr(settings, "NOTIFICATIONS_HUB_PATH", "/hubs/notificaciones"))

        def channel_factory(token_provider):
            return NotificationChannel(SignalRSseTransport(hub_url), token_provider=token_provider)

    toggle_delay = float(getattr(settings, "TOGGLE_FEEDBACK_DELAY_SECONDS", 0.3))
    idle_ttl = float(getattr(settings, "CONTEXT_IDLE_TTL_SECONDS", CONTEXT_IDLE_TTL_SECONDS))
    store = FlaskSessionTokenStore()

    def factory() -> ApplicationContext:
        return ApplicationContext(api_config, store, channel_factory=channel_factory, toggle_delay=toggle_delay)

    return ContextRegistry(factory, idle_ttl=idle_ttl)


def create_app(registry: Optional[ContextRegistry] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__, template_folder="../../../templates", static_folder="../../../static")

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["SESSION_COOKIE_NAME"] = getattr(settings, "SESSION_COOKIE_NAME", "academia_session")
    app.config["API_BASE_URL"] = getattr(settings, "API_BASE_URL")

    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    if app.config["DEBUG"]:
        print("[academia-console] settings=", settings_module, " api=", app.config["API_BASE_URL"])

    app.jinja_env.filters["display_date"] = format_display_date
    app.jinja_env.filters["display_datetime"] = lambda v: format_display_date(v, with_time=True)

    register_auth(app, registry or build_registry(settings))
    register_dashboard(app)
    register_people(app)
    register_classes(app)
    register_enrollments(app)
    register_attendance(app)
    register_billing(app)
    register_styles(app)
    register_audit(app)
    register_reports(app)

    return app
