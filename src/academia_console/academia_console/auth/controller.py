from __future__ import annotations

import uuid
from datetime import timedelta
from functools import wraps
from typing import Optional

from flask import Flask, current_app, flash, g, jsonify, redirect, render_template, request, session, url_for

from ..core.constants import TOKEN_COOKIE_NAME, TOKEN_MAX_AGE_DAYS
from ..core.enums import Role
from ..core.exceptions import ApiError, AuthenticationError, SessionExpiredError, ValidationError
from ..notifications.channel import ALL
from .context import ApplicationContext, ContextRegistry
from .jwt_utils import decode_claims, is_expired

REGISTRY_KEY = "academia_contexts"
CONSOLE_KEY = "console_key"

PUBLIC_ENDPOINTS = {"login", "register", "static"}

NAV_ITEMS = (
    ("Dashboard", "dashboard", None),
    ("Personas", "people_list", Role.ADMIN),
    ("Cobros", "billing_list", Role.ADMIN),
    ("Clases", "classes_list", None),
    ("Asistencias", "attendance_page", None),
    ("Inscripciones", "enrollments_list", Role.ADMIN),
    ("Estilos de Danza", "styles_list", Role.ADMIN),
    ("Auditoría", "audit_list", Role.ADMIN),
)


def _registry() -> ContextRegistry:
    return current_app.extensions[REGISTRY_KEY]


def _console_key(create: bool = True) -> Optional[str]:
    key = session.get(CONSOLE_KEY)
    if key is None and create:
        key = uuid.uuid4().hex
        session[CONSOLE_KEY] = key
    return key


def current_context() -> ApplicationContext:
    ctx = getattr(g, "academia_context", None)
    if ctx is None:
        ctx = _registry().get(_console_key())
        g.academia_context = ctx
    return ctx


def release_anonymous_context() -> None:
    """Drop the context this request minted if it did not end signed in."""

    ctx = g.get("academia_context")
    if ctx is not None and ctx.is_authenticated:
        return
    g.pop("academia_context", None)
    key = session.pop(CONSOLE_KEY, None)
    if key is not None:
        _registry().discard(key)


def end_session(message: Optional[str] = "Sesión expirada. Inicie sesión nuevamente."):
    """Tear down the browser's context and send it to the login page."""

    key = _console_key(create=False)
    current_context().teardown()
    if key is not None:
        _registry().discard(key)
    session.pop(CONSOLE_KEY, None)
    if message:
        flash(message, "warning")
    resp = redirect(url_for("login"))
    resp.delete_cookie(TOKEN_COOKIE_NAME)
    return resp


def forbidden():
    return render_template("403.html", current_user=g.get("identity")), 403


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if g.get("identity") is None:
            return redirect(url_for("login"))
        try:
            return view(*args, **kwargs)
        except SessionExpiredError:
            return end_session()

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        identity = g.get("identity")
        if identity is None:
            return redirect(url_for("login"))
        if not identity.is_admin:
            return forbidden()
        try:
            return view(*args, **kwargs)
        except SessionExpiredError:
            return end_session()

    return wrapper


def register(app: Flask, registry: ContextRegistry) -> None:
    app.extensions[REGISTRY_KEY] = registry

    @app.before_request
    def route_guard():
        g.identity = None
        if request.endpoint in PUBLIC_ENDPOINTS or request.endpoint is None:
            return None

        token = request.cookies.get(TOKEN_COOKIE_NAME)
        if not token:
            return redirect(url_for("login"))
        if is_expired(decode_claims(token)):
            return end_session(message=None)

        ctx = current_context()
        if ctx.session_expired:
            return end_session()
        identity = ctx.hydrate()
        if identity is None:
            return end_session(message=None)
        g.identity = identity
        return None

    @app.context_processor
    def inject_layout():
        identity = g.get("identity")
        ctx = g.get("academia_context")
        items = []
        if identity is not None:
            items = [
                {"label": label, "endpoint": endpoint}
                for label, endpoint, role in NAV_ITEMS
                if role is None or identity.role == role
            ]
        return {
            "current_user": identity,
            "nav_items": items,
            "sidebar_collapsed": ctx.store.get_sidebar_collapsed() if ctx is not None else False,
        }

    @app.route("/", endpoint="index")
    def index():
        return redirect(url_for("dashboard"))

    @app.route("/login", methods=["GET", "POST"], endpoint="login")
    def login():
        if request.method == "GET":
            return render_template("login.html")

        email = (request.form.get("email") or "").strip()
        password = request.form.get("password") or ""
        try:
            identity = current_context().login(email, password)
        except (AuthenticationError, ValidationError) as e:
            release_anonymous_context()
            flash(str(e), "danger")
            return render_template("login.html", email=email), 400
        except ApiError as e:
            release_anonymous_context()
            flash(str(e) or "Error al iniciar sesión", "danger")
            return render_template("login.html", email=email), 400

        flash(f"Bienvenido, {identity.full_name}", "success")
        resp = redirect(url_for("dashboard"))
        resp.set_cookie(
            TOKEN_COOKIE_NAME,
            identity.token,
            max_age=int(timedelta(days=TOKEN_MAX_AGE_DAYS).total_seconds()),
            httponly=True,
            samesite="Lax",
        )
        return resp

    @app.route("/register", methods=["GET", "POST"], endpoint="register")
    def register_account():
        if request.method == "GET":
            return render_template("register.html")

        form = request.form
        try:
            current_context().services.auth_service.register(
                first_name=form.get("first_name", ""),
                last_name=form.get("last_name", ""),
                email=form.get("email", ""),
                password=form.get("password", ""),
                phone=form.get("phone"),
            )
        except (ValidationError, ApiError) as e:
            flash(str(e), "danger")
            return render_template("register.html", form=form), 400
        finally:
            release_anonymous_context()

        flash("Registro exitoso. Inicie sesión.", "success")
        return redirect(url_for("login"))

    @app.route("/logout", methods=["GET", "POST"], endpoint="logout")
    def logout():
        return end_session(message="Sesión cerrada")

    @app.route("/preferencias/sidebar", methods=["POST"], endpoint="sidebar_preference")
    @login_required
    def sidebar_preference():
        payload = request.get_json(silent=True) or request.form
        value = str(payload.get("collapsed", "")).lower() in {"1", "true", "on", "yes"}
        current_context().store.set_sidebar_collapsed(value)
        if request.is_json:
            return jsonify({"collapsed": value})
        return redirect(request.referrer or url_for("dashboard"))

    @app.route("/api/revision", endpoint="push_revision")
    @login_required
    def push_revision():
        topic = request.args.get("topic") or ALL
        return jsonify({"topic": topic, "revision": current_context().revision(topic)})
