from __future__ import annotations

from flask import Flask, flash, redirect, render_template, request, url_for

from ..auth.controller import admin_required, current_context
from ..common import forms
from ..core.constants import AUDIT_DEFAULT_PAGE_SIZE
from ..core.exceptions import ApiError, ValidationError
from .model import AuditFilters


def audit_filters_from_request(args) -> AuditFilters:
    return AuditFilters(
        table=forms.opt_text(args, "tabla"),
        operation=forms.opt_text(args, "operacion"),
        user_id=forms.opt_int(args, "usuario", "Usuario"),
        date_from=forms.opt_date(args, "fecha_desde", "Fecha desde"),
        date_to=forms.opt_date(args, "fecha_hasta", "Fecha hasta"),
        record_id=forms.opt_text(args, "registro"),
        success=forms.opt_flag(args, "exitoso"),
    )


def register(app: Flask) -> None:
    def _service():
        return current_context().services.audit_service

    @app.route("/auditoria", endpoint="audit_list")
    @admin_required
    def audit_list():
        args = request.args
        page, page_size = forms.page_args(args, default_size=AUDIT_DEFAULT_PAGE_SIZE)
        logs = summary = None
        options = {"tables": [], "operations": []}
        try:
            filters = audit_filters_from_request(args)
            logs = _service().logs(filters, page=page, page_size=page_size)
            summary = _service().summary(date_from=filters.date_from, date_to=filters.date_to)
            options = _service().filter_options()
        except (ValidationError, ApiError) as e:
            flash(str(e) or "Error al cargar auditoría", "danger")
        return render_template(
            "audit/list.html", logs=logs, summary=summary, filters=args, active_page="audit", **options
        )

    @app.route("/auditoria/historial/<tabla>/<registro>", endpoint="audit_record_history")
    @admin_required
    def audit_record_history(tabla: str, registro: str):
        try:
            history = _service().record_history(tabla, registro)
        except (ValidationError, ApiError) as e:
            flash(str(e), "danger")
            return redirect(url_for("audit_list"))
        return render_template("audit/history.html", history=history, active_page="audit")

    @app.route("/auditoria/usuario/<int:user_id>", endpoint="audit_by_user")
    @admin_required
    def audit_by_user(user_id: int):
        try:
            entries = _service().by_user(user_id)
        except (ValidationError, ApiError) as e:
            flash(str(e), "danger")
            return redirect(url_for("audit_list"))
        return render_template("audit/user.html", entries=entries, user_id=user_id, active_page="audit")
