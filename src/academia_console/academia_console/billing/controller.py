from __future__ import annotations

from flask import Flask, flash, redirect, render_template, request, url_for

from ..auth.controller import admin_required, current_context
from ..common import forms
from ..core.constants import PAGE_SIZE_OPTIONS
from ..core.enums import NotificationType, PaymentMethod, PaymentStatus
from ..core.exceptions import ApiError, ValidationError
from ..reports.controller import send_download
from ..reports.model import ReportResource
from .model import MONTH_NAMES, MONTHLY, PaymentFilters, PaymentForm


def payment_form_from_request(data) -> PaymentForm:
    return PaymentForm(
        amount=forms.opt_float(data, "monto", "Monto"),
        paid_on=forms.opt_date(data, "fecha_pago", "Fecha de pago"),
        method=forms.opt_text(data, "metodo_pago"),
        charge_type=forms.opt_text(data, "tipo_cobro") or MONTHLY,
        month=forms.opt_text(data, "mes"),
        year=forms.opt_int(data, "anio", "Año"),
        status=forms.opt_text(data, "estado"),
        notes=forms.opt_text(data, "observaciones"),
        student_id=forms.opt_int(data, "estudiante", "Estudiante"),
    )


def payment_filters_from_request(args) -> PaymentFilters:
    return PaymentFilters(
        student_id=forms.opt_int(args, "estudiante", "Estudiante"),
        status=forms.opt_text(args, "estado"),
        charge_type=forms.opt_text(args, "tipo_cobro"),
        month=forms.opt_text(args, "mes"),
        year=forms.opt_int(args, "anio", "Año"),
        method=forms.opt_text(args, "metodo_pago"),
        search=forms.opt_text(args, "busqueda"),
        start_date=forms.opt_date(args, "fecha_inicio", "Fecha inicio"),
        end_date=forms.opt_date(args, "fecha_fin", "Fecha fin"),
    )


def register(app: Flask) -> None:
    def _services():
        return current_context().services

    def _choices() -> dict:
        return {
            "months": MONTH_NAMES,
            "methods": [m.value for m in PaymentMethod],
            "statuses": [s.value for s in PaymentStatus],
        }

    def _students():
        try:
            return _services().people_service.students().data
        except ApiError:
            return []

    def _render_form(item):
        return render_template(
            "billing/form.html",
            item=item,
            form=request.form,
            students=_students(),
            active_page="billing",
            **_choices(),
        )

    @app.route("/cobros", endpoint="billing_list")
    @admin_required
    def billing_list():
        args = request.args
        page, page_size = forms.page_args(args)
        listing = None
        totals = {"income": 0.0, "monthly_count": 0}
        try:
            listing = _services().billing_service.list_view(
                page=page,
                page_size=page_size,
                filters=payment_filters_from_request(args),
                search=args.get("busqueda"),
                sort=args.get("orden"),
                descending=forms.flag(args, "desc"),
            )
            totals = _services().billing_service.totals(listing.rows)
        except (ValidationError, ApiError) as e:
            flash(str(e) or "Error al cargar cobros", "danger")
        return render_template(
            "billing/list.html",
            listing=listing,
            totals=totals,
            filters=args,
            page_sizes=PAGE_SIZE_OPTIONS,
            students=_students(),
            push_topic=NotificationType.NEW_PAYMENT.value,
            push_revision=current_context().revision(NotificationType.NEW_PAYMENT.value),
            active_page="billing",
            **_choices(),
        )

    @app.route("/cobros/nuevo", methods=["GET", "POST"], endpoint="billing_create")
    @admin_required
    def billing_create():
        if request.method == "POST":
            try:
                _services().billing_service.create(payment_form_from_request(request.form))
            except (ValidationError, ApiError) as e:
                flash(str(e), "danger")
            else:
                flash("Cobro registrado correctamente", "success")
                return redirect(url_for("billing_list"))
        return _render_form(None)

    @app.route("/cobros/<int:payment_id>/editar", methods=["GET", "POST"], endpoint="billing_edit")
    @admin_required
    def billing_edit(payment_id: int):
        try:
            item = _services().billing_service.get(payment_id)
        except ApiError as e:
            flash(str(e), "danger")
            return redirect(url_for("billing_list"))
        if request.method == "POST":
            try:
                _services().billing_service.update(payment_id, payment_form_from_request(request.form))
            except (ValidationError, ApiError) as e:
                flash(str(e), "danger")
            else:
                flash("Cobro actualizado correctamente", "success")
                return redirect(url_for("billing_list"))
        return _render_form(item)

    @app.route("/cobros/<int:payment_id>/eliminar", methods=["POST"], endpoint="billing_delete")
    @admin_required
    def billing_delete(payment_id: int):
        try:
            _services().billing_service.delete(payment_id)
            flash("Cobro eliminado", "success")
        except ApiError as e:
            flash(str(e), "danger")
        return redirect(url_for("billing_list"))

    @app.route("/cobros/mensualidad", methods=["POST"], endpoint="billing_monthly")
    @admin_required
    def billing_monthly():
        form = request.form
        try:
            _services().billing_service.register_monthly_payment(
                student_id=forms.opt_int(form, "estudiante", "Estudiante"),
                amount=forms.opt_float(form, "monto", "Monto"),
                method=forms.opt_text(form, "metodo_pago"),
                month=forms.opt_text(form, "mes"),
            )
        except (ValidationError, ApiError) as e:
            flash(str(e), "danger")
        else:
            flash("Mensualidad registrada correctamente", "success")
        return redirect(request.referrer or url_for("billing_list"))

    @app.route("/cobros/estado/<int:student_id>", endpoint="billing_status")
    @admin_required
    def billing_status(student_id: int):
        try:
            status = _services().billing_service.status_of(student_id)
        except (ValidationError, ApiError) as e:
            flash(str(e), "danger")
            return redirect(url_for("billing_list"))
        return render_template("billing/status.html", status=status, active_page="billing", **_choices())

    @app.route("/cobros/historial/<int:student_id>", endpoint="billing_history")
    @admin_required
    def billing_history(student_id: int):
        page, page_size = forms.page_args(request.args)
        try:
            history = _services().billing_service.history(student_id, page=page, page_size=page_size)
        except (ValidationError, ApiError) as e:
            flash(str(e), "danger")
            return redirect(url_for("billing_list"))
        return render_template("billing/history.html", history=history, student_id=student_id, active_page="billing")

    def _summary_args():
        month = forms.opt_int(request.args, "mes", "Mes")
        year = forms.opt_int(request.args, "anio", "Año")
        return month, year

    @app.route("/cobros/resumen", endpoint="billing_summary")
    @admin_required
    def billing_summary():
        rows = []
        month = year = None
        try:
            month, year = _summary_args()
            rows = _services().billing_service.summary(month=month, year=year)
        except (ValidationError, ApiError) as e:
            flash(str(e) or "Error al cargar el resumen", "danger")
        return render_template(
            "billing/summary.html", rows=rows, month=month, year=year, active_page="billing", **_choices()
        )

    @app.route("/cobros/resumen/exportar/<fmt>", endpoint="billing_summary_export")
    @admin_required
    def billing_summary_export(fmt: str):
        service = _services().billing_service
        try:
            month, year = _summary_args()
            file = service.export_summary(service.summary(month=month, year=year), fmt)
        except (ValidationError, ApiError) as e:
            flash(str(e), "danger")
            return redirect(url_for("billing_summary"))
        return send_download(file)

    @app.route("/cobros/reporte/<fmt>", endpoint="billing_report")
    @admin_required
    def billing_report(fmt: str):
        try:
            filters = payment_filters_from_request(request.args)
            file = _services().report_service.download(ReportResource.PAYMENTS, fmt, filters.params())
        except (ValidationError, ApiError) as e:
            flash(str(e) or "Error al descargar el reporte", "danger")
            return redirect(url_for("billing_list"))
        return send_download(file)
