from __future__ import annotations

from flask import Flask, flash, redirect, render_template, request, url_for

from ..auth.controller import admin_required, current_context
from ..common import forms
from ..core.constants import PAGE_SIZE_OPTIONS
from ..core.enums import EnrollmentStatus
from ..core.exceptions import ApiError, ValidationError
from .model import EnrollmentFilters, EnrollmentForm


def enrollment_form_from_request(data) -> EnrollmentForm:
    return EnrollmentForm(
        student_id=forms.opt_int(data, "estudiante", "Estudiante"),
        class_id=forms.opt_int(data, "clase", "Clase"),
        enrolled_on=forms.opt_date(data, "fecha_inscripcion", "Fecha de inscripción"),
        status=forms.opt_text(data, "estado"),
        withdrawn_on=forms.opt_date(data, "fecha_baja", "Fecha de baja"),
        withdrawal_reason=forms.opt_text(data, "motivo_baja"),
    )


def register(app: Flask) -> None:
    def _services():
        return current_context().services

    def _render_form(item):
        services = _services()
        try:
            students = services.people_service.students().data
            classes = services.class_service.list_view(page=1, page_size=100).rows
        except ApiError as e:
            flash(str(e) or "Error al cargar opciones", "warning")
            students, classes = [], []
        return render_template(
            "enrollments/form.html",
            item=item,
            form=request.form,
            students=students,
            classes=[c for c in classes if c.active],
            statuses=[s.value for s in EnrollmentStatus],
            active_page="enrollments",
        )

    @app.route("/inscripciones", endpoint="enrollments_list")
    @admin_required
    def enrollments_list():
        args = request.args
        page, page_size = forms.page_args(args)
        try:
            filters = EnrollmentFilters(
                status=forms.opt_text(args, "estado"),
                start_date=forms.opt_date(args, "fecha_inicio", "Fecha inicio"),
                end_date=forms.opt_date(args, "fecha_fin", "Fecha fin"),
            )
            listing = _services().enrollment_service.list_view(
                page=page,
                page_size=page_size,
                filters=filters,
                search=args.get("busqueda"),
                sort=args.get("orden"),
                descending=forms.flag(args, "desc"),
            )
        except (ValidationError, ApiError) as e:
            flash(str(e) or "Error al cargar inscripciones", "danger")
            listing = None
        return render_template(
            "enrollments/list.html",
            listing=listing,
            filters=args,
            statuses=[s.value for s in EnrollmentStatus],
            page_sizes=PAGE_SIZE_OPTIONS,
            active_page="enrollments",
        )

    @app.route("/inscripciones/nueva", methods=["GET", "POST"], endpoint="enrollments_create")
    @admin_required
    def enrollments_create():
        if request.method == "POST":
            try:
                _services().enrollment_service.create(enrollment_form_from_request(request.form))
            except (ValidationError, ApiError) as e:
                flash(str(e), "danger")
            else:
                flash("Inscripción creada correctamente", "success")
                return redirect(url_for("enrollments_list"))
        return _render_form(None)

    @app.route("/inscripciones/<int:enrollment_id>/editar", methods=["GET", "POST"], endpoint="enrollments_edit")
    @admin_required
    def enrollments_edit(enrollment_id: int):
        try:
            item = _services().enrollment_service.get(enrollment_id)
        except ApiError as e:
            flash(str(e), "danger")
            return redirect(url_for("enrollments_list"))
        if request.method == "POST":
            try:
                _services().enrollment_service.update(enrollment_id, enrollment_form_from_request(request.form))
            except (ValidationError, ApiError) as e:
                flash(str(e), "danger")
            else:
                flash("Inscripción actualizada correctamente", "success")
                return redirect(url_for("enrollments_list"))
        return _render_form(item)

    @app.route("/inscripciones/<int:enrollment_id>/eliminar", methods=["POST"], endpoint="enrollments_delete")
    @admin_required
    def enrollments_delete(enrollment_id: int):
        try:
            _services().enrollment_service.delete(enrollment_id)
            flash("Inscripción eliminada", "success")
        except ApiError as e:
            flash(str(e), "danger")
        return redirect(url_for("enrollments_list"))

    @app.route("/clases/<int:class_id>/inscripciones", endpoint="enrollments_by_class")
    @admin_required
    def enrollments_by_class(class_id: int):
        services = _services()
        try:
            item = services.class_service.get(class_id)
            rows = services.enrollment_service.by_class(class_id)
        except ApiError as e:
            flash(str(e), "danger")
            return redirect(url_for("classes_list"))
        return render_template("enrollments/by_class.html", item=item, rows=rows, active_page="enrollments")
