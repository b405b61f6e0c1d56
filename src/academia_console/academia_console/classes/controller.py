from __future__ import annotations

from flask import Flask, flash, g, redirect, render_template, request, url_for

from ..auth.controller import admin_required, current_context, login_required
from ..common import forms
from ..core.constants import PAGE_SIZE_OPTIONS
from ..core.enums import Weekday
from ..core.exceptions import ApiError, ValidationError
from .model import ClassForm


def class_form_from_request(data) -> ClassForm:
    return ClassForm(
        name=data.get("nombre", ""),
        weekday=data.get("dia_semana", ""),
        start_time=data.get("hora", ""),
        duration_minutes=forms.opt_int(data, "duracion", "Duración"),
        capacity=forms.opt_int(data, "capacidad", "Capacidad máxima"),
        monthly_price=forms.opt_float(data, "precio", "Precio mensual"),
        teacher_id=forms.opt_int(data, "profesor", "Profesor"),
        style_id=forms.opt_int(data, "estilo", "Estilo de danza"),
        active=forms.flag(data, "activa", default=True),
    )


def register(app: Flask) -> None:
    def _services():
        return current_context().services

    def _form_options():
        services = _services()
        try:
            teachers = services.people_service.teachers().data
            styles = services.style_service.active_styles()
        except ApiError as e:
            flash(str(e) or "Error al cargar opciones", "warning")
            teachers, styles = [], []
        return {"teachers": teachers, "styles": styles, "weekdays": [d.value for d in Weekday]}

    @app.route("/clases", endpoint="classes_list")
    @login_required
    def classes_list():
        args = request.args
        identity = g.identity
        listing = None
        own_classes = None
        try:
            if identity.is_admin:
                page, page_size = forms.page_args(args)
                listing = _services().class_service.list_view(
                    page=page,
                    page_size=page_size,
                    search=args.get("busqueda"),
                    sort=args.get("orden"),
                    descending=forms.flag(args, "desc"),
                )
            else:
                own_classes = _services().class_service.selectable_for(identity)
        except (ValidationError, ApiError) as e:
            flash(str(e) or "Error al cargar clases", "danger")
        return render_template(
            "classes/list.html",
            listing=listing,
            own_classes=own_classes,
            filters=args,
            page_sizes=PAGE_SIZE_OPTIONS,
            active_page="classes",
        )

    @app.route("/clases/<int:class_id>", endpoint="classes_detail")
    @login_required
    def classes_detail(class_id: int):
        services = _services()
        try:
            session_ = services.class_service.get(class_id)
            roster = services.class_service.roster(class_id)
        except ApiError as e:
            flash(str(e), "danger")
            return redirect(url_for("classes_list"))
        return render_template("classes/detail.html", item=session_, roster=roster, active_page="classes")

    @app.route("/clases/nueva", methods=["GET", "POST"], endpoint="classes_create")
    @admin_required
    def classes_create():
        if request.method == "POST":
            try:
                _services().class_service.create(class_form_from_request(request.form))
            except (ValidationError, ApiError) as e:
                flash(str(e), "danger")
            else:
                flash("Clase creada correctamente", "success")
                return redirect(url_for("classes_list"))
        return render_template("classes/form.html", item=None, form=request.form, active_page="classes", **_form_options())

    @app.route("/clases/<int:class_id>/editar", methods=["GET", "POST"], endpoint="classes_edit")
    @admin_required
    def classes_edit(class_id: int):
        try:
            item = _services().class_service.get(class_id)
        except ApiError as e:
            flash(str(e), "danger")
            return redirect(url_for("classes_list"))
        if request.method == "POST":
            try:
                _services().class_service.update(class_id, class_form_from_request(request.form))
            except (ValidationError, ApiError) as e:
                flash(str(e), "danger")
            else:
                flash("Clase actualizada correctamente", "success")
                return redirect(url_for("classes_list"))
        return render_template("classes/form.html", item=item, form=request.form, active_page="classes", **_form_options())

    @app.route("/clases/<int:class_id>/eliminar", methods=["POST"], endpoint="classes_delete")
    @admin_required
    def classes_delete(class_id: int):
        try:
            _services().class_service.delete(class_id)
            flash("Clase eliminada", "success")
        except ApiError as e:
            flash(str(e), "danger")
        return redirect(url_for("classes_list"))
