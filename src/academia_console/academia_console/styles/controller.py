from __future__ import annotations

from flask import Flask, flash, redirect, render_template, request, url_for

from ..auth.controller import admin_required, current_context
from ..common import forms
from ..core.constants import PAGE_SIZE_OPTIONS
from ..core.enums import DifficultyLevel
from ..core.exceptions import ApiError, ValidationError
from .model import DanceStyleForm


def style_form_from_request(data) -> DanceStyleForm:
    return DanceStyleForm(
        name=data.get("nombre", ""),
        difficulty=data.get("nivel", ""),
        active=forms.flag(data, "activo", default=True),
        description=forms.opt_text(data, "descripcion"),
        min_age=forms.opt_int(data, "edad_minima", "Edad mínima"),
        max_age=forms.opt_int(data, "edad_maxima", "Edad máxima"),
        base_price=forms.opt_float(data, "precio_base", "Precio base"),
    )


def register(app: Flask) -> None:
    def _service():
        return current_context().services.style_service

    def _render_form(item):
        return render_template(
            "styles/form.html",
            item=item,
            form=request.form,
            levels=[d.value for d in DifficultyLevel],
            active_page="styles",
        )

    @app.route("/estilos-danza", endpoint="styles_list")
    @admin_required
    def styles_list():
        args = request.args
        page, page_size = forms.page_args(args)
        try:
            listing = _service().list_view(
                page=page,
                page_size=page_size,
                search=args.get("busqueda"),
                sort=args.get("orden"),
                descending=forms.flag(args, "desc"),
            )
        except ApiError as e:
            flash(str(e) or "Error al cargar estilos", "danger")
            listing = None
        return render_template(
            "styles/list.html", listing=listing, filters=args, page_sizes=PAGE_SIZE_OPTIONS, active_page="styles"
        )

    @app.route("/estilos-danza/nuevo", methods=["GET", "POST"], endpoint="styles_create")
    @admin_required
    def styles_create():
        if request.method == "POST":
            try:
                _service().create(style_form_from_request(request.form))
            except (ValidationError, ApiError) as e:
                flash(str(e), "danger")
            else:
                flash("Estilo creado correctamente", "success")
                return redirect(url_for("styles_list"))
        return _render_form(None)

    @app.route("/estilos-danza/<int:style_id>/editar", methods=["GET", "POST"], endpoint="styles_edit")
    @admin_required
    def styles_edit(style_id: int):
        try:
            item = _service().get(style_id)
        except ApiError as e:
            flash(str(e), "danger")
            return redirect(url_for("styles_list"))
        if request.method == "POST":
            try:
                _service().update(style_id, style_form_from_request(request.form))
            except (ValidationError, ApiError) as e:
                flash(str(e), "danger")
            else:
                flash("Estilo actualizado correctamente", "success")
                return redirect(url_for("styles_list"))
        return _render_form(item)

    @app.route("/estilos-danza/<int:style_id>/eliminar", methods=["POST"], endpoint="styles_delete")
    @admin_required
    def styles_delete(style_id: int):
        try:
            _service().delete(style_id)
            flash("Estilo eliminado", "success")
        except (ValidationError, ApiError) as e:
            flash(str(e), "danger")
        return redirect(url_for("styles_list"))
