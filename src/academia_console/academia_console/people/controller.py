from __future__ import annotations

from flask import Flask, flash, redirect, render_template, request, url_for

from ..auth.controller import admin_required, current_context
from ..common import forms
from ..core.constants import PAGE_SIZE_OPTIONS
from ..core.enums import Role
from ..core.exceptions import ApiError, ValidationError
from .model import PersonForm


def _role(value) -> Role:
    try:
        return Role((value or "").strip().lower())
    except ValueError:
        raise ValidationError("Seleccione un rol válido")


def person_form_from_request(data, *, creating: bool) -> PersonForm:
    return PersonForm(
        first_name=data.get("nombre", ""),
        last_name=data.get("apellido", ""),
        role=_role(data.get("rol")),
        phone=forms.opt_text(data, "telefono"),
        email=forms.opt_text(data, "correo"),
        password=data.get("contrasena") if creating else None,
        birth_date=forms.opt_date(data, "fecha_nacimiento", "Fecha de nacimiento"),
        gender=forms.opt_text(data, "genero"),
        address=forms.opt_text(data, "direccion"),
        national_id=forms.opt_text(data, "cedula"),
        medical_conditions=forms.opt_text(data, "condiciones_medicas"),
        specialty=forms.opt_text(data, "especialidad"),
        hire_date=forms.opt_date(data, "fecha_contrato", "Fecha de contrato"),
        base_salary=forms.opt_float(data, "salario_base", "Salario base"),
        relationship=forms.opt_text(data, "parentesco"),
        represented_student_id=forms.opt_int(data, "estudiante_representado", "Estudiante representado"),
        active=None if creating else forms.flag(data, "activo"),
    )


def register(app: Flask) -> None:
    def _service():
        return current_context().services.people_service

    def _students():
        try:
            return _service().students().data
        except ApiError:
            return []

    @app.route("/personas", endpoint="people_list")
    @admin_required
    def people_list():
        args = request.args
        page, page_size = forms.page_args(args)
        try:
            role = _role(args.get("rol")) if args.get("rol") else None
            listing = _service().list_view(
                page=page,
                page_size=page_size,
                role=role,
                search=args.get("busqueda"),
                active=forms.opt_flag(args, "activo"),
                sort=args.get("orden"),
                descending=forms.flag(args, "desc"),
            )
        except (ValidationError, ApiError) as e:
            flash(str(e) or "Error al cargar personas", "danger")
            listing = None
        return render_template(
            "people/list.html",
            listing=listing,
            roles=list(Role),
            filters=args,
            page_sizes=PAGE_SIZE_OPTIONS,
            active_page="people",
        )

    @app.route("/personas/<int:person_id>", endpoint="people_detail")
    @admin_required
    def people_detail(person_id: int):
        try:
            person = _service().get(person_id)
            guardians = _service().guardians_of(person_id) if person.role == Role.STUDENT else []
        except ApiError as e:
            flash(str(e), "danger")
            return redirect(url_for("people_list"))
        return render_template("people/detail.html", person=person, guardians=guardians, active_page="people")

    @app.route("/personas/nueva", methods=["GET", "POST"], endpoint="people_create")
    @admin_required
    def people_create():
        if request.method == "POST":
            try:
                _service().create(person_form_from_request(request.form, creating=True))
            except (ValidationError, ApiError) as e:
                flash(str(e), "danger")
            else:
                flash("Persona creada correctamente", "success")
                return redirect(url_for("people_list"))
        return render_template(
            "people/form.html",
            person=None,
            form=request.form,
            roles=list(Role),
            students=_students(),
            active_page="people",
        )

    @app.route("/personas/<int:person_id>/editar", methods=["GET", "POST"], endpoint="people_edit")
    @admin_required
    def people_edit(person_id: int):
        try:
            person = _service().get(person_id)
        except ApiError as e:
            flash(str(e), "danger")
            return redirect(url_for("people_list"))
        if request.method == "POST":
            try:
                _service().update(person_id, person_form_from_request(request.form, creating=False))
            except (ValidationError, ApiError) as e:
                flash(str(e), "danger")
            else:
                flash("Persona actualizada correctamente", "success")
                return redirect(url_for("people_list"))
        return render_template(
            "people/form.html",
            person=person,
            form=request.form,
            roles=list(Role),
            students=_students(),
            active_page="people",
        )

    @app.route("/personas/<int:person_id>/eliminar", methods=["POST"], endpoint="people_delete")
    @admin_required
    def people_delete(person_id: int):
        try:
            _service().delete(person_id)
            flash("Persona eliminada", "success")
        except ApiError as e:
            flash(str(e), "danger")
        return redirect(url_for("people_list"))

    @app.route("/personas/<int:person_id>/activo", methods=["POST"], endpoint="people_toggle_active")
    @admin_required
    def people_toggle_active(person_id: int):
        try:
            person = _service().toggle_active(person_id)
            flash(f"{person.full_name}: {'activo' if person.active else 'inactivo'}", "success")
        except ApiError as e:
            flash(str(e), "danger")
        return redirect(request.referrer or url_for("people_list"))

    @app.route("/personas/<int:person_id>/password", methods=["POST"], endpoint="people_change_password")
    @admin_required
    def people_change_password(person_id: int):
        try:
            _service().change_password(
                person_id,
                request.form.get("nueva_contrasena", ""),
                request.form.get("confirmacion"),
            )
            flash("Contraseña actualizada", "success")
        except (ValidationError, ApiError) as e:
            flash(str(e), "danger")
        return redirect(url_for("people_detail", person_id=person_id))
