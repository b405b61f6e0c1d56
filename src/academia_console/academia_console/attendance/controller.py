from __future__ import annotations

from flask import Flask, flash, jsonify, redirect, render_template, request, url_for

from ..auth.controller import admin_required, current_context, login_required
from ..common import forms
from ..core.constants import PAGE_SIZE_OPTIONS
from ..core.enums import AttendanceStatus
from ..core.exceptions import ApiError, PartialSaveError, RegistrationBlockedError, ValidationError
from ..reports.controller import send_download
from .model import AttendanceFilters
from .workflow import AttendanceWorkflow, ViewMode, WorkflowState

TOAST_CATEGORIES = {"error": "danger", "warning": "warning", "success": "success", "info": "info"}


def flash_toasts(workflow: AttendanceWorkflow) -> None:
    for toast in workflow.take_toasts():
        flash(toast.message, TOAST_CATEGORIES.get(toast.level, "info"))


def _history_filters(args) -> AttendanceFilters:
    return AttendanceFilters(
        start_date=forms.opt_date(args, "fecha_inicio", "Fecha inicio"),
        end_date=forms.opt_date(args, "fecha_fin", "Fecha fin"),
        enrollment_id=forms.opt_int(args, "inscripcion", "Inscripción"),
        student_id=forms.opt_int(args, "estudiante", "Estudiante"),
        class_id=forms.opt_int(args, "clase", "Clase"),
        status=forms.opt_text(args, "estado"),
    )


def register(app: Flask) -> None:
    def _workflow() -> AttendanceWorkflow:
        workflow = current_context().attendance
        if workflow.state == WorkflowState.IDLE:
            workflow.load_classes()
        return workflow

    def _back():
        return redirect(url_for("attendance_page"))

    def _wants_json() -> bool:
        return request.is_json or request.accept_mimetypes.best == "application/json"

    @app.route("/asistencias", endpoint="attendance_page")
    @login_required
    def attendance_page():
        workflow = _workflow()
        view = workflow.view()
        if view.view_mode == ViewMode.HISTORY:
            return redirect(url_for("attendance_history"))
        flash_toasts(workflow)
        return render_template(
            "attendance/register.html",
            view=workflow.view(),
            statuses=[s.value for s in AttendanceStatus],
            active_page="attendance",
        )

    @app.route("/asistencias/seleccionar", methods=["POST"], endpoint="attendance_select")
    @login_required
    def attendance_select():
        workflow = _workflow()
        try:
            class_id = forms.opt_int(request.form, "clase", "Clase")
            day = forms.opt_date(request.form, "fecha", "Fecha")
        except ValidationError as e:
            flash(str(e), "warning")
            return _back()
        if workflow.view_mode != ViewMode.REGISTER:
            workflow.set_view_mode(ViewMode.REGISTER)
        workflow.select(class_id, day)
        return _back()

    @app.route("/asistencias/alternar/<int:student_id>", methods=["POST"], endpoint="attendance_toggle")
    @login_required
    def attendance_toggle(student_id: int):
        workflow = _workflow()
        try:
            row = workflow.toggle_row(student_id)
        except ValidationError as e:
            if _wants_json():
                return jsonify({"success": False, "message": str(e)}), 400
            flash(str(e), "warning")
            return _back()
        if _wants_json():
            view = workflow.view()
            return jsonify(
                {
                    "success": True,
                    "student_id": row.student_id,
                    "present": row.present,
                    "present_count": view.present_count,
                    "absent_count": view.absent_count,
                }
            )
        return _back()

    @app.route("/asistencias/observaciones/<int:student_id>", methods=["POST"], endpoint="attendance_notes")
    @login_required
    def attendance_notes(student_id: int):
        workflow = _workflow()
        payload = request.get_json(silent=True) or request.form
        try:
            workflow.update_notes(student_id, payload.get("observaciones", ""))
        except ValidationError as e:
            if _wants_json():
                return jsonify({"success": False, "message": str(e)}), 400
            flash(str(e), "warning")
            return _back()
        if _wants_json():
            return jsonify({"success": True})
        return _back()

    @app.route("/asistencias/guardar", methods=["POST"], endpoint="attendance_save")
    @login_required
    def attendance_save():
        workflow = _workflow()
        for key, value in request.form.items():
            if key.startswith("observaciones_"):
                try:
                    workflow.update_notes(int(key.split("_", 1)[1]), value)
                except (ValueError, ValidationError):
                    continue
        try:
            workflow.save()
        except RegistrationBlockedError:
            pass
        except PartialSaveError as e:
            flash(str(e), "danger")
        except (ValidationError, ApiError) as e:
            flash(str(e) or "Error al guardar asistencias", "danger")
        return _back()

    @app.route("/asistencias/validacion/ocultar", methods=["POST"], endpoint="attendance_dismiss_validation")
    @login_required
    def attendance_dismiss_validation():
        _workflow().dismiss_validation()
        return _back()

    @app.route("/asistencias/descarga/ocultar", methods=["POST"], endpoint="attendance_dismiss_download")
    @login_required
    def attendance_dismiss_download():
        _workflow().dismiss_download_prompt()
        return _back()

    @app.route("/asistencias/registro-rapido", methods=["POST"], endpoint="attendance_quick")
    @login_required
    def attendance_quick():
        service = current_context().services.attendance_service
        try:
            service.record_single(
                student_id=forms.opt_int(request.form, "estudiante", "Estudiante"),
                class_id=forms.opt_int(request.form, "clase", "Clase"),
                day=forms.opt_date(request.form, "fecha", "Fecha") or _workflow().day,
                status=forms.opt_text(request.form, "estado") or AttendanceStatus.PRESENT.value,
                notes=forms.opt_text(request.form, "observaciones"),
            )
        except (ValidationError, ApiError) as e:
            flash(str(e), "danger")
            return _back()
        flash("Asistencia registrada", "success")
        _workflow().reload_active_view()
        return _back()

    @app.route("/asistencias/historial", endpoint="attendance_history")
    @login_required
    def attendance_history():
        workflow = _workflow()
        if workflow.view_mode != ViewMode.HISTORY:
            workflow.set_view_mode(ViewMode.HISTORY)
        if request.args:
            try:
                filters = _history_filters(request.args) if request.args.get("filtrar") else None
                page, page_size = forms.page_args(request.args, default_size=workflow.pagination.page_size)
            except ValidationError as e:
                flash(str(e), "warning")
            else:
                workflow.load_history(filters, page=page, page_size=page_size)
        flash_toasts(workflow)
        return render_template(
            "attendance/history.html",
            view=workflow.view(),
            statuses=[s.value for s in AttendanceStatus],
            page_sizes=PAGE_SIZE_OPTIONS,
            active_page="attendance",
        )

    @app.route("/asistencias/historial/limpiar", methods=["POST"], endpoint="attendance_history_clear")
    @login_required
    def attendance_history_clear():
        _workflow().clear_history_filters()
        return redirect(url_for("attendance_history"))

    @app.route("/asistencias/modo/<mode>", methods=["POST"], endpoint="attendance_mode")
    @login_required
    def attendance_mode(mode: str):
        try:
            view_mode = ViewMode(mode)
        except ValueError:
            flash("Vista no válida", "warning")
            return _back()
        _workflow().set_view_mode(view_mode)
        if view_mode == ViewMode.HISTORY:
            return redirect(url_for("attendance_history"))
        return _back()

    @app.route("/asistencias/<int:record_id>/eliminar", methods=["POST"], endpoint="attendance_delete")
    @admin_required
    def attendance_delete(record_id: int):
        try:
            current_context().services.attendance_service.delete_record(record_id)
            flash("Asistencia eliminada", "success")
        except ApiError as e:
            flash(str(e), "danger")
        _workflow().reload_active_view()
        return redirect(url_for("attendance_history"))

    @app.route("/asistencias/<int:record_id>/editar", methods=["POST"], endpoint="attendance_edit")
    @admin_required
    def attendance_edit(record_id: int):
        service = current_context().services.attendance_service
        try:
            record = service.get(record_id)
            service.update_record(
                record_id,
                student_id=record.student_id,
                class_id=record.class_ref.class_id if record.class_ref else None,
                day=record.recorded_at.date(),
                status=forms.opt_text(request.form, "estado") or record.status,
                notes=forms.opt_text(request.form, "observaciones"),
            )
            flash("Asistencia actualizada", "success")
        except (ValidationError, ApiError) as e:
            flash(str(e), "danger")
        _workflow().reload_active_view()
        return redirect(url_for("attendance_history"))

    def _render_records(title: str, fetch):
        try:
            start = forms.opt_date(request.args, "fecha_inicio", "Fecha inicio")
            end = forms.opt_date(request.args, "fecha_fin", "Fecha fin")
            records = fetch(start_date=start, end_date=end)
        except (ValidationError, ApiError) as e:
            flash(str(e) or "Error al cargar asistencias", "danger")
            records = []
        return render_template(
            "attendance/records.html",
            title=title,
            records=records,
            filters=request.args,
            active_page="attendance",
        )

    @app.route("/asistencias/estudiante/<int:student_id>", endpoint="attendance_by_student")
    @admin_required
    def attendance_by_student(student_id: int):
        service = current_context().services.attendance_service
        return _render_records(
            f"Asistencias del estudiante #{student_id}",
            lambda **dates: service.for_student(student_id, **dates),
        )

    @app.route("/asistencias/inscripcion/<int:enrollment_id>", endpoint="attendance_by_enrollment")
    @admin_required
    def attendance_by_enrollment(enrollment_id: int):
        service = current_context().services.attendance_service
        return _render_records(
            f"Asistencias de la inscripción #{enrollment_id}",
            lambda **dates: service.for_enrollment(enrollment_id, **dates),
        )

    @app.route("/asistencias/reporte/<fmt>", endpoint="attendance_report")
    @login_required
    def attendance_report(fmt: str):
        workflow = _workflow()
        try:
            if request.args.get("alcance") == "dia":
                file = workflow.download_day_report(fmt)
            else:
                file = workflow.download_report(fmt)
        except (ValidationError, ApiError) as e:
            flash(str(e) or "Error al descargar el reporte", "danger")
            return _back()
        return send_download(file)

    @app.route("/asistencias/revision", endpoint="attendance_revision")
    @login_required
    def attendance_revision():
        view = _workflow().view()
        return jsonify({"revision": view.revision, "state": view.state.value, "mode": view.view_mode.value})
