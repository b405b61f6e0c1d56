from __future__ import annotations

import io

from flask import Flask, flash, redirect, request, send_file, url_for

from ..api.gateway import DownloadedFile
from ..auth.controller import admin_required, current_context
from ..core.exceptions import ApiError, ValidationError
from .model import ReportResource


def send_download(file: DownloadedFile):
    return send_file(
        io.BytesIO(file.content),
        mimetype=file.content_type,
        as_attachment=True,
        download_name=file.filename,
    )


def register(app: Flask) -> None:
    @app.route("/reportes/<resource>/<fmt>", endpoint="report_download")
    @admin_required
    def report_download(resource: str, fmt: str):
        try:
            target = ReportResource(resource)
        except ValueError:
            flash("Reporte no disponible", "warning")
            return redirect(request.referrer or url_for("dashboard"))
        try:
            file = current_context().services.report_service.download(target, fmt, request.args.to_dict())
        except (ValidationError, ApiError) as e:
            flash(str(e) or "Error al descargar el reporte", "danger")
            return redirect(request.referrer or url_for("dashboard"))
        return send_download(file)
