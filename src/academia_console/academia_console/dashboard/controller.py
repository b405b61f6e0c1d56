from __future__ import annotations

from flask import Flask, flash, render_template

from ..auth.controller import current_context, login_required


def register(app: Flask) -> None:
    @app.route("/dashboard", endpoint="dashboard")
    @login_required
    def dashboard():
        overview = current_context().services.dashboard_service.overview()
        if overview.error:
            flash(overview.error, "warning")
        return render_template("dashboard.html", overview=overview, active_page="dashboard")
