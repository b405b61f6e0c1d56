from __future__ import annotations

from enum import Enum

from ..api import endpoints


class ReportResource(str, Enum):
    """Backend resources that can render a CSV/PDF report."""

    ATTENDANCE = "asistencias"
    PAYMENTS = "cobros"
    ENROLLMENTS = "inscripciones"
    CLASSES = "clases"

    @property
    def path(self) -> str:
        return {
            ReportResource.ATTENDANCE: endpoints.ATTENDANCE,
            ReportResource.PAYMENTS: endpoints.PAYMENTS,
            ReportResource.ENROLLMENTS: endpoints.ENROLLMENTS,
            ReportResource.CLASSES: endpoints.CLASSES,
        }[self]
