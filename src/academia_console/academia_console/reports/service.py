from __future__ import annotations

from datetime import date
from typing import Any, Callable, Mapping, Optional

from ..api import endpoints
from ..api.gateway import ApiGateway, DownloadedFile
from ..common.datetime_utils import today_local
from ..core.enums import ReportFormat
from ..core.exceptions import ValidationError
from .model import ReportResource

CONTENT_TYPES = {
    ReportFormat.CSV: "text/csv; charset=utf-8",
    ReportFormat.PDF: "application/pdf",
}


def report_filename(resource: ReportResource, fmt: ReportFormat, day: date) -> str:
    return f"reporte_{resource.value}_{day.isoformat()}.{fmt.value}"


def _format(value: Any) -> ReportFormat:
    try:
        return ReportFormat(str(value).lower())
    except ValueError:
        raise ValidationError(f"Formato de reporte no soportado: {value}")


class ReportService:
    """Proxy for the backend report endpoints.

    Only assembles the filter parameters and names the file; the content is
    produced by the backend.
    """

    def __init__(self, gateway: ApiGateway, *, today: Callable[[], date] = today_local):
        self._gateway = gateway
        self._today = today

    def download(
        self,
        resource: ReportResource,
        fmt: Any,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> DownloadedFile:
        fmt = _format(fmt)
        file = self._gateway.download(endpoints.report(resource.path, fmt.value), params=dict(filters or {}))
        return DownloadedFile(
            content=file.content,
            content_type=file.content_type or CONTENT_TYPES[fmt],
            filename=report_filename(resource, fmt, self._today()),
        )
