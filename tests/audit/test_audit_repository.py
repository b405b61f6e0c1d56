from __future__ import annotations

from datetime import date

import pytest

from src.academia_console.academia_console.audit.api_audit_repository import ApiAuditRepository
from src.academia_console.academia_console.audit.model import AuditFilters
from src.academia_console.academia_console.audit.service import AuditService
from src.academia_console.academia_console.core.exceptions import ValidationError


class FakeGateway:
    def __init__(self, payload):
        self.payload = payload
        self.calls = []

    def get(self, path, *, params=None):
        self.calls.append((path, params))
        return self.payload


LOG = {
    "idAudit": 1,
    "tablaAfectada": "Asistencias",
    "tipoOperacion": "INSERT",
    "fechaOperacion": "2026-03-02T15:30:00Z",
    "idRegistro": "45",
    "camposModificados": ["estadoAsis"],
    "idUsuario": 1,
    "nombreUsuario": "Ana Admin",
    "exitoso": True,
}


def test_audit_logs_use_their_own_paging_envelope():
    gateway = FakeGateway({"logs": [LOG], "total": 120, "pagina": 2, "tamañoPagina": 50})
    repo = ApiAuditRepository(gateway)

    page = repo.logs(AuditFilters(table="Asistencias", success=False), page=2, page_size=50)

    assert page.total_records == 120
    assert page.total_pages == 3
    assert page.page == 2
    assert page.data[0].changed_fields == ["estadoAsis"]
    path, params = gateway.calls[0]
    assert path == "/Audit"
    assert params["pagina"] == 2 and params["tamañoPagina"] == 50
    assert params["tablaAfectada"] == "Asistencias"
    assert params["exitoso"] is False


def test_record_history_quotes_the_record_id():
    gateway = FakeGateway({"tablaAfectada": "Personas", "idRegistro": "a/b", "cambios": []})

    ApiAuditRepository(gateway).record_history("Personas", "a/b")

    assert gateway.calls[0][0] == "/Audit/historial/Personas/a%2Fb"


def test_service_rejects_inverted_date_range():
    service = AuditService(ApiAuditRepository(FakeGateway({})))

    with pytest.raises(ValidationError):
        service.logs(AuditFilters(date_from=date(2026, 3, 5), date_to=date(2026, 3, 1)))
