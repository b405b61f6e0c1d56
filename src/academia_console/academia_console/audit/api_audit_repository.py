from __future__ import annotations

from typing import Any, Optional, Sequence
from urllib.parse import quote

from ..api import endpoints
from ..api.gateway import ApiGateway
from ..common.pagination import Page
from ..common.payload import PayloadReader, require_list
from ..core.exceptions import SchemaError
from .model import AuditEntry, AuditFilters, AuditSummary, RecordHistory
from .repository import AuditRepository


def _counts(value: Optional[dict], entity: str) -> dict:
    out = {}
    for key, count in (value or {}).items():
        try:
            out[str(key)] = int(count)
        except (TypeError, ValueError):
            raise SchemaError(f"{entity}: conteo no numérico para {key!r}")
    return out


def entry_from_payload(payload: Any) -> AuditEntry:
    r = PayloadReader(payload, "AuditLog")
    return AuditEntry(
        audit_id=r.req_int("idAudit"),
        table=r.req_str("tablaAfectada"),
        operation=r.req_str("tipoOperacion"),
        performed_at=r.req_datetime("fechaOperacion"),
        success=r.flag("exitoso", default=True),
        record_id=r.opt_str("idRegistro"),
        previous_data=r.mapping("datosAnteriores"),
        new_data=r.mapping("datosNuevos"),
        changed_fields=[str(f) for f in r.items("camposModificados", default=[])],
        user_id=r.opt_int("idUsuario"),
        user_name=r.opt_str("nombreUsuario"),
        user_role=r.opt_str("rolUsuario"),
        ip_address=r.opt_str("ipAddress"),
        endpoint=r.opt_str("endpoint"),
        http_method=r.opt_str("metodoHttp"),
        duration_ms=r.opt_int("duracionMs"),
        error_message=r.opt_str("mensajeError"),
    )


def summary_from_payload(payload: Any) -> AuditSummary:
    r = PayloadReader(payload, "AuditResumen")
    return AuditSummary(
        total=r.opt_int("totalOperaciones") or 0,
        inserts=r.opt_int("totalInserts") or 0,
        updates=r.opt_int("totalUpdates") or 0,
        deletes=r.opt_int("totalDeletes") or 0,
        failed=r.opt_int("operacionesFallidas") or 0,
        by_table=_counts(r.mapping("operacionesPorTabla"), "AuditResumen"),
        by_user=_counts(r.mapping("operacionesPorUsuario"), "AuditResumen"),
        latest=[entry_from_payload(e) for e in r.items("ultimasOperaciones", default=[])],
    )


class ApiAuditRepository(AuditRepository):
    """`/Audit` uses its own paging envelope: `{logs, total, pagina, tamañoPagina}`."""

    def __init__(self, gateway: ApiGateway):
        self._gateway = gateway

    def logs(self, filters: AuditFilters, *, page: int, page_size: int) -> Page[AuditEntry]:
        payload = self._gateway.get(
            endpoints.AUDIT,
            params={**filters.params(), "pagina": page, "tamañoPagina": page_size},
        )
        r = PayloadReader(payload, "AuditLogResponse")
        return Page(
            data=[entry_from_payload(e) for e in r.items("logs", default=[])],
            total_records=r.opt_int("total") or 0,
            page=r.opt_int("pagina") or page,
            page_size=r.opt_int("tamañoPagina") or page_size,
        )

    def summary(self, *, date_from=None, date_to=None) -> AuditSummary:
        payload = self._gateway.get(
            f"{endpoints.AUDIT}/resumen",
            params={
                "fechaDesde": date_from.isoformat() if date_from else None,
                "fechaHasta": date_to.isoformat() if date_to else None,
            },
        )
        return summary_from_payload(payload)

    def record_history(self, table: str, record_id: str) -> RecordHistory:
        payload = self._gateway.get(f"{endpoints.AUDIT}/historial/{quote(table, safe='')}/{quote(str(record_id), safe='')}")
        r = PayloadReader(payload, "HistorialRegistro")
        return RecordHistory(
            table=r.opt_str("tablaAfectada") or table,
            record_id=r.opt_str("idRegistro") or str(record_id),
            changes=[entry_from_payload(e) for e in r.items("cambios", default=[])],
        )

    def by_user(self, user_id: int, *, limit: int) -> Sequence[AuditEntry]:
        payload = self._gateway.get(f"{endpoints.AUDIT}/usuario/{int(user_id)}", params={"limite": limit})
        return [entry_from_payload(e) for e in require_list(payload, "AuditLogs")]

    def tables(self) -> Sequence[str]:
        return [str(t) for t in require_list(self._gateway.get(f"{endpoints.AUDIT}/tablas"), "AuditTablas")]

    def operation_types(self) -> Sequence[str]:
        payload = self._gateway.get(f"{endpoints.AUDIT}/tipos-operacion")
        return [str(t) for t in require_list(payload, "AuditTiposOperacion")]
