from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional


@dataclass(frozen=True)
class AuditEntry:
    audit_id: int
    table: str
    operation: str
    performed_at: datetime
    success: bool
    record_id: Optional[str] = None
    previous_data: Optional[dict] = None
    new_data: Optional[dict] = None
    changed_fields: List[str] = field(default_factory=list)
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    user_role: Optional[str] = None
    ip_address: Optional[str] = None
    endpoint: Optional[str] = None
    http_method: Optional[str] = None
    duration_ms: Optional[int] = None
    error_message: Optional[str] = None


@dataclass(frozen=True)
class AuditFilters:
    table: Optional[str] = None
    operation: Optional[str] = None
    user_id: Optional[int] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    record_id: Optional[str] = None
    success: Optional[bool] = None

    def params(self) -> dict:
        return {
            "tablaAfectada": self.table or None,
            "tipoOperacion": self.operation or None,
            "idUsuario": self.user_id or None,
            "fechaDesde": self.date_from.isoformat() if self.date_from else None,
            "fechaHasta": self.date_to.isoformat() if self.date_to else None,
            "idRegistro": self.record_id or None,
            "exitoso": self.success,
        }


@dataclass(frozen=True)
class AuditSummary:
    total: int
    inserts: int
    updates: int
    deletes: int
    failed: int
    by_table: Dict[str, int] = field(default_factory=dict)
    by_user: Dict[str, int] = field(default_factory=dict)
    latest: List[AuditEntry] = field(default_factory=list)


@dataclass(frozen=True)
class RecordHistory:
    table: str
    record_id: str
    changes: List[AuditEntry] = field(default_factory=list)
