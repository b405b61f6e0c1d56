from __future__ import annotations

from datetime import date
from typing import List, Optional

from ..common.pagination import Page
from ..common.validators import require_non_empty, require_positive_id
from ..core.constants import AUDIT_DEFAULT_PAGE_SIZE, AUDIT_USER_LIMIT
from ..core.exceptions import ValidationError
from .model import AuditEntry, AuditFilters, AuditSummary, RecordHistory
from .repository import AuditRepository


class AuditService:
    """Read-only view over the backend audit trail (admins only)."""

    def __init__(self, audit: AuditRepository):
        self._audit = audit

    def logs(self, filters: Optional[AuditFilters] = None, *, page: int = 1, page_size: int = AUDIT_DEFAULT_PAGE_SIZE) -> Page[AuditEntry]:
        filters = filters or AuditFilters()
        if filters.date_from and filters.date_to and filters.date_to < filters.date_from:
            raise ValidationError("La fecha hasta no puede ser anterior a la fecha desde")
        return self._audit.logs(filters, page=max(1, page), page_size=page_size)

    def summary(self, *, date_from: Optional[date] = None, date_to: Optional[date] = None) -> AuditSummary:
        return self._audit.summary(date_from=date_from, date_to=date_to)

    def record_history(self, table: str, record_id: str) -> RecordHistory:
        return self._audit.record_history(require_non_empty(table, "Tabla"), require_non_empty(str(record_id), "Registro"))

    def by_user(self, user_id: int, *, limit: int = AUDIT_USER_LIMIT) -> List[AuditEntry]:
        return list(self._audit.by_user(require_positive_id(user_id, "Usuario"), limit=limit))

    def filter_options(self) -> dict:
        return {"tables": list(self._audit.tables()), "operations": list(self._audit.operation_types())}
