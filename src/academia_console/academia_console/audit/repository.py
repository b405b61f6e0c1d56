from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..common.pagination import Page
from .model import AuditEntry, AuditFilters, AuditSummary, RecordHistory


class AuditRepository(Protocol):
    def logs(self, filters: AuditFilters, *, page: int, page_size: int) -> Page[AuditEntry]:
        raise NotImplementedError

    def summary(self, *, date_from: Optional[date] = None, date_to: Optional[date] = None) -> AuditSummary:
        raise NotImplementedError

    def record_history(self, table: str, record_id: str) -> RecordHistory:
        raise NotImplementedError

    def by_user(self, user_id: int, *, limit: int) -> Sequence[AuditEntry]:
        raise NotImplementedError

    def tables(self) -> Sequence[str]:
        raise NotImplementedError

    def operation_types(self) -> Sequence[str]:
        raise NotImplementedError
