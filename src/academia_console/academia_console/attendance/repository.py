from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..common.pagination import Page
from .model import AttendanceDraft, AttendanceFilters, AttendanceRecord, AttendanceValidation


class AttendanceRepository(Protocol):
    def list(self, *, page: int, page_size: int, filters: AttendanceFilters) -> Page[AttendanceRecord]:
        raise NotImplementedError

    def get(self, record_id: int) -> AttendanceRecord:
        raise NotImplementedError

    def for_class(self, class_id: int, day: Optional[date] = None) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def for_student(
        self,
        student_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def for_enrollment(
        self,
        enrollment_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def validate(self, class_id: int) -> AttendanceValidation:
        raise NotImplementedError

    def create(self, draft: AttendanceDraft) -> AttendanceRecord:
        raise NotImplementedError

    def update(self, record_id: int, draft: AttendanceDraft) -> AttendanceRecord:
        raise NotImplementedError

    def delete(self, record_id: int) -> None:
        raise NotImplementedError
