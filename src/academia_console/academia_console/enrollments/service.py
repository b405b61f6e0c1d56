from __future__ import annotations

from typing import List, Optional, Sequence

from ..common.listing import ListView, build_list_view
from ..common.validators import optional_text, require_choice, require_positive_id
from ..core.constants import ENROLLMENT_SELECT_PAGE_SIZE
from ..core.enums import EnrollmentStatus
from ..core.exceptions import ValidationError
from .model import Enrollment, EnrollmentFilters, EnrollmentForm
from .repository import EnrollmentRepository

SORT_KEYS = ("enrollment_id", "enrolled_at", "status")

_WITHDRAWN = {EnrollmentStatus.CANCELLED.value, EnrollmentStatus.FINISHED.value, EnrollmentStatus.SUSPENDED.value}


class EnrollmentService:
    def __init__(self, enrollments: EnrollmentRepository):
        self._enrollments = enrollments

    def list_view(
        self,
        *,
        page: int,
        page_size: int,
        filters: Optional[EnrollmentFilters] = None,
        search: Optional[str] = None,
        sort: Optional[str] = None,
        descending: bool = False,
    ) -> ListView[Enrollment]:
        filters = filters or EnrollmentFilters()
        if filters.start_date and filters.end_date and filters.end_date < filters.start_date:
            raise ValidationError("La fecha fin no puede ser anterior a la fecha inicio")
        fetched = self._enrollments.list(page=page, page_size=page_size, filters=filters)
        return build_list_view(
            fetched,
            search=search,
            fields=lambda e: (
                e.student.full_name if e.student else None,
                e.class_ref.name if e.class_ref else None,
                e.status,
            ),
            sort=sort if sort in SORT_KEYS else None,
            descending=descending,
        )

    def selectable(self) -> List[Enrollment]:
        """Options for enrollment pickers (first page, large page size)."""

        return list(
            self._enrollments.list(page=1, page_size=ENROLLMENT_SELECT_PAGE_SIZE, filters=EnrollmentFilters()).data
        )

    def get(self, enrollment_id: int) -> Enrollment:
        return self._enrollments.get(require_positive_id(enrollment_id, "Inscripción"))

    def by_class(self, class_id: int) -> Sequence[Enrollment]:
        return self._enrollments.by_class(require_positive_id(class_id, "Clase"))

    def _status(self, status: Optional[str]) -> Optional[str]:
        status = optional_text(status)
        if status is None:
            return None
        return require_choice(status.lower(), "Estado", [s.value for s in EnrollmentStatus])

    def create(self, form: EnrollmentForm) -> Enrollment:
        clean = EnrollmentForm(
            student_id=require_positive_id(form.student_id, "Estudiante"),
            class_id=require_positive_id(form.class_id, "Clase"),
            enrolled_on=form.enrolled_on,
            status=self._status(form.status) or EnrollmentStatus.ACTIVE.value,
        )
        return self._enrollments.create(clean)

    def update(self, enrollment_id: int, form: EnrollmentForm) -> Enrollment:
        status = self._status(form.status)
        reason = optional_text(form.withdrawal_reason)
        if status in _WITHDRAWN and form.withdrawn_on is None and reason is None:
            raise ValidationError("Indique la fecha o el motivo de la baja")
        if form.withdrawn_on and form.enrolled_on and form.withdrawn_on < form.enrolled_on:
            raise ValidationError("La fecha de baja no puede ser anterior a la inscripción")
        clean = EnrollmentForm(
            enrolled_on=form.enrolled_on,
            status=status,
            withdrawn_on=form.withdrawn_on,
            withdrawal_reason=reason,
        )
        return self._enrollments.update(require_positive_id(enrollment_id, "Inscripción"), clean)

    def delete(self, enrollment_id: int) -> None:
        self._enrollments.delete(require_positive_id(enrollment_id, "Inscripción"))
