from __future__ import annotations

from typing import Protocol, Sequence

from ..common.pagination import Page
from .model import Enrollment, EnrollmentFilters, EnrollmentForm


class EnrollmentRepository(Protocol):
    def list(self, *, page: int, page_size: int, filters: EnrollmentFilters) -> Page[Enrollment]:
        raise NotImplementedError

    def get(self, enrollment_id: int) -> Enrollment:
        raise NotImplementedError

    def create(self, form: EnrollmentForm) -> Enrollment:
        raise NotImplementedError

    def update(self, enrollment_id: int, form: EnrollmentForm) -> Enrollment:
        raise NotImplementedError

    def delete(self, enrollment_id: int) -> None:
        raise NotImplementedError

    def by_class(self, class_id: int) -> Sequence[Enrollment]:
        raise NotImplementedError
