from __future__ import annotations

from typing import Protocol, Sequence

from ..common.pagination import Page
from ..people.model import PersonSummary
from .model import ClassForm, ClassSession, ClassStatistics


class ClassRepository(Protocol):
    def list(self, *, page: int, page_size: int) -> Page[ClassSession]:
        raise NotImplementedError

    def get(self, class_id: int) -> ClassSession:
        raise NotImplementedError

    def by_teacher(self, teacher_id: int) -> Sequence[ClassSession]:
        raise NotImplementedError

    def create(self, form: ClassForm) -> ClassSession:
        raise NotImplementedError

    def update(self, class_id: int, form: ClassForm) -> ClassSession:
        raise NotImplementedError

    def delete(self, class_id: int) -> None:
        raise NotImplementedError

    def roster(self, class_id: int) -> Sequence[PersonSummary]:
        """Students currently enrolled in the class (may contain duplicates)."""

        raise NotImplementedError

    def statistics(self) -> ClassStatistics:
        raise NotImplementedError
