from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..common.pagination import Page
from ..core.enums import Role
from .model import Person, PersonForm


class PeopleRepository(Protocol):
    def list(
        self,
        *,
        page: int,
        page_size: int,
        role: Optional[Role] = None,
        search: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> Page[Person]:
        raise NotImplementedError

    def list_by_role(self, role: Role, *, page: int, page_size: int) -> Page[Person]:
        """`/Personas/estudiantes|profesores|representantes`."""

        raise NotImplementedError

    def guardians_of(self, student_id: int) -> Sequence[Person]:
        raise NotImplementedError

    def get(self, person_id: int) -> Person:
        raise NotImplementedError

    def create(self, form: PersonForm) -> Person:
        raise NotImplementedError

    def update(self, person_id: int, form: PersonForm) -> Person:
        raise NotImplementedError

    def delete(self, person_id: int) -> None:
        raise NotImplementedError

    def toggle_active(self, person_id: int) -> Person:
        raise NotImplementedError

    def change_password(self, person_id: int, new_password: str) -> None:
        raise NotImplementedError
