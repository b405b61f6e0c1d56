from __future__ import annotations

from typing import Optional, Sequence

from ..common.listing import ListView, build_list_view
from ..common.validators import (
    optional_text,
    require_max_length,
    require_min_length,
    require_non_empty,
    require_positive_id,
)
from ..core.constants import MAX_NAME_LENGTH, MAX_PHONE_LENGTH, MIN_PASSWORD_LENGTH, MIN_PHONE_LENGTH
from ..core.enums import Role
from ..core.exceptions import ValidationError
from .model import Person, PersonForm
from .repository import PeopleRepository

SORT_KEYS = ("full_name", "email", "role", "active")


def _search_fields(p: Person):
    return (p.full_name, p.email, p.phone, p.national_id)


class PeopleService:
    """Use case: manage academy people (students, teachers, guardians, admins)."""

    def __init__(self, people: PeopleRepository):
        self._people = people

    def list_view(
        self,
        *,
        page: int,
        page_size: int,
        role: Optional[Role] = None,
        search: Optional[str] = None,
        active: Optional[bool] = None,
        sort: Optional[str] = None,
        descending: bool = False,
    ) -> ListView[Person]:
        fetched = self._people.list(page=page, page_size=page_size, role=role, search=optional_text(search), active=active)
        return build_list_view(
            fetched,
            search=search,
            fields=_search_fields,
            sort=sort if sort in SORT_KEYS else None,
            descending=descending,
        )

    def students(self, *, page: int = 1, page_size: int = 100):
        return self._people.list_by_role(Role.STUDENT, page=page, page_size=page_size)

    def teachers(self, *, page: int = 1, page_size: int = 100):
        return self._people.list_by_role(Role.TEACHER, page=page, page_size=page_size)

    def guardians(self, *, page: int = 1, page_size: int = 100):
        return self._people.list_by_role(Role.GUARDIAN, page=page, page_size=page_size)

    def guardians_of(self, student_id: int) -> Sequence[Person]:
        return self._people.guardians_of(require_positive_id(student_id, "Estudiante"))

    def get(self, person_id: int) -> Person:
        return self._people.get(require_positive_id(person_id, "Persona"))

    def _validated(self, form: PersonForm, *, creating: bool) -> PersonForm:
        first_name = require_max_length(require_non_empty(form.first_name, "Nombre"), "Nombre", MAX_NAME_LENGTH)
        last_name = require_max_length(require_non_empty(form.last_name, "Apellido"), "Apellido", MAX_NAME_LENGTH)

        phone = optional_text(form.phone)
        if phone is not None and not (MIN_PHONE_LENGTH <= len(phone) <= MAX_PHONE_LENGTH):
            raise ValidationError(f"Teléfono debe tener entre {MIN_PHONE_LENGTH} y {MAX_PHONE_LENGTH} caracteres")

        email = optional_text(form.email)
        if email is not None and "@" not in email:
            raise ValidationError("Correo no es válido")

        password = form.password
        if creating:
            require_min_length(password, "Contraseña", MIN_PASSWORD_LENGTH)
        else:
            password = None

        if form.role == Role.GUARDIAN and form.represented_student_id is not None:
            require_positive_id(form.represented_student_id, "Estudiante representado")
        if form.base_salary is not None and form.base_salary < 0:
            raise ValidationError("Salario base no puede ser negativo")

        return PersonForm(
            first_name=first_name,
            last_name=last_name,
            role=form.role,
            phone=phone,
            email=email,
            password=password,
            birth_date=form.birth_date,
            gender=optional_text(form.gender),
            address=optional_text(form.address),
            national_id=optional_text(form.national_id),
            medical_conditions=optional_text(form.medical_conditions),
            specialty=optional_text(form.specialty) if form.role == Role.TEACHER else None,
            hire_date=form.hire_date if form.role == Role.TEACHER else None,
            base_salary=form.base_salary if form.role == Role.TEACHER else None,
            relationship=optional_text(form.relationship) if form.role == Role.GUARDIAN else None,
            represented_student_id=form.represented_student_id if form.role == Role.GUARDIAN else None,
            active=form.active,
        )

    def create(self, form: PersonForm) -> Person:
        return self._people.create(self._validated(form, creating=True))

    def update(self, person_id: int, form: PersonForm) -> Person:
        return self._people.update(require_positive_id(person_id, "Persona"), self._validated(form, creating=False))

    def delete(self, person_id: int) -> None:
        self._people.delete(require_positive_id(person_id, "Persona"))

    def toggle_active(self, person_id: int) -> Person:
        return self._people.toggle_active(require_positive_id(person_id, "Persona"))

    def change_password(self, person_id: int, new_password: str, confirmation: Optional[str] = None) -> None:
        require_min_length(new_password, "Contraseña", MIN_PASSWORD_LENGTH)
        if confirmation is not None and confirmation != new_password:
            raise ValidationError("Las contraseñas no coinciden")
        self._people.change_password(require_positive_id(person_id, "Persona"), new_password)
