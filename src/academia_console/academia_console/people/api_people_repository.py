from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

from ..api import endpoints
from ..api.gateway import ApiGateway
from ..common.pagination import Page, page_from_payload
from ..common.payload import PayloadReader, require_list
from ..core.enums import Role
from ..core.exceptions import SchemaError
from .model import Person, PersonForm, PersonSummary
from .repository import PeopleRepository

_ROLE_PATHS = {
    Role.STUDENT: "estudiantes",
    Role.TEACHER: "profesores",
    Role.GUARDIAN: "representantes",
}


def person_summary_from_payload(payload: Any) -> PersonSummary:
    r = PayloadReader(payload, "PersonaSimple")
    first_name = r.opt_str("nombre") or ""
    last_name = r.opt_str("apellido") or ""
    return PersonSummary(
        person_id=r.req_int("idPersona"),
        first_name=first_name,
        last_name=last_name,
        full_name=r.opt_str("nombreCompleto") or f"{first_name} {last_name}".strip(),
        role=r.opt_str("rol"),
    )


def role_from_text(value: str, entity: str) -> Role:
    try:
        return Role(value.strip().lower())
    except ValueError:
        raise SchemaError(f"{entity}: rol desconocido {value!r}")


def person_from_payload(payload: Any) -> Person:
    r = PayloadReader(payload, "Persona")
    return Person(
        person_id=r.req_int("idPersona"),
        first_name=r.req_str("nombre"),
        last_name=r.opt_str("apellido") or "",
        role=role_from_text(r.req_str("rol"), "Persona"),
        active=r.flag("activo", default=True),
        phone=r.opt_str("telefono"),
        email=r.opt_str("correo"),
        birth_date=r.opt_date("fechaNacimiento"),
        gender=r.opt_str("genero"),
        address=r.opt_str("direccion"),
        national_id=r.opt_str("cedula"),
        medical_conditions=r.opt_str("condicionesMedicas"),
        specialty=r.opt_str("especialidad"),
        hire_date=r.opt_date("fechaContrato"),
        base_salary=r.opt_float("salarioBase"),
        relationship=r.opt_str("parentesco"),
        represented_student_id=r.opt_int("idEstudianteRepresentado"),
        represented_student_name=r.opt_str("nombreEstudianteRepresentado"),
    )


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def person_form_to_body(form: PersonForm, *, include_password: bool) -> dict:
    body = {
        "nombre": form.first_name,
        "apellido": form.last_name,
        "telefono": form.phone,
        "correo": form.email,
        "rol": form.role.value,
        "fechaNacimiento": _iso(form.birth_date),
        "genero": form.gender,
        "direccion": form.address,
        "cedula": form.national_id,
        "condicionesMedicas": form.medical_conditions,
        "especialidad": form.specialty,
        "fechaContrato": _iso(form.hire_date),
        "salarioBase": form.base_salary,
        "parentesco": form.relationship,
        "idEstudianteRepresentado": form.represented_student_id,
        "activo": form.active,
    }
    if include_password:
        body["contrasena"] = form.password
    return {k: v for k, v in body.items() if v is not None}


class ApiPeopleRepository(PeopleRepository):
    def __init__(self, gateway: ApiGateway):
        self._gateway = gateway

    def list(
        self,
        *,
        page: int,
        page_size: int,
        role: Optional[Role] = None,
        search: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> Page[Person]:
        payload = self._gateway.get(
            endpoints.PEOPLE,
            params={
                "page": page,
                "pageSize": page_size,
                "rol": role.value if role else None,
                "busqueda": search,
                "activo": active,
            },
        )
        return page_from_payload(payload, "Personas", person_from_payload, page=page, page_size=page_size)

    def list_by_role(self, role: Role, *, page: int, page_size: int) -> Page[Person]:
        segment = _ROLE_PATHS.get(role)
        if segment is None:
            return self.list(page=page, page_size=page_size, role=role)
        payload = self._gateway.get(f"{endpoints.PEOPLE}/{segment}", params={"page": page, "pageSize": page_size})
        return page_from_payload(payload, "Personas", person_from_payload, page=page, page_size=page_size)

    def guardians_of(self, student_id: int) -> Sequence[Person]:
        payload = self._gateway.get(f"{endpoints.PEOPLE}/estudiante/{int(student_id)}/representantes")
        return [person_from_payload(p) for p in require_list(payload, "Representantes")]

    def get(self, person_id: int) -> Person:
        return person_from_payload(self._gateway.get(f"{endpoints.PEOPLE}/{int(person_id)}"))

    def create(self, form: PersonForm) -> Person:
        payload = self._gateway.post(endpoints.PEOPLE, json=person_form_to_body(form, include_password=True))
        return person_from_payload(payload)

    def update(self, person_id: int, form: PersonForm) -> Person:
        payload = self._gateway.put(
            f"{endpoints.PEOPLE}/{int(person_id)}",
            json=person_form_to_body(form, include_password=False),
        )
        return person_from_payload(payload)

    def delete(self, person_id: int) -> None:
        self._gateway.delete(f"{endpoints.PEOPLE}/{int(person_id)}")

    def toggle_active(self, person_id: int) -> Person:
        return person_from_payload(self._gateway.put(f"{endpoints.PEOPLE}/{int(person_id)}/toggle-activo"))

    def change_password(self, person_id: int, new_password: str) -> None:
        self._gateway.put(
            f"{endpoints.PEOPLE}/{int(person_id)}/cambiar-password",
            json={"nuevaContraseña": new_password},
        )
