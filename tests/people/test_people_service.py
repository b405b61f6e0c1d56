from __future__ import annotations

import pytest

from src.academia_console.academia_console.core.enums import Role
from src.academia_console.academia_console.core.exceptions import ValidationError
from src.academia_console.academia_console.people.api_people_repository import person_form_to_body
from src.academia_console.academia_console.people.model import PersonForm
from src.academia_console.academia_console.people.service import PeopleService


class RecordingPeople:
    def __init__(self):
        self.created = []
        self.passwords = []

    def create(self, form):
        self.created.append(form)
        return form

    def change_password(self, person_id, password):
        self.passwords.append((person_id, password))


def test_role_specific_fields_are_dropped_for_other_roles():
    repo = RecordingPeople()
    form = PersonForm(
        first_name=" Ana ",
        last_name="Alba",
        role=Role.STUDENT,
        password="secreta",
        specialty="Salsa",
        base_salary=500.0,
        relationship="Madre",
    )

    PeopleService(repo).create(form)

    sent = repo.created[0]
    assert sent.first_name == "Ana"
    assert sent.specialty is None and sent.base_salary is None and sent.relationship is None
    body = person_form_to_body(sent, include_password=True)
    assert body["rol"] == "estudiante"
    assert body["contrasena"] == "secreta"
    assert "especialidad" not in body


@pytest.mark.parametrize(
    "overrides",
    [{"first_name": " "}, {"phone": "123"}, {"email": "sin-arroba"}, {"password": "123"}],
)
def test_invalid_people_are_rejected(overrides):
    values = dict(first_name="Ana", last_name="Alba", role=Role.TEACHER, password="secreta")
    values.update(overrides)

    with pytest.raises(ValidationError):
        PeopleService(RecordingPeople()).create(PersonForm(**values))


def test_password_confirmation_must_match():
    repo = RecordingPeople()

    with pytest.raises(ValidationError, match="no coinciden"):
        PeopleService(repo).change_password(3, "nuevaclave", "otra")
    PeopleService(repo).change_password(3, "nuevaclave", "nuevaclave")

    assert repo.passwords == [(3, "nuevaclave")]
