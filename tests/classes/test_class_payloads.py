from __future__ import annotations

from datetime import time

import pytest

from src.academia_console.academia_console.classes.api_class_repository import (
    class_form_to_body,
    class_from_payload,
    to_timespan,
)
from src.academia_console.academia_console.classes.model import ClassForm
from src.academia_console.academia_console.classes.service import ClassService
from src.academia_console.academia_console.core.exceptions import ValidationError


def _form(**overrides) -> ClassForm:
    values = dict(
        name="Salsa Inicial",
        weekday="Lunes",
        start_time="18:30",
        duration_minutes=60,
        capacity=20,
        monthly_price=35.5,
        teacher_id=4,
        style_id=2,
    )
    values.update(overrides)
    return ClassForm(**values)


@pytest.mark.parametrize("value, expected", [("18:30", "18:30:00"), ("07:05:30", "07:05:30"), (" 09:00 ", "09:00:00")])
def test_form_time_is_sent_as_timespan(value, expected):
    assert to_timespan(value) == expected


def test_create_body_omits_active_flag_and_update_includes_it():
    created = class_form_to_body(_form(), include_active=False)
    updated = class_form_to_body(_form(active=False), include_active=True)

    assert created["hora"] == "18:30:00"
    assert "activa" not in created
    assert updated["activa"] is False


def test_class_payload_with_nested_teacher_and_style():
    session = class_from_payload(
        {
            "idClase": 3,
            "nombreClase": "Tango",
            "diaSemana": "Martes",
            "hora": "19:00:00",
            "duracionMinutos": 90,
            "capacidadMax": 12,
            "precioMensuClas": 40,
            "profesor": {"idPersona": 4, "nombre": "Luis", "apellido": "Paz"},
            "estiloDanza": {"idEstilo": 2, "nombreEsti": "Tango", "nivelDificultad": "Avanzado"},
            "estudiantesInscritos": 12,
        }
    )

    assert session.start_time == time(19, 0)
    assert session.teacher.full_name == "Luis Paz"
    assert session.style.name == "Tango"
    assert session.has_available_slots is False
    assert session.summary().label == "Tango - Martes - 19:00"


@pytest.mark.parametrize(
    "overrides",
    [
        {"start_time": "25:00"},
        {"duration_minutes": 20},
        {"capacity": 51},
        {"monthly_price": 0},
        {"weekday": "Funday"},
        {"teacher_id": None},
    ],
)
def test_invalid_class_forms_are_rejected_before_calling_backend(overrides):
    class NoCalls:
        def create(self, form):
            raise AssertionError("backend must not be called")

    with pytest.raises(ValidationError):
        ClassService(NoCalls()).create(_form(**overrides))
