from __future__ import annotations

from typing import Any, Sequence

from ..api import endpoints
from ..api.gateway import ApiGateway
from ..common.pagination import Page, page_from_payload
from ..common.payload import PayloadReader, require_list
from ..people.api_people_repository import person_summary_from_payload
from ..people.model import PersonSummary
from ..styles.api_style_repository import style_from_payload
from .model import ClassForm, ClassSession, ClassStatistics, ClassSummary, StyleClassStats
from .repository import ClassRepository


def class_summary_from_payload(payload: Any) -> ClassSummary:
    r = PayloadReader(payload, "ClaseSimple")
    return ClassSummary(
        class_id=r.req_int("idClase"),
        name=r.opt_str("nombreClase"),
        weekday=r.opt_str("diaSemana"),
        start_time=r.opt_time("hora"),
    )


def class_from_payload(payload: Any) -> ClassSession:
    r = PayloadReader(payload, "Clase")
    teacher = r.raw("profesor", None)
    style = r.raw("estiloDanza", None)
    return ClassSession(
        class_id=r.req_int("idClase"),
        name=r.opt_str("nombreClase"),
        weekday=r.opt_str("diaSemana"),
        start_time=r.opt_time("hora"),
        duration_minutes=r.opt_int("duracionMinutos") or 0,
        capacity=r.opt_int("capacidadMax") or 0,
        monthly_price=r.opt_float("precioMensuClas") or 0.0,
        active=r.flag("activa", default=True),
        teacher=person_summary_from_payload(teacher) if teacher is not None else None,
        style=style_from_payload(style) if style is not None else None,
        enrolled_count=r.opt_int("estudiantesInscritos"),
        available_slots=r.opt_int("cuposDisponibles"),
    )


def statistics_from_payload(payload: Any) -> ClassStatistics:
    r = PayloadReader(payload, "EstadisticasClases")
    by_style = []
    for row in r.items("clasesPorEstilo", default=[]):
        s = PayloadReader(row, "EstadisticasClases.clasesPorEstilo")
        by_style.append(
            StyleClassStats(
                style_id=s.req_int("idEstilo"),
                class_count=s.opt_int("cantidadClases") or 0,
                enrolled_students=s.opt_int("estudiantesInscritos") or 0,
            )
        )
    return ClassStatistics(
        total_classes=r.opt_int("totalClases") or 0,
        active_classes=r.opt_int("clasesActivas") or 0,
        total_students=r.opt_int("totalEstudiantes") or 0,
        total_capacity=r.opt_int("capacidadTotal") or 0,
        available_slots=r.opt_int("cuposDisponibles") or 0,
        occupancy_percent=r.opt_float("porcentajeOcupacion") or 0.0,
        by_style=by_style,
    )


def to_timespan(value: str) -> str:
    """`HH:MM` -> `HH:MM:SS` as the backend TimeSpan expects."""

    text = (value or "").strip()
    if text.count(":") == 1:
        return f"{text}:00"
    return text


def class_form_to_body(form: ClassForm, *, include_active: bool) -> dict:
    body = {
        "nombreClase": form.name,
        "diaSemana": form.weekday,
        "hora": to_timespan(form.start_time),
        "duracionMinutos": form.duration_minutes,
        "capacidadMax": form.capacity,
        "precioMensuClas": form.monthly_price,
        "idProfesor": form.teacher_id,
        "idEstilo": form.style_id,
    }
    if include_active:
        body["activa"] = form.active
    return body


class ApiClassRepository(ClassRepository):
    def __init__(self, gateway: ApiGateway):
        self._gateway = gateway

    def list(self, *, page: int, page_size: int) -> Page[ClassSession]:
        payload = self._gateway.get(endpoints.CLASSES, params={"page": page, "pageSize": page_size})
        return page_from_payload(payload, "Clases", class_from_payload, page=page, page_size=page_size)

    def get(self, class_id: int) -> ClassSession:
        return class_from_payload(self._gateway.get(f"{endpoints.CLASSES}/{int(class_id)}"))

    def by_teacher(self, teacher_id: int) -> Sequence[ClassSession]:
        payload = self._gateway.get(endpoints.classes_by_teacher(teacher_id))
        return [class_from_payload(c) for c in require_list(payload, "Clases")]

    def create(self, form: ClassForm) -> ClassSession:
        payload = self._gateway.post(endpoints.CLASSES, json=class_form_to_body(form, include_active=False))
        return class_from_payload(payload)

    def update(self, class_id: int, form: ClassForm) -> ClassSession:
        payload = self._gateway.put(
            f"{endpoints.CLASSES}/{int(class_id)}",
            json=class_form_to_body(form, include_active=True),
        )
        return class_from_payload(payload)

    def delete(self, class_id: int) -> None:
        self._gateway.delete(f"{endpoints.CLASSES}/{int(class_id)}")

    def roster(self, class_id: int) -> Sequence[PersonSummary]:
        payload = self._gateway.get(endpoints.class_roster(class_id))
        return [person_summary_from_payload(p) for p in require_list(payload, "Clases.estudiantes")]

    def statistics(self) -> ClassStatistics:
        return statistics_from_payload(self._gateway.get(endpoints.CLASS_STATS))
