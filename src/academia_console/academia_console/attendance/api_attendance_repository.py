from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

from ..api import endpoints
from ..api.gateway import ApiGateway
from ..classes.api_class_repository import class_summary_from_payload
from ..common.pagination import Page, page_from_payload
from ..common.payload import PayloadReader, require_list
from ..people.api_people_repository import person_summary_from_payload
from .model import AttendanceDraft, AttendanceFilters, AttendanceRecord, AttendanceValidation
from .repository import AttendanceRepository


def record_from_payload(payload: Any) -> AttendanceRecord:
    r = PayloadReader(payload, "Asistencia")
    student = r.raw("estudiante", None)
    class_ref = r.raw("clase", None)
    return AttendanceRecord(
        record_id=r.req_int("idAsist"),
        recorded_at=r.req_datetime("fechaAsis"),
        status=r.opt_str("estadoAsis"),
        notes=r.opt_str("observaciones"),
        student=person_summary_from_payload(student) if student is not None else None,
        class_ref=class_summary_from_payload(class_ref) if class_ref is not None else None,
    )


def validation_from_payload(payload: Any) -> AttendanceValidation:
    r = PayloadReader(payload, "ValidacionAsistencia")
    return AttendanceValidation(
        can_register=r.flag("puedeRegistrar"),
        message=r.opt_str("mensaje") or "",
        class_weekday=r.opt_str("diaSemanaClase") or "",
        current_weekday=r.opt_str("diaActual") or "",
        already_registered_this_week=r.flag("yaRegistradaEstaSemana", default=False),
        last_attendance_at=r.opt_datetime("fechaUltimaAsistencia"),
        next_available_at=r.opt_datetime("proximaFechaDisponible"),
    )


def draft_to_body(draft: AttendanceDraft) -> dict:
    body = {
        "idEstudiante": draft.student_id,
        "idClase": draft.class_id,
        "fechaAsis": draft.recorded_at,
        "estadoAsis": draft.status,
        "observaciones": draft.notes,
    }
    return {k: v for k, v in body.items() if v is not None}


def _range(start_date: Optional[date], end_date: Optional[date]) -> dict:
    return {
        "fechaInicio": start_date.isoformat() if start_date else None,
        "fechaFin": end_date.isoformat() if end_date else None,
    }


class ApiAttendanceRepository(AttendanceRepository):
    def __init__(self, gateway: ApiGateway):
        self._gateway = gateway

    def list(self, *, page: int, page_size: int, filters: AttendanceFilters) -> Page[AttendanceRecord]:
        payload = self._gateway.get(
            endpoints.ATTENDANCE,
            params={"page": page, "pageSize": page_size, **filters.params()},
        )
        return page_from_payload(payload, "Asistencias", record_from_payload, page=page, page_size=page_size)

    def get(self, record_id: int) -> AttendanceRecord:
        return record_from_payload(self._gateway.get(f"{endpoints.ATTENDANCE}/{int(record_id)}"))

    def for_class(self, class_id: int, day: Optional[date] = None) -> Sequence[AttendanceRecord]:
        payload = self._gateway.get(
            endpoints.attendance_by_class(class_id),
            params={"fecha": day.isoformat() if day else None},
        )
        return [record_from_payload(p) for p in require_list(payload, "Asistencias")]

    def for_student(self, student_id: int, *, start_date=None, end_date=None) -> Sequence[AttendanceRecord]:
        payload = self._gateway.get(endpoints.attendance_by_student(student_id), params=_range(start_date, end_date))
        return [record_from_payload(p) for p in require_list(payload, "Asistencias")]

    def for_enrollment(self, enrollment_id: int, *, start_date=None, end_date=None) -> Sequence[AttendanceRecord]:
        payload = self._gateway.get(
            endpoints.attendance_by_enrollment(enrollment_id),
            params=_range(start_date, end_date),
        )
        return [record_from_payload(p) for p in require_list(payload, "Asistencias")]

    def validate(self, class_id: int) -> AttendanceValidation:
        return validation_from_payload(self._gateway.get(endpoints.attendance_validation(class_id)))

    def create(self, draft: AttendanceDraft) -> AttendanceRecord:
        return record_from_payload(self._gateway.post(endpoints.ATTENDANCE, json=draft_to_body(draft)))

    def update(self, record_id: int, draft: AttendanceDraft) -> AttendanceRecord:
        payload = self._gateway.put(f"{endpoints.ATTENDANCE}/{int(record_id)}", json=draft_to_body(draft))
        return record_from_payload(payload)

    def delete(self, record_id: int) -> None:
        self._gateway.delete(f"{endpoints.ATTENDANCE}/{int(record_id)}")
