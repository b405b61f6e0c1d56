from __future__ import annotations

from typing import Any, Sequence

from ..api import endpoints
from ..api.gateway import ApiGateway
from ..classes.api_class_repository import class_summary_from_payload
from ..common.pagination import Page, page_from_payload
from ..common.payload import PayloadReader, require_list
from ..people.api_people_repository import person_summary_from_payload
from .model import Enrollment, EnrollmentFilters, EnrollmentForm
from .repository import EnrollmentRepository


def enrollment_from_payload(payload: Any) -> Enrollment:
    r = PayloadReader(payload, "Inscripcion")
    student = r.raw("estudiante", None)
    class_ref = r.raw("clase", None)
    return Enrollment(
        enrollment_id=r.req_int("idInsc"),
        enrolled_at=r.opt_datetime("fechaInsc"),
        status=r.opt_str("estado"),
        withdrawn_at=r.opt_datetime("fechaBaja"),
        withdrawal_reason=r.opt_str("motivoBaja"),
        student=person_summary_from_payload(student) if student is not None else None,
        class_ref=class_summary_from_payload(class_ref) if class_ref is not None else None,
    )


def enrollment_form_to_body(form: EnrollmentForm) -> dict:
    body = {
        "idEstudiante": form.student_id,
        "idClase": form.class_id,
        "fechaInsc": form.enrolled_on.isoformat() if form.enrolled_on else None,
        "estado": form.status,
        "fechaBaja": form.withdrawn_on.isoformat() if form.withdrawn_on else None,
        "motivoBaja": form.withdrawal_reason,
    }
    return {k: v for k, v in body.items() if v is not None}


class ApiEnrollmentRepository(EnrollmentRepository):
    def __init__(self, gateway: ApiGateway):
        self._gateway = gateway

    def list(self, *, page: int, page_size: int, filters: EnrollmentFilters) -> Page[Enrollment]:
        payload = self._gateway.get(
            endpoints.ENROLLMENTS,
            params={"page": page, "pageSize": page_size, **filters.params()},
        )
        return page_from_payload(payload, "Inscripciones", enrollment_from_payload, page=page, page_size=page_size)

    def get(self, enrollment_id: int) -> Enrollment:
        return enrollment_from_payload(self._gateway.get(f"{endpoints.ENROLLMENTS}/{int(enrollment_id)}"))

    def create(self, form: EnrollmentForm) -> Enrollment:
        return enrollment_from_payload(self._gateway.post(endpoints.ENROLLMENTS, json=enrollment_form_to_body(form)))

    def update(self, enrollment_id: int, form: EnrollmentForm) -> Enrollment:
        payload = self._gateway.put(f"{endpoints.ENROLLMENTS}/{int(enrollment_id)}", json=enrollment_form_to_body(form))
        return enrollment_from_payload(payload)

    def delete(self, enrollment_id: int) -> None:
        self._gateway.delete(f"{endpoints.ENROLLMENTS}/{int(enrollment_id)}")

    def by_class(self, class_id: int) -> Sequence[Enrollment]:
        payload = self._gateway.get(endpoints.enrollments_by_class(class_id))
        return [enrollment_from_payload(p) for p in require_list(payload, "Inscripciones")]
