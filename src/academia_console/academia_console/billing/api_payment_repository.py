from __future__ import annotations

from typing import Any, Optional, Sequence

from ..api import endpoints
from ..api.gateway import ApiGateway
from ..common.datetime_utils import to_iso_with_current_time
from ..common.pagination import Page, page_from_payload
from ..common.payload import PayloadReader, require_list
from ..people.api_people_repository import person_summary_from_payload
from .model import (
    MonthlyPayment,
    Payment,
    PaymentFilters,
    PaymentForm,
    PaymentSummaryRow,
    StudentPaymentStatus,
)
from .repository import PaymentRepository


def payment_from_payload(payload: Any) -> Payment:
    """Accepts both the camelCase and the PascalCase shape the API returns."""

    r = PayloadReader(payload, "Cobro")
    student = r.raw("estudiante", None)
    return Payment(
        payment_id=r.req_int("idCobro"),
        amount=r.req_float("monto"),
        charge_type=r.opt_str("tipoCobro") or "",
        paid_at=r.opt_datetime("fechaPago"),
        due_at=r.opt_datetime("fechaVencimiento"),
        method=r.opt_str("metodoPago"),
        month=r.opt_str("mesCorrespondiente"),
        year=r.opt_int("anioCorrespondiente"),
        status=r.opt_str("estadoCobro"),
        notes=r.opt_str("observaciones"),
        student=person_summary_from_payload(student) if student is not None else None,
    )


def payment_status_from_payload(payload: Any) -> StudentPaymentStatus:
    r = PayloadReader(payload, "EstadoPagoEstudiante")
    months = []
    for row in r.items("pagosMensuales", default=[]):
        m = PayloadReader(row, "PagoMensual")
        months.append(
            MonthlyPayment(
                month=m.req_str("mes"),
                year=m.req_int("anio"),
                paid=m.flag("pagado", default=False),
                paid_at=m.opt_datetime("fechaPago"),
                amount=m.opt_float("monto"),
            )
        )
    return StudentPaymentStatus(
        student_id=r.req_int("idEstudiante"),
        full_name=r.opt_str("nombreCompleto") or "",
        months=months,
    )


def summary_row_from_payload(payload: Any) -> PaymentSummaryRow:
    r = PayloadReader(payload, "ResumenPagoEstudiante")
    return PaymentSummaryRow(
        student_id=r.req_int("idEstudiante"),
        full_name=r.opt_str("nombreCompleto") or "",
        paid_this_month=r.flag("pagoMes", default=False),
        payment_type=r.opt_str("tipoPago") or "",
    )


def payment_form_to_body(form: PaymentForm, *, recorded_at: Optional[str]) -> dict:
    body = {
        "idEstudiante": form.student_id,
        "monto": form.amount,
        "fechaPago": recorded_at,
        "metodoPago": form.method,
        "tipoCobro": form.charge_type,
        "mesCorrespondiente": form.month,
        "anioCorrespondiente": form.year,
        "estadoCobro": form.status,
        "observaciones": form.notes,
    }
    return {k: v for k, v in body.items() if v is not None}


class ApiPaymentRepository(PaymentRepository):
    def __init__(self, gateway: ApiGateway):
        self._gateway = gateway

    def _body(self, form: PaymentForm) -> dict:
        recorded_at = to_iso_with_current_time(form.paid_on) if form.paid_on else None
        return payment_form_to_body(form, recorded_at=recorded_at)

    def list(self, *, page: int, page_size: int, filters: PaymentFilters) -> Page[Payment]:
        payload = self._gateway.get(
            endpoints.PAYMENTS,
            params={"page": page, "pageSize": page_size, **filters.params()},
        )
        return page_from_payload(payload, "Cobros", payment_from_payload, page=page, page_size=page_size)

    def get(self, payment_id: int) -> Payment:
        return payment_from_payload(self._gateway.get(f"{endpoints.PAYMENTS}/{int(payment_id)}"))

    def create(self, form: PaymentForm) -> Payment:
        return payment_from_payload(self._gateway.post(endpoints.PAYMENTS, json=self._body(form)))

    def update(self, payment_id: int, form: PaymentForm) -> Payment:
        return payment_from_payload(self._gateway.put(f"{endpoints.PAYMENTS}/{int(payment_id)}", json=self._body(form)))

    def delete(self, payment_id: int) -> None:
        self._gateway.delete(f"{endpoints.PAYMENTS}/{int(payment_id)}")

    def status_of(self, student_id: int) -> StudentPaymentStatus:
        return payment_status_from_payload(self._gateway.get(f"{endpoints.PAYMENTS}/estado-pago/{int(student_id)}"))

    def summary(self, *, month: Optional[int] = None, year: Optional[int] = None) -> Sequence[PaymentSummaryRow]:
        payload = self._gateway.get(f"{endpoints.PAYMENTS}/resumen-pagos", params={"mes": month, "anio": year})
        return [summary_row_from_payload(p) for p in require_list(payload, "ResumenPagos")]

    def history(self, student_id: int, *, page: int, page_size: int) -> Page[Payment]:
        payload = self._gateway.get(
            f"{endpoints.PAYMENTS}/historial/{int(student_id)}",
            params={"page": page, "pageSize": page_size},
        )
        return page_from_payload(payload, "HistorialCobros", payment_from_payload, page=page, page_size=page_size)
