from __future__ import annotations

import re
from datetime import date
from typing import Callable, List, Optional, Tuple

from ..api.gateway import DownloadedFile
from ..common.datetime_utils import today_local
from ..common.listing import ListView, build_list_view
from ..common.pagination import Page
from ..common.validators import optional_text, require_choice, require_positive_id, require_range
from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PRICE, MIN_PRICE
from ..core.enums import PaymentMethod, PaymentStatus
from ..core.exceptions import ValidationError
from ..reports.exporters import CSV_MIMETYPE, XLSX_MIMETYPE, to_csv_bytes, to_xlsx_bytes
from .model import (
    MONTH_NAMES,
    MONTHLY,
    Payment,
    PaymentFilters,
    PaymentForm,
    PaymentSummaryRow,
    StudentPaymentStatus,
)
from .repository import PaymentRepository

SORT_KEYS = ("paid_at", "amount", "month", "status", "method")

SUMMARY_COLUMNS = ("ID Estudiante", "Nombre Completo", "Estado Pago Mes", "Tipo de Pago")

_MONTH_YEAR_RE = re.compile(r"^(\w+)\s+(\d{4})$")


def split_month_year(value: Optional[str], year: Optional[int]) -> Tuple[Optional[str], Optional[int]]:
    """Split "Febrero 2025" into ("Febrero", 2025); other values pass through."""

    text = optional_text(value)
    if text is None:
        return None, year
    m = _MONTH_YEAR_RE.match(text)
    if m:
        return m.group(1), int(m.group(2))
    return text, year


class BillingService:
    """Use cases of the billing page: charges, monthly payment, summary and history."""

    def __init__(self, payments: PaymentRepository, *, today: Callable[[], date] = today_local):
        self._payments = payments
        self._today = today

    def list_view(
        self,
        *,
        page: int,
        page_size: int,
        filters: Optional[PaymentFilters] = None,
        search: Optional[str] = None,
        sort: Optional[str] = None,
        descending: bool = False,
    ) -> ListView[Payment]:
        filters = filters or PaymentFilters()
        if filters.month and filters.month not in MONTH_NAMES:
            raise ValidationError("Mes no válido")
        fetched = self._payments.list(page=page, page_size=page_size, filters=filters)
        return build_list_view(
            fetched,
            search=search,
            fields=lambda p: (p.student.full_name if p.student else None, p.month, p.method, p.status),
            sort=sort if sort in SORT_KEYS else None,
            descending=descending,
        )

    @staticmethod
    def totals(payments: List[Payment]) -> dict:
        return {
            "income": round(sum(p.amount for p in payments), 2),
            "monthly_count": sum(1 for p in payments if p.charge_type == MONTHLY),
        }

    def get(self, payment_id: int) -> Payment:
        return self._payments.get(require_positive_id(payment_id, "Cobro"))

    def _validated(self, form: PaymentForm, *, creating: bool) -> PaymentForm:
        try:
            amount = float(form.amount)
        except (TypeError, ValueError):
            raise ValidationError("El monto debe ser numérico")
        require_range(amount, "Monto", MIN_PRICE, MAX_PRICE)

        if form.paid_on is None:
            raise ValidationError("La fecha de pago es requerida")
        method = optional_text(form.method)
        if method is None:
            raise ValidationError("El método de pago es requerido")
        require_choice(method, "Método de pago", [m.value for m in PaymentMethod])
        charge_type = optional_text(form.charge_type)
        if charge_type is None:
            raise ValidationError("El tipo de cobro es requerido")

        month, year = split_month_year(form.month, form.year)
        if month is not None:
            require_choice(month, "Mes", MONTH_NAMES)
        if year is None:
            year = self._today().year

        status = optional_text(form.status)
        if creating or status is None:
            status = PaymentStatus.PAID.value
        require_choice(status, "Estado", [s.value for s in PaymentStatus])

        return PaymentForm(
            amount=round(amount, 2),
            paid_on=form.paid_on,
            method=method,
            charge_type=charge_type,
            month=month,
            year=year,
            status=status,
            notes=optional_text(form.notes),
            student_id=require_positive_id(form.student_id, "Estudiante") if creating else None,
        )

    def create(self, form: PaymentForm) -> Payment:
        if not form.student_id:
            raise ValidationError("Debe seleccionar un estudiante")
        return self._payments.create(self._validated(form, creating=True))

    def update(self, payment_id: int, form: PaymentForm) -> Payment:
        return self._payments.update(require_positive_id(payment_id, "Cobro"), self._validated(form, creating=False))

    def delete(self, payment_id: int) -> None:
        self._payments.delete(require_positive_id(payment_id, "Cobro"))

    def register_monthly_payment(self, *, student_id: int, amount: float, method: str, month: str) -> Payment:
        form = PaymentForm(
            student_id=student_id,
            amount=amount,
            paid_on=self._today(),
            method=method,
            charge_type=MONTHLY,
            month=month,
            status=PaymentStatus.PAID.value,
        )
        return self.create(form)

    def status_of(self, student_id: int) -> StudentPaymentStatus:
        return self._payments.status_of(require_positive_id(student_id, "Estudiante"))

    def summary(self, *, month: Optional[int] = None, year: Optional[int] = None) -> List[PaymentSummaryRow]:
        if month is not None and not 1 <= int(month) <= 12:
            raise ValidationError("Mes no válido")
        return list(self._payments.summary(month=month, year=year))

    def history(self, student_id: int, *, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> Page[Payment]:
        return self._payments.history(require_positive_id(student_id, "Estudiante"), page=max(1, page), page_size=page_size)

    def export_summary(self, rows: List[PaymentSummaryRow], fmt: str) -> DownloadedFile:
        """Payment summary as CSV (UTF-8 BOM) or XLSX."""

        data = [
            {
                SUMMARY_COLUMNS[0]: r.student_id,
                SUMMARY_COLUMNS[1]: r.full_name,
                SUMMARY_COLUMNS[2]: r.status_label,
                SUMMARY_COLUMNS[3]: r.type_label,
            }
            for r in rows
        ]
        stamp = self._today().isoformat()
        fmt = (fmt or "").lower()
        if fmt == "csv":
            return DownloadedFile(
                content=to_csv_bytes(SUMMARY_COLUMNS, data),
                content_type=CSV_MIMETYPE,
                filename=f"resumen_pagos_{stamp}.csv",
            )
        if fmt == "xlsx":
            return DownloadedFile(
                content=to_xlsx_bytes(SUMMARY_COLUMNS, data, sheet_name="ResumenPagos"),
                content_type=XLSX_MIMETYPE,
                filename=f"resumen_pagos_{stamp}.xlsx",
            )
        raise ValidationError(f"Formato de exportación no soportado: {fmt}")
