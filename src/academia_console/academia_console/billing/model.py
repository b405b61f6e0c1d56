from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from ..people.model import PersonSummary

MONTH_NAMES = (
    "Enero",
    "Febrero",
    "Marzo",
    "Abril",
    "Mayo",
    "Junio",
    "Julio",
    "Agosto",
    "Septiembre",
    "Octubre",
    "Noviembre",
    "Diciembre",
)

MONTHLY = "mensual"


@dataclass(frozen=True)
class Payment:
    """`Cobro`: a charge or payment of a student."""

    payment_id: int
    amount: float
    charge_type: str
    paid_at: Optional[datetime] = None
    due_at: Optional[datetime] = None
    method: Optional[str] = None
    month: Optional[str] = None
    year: Optional[int] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    student: Optional[PersonSummary] = None


@dataclass(frozen=True)
class PaymentForm:
    amount: float
    paid_on: Optional[date]
    method: Optional[str]
    charge_type: str = MONTHLY
    month: Optional[str] = None
    year: Optional[int] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    student_id: Optional[int] = None


@dataclass(frozen=True)
class PaymentFilters:
    student_id: Optional[int] = None
    status: Optional[str] = None
    charge_type: Optional[str] = None
    month: Optional[str] = None
    year: Optional[int] = None
    method: Optional[str] = None
    search: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def params(self) -> dict:
        return {
            "idEstudiante": self.student_id or None,
            "estadoCobro": self.status or None,
            "tipoCobro": self.charge_type or None,
            "mesCorrespondiente": self.month or None,
            "anioCorrespondiente": self.year or None,
            "metodoPago": self.method or None,
            "busqueda": self.search or None,
            "fechaInicio": self.start_date.isoformat() if self.start_date else None,
            "fechaFin": self.end_date.isoformat() if self.end_date else None,
        }


@dataclass(frozen=True)
class MonthlyPayment:
    month: str
    year: int
    paid: bool
    paid_at: Optional[datetime] = None
    amount: Optional[float] = None


@dataclass(frozen=True)
class StudentPaymentStatus:
    student_id: int
    full_name: str
    months: List[MonthlyPayment] = field(default_factory=list)


@dataclass(frozen=True)
class PaymentSummaryRow:
    """One line of `/Cobros/resumen-pagos`."""

    student_id: int
    full_name: str
    paid_this_month: bool
    payment_type: str = ""

    @property
    def status_label(self) -> str:
        return "Pagado" if self.paid_this_month else "Pendiente"

    @property
    def type_label(self) -> str:
        return self.payment_type or "Sin pago"
