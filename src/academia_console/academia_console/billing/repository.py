from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..common.pagination import Page
from .model import Payment, PaymentFilters, PaymentForm, PaymentSummaryRow, StudentPaymentStatus


class PaymentRepository(Protocol):
    def list(self, *, page: int, page_size: int, filters: PaymentFilters) -> Page[Payment]:
        raise NotImplementedError

    def get(self, payment_id: int) -> Payment:
        raise NotImplementedError

    def create(self, form: PaymentForm) -> Payment:
        raise NotImplementedError

    def update(self, payment_id: int, form: PaymentForm) -> Payment:
        raise NotImplementedError

    def delete(self, payment_id: int) -> None:
        raise NotImplementedError

    def status_of(self, student_id: int) -> StudentPaymentStatus:
        raise NotImplementedError

    def summary(self, *, month: Optional[int] = None, year: Optional[int] = None) -> Sequence[PaymentSummaryRow]:
        raise NotImplementedError

    def history(self, student_id: int, *, page: int, page_size: int) -> Page[Payment]:
        raise NotImplementedError
