from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..classes.model import ClassSummary
from ..people.model import PersonSummary


@dataclass(frozen=True)
class Enrollment:
    """`Inscripcion`: a student enrolled in a class."""

    enrollment_id: int
    enrolled_at: Optional[datetime]
    status: Optional[str] = None
    withdrawn_at: Optional[datetime] = None
    withdrawal_reason: Optional[str] = None
    student: Optional[PersonSummary] = None
    class_ref: Optional[ClassSummary] = None

    @property
    def label(self) -> str:
        student = self.student.full_name if self.student else "Estudiante"
        class_name = (self.class_ref.name if self.class_ref else None) or "Clase"
        return f"#{self.enrollment_id} - {student} - {class_name}"


@dataclass(frozen=True)
class EnrollmentForm:
    student_id: Optional[int] = None
    class_id: Optional[int] = None
    enrolled_on: Optional[date] = None
    status: Optional[str] = None
    withdrawn_on: Optional[date] = None
    withdrawal_reason: Optional[str] = None


@dataclass(frozen=True)
class EnrollmentFilters:
    status: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def params(self) -> dict:
        return {
            "estado": self.status or None,
            "fechaInicio": self.start_date.isoformat() if self.start_date else None,
            "fechaFin": self.end_date.isoformat() if self.end_date else None,
        }
