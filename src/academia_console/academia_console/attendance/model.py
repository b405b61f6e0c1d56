from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Dict, Optional, Set, Tuple

from ..classes.model import ClassSummary
from ..core.enums import AttendanceStatus
from ..people.model import PersonSummary


@dataclass(frozen=True)
class AttendanceRecord:
    """Persisted attendance record (`Asistencia`)."""

    record_id: int
    recorded_at: datetime
    status: Optional[str] = None
    notes: Optional[str] = None
    student: Optional[PersonSummary] = None
    class_ref: Optional[ClassSummary] = None

    @property
    def is_present(self) -> bool:
        return self.status == AttendanceStatus.PRESENT.value

    @property
    def student_id(self) -> Optional[int]:
        return self.student.person_id if self.student else None


@dataclass(frozen=True)
class AttendanceValidation:
    """Server-side rule check: may attendance be taken for this class today?"""

    can_register: bool
    message: str = ""
    class_weekday: str = ""
    current_weekday: str = ""
    already_registered_this_week: bool = False
    last_attendance_at: Optional[datetime] = None
    next_available_at: Optional[datetime] = None

    @property
    def title(self) -> str:
        return "Asistencia ya registrada esta semana" if self.already_registered_this_week else "No es dia de clase"

    @property
    def blocked_message(self) -> str:
        return (
            f"No se puede registrar asistencia. Hoy es {self.current_weekday} "
            f"y la clase es los dias {self.class_weekday}"
        )


@dataclass(frozen=True)
class AttendanceDraft:
    """Body of `POST /Asistencias`."""

    student_id: int
    class_id: int
    recorded_at: str
    status: str
    notes: Optional[str] = None


@dataclass(frozen=True)
class RosterRow:
    """One enrolled student in the registration view.

    `existing_records` are every record already stored for this student on
    the selected date; saving replaces all of them.
    """

    student: PersonSummary
    present: bool = False
    notes: str = ""
    existing_records: Tuple[AttendanceRecord, ...] = ()

    @property
    def student_id(self) -> int:
        return self.student.person_id

    def toggled(self) -> "RosterRow":
        return replace(self, present=not self.present)

    def with_notes(self, notes: str) -> "RosterRow":
        return replace(self, notes=notes)


@dataclass(frozen=True)
class AttendanceFilters:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    enrollment_id: Optional[int] = None
    student_id: Optional[int] = None
    class_id: Optional[int] = None
    status: Optional[str] = None

    def params(self) -> dict:
        return {
            "fechaInicio": self.start_date.isoformat() if self.start_date else None,
            "fechaFin": self.end_date.isoformat() if self.end_date else None,
            "idInscripcion": self.enrollment_id or None,
            "idEstudiante": self.student_id or None,
            "idClase": self.class_id or None,
            "estadoAsis": self.status or None,
        }

    def is_empty(self) -> bool:
        return not any(v is not None for v in self.params().values())


@dataclass
class SaveProgress:
    """What an attendance batch for one class and date has already done."""

    class_id: int
    day: date
    deleted_ids: Set[int] = field(default_factory=set)
    # student id -> (draft sent, record id returned)
    created: Dict[int, Tuple[AttendanceDraft, int]] = field(default_factory=dict)
    failed_step: Optional[str] = None

    def matches(self, class_id: int, day: date) -> bool:
        return self.class_id == class_id and self.day == day

    @property
    def created_ids(self) -> Set[int]:
        return {record_id for _, record_id in self.created.values()}

    @property
    def created_count(self) -> int:
        return len(self.created)

    @property
    def deleted_count(self) -> int:
        return len(self.deleted_ids)


@dataclass(frozen=True)
class SaveResult:
    created_count: int
    deleted_count: int
    resumed: bool = False
