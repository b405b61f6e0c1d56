from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from ..classes.repository import ClassRepository
from ..common.datetime_utils import to_iso_with_current_time
from ..common.pagination import Page
from ..common.validators import optional_text, require_choice, require_positive_id
from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.enums import AttendanceStatus
from ..core.exceptions import ApiError, NotFoundError, PartialSaveError, RegistrationBlockedError, ValidationError
from ..people.model import PersonSummary
from .model import (
    AttendanceDraft,
    AttendanceFilters,
    AttendanceRecord,
    AttendanceValidation,
    RosterRow,
    SaveProgress,
    SaveResult,
)
from .repository import AttendanceRepository

log = logging.getLogger(__name__)


def build_roster(students: Iterable[PersonSummary], records: Iterable[AttendanceRecord]) -> List[RosterRow]:
    """Merge the enrolled students with the records already stored for the day.

    Students are deduplicated by id (first occurrence wins, order kept). A row
    is pre-marked present when its first record says `Presente`.
    """

    by_student: Dict[int, List[AttendanceRecord]] = {}
    for record in records:
        if record.student_id is not None:
            by_student.setdefault(record.student_id, []).append(record)

    rows: List[RosterRow] = []
    seen = set()
    for student in students:
        if student.person_id in seen:
            continue
        seen.add(student.person_id)

        existing = tuple(by_student.get(student.person_id, ()))
        first = existing[0] if existing else None
        rows.append(
            RosterRow(
                student=student,
                present=bool(first and first.is_present),
                notes=(first.notes or "") if first else "",
                existing_records=existing,
            )
        )
    return rows


class AttendanceService:
    """Use cases around attendance records: roster, rule check, history and save."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        classes: ClassRepository,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._attendance = attendance
        self._classes = classes
        self._clock = clock

    def load_roster(self, class_id: int, day: date) -> List[RosterRow]:
        class_id = require_positive_id(class_id, "Clase")
        students = self._classes.roster(class_id)
        records = self._attendance.for_class(class_id, day)
        return build_roster(students, records)

    def validate(self, class_id: int) -> AttendanceValidation:
        return self._attendance.validate(require_positive_id(class_id, "Clase"))

    def history(
        self,
        filters: AttendanceFilters,
        *,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Page[AttendanceRecord]:
        if filters.start_date and filters.end_date and filters.end_date < filters.start_date:
            raise ValidationError("La fecha fin no puede ser anterior a la fecha inicio")
        return self._attendance.list(page=max(1, page), page_size=page_size, filters=filters)

    def get(self, record_id: int) -> AttendanceRecord:
        return self._attendance.get(require_positive_id(record_id, "Asistencia"))

    def for_student(self, student_id: int, *, start_date=None, end_date=None) -> Sequence[AttendanceRecord]:
        return self._attendance.for_student(
            require_positive_id(student_id, "Estudiante"), start_date=start_date, end_date=end_date
        )

    def for_enrollment(self, enrollment_id: int, *, start_date=None, end_date=None) -> Sequence[AttendanceRecord]:
        return self._attendance.for_enrollment(
            require_positive_id(enrollment_id, "Inscripción"), start_date=start_date, end_date=end_date
        )

    def _draft(self, *, student_id: int, class_id: int, day: date, status: str, notes: Optional[str]) -> AttendanceDraft:
        return AttendanceDraft(
            student_id=student_id,
            class_id=class_id,
            recorded_at=to_iso_with_current_time(day, now=self._clock()),
            status=status,
            notes=optional_text(notes),
        )

    def record_single(
        self,
        *,
        student_id: int,
        class_id: int,
        day: date,
        status: str = AttendanceStatus.PRESENT.value,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        """Quick registration of one student outside the roster view."""

        status = require_choice(status, "Estado", [s.value for s in AttendanceStatus])
        draft = self._draft(
            student_id=require_positive_id(student_id, "Estudiante"),
            class_id=require_positive_id(class_id, "Clase"),
            day=day,
            status=status,
            notes=notes,
        )
        return self._attendance.create(draft)

    def update_record(self, record_id: int, *, student_id: int, class_id: int, day: date, status: str, notes=None):
        status = require_choice(status, "Estado", [s.value for s in AttendanceStatus])
        draft = self._draft(student_id=student_id, class_id=class_id, day=day, status=status, notes=notes)
        return self._attendance.update(require_positive_id(record_id, "Asistencia"), draft)

    def delete_record(self, record_id: int) -> None:
        self._attendance.delete(require_positive_id(record_id, "Asistencia"))

    def save_roster(
        self,
        class_id: int,
        day: date,
        rows: Sequence[RosterRow],
        *,
        validation: Optional[AttendanceValidation] = None,
        progress: Optional[SaveProgress] = None,
    ) -> SaveResult:
        """Replace the stored records of every row with one fresh record each.

        Deletes run first, then creates, one call at a time. When a call fails
        a `PartialSaveError` carries the progress; passing it back resumes the
        batch without repeating completed deletes or creates.
        """

        if validation is not None and not validation.can_register:
            raise RegistrationBlockedError(validation.blocked_message, validation)

        class_id = require_positive_id(class_id, "Clase")
        resumed = progress is not None and progress.matches(class_id, day)
        if not resumed:
            progress = SaveProgress(class_id=class_id, day=day)
        progress.failed_step = None
        total = len(rows)
        # a roster reloaded mid-batch lists the records this batch created
        owned = progress.created_ids

        for row in rows:
            for record in row.existing_records:
                if record.record_id in progress.deleted_ids or record.record_id in owned:
                    continue
                try:
                    self._attendance.delete(record.record_id)
                except NotFoundError:
                    log.info("Attendance %s already gone, skipping delete", record.record_id)
                except ApiError as e:
                    progress.failed_step = f"delete:{record.record_id}"
                    log.error(
                        "Attendance save for class %s on %s stopped deleting record %s: %s",
                        class_id, day, record.record_id, e,
                    )
                    raise PartialSaveError(
                        f"Error al guardar asistencias: {e}. Vuelva a guardar para completar.", progress
                    ) from e
                progress.deleted_ids.add(record.record_id)

        for row in rows:
            status = AttendanceStatus.PRESENT.value if row.present else AttendanceStatus.ABSENT.value
            notes = optional_text(row.notes)
            done = progress.created.get(row.student_id)
            if done is not None:
                sent, record_id = done
                if sent.status == status and sent.notes == notes:
                    continue
                # edited after a failed batch: replace what this batch created
                try:
                    self._attendance.delete(record_id)
                except NotFoundError:
                    pass
                except ApiError as e:
                    progress.failed_step = f"delete:{record_id}"
                    raise PartialSaveError(
                        f"Error al guardar asistencias: {e}. Vuelva a guardar para completar.", progress
                    ) from e
                del progress.created[row.student_id]

            draft = self._draft(student_id=row.student_id, class_id=class_id, day=day, status=status, notes=notes)
            try:
                record = self._attendance.create(draft)
            except ApiError as e:
                progress.failed_step = f"create:{row.student_id}"
                log.error(
                    "Attendance save for class %s on %s stopped at %s of %s creates: %s",
                    class_id, day, progress.created_count, total, e,
                )
                raise PartialSaveError(
                    f"Se guardaron {progress.created_count} de {total} asistencias: {e}. "
                    "Vuelva a guardar para completar.",
                    progress,
                ) from e
            progress.created[row.student_id] = (draft, record.record_id)

        return SaveResult(created_count=progress.created_count, deleted_count=progress.deleted_count, resumed=resumed)
