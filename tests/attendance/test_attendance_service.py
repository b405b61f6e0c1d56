from __future__ import annotations

from datetime import date

import pytest

from conftest import InMemoryAttendance, InMemoryClasses, class_session, student
from src.academia_console.academia_console.attendance.api_attendance_repository import draft_to_body, validation_from_payload
from src.academia_console.academia_console.attendance.model import AttendanceFilters, RosterRow
from src.academia_console.academia_console.attendance.service import AttendanceService
from src.academia_console.academia_console.core.exceptions import PartialSaveError, ValidationError

CLASS_ID = 10


@pytest.fixture
def repo():
    return InMemoryAttendance()


@pytest.fixture
def service(repo, fixed_now):
    classes = InMemoryClasses(classes=[class_session(CLASS_ID)], rosters={CLASS_ID: [student(1), student(2)]})
    return AttendanceService(repo, classes, clock=lambda: fixed_now)


def test_new_records_use_selected_day_with_current_utc_time(service, repo):
    record = service.record_single(student_id=1, class_id=CLASS_ID, day=date(2026, 2, 27), notes="  ")

    assert record.recorded_at.isoformat() == "2026-02-27T15:30:00"
    assert record.notes is None
    assert record.status == "Presente"


def test_record_single_rejects_unknown_status(service):
    with pytest.raises(ValidationError):
        service.record_single(student_id=1, class_id=CLASS_ID, day=date(2026, 3, 2), status="Dormido")


def test_history_rejects_inverted_range(service):
    filters = AttendanceFilters(start_date=date(2026, 3, 10), end_date=date(2026, 3, 1))

    with pytest.raises(ValidationError):
        service.history(filters)


def test_already_deleted_record_does_not_stop_the_batch(service, repo, class_day):
    stale = repo.seed(5, 1, CLASS_ID, class_day, "Ausente")
    repo.records.pop(5)
    rows = [RosterRow(student=student(1), present=True, existing_records=(stale,)), RosterRow(student=student(2))]

    result = service.save_roster(CLASS_ID, class_day, rows)

    assert result.created_count == 2
    assert result.deleted_count == 1
    assert repo.calls[0] == ("delete", 5)


def test_row_edited_after_failure_replaces_the_record_created_earlier(service, repo, class_day):
    repo.fail_create_for = {2}
    rows = [RosterRow(student=student(1), present=True), RosterRow(student=student(2))]
    with pytest.raises(PartialSaveError) as exc:
        service.save_roster(CLASS_ID, class_day, rows)
    progress = exc.value.progress
    assert progress.failed_step == "create:2"
    first_id = progress.created[1][1]

    repo.fail_create_for = set()
    repo.calls.clear()
    edited = [rows[0].toggled(), rows[1]]
    result = service.save_roster(CLASS_ID, class_day, edited, progress=progress)

    assert result.resumed is True
    assert repo.calls == [("delete", first_id), ("create", 1), ("create", 2)]
    assert {r.student_id: r.status for r in repo.for_class(CLASS_ID, class_day)} == {1: "Ausente", 2: "Ausente"}


def test_failed_delete_reports_partial_progress(service, repo, class_day):
    existing = repo.seed(5, 1, CLASS_ID, class_day, "Presente")
    repo.fail_delete_for = {5}
    rows = [RosterRow(student=student(1), present=True, existing_records=(existing,))]

    with pytest.raises(PartialSaveError) as exc:
        service.save_roster(CLASS_ID, class_day, rows)

    assert exc.value.progress.failed_step == "delete:5"
    assert repo.calls == [("delete", 5)]


def test_draft_body_omits_missing_notes():
    from src.academia_console.academia_console.attendance.model import AttendanceDraft

    body = draft_to_body(AttendanceDraft(student_id=1, class_id=2, recorded_at="2026-03-02T15:30:00Z", status="Ausente"))

    assert body == {"idEstudiante": 1, "idClase": 2, "fechaAsis": "2026-03-02T15:30:00Z", "estadoAsis": "Ausente"}


def test_validation_payload_builds_blocked_message():
    validation = validation_from_payload(
        {"PuedeRegistrar": False, "DiaSemanaClase": "Lunes", "DiaActual": "Martes", "Mensaje": "No es día de clase"}
    )

    assert validation.can_register is False
    assert validation.blocked_message == "No se puede registrar asistencia. Hoy es Martes y la clase es los dias Lunes"


def test_student_attendance_is_limited_to_the_date_range(service, repo):
    repo.seed(1, 1, CLASS_ID, date(2026, 2, 20), "Presente")
    repo.seed(2, 1, CLASS_ID, date(2026, 3, 2), "Ausente")
    repo.seed(3, 2, CLASS_ID, date(2026, 3, 2), "Presente")

    rows = service.for_student(1, start_date=date(2026, 3, 1), end_date=date(2026, 3, 31))

    assert [r.record_id for r in rows] == [2]


def test_enrollment_attendance_matches_student_and_class(service, repo, class_day):
    repo.enrollments[40] = (1, CLASS_ID)
    repo.seed(1, 1, CLASS_ID, class_day, "Presente")
    repo.seed(2, 1, 20, class_day, "Presente")

    assert [r.record_id for r in service.for_enrollment(40)] == [1]


def test_lookups_reject_non_positive_ids(service):
    with pytest.raises(ValidationError):
        service.for_student(0)
    with pytest.raises(ValidationError):
        service.for_enrollment(-1)


def test_update_record_keeps_day_and_changes_status(service, repo, class_day):
    repo.seed(5, 1, CLASS_ID, class_day, "Presente")

    record = service.update_record(5, student_id=1, class_id=CLASS_ID, day=class_day, status="Ausente", notes=" Tarde ")

    assert repo.calls == [("update", 5)]
    assert record.status == "Ausente"
    assert record.notes == "Tarde"
    assert record.recorded_at.date() == class_day


def test_update_record_rejects_unknown_status(service, repo, class_day):
    repo.seed(5, 1, CLASS_ID, class_day, "Presente")

    with pytest.raises(ValidationError):
        service.update_record(5, student_id=1, class_id=CLASS_ID, day=class_day, status="Tarde")
    assert repo.calls == []
