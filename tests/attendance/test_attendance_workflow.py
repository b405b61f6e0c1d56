from __future__ import annotations

from datetime import date

import pytest

from conftest import InMemoryAttendance, InMemoryClasses, admin_identity, class_session, student
from src.academia_console.academia_console.attendance.model import AttendanceFilters, AttendanceValidation
from src.academia_console.academia_console.attendance.service import AttendanceService
from src.academia_console.academia_console.attendance.workflow import (
    SAVED_MESSAGE,
    AttendanceWorkflow,
    ViewMode,
    WorkflowState,
)
from src.academia_console.academia_console.classes.service import ClassService
from src.academia_console.academia_console.core.exceptions import PartialSaveError, RegistrationBlockedError
from src.academia_console.academia_console.notifications.channel import NotificationChannel
from src.academia_console.academia_console.notifications.model import Notification

CLASS_ID = 10


class RecordingTransport:
    def __init__(self):
        self.on_message = None

    def start(self, *, token, on_message, on_close):
        self.on_message = on_message

    def stop(self):
        pass


def _workflow(attendance, classes, *, fixed_now, class_day, sleeps=None):
    return AttendanceWorkflow(
        AttendanceService(attendance, classes, clock=lambda: fixed_now),
        ClassService(classes),
        identity_provider=admin_identity,
        toggle_delay=0.3,
        sleep=(sleeps.append if sleeps is not None else lambda _s: None),
        today=lambda: class_day,
    )


@pytest.fixture
def attendance():
    return InMemoryAttendance()


@pytest.fixture
def classes():
    roster = [student(1, "Ana Alba"), student(2, "Beto Bravo"), student(3, "Carla Cruz")]
    return InMemoryClasses(classes=[class_session(CLASS_ID), class_session(20, name="Tango")], rosters={CLASS_ID: roster})


def test_roster_deduplicates_students_and_premarks_existing_records(attendance, classes, fixed_now, class_day):
    classes.rosters[CLASS_ID] = [student(1), student(2), student(1), student(3)]
    attendance.seed(1, 1, CLASS_ID, class_day, "Presente", notes="Llegó temprano")
    attendance.seed(2, 2, CLASS_ID, class_day, "Ausente")

    wf = _workflow(attendance, classes, fixed_now=fixed_now, class_day=class_day)
    wf.load_classes()
    wf.select(CLASS_ID)

    view = wf.view()
    assert view.state == WorkflowState.ROSTER_READY
    assert [r.student_id for r in view.rows] == [1, 2, 3]
    assert [r.present for r in view.rows] == [True, False, False]
    assert view.rows[0].notes == "Llegó temprano"
    assert view.present_count == 1 and view.absent_count == 2


def test_toggle_twice_restores_row_without_backend_calls(attendance, classes, fixed_now, class_day):
    sleeps = []
    wf = _workflow(attendance, classes, fixed_now=fixed_now, class_day=class_day, sleeps=sleeps)
    wf.select(CLASS_ID)

    wf.toggle_row(2)
    row = wf.toggle_row(2)

    assert row.present is False
    assert attendance.calls == []
    assert sleeps == [0.3, 0.3]
    assert wf.view().updating_student_id is None
    assert wf.state == WorkflowState.DIRTY


def test_save_is_refused_when_class_is_not_today(attendance, classes, fixed_now, class_day):
    attendance.validations[CLASS_ID] = AttendanceValidation(
        can_register=False, class_weekday="Lunes", current_weekday="Martes"
    )
    wf = _workflow(attendance, classes, fixed_now=fixed_now, class_day=class_day)
    wf.select(CLASS_ID)

    with pytest.raises(RegistrationBlockedError) as exc:
        wf.save()

    assert str(exc.value) == "No se puede registrar asistencia. Hoy es Martes y la clase es los dias Lunes"
    assert attendance.calls == []
    assert [t.level for t in wf.take_toasts()] == ["warning", "error"]
    with pytest.raises(RegistrationBlockedError):
        wf.toggle_row(1)


def test_save_replaces_existing_records_with_one_per_student(attendance, classes, fixed_now, class_day):
    attendance.seed(1, 1, CLASS_ID, class_day, "Presente")
    wf = _workflow(attendance, classes, fixed_now=fixed_now, class_day=class_day)
    wf.select(CLASS_ID)
    wf.toggle_row(2)

    wf.save()

    assert attendance.calls == [("delete", 1), ("create", 1), ("create", 2), ("create", 3)]
    stored = attendance.for_class(CLASS_ID, class_day)
    assert len(stored) == 3
    assert {r.student_id: r.status for r in stored} == {1: "Presente", 2: "Presente", 3: "Ausente"}
    view = wf.view()
    assert view.state == WorkflowState.SAVED
    assert view.show_download_prompt is True
    assert view.success == SAVED_MESSAGE
    assert [r.present for r in view.rows] == [True, True, False]


def test_notes_are_sent_with_the_new_records(attendance, classes, fixed_now, class_day):
    wf = _workflow(attendance, classes, fixed_now=fixed_now, class_day=class_day)
    wf.select(CLASS_ID)
    wf.update_notes(3, "Lesionada")

    wf.save()

    notes = {r.student_id: r.notes for r in attendance.for_class(CLASS_ID, class_day)}
    assert notes[3] == "Lesionada"
    assert notes[1] is None


def test_unreachable_validation_allows_registration(attendance, classes, fixed_now, class_day):
    attendance.fail_validate = True
    wf = _workflow(attendance, classes, fixed_now=fixed_now, class_day=class_day)
    wf.select(CLASS_ID)

    view = wf.view()
    assert view.validation is None
    assert view.can_register is True
    wf.save()
    assert len(attendance.for_class(CLASS_ID, class_day)) == 3


def test_failed_reload_keeps_current_roster(attendance, classes, fixed_now, class_day):
    wf = _workflow(attendance, classes, fixed_now=fixed_now, class_day=class_day)
    wf.select(CLASS_ID)
    attendance.fail_for_class = True

    assert wf.load_roster(CLASS_ID, class_day) is False

    view = wf.view()
    assert [r.student_id for r in view.rows] == [1, 2, 3]
    assert view.error == "Error al cargar asistencias"
    assert view.state == WorkflowState.ROSTER_READY
    assert view.loading is False


def test_roster_of_superseded_selection_is_discarded(attendance, classes, fixed_now, class_day):
    wf = _workflow(attendance, classes, fixed_now=fixed_now, class_day=class_day)
    classes.rosters[20] = [student(9, "Zoe Zapata")]
    original_roster = classes.roster

    def roster_switching_class(class_id):
        rows = original_roster(class_id)
        if class_id == CLASS_ID:
            # user picks another class while the first roster is in flight
            wf.select(20)
        return rows

    classes.roster = roster_switching_class
    wf.select(CLASS_ID)

    view = wf.view()
    assert view.class_id == 20
    assert [r.student_id for r in view.rows] == [9]


def test_attendance_push_reloads_history_with_same_filters_and_page(attendance, classes, fixed_now, class_day):
    for i in range(1, 13):
        attendance.seed(i, i, CLASS_ID, class_day, "Presente")
    transport = RecordingTransport()
    channel = NotificationChannel(transport, token_provider=lambda: "tok")
    channel.connect()

    wf = _workflow(attendance, classes, fixed_now=fixed_now, class_day=class_day)
    wf.attach(channel)
    wf.set_view_mode(ViewMode.HISTORY)
    filters = AttendanceFilters(start_date=date(2026, 3, 1), class_id=CLASS_ID)
    wf.load_history(filters, page=2, page_size=5)
    revision = wf.view().revision

    transport.on_message(Notification(type="nueva_asistencia", data={"idAsist": 99}))

    assert attendance.history_calls[-1] == (filters, 2, 5)
    assert wf.view().revision > revision
    assert [r.record_id for r in wf.view().history.data] == [6, 7, 8, 9, 10]


def test_other_push_types_do_not_reload_attendance(attendance, classes, fixed_now, class_day):
    transport = RecordingTransport()
    channel = NotificationChannel(transport, token_provider=lambda: "tok")
    channel.connect()
    wf = _workflow(attendance, classes, fixed_now=fixed_now, class_day=class_day)
    wf.attach(channel)
    wf.set_view_mode(ViewMode.HISTORY)
    calls = len(attendance.history_calls)

    transport.on_message(Notification(type="nuevo_cobro"))

    assert len(attendance.history_calls) == calls


def test_partial_save_resumes_without_repeating_completed_calls(attendance, classes, fixed_now, class_day):
    attendance.seed(1, 1, CLASS_ID, class_day, "Presente")
    attendance.fail_create_for = {2}
    wf = _workflow(attendance, classes, fixed_now=fixed_now, class_day=class_day)
    wf.select(CLASS_ID)

    with pytest.raises(PartialSaveError) as exc:
        wf.save()

    assert str(exc.value).startswith("Se guardaron 1 de 3 asistencias")
    assert wf.view().pending_save is not None
    assert wf.state == WorkflowState.DIRTY

    attendance.fail_create_for = set()
    attendance.calls.clear()
    wf.save()

    assert attendance.calls == [("create", 2), ("create", 3)]
    assert len(attendance.for_class(CLASS_ID, class_day)) == 3
    assert wf.view().pending_save is None


def test_selecting_another_class_drops_pending_save(attendance, classes, fixed_now, class_day):
    attendance.fail_create_for = {1}
    wf = _workflow(attendance, classes, fixed_now=fixed_now, class_day=class_day)
    wf.select(CLASS_ID)
    with pytest.raises(PartialSaveError):
        wf.save()

    wf.select(20)

    assert wf.view().pending_save is None


def test_teacher_without_person_id_gets_error_instead_of_classes(attendance, classes, fixed_now, class_day):
    from conftest import teacher_identity

    wf = AttendanceWorkflow(
        AttendanceService(attendance, classes, clock=lambda: fixed_now),
        ClassService(classes),
        identity_provider=lambda: teacher_identity(person_id=None),
        toggle_delay=0,
        today=lambda: class_day,
    )
    wf.load_classes()

    assert wf.view().classes == ()
    assert wf.view().error == "No se pudo obtener el ID del profesor."


@pytest.mark.parametrize("refresh", ["reselect", "push_reload"])
def test_resumed_save_after_roster_refresh_keeps_one_record_per_student(
    attendance, classes, fixed_now, class_day, refresh
):
    attendance.fail_create_for = {2}
    wf = _workflow(attendance, classes, fixed_now=fixed_now, class_day=class_day)
    wf.select(CLASS_ID, class_day)
    wf.toggle_row(1)
    with pytest.raises(PartialSaveError):
        wf.save()

    if refresh == "reselect":
        wf.select(CLASS_ID, class_day)
    else:
        wf.reload_active_view()
    attendance.fail_create_for = set()
    wf.save()

    stored = attendance.for_class(CLASS_ID, class_day)
    per_student = {}
    for record in stored:
        per_student[record.student_id] = per_student.get(record.student_id, 0) + 1
    assert per_student == {1: 1, 2: 1, 3: 1}
    assert {r.student_id: r.status for r in stored} == {1: "Presente", 2: "Ausente", 3: "Ausente"}


def test_roster_reload_is_ignored_while_saving(attendance, classes, fixed_now, class_day):
    wf = _workflow(attendance, classes, fixed_now=fixed_now, class_day=class_day)
    wf.select(CLASS_ID, class_day)
    wf.toggle_row(3)
    wf.saving = True

    assert wf.load_roster(CLASS_ID, class_day, silent=True) is False
    assert wf.view().rows[2].present is True
