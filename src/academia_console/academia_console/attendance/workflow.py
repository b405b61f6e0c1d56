"""Per-session state of the attendance page.

The browser only ever sees snapshots (`AttendanceView`); every mutation goes
through `AttendanceWorkflow`, which serializes state changes with a lock and
drops responses that arrive for a superseded selection.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, List, Optional, Tuple

from ..api.gateway import DownloadedFile
from ..auth.model import Identity
from ..classes.model import ClassSession
from ..classes.service import ClassService
from ..common.datetime_utils import today_local
from ..common.pagination import Page, Pagination
from ..core.constants import TOGGLE_FEEDBACK_DELAY_SECONDS
from ..core.enums import NotificationType
from ..core.exceptions import (
    ApiError,
    AuthorizationError,
    PartialSaveError,
    RegistrationBlockedError,
    ValidationError,
)
from ..enrollments.model import Enrollment
from ..enrollments.service import EnrollmentService
from ..notifications.channel import NotificationChannel
from ..notifications.model import Notification
from ..reports.model import ReportResource
from ..reports.service import ReportService
from .model import AttendanceFilters, AttendanceRecord, AttendanceValidation, RosterRow, SaveProgress
from .service import AttendanceService

log = logging.getLogger(__name__)

SAVED_MESSAGE = "Asistencias guardadas correctamente"


class ViewMode(str, Enum):
    REGISTER = "registro"
    HISTORY = "historial"


class WorkflowState(str, Enum):
    IDLE = "idle"
    LOADING_CLASSES = "loading_classes"
    CLASSES_LOADED = "classes_loaded"
    VALIDATING = "validating"
    ROSTER_LOADING = "roster_loading"
    ROSTER_READY = "roster_ready"
    DIRTY = "dirty"
    SAVING = "saving"
    SAVED = "saved"


@dataclass(frozen=True)
class Toast:
    message: str
    level: str = "info"


@dataclass(frozen=True)
class AttendanceView:
    """Immutable snapshot rendered by the attendance templates."""

    state: WorkflowState
    view_mode: ViewMode
    classes: Tuple[ClassSession, ...]
    enrollments: Tuple[Enrollment, ...]
    class_id: Optional[int]
    day: date
    validation: Optional[AttendanceValidation]
    validation_dismissed: bool
    rows: Tuple[RosterRow, ...]
    history_filters: AttendanceFilters
    history: Page[AttendanceRecord]
    loading: bool
    saving: bool
    show_download_prompt: bool
    updating_student_id: Optional[int]
    error: Optional[str]
    success: Optional[str]
    pending_save: Optional[SaveProgress]
    revision: int

    @property
    def can_register(self) -> bool:
        return self.validation is None or self.validation.can_register

    @property
    def present_count(self) -> int:
        return sum(1 for r in self.rows if r.present)

    @property
    def absent_count(self) -> int:
        return len(self.rows) - self.present_count


class AttendanceWorkflow:
    """Registration and history of attendance for one browser session.

    Registration: pick class and date, validate, load the roster, toggle
    presence locally, save (replace semantics). History: paginated, filtered
    table. A `nueva_asistencia` push reloads whichever view is active.
    """

    def __init__(
        self,
        attendance: AttendanceService,
        classes: ClassService,
        *,
        identity_provider: Callable[[], Optional[Identity]],
        reports: Optional[ReportService] = None,
        enrollments: Optional[EnrollmentService] = None,
        toggle_delay: float = TOGGLE_FEEDBACK_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        today: Callable[[], date] = today_local,
    ):
        self._attendance = attendance
        self._classes = classes
        self._identity_provider = identity_provider
        self._reports = reports
        self._enrollments = enrollments
        self._toggle_delay = max(0.0, float(toggle_delay))
        self._sleep = sleep

        self._lock = threading.RLock()
        self._roster_generation = 0
        self._history_generation = 0
        self._unsubscribe: Optional[Callable[[], None]] = None

        self.state = WorkflowState.IDLE
        self.view_mode = ViewMode.REGISTER
        self.classes: List[ClassSession] = []
        self.enrollments: List[Enrollment] = []
        self.class_id: Optional[int] = None
        self.day: date = today()
        self.validation: Optional[AttendanceValidation] = None
        self.validation_dismissed = False
        self.rows: List[RosterRow] = []
        self.history_filters = AttendanceFilters()
        self.pagination = Pagination()
        self.history: Page[AttendanceRecord] = Page.empty(self.pagination.page_size)
        self.loading = False
        self.saving = False
        self.show_download_prompt = False
        self.updating_student_id: Optional[int] = None
        self.error: Optional[str] = None
        self.success: Optional[str] = None
        self.progress: Optional[SaveProgress] = None
        self.revision = 0
        self._toasts: List[Toast] = []

    def _touch(self) -> None:
        self.revision += 1

    def _toast(self, message: str, level: str) -> None:
        self._toasts.append(Toast(message=message, level=level))

    def take_toasts(self) -> List[Toast]:
        with self._lock:
            toasts, self._toasts = self._toasts, []
            return toasts

    def view(self) -> AttendanceView:
        with self._lock:
            return AttendanceView(
                state=self.state,
                view_mode=self.view_mode,
                classes=tuple(self.classes),
                enrollments=tuple(self.enrollments),
                class_id=self.class_id,
                day=self.day,
                validation=self.validation,
                validation_dismissed=self.validation_dismissed,
                rows=tuple(self.rows),
                history_filters=self.history_filters,
                history=self.history,
                loading=self.loading,
                saving=self.saving,
                show_download_prompt=self.show_download_prompt,
                updating_student_id=self.updating_student_id,
                error=self.error,
                success=self.success,
                pending_save=self.progress,
                revision=self.revision,
            )

    def dismiss_validation(self) -> None:
        """Hide the warning panel; saving stays blocked."""

        with self._lock:
            self.validation_dismissed = True
            self._touch()

    def dismiss_download_prompt(self) -> None:
        with self._lock:
            self.show_download_prompt = False
            self._touch()

    def clear_messages(self) -> None:
        with self._lock:
            self.error = None
            self.success = None

    def attach(self, channel: NotificationChannel) -> None:
        self.detach()
        self._unsubscribe = channel.subscribe(NotificationType.NEW_ATTENDANCE.value, self._on_new_attendance)

    def detach(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_new_attendance(self, notification: Notification) -> None:
        log.debug("Attendance push received (%s), reloading %s", notification.type, self.view_mode.value)
        self.reload_active_view()

    def reload_active_view(self) -> None:
        """Silent reload of whatever is on screen, keeping filters and page."""

        with self._lock:
            mode, class_id, day = self.view_mode, self.class_id, self.day
        if mode == ViewMode.HISTORY:
            self.load_history(silent=True)
        elif class_id:
            self.load_roster(class_id, day, silent=True)

    def load_classes(self) -> None:
        identity = self._identity_provider()
        with self._lock:
            self.state = WorkflowState.LOADING_CLASSES
            self.error = None

        classes: List[ClassSession] = []
        error: Optional[str] = None
        if identity is None:
            error = "No tiene permisos para ver clases"
        elif identity.is_teacher and not identity.is_admin and not identity.person_id:
            error = "No se pudo obtener el ID del profesor."
        else:
            try:
                classes = self._classes.selectable_for(identity)
            except (AuthorizationError, ApiError) as e:
                error = str(e) or "Error al cargar clases"
            else:
                if not classes:
                    error = "No hay clases activas registradas" if identity.is_admin else "No tiene clases activas asignadas"

        enrollments = self._load_enrollment_options()

        with self._lock:
            self.classes = classes
            self.enrollments = enrollments
            self.error = error
            self.state = WorkflowState.CLASSES_LOADED
            self._touch()

    def _load_enrollment_options(self) -> List[Enrollment]:
        if self._enrollments is None:
            return []
        try:
            return self._enrollments.selectable()
        except ApiError as e:
            log.warning("Could not load enrollments for the history filter: %s", e)
            return []

    def select(self, class_id: Optional[int], day: Optional[date] = None) -> None:
        """Choose class and date: validate first, then load the roster."""

        with self._lock:
            self._roster_generation += 1
            generation = self._roster_generation
            self.class_id = class_id or None
            if day is not None:
                self.day = day
            self.show_download_prompt = False
            self.success = None
            if self.progress is not None and not self.progress.matches(class_id or 0, self.day):
                self.progress = None
            if not self.class_id:
                self.validation = None
                self.rows = []
                self.state = WorkflowState.CLASSES_LOADED
                self._touch()
                return
            class_id, day = self.class_id, self.day
            self.state = WorkflowState.VALIDATING

        self.validate_registration_allowed(class_id, generation=generation)
        with self._lock:
            if generation != self._roster_generation:
                return
        self.load_roster(class_id, day, generation=generation)

    def validate_registration_allowed(
        self,
        class_id: int,
        *,
        generation: Optional[int] = None,
    ) -> Optional[AttendanceValidation]:
        """Server rule check. An unreachable validation service allows registration."""

        try:
            validation: Optional[AttendanceValidation] = self._attendance.validate(class_id)
        except ApiError as e:
            log.warning("Attendance validation unavailable for class %s: %s", class_id, e)
            validation = None

        with self._lock:
            if generation is not None and generation != self._roster_generation:
                return validation
            self.validation = validation
            self.validation_dismissed = False
            if validation is not None and not validation.can_register:
                self._toast(validation.blocked_message, "warning")
            self._touch()
        return validation

    def load_roster(
        self,
        class_id: int,
        day: date,
        *,
        generation: Optional[int] = None,
        silent: bool = False,
    ) -> bool:
        with self._lock:
            if generation is None:
                self._roster_generation += 1
                generation = self._roster_generation
            if not silent:
                self.loading = True
                self.state = WorkflowState.ROSTER_LOADING

        try:
            rows = self._attendance.load_roster(class_id, day)
        except (ApiError, ValidationError) as e:
            with self._lock:
                if generation == self._roster_generation and not self.saving:
                    self.loading = False
                    self.error = str(e) or "Error al cargar estudiantes"
                    self.state = WorkflowState.ROSTER_READY if self.rows else WorkflowState.CLASSES_LOADED
                    self._touch()
            return False

        with self._lock:
            if generation != self._roster_generation:
                log.debug("Discarding stale roster for class %s on %s", class_id, day)
                return False
            if self.saving:
                log.debug("Ignoring roster reload for class %s while saving", class_id)
                return False
            self.rows = rows
            self.loading = False
            self.error = None
            self.state = WorkflowState.ROSTER_READY
            self._touch()
        return True

    def _row_index(self, student_id: int) -> int:
        for i, row in enumerate(self.rows):
            if row.student_id == student_id:
                return i
        raise ValidationError("El estudiante no está en la lista de la clase")

    def _ensure_editable(self) -> None:
        if self.validation is not None and not self.validation.can_register:
            raise RegistrationBlockedError(self.validation.blocked_message, self.validation)
        if self.saving:
            raise ValidationError("Guardando asistencias, espere un momento")

    def toggle_row(self, student_id: int) -> RosterRow:
        """Flip presence locally; never touches the backend."""

        with self._lock:
            self._ensure_editable()
            self._row_index(student_id)
            self.updating_student_id = student_id
            self._touch()

        if self._toggle_delay:
            self._sleep(self._toggle_delay)

        with self._lock:
            self.updating_student_id = None
            try:
                i = self._row_index(student_id)
            except ValidationError:
                self._touch()
                raise
            self.rows[i] = self.rows[i].toggled()
            self.state = WorkflowState.DIRTY
            self._touch()
            return self.rows[i]

    def update_notes(self, student_id: int, notes: str) -> RosterRow:
        with self._lock:
            self._ensure_editable()
            i = self._row_index(student_id)
            self.rows[i] = self.rows[i].with_notes(notes or "")
            self.state = WorkflowState.DIRTY
            self._touch()
            return self.rows[i]

    def save(self) -> None:
        with self._lock:
            if not self.class_id:
                raise ValidationError("Seleccione una clase")
            if self.validation is not None and not self.validation.can_register:
                self._toast(self.validation.blocked_message, "error")
                self._touch()
                raise RegistrationBlockedError(self.validation.blocked_message, self.validation)
            if self.saving:
                raise ValidationError("Guardando asistencias, espere un momento")
            if not self.rows:
                raise ValidationError("No hay estudiantes para registrar")
            class_id, day = self.class_id, self.day
            rows = list(self.rows)
            progress = self.progress
            validation = self.validation
            self.saving = True
            self.error = None
            self.state = WorkflowState.SAVING
            self._touch()

        try:
            self._attendance.save_roster(class_id, day, rows, validation=validation, progress=progress)
        except PartialSaveError as e:
            with self._lock:
                self.progress = e.progress
                self.saving = False
                self.error = str(e)
                self.state = WorkflowState.DIRTY
                self._touch()
            raise
        except (ApiError, ValidationError) as e:
            with self._lock:
                self.saving = False
                self.error = str(e) or "Error al guardar asistencias"
                self.state = WorkflowState.DIRTY
                self._touch()
            raise

        with self._lock:
            self.progress = None
            self.saving = False
            self.success = SAVED_MESSAGE
            self._toast(SAVED_MESSAGE, "success")
            self._roster_generation += 1
            generation = self._roster_generation

        self.load_roster(class_id, day, generation=generation)
        self.validate_registration_allowed(class_id, generation=generation)

        with self._lock:
            if generation == self._roster_generation:
                self.show_download_prompt = True
                self.state = WorkflowState.SAVED
            self._touch()

    def set_view_mode(self, mode: ViewMode) -> None:
        with self._lock:
            self.view_mode = ViewMode(mode)
            class_id, day = self.class_id, self.day
            if self.view_mode == ViewMode.HISTORY:
                self.validation = None
            self._touch()
        if self.view_mode == ViewMode.HISTORY:
            self.load_history()
        elif class_id:
            self.select(class_id, day)

    def load_history(
        self,
        filters: Optional[AttendanceFilters] = None,
        *,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        silent: bool = False,
    ) -> bool:
        with self._lock:
            if filters is not None and filters != self.history_filters:
                self.history_filters = filters
                self.pagination.reset()
            if page_size is not None and page_size != self.pagination.page_size:
                self.pagination.change_page_size(page_size)
            if page is not None:
                self.pagination.go_to(page)
            self._history_generation += 1
            generation = self._history_generation
            filters = self.history_filters
            page, page_size = self.pagination.page, self.pagination.page_size
            if not silent:
                self.loading = True

        try:
            result = self._attendance.history(filters, page=page, page_size=page_size)
        except (ApiError, ValidationError) as e:
            with self._lock:
                if generation == self._history_generation:
                    self.loading = False
                    self.error = str(e) or "Error al cargar historial"
                    self._touch()
            return False

        with self._lock:
            if generation != self._history_generation:
                return False
            self.history = result
            self.loading = False
            self.error = None
            self._touch()
        return True

    def clear_history_filters(self) -> None:
        with self._lock:
            self.history_filters = AttendanceFilters()
            self.pagination.reset()
        self.load_history()

    def download_report(self, fmt: str, filters: Optional[AttendanceFilters] = None) -> DownloadedFile:
        if self._reports is None:
            raise ValidationError("Reportes no disponibles")
        with self._lock:
            filters = filters if filters is not None else self.history_filters
        return self._reports.download(ReportResource.ATTENDANCE, fmt, filters.params())

    def download_day_report(self, fmt: str) -> DownloadedFile:
        with self._lock:
            if not self.class_id:
                raise ValidationError("Seleccione una clase")
            filters = AttendanceFilters(start_date=self.day, end_date=self.day, class_id=self.class_id)
        return self.download_report(fmt, filters)
