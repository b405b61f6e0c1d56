from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

import jwt
import pytest

from src.academia_console.academia_console.api.gateway import ApiConfig
from src.academia_console.academia_console.attendance.model import AttendanceDraft, AttendanceRecord, AttendanceValidation
from src.academia_console.academia_console.auth.context import ApplicationContext, ContextRegistry
from src.academia_console.academia_console.auth.model import Identity
from src.academia_console.academia_console.auth.token_store import FlaskSessionTokenStore
from src.academia_console.academia_console.classes.model import ClassSession, ClassSummary
from src.academia_console.academia_console.common.pagination import Page
from src.academia_console.academia_console.core.enums import Role
from src.academia_console.academia_console.core.exceptions import ApiError, NotFoundError
from src.academia_console.academia_console.main import create_app
from src.academia_console.academia_console.people.model import PersonSummary


def student(person_id: int, name: str = "") -> PersonSummary:
    first, _, last = (name or f"Estudiante {person_id}").partition(" ")
    return PersonSummary(person_id=person_id, first_name=first, last_name=last, full_name=f"{first} {last}".strip())


def admin_identity(token: str = "tok-admin") -> Identity:
    return Identity(
        token=token,
        first_name="Ana",
        last_name="Admin",
        email="ana@academia.test",
        role=Role.ADMIN,
        person_id=1,
        is_admin=True,
    )


def teacher_identity(person_id: Optional[int] = 7, token: str = "tok-teacher") -> Identity:
    return Identity(
        token=token,
        first_name="Pablo",
        last_name="Profe",
        email="pablo@academia.test",
        role=Role.TEACHER,
        person_id=person_id,
        is_teacher=True,
    )


def class_session(class_id: int, *, name: str = "Salsa", active: bool = True) -> ClassSession:
    return ClassSession(
        class_id=class_id,
        name=name,
        weekday="Lunes",
        start_time=time(18, 0),
        duration_minutes=60,
        capacity=20,
        monthly_price=30.0,
        active=active,
    )


class InMemoryClasses:
    """Class repository with rosters keyed by class id."""

    def __init__(self, classes=None, rosters=None):
        self.classes = list(classes or [])
        self.rosters = dict(rosters or {})
        self.roster_calls: list[int] = []

    def list(self, *, page: int, page_size: int) -> Page[ClassSession]:
        return Page(data=list(self.classes), total_records=len(self.classes), page=page, page_size=page_size)

    def get(self, class_id: int) -> ClassSession:
        for c in self.classes:
            if c.class_id == class_id:
                return c
        raise NotFoundError("Clase no encontrada", status=404)

    def by_teacher(self, teacher_id: int):
        return list(self.classes)

    def roster(self, class_id: int):
        self.roster_calls.append(class_id)
        return list(self.rosters.get(class_id, []))


@dataclass
class InMemoryAttendance:
    """Attendance repository that records every mutating call in order."""

    records: dict = field(default_factory=dict)
    validations: dict = field(default_factory=dict)
    calls: list = field(default_factory=list)
    fail_create_for: set = field(default_factory=set)
    fail_delete_for: set = field(default_factory=set)
    fail_validate: bool = False
    fail_for_class: bool = False
    history_calls: list = field(default_factory=list)
    # enrollment id -> (student id, class id)
    enrollments: dict = field(default_factory=dict)
    _next_id: int = 100

    def add(self, record: AttendanceRecord) -> AttendanceRecord:
        self.records[record.record_id] = record
        return record

    def seed(self, record_id: int, student_id: int, class_id: int, day: date, status: str, notes=None) -> AttendanceRecord:
        return self.add(
            AttendanceRecord(
                record_id=record_id,
                recorded_at=datetime.combine(day, time(10, 0)),
                status=status,
                notes=notes,
                student=student(student_id),
                class_ref=ClassSummary(class_id=class_id),
            )
        )

    def for_class(self, class_id: int, day: Optional[date] = None):
        if self.fail_for_class:
            raise ApiError("Error al cargar asistencias", status=500)
        return [
            r
            for r in sorted(self.records.values(), key=lambda r: r.record_id)
            if r.class_ref and r.class_ref.class_id == class_id and (day is None or r.recorded_at.date() == day)
        ]

    def validate(self, class_id: int) -> AttendanceValidation:
        if self.fail_validate:
            raise ApiError("Servicio no disponible", status=503)
        return self.validations.get(class_id, AttendanceValidation(can_register=True))

    def list(self, *, page: int, page_size: int, filters):
        self.history_calls.append((filters, page, page_size))
        rows = sorted(self.records.values(), key=lambda r: r.record_id)
        start = (page - 1) * page_size
        return Page(data=rows[start : start + page_size], total_records=len(rows), page=page, page_size=page_size)

    def create(self, draft: AttendanceDraft) -> AttendanceRecord:
        self.calls.append(("create", draft.student_id))
        if draft.student_id in self.fail_create_for:
            raise ApiError("Error interno del servidor", status=500)
        self._next_id += 1
        return self.add(
            AttendanceRecord(
                record_id=self._next_id,
                recorded_at=datetime.fromisoformat(draft.recorded_at.replace("Z", "+00:00")).replace(tzinfo=None),
                status=draft.status,
                notes=draft.notes,
                student=student(draft.student_id),
                class_ref=ClassSummary(class_id=draft.class_id),
            )
        )

    def get(self, record_id: int) -> AttendanceRecord:
        if record_id not in self.records:
            raise NotFoundError("Asistencia no encontrada", status=404)
        return self.records[record_id]

    def _between(self, rows, start_date, end_date):
        return [
            r
            for r in sorted(rows, key=lambda r: r.record_id)
            if (start_date is None or r.recorded_at.date() >= start_date)
            and (end_date is None or r.recorded_at.date() <= end_date)
        ]

    def for_student(self, student_id: int, *, start_date=None, end_date=None):
        rows = [r for r in self.records.values() if r.student_id == student_id]
        return self._between(rows, start_date, end_date)

    def for_enrollment(self, enrollment_id: int, *, start_date=None, end_date=None):
        student_id, class_id = self.enrollments[enrollment_id]
        rows = [r for r in self.records.values() if r.student_id == student_id and r.class_ref.class_id == class_id]
        return self._between(rows, start_date, end_date)

    def update(self, record_id: int, draft: AttendanceDraft) -> AttendanceRecord:
        self.calls.append(("update", record_id))
        self.get(record_id)
        return self.add(
            AttendanceRecord(
                record_id=record_id,
                recorded_at=datetime.fromisoformat(draft.recorded_at.replace("Z", "+00:00")).replace(tzinfo=None),
                status=draft.status,
                notes=draft.notes,
                student=student(draft.student_id),
                class_ref=ClassSummary(class_id=draft.class_id),
            )
        )

    def delete(self, record_id: int) -> None:
        self.calls.append(("delete", record_id))
        if record_id in self.fail_delete_for:
            raise ApiError("Error interno del servidor", status=500)
        if self.records.pop(record_id, None) is None:
            raise NotFoundError("Asistencia no encontrada", status=404)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 2, 15, 30, tzinfo=timezone.utc)


@pytest.fixture
def class_day() -> date:
    return date(2026, 3, 2)


class FakeResponse:
    def __init__(self, status, body):
        self.status_code = status
        self.content = json.dumps(body).encode("utf-8") if body is not None else b""
        self.headers = {"Content-Type": "application/json"}

    def json(self):
        return json.loads(self.content)


class FakeBackend:
    """Stands in for `requests.Session`; answers by (method, path)."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def on(self, method, path, status, body=None):
        self.routes[(method, path)] = (status, body)

    def request(self, method, url, **kwargs):
        path = url.split("/api", 1)[1]
        self.calls.append((method, path))
        status, body = self.routes.get((method, path), (404, {"message": "no route"}))
        return FakeResponse(status, body)


def signed_token(delta: timedelta) -> str:
    exp = datetime.now(timezone.utc) + delta
    return jwt.encode({"sub": "1", "exp": int(exp.timestamp())}, "console-test-signing-key-0123456789", algorithm="HS256")


def login_as(client, backend, *, role="administrador"):
    backend.on(
        "POST",
        "/Auth/login",
        200,
        {
            "token": signed_token(timedelta(days=1)),
            "nombre": "Ana",
            "apellido": "Admin",
            "email": "ana@x.com",
            "rol": role,
            "idPersona": 1,
        },
    )
    return client.post("/login", data={"email": "ana@x.com", "password": "secreta"})


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def app(backend, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    store = FlaskSessionTokenStore()
    registry = ContextRegistry(
        lambda: ApplicationContext(
            ApiConfig(base_url="http://backend.test/api"), store, toggle_delay=0, http_session=backend
        )
    )
    return create_app(registry)


@pytest.fixture
def client(app):
    return app.test_client()
