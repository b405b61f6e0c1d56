from __future__ import annotations

import pytest

from conftest import login_as

CLASS = {"idClase": 10, "nombreClase": "Salsa", "diaSemana": "Lunes", "activa": True}
ROSTER = [
    {"idPersona": 1, "nombre": "Ana", "apellido": "Alba"},
    {"idPersona": 2, "nombre": "Beto", "apellido": "Bravo"},
]


@pytest.fixture
def signed_in(client, backend):
    login_as(client, backend)
    backend.on("GET", "/Clases", 200, {"data": [CLASS], "totalRecords": 1, "page": 1, "pageSize": 100})
    backend.on("GET", "/Clases/10/estudiantes", 200, {"success": True, "data": ROSTER})
    backend.on("GET", "/Asistencias/clase/10", 200, {"success": True, "data": []})
    backend.on("GET", "/Asistencias/clase/10/validar", 200, {"data": {"puedeRegistrar": True, "diaSemanaClase": "Lunes"}})
    return client


def _select(client):
    return client.post("/asistencias/seleccionar", data={"clase": "10", "fecha": "2026-03-02"})


def test_selecting_a_class_renders_its_roster(signed_in, backend):
    resp = _select(signed_in)
    page = signed_in.get("/asistencias").get_data(as_text=True)

    assert resp.status_code == 302
    assert "Ana Alba" in page
    assert "Beto Bravo" in page
    assert ("GET", "/Clases/10/estudiantes") in backend.calls


def test_toggle_answers_json_with_counters(signed_in, backend):
    _select(signed_in)

    resp = signed_in.post("/asistencias/alternar/2", headers={"Accept": "application/json"})

    assert resp.get_json() == {"success": True, "student_id": 2, "present": True, "present_count": 1, "absent_count": 1}
    assert ("POST", "/Asistencias") not in backend.calls


def test_save_posts_one_record_per_student(signed_in, backend):
    backend.on(
        "POST",
        "/Asistencias",
        201,
        {"data": {"idAsist": 50, "fechaAsis": "2026-03-02T15:30:00", "estadoAsis": "Presente"}},
    )
    _select(signed_in)
    signed_in.post("/asistencias/alternar/1")

    resp = signed_in.post("/asistencias/guardar", data={"observaciones_2": "Tarde"})

    assert resp.status_code == 302
    assert [c for c in backend.calls if c == ("POST", "/Asistencias")] == [("POST", "/Asistencias")] * 2
    assert "Asistencias guardadas correctamente" in signed_in.get("/asistencias").get_data(as_text=True)


def test_blocked_day_refuses_to_save(signed_in, backend):
    backend.on(
        "GET",
        "/Asistencias/clase/10/validar",
        200,
        {"data": {"puedeRegistrar": False, "diaSemanaClase": "Lunes", "diaActual": "Martes"}},
    )
    _select(signed_in)

    signed_in.post("/asistencias/guardar")
    page = signed_in.get("/asistencias").get_data(as_text=True)

    assert ("POST", "/Asistencias") not in backend.calls
    assert "Hoy es Martes y la clase es los dias Lunes" in page


def test_revision_reports_workflow_state(signed_in):
    _select(signed_in)

    body = signed_in.get("/asistencias/revision").get_json()

    assert body["state"] == "roster_ready"
    assert body["mode"] == "registro"
    assert body["revision"] > 0


def test_history_edit_updates_status_of_the_record(signed_in, backend):
    record = {"idAsist": 7, "fechaAsis": "2026-03-02T10:00:00", "estadoAsis": "Presente", "estudiante": ROSTER[0], "clase": CLASS}
    backend.on("GET", "/Asistencias/7", 200, {"data": record})
    backend.on("PUT", "/Asistencias/7", 200, {"data": {**record, "estadoAsis": "Ausente"}})
    backend.on("GET", "/Asistencias", 200, {"data": [], "totalRecords": 0, "page": 1, "pageSize": 10})

    resp = signed_in.post("/asistencias/7/editar", data={"estado": "Ausente"})

    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/asistencias/historial")
    assert ("PUT", "/Asistencias/7") in backend.calls


def test_student_attendance_page_lists_records(signed_in, backend):
    backend.on(
        "GET",
        "/Asistencias/estudiante/1",
        200,
        {"data": [{"idAsist": 7, "fechaAsis": "2026-03-02T10:00:00", "estadoAsis": "Presente", "observaciones": "Puntual"}]},
    )

    page = signed_in.get("/asistencias/estudiante/1").get_data(as_text=True)

    assert "Asistencias del estudiante #1" in page
    assert "Puntual" in page
