from __future__ import annotations

from datetime import datetime, time

import pytest

from src.academia_console.academia_console.common.pagination import Page, Pagination, page_from_payload, total_pages_for
from src.academia_console.academia_console.common.payload import PayloadReader, require_list
from src.academia_console.academia_console.core.exceptions import SchemaError


@pytest.mark.parametrize("records, size, pages", [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (25, 0, 0)])
def test_total_pages_is_derived_from_record_count(records, size, pages):
    assert total_pages_for(records, size) == pages


def test_backend_total_pages_is_ignored():
    payload = {"data": [{"v": 1}, {"v": 2}], "totalRecords": 21, "page": 3, "pageSize": 2, "totalPages": 99}

    page = page_from_payload(payload, "Test", lambda p: p["v"], page=1, page_size=10)

    assert page.data == [1, 2]
    assert page.total_pages == 11
    assert page.page == 3
    assert page.has_next_page and page.has_previous_page


def test_pagination_cursor_resets_on_page_size_change():
    cursor = Pagination(page=4, page_size=10)

    cursor.change_page_size(500)

    assert cursor.page == 1
    assert cursor.page_size == 100
    cursor.prev_page()
    assert cursor.page == 1
    assert Page.empty().total_pages == 0


def test_reader_accepts_camel_and_pascal_case():
    r = PayloadReader({"IdClase": "7", "nombreClase": "Salsa", "Hora": "18:30:00", "Activa": "true"}, "Clase")

    assert r.req_int("idClase") == 7
    assert r.req_str("nombreClase") == "Salsa"
    assert r.opt_time("hora") == time(18, 30)
    assert r.flag("activa") is True


def test_reader_parses_utc_timestamps():
    r = PayloadReader({"fechaAsis": "2026-03-02T15:30:00Z"}, "Asistencia")

    assert r.req_datetime("fechaAsis").utcoffset().total_seconds() == 0
    assert r.req_datetime("fechaAsis").replace(tzinfo=None) == datetime(2026, 3, 2, 15, 30)


@pytest.mark.parametrize(
    "payload, call",
    [
        ({}, lambda r: r.req_int("idClase")),
        ({"idClase": "siete"}, lambda r: r.req_int("idClase")),
        ({"idClase": True}, lambda r: r.req_int("idClase")),
        ({"activa": "quizas"}, lambda r: r.flag("activa")),
        ({"hora": "tarde"}, lambda r: r.opt_time("hora")),
    ],
)
def test_unexpected_shapes_fail_loudly(payload, call):
    with pytest.raises(SchemaError):
        call(PayloadReader(payload, "Clase"))


def test_non_object_and_non_list_payloads_are_rejected():
    with pytest.raises(SchemaError):
        PayloadReader([1, 2], "Clase")
    with pytest.raises(SchemaError):
        require_list({"data": []}, "Clases")
    assert require_list(None, "Clases") == []
