from __future__ import annotations

from datetime import date

import pytest

from src.academia_console.academia_console.common import forms
from src.academia_console.academia_console.core.exceptions import ValidationError


def test_blank_values_are_none():
    data = {"n": "  ", "f": "", "d": None}

    assert forms.opt_int(data, "n", "Número") is None
    assert forms.opt_float(data, "f", "Monto") is None
    assert forms.opt_date(data, "d", "Fecha") is None
    assert forms.opt_flag(data, "n") is None


def test_values_are_coerced():
    data = {"n": " 12 ", "f": "10,50", "d": "2026-03-02", "on": "on", "no": "0"}

    assert forms.opt_int(data, "n", "Número") == 12
    assert forms.opt_float(data, "f", "Monto") == 10.5
    assert forms.opt_date(data, "d", "Fecha") == date(2026, 3, 2)
    assert forms.flag(data, "on") is True
    assert forms.opt_flag(data, "no") is False


def test_invalid_value_names_the_field():
    with pytest.raises(ValidationError, match="Capacidad"):
        forms.opt_int({"c": "muchos"}, "c", "Capacidad")
    with pytest.raises(ValidationError, match="AAAA-MM-DD"):
        forms.opt_date({"d": "02/03/2026"}, "d", "Fecha")


def test_page_args_are_clamped():
    assert forms.page_args({}) == (1, 10)
    assert forms.page_args({"page": "-3", "page_size": "1000"}) == (1, 100)
    assert forms.page_args({"page": "x", "page_size": "y"}, default_size=50) == (1, 50)
