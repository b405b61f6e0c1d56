"""Spreadsheet exports built locally from data already on screen."""

from __future__ import annotations

import csv
import io
from typing import Any, Mapping, Sequence

import pandas as pd

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MIMETYPE = "text/csv"


def to_csv_bytes(columns: Sequence[str], rows: Sequence[Mapping[str, Any]]) -> bytes:
    """CSV with UTF-8 BOM so spreadsheet apps detect the encoding."""

    out = io.StringIO()
    writer = csv.DictWriter(out, fieldnames=list(columns), extrasaction="ignore", lineterminator="\r\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({k: ("" if row.get(k) is None else row.get(k)) for k in columns})
    return out.getvalue().encode("utf-8-sig")


def to_xlsx_bytes(columns: Sequence[str], rows: Sequence[Mapping[str, Any]], *, sheet_name: str = "Reporte") -> bytes:
    df = pd.DataFrame(list(rows), columns=list(columns))
    out = io.BytesIO()
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name[:31])
    return out.getvalue()
