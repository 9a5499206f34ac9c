"""Read the project plan sheet and turn its rows into TaskRecords."""

import csv
import io
import os
from dataclasses import dataclass

from openpyxl import load_workbook

from clients import SheetClient
from models import TaskRecord
from patterns import Patterns
from utils import parse_date

DATE_FIELDS = ("start_date", "end_date")


@dataclass
class SheetTable:
    """Header row plus data rows of one worksheet."""

    headers: list[str]
    rows: list[list]
    source: str  # shown in issue footers


def extract_sheet_id(text: str) -> str | None:
    """Accept a bare sheet ID or a full Google Sheets URL."""
    text = text.strip()
    if "/" not in text and len(text) > 20:
        return text
    m = Patterns.SHEET_URL_ID.search(text)
    return m.group(1) if m else None


def _table_from_rows(rows: list, source: str) -> SheetTable:
    if not rows:
        return SheetTable(headers=[], rows=[], source=source)
    headers = [str(h).strip() if h is not None else "" for h in rows[0]]
    return SheetTable(headers=headers, rows=[list(r) for r in rows[1:]], source=source)


def _rows_from_workbook(data, sheet_name: str | None) -> list:
    wb = load_workbook(data, data_only=True, read_only=True)
    try:
        if sheet_name:
            if sheet_name not in wb.sheetnames:
                raise ValueError(f"Sheet '{sheet_name}' not found. Available: {wb.sheetnames}")
            ws = wb[sheet_name]
        else:
            ws = wb.worksheets[0]
        return list(ws.iter_rows(values_only=True))
    finally:
        wb.close()


def read_table(path: str, sheet_name: str | None = None) -> SheetTable:
    """Read a local .xlsx or .csv export."""
    source = os.path.basename(path)
    if path.lower().endswith(".csv"):
        with open(path, newline="", encoding="utf-8-sig") as f:
            return _table_from_rows(list(csv.reader(f)), source)
    return _table_from_rows(_rows_from_workbook(path, sheet_name), source)


def fetch_table(sheet_id: str, sheet_name: str | None = None) -> SheetTable:
    """Download a Google Sheet as xlsx and read it."""
    content = SheetClient().fetch_workbook(sheet_id)
    source = f"[Google Sheet](https://docs.google.com/spreadsheets/d/{sheet_id})"
    return _table_from_rows(_rows_from_workbook(io.BytesIO(content), sheet_name), source)


def find_column(headers: list[str], keywords: list[str]) -> int:
    """Index of the first header containing a keyword, -1 if none.

    Keywords are tried in order, so "start date" wins over "start".
    """
    lower = [str(h or "").lower().strip() for h in headers]
    for kw in keywords:
        for i, header in enumerate(lower):
            if kw.lower() in header:
                return i
    return -1


def map_columns(headers: list[str], column_keywords: dict[str, list[str]]) -> dict[str, int]:
    return {name: find_column(headers, keywords) for name, keywords in column_keywords.items()}


def is_blank(row: list) -> bool:
    return all(cell is None or str(cell).strip() == "" for cell in row)


def _cell(row: list, index: int):
    if index < 0 or index >= len(row):
        return None
    return row[index]


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def normalize_row(row: list, columns: dict[str, int], row_number: int | None = None) -> TaskRecord | None:
    """Build a TaskRecord, or None when the row has no activity."""
    activity = _text(_cell(row, columns.get("activity", -1)))
    if not activity:
        return None

    values = {}
    for name, index in columns.items():
        if name == "activity":
            continue
        raw = _cell(row, index)
        values[name] = parse_date(raw) if name in DATE_FIELDS else _text(raw)

    return TaskRecord(
        activity=activity,
        phase=values.get("phase", ""),
        task_detail=values.get("task_detail", ""),
        principle=values.get("principle", ""),
        deliverable=values.get("deliverable", ""),
        owner=values.get("owner", ""),
        quarter=values.get("quarter", ""),
        status=values.get("status", ""),
        start_date=values.get("start_date", ""),
        end_date=values.get("end_date", ""),
        row_number=row_number,
    )


def load_records(table: SheetTable, column_keywords: dict[str, list[str]]) -> list[TaskRecord]:
    """All TaskRecords of a table, silently dropping rows without activity."""
    columns = map_columns(table.headers, column_keywords)
    records = []
    for row_number, row in enumerate(table.rows, start=2):
        record = normalize_row(row, columns, row_number)
        if record:
            records.append(record)
    return records
