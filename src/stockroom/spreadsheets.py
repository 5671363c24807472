"""Reading uploaded spreadsheets and writing inventory workbooks."""
from __future__ import annotations

import csv
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from io import BytesIO, StringIO
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import xlrd
from openpyxl import Workbook, load_workbook
from openpyxl.utils import get_column_letter

from .errors import SpreadsheetFormatError

SHEET_NAME = "Inventory"

EXPORT_COLUMNS: tuple[str, ...] = (
    "name",
    "category",
    "subcategory",
    "quantity",
    "location",
    "description",
    "datasheetUrl",
)
EXPORT_COLUMN_WIDTHS: tuple[int, ...] = (30, 20, 20, 10, 20, 40, 40)

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_XLSX_MAGIC = b"PK\x03\x04"
_XLS_MAGIC = b"\xd0\xcf\x11\xe0"


def _normalize_column_key(value: Any) -> str:
    if value is None:
        return ""
    text = str(value).strip().lower()
    if "\ufeff" in text:
        text = text.replace("\ufeff", "")
    return text


_COLUMN_ALIASES: Dict[str, set[str]] = {
    "name": {"name"},
    "category": {"category"},
    "subcategory": {"subcategory", "sub-category", "sub category"},
    "quantity": {"quantity", "qty"},
    "location": {"location"},
    "description": {"description"},
    "datasheet_url": {"datasheetUrl", "datasheet_url", "datasheet url", "datasheet"},
}

_COLUMN_ALIASES_NORMALIZED: Dict[str, str] = {
    _normalize_column_key(alias): canonical
    for canonical, aliases in _COLUMN_ALIASES.items()
    for alias in aliases
}


def canonical_column(label: Any) -> Optional[str]:
    """Map a header label to the item field it feeds, or ``None``."""

    return _COLUMN_ALIASES_NORMALIZED.get(_normalize_column_key(label))


@dataclass
class SheetData:
    """First worksheet of an upload: stripped header labels and keyed rows."""

    headers: List[str]
    rows: List[Dict[str, Any]] = field(default_factory=list)


def read_first_sheet(content: bytes, filename: Optional[str] = None) -> SheetData:
    if not content:
        raise SpreadsheetFormatError("Empty file")
    extension = Path(filename or "").suffix.lower()
    if extension in {".xlsx", ".xlsm"} or (
        extension != ".xls" and content.startswith(_XLSX_MAGIC)
    ):
        return _parse_xlsx_rows(content)
    if extension == ".xls" or content.startswith(_XLS_MAGIC):
        return _parse_xls_rows(content)
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise SpreadsheetFormatError(
            "File must be an Excel workbook (.xlsx, .xls) or UTF-8 CSV"
        ) from exc
    return _parse_csv_rows(text)


def _clean_cell(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _build_rows(header_labels: Sequence[str], raw_rows: Iterable[Sequence[Any]]) -> List[Dict[str, Any]]:
    keys = [canonical_column(label) or _normalize_column_key(label) for label in header_labels]
    rows: List[Dict[str, Any]] = []
    for raw in raw_rows:
        record: Dict[str, Any] = {}
        for col_index, key in enumerate(keys):
            if not key:
                continue
            value = _clean_cell(raw[col_index]) if col_index < len(raw) else None
            if value is not None:
                record[key] = value
        # Blank rows are skipped, cells left empty are simply absent.
        if record:
            rows.append(record)
    return rows


def _header_labels(values: Sequence[Any]) -> List[str]:
    labels = ["" if value is None else str(value).strip() for value in values]
    if not any(labels):
        raise SpreadsheetFormatError("Missing header row")
    return labels


def _parse_csv_rows(text: str) -> SheetData:
    reader = csv.reader(StringIO(text))
    try:
        header = next(reader, None)
        if header is None:
            raise SpreadsheetFormatError("Missing header row")
        labels = _header_labels(header)
        return SheetData(headers=labels, rows=_build_rows(labels, reader))
    except csv.Error as exc:
        raise SpreadsheetFormatError(f"Invalid CSV file: {exc}") from exc


def _parse_xlsx_rows(data: bytes) -> SheetData:
    try:
        workbook = load_workbook(BytesIO(data), read_only=True, data_only=True)
    except Exception as exc:
        raise SpreadsheetFormatError("Invalid XLSX file") from exc
    try:
        if not workbook.worksheets:
            raise SpreadsheetFormatError("Missing worksheet")
        values = workbook.worksheets[0].iter_rows(values_only=True)
        header = next(values, None)
        if header is None:
            raise SpreadsheetFormatError("Missing header row")
        labels = _header_labels(header)
        return SheetData(headers=labels, rows=_build_rows(labels, values))
    finally:
        workbook.close()


def _parse_xls_rows(data: bytes) -> SheetData:
    try:
        workbook = xlrd.open_workbook(file_contents=data)
    except Exception as exc:
        raise SpreadsheetFormatError("Invalid XLS file") from exc
    if workbook.nsheets == 0:
        raise SpreadsheetFormatError("Missing worksheet")
    sheet = workbook.sheet_by_index(0)
    if sheet.nrows == 0:
        raise SpreadsheetFormatError("Missing header row")
    labels = _header_labels([sheet.cell_value(0, col) for col in range(sheet.ncols)])

    raw_rows: List[List[Any]] = []
    for row_index in range(1, sheet.nrows):
        processed: List[Any] = []
        for col_index in range(sheet.ncols):
            cell = sheet.cell(row_index, col_index)
            if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
                processed.append(None)
            elif cell.ctype == xlrd.XL_CELL_NUMBER:
                processed.append(cell.value)
            else:
                processed.append(str(cell.value))
        raw_rows.append(processed)
    return SheetData(headers=labels, rows=_build_rows(labels, raw_rows))


def _export_value(item: Any, column: str) -> Any:
    attribute = "datasheet_url" if column == "datasheetUrl" else column
    if isinstance(item, Mapping):
        value = item.get(attribute, item.get(column))
    else:
        value = getattr(item, attribute, None)
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, (datetime, date)):
        value = value.isoformat()
    return value


def export_row(item: Any) -> List[Any]:
    """Spreadsheet cells for one item, in column order and without its id."""

    return [_export_value(item, column) for column in EXPORT_COLUMNS]


def write_inventory_workbook(items: Iterable[Any], *, sheet_name: str = SHEET_NAME) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_name
    sheet.append(list(EXPORT_COLUMNS))
    for item in items:
        sheet.append(export_row(item))
    for index, width in enumerate(EXPORT_COLUMN_WIDTHS, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = width

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def write_import_template() -> bytes:
    sample = {
        "name": "10k Resistor",
        "category": "Electronics Hardware",
        "subcategory": "General",
        "quantity": 100,
        "location": "Drawer A1",
        "description": "1/4 W carbon film",
        "datasheet_url": "",
    }
    return write_inventory_workbook([sample])


__all__ = [
    "EXPORT_COLUMNS",
    "EXPORT_COLUMN_WIDTHS",
    "SHEET_NAME",
    "XLSX_CONTENT_TYPE",
    "SheetData",
    "canonical_column",
    "export_row",
    "read_first_sheet",
    "write_import_template",
    "write_inventory_workbook",
]
