from __future__ import annotations

from io import BytesIO

import pytest
from openpyxl import load_workbook

from stockroom.errors import SpreadsheetFormatError
from stockroom.spreadsheets import (
    EXPORT_COLUMNS,
    canonical_column,
    export_row,
    read_first_sheet,
    write_import_template,
    write_inventory_workbook,
)


def test_canonical_column_matches_aliases() -> None:
    assert canonical_column(" Name ") == "name"
    assert canonical_column("QTY") == "quantity"
    assert canonical_column("\ufeffcategory") == "category"
    assert canonical_column("DatasheetURL") == "datasheet_url"
    assert canonical_column("notes") is None


def test_read_first_sheet_skips_blank_rows(build_xlsx) -> None:
    content = build_xlsx(
        ["Name", "Category", "Qty", "Notes"],
        [
            ["  Relay  ", "Modules", 3, "spare"],
            [None, None, None, None],
            ["Fuse", "", 10, None],
        ],
    )

    sheet = read_first_sheet(content, "upload.xlsx")

    assert sheet.headers == ["Name", "Category", "Qty", "Notes"]
    assert sheet.rows == [
        {"name": "Relay", "category": "Modules", "quantity": 3, "notes": "spare"},
        {"name": "Fuse", "quantity": 10},
    ]


def test_xlsx_is_detected_without_extension(build_xlsx) -> None:
    content = build_xlsx(["name"], [["Relay"]])

    assert read_first_sheet(content, None).rows == [{"name": "Relay"}]


def test_csv_with_byte_order_mark() -> None:
    content = "\ufeffname,quantity\nFuse,4\n".encode("utf-8")

    sheet = read_first_sheet(content, "stock.csv")

    assert sheet.headers == ["name", "quantity"]
    assert sheet.rows == [{"name": "Fuse", "quantity": "4"}]


@pytest.mark.parametrize(
    "content, filename",
    [
        (b"not really excel", "legacy.xls"),
        (b"PK\x03\x04 broken archive", "upload.xlsx"),
        (b"\xff\xfe\x00binary", "upload.bin"),
        (b"\n\n", "empty.csv"),
    ],
)
def test_unreadable_uploads_raise_format_error(content, filename) -> None:
    with pytest.raises(SpreadsheetFormatError):
        read_first_sheet(content, filename)


def test_export_row_omits_id_and_maps_datasheet() -> None:
    row = export_row(
        {
            "id": "abc",
            "name": "Fuse",
            "category": "Electronics Hardware",
            "subcategory": "General",
            "quantity": 4,
            "location": "Box",
            "description": "",
            "datasheet_url": "https://example.com/fuse.pdf",
        }
    )

    assert row == [
        "Fuse",
        "Electronics Hardware",
        "General",
        4,
        "Box",
        "",
        "https://example.com/fuse.pdf",
    ]


def test_empty_export_has_header_only() -> None:
    sheet = load_workbook(BytesIO(write_inventory_workbook([]))).active

    assert sheet.title == "Inventory"
    assert list(sheet.iter_rows(values_only=True)) == [EXPORT_COLUMNS]


def test_import_template_reads_back_cleanly() -> None:
    sheet = read_first_sheet(write_import_template(), "inventory_import_template.xlsx")

    assert [canonical_column(label) for label in sheet.headers] == [
        "name",
        "category",
        "subcategory",
        "quantity",
        "location",
        "description",
        "datasheet_url",
    ]
    assert sheet.rows[0]["category"] == "Electronics Hardware"
    assert sheet.rows[0]["quantity"] == 100
