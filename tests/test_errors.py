from __future__ import annotations

from sqlalchemy.exc import OperationalError

from stockroom.errors import (
    NON_DESCRIPTIVE_ERROR,
    ExportFileError,
    MissingColumnsError,
    OperationError,
    StoreUnavailableError,
    describe_error,
)


class _Detailed(Exception):
    details = "row 3 violates check constraint"


class _Opaque:
    pass


def test_describe_error_prefers_driver_message() -> None:
    error = OperationalError("SELECT 1", {}, Exception("no such table: stock_items"))

    assert describe_error(error) == "no such table: stock_items"


def test_describe_error_appends_details() -> None:
    assert describe_error(_Detailed("insert failed")) == (
        "insert failed\nDetails: row 3 violates check constraint"
    )
    assert describe_error({"message": "denied", "details": "policy"}) == "denied\nDetails: policy"


def test_describe_error_plain_values() -> None:
    assert describe_error("timeout") == "timeout"
    assert describe_error({"code": 42}) == '{\n  "code": 42\n}'
    assert describe_error(ValueError()) == "ValueError"


def test_describe_error_falls_back_for_useless_values() -> None:
    assert describe_error({}) == NON_DESCRIPTIVE_ERROR
    assert describe_error(None) == NON_DESCRIPTIVE_ERROR
    assert describe_error("") == NON_DESCRIPTIVE_ERROR
    assert describe_error(_Opaque()) == NON_DESCRIPTIVE_ERROR


def test_error_messages() -> None:
    assert str(OperationError("adding item", "locked")) == "Error adding item: locked"
    assert str(StoreUnavailableError("refused")).endswith("Technical details: refused")
    assert str(MissingColumnsError(["name", "location"])) == (
        "The spreadsheet is missing required columns: name, location"
    )

    class Record:
        id = "abc"

    error = ExportFileError(Record(), "boom")
    assert error.record.id == "abc"
    assert "abc" in str(error)
    assert "boom" in str(error)
