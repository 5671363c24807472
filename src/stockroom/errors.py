"""Error types surfaced to users and helpers for describing backend failures."""
from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy.exc import DBAPIError

NON_DESCRIPTIVE_ERROR = (
    "The application received a non-descriptive error. "
    "Check the server log for the full error object."
)

STORE_HINT = (
    "Failed to connect to the database. This could be due to a network issue, "
    "an incorrect database URL, or an access policy that rejects the request."
)


def describe_error(error: Any) -> str:
    """Best-effort human readable text for whatever the backend raised."""

    message: str
    if isinstance(error, BaseException):
        message = str(error)
        original = getattr(error, "orig", None) if isinstance(error, DBAPIError) else None
        details = getattr(error, "details", None)
        if original is not None:
            message = str(original) or message
        if isinstance(details, str) and details:
            message += f"\nDetails: {details}"
        if not message:
            message = type(error).__name__
    elif isinstance(error, Mapping) and isinstance(error.get("message"), str):
        message = error["message"]
        details = error.get("details")
        if isinstance(details, str) and details:
            message += f"\nDetails: {details}"
    elif isinstance(error, str):
        message = error
    else:
        try:
            message = json.dumps(error, indent=2)
        except (TypeError, ValueError):
            message = NON_DESCRIPTIVE_ERROR
    if message.strip() in {"", "{}", "null"} or "object at 0x" in message:
        message = NON_DESCRIPTIVE_ERROR
    return message


class StockroomError(Exception):
    """Base class for errors the application reports to the user."""


class StoreUnavailableError(StockroomError):
    """The store could not be reached or refused to answer a load."""

    def __init__(self, details: str) -> None:
        self.details = details
        super().__init__(f"{STORE_HINT}\n\nTechnical details: {details}")


class OperationError(StockroomError):
    """A single create/update/delete/import/export request failed at the store."""

    def __init__(self, operation: str, details: str) -> None:
        self.operation = operation
        self.details = details
        super().__init__(f"Error {operation}: {details}")


class ItemNotFoundError(StockroomError, KeyError):
    def __init__(self, item_id: str) -> None:
        self.item_id = item_id
        super().__init__(f"Item {item_id} not found")

    def __str__(self) -> str:
        return self.args[0]


class ExportRecordNotFoundError(StockroomError, KeyError):
    def __init__(self, record_id: str) -> None:
        self.record_id = record_id
        super().__init__(f"Export record {record_id} not found")

    def __str__(self) -> str:
        return self.args[0]


class SpreadsheetFormatError(StockroomError, ValueError):
    """The uploaded file could not be read as a spreadsheet."""


class MissingColumnsError(SpreadsheetFormatError):
    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            "The spreadsheet is missing required columns: " + ", ".join(self.missing)
        )


class NoValidItemsError(StockroomError, ValueError):
    def __init__(self) -> None:
        super().__init__("No valid items to import.")


class ExportFileError(StockroomError):
    """The history record was saved but the spreadsheet could not be produced."""

    def __init__(self, record: Any, details: str) -> None:
        self.record = record
        self.details = details
        super().__init__(
            f"Export record {getattr(record, 'id', '?')} was saved but the file "
            f"could not be generated: {details}"
        )


__all__ = [
    "NON_DESCRIPTIVE_ERROR",
    "describe_error",
    "StockroomError",
    "StoreUnavailableError",
    "OperationError",
    "ItemNotFoundError",
    "ExportRecordNotFoundError",
    "SpreadsheetFormatError",
    "MissingColumnsError",
    "NoValidItemsError",
    "ExportFileError",
]
