"""Spreadsheet import: header checks, per-row validation and the batch commit."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .errors import MissingColumnsError, NoValidItemsError, SpreadsheetFormatError
from .spreadsheets import canonical_column, read_first_sheet
from .validation import ItemCandidate, RowValidationResult, validate_row

if TYPE_CHECKING:
    from .workspace import InventoryWorkspace

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: tuple[str, ...] = ("name", "category", "subcategory", "quantity", "location")


def missing_columns(headers: Iterable[Any]) -> List[str]:
    present = {canonical_column(label) for label in headers}
    return [column for column in REQUIRED_COLUMNS if column not in present]


@dataclass
class ImportReport:
    """Validation outcome for every row of one upload, in spreadsheet order."""

    results: List[RowValidationResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def valid_count(self) -> int:
        return sum(1 for result in self.results if result.is_valid)

    @property
    def invalid_count(self) -> int:
        return self.total - self.valid_count

    @property
    def valid_candidates(self) -> List[ItemCandidate]:
        return [result.candidate for result in self.results if result.is_valid]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "valid": self.valid_count,
            "invalid": self.invalid_count,
            "rows": [
                {
                    "row_number": result.row_number,
                    "candidate": result.candidate.to_dict(),
                    "is_valid": result.is_valid,
                    "errors": list(result.errors),
                }
                for result in self.results
            ],
        }


def reconcile(headers: Sequence[Any], rows: Iterable[Mapping[str, Any]]) -> ImportReport:
    """Validate ``rows`` once the header is known to carry every required column."""

    missing = missing_columns(headers)
    if missing:
        raise MissingColumnsError(missing)
    return ImportReport(
        results=[validate_row(row, row_number=index) for index, row in enumerate(rows, start=1)]
    )


class ImportSession:
    """State of one import dialog: the chosen file and its validated rows."""

    def __init__(self) -> None:
        self.file_name: Optional[str] = None
        self.report: Optional[ImportReport] = None
        self.processing = False

    def reset(self) -> None:
        self.file_name = None
        self.report = None
        self.processing = False

    @property
    def rows(self) -> List[RowValidationResult]:
        return self.report.results if self.report else []

    def load(self, content: bytes, filename: Optional[str] = None) -> ImportReport:
        self.processing = True
        self.file_name = filename
        try:
            sheet = read_first_sheet(content, filename)
            report = reconcile(sheet.headers, sheet.rows)
        except SpreadsheetFormatError as exc:
            logger.warning("Rejected import file %s: %s", filename or "<upload>", exc)
            self.reset()
            raise
        except Exception:
            logger.exception("Reading import file %s failed", filename or "<upload>")
            self.reset()
            raise
        self.report = report
        self.processing = False
        logger.info(
            "Parsed import file %s: %d valid, %d invalid",
            filename or "<upload>",
            report.valid_count,
            report.invalid_count,
        )
        return report

    async def commit(self, workspace: "InventoryWorkspace") -> int:
        """Create the valid rows as one batch; the workspace then refetches everything."""

        candidates = self.report.valid_candidates if self.report else []
        if not candidates:
            raise NoValidItemsError()
        self.processing = True
        try:
            imported = await workspace.import_items(
                [candidate.to_create() for candidate in candidates]
            )
        finally:
            self.processing = False
        self.reset()
        return imported


__all__ = [
    "REQUIRED_COLUMNS",
    "ImportReport",
    "ImportSession",
    "missing_columns",
    "reconcile",
]
