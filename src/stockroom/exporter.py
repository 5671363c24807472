"""Recording spreadsheet exports in the history table."""
from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from . import crud, schemas
from .errors import ExportFileError, OperationError, describe_error
from .models import ExportRecord, utcnow
from .spreadsheets import write_inventory_workbook

logger = logging.getLogger(__name__)

DEFAULT_FILENAME_PREFIX = "inventory_export"


@dataclass
class ExportResult:
    record: schemas.ExportRecordOut
    content: bytes
    filename: str


def export_filename(timestamp: datetime, prefix: str = DEFAULT_FILENAME_PREFIX) -> str:
    """``<prefix>_<YYYY-MM-DD>.xlsx`` using the UTC date of ``timestamp``."""

    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return f"{prefix}_{timestamp.astimezone(timezone.utc).date().isoformat()}.xlsx"


def snapshot_item(item: Any) -> dict[str, Any]:
    """Detached JSON copy of one item, identifier included."""

    if isinstance(item, BaseModel):
        return item.model_dump(mode="json")
    if isinstance(item, Mapping):
        return json.loads(json.dumps(dict(item), default=str))
    return schemas.StockItemOut.model_validate(item).model_dump(mode="json")


def build_export_record(items: Sequence[Any], *, timestamp: datetime | None = None) -> ExportRecord:
    data = [snapshot_item(item) for item in items]
    return ExportRecord(
        timestamp=timestamp or utcnow(),
        item_count=len(data),
        data=data,
    )


class ExportRecorder:
    """Saves a history record for an export, then renders the workbook.

    The record is committed before the file exists. A workbook that fails to
    render leaves the record in place and raises :class:`ExportFileError`.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        filename_prefix: str = DEFAULT_FILENAME_PREFIX,
        writer: Callable[[Iterable[Any]], bytes] = write_inventory_workbook,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.session = session
        self.filename_prefix = filename_prefix
        self._writer = writer
        self._clock = clock

    async def record(self, items: Sequence[Any]) -> schemas.ExportRecordOut:
        record = build_export_record(items, timestamp=self._clock())
        try:
            await crud.create_export_record(self.session, record)
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("Saving export record for %d items failed", len(items))
            raise OperationError("exporting data", describe_error(exc)) from exc
        logger.info("Recorded export %s with %d items", record.id, record.item_count)
        return schemas.ExportRecordOut.model_validate(record)

    async def export(self, items: Iterable[Any]) -> ExportResult:
        selection = list(items)
        saved = await self.record(selection)
        try:
            content = self._writer(selection)
        except Exception as exc:
            logger.exception("Export %s was recorded but the workbook failed", saved.id)
            raise ExportFileError(saved, describe_error(exc)) from exc
        return ExportResult(
            record=saved,
            content=content,
            filename=export_filename(saved.timestamp, self.filename_prefix),
        )

    def redownload(self, record: schemas.ExportRecordOut) -> ExportResult:
        """Rebuild the workbook of an earlier export from its stored snapshot."""

        return ExportResult(
            record=record,
            content=self._writer(record.data),
            filename=export_filename(record.timestamp, self.filename_prefix),
        )


__all__ = [
    "DEFAULT_FILENAME_PREFIX",
    "ExportRecorder",
    "ExportResult",
    "build_export_record",
    "export_filename",
    "snapshot_item",
]
