"""In-memory item and export-history sets for one user session."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from . import crud, schemas
from .config import Settings, get_settings
from .errors import (
    ExportFileError,
    NoValidItemsError,
    OperationError,
    StoreUnavailableError,
    describe_error,
)
from .exporter import ExportRecorder, ExportResult
from .filtering import ItemQuery, filter_and_sort, search_export_history, sort_items

logger = logging.getLogger(__name__)


class InventoryWorkspace:
    """Render-authoritative cache of the store for one session.

    ``items`` and ``exports`` are replaced wholesale by :meth:`load` and
    patched one row at a time by the single-item operations. Nothing changes
    here until the store has confirmed the write.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        settings: Settings | None = None,
        recorder: ExportRecorder | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.session = session
        self.recorder = recorder or ExportRecorder(
            session, filename_prefix=settings.export_filename_prefix
        )
        self.items: list[schemas.StockItemOut] = []
        self.exports: list[schemas.ExportRecordOut] = []
        self.loaded = False

    async def load(self) -> None:
        try:
            items = await crud.list_items(self.session)
            records = await crud.list_export_records(self.session)
        except SQLAlchemyError as exc:
            logger.exception("Loading inventory from the store failed")
            raise StoreUnavailableError(describe_error(exc)) from exc
        self.items = [schemas.StockItemOut.model_validate(item) for item in items]
        self.exports = [schemas.ExportRecordOut.model_validate(record) for record in records]
        self.loaded = True

    def view(self, query: ItemQuery | None = None) -> list[schemas.StockItemOut]:
        return filter_and_sort(self.items, query or ItemQuery())

    def history(self, term: str = "") -> list[schemas.ExportRecordOut]:
        return search_export_history(self.exports, term)

    @asynccontextmanager
    async def _operation(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except (LookupError, ValueError):
            await self.session.rollback()
            raise
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("Store rejected %s", operation)
            raise OperationError(operation, describe_error(exc)) from exc

    async def get_item(self, item_id: str) -> schemas.StockItemOut:
        try:
            item = await crud.get_item(self.session, item_id)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(describe_error(exc)) from exc
        return schemas.StockItemOut.model_validate(item)

    async def add_item(self, data: schemas.StockItemCreate) -> schemas.StockItemOut:
        async with self._operation("adding item"):
            item = await crud.create_item(self.session, data)
            await self.session.commit()
        created = schemas.StockItemOut.model_validate(item)
        self.items = sort_items([*self.items, created], "name")
        logger.info("Added item %s (%s)", created.id, created.name)
        return created

    async def update_item(
        self, item_id: str, patch: schemas.StockItemUpdate
    ) -> schemas.StockItemOut:
        async with self._operation("updating item"):
            item = await crud.get_item(self.session, item_id)
            item = await crud.update_item(self.session, item, patch)
            await self.session.commit()
        updated = schemas.StockItemOut.model_validate(item)
        self.items = [updated if entry.id == item_id else entry for entry in self.items]
        logger.info("Updated item %s", item_id)
        return updated

    async def delete_item(self, item_id: str) -> None:
        async with self._operation("deleting item"):
            item = await crud.get_item(self.session, item_id)
            await crud.delete_item(self.session, item)
            await self.session.commit()
        self.items = [entry for entry in self.items if entry.id != item_id]
        logger.info("Deleted item %s", item_id)

    async def import_items(self, candidates: Sequence[schemas.StockItemCreate]) -> int:
        """Batch-create ``candidates`` and refetch the whole set from the store."""

        if not candidates:
            raise NoValidItemsError()
        async with self._operation("importing items"):
            count = await crud.create_items_batch(self.session, candidates)
            await self.session.commit()
        logger.info("Imported %d items", count)
        await self.load()
        return count

    async def export(
        self,
        query: ItemQuery | None = None,
        *,
        items: Sequence[Any] | None = None,
    ) -> ExportResult:
        """Export ``items``, or the current view for ``query`` when none are given."""

        selection = list(items) if items is not None else self.view(query)
        try:
            result = await self.recorder.export(selection)
        except ExportFileError as exc:
            self.exports.insert(0, exc.record)
            raise
        self.exports.insert(0, result.record)
        return result

    async def find_export(self, record_id: str) -> schemas.ExportRecordOut:
        for record in self.exports:
            if record.id == record_id:
                return record
        try:
            record = await crud.get_export_record(self.session, record_id)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(describe_error(exc)) from exc
        return schemas.ExportRecordOut.model_validate(record)

    async def redownload(self, record_id: str) -> ExportResult:
        record = await self.find_export(record_id)
        return self.recorder.redownload(record)


__all__ = ["InventoryWorkspace"]
