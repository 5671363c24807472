"""Persistence gateway: the only module that reads or writes the store."""
from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from . import schemas
from .errors import ExportRecordNotFoundError, ItemNotFoundError
from .models import ExportRecord, StockItem, new_identifier
from .taxonomy import is_valid_pair


async def list_items(session: AsyncSession) -> Sequence[StockItem]:
    stmt = select(StockItem).order_by(StockItem.name)
    result = await session.execute(stmt)
    return result.scalars().all()


async def get_item(session: AsyncSession, item_id: str) -> StockItem:
    stmt = select(StockItem).where(StockItem.id == item_id)
    result = await session.execute(stmt)
    item = result.scalar_one_or_none()
    if item is None:
        raise ItemNotFoundError(item_id)
    return item


async def create_item(session: AsyncSession, data: schemas.StockItemCreate) -> StockItem:
    item = StockItem(**data.model_dump(mode="json"))
    session.add(item)
    await session.flush()
    return item


async def create_items_batch(
    session: AsyncSession, candidates: Sequence[schemas.StockItemCreate]
) -> int:
    """Insert ``candidates`` in one statement and return how many were sent."""

    if not candidates:
        return 0
    rows = [
        {"id": new_identifier(), **candidate.model_dump(mode="json")}
        for candidate in candidates
    ]
    await session.execute(insert(StockItem), rows)
    await session.flush()
    return len(rows)


async def update_item(
    session: AsyncSession, item: StockItem, data: schemas.StockItemUpdate
) -> StockItem:
    changes = data.model_dump(mode="json", exclude_unset=True)
    category = changes.get("category") or item.category
    subcategory = changes.get("subcategory") or item.subcategory
    if not is_valid_pair(category, subcategory):
        raise ValueError(f"Invalid subcategory '{subcategory}' for category '{category}'")
    for field, value in changes.items():
        if value is None:
            continue
        setattr(item, field, value)
    await session.flush()
    return item


async def delete_item(session: AsyncSession, item: StockItem) -> None:
    await session.delete(item)
    await session.flush()


async def list_export_records(session: AsyncSession) -> Sequence[ExportRecord]:
    stmt = select(ExportRecord).order_by(ExportRecord.timestamp.desc())
    result = await session.execute(stmt)
    return result.scalars().all()


async def get_export_record(session: AsyncSession, record_id: str) -> ExportRecord:
    stmt = select(ExportRecord).where(ExportRecord.id == record_id)
    result = await session.execute(stmt)
    record = result.scalar_one_or_none()
    if record is None:
        raise ExportRecordNotFoundError(record_id)
    return record


async def create_export_record(
    session: AsyncSession, record: ExportRecord
) -> ExportRecord:
    session.add(record)
    await session.flush()
    return record


__all__ = [
    "list_items",
    "get_item",
    "create_item",
    "create_items_batch",
    "update_item",
    "delete_item",
    "list_export_records",
    "get_export_record",
    "create_export_record",
]
