"""Pydantic schemas used by the API and the in-memory workspace."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .taxonomy import Category, is_valid_pair

SortKey = Literal[
    "id",
    "name",
    "category",
    "subcategory",
    "quantity",
    "location",
    "description",
    "datasheet_url",
]
SortDirection = Literal["asc", "dsc"]

# Largest value the store's 64-bit integer column accepts.
MAX_QUANTITY = 2**63 - 1


def _require_text(value: str) -> str:
    text = value.strip()
    if not text:
        raise ValueError("must not be empty")
    return text


class StockItemBase(BaseModel):
    name: str = Field(..., description="Display name of the part.")
    category: Category
    subcategory: str = Field(..., description="Must belong to the category's subcategories.")
    quantity: int = Field(0, ge=0, le=MAX_QUANTITY)
    location: str = Field(..., description="Shelf, drawer or room holding the item.")
    description: str = ""
    datasheet_url: str = ""

    @field_validator("name", "location")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        return _require_text(value)

    @model_validator(mode="after")
    def _check_subcategory(self) -> "StockItemBase":
        if not is_valid_pair(self.category, self.subcategory):
            raise ValueError(
                f"Invalid subcategory '{self.subcategory}' for category '{self.category.value}'"
            )
        return self


class StockItemCreate(StockItemBase):
    pass


class StockItemUpdate(BaseModel):
    name: str | None = None
    category: Category | None = None
    subcategory: str | None = None
    quantity: int | None = Field(default=None, ge=0, le=MAX_QUANTITY)
    location: str | None = None
    description: str | None = None
    datasheet_url: str | None = None

    @field_validator("name", "location")
    @classmethod
    def _strip_required(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _require_text(value)


class StockItemOut(StockItemBase):
    model_config = ConfigDict(from_attributes=True)

    id: str


class ExportRecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    timestamp: datetime
    item_count: int = Field(..., ge=0)
    data: list[dict[str, Any]]

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands timestamps back without an offset.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _check_item_count(self) -> "ExportRecordOut":
        if self.item_count != len(self.data):
            raise ValueError(
                f"Export record {self.id} claims {self.item_count} items but holds {len(self.data)}"
            )
        return self


class ExportRecordSummary(BaseModel):
    """History list entry; the snapshot itself is fetched on download."""

    id: str
    timestamp: datetime
    item_count: int


class ItemQueryIn(BaseModel):
    name_query: str = ""
    category: Category | Literal["all"] = "all"
    subcategory: str = "all"
    sort_key: SortKey = "name"
    sort_direction: SortDirection = "asc"


class ItemCandidateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    category: str
    subcategory: str
    quantity: int | float | None
    location: str
    description: str
    datasheet_url: str


class ImportRowOut(BaseModel):
    row_number: int
    candidate: ItemCandidateOut
    is_valid: bool
    errors: list[str]


class ImportPreviewOut(BaseModel):
    file_name: str | None = None
    total: int
    valid: int
    invalid: int
    rows: list[ImportRowOut]


class ImportCommitOut(BaseModel):
    file_name: str | None = None
    imported: int
    skipped: int
    items_total: int


class TaxonomyOut(BaseModel):
    categories: dict[str, list[str]]


class HealthStatus(BaseModel):
    status: Literal["ok"] = "ok"
    environment: str


__all__ = [
    "MAX_QUANTITY",
    "SortKey",
    "SortDirection",
    "StockItemCreate",
    "StockItemUpdate",
    "StockItemOut",
    "ExportRecordOut",
    "ExportRecordSummary",
    "ItemQueryIn",
    "ItemCandidateOut",
    "ImportRowOut",
    "ImportPreviewOut",
    "ImportCommitOut",
    "TaxonomyOut",
    "HealthStatus",
]
