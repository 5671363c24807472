"""Validation of untyped spreadsheet rows into stock item candidates."""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Union

from .schemas import MAX_QUANTITY, StockItemCreate
from .taxonomy import parse_category

Quantity = Optional[Union[int, float]]


def coerce_text(value: Any) -> str:
    """Stringify a cell value; integral floats lose their ``.0``."""

    if value is None:
        return ""
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value).strip()


def coerce_quantity(value: Any) -> Quantity:
    """Numeric coercion for quantity cells; ``None`` when not a finite number."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if not math.isfinite(number):
        return None
    if number.is_integer():
        return int(number)
    return number


@dataclass
class ItemCandidate:
    """A stock item as read from a spreadsheet row, without an identifier."""

    name: str
    category: str
    subcategory: str
    quantity: Quantity
    location: str
    description: str = ""
    datasheet_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_create(self) -> StockItemCreate:
        return StockItemCreate(
            name=self.name,
            category=self.category,
            subcategory=self.subcategory,
            quantity=self.quantity,
            location=self.location,
            description=self.description,
            datasheet_url=self.datasheet_url,
        )


@dataclass
class RowValidationResult:
    candidate: ItemCandidate
    errors: List[str] = field(default_factory=list)
    row_number: Optional[int] = None

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _lookup(row: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in row:
            return row[key]
    return None


def validate_row(row: Mapping[str, Any], *, row_number: Optional[int] = None) -> RowValidationResult:
    """Validate one row, collecting every violation rather than stopping early.

    The subcategory is only checked once the category is known to be valid,
    since there is nothing to check it against otherwise.
    """

    category = coerce_text(row.get("category"))
    subcategory = coerce_text(row.get("subcategory"))
    quantity = coerce_quantity(row.get("quantity"))
    name = coerce_text(row.get("name"))
    location = coerce_text(row.get("location"))

    errors: List[str] = []
    resolved = parse_category(category)
    if resolved is None:
        errors.append(f"Invalid category: {category or '(empty)'}")
    elif subcategory not in resolved.subcategory_values:
        errors.append(
            f"Invalid subcategory '{subcategory or '(empty)'}' for category '{category}'"
        )
    # The store column is a 64-bit integer, so fractions and overflow share the message.
    if (
        quantity is None
        or quantity < 0
        or quantity > MAX_QUANTITY
        or not float(quantity).is_integer()
    ):
        errors.append("Quantity must be a non-negative number.")
    if not name:
        errors.append("Name is required.")
    if not location:
        errors.append("Location is required.")

    candidate = ItemCandidate(
        name=name,
        category=category,
        subcategory=subcategory,
        quantity=quantity,
        location=location,
        description=coerce_text(_lookup(row, "description")),
        datasheet_url=coerce_text(_lookup(row, "datasheet_url", "datasheetUrl")),
    )
    return RowValidationResult(candidate=candidate, errors=errors, row_number=row_number)


__all__ = [
    "ItemCandidate",
    "RowValidationResult",
    "coerce_quantity",
    "coerce_text",
    "validate_row",
]
