"""Filtering and sorting of the in-memory item set and export history."""
from __future__ import annotations

import unicodedata
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from datetime import datetime, tzinfo
from enum import Enum
from functools import cmp_to_key
from typing import Any, TypeVar

from .schemas import SortDirection, SortKey
from .taxonomy import Category, parse_category

ALL = "all"

T = TypeVar("T")


@dataclass(frozen=True)
class SortState:
    key: SortKey = "name"
    direction: SortDirection = "asc"

    def toggle(self, key: SortKey) -> "SortState":
        """Clicking the active column flips direction; a new column starts ascending."""

        if key == self.key:
            return SortState(key, "dsc" if self.direction == "asc" else "asc")
        return SortState(key, "asc")


@dataclass(frozen=True)
class ItemQuery:
    name_query: str = ""
    category: str = ALL
    subcategory: str = ALL
    sort_key: SortKey = "name"
    sort_direction: SortDirection = "asc"

    @property
    def sort_state(self) -> SortState:
        return SortState(self.sort_key, self.sort_direction)

    def with_category(self, category: Category | str) -> "ItemQuery":
        value = category.value if isinstance(category, Enum) else category
        return replace(self, category=value, subcategory=ALL)

    def with_subcategory(self, subcategory: str) -> "ItemQuery":
        return replace(self, subcategory=subcategory)

    def with_sort(self, key: SortKey) -> "ItemQuery":
        state = self.sort_state.toggle(key)
        return replace(self, sort_key=state.key, sort_direction=state.direction)


def subcategory_choices(category: Category | str) -> list[str]:
    """Subcategories offered by the filter for ``category``; none for ``all``."""

    resolved = parse_category(category)
    if resolved is None:
        return []
    return resolved.subcategory_values


def _field(item: Any, key: str) -> Any:
    if isinstance(item, Mapping):
        value = item.get(key)
        if value is None and key == "datasheet_url":
            value = item.get("datasheetUrl")
    else:
        value = getattr(item, key, None)
    if isinstance(value, Enum):
        return value.value
    return value


def _locale_key(text: str) -> tuple[str, str, str]:
    # Accents and case only break ties; lowercase sorts ahead of uppercase.
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(char for char in decomposed if not unicodedata.combining(char))
    return base.casefold(), text.casefold(), text.swapcase()


def compare_text(left: str, right: str) -> int:
    left_key, right_key = _locale_key(left), _locale_key(right)
    return (left_key > right_key) - (left_key < right_key)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def compare_field(left: Any, right: Any, key: str) -> int:
    left_value, right_value = _field(left, key), _field(right, key)
    if left_value is None or right_value is None:
        return 0
    if isinstance(left_value, str) and isinstance(right_value, str):
        return compare_text(left_value, right_value)
    if _is_number(left_value) and _is_number(right_value):
        return (left_value > right_value) - (left_value < right_value)
    return 0


def sort_items(items: Iterable[T], key: SortKey, direction: SortDirection = "asc") -> list[T]:
    sign = 1 if direction == "asc" else -1
    return sorted(items, key=cmp_to_key(lambda a, b: sign * compare_field(a, b, key)))


def filter_and_sort(items: Iterable[T], query: ItemQuery) -> list[T]:
    """Return the ordered view of ``items`` selected by ``query``.

    The subcategory filter only applies while a category is selected.
    """

    needle = query.name_query.lower()
    filtered = [item for item in items if needle in str(_field(item, "name") or "").lower()]
    if query.category != ALL:
        filtered = [item for item in filtered if _field(item, "category") == query.category]
        if query.subcategory != ALL:
            filtered = [
                item for item in filtered if _field(item, "subcategory") == query.subcategory
            ]
    return sort_items(filtered, query.sort_key, query.sort_direction)


def format_timestamp_label(timestamp: datetime, tz: tzinfo | None = None) -> str:
    """Render ``timestamp`` the way the history list shows it, e.g. ``3/7/2026, 2:05:09 PM``."""

    local = timestamp.astimezone(tz)
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return (
        f"{local.month}/{local.day}/{local.year}, "
        f"{hour}:{local.minute:02d}:{local.second:02d} {meridiem}"
    )


def search_export_history(
    records: Sequence[T], term: str, *, tz: tzinfo | None = None
) -> list[T]:
    if not term:
        return list(records)
    needle = term.lower()
    matches: list[T] = []
    for record in records:
        timestamp = _field(record, "timestamp")
        label = format_timestamp_label(timestamp, tz).lower() if timestamp else ""
        if needle in label or term in str(_field(record, "item_count")):
            matches.append(record)
    return matches


__all__ = [
    "ALL",
    "ItemQuery",
    "SortState",
    "compare_field",
    "compare_text",
    "filter_and_sort",
    "format_timestamp_label",
    "search_export_history",
    "sort_items",
    "subcategory_choices",
]
