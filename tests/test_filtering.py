from __future__ import annotations

from datetime import datetime, timezone

from stockroom.filtering import (
    ItemQuery,
    SortState,
    compare_text,
    filter_and_sort,
    format_timestamp_label,
    search_export_history,
    sort_items,
    subcategory_choices,
)
from stockroom.schemas import ExportRecordOut, StockItemOut


def _item(item_id: str, name: str, quantity: int, category: str = "Modules", subcategory: str = "Power", **extra):
    return StockItemOut(
        id=item_id,
        name=name,
        category=category,
        subcategory=subcategory,
        quantity=quantity,
        location=extra.pop("location", "Shelf"),
        **extra,
    )


def _names(items) -> list[str]:
    return [item.name for item in items]


ITEMS = [
    _item("1", "buck converter", 4, "Modules", "Power"),
    _item("2", "ESP32", 10, "Modules", "Communication"),
    _item("3", "M3 screw", 250, "Mechanical Parts", "Fasteners"),
    _item("4", "Enclosure", 2, "Mechanical Parts", "Enclosures"),
    _item("5", "DHT22", 9, "Electronics Hardware", "Sensors"),
]


def test_name_and_quantity_sorting_example() -> None:
    items = [{"name": "B", "quantity": 2}, {"name": "A", "quantity": 5}]

    by_name = filter_and_sort(items, ItemQuery(sort_key="name"))
    by_quantity = filter_and_sort(items, ItemQuery(sort_key="quantity", sort_direction="dsc"))

    assert _names_from_dicts(by_name) == ["A", "B"]
    assert by_quantity == [{"name": "A", "quantity": 5}, {"name": "B", "quantity": 2}]


def _names_from_dicts(items) -> list[str]:
    return [item["name"] for item in items]


def test_name_filter_is_case_insensitive() -> None:
    result = filter_and_sort(ITEMS, ItemQuery(name_query="ESP"))
    assert _names(result) == ["ESP32"]

    result = filter_and_sort(ITEMS, ItemQuery(name_query="en"))
    assert _names(result) == ["Enclosure"]


def test_category_filter() -> None:
    result = filter_and_sort(ITEMS, ItemQuery(category="Mechanical Parts"))

    assert _names(result) == ["Enclosure", "M3 screw"]


def test_subcategory_filter_requires_category() -> None:
    inert = filter_and_sort(ITEMS, ItemQuery(subcategory="Fasteners"))
    assert len(inert) == len(ITEMS)

    active = filter_and_sort(
        ITEMS, ItemQuery(category="Mechanical Parts", subcategory="Fasteners")
    )
    assert _names(active) == ["M3 screw"]


def test_text_sort_is_locale_order() -> None:
    result = filter_and_sort(ITEMS, ItemQuery())

    assert _names(result) == ["buck converter", "DHT22", "Enclosure", "ESP32", "M3 screw"]


def test_compare_text_ranks_case_and_accents_after_letters() -> None:
    assert compare_text("a", "B") < 0
    assert compare_text("a", "A") < 0
    assert compare_text("résumé", "resume") > 0
    assert compare_text("résumé", "rf") < 0
    assert compare_text("same", "same") == 0


def test_quantity_sort_is_numeric() -> None:
    ascending = filter_and_sort(ITEMS, ItemQuery(sort_key="quantity"))
    descending = filter_and_sort(ITEMS, ItemQuery(sort_key="quantity", sort_direction="dsc"))

    assert [item.quantity for item in ascending] == [2, 4, 9, 10, 250]
    assert [item.quantity for item in descending] == [250, 10, 9, 4, 2]


def test_missing_values_keep_their_order() -> None:
    items = [{"name": "x", "quantity": 3}, {"name": "y"}, {"name": "z", "quantity": 1}]

    result = sort_items(items, "quantity")

    assert result[1] == {"name": "y"}


def test_filtering_is_pure() -> None:
    snapshot = list(ITEMS)
    query = ItemQuery(category="Modules", sort_key="quantity", sort_direction="dsc")

    first = filter_and_sort(ITEMS, query)
    second = filter_and_sort(ITEMS, query)

    assert first == second
    assert ITEMS == snapshot


def test_sort_state_toggle() -> None:
    state = SortState()
    assert state == SortState("name", "asc")

    state = state.toggle("name")
    assert state == SortState("name", "dsc")

    state = state.toggle("quantity")
    assert state == SortState("quantity", "asc")

    state = state.toggle("quantity")
    assert state.direction == "dsc"


def test_toggling_reverses_order() -> None:
    query = ItemQuery().with_sort("quantity")
    reversed_query = query.with_sort("quantity")

    assert _names(filter_and_sort(ITEMS, reversed_query)) == list(
        reversed(_names(filter_and_sort(ITEMS, query)))
    )


def test_changing_category_resets_subcategory() -> None:
    query = ItemQuery(category="Modules", subcategory="Power")

    changed = query.with_category("Mechanical Parts")

    assert changed.category == "Mechanical Parts"
    assert changed.subcategory == "all"


def test_subcategory_choices() -> None:
    assert subcategory_choices("all") == []
    assert subcategory_choices("Modules") == ["Microcontrollers", "Communication", "Power"]


def test_export_history_search() -> None:
    records = [
        ExportRecordOut(
            id="a",
            timestamp=datetime(2026, 3, 7, 14, 5, 9, tzinfo=timezone.utc),
            item_count=12,
            data=[{"name": str(index)} for index in range(12)],
        ),
        ExportRecordOut(
            id="b",
            timestamp=datetime(2026, 4, 1, 9, 0, 0, tzinfo=timezone.utc),
            item_count=3,
            data=[{}, {}, {}],
        ),
    ]

    assert format_timestamp_label(records[0].timestamp, timezone.utc) == "3/7/2026, 2:05:09 PM"
    assert search_export_history(records, "", tz=timezone.utc) == records
    assert [r.id for r in search_export_history(records, "pm", tz=timezone.utc)] == ["a"]
    assert [r.id for r in search_export_history(records, "4/1/2026", tz=timezone.utc)] == ["b"]
    assert [r.id for r in search_export_history(records, "12", tz=timezone.utc)] == ["a"]
