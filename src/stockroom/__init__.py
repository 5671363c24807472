"""Office inventory service with spreadsheet import and export history."""
from __future__ import annotations

from .filtering import ItemQuery, SortState, filter_and_sort
from .importer import ImportReport, ImportSession, reconcile
from .taxonomy import CATEGORY_SUBCATEGORY_MAP, Category
from .validation import ItemCandidate, RowValidationResult, validate_row

__all__ = [
    "create_app",
    "CATEGORY_SUBCATEGORY_MAP",
    "Category",
    "ImportReport",
    "ImportSession",
    "ItemCandidate",
    "ItemQuery",
    "RowValidationResult",
    "SortState",
    "filter_and_sort",
    "reconcile",
    "validate_row",
]


def create_app(*args, **kwargs):
    from .api import create_app as _create_app

    return _create_app(*args, **kwargs)
