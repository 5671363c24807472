"""Fixed category to subcategory taxonomy for stock items."""
from __future__ import annotations

from enum import Enum
from typing import Any


class ElectronicsSubcategory(str, Enum):
    GENERAL = "General"
    SENSORS = "Sensors"
    CONNECTORS = "Connectors"
    WIRES = "Wires"


class ModulesSubcategory(str, Enum):
    MICROCONTROLLERS = "Microcontrollers"
    COMMUNICATION = "Communication"
    POWER = "Power"


class MechanicalSubcategory(str, Enum):
    FASTENERS = "Fasteners"
    ENCLOSURES = "Enclosures"
    STRUCTURAL = "Structural"


class PCBSubcategory(str, Enum):
    SMD = "SMD"
    THROUGH_HOLE = "Through-Hole"


class Category(str, Enum):
    """Top-level category; each member carries its own subcategory enumeration."""

    ELECTRONICS_HARDWARE = "Electronics Hardware"
    MODULES = "Modules"
    MECHANICAL_PARTS = "Mechanical Parts"
    PCB_COMPONENTS = "PCB Components"

    @property
    def subcategories(self) -> type[Enum]:
        return _SUBCATEGORY_ENUMS[self]

    @property
    def subcategory_values(self) -> list[str]:
        return [member.value for member in self.subcategories]


_SUBCATEGORY_ENUMS: dict[Category, type[Enum]] = {
    Category.ELECTRONICS_HARDWARE: ElectronicsSubcategory,
    Category.MODULES: ModulesSubcategory,
    Category.MECHANICAL_PARTS: MechanicalSubcategory,
    Category.PCB_COMPONENTS: PCBSubcategory,
}

CATEGORY_VALUES: list[str] = [category.value for category in Category]

CATEGORY_SUBCATEGORY_MAP: dict[str, list[str]] = {
    category.value: category.subcategory_values for category in Category
}

DEFAULT_CATEGORY = Category.ELECTRONICS_HARDWARE


def parse_category(value: Any) -> Category | None:
    """Return the :class:`Category` whose value equals ``value`` exactly."""

    if isinstance(value, Category):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Category(value)
    except ValueError:
        return None


def is_valid_pair(category: Any, subcategory: Any) -> bool:
    resolved = parse_category(category)
    if resolved is None:
        return False
    if isinstance(subcategory, Enum):
        subcategory = subcategory.value
    return subcategory in resolved.subcategory_values


__all__ = [
    "Category",
    "ElectronicsSubcategory",
    "ModulesSubcategory",
    "MechanicalSubcategory",
    "PCBSubcategory",
    "CATEGORY_VALUES",
    "CATEGORY_SUBCATEGORY_MAP",
    "DEFAULT_CATEGORY",
    "parse_category",
    "is_valid_pair",
]
