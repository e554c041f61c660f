"""Static unit registry.

Each unit carries a factor such that ``base_quantity = value * factor``, the
base being the metre for lengths and the kilogram for masses. The table is
fixed at import time; lookups are by full name or abbreviation and are
case-sensitive.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple


class Category(str, Enum):
    LENGTH = "length"
    MASS = "mass"


@dataclass(frozen=True)
class Unit:
    name: str
    abbreviation: str
    category: Category
    factor: float

    def __str__(self) -> str:
        return f"{self.name} ({self.abbreviation})"


METER = Unit("meter", "m", Category.LENGTH, 1.0)
CENTIMETER = Unit("centimeter", "cm", Category.LENGTH, 0.01)
KILOMETER = Unit("kilometer", "km", Category.LENGTH, 1000.0)
YARD = Unit("yard", "yd", Category.LENGTH, 0.9144)
FOOT = Unit("foot", "ft", Category.LENGTH, 0.3048)
INCH = Unit("inch", "in", Category.LENGTH, 0.0254)

KILOGRAM = Unit("kilogram", "kg", Category.MASS, 1.0)
GRAM = Unit("gram", "g", Category.MASS, 0.001)
TON = Unit("ton", "t", Category.MASS, 1000.0)
POUND = Unit("pound", "lb", Category.MASS, 0.453592)
OUNCE = Unit("ounce", "oz", Category.MASS, 0.0283495)

UNITS: Tuple[Unit, ...] = (
    METER,
    CENTIMETER,
    KILOMETER,
    YARD,
    FOOT,
    INCH,
    KILOGRAM,
    GRAM,
    TON,
    POUND,
    OUNCE,
)

_BY_TOKEN: Dict[str, Unit] = {}
for _unit in UNITS:
    _BY_TOKEN[_unit.name] = _unit
    _BY_TOKEN[_unit.abbreviation] = _unit


def factor_to_base(unit: Unit) -> float:
    return unit.factor


def category(unit: Unit) -> Category:
    return unit.category


def all_units() -> List[Tuple[str, str, Unit]]:
    """Return ``(name, abbreviation, unit)`` for every unit, in table order."""
    return [(u.name, u.abbreviation, u) for u in UNITS]


def units_by_category() -> Dict[Category, List[Unit]]:
    grouped: Dict[Category, List[Unit]] = {c: [] for c in Category}
    for unit in UNITS:
        grouped[unit.category].append(unit)
    return grouped


def lookup_unit(token: str) -> Optional[Unit]:
    return _BY_TOKEN.get(token)
