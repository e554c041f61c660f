"""Domain models: unit registry, currency constants and rate snapshots."""

from .constants import BASE_CURRENCY, CURRENCIES  # re-export
from .rates import RateSnapshot
from .units import Category, Unit

__all__ = [
    "BASE_CURRENCY",
    "CURRENCIES",
    "RateSnapshot",
    "Category",
    "Unit",
]
