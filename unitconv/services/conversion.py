from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from unitconv.core.errors import IncompatibleUnits, UnknownUnit
from unitconv.models.constants import is_currency_code
from unitconv.models.units import Unit, category, factor_to_base, lookup_unit
from unitconv.services.rates.base import SupportsRateLookup

"""Conversion engine.

Physical units convert through their category base unit using the static
factors of the registry. Currencies convert through the base currency using
rates from an injected lookup (normally the RateCache). No rounding happens
here; formatting is the caller's concern.
"""

Target = Union[Unit, str]  # a registry unit or a currency code


@dataclass(frozen=True)
class ConversionResult:
    value: float
    source: Target
    target: Target
    result: float

    @property
    def is_currency(self) -> bool:
        return isinstance(self.source, str)


def resolve_unit(token: str) -> Target:
    """Map a user token onto a registry unit or a currency code."""
    unit = lookup_unit(token)
    if unit is not None:
        return unit
    if is_currency_code(token):
        return token
    raise UnknownUnit(token)


def convert(value: float, from_unit: Unit, to_unit: Unit) -> float:
    if category(from_unit) != category(to_unit):
        raise IncompatibleUnits(from_unit, to_unit)
    if from_unit == to_unit:
        return value  # exact identity, no float round-off
    return value * factor_to_base(from_unit) / factor_to_base(to_unit)


def convert_currency(
    value: float, from_code: str, to_code: str, rates: SupportsRateLookup
) -> float:
    if from_code == to_code:
        rates.get_rate(from_code)  # still reject unknown codes
        return value
    # Rates are units per 1 base currency, so divide out the source first.
    return value * rates.get_rate(to_code) / rates.get_rate(from_code)


def convert_any(
    value: float, source: Target, target: Target, rates: SupportsRateLookup
) -> ConversionResult:
    """Dispatch to static or currency conversion depending on the operands."""
    if isinstance(source, Unit) and isinstance(target, Unit):
        result = convert(value, source, target)
    elif isinstance(source, str) and isinstance(target, str):
        result = convert_currency(value, source, target, rates)
    else:
        raise IncompatibleUnits(source, target)
    return ConversionResult(value=value, source=source, target=target, result=result)
