from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from unitconv.models.constants import BASE_CURRENCY, CURRENCIES
from unitconv.models.units import units_by_category
from unitconv.services.commands import run_conversion
from unitconv.services.rates.cache_service import RateCache

"""Conversion router.

Endpoints:
    - GET /units    -> registry grouped by category, plus listed currencies
    - GET /convert  -> convert value between two units or two currencies

Handlers stay async: the RateCache must only be touched from the event loop
thread.
"""

router = APIRouter(tags=["convert"])


def get_rate_cache(request: Request) -> RateCache:
    return request.app.state.rate_cache


class UnitOut(BaseModel):
    name: str
    abbreviation: str
    factor: float


class UnitsOut(BaseModel):
    categories: Dict[str, List[UnitOut]]
    currencies: List[str]
    base_currency: str


class ConversionOut(BaseModel):
    value: float
    from_unit: str
    to_unit: str
    result: float
    warning: Optional[str] = None


@router.get("/units", response_model=UnitsOut, summary="List convertible units")
async def list_units():
    return UnitsOut(
        categories={
            cat.value: [
                UnitOut(name=u.name, abbreviation=u.abbreviation, factor=u.factor)
                for u in units
            ]
            for cat, units in units_by_category().items()
        },
        currencies=list(CURRENCIES),
        base_currency=BASE_CURRENCY,
    )


@router.get("/convert", response_model=ConversionOut, summary="Convert a value")
async def convert_value(
    value: float = Query(..., description="Amount to convert"),
    from_unit: str = Query(..., description="Source unit name, abbreviation or currency code"),
    to_unit: str = Query(..., description="Target unit name, abbreviation or currency code"),
    cache: RateCache = Depends(get_rate_cache),
):
    cache.take_warnings()
    result = run_conversion(value, from_unit, to_unit, cache)
    warnings = cache.take_warnings()
    return ConversionOut(
        value=value,
        from_unit=from_unit,
        to_unit=to_unit,
        result=result.result,
        warning="; ".join(warnings) or None,
    )
