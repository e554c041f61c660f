from __future__ import annotations

from datetime import datetime
from typing import Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from unitconv.services.rates.cache_service import RateCache
from .convert import get_rate_cache

"""Rates router exposing the cached snapshot.

Endpoints:
    - GET /rates          -> current snapshot with its fresh/stale state
    - POST /rates/refresh -> force a refresh (503 when the provider fails)
"""

router = APIRouter(prefix="/rates", tags=["rates"])


class SnapshotOut(BaseModel):
    base_currency: str
    fetched_at: datetime
    state: str
    max_age_seconds: int
    rates: Dict[str, float]

    @classmethod
    def from_cache(cls, cache: RateCache) -> "SnapshotOut":
        snapshot = cache.snapshot
        return cls(
            base_currency=snapshot.base_currency,
            fetched_at=snapshot.fetched_at,
            state=cache.state().value,
            max_age_seconds=int(cache.max_age.total_seconds()),
            rates=dict(snapshot.rates),
        )


@router.get("", response_model=SnapshotOut, summary="Show cached exchange rates")
async def show_rates(cache: RateCache = Depends(get_rate_cache)):
    return SnapshotOut.from_cache(cache)


@router.post("/refresh", response_model=SnapshotOut, summary="Refresh exchange rates now")
async def refresh_rates(cache: RateCache = Depends(get_rate_cache)):
    cache.refresh()
    return SnapshotOut.from_cache(cache)
