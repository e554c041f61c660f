from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .constants import BASE_CURRENCY, is_currency_code

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class RateSnapshot(BaseModel):
    """Currency code -> units of that currency per 1 base unit, plus fetch time."""

    model_config = ConfigDict(frozen=True)

    base_currency: str = BASE_CURRENCY
    rates: Dict[str, float] = Field(default_factory=dict)
    fetched_at: datetime = EPOCH

    @field_validator("base_currency")
    def valid_base(cls, v: str) -> str:
        if not is_currency_code(v):
            raise ValueError("base currency must be a three-letter code")
        return v

    @field_validator("rates")
    def positive_rates(cls, v: Dict[str, float]) -> Dict[str, float]:
        for code, rate in v.items():
            if rate <= 0:
                raise ValueError(f"rate for {code} must be positive")
        return v

    @field_validator("fetched_at")
    def aware_timestamp(cls, v: datetime) -> datetime:
        # SQLite hands back naive ISO strings for legacy rows; treat them as UTC.
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @model_validator(mode="after")
    def base_present(self) -> "RateSnapshot":
        if self.rates and self.base_currency not in self.rates:
            self.rates[self.base_currency] = 1.0
        return self

    @classmethod
    def empty(cls, base_currency: str = BASE_CURRENCY) -> "RateSnapshot":
        return cls(base_currency=base_currency, rates={}, fetched_at=EPOCH)

    @property
    def is_empty(self) -> bool:
        return not self.rates

    def get(self, code: str) -> float | None:
        if code == self.base_currency:
            return 1.0
        return self.rates.get(code)
