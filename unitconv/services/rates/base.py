from __future__ import annotations

"""Rate provider abstraction.

A provider returns a complete snapshot in one call; the cache decides when to
ask for one.
"""
from abc import ABC, abstractmethod
from typing import Protocol

from unitconv.models.constants import BASE_CURRENCY
from unitconv.models.rates import RateSnapshot


class RateProvider(ABC):
    base_currency: str = BASE_CURRENCY

    @abstractmethod
    def fetch_rates(self) -> RateSnapshot:
        """Return units of each currency per 1 base_currency.

        Implementations raise FetchError for network, credential and
        malformed-response failures alike.
        """
        raise NotImplementedError


class SupportsRateLookup(Protocol):
    def get_rate(self, code: str) -> float: ...
