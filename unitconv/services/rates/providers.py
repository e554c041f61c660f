from __future__ import annotations

"""Concrete rate providers and factory.

'openexchangerates' is the live provider (requires OPENEXCHANGERATES_APP_ID);
'static' serves a fixed table so the tool stays usable offline and in tests.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from unitconv.core.config import Settings
from unitconv.core.errors import FetchError
from unitconv.models.rates import RateSnapshot
from unitconv.services.http_client import HttpError, get_json
from .base import RateProvider

logger = logging.getLogger("unitconv.rates")

Clock = Callable[[], datetime]

# Units per 1 USD; rough mid-market values, only used by the static provider.
_STATIC_RATES: Dict[str, float] = {
    "USD": 1.0,
    "EUR": 0.92,
    "JPY": 149.5,
    "KRW": 1350.0,
    "GBP": 0.79,
    "AUD": 1.52,
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StaticRateProvider(RateProvider):
    def __init__(self, clock: Clock = utc_now):
        self._clock = clock

    def fetch_rates(self) -> RateSnapshot:  # type: ignore[override]
        return RateSnapshot(
            base_currency=self.base_currency,
            rates=dict(_STATIC_RATES),
            fetched_at=self._clock(),
        )


class OpenExchangeRatesProvider(RateProvider):
    """Fetches latest.json from openexchangerates.org (base USD on the free plan)."""

    def __init__(
        self,
        app_id: Optional[str],
        base_url: str = "https://openexchangerates.org/api/latest.json",
        *,
        timeout: float = 10.0,
        retries: int = 2,
        clock: Clock = utc_now,
    ):
        self._app_id = app_id
        self._base_url = base_url
        self._timeout = timeout
        self._retries = retries
        self._clock = clock

    def fetch_rates(self) -> RateSnapshot:  # type: ignore[override]
        # Credential is checked lazily so unit-only sessions never need it.
        if not self._app_id:
            raise FetchError(
                "No API key found. Please set the OPENEXCHANGERATES_APP_ID environment variable."
            )
        try:
            data = get_json(
                self._base_url,
                params={"app_id": self._app_id},
                timeout=self._timeout,
                retries=self._retries,
            )
        except HttpError as e:
            if e.status in (401, 403):
                raise FetchError(f"Exchange-rate API rejected the credential: {e}") from e
            raise FetchError(f"Exchange-rate API request failed: {e}") from e

        if data.get("error"):
            raise FetchError(
                f"Exchange-rate API error: {data.get('message', 'unknown')} - "
                f"{data.get('description', 'no details')}"
            )
        rates = data.get("rates")
        if not isinstance(rates, dict) or not rates:
            raise FetchError("Exchange-rate API returned no rates")
        base = data.get("base") or self.base_currency
        try:
            snapshot = RateSnapshot(
                base_currency=base,
                rates={code: float(v) for code, v in rates.items()},
                fetched_at=self._clock(),
            )
        except (TypeError, ValueError) as e:
            raise FetchError(f"Exchange-rate API returned malformed rates: {e}") from e
        logger.info("fetched %d rates (base %s)", len(snapshot.rates), snapshot.base_currency)
        return snapshot


_PROVIDER_REGISTRY = {
    "static": StaticRateProvider,
    "openexchangerates": OpenExchangeRatesProvider,
}


def make_rate_provider(kind: str, settings: Settings, clock: Clock = utc_now) -> RateProvider:
    cls = _PROVIDER_REGISTRY.get(kind)
    if not cls:
        raise ValueError(f"Unknown rate provider kind '{kind}'")
    if cls is OpenExchangeRatesProvider:
        return OpenExchangeRatesProvider(
            settings.openexchangerates_app_id,
            settings.exchange_api_base_url,
            timeout=settings.http_timeout_seconds,
            retries=settings.http_retries,
            clock=clock,
        )
    return cls(clock=clock)
