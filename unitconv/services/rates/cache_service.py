from __future__ import annotations

import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from unitconv.core.config import Settings
from unitconv.core.errors import FetchError, PersistenceError, UnknownCurrency
from unitconv.models.rates import RateSnapshot
from unitconv.services.conversion import convert_currency
from .base import RateProvider
from .providers import Clock, make_rate_provider, utc_now

if TYPE_CHECKING:  # pragma: no cover
    from unitconv.db.dal import Database

"""Rate cache with a time-based staleness policy.

Purpose:
    Own the current RateSnapshot for the process lifetime, refresh it lazily
    when it is older than max_age, and persist it across runs.

Design:
    - A snapshot is Stale when now - fetched_at >= max_age, Fresh otherwise.
      The empty snapshot is stamped at the epoch so it is always Stale.
    - get_rate() refreshes on demand; there is no background timer.
    - refresh() replaces the snapshot wholesale or not at all.
    - When a refresh fails but the stale snapshot still knows the currency,
      the stale rate is returned and a warning is queued for the caller.
    - A failed refresh is not retried before retry_after has elapsed.
    - Used as a context manager, the cache is loaded on entry and persisted on
      exit; persistence failures on exit are logged, never raised.
"""

logger = logging.getLogger("unitconv.rates")


class CacheState(str, Enum):
    FRESH = "fresh"
    STALE = "stale"


class RateCache:
    def __init__(
        self,
        provider: RateProvider,
        db: "Database" | None = None,  # db optional so tests can run memory-only
        *,
        max_age: timedelta = timedelta(days=7),
        retry_after: timedelta = timedelta(minutes=5),
        clock: Clock = utc_now,
    ):
        self._provider = provider
        self._db = db
        self._max_age = max_age
        self._retry_after = retry_after
        self._clock = clock
        self._snapshot = RateSnapshot.empty(provider.base_currency)
        self._loaded = False
        self._dirty = False
        self._retry_not_before: Optional[datetime] = None
        self._last_error: Optional[FetchError] = None
        self._warnings: List[str] = []

    # Internal --------------------------------------------------
    def _may_refresh(self, now: datetime) -> bool:
        return self._retry_not_before is None or now >= self._retry_not_before

    def _fallback(self, code: str, err: FetchError) -> float:
        rate = self._snapshot.get(code)
        if rate is None:
            raise err
        fetched = self._snapshot.fetched_at.strftime("%Y-%m-%d %H:%M UTC")
        message = f"Using cached rates from {fetched}; refresh failed: {err}"
        if message not in self._warnings:
            logger.warning(message)
            self._warnings.append(message)
        return rate

    # Public API -----------------------------------------------
    @property
    def snapshot(self) -> RateSnapshot:
        return self._snapshot

    @property
    def base_currency(self) -> str:
        return self._snapshot.base_currency

    @property
    def max_age(self) -> timedelta:
        return self._max_age

    def load(self) -> RateSnapshot:
        """Read the persisted snapshot; degrade to an empty one on any failure."""
        snapshot: Optional[RateSnapshot] = None
        if self._db is not None:
            try:
                snapshot = self._db.load_rate_snapshot()
            except PersistenceError as e:
                logger.warning("could not load cached rates, starting empty: %s", e)
        if snapshot is None:
            snapshot = RateSnapshot.empty(self._provider.base_currency)
        else:
            logger.debug(
                "loaded %d cached rates fetched at %s",
                len(snapshot.rates),
                snapshot.fetched_at.isoformat(),
            )
        self._snapshot = snapshot
        self._loaded = True
        self._dirty = False
        return snapshot

    def state(self, now: Optional[datetime] = None) -> CacheState:
        now = now or self._clock()
        if now - self._snapshot.fetched_at >= self._max_age:
            return CacheState.STALE
        return CacheState.FRESH

    def is_stale(self, now: Optional[datetime] = None) -> bool:
        return self.state(now) is CacheState.STALE

    def refresh(self) -> RateSnapshot:
        """Fetch a full snapshot and swap it in; raise FetchError on failure."""
        now = self._clock()
        try:
            snapshot = self._provider.fetch_rates()
        except FetchError as e:
            self._last_error = e
            self._retry_not_before = now + self._retry_after
            logger.warning("rate refresh failed: %s", e)
            raise
        self._snapshot = snapshot
        self._dirty = True
        self._last_error = None
        self._retry_not_before = None
        logger.info("rates refreshed (%d currencies)", len(snapshot.rates))
        return snapshot

    def get_rate(self, code: str) -> float:
        if code == self._snapshot.base_currency:
            return 1.0
        now = self._clock()
        if self.is_stale(now):
            if self._may_refresh(now):
                try:
                    self.refresh()
                except FetchError as e:
                    return self._fallback(code, e)
            elif self._last_error is not None:
                return self._fallback(code, self._last_error)
        rate = self._snapshot.get(code)
        if rate is None:
            raise UnknownCurrency(code)
        return rate

    def convert_currency(self, value: float, from_code: str, to_code: str) -> float:
        return convert_currency(value, from_code, to_code, self)

    def take_warnings(self) -> List[str]:
        """Return warnings queued since the last call and clear them."""
        warnings, self._warnings = self._warnings, []
        return warnings

    def persist(self) -> None:
        """Write the snapshot if it changed since load; raises PersistenceError."""
        if self._db is None or not self._dirty:
            return
        self._db.save_rate_snapshot(self._snapshot)
        self._dirty = False

    def close(self) -> None:
        try:
            self.persist()
        except PersistenceError as e:
            logger.error("could not persist rates on exit: %s", e)

    def __enter__(self) -> "RateCache":
        if not self._loaded:
            self.load()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def build_rate_cache(
    settings: Settings,
    db: "Database" | None = None,
    *,
    provider: Optional[RateProvider] = None,
    clock: Clock = utc_now,
) -> RateCache:
    """Factory wiring settings (provider kind, max age, retry delay) into a RateCache."""
    if provider is None:
        provider = make_rate_provider(settings.exchange_rate_provider, settings, clock)
    return RateCache(
        provider,
        db,
        max_age=timedelta(seconds=settings.rates_max_age_seconds),
        retry_after=timedelta(seconds=settings.refresh_retry_seconds),
        clock=clock,
    )
