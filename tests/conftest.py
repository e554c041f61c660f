"""Pytest configuration and shared fixtures."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from unitconv.core.config import Settings, get_settings
from unitconv.core.errors import FetchError
from unitconv.db.dal import Database
from unitconv.db.schema import init_db
from unitconv.models.rates import RateSnapshot
from unitconv.services.rates.base import RateProvider
from unitconv.services.rates.cache_service import RateCache

START = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

SAMPLE_RATES: Dict[str, float] = {
    "USD": 1.0,
    "EUR": 0.9,
    "GBP": 0.8,
    "JPY": 150.0,
}


class FakeClock:
    """Controllable clock; call it to read, advance() to move forward."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeRateProvider(RateProvider):
    """Returns a fixed table stamped with the shared clock, or fails on demand."""

    def __init__(self, clock: FakeClock, rates: Optional[Dict[str, float]] = None):
        self.clock = clock
        self.rates = dict(rates or SAMPLE_RATES)
        self.calls = 0
        self.fail_with: Optional[str] = None
        self.history: List[RateSnapshot] = []

    def fetch_rates(self) -> RateSnapshot:
        self.calls += 1
        if self.fail_with:
            raise FetchError(self.fail_with)
        snapshot = RateSnapshot(rates=dict(self.rates), fetched_at=self.clock())
        self.history.append(snapshot)
        return snapshot


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def provider(clock) -> FakeRateProvider:
    return FakeRateProvider(clock)


@pytest.fixture
def db(tmp_path) -> Database:
    path = tmp_path / "rates.sqlite3"
    init_db(path)
    return Database(path)


@pytest.fixture
def cache(provider, db, clock) -> RateCache:
    rate_cache = RateCache(
        provider,
        db,
        max_age=timedelta(days=7),
        retry_after=timedelta(minutes=5),
        clock=clock,
    )
    rate_cache.load()
    return rate_cache


@pytest.fixture
def settings(tmp_path) -> Settings:
    s = Settings(
        data_dir=tmp_path,
        db_path=tmp_path / "unitconv.sqlite3",
        exchange_rate_provider="static",
        openexchangerates_app_id=None,
    )
    s.init_post_load()
    return s


@pytest.fixture
def env_settings(tmp_path, monkeypatch):
    """Point get_settings() at a temporary data dir with the static provider."""
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setenv("EXCHANGE_RATE_PROVIDER", "static")
    monkeypatch.delenv("DB_PATH", raising=False)
    monkeypatch.delenv("DEBUG", raising=False)
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def restore_root_logging():
    """init_logging() replaces root handlers; put the originals back after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
