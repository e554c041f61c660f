"""Tests for settings loading and finalisation."""

import pytest

from unitconv.core.config import Settings


def test_defaults(tmp_path):
    s = Settings(data_dir=tmp_path / "nested" / "data", openexchangerates_app_id=None)
    s.init_post_load()
    assert s.db_path == tmp_path / "nested" / "data" / "unitconv.sqlite3"
    assert s.db_path.parent.is_dir()
    assert s.rates_max_age_seconds == 604800
    assert s.http_timeout_seconds == 10.0
    assert s.exchange_rate_provider == "openexchangerates"


def test_environment_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setenv("RATES_MAX_AGE_SECONDS", "3600")
    monkeypatch.setenv("OPENEXCHANGERATES_APP_ID", "abc123")
    s = Settings()
    s.init_post_load()
    assert s.rates_max_age_seconds == 3600
    assert s.openexchangerates_app_id == "abc123"


def test_rejects_unknown_provider(tmp_path):
    s = Settings(data_dir=tmp_path, exchange_rate_provider="carrier-pigeon")
    with pytest.raises(ValueError):
        s.init_post_load()


def test_rejects_non_positive_max_age(tmp_path):
    s = Settings(data_dir=tmp_path, rates_max_age_seconds=0)
    with pytest.raises(ValueError):
        s.init_post_load()
