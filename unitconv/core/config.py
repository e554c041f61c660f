from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

ALLOWED_RATE_PROVIDERS = {"openexchangerates", "static"}


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., DEBUG, DATA_DIR,
    DB_FILENAME, RATES_MAX_AGE_SECONDS, OPENEXCHANGERATES_APP_ID).
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Basic app metadata
    app_name: str = "unitconv"
    debug: bool = False
    version: str = "0.1.0"

    # Data & persistence
    data_dir: Path = Path("data")
    db_filename: str = "unitconv.sqlite3"
    db_path: Optional[Path] = None  # derived if not provided

    # Exchange rates / caching
    rates_max_age_seconds: int = 7 * 24 * 3600  # one week
    refresh_retry_seconds: int = 300
    exchange_rate_provider: str = "openexchangerates"
    exchange_api_base_url: str = "https://openexchangerates.org/api/latest.json"
    openexchangerates_app_id: Optional[str] = None
    http_timeout_seconds: float = 10.0
    http_retries: int = 2

    def init_post_load(self) -> None:
        """Finalize derived fields and ensure directories exist."""
        if self.db_path is None:
            self.db_path = self.data_dir / self.db_filename
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        if self.exchange_rate_provider not in ALLOWED_RATE_PROVIDERS:
            raise ValueError(
                f"Unsupported exchange_rate_provider '{self.exchange_rate_provider}'. "
                f"Allowed: {sorted(ALLOWED_RATE_PROVIDERS)}"
            )
        if self.rates_max_age_seconds <= 0:
            raise ValueError("rates_max_age_seconds must be positive")


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
