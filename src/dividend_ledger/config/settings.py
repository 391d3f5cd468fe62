"""Application settings and configuration."""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_data_dir() -> Path:
    """Return the default data directory."""
    return Path.home() / ".dividend-ledger"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "Dividend Ledger"

    # Data directory (all app data lives here)
    data_dir: Optional[Path] = None

    # Database URL (derived from data_dir if not set explicitly)
    database_url: Optional[str] = None

    log_level: str = "INFO"

    # Quote / reference cache
    quote_cache_ttl_seconds: int = 900
    reference_cache_ttl_seconds: int = 86400
    quote_symbol_suffix: str = ".SA"
    offline_quotes: bool = False  # use the stub provider instead of Yahoo

    # External fetch policy
    fetch_timeout_seconds: float = 15.0
    fetch_max_attempts: int = 3
    fetch_backoff_seconds: float = 2.0
    scraper_min_interval_seconds: float = 1.0
    indicator_base_url: str = "https://www.fundsexplorer.com.br/funds"
    indicator_stale_after_days: int = 3

    # Distribution crediting
    distribution_lookback_days: int = 30
    dividend_window_months: int = 12
    interest_on_equity_withholding_rate: float = 0.15

    # Rate-indexed revaluation of manual holdings
    rates_selic_url: str = "https://api.bcb.gov.br/dados/serie/bcdata.sgs.432/dados/ultimos/1?formato=json"
    rates_ipca_url: str = "https://api.bcb.gov.br/dados/serie/bcdata.sgs.13522/dados/ultimos/1?formato=json"
    fallback_selic_rate: float = 11.25
    fallback_ipca_rate: float = 4.5

    # Scheduler
    scheduler_enabled: bool = True
    market_open_hour: int = 10
    market_close_hour: int = 18
    sweep_hours: str = "12,18"

    def get_data_dir(self) -> Path:
        """Get the data directory, creating it if needed."""
        data_dir = self.data_dir or get_default_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def get_database_url(self) -> str:
        """Get database URL, deriving from data_dir if not set."""
        if self.database_url:
            return self.database_url
        db_path = self.get_data_dir() / "ledger.db"
        return f"sqlite:///{db_path}"


# Global settings instance (can be replaced at runtime)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the current settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to force reload."""
    global _settings
    _settings = None
