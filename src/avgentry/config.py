from __future__ import annotations

import re
from typing import Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Monitor settings with validation.

    All settings are loaded from environment variables or a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Instrument
    symbol: str = "SPY"
    pip_size: float = 0.01
    pip_value: float = 0.01  # per unit of volume

    # Refresh / rendering
    refresh_interval_seconds: float = 1.0
    show_text: bool = True
    timeframe: str = "1Min"

    # Alpaca credentials
    alpaca_api_key: str = ""
    alpaca_api_secret: str = ""
    alpaca_data_feed: str = "iex"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    log_file: Optional[str] = None

    @field_validator("pip_size", "pip_value", "refresh_interval_seconds")
    @classmethod
    def must_be_positive_float(cls, v: float, info) -> float:
        if not v > 0:
            raise ValueError(f"{info.field_name} must be > 0, got {v}")
        return v

    @field_validator("symbol")
    @classmethod
    def validate_symbol(cls, v: str) -> str:
        v = v.strip()
        if not re.match(r"^[A-Za-z0-9./_-]{1,20}$", v):
            raise ValueError(f"Invalid symbol format: {v!r}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"log_level must be a logging level name, got {v}")
        return v

    @field_validator("alpaca_data_feed")
    @classmethod
    def validate_data_feed(cls, v: str) -> str:
        if v not in ("iex", "sip"):
            raise ValueError(f"alpaca_data_feed must be 'iex' or 'sip', got {v}")
        return v

    def validate_alpaca_credentials(self) -> None:
        """Raise if Alpaca credentials are missing."""
        if not self.alpaca_api_key or not self.alpaca_api_secret:
            raise ValueError(
                "ALPACA_API_KEY and ALPACA_API_SECRET must be set"
            )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Force reload settings from environment."""
    global _settings
    _settings = Settings()
    return _settings
