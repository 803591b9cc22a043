"""Application configuration loaded from environment variables and ``.env``."""

from __future__ import annotations

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings

from btc_sign.adapters.hermes import BTC_USD_FEED_ID, DEFAULT_HERMES_URL


class Settings(BaseSettings):
    app_name: str = "btc-sign"
    log_level: str = "INFO"

    # HTTP server
    host: str = "0.0.0.0"
    port: int = Field(default=3000, validation_alias=AliasChoices("BTC_SIGN_PORT", "PORT"))
    cors_origins: list[str] = ["*"]

    # Oracle
    hermes_url: str = DEFAULT_HERMES_URL
    price_feed_id: str = BTC_USD_FEED_ID

    # Polling
    poll_interval_seconds: float = 5.0
    fetch_timeout_seconds: float = 4.0

    # 24h delta
    window_hours: float = 24.0
    reference_min_age_hours: float = 23.0

    model_config = {
        "env_prefix": "BTC_SIGN_",
        "env_file": ".env",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @model_validator(mode="after")
    def check_timing(self) -> "Settings":
        if self.fetch_timeout_seconds >= self.poll_interval_seconds:
            raise ValueError("fetch_timeout_seconds must be shorter than poll_interval_seconds")
        if self.reference_min_age_hours > self.window_hours:
            raise ValueError("reference_min_age_hours cannot exceed window_hours")
        return self


settings = Settings()
