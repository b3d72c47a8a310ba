"""
Configuration settings for TradeSim Bot using Pydantic
"""

from typing import Literal, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables and .env file
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Telegram Configuration
    telegram_bot_token: str = Field(
        ...,
        description="Telegram Bot API token"
    )
    telegram_api_url: str = Field(
        default="https://api.telegram.org",
        description="Telegram Bot API base URL"
    )
    telegram_poll_timeout: int = Field(
        default=60,
        description="Long-polling timeout for getUpdates in seconds"
    )

    # Administrator
    admin_id: Optional[int] = Field(
        default=None,
        description="Telegram user id of the bot administrator"
    )
    admin_only: bool = Field(
        default=False,
        description="Only answer messages sent by the administrator"
    )

    # Market Data
    okx_base_url: str = Field(
        default="https://www.okx.com",
        description="OKX public REST API URL"
    )
    request_timeout: float = Field(
        default=10.0,
        description="HTTP request timeout in seconds"
    )
    price_max_retries: int = Field(
        default=3,
        description="Attempts made to fetch a price before giving up"
    )
    price_retry_delay: float = Field(
        default=5.0,
        description="Seconds to wait after a rate-limited price request"
    )

    # Paper Trading
    starting_capital: float = Field(
        default=100.0,
        description="Simulated USDT capital every user starts with"
    )
    grid_drop_percent: float = Field(
        default=5.0,
        description="Grid strategy buys when price falls this % below entry"
    )
    grid_rise_percent: float = Field(
        default=5.0,
        description="Grid strategy sells when price rises this % above entry"
    )

    # Logging Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Log file path"
    )

    @field_validator("starting_capital", "price_retry_delay", "request_timeout")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Reject zero or negative amounts"""
        if v <= 0:
            raise ValueError("Value must be greater than 0")
        return v

    @field_validator("price_max_retries")
    @classmethod
    def validate_retries(cls, v: int) -> int:
        """At least one attempt is required"""
        if v < 1:
            raise ValueError("price_max_retries must be at least 1")
        return v

    @field_validator("grid_drop_percent", "grid_rise_percent")
    @classmethod
    def validate_grid_percent(cls, v: float) -> float:
        """Grid thresholds are percentages between 0 and 100"""
        if not 0 < v < 100:
            raise ValueError("Grid percentage must be between 0 and 100")
        return v

    def is_admin(self, user_id: int) -> bool:
        """Check if the given user is the configured administrator"""
        return self.admin_id is not None and self.admin_id == user_id


# Global settings instance
_settings: Optional[Settings] = None


def get_settings(reload: bool = False) -> Settings:
    """
    Get or create the global settings instance

    Args:
        reload: Force reload settings from environment

    Returns:
        Settings instance
    """
    global _settings

    if _settings is None or reload:
        _settings = Settings()

    return _settings
