"""
Configuration settings using Pydantic Settings.

All sensitive configuration must be loaded from environment variables.
Never hardcode API keys or credentials in the code.
"""

import logging

from pydantic import AliasChoices, Field
from pydantic_settings import (
    BaseSettings,
    SettingsConfigDict,
    PydanticBaseSettingsSource,
)

from src.contracts.common import QueueCategory, parse_queue_categories

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Ensure .env values take precedence over system environment variables.
    # Order: init kwargs > .env (dotenv) > env vars > file secrets
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ):
        return (
            init_settings,
            dotenv_settings,
            env_settings,
            file_secret_settings,
        )

    # Riot API Configuration
    # Empty secrets are allowed at import time; main.health_check() rejects them.
    riot_api_key: str = Field("", validation_alias=AliasChoices("RIOT_API_KEY", "riot_api_key"))
    riot_platform: str = Field("euw1", alias="RIOT_PLATFORM")
    riot_region: str = Field("europe", alias="RIOT_REGION")
    riot_request_timeout_seconds: int = Field(15, alias="RIOT_REQUEST_TIMEOUT_SECONDS")

    # Discord Configuration
    discord_bot_token: str = Field(
        "", validation_alias=AliasChoices("DISCORD_BOT_TOKEN", "DISCORD_TOKEN", "discord_bot_token")
    )
    discord_guild_id: str | None = Field(None, alias="DISCORD_GUILD_ID")
    notification_channel_id: str | None = Field(None, alias="NOTIFICATION_CHANNEL_ID")

    # Database Configuration
    database_url: str = Field("postgresql://localhost/lptracker", alias="DATABASE_URL")
    database_pool_min_size: int = Field(1, alias="DATABASE_POOL_MIN_SIZE")
    database_pool_size: int = Field(10, alias="DATABASE_POOL_SIZE")
    database_pool_timeout: int = Field(30, alias="DATABASE_POOL_TIMEOUT")

    # Tracker Configuration
    tracking_interval_seconds: int = Field(60, alias="TRACKING_INTERVAL")
    lol_settle_delay_seconds: float = Field(5.0, alias="LOL_SETTLE_DELAY_SECONDS")
    tft_settle_delay_seconds: float = Field(10.0, alias="TFT_SETTLE_DELAY_SECONDS")
    tracker_batch_size: int = Field(5, alias="TRACKER_BATCH_SIZE")
    tracker_batch_delay_seconds: float = Field(1.0, alias="TRACKER_BATCH_DELAY_SECONDS")
    tracker_account_timeout_seconds: float = Field(30.0, alias="TRACKER_ACCOUNT_TIMEOUT_SECONDS")
    points_per_division: int = Field(
        100,
        alias="POINTS_PER_DIVISION",
        description="LP assumed per division when estimating promotion/demotion deltas",
    )
    lol_tracked_queues: str = Field("RANKED_SOLO_5x5,RANKED_FLEX_SR", alias="LOL_TRACKED_QUEUES")
    tft_tracked_queues: str = Field("RANKED_TFT", alias="TFT_TRACKED_QUEUES")

    # Recap Configuration
    recap_hour: int = Field(8, alias="RECAP_HOUR", ge=0, le=23)
    recap_window_hours: int = Field(24, alias="RECAP_WINDOW_HOURS", ge=1)

    # Application Configuration
    app_env: str = Field("development", alias="APP_ENV")
    app_debug: bool = Field(False, alias="APP_DEBUG")
    app_log_level: str = Field("INFO", alias="APP_LOG_LEVEL")

    # Feature Flags
    feature_lol_tracking_enabled: bool = Field(True, alias="FEATURE_LOL_TRACKING_ENABLED")
    feature_tft_tracking_enabled: bool = Field(True, alias="FEATURE_TFT_TRACKING_ENABLED")
    feature_daily_recap_enabled: bool = Field(True, alias="FEATURE_DAILY_RECAP_ENABLED")

    @property
    def lol_tracked_queue_set(self) -> frozenset[QueueCategory]:
        return _queue_set(self.lol_tracked_queues, "LOL_TRACKED_QUEUES")

    @property
    def tft_tracked_queue_set(self) -> frozenset[QueueCategory]:
        return _queue_set(self.tft_tracked_queues, "TFT_TRACKED_QUEUES")

    @property
    def notification_channel(self) -> int | None:
        try:
            return int(self.notification_channel_id) if self.notification_channel_id else None
        except ValueError:
            return None


def _queue_set(raw: str, name: str) -> frozenset[QueueCategory]:
    queues, unknown = parse_queue_categories(raw)
    if unknown:
        logger.warning("Ignoring unknown queue categories in %s: %s", name, ", ".join(unknown))
    return queues


# Global settings instance - loaded from environment / .env
settings = Settings()  # type: ignore[call-arg]


def get_settings() -> Settings:
    """Get the global settings instance.

    This function provides dependency injection support for settings.
    """
    return settings
