"""Harvestbot configuration management."""

import logging
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger("harvestbot.config")


class BotSettings(BaseSettings):
    """Settings loaded from environment variables or .env file."""

    # Telegram
    bot_token: Optional[str] = Field(default=None, description="Telegram bot token")
    target_chat_id: Optional[str] = Field(
        default=None, description="Chat that receives the scheduled digest"
    )

    # CoinRanking (prices)
    coinranking_url: str = Field(default="https://api.coinranking.com/v2/coins")
    coinranking_api_key: Optional[str] = Field(default=None, description="Optional x-access-token")
    coinranking_limit: int = Field(default=10, ge=1, le=100)
    coinranking_time_period: str = Field(default="3h")

    # NewsAPI (headlines)
    newsapi_url: str = Field(default="https://newsapi.org/v2/everything")
    news_api_org_key: Optional[str] = Field(default=None, description="NewsAPI.org key")
    newsapi_query: str = Field(default="crypto")
    newsapi_page_size: int = Field(default=10, ge=1, le=100)

    # Per-request bound for every source fetch, in seconds
    fetch_timeout: float = Field(default=10.0, gt=0)

    # Scheduled digest
    digest_cron: str = Field(default="0 */3 * * *", description="Cron expression for the digest")
    digest_timezone: str = Field(default="Africa/Lagos", description="IANA timezone for the cron")

    # Logging
    log_file: Optional[str] = Field(default=None, description="Also log to this file")
    debug: bool = Field(default=False)

    model_config = {"env_file": ".env", "extra": "ignore"}

    @field_validator("digest_timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone '{value}'") from e
        return value


def load_settings(**overrides) -> BotSettings:
    """Load settings from environment."""
    settings = BotSettings(**overrides)

    if not settings.target_chat_id:
        logger.warning("TARGET_CHAT_ID is not set — scheduled digest broadcast is disabled.")
    if not settings.news_api_org_key:
        logger.warning("NEWS_API_ORG_KEY is not set — digests will carry the news placeholder.")

    return settings
