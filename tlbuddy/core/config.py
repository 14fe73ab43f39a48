"""TLBuddy configuration using Pydantic Settings"""

import logging
from functools import lru_cache
from pathlib import Path

import discord
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tlbuddy import __version__
from tlbuddy.relay.config import (
    DEFAULT_CHAT_PREFIXES,
    DEFAULT_DRAIN_INTERVAL_MS,
    DEFAULT_MAX_BATCH_SIZE,
    DEFAULT_POLL_INTERVAL_FLOOR_MS,
    RelayConfig,
)

logger = logging.getLogger(__name__)

# === Path Configuration ===
PACKAGE_DIR = Path(__file__).parent.parent
PROJECT_DIR = PACKAGE_DIR.parent

BOT_NAME = "TLBuddy"
BOT_VERSION = __version__


class Settings(BaseSettings):
    """TLBuddy settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=PROJECT_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API keys
    discord_bot_token: str = Field(default="", description="Discord bot token")
    youtube_api_key: str = Field(default="", description="YouTube Data API v3 key")

    # Commands
    command_prefix: str = Field(default="!", description="Prefix for text commands")
    default_prefixes: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CHAT_PREFIXES),
        description="Translation prefixes used until a channel sets its own",
    )

    # Polling
    poll_interval_floor_ms: int = Field(
        default=DEFAULT_POLL_INTERVAL_FLOOR_MS, ge=1000, description="Lowest per-stream poll interval"
    )
    drain_interval_ms: int = Field(
        default=DEFAULT_DRAIN_INTERVAL_MS, ge=100, description="Minimum gap between chat requests"
    )
    max_page_results: int = Field(
        default=500, ge=200, le=2000, description="Live chat messages requested per page"
    )
    fetch_timeout_seconds: float = Field(default=15.0, gt=0, description="YouTube request timeout")

    # Delivery
    max_batch_size: int = Field(
        default=DEFAULT_MAX_BATCH_SIZE, ge=1, description="Chat messages per Discord message"
    )
    delivery_timeout_seconds: float = Field(default=10.0, gt=0, description="Discord send timeout")

    # Rate limit monitor
    rate_limit_enabled: bool = Field(default=True)
    rate_limit_warning_threshold: float = Field(default=0.7)
    rate_limit_critical_threshold: float = Field(default=0.9)

    # Presence
    status: str = Field(default="online", description="online, idle, dnd or invisible")
    activity_type: str = Field(default="watching", description="playing, listening, watching or competing")
    activity_name: str = Field(default="for !tlwatch", description="Activity text, empty to disable")

    # Health server
    host: str = Field(default="0.0.0.0", description="Health server host")
    port: int = Field(default=8080, description="Health server port")

    # Environment
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("default_prefixes")
    @classmethod
    def validate_default_prefixes(cls, v: list[str]) -> list[str]:
        """Drop blank prefixes; at least one must remain"""
        cleaned = [p.strip() for p in v if p and p.strip()]
        if not cleaned:
            raise ValueError("DEFAULT_PREFIXES must contain at least one non-empty prefix")
        return cleaned

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            logger.warning(f"Invalid log level '{v}', defaulting to INFO")
            return "INFO"
        return v_upper

    def relay_config(self) -> RelayConfig:
        """Relay engine settings"""
        return RelayConfig(
            default_prefixes=tuple(self.default_prefixes),
            poll_interval_floor_ms=self.poll_interval_floor_ms,
            drain_interval_ms=self.drain_interval_ms,
            max_batch_size=self.max_batch_size,
            fetch_timeout_seconds=self.fetch_timeout_seconds,
            delivery_timeout_seconds=self.delivery_timeout_seconds,
            command_prefix=self.command_prefix,
        )

    def get_status(self) -> discord.Status:
        status_map = {
            "online": discord.Status.online,
            "idle": discord.Status.idle,
            "dnd": discord.Status.dnd,
            "invisible": discord.Status.invisible,
        }
        return status_map.get(self.status.lower(), discord.Status.online)

    def get_activity(self) -> discord.Activity | None:
        if not self.activity_name:
            return None

        activity_map = {
            "playing": discord.ActivityType.playing,
            "listening": discord.ActivityType.listening,
            "watching": discord.ActivityType.watching,
            "competing": discord.ActivityType.competing,
        }
        activity_type = activity_map.get(self.activity_type.lower(), discord.ActivityType.watching)
        return discord.Activity(type=activity_type, name=self.activity_name)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
