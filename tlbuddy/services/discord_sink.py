"""Discord channel destination for relayed messages."""

import logging
from typing import Any

import discord

from tlbuddy.core.rate_limiter import RateLimitMonitor
from tlbuddy.relay import DeliveryError

logger = logging.getLogger(__name__)

DISCORD_MESSAGE_LIMIT = 2000


def clip_message(text: str, limit: int = DISCORD_MESSAGE_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "…"


class DiscordDestination:
    """Posts relay text to a Discord text channel, thread or DM."""

    def __init__(self, channel: Any, rate_limiter: RateLimitMonitor):
        self.channel = channel
        self.rate_limiter = rate_limiter

    @property
    def id(self) -> str:
        return str(self.channel.id)

    async def deliver(self, text: str) -> str:
        try:
            message = await self.rate_limiter.safe_send_message(
                self.channel,
                clip_message(text),
                allowed_mentions=discord.AllowedMentions.none(),
            )
        except discord.HTTPException as e:
            raise DeliveryError(f"Discord rejected message for channel {self.id}: {e}") from e

        if message is None:
            raise DeliveryError(f"Message to channel {self.id} cancelled by rate limiter")
        return str(message.id)

    def __repr__(self) -> str:
        return f"<DiscordDestination channel={self.id}>"
