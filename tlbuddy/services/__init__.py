"""Adapters for the external APIs the relay talks to."""

from .discord_sink import DiscordDestination, clip_message
from .youtube_api import YouTubeChatSource, parse_chat_item

__all__ = [
    "DiscordDestination",
    "YouTubeChatSource",
    "clip_message",
    "parse_chat_item",
]
