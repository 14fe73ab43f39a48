"""Translation relay commands: !tlwatch, !tlstop, !tlprefix

    !tlwatch <YouTube URL>     Relay translations from a livestream's chat to this channel
    !tlstop                    Stop relaying every livestream to this channel
    !tlprefix <prefix...>      Replace the prefixes to look for, space-separated
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from discord.ext import commands

from tlbuddy.relay import messages
from tlbuddy.services import DiscordDestination

if TYPE_CHECKING:
    from tlbuddy.bot import TLBuddyClient

logger = logging.getLogger(__name__)

_YT_RE = re.compile(
    r"(?:https?://)?(?:www\.|m\.)?(?:"
    r"youtube\.com/watch\?(?:.*&)?v=|"
    r"youtube\.com/live/|"
    r"youtube\.com/shorts/|"
    r"youtu\.be/"
    r")([A-Za-z0-9_-]{11})"
)
_BARE_ID_RE = re.compile(r"[A-Za-z0-9_-]{11}")


def extract_video_id(text: str) -> str | None:
    """Extract the 11-char YouTube video id from a URL or a bare id."""
    text = text.strip().strip("<>")
    if not text:
        return None
    m = _YT_RE.search(text)
    if m:
        return m.group(1)
    if _BARE_ID_RE.fullmatch(text):
        return text
    return None


class Translations(commands.Cog):
    """Front-end for the stream relay controller"""

    def __init__(self, bot: TLBuddyClient):
        self.bot = bot
        self.controller = bot.controller

    def _destination(self, ctx: commands.Context) -> DiscordDestination:
        return DiscordDestination(ctx.channel, self.bot.rate_limiter)

    @commands.command(name=messages.WATCH_COMMAND, rest_is_raw=True)
    async def watch(self, ctx: commands.Context, *, text: str = ""):
        """Relay translations from a livestream to this channel"""
        url = next(iter(text.split()), "")
        video_id = extract_video_id(url)
        if not video_id:
            logger.warning(f"Invalid video URL from channel {ctx.channel.id}: {url!r}")
            await ctx.send(messages.watch_usage(ctx.prefix or self.controller.config.command_prefix))
            return

        destination = self._destination(ctx)
        result = await self.controller.on_watch(video_id, destination.id, destination)
        logger.debug(f"{messages.WATCH_COMMAND} in {destination.id}: {result}")

    @commands.command(name=messages.STOP_COMMAND)
    async def stop(self, ctx: commands.Context):
        """Stop relaying translations to this channel"""
        destination = self._destination(ctx)
        result = await self.controller.on_stop(destination.id, destination)
        logger.debug(f"{messages.STOP_COMMAND} in {destination.id}: {result}")

    @commands.command(name=messages.PREFIX_COMMAND, rest_is_raw=True)
    async def prefix(self, ctx: commands.Context, *, text: str = ""):
        """Replace the translation prefixes for this channel"""
        # Taken raw: prefixes like 「EN」 or a lone " must not go through quote parsing
        destination = self._destination(ctx)
        result = await self.controller.on_set_prefixes(destination.id, text.split(), destination)
        logger.debug(f"{messages.PREFIX_COMMAND} in {destination.id}: {result}")


async def setup(bot: TLBuddyClient):
    await bot.add_cog(Translations(bot))
