"""
TLBuddy Discord bot
Relays translations posted in YouTube livestream chats to Discord channels.
"""

import asyncio
import logging

import discord
from discord.ext import commands

from tlbuddy.core import (
    BOT_NAME,
    BOT_VERSION,
    HealthCheckServer,
    RateLimitMonitor,
    Settings,
    get_settings,
    setup_logging,
)
from tlbuddy.relay import PollScheduler, StreamLifecycleController, SubscriptionTable
from tlbuddy.services import YouTubeChatSource

logger = logging.getLogger("tlbuddy.bot")


class TLBuddyClient(commands.Bot):
    """TLBuddy Discord client, owns the relay engine and its collaborators"""

    def __init__(self, settings: Settings):
        intents = discord.Intents.default()
        intents.message_content = True  # commands are plain text messages

        super().__init__(
            command_prefix=settings.command_prefix,
            intents=intents,
            help_command=None,
        )

        self.settings = settings
        self.initial_extensions = ["tlbuddy.cogs.translations"]

        self.rate_limiter = RateLimitMonitor(
            enabled=settings.rate_limit_enabled,
            warning_threshold=settings.rate_limit_warning_threshold,
            critical_threshold=settings.rate_limit_critical_threshold,
        )
        self.chat_source = YouTubeChatSource(
            settings.youtube_api_key,
            max_results=settings.max_page_results,
            timeout=settings.fetch_timeout_seconds,
        )

        relay_config = settings.relay_config()
        self.table = SubscriptionTable()
        self.scheduler = PollScheduler(drain_interval_ms=relay_config.drain_interval_ms)
        self.controller = StreamLifecycleController(
            self.chat_source, self.scheduler, table=self.table, config=relay_config
        )
        self.health_server = HealthCheckServer(
            bot=self, table=self.table, host=settings.host, port=settings.port
        )

    async def setup_hook(self):
        """Load cogs and start background work"""
        self.rate_limiter.start_monitoring()

        for extension in self.initial_extensions:
            try:
                await self.load_extension(extension)
                logger.info(f"Loaded extension: {extension.split('.')[-1]}")
            except Exception as e:
                logger.critical(f"Failed to load extension {extension}: {e!r}", exc_info=True)
                raise

        self.scheduler.start()

    async def on_ready(self):
        await self.change_presence(
            status=self.settings.get_status(), activity=self.settings.get_activity()
        )
        logger.info(f"{BOT_NAME} v{BOT_VERSION} ready: {self.user} (ID: {self.user.id if self.user else 'unknown'})")
        logger.info(f"Connected to {len(self.guilds)} guild(s) | discord.py {discord.__version__}")

    async def on_command_error(self, ctx: commands.Context, error: commands.CommandError):
        if isinstance(error, commands.CommandNotFound):
            return

        logger.error(f"Command error: {error}", exc_info=error)

    async def close(self):
        await self.scheduler.stop()
        await self.rate_limiter.stop_monitoring()
        await self.chat_source.close()
        await self.health_server.stop()
        await super().close()


async def main():
    """Bot entry point"""
    settings = get_settings()
    setup_logging(settings.log_level)

    if not settings.discord_bot_token:
        logger.error("DISCORD_BOT_TOKEN is not set")
        return
    if not settings.youtube_api_key:
        logger.error("YOUTUBE_API_KEY is not set")
        return

    async with TLBuddyClient(settings) as bot:
        # Health server goes up first so the hosting platform sees the process as live
        await bot.health_server.start()
        try:
            await bot.start(settings.discord_bot_token)
        except (KeyboardInterrupt, asyncio.CancelledError):
            if not bot.is_closed():
                await bot.close()


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot stopped manually")


if __name__ == "__main__":
    run()
