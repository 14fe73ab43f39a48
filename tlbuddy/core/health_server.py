"""HTTP health check server"""

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

from aiohttp import web

from .config import BOT_NAME, BOT_VERSION

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from tlbuddy.relay import SubscriptionTable

logger = logging.getLogger("tlbuddy.health_server")


class HealthCheckServer:
    """HTTP health check server.

    Hosting platforms hit ``/`` or ``/health`` to decide whether the process
    is alive, so those routes answer 200 even while the bot is still
    connecting.
    """

    def __init__(
        self,
        bot: "Bot | None" = None,
        table: "SubscriptionTable | None" = None,
        host: str = "0.0.0.0",
        port: int = 8080,
        heartbeat_seconds: float = 300,
    ) -> None:
        self.bot: Any = bot
        self.table = table
        self.host = host
        self.port = port
        self.heartbeat_seconds = heartbeat_seconds
        self.app = web.Application()
        self.runner: web.AppRunner | None = None
        self._start_time: float = time.time()
        self._heartbeat_task: asyncio.Task | None = None
        self._setup_routes()

    def _setup_routes(self) -> None:
        """Configure HTTP routes"""
        self.app.router.add_get("/", self.handle_root)
        self.app.router.add_get("/health", self.handle_health)
        self.app.router.add_get("/status", self.handle_status)
        self.app.router.add_get("/ping", self.handle_ping)

    def _ready(self) -> bool:
        return self.bot is not None and self.bot.is_ready()

    async def handle_root(self, request: web.Request) -> web.Response:
        """Root endpoint - minimal service info"""
        return web.json_response(
            {"service": BOT_NAME.lower(), "version": BOT_VERSION, "status": "running"}
        )

    async def handle_health(self, request: web.Request) -> web.Response:
        """Liveness check, always 200"""
        ready = self._ready()
        return web.json_response(
            {"status": "healthy" if ready else "starting", "ready": ready},
        )

    async def handle_status(self, request: web.Request) -> web.Response:
        """Detailed status including tracked livestreams"""
        ready = self._ready()
        streams = list(self.table) if self.table is not None else []
        return web.json_response(
            {
                "service": BOT_NAME.lower(),
                "version": BOT_VERSION,
                "ready": ready,
                "bot_id": str(self.bot.user.id) if ready and self.bot.user else None,
                "uptime_seconds": int(time.time() - self._start_time),
                "tracked_streams": len(streams),
                "subscribers": sum(len(s.subscribers) for s in streams),
                "streams": [
                    {
                        "video_id": s.stream_id,
                        "subscribers": len(s.subscribers),
                        "poll_interval_ms": s.poll_interval_ms,
                    }
                    for s in streams
                ],
            }
        )

    async def handle_ping(self, request: web.Request) -> web.Response:
        """Ping endpoint"""
        return web.Response(text="pong")

    async def _heartbeat(self) -> None:
        """Periodic heartbeat, logs uptime and tracking status"""
        while True:
            await asyncio.sleep(self.heartbeat_seconds)
            uptime = int(time.time() - self._start_time)
            tracked = len(self.table) if self.table is not None else 0
            logger.info(f"Heartbeat: uptime={uptime}s, ready={self._ready()}, streams={tracked}")

    async def start(self) -> None:
        """Start health check server"""
        try:
            self.runner = web.AppRunner(self.app, access_log=None)
            await self.runner.setup()
            site = web.TCPSite(self.runner, self.host, self.port)
            await site.start()

            self._heartbeat_task = asyncio.create_task(self._heartbeat())

            logger.info(f"Health server started on {self.host}:{self.port}")
        except Exception as e:
            logger.exception(f"Failed to start health server: {e}")
            raise

    async def stop(self) -> None:
        """Stop health check server"""
        if self._heartbeat_task:
            self._heartbeat_task.cancel()
            await asyncio.gather(self._heartbeat_task, return_exceptions=True)
            self._heartbeat_task = None
        if self.runner:
            try:
                await self.runner.cleanup()
                logger.info("Health server stopped")
            except Exception as e:
                logger.exception(f"Error stopping health server: {e}")
            self.runner = None
