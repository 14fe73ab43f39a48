"""
Discord send rate monitoring.
Keeps relayed batches from pushing the bot into Discord's rate limits.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import discord

logger = logging.getLogger("tlbuddy.rate_limiter")


@dataclass
class RateLimitStats:
    """Rate limit statistics"""

    total_requests: int = 0
    rate_limited_count: int = 0

    # Timestamps of recent sends
    recent_requests: deque[float] = field(default_factory=lambda: deque(maxlen=1000))

    # Recent 429 responses
    rate_limit_errors: deque[dict[str, Any]] = field(default_factory=lambda: deque(maxlen=50))

    last_reset: float = field(default_factory=time.time)


class RateLimitMonitor:
    """Tracks outgoing Discord messages and refuses sends when the rate is critical"""

    # Discord API reference limits
    GLOBAL_RATE_LIMIT = 50
    MESSAGE_RATE_LIMIT = 5

    def __init__(
        self,
        enabled: bool = True,
        warning_threshold: float = 0.7,
        critical_threshold: float = 0.9,
        report_interval: float = 300,
    ):
        self.stats = RateLimitStats()
        self.enabled = enabled
        self.WARNING_THRESHOLD = warning_threshold
        self.CRITICAL_THRESHOLD = critical_threshold
        self.report_interval = report_interval
        self._warning_cooldown: dict[str, float] = {}
        self._report_task: asyncio.Task | None = None

    def start_monitoring(self) -> None:
        """Start the periodic report loop"""
        if self._report_task is not None or not self.enabled:
            return
        self._report_task = asyncio.create_task(self._periodic_reset())
        logger.info("Rate Limit Monitor started")

    async def stop_monitoring(self) -> None:
        if self._report_task is None:
            return
        self._report_task.cancel()
        self._report_task = None
        logger.info("Rate Limit Monitor stopped")

    def _record_request(self) -> None:
        self.stats.total_requests += 1
        self.stats.recent_requests.append(time.time())

    def _record_rate_limit(self, error: discord.HTTPException) -> None:
        self.stats.rate_limited_count += 1
        self.stats.rate_limit_errors.append(
            {
                "timestamp": datetime.now().isoformat(),
                "status": error.status,
                "text": error.text,
            }
        )

    def _get_recent_count(self, seconds: float) -> int:
        """Count sends within the last *seconds*"""
        threshold = time.time() - seconds
        count = 0
        for t in reversed(self.stats.recent_requests):
            if t > threshold:
                count += 1
            else:
                break
        return count

    def check_rate_limit_risk(self, action_type: str = "general") -> tuple[bool, str]:
        """Check the current send rate"""
        recent_1s = self._get_recent_count(1.0)
        global_usage = recent_1s / self.GLOBAL_RATE_LIMIT

        if global_usage >= self.CRITICAL_THRESHOLD:
            return False, f"Critical: Global rate high ({recent_1s}/{self.GLOBAL_RATE_LIMIT} req/s)"

        if global_usage >= self.WARNING_THRESHOLD:
            msg = f"Warning: Global rate threshold reached ({recent_1s}/{self.GLOBAL_RATE_LIMIT} req/s)"
            self._log_warning_once("global", msg)
            return True, msg

        if action_type == "message":
            recent_5s = self._get_recent_count(5.0)
            message_rate = recent_5s / 5
            if message_rate >= self.MESSAGE_RATE_LIMIT * self.CRITICAL_THRESHOLD:
                return False, f"Critical: Message rate high ({message_rate:.1f} msg/s)"

        return True, "Rate status: Normal"

    def _log_warning_once(self, key: str, message: str, cooldown: int = 60) -> None:
        """Suppress repeats of the same warning"""
        current_time = time.time()
        if key in self._warning_cooldown:
            if current_time - self._warning_cooldown[key] < cooldown:
                return

        self._warning_cooldown[key] = current_time
        logger.warning(message)

    async def safe_send_message(self, channel: Any, *args: Any, **kwargs: Any) -> discord.Message | None:
        """Send unless the rate is critical; returns None when the send was refused"""
        if self.enabled:
            is_safe, msg = self.check_rate_limit_risk("message")
            if not is_safe:
                logger.error(f"Message cancelled due to rate limit: {msg}")
                return None

        self._record_request()
        try:
            return await channel.send(*args, **kwargs)
        except discord.HTTPException as e:
            if e.status == 429:
                self._record_rate_limit(e)
                logger.error(f"HTTP 429 received: {e}")
            raise

    async def _periodic_reset(self) -> None:
        """Log a report every interval"""
        while True:
            await asyncio.sleep(self.report_interval)
            if self.stats.total_requests > 0:
                self._generate_report()
            self.stats.last_reset = time.time()

    def _generate_report(self) -> None:
        current_time = time.time()
        time_elapsed = current_time - self.stats.last_reset
        rps = self.stats.total_requests / time_elapsed if time_elapsed > 0 else 0

        recent_rps = self._get_recent_count(60.0) / 60

        logger.info(
            f"Rate Stats (Last {time_elapsed / 60:.1f} min): "
            f"Total: {self.stats.total_requests}, "
            f"Avg: {rps:.2f} req/s, "
            f"Recent 1min: {recent_rps:.2f} req/s, "
            f"Limit hits: {self.stats.rate_limited_count}"
        )

    def get_stats_summary(self) -> dict[str, Any]:
        recent_1min = self._get_recent_count(60.0)
        return {
            "total_requests": self.stats.total_requests,
            "rate_limited_count": self.stats.rate_limited_count,
            "recent_1min_requests": recent_1min,
            "recent_1min_rps": recent_1min / 60,
            "recent_errors": list(self.stats.rate_limit_errors)[-5:],
        }
