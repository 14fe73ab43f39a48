import time
from types import SimpleNamespace

import discord
import pytest

from tlbuddy.core.rate_limiter import RateLimitMonitor
from tlbuddy.relay import DeliveryError
from tlbuddy.services.discord_sink import DiscordDestination, clip_message


class FakeChannel:
    def __init__(self, id: int = 1234, error: Exception | None = None) -> None:
        self.id = id
        self.error = error
        self.sent: list[tuple[str, dict]] = []

    async def send(self, content: str, **kwargs):
        if self.error is not None:
            raise self.error
        self.sent.append((content, kwargs))
        return SimpleNamespace(id=9000 + len(self.sent))


def http_error(status: int) -> discord.HTTPException:
    return discord.HTTPException(SimpleNamespace(status=status, reason="error"), "nope")


def test_clip_message() -> None:
    assert clip_message("short") == "short"
    clipped = clip_message("x" * 2500)
    assert len(clipped) == 2000
    assert clipped.endswith("…")


@pytest.mark.anyio
async def test_deliver_returns_message_id() -> None:
    channel = FakeChannel()
    monitor = RateLimitMonitor()
    dest = DiscordDestination(channel, monitor)

    assert dest.id == "1234"
    assert await dest.deliver("> **Ana** - [EN] hi") == "9001"
    content, kwargs = channel.sent[0]
    assert content == "> **Ana** - [EN] hi"
    assert kwargs["allowed_mentions"].everyone is False
    assert monitor.stats.total_requests == 1


@pytest.mark.anyio
async def test_deliver_wraps_discord_errors() -> None:
    monitor = RateLimitMonitor()
    dest = DiscordDestination(FakeChannel(error=http_error(429)), monitor)

    with pytest.raises(DeliveryError):
        await dest.deliver("hello")

    assert monitor.stats.rate_limited_count == 1


@pytest.mark.anyio
async def test_deliver_forbidden_is_not_counted_as_rate_limit() -> None:
    monitor = RateLimitMonitor()
    dest = DiscordDestination(FakeChannel(error=http_error(403)), monitor)

    with pytest.raises(DeliveryError):
        await dest.deliver("hello")

    assert monitor.stats.rate_limited_count == 0


@pytest.mark.anyio
async def test_deliver_refused_by_rate_limiter() -> None:
    channel = FakeChannel()
    monitor = RateLimitMonitor()
    now = time.time()
    monitor.stats.recent_requests.extend([now] * RateLimitMonitor.GLOBAL_RATE_LIMIT)

    with pytest.raises(DeliveryError):
        await DiscordDestination(channel, monitor).deliver("hello")

    assert channel.sent == []


@pytest.mark.anyio
async def test_disabled_monitor_never_refuses() -> None:
    channel = FakeChannel()
    monitor = RateLimitMonitor(enabled=False)
    monitor.stats.recent_requests.extend([time.time()] * RateLimitMonitor.GLOBAL_RATE_LIMIT)

    assert await DiscordDestination(channel, monitor).deliver("hello") == "9001"


def test_stats_summary() -> None:
    monitor = RateLimitMonitor()
    monitor._record_request()
    monitor._record_rate_limit(http_error(429))

    summary = monitor.get_stats_summary()

    assert summary["total_requests"] == 1
    assert summary["rate_limited_count"] == 1
    assert summary["recent_1min_requests"] == 1
    assert summary["recent_errors"][0]["status"] == 429
