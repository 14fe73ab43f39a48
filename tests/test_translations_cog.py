from types import SimpleNamespace

import pytest
from conftest import FakeChatSource
from discord.ext import commands
from discord.ext.commands.view import StringView

from tlbuddy.cogs.translations import Translations, extract_video_id
from tlbuddy.core.rate_limiter import RateLimitMonitor
from tlbuddy.relay import PollScheduler, StreamLifecycleController, messages


@pytest.mark.parametrize(
    "text",
    [
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://youtube.com/watch?feature=share&v=dQw4w9WgXcQ&t=10",
        "<https://www.youtube.com/watch?v=dQw4w9WgXcQ>",
        "https://m.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://www.youtube.com/live/dQw4w9WgXcQ?si=abc",
        "https://youtu.be/dQw4w9WgXcQ",
        "youtube.com/shorts/dQw4w9WgXcQ",
        "dQw4w9WgXcQ",
    ],
)
def test_extract_video_id(text) -> None:
    assert extract_video_id(text) == "dQw4w9WgXcQ"


@pytest.mark.parametrize("text", ["", "   ", "https://example.com/watch?v=abc", "not a video id"])
def test_extract_video_id_rejects(text) -> None:
    assert extract_video_id(text) is None


class FakeChannel:
    def __init__(self, id: int = 42) -> None:
        self.id = id
        self.sent: list[str] = []

    async def send(self, content: str, **kwargs):
        self.sent.append(content)
        return SimpleNamespace(id=len(self.sent))


@pytest.fixture
def cog():
    scheduler = PollScheduler(drain_interval_ms=1000)
    controller = StreamLifecycleController(FakeChatSource({"dQw4w9WgXcQ": "chat-1"}), scheduler)
    bot = SimpleNamespace(controller=controller, rate_limiter=RateLimitMonitor())
    return Translations(bot)


def make_ctx(channel: FakeChannel) -> SimpleNamespace:
    return SimpleNamespace(channel=channel, prefix="!", send=channel.send)


@pytest.mark.anyio
async def test_watch_subscribes_channel(cog) -> None:
    channel = FakeChannel()

    await cog.watch.callback(cog, make_ctx(channel), text="https://youtu.be/dQw4w9WgXcQ")

    stream = cog.controller.table.get("dQw4w9WgXcQ")
    assert [s.destination_id for s in stream.subscribers] == ["42"]
    assert channel.sent == [messages.now_listening("dQw4w9WgXcQ", "!", ("[EN]", "EN:"))]


@pytest.mark.anyio
async def test_watch_with_bad_url_shows_usage(cog) -> None:
    channel = FakeChannel()

    await cog.watch.callback(cog, make_ctx(channel), text="https://example.com")

    assert len(cog.controller.table) == 0
    assert channel.sent == [messages.watch_usage("!")]


@pytest.mark.anyio
async def test_prefix_and_stop(cog) -> None:
    channel = FakeChannel()
    ctx = make_ctx(channel)
    await cog.watch.callback(cog, ctx, text="dQw4w9WgXcQ")

    await cog.prefix.callback(cog, ctx, text="[ES] ES:")
    assert cog.controller.table.get("dQw4w9WgXcQ").subscribers[0].prefixes == ("[ES]", "ES:")

    await cog.stop.callback(cog, ctx)
    assert "dQw4w9WgXcQ" not in cog.controller.table
    assert channel.sent[-2:] == [messages.prefixes_set(("[ES]", "ES:")), messages.stopped_listening()]


async def invoke(cog: Translations, command: commands.Command, channel: FakeChannel, arguments: str) -> None:
    """Run *command* with *arguments* through discord.py's own argument parsing."""
    command.cog = cog  # done by Bot.add_cog in production
    ctx = commands.Context(
        message=SimpleNamespace(channel=channel, attachments=[], _state=None),
        bot=cog.bot,
        view=StringView(arguments),
        prefix="!",
        command=command,
    )
    ctx.send = channel.send
    await command._parse_arguments(ctx)
    await command.callback(*ctx.args, **ctx.kwargs)


@pytest.mark.anyio
@pytest.mark.parametrize(
    "arguments, expected",
    [
        ("「EN」 EN:", ("「EN」", "EN:")),
        ('" EN:', ('"', "EN:")),
        ("«EN» 『EN』", ("«EN»", "『EN』")),
        ("  [ES]   ES:  ", ("[ES]", "ES:")),
    ],
)
async def test_prefix_tokens_are_split_on_whitespace_only(cog, arguments, expected) -> None:
    channel = FakeChannel()
    await invoke(cog, cog.watch, channel, "dQw4w9WgXcQ")

    await invoke(cog, cog.prefix, channel, arguments)

    assert cog.controller.table.get("dQw4w9WgXcQ").subscribers[0].prefixes == expected
    assert channel.sent[-1] == messages.prefixes_set(expected)


@pytest.mark.anyio
async def test_prefix_without_tokens_shows_usage(cog) -> None:
    channel = FakeChannel()
    await invoke(cog, cog.watch, channel, "dQw4w9WgXcQ")

    await invoke(cog, cog.prefix, channel, "")

    assert cog.controller.table.get("dQw4w9WgXcQ").subscribers[0].prefixes == ()
    assert channel.sent[-1] == messages.prefix_usage("!")


@pytest.mark.anyio
@pytest.mark.parametrize("arguments", ['"', "「dQw4w9WgXcQ"])
async def test_watch_with_unbalanced_quotes_shows_usage(cog, arguments) -> None:
    channel = FakeChannel()

    await invoke(cog, cog.watch, channel, arguments)

    assert len(cog.controller.table) == 0
    assert channel.sent == [messages.watch_usage("!")]


@pytest.mark.anyio
async def test_watch_ignores_trailing_words(cog) -> None:
    channel = FakeChannel()

    await invoke(cog, cog.watch, channel, "https://youtu.be/dQw4w9WgXcQ please")

    assert "dQw4w9WgXcQ" in cog.controller.table
