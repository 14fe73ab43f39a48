from collections import deque

import pytest

from tlbuddy.relay import (
    ChatEvent,
    ChatPage,
    DeliveryError,
    EventKind,
    PollScheduler,
    RelayConfig,
    StreamLifecycleController,
    SubscriptionTable,
)


class FakeDestination:
    def __init__(self, id: str = "chan-1", *, fail: bool = False) -> None:
        self.id = id
        self.fail = fail
        self.sent: list[str] = []

    async def deliver(self, text: str) -> str:
        if self.fail:
            raise DeliveryError(f"cannot post to {self.id}")
        self.sent.append(text)
        return f"{self.id}-msg-{len(self.sent)}"


class FakeChatSource:
    """Chat source serving canned sessions and a queue of pages or exceptions."""

    def __init__(self, sessions: dict[str, str] | None = None) -> None:
        self.sessions = dict(sessions or {})
        self.pages: deque = deque()
        self.resolve_calls: list[str] = []
        self.fetch_calls: list[tuple[str, str | None]] = []

    async def resolve_session(self, stream_id: str) -> str | None:
        self.resolve_calls.append(stream_id)
        session = self.sessions.get(stream_id)
        if isinstance(session, BaseException):
            raise session
        return session

    async def fetch_page(self, session_id: str, cursor: str | None) -> ChatPage:
        self.fetch_calls.append((session_id, cursor))
        item = self.pages.popleft()
        if isinstance(item, BaseException):
            raise item
        return item


def text_event(id: str, text: str, author: str = "Viewer") -> ChatEvent:
    return ChatEvent(id=id, author=author, text=text, kind=EventKind.TEXT)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def relay_config() -> RelayConfig:
    return RelayConfig(
        poll_interval_floor_ms=30_000,
        drain_interval_ms=10,
        max_batch_size=5,
        fetch_timeout_seconds=0.2,
        delivery_timeout_seconds=0.2,
    )


@pytest.fixture
def chat_source() -> FakeChatSource:
    return FakeChatSource({"vid-1": "chat-1", "vid-2": "chat-2"})


@pytest.fixture
def scheduler(relay_config: RelayConfig) -> PollScheduler:
    return PollScheduler(drain_interval_ms=relay_config.drain_interval_ms)


@pytest.fixture
def controller(chat_source, scheduler, relay_config) -> StreamLifecycleController:
    return StreamLifecycleController(
        chat_source, scheduler, table=SubscriptionTable(), config=relay_config
    )
