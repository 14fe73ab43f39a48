"""Relay data models."""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .interfaces import Destination
    from .ledger import DedupLedger


class EventKind(enum.Enum):
    TEXT = "text"
    SUPER_CHAT = "super_chat"
    SUPER_STICKER = "super_sticker"
    MEMBERSHIP = "membership"
    OTHER = "other"


@dataclass(frozen=True)
class ChatEvent:
    id: str
    author: str
    text: str
    kind: EventKind = EventKind.TEXT


@dataclass(frozen=True)
class Batch:
    """One rendered Discord message and the chat events it covers."""

    text: str
    event_ids: frozenset[str]

    def __len__(self) -> int:
        return len(self.event_ids)


@dataclass(frozen=True)
class DeliveryRecord:
    message_id: str
    event_ids: frozenset[str]


@dataclass(frozen=True)
class ChatPage:
    """A page of live chat returned by the chat source."""

    events: Sequence[ChatEvent] = ()
    next_cursor: str | None = None
    suggested_interval_ms: int = 0
    ended: bool = False


class FetchStatus(enum.Enum):
    SUCCESS = "success"
    STREAM_ENDED = "stream_ended"
    QUOTA_EXCEEDED = "quota_exceeded"
    TRANSIENT_ERROR = "transient_error"


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one chat page fetch, as seen by the lifecycle controller."""

    status: FetchStatus
    events: Sequence[ChatEvent] = ()
    next_cursor: str | None = None
    suggested_interval_ms: int = 0
    error: BaseException | None = None

    @classmethod
    def success(
        cls,
        events: Sequence[ChatEvent],
        next_cursor: str | None,
        suggested_interval_ms: int,
    ) -> FetchResult:
        return cls(
            FetchStatus.SUCCESS,
            events=tuple(events),
            next_cursor=next_cursor,
            suggested_interval_ms=suggested_interval_ms,
        )

    @classmethod
    def stream_ended(cls) -> FetchResult:
        return cls(FetchStatus.STREAM_ENDED)

    @classmethod
    def quota_exceeded(cls, error: BaseException | None = None) -> FetchResult:
        return cls(FetchStatus.QUOTA_EXCEEDED, error=error)

    @classmethod
    def transient(cls, error: BaseException | None = None) -> FetchResult:
        return cls(FetchStatus.TRANSIENT_ERROR, error=error)


@dataclass(eq=False)
class Subscriber:
    destination_id: str
    destination: Destination
    ledger: DedupLedger
    prefixes: tuple[str, ...] = ()

    def effective_prefixes(self, defaults: Sequence[str]) -> tuple[str, ...]:
        return self.prefixes or tuple(defaults)


@dataclass(eq=False)
class TrackedStream:
    stream_id: str
    chat_session_id: str
    poll_interval_ms: int
    page_cursor: str | None = None
    subscribers: list[Subscriber] = field(default_factory=list)

    def find_subscriber(self, destination_id: str) -> Subscriber | None:
        for sub in self.subscribers:
            if sub.destination_id == destination_id:
                return sub
        return None
