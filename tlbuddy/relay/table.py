"""In-memory subscription table."""

from __future__ import annotations

from collections.abc import Iterator

from .models import Subscriber, TrackedStream


class SubscriptionTable:
    """Tracked livestreams keyed by video id.

    State lives only for the lifetime of the instance; nothing is persisted.
    """

    def __init__(self) -> None:
        self._streams: dict[str, TrackedStream] = {}

    def get(self, stream_id: str) -> TrackedStream | None:
        return self._streams.get(stream_id)

    def add(self, stream: TrackedStream) -> None:
        if stream.stream_id in self._streams:
            raise KeyError(f"Stream {stream.stream_id} is already tracked")
        self._streams[stream.stream_id] = stream

    def remove(self, stream_id: str) -> TrackedStream | None:
        return self._streams.pop(stream_id, None)

    def find_subscriptions(self, destination_id: str) -> list[tuple[TrackedStream, Subscriber]]:
        """All (stream, subscriber) pairs belonging to *destination_id*."""
        found = []
        for stream in self._streams.values():
            sub = stream.find_subscriber(destination_id)
            if sub is not None:
                found.append((stream, sub))
        return found

    def remove_destination(self, destination_id: str) -> list[str]:
        """Drop *destination_id* from every stream.

        Streams left without subscribers are removed from the table; their ids
        are returned.
        """
        emptied: list[str] = []
        for stream in list(self._streams.values()):
            before = len(stream.subscribers)
            stream.subscribers = [
                s for s in stream.subscribers if s.destination_id != destination_id
            ]
            if before and not stream.subscribers:
                del self._streams[stream.stream_id]
                emptied.append(stream.stream_id)
        return emptied

    @property
    def subscriber_count(self) -> int:
        return sum(len(s.subscribers) for s in self._streams.values())

    def __contains__(self, stream_id: object) -> bool:
        return stream_id in self._streams

    def __len__(self) -> int:
        return len(self._streams)

    def __iter__(self) -> Iterator[TrackedStream]:
        return iter(list(self._streams.values()))
