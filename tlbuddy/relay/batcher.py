"""Batching of matching chat events into Discord-sized messages."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .matcher import matches
from .models import Batch, ChatEvent


def render_line(event: ChatEvent) -> str:
    return f"> **{event.author}** - {event.text}"


def _seal(events: list[ChatEvent]) -> Batch:
    return Batch(
        text="\n".join(render_line(e) for e in events),
        event_ids=frozenset(e.id for e in events),
    )


def batch(
    events: Iterable[ChatEvent], prefixes: Sequence[str], max_batch_size: int
) -> list[Batch]:
    """Group events matching *prefixes* into batches of at most *max_batch_size*.

    Input order is preserved; only the last batch may be smaller than
    *max_batch_size*. Returns an empty list when nothing matches.
    """
    if max_batch_size < 1:
        raise ValueError("max_batch_size must be at least 1")

    batches: list[Batch] = []
    current: list[ChatEvent] = []
    for event in events:
        if not matches(event, prefixes):
            continue
        current.append(event)
        if len(current) >= max_batch_size:
            batches.append(_seal(current))
            current = []

    if current:
        batches.append(_seal(current))
    return batches
