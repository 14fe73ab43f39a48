"""Prefix matching for translated chat messages."""

from __future__ import annotations

from collections.abc import Iterable

from .models import ChatEvent, EventKind


def matches(event: ChatEvent, prefixes: Iterable[str]) -> bool:
    """Return True if *event* is a text message containing any of *prefixes*.

    Matching is a case-insensitive substring test, so ``[en]`` matches a
    ``[EN]`` prefix anywhere in the message. Super chats, stickers and other
    non-text events never match.
    """
    if event.kind is not EventKind.TEXT:
        return False

    text = event.text.casefold()
    return any(prefix.casefold() in text for prefix in prefixes if prefix)
