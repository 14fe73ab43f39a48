"""Collaborator interfaces used by the relay engine"""

from __future__ import annotations

from typing import Protocol

from .models import ChatPage


class ChatSource(Protocol):
    """Upstream live chat feed.

    ``fetch_page`` raises ``QuotaExceededError`` when the upstream quota is
    exhausted and ``TransientFetchError`` (or any other exception) for
    failures worth retrying.
    """

    async def resolve_session(self, stream_id: str) -> str | None: ...

    async def fetch_page(self, session_id: str, cursor: str | None) -> ChatPage: ...


class Destination(Protocol):
    """Somewhere relayed text can be posted."""

    async def deliver(self, text: str) -> str:
        """Post *text* and return the id of the posted message."""
        ...
