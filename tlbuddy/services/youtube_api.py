"""YouTube Data API v3 live chat client.

Quota notes:
- videos.list costs 1 unit and is only called when a video is first watched.
- liveChatMessages.list costs 5 units per page; the poll scheduler keeps the
  request rate low enough for the default 10,000 unit daily quota.
"""

import logging
from typing import Any

import httpx

from tlbuddy.relay import ChatEvent, ChatPage, EventKind, QuotaExceededError, TransientFetchError

logger = logging.getLogger(__name__)

YOUTUBE_API_BASE = "https://www.googleapis.com/youtube/v3"

# Error reasons that mean the key is out of quota for the day
_QUOTA_REASONS = frozenset({"quotaExceeded", "dailyLimitExceeded"})
# Error reasons that mean the chat is gone for good
_CHAT_GONE_REASONS = frozenset({"liveChatEnded", "liveChatNotFound", "liveChatDisabled"})
# Message type YouTube posts as the last item of a finished chat
_CHAT_ENDED_TYPE = "chatEndedEvent"

_EVENT_KINDS = {
    "textMessageEvent": EventKind.TEXT,
    "superChatEvent": EventKind.SUPER_CHAT,
    "superStickerEvent": EventKind.SUPER_STICKER,
    "newSponsorEvent": EventKind.MEMBERSHIP,
    "memberMilestoneChatEvent": EventKind.MEMBERSHIP,
    "membershipGiftingEvent": EventKind.MEMBERSHIP,
    "giftMembershipReceivedEvent": EventKind.MEMBERSHIP,
}


def error_reasons(response: httpx.Response) -> set[str]:
    """Collect ``error.errors[].reason`` values from a YouTube error response."""
    try:
        data = response.json()
    except ValueError:
        return set()
    error = data.get("error") if isinstance(data, dict) else None
    if not isinstance(error, dict):
        return set()
    return {e.get("reason", "") for e in error.get("errors") or [] if isinstance(e, dict)}


def parse_chat_item(item: dict[str, Any]) -> ChatEvent:
    """Convert a liveChatMessage resource into a ChatEvent."""
    snippet = item.get("snippet") or {}
    author = item.get("authorDetails") or {}
    text = snippet.get("displayMessage")
    if text is None:
        text = (snippet.get("textMessageDetails") or {}).get("messageText", "")
    return ChatEvent(
        id=str(item.get("id", "")),
        author=author.get("displayName", ""),
        text=text or "",
        kind=_EVENT_KINDS.get(snippet.get("type", ""), EventKind.OTHER),
    )


class YouTubeChatSource:
    """Chat source backed by the YouTube Data API.

    Manages a shared httpx client for connection reuse.
    """

    def __init__(
        self,
        api_key: str,
        *,
        max_results: int = 500,
        timeout: float = 10.0,
        http: httpx.AsyncClient | None = None,
    ):
        if not api_key:
            raise ValueError("YouTube api_key is required")

        self.api_key = api_key
        self.max_results = max_results
        self._http = http or httpx.AsyncClient(base_url=YOUTUBE_API_BASE, timeout=timeout)

    async def close(self) -> None:
        """Close the shared HTTP client. Call on shutdown."""
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _get(self, path: str, params: dict[str, Any]) -> httpx.Response:
        params = {**params, "key": self.api_key}
        try:
            return await self._http.get(path, params=params)
        except httpx.HTTPError as e:
            raise TransientFetchError(f"YouTube GET {path} failed: {e!r}") from e

    def _raise_for_error(self, path: str, response: httpx.Response) -> None:
        reasons = error_reasons(response)
        if reasons & _QUOTA_REASONS:
            raise QuotaExceededError(f"YouTube quota exceeded ({', '.join(sorted(reasons))})")
        raise TransientFetchError(
            f"YouTube GET {path} returned {response.status_code} ({', '.join(sorted(reasons)) or 'no reason'})"
        )

    # ------------------------------------------------------------------
    # ChatSource
    # ------------------------------------------------------------------

    async def resolve_session(self, stream_id: str) -> str | None:
        """Return the active live chat id for a video, or None if it has none."""
        response = await self._get(
            "/videos", {"part": "liveStreamingDetails", "id": stream_id}
        )
        if response.status_code != 200:
            self._raise_for_error("/videos", response)

        items = response.json().get("items") or []
        if not items:
            # Unknown video, or a video without a live chat
            logger.warning(f"No matching livestream chat was found for video {stream_id}")
            return None

        details = items[0].get("liveStreamingDetails") or {}
        return details.get("activeLiveChatId") or None

    async def fetch_page(self, session_id: str, cursor: str | None) -> ChatPage:
        """Fetch the next page of live chat messages after *cursor*."""
        params: dict[str, Any] = {
            "liveChatId": session_id,
            "part": "id,snippet,authorDetails",
            "maxResults": self.max_results,
        }
        if cursor:
            params["pageToken"] = cursor

        response = await self._get("/liveChat/messages", params)
        if response.status_code != 200:
            if error_reasons(response) & _CHAT_GONE_REASONS:
                return ChatPage(ended=True)
            self._raise_for_error("/liveChat/messages", response)

        data = response.json()
        items = data.get("items") or []
        if data.get("offlineAt") or any(
            (item.get("snippet") or {}).get("type") == _CHAT_ENDED_TYPE for item in items
        ):
            return ChatPage(ended=True)

        return ChatPage(
            events=[parse_chat_item(item) for item in items],
            next_cursor=data.get("nextPageToken"),
            suggested_interval_ms=int(data.get("pollingIntervalMillis") or 0),
        )
