"""Stream lifecycle controller for tracked livestreams."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from . import messages
from .batcher import batch
from .config import RelayConfig
from .errors import DeliveryError, InvalidFormatError, NoLiveChatError, QuotaExceededError
from .interfaces import ChatSource, Destination
from .ledger import DedupLedger
from .models import ChatEvent, FetchResult, FetchStatus, Subscriber, TrackedStream
from .scheduler import PollScheduler
from .table import SubscriptionTable

logger = logging.getLogger("tlbuddy.relay.controller")


def normalize_prefixes(tokens: Iterable[str]) -> tuple[str, ...]:
    """Strip tokens, drop empty ones and duplicates, keep first-seen order."""
    seen: dict[str, None] = {}
    for token in tokens:
        token = token.strip()
        if token:
            seen.setdefault(token, None)
    return tuple(seen)


class StreamLifecycleController:
    """Owns the subscription table and drives every tracked stream.

    The controller registers :meth:`poll` as the scheduler's fetch callback,
    so every drained stream id comes back here to be fetched and interpreted.
    """

    def __init__(
        self,
        chat_source: ChatSource,
        scheduler: PollScheduler,
        table: SubscriptionTable | None = None,
        config: RelayConfig | None = None,
    ) -> None:
        self.chat_source = chat_source
        self.scheduler = scheduler
        self.table = table if table is not None else SubscriptionTable()
        self.config = config or RelayConfig()
        self.scheduler.fetch = self.poll

    # ------------------------------------------------------------------
    # Subscription management
    # ------------------------------------------------------------------

    async def subscribe(self, stream_id: str, destination_id: str, destination: Destination) -> str:
        """Start relaying *stream_id* to *destination*.

        Returns the live chat session id. Raises ``NoLiveChatError`` (after
        telling the destination) when the video has no active live chat.
        """
        stream = self.table.get(stream_id)
        if stream is None:
            session_id = await self._resolve_session(stream_id)
            if not session_id:
                logger.info(f"No live chat found for video {stream_id}")
                await self._notify(destination, messages.no_live_chat(stream_id))
                raise NoLiveChatError(stream_id)

            # Another subscribe for the same video may have finished while we waited.
            stream = self.table.get(stream_id)
            if stream is None:
                stream = TrackedStream(
                    stream_id=stream_id,
                    chat_session_id=session_id,
                    poll_interval_ms=self.config.poll_interval_floor_ms,
                )
                self.table.add(stream)
                self.scheduler.enqueue(stream_id)
                logger.info(f"Tracking livestream {stream_id} (chat {session_id})")

        if stream.find_subscriber(destination_id) is None:
            stream.subscribers.append(
                Subscriber(destination_id=destination_id, destination=destination, ledger=DedupLedger())
            )
            logger.info(f"Listening for translations for video {stream_id} in {destination_id}")

        await self._notify(
            destination,
            messages.now_listening(stream_id, self.config.command_prefix, self.config.default_prefixes),
        )
        return stream.chat_session_id

    async def unsubscribe(self, destination_id: str, destination: Destination | None = None) -> list[str]:
        """Stop relaying every stream to *destination_id*.

        Returns the ids of the streams the destination was removed from.
        Streams left without subscribers stop being polled.
        """
        subscriptions = self.table.find_subscriptions(destination_id)
        if destination is None and subscriptions:
            destination = subscriptions[0][1].destination

        for stream_id in self.table.remove_destination(destination_id):
            self.scheduler.discard(stream_id)
            logger.info(f"Livestream {stream_id} has no subscribers left, stopped polling")

        logger.info(f"No longer listening for translations for {destination_id}")
        if destination is not None:
            await self._notify(destination, messages.stopped_listening())
        return [stream.stream_id for stream, _ in subscriptions]

    async def set_prefixes(
        self,
        destination_id: str,
        tokens: Iterable[str],
        destination: Destination | None = None,
    ) -> tuple[str, ...]:
        """Replace the prefixes of every subscription held by *destination_id*.

        Raises ``InvalidFormatError`` (after sending a usage hint) when no
        usable token is given; existing prefixes are left untouched then.
        """
        subscriptions = self.table.find_subscriptions(destination_id)
        if destination is None and subscriptions:
            destination = subscriptions[0][1].destination

        prefixes = normalize_prefixes(tokens)
        if not prefixes:
            logger.warning(f"Couldn't add translation prefix for {destination_id}")
            if destination is not None:
                await self._notify(destination, messages.prefix_usage(self.config.command_prefix))
            raise InvalidFormatError("At least one prefix token is required")

        for _, sub in subscriptions:
            sub.prefixes = prefixes

        text = messages.prefixes_set(prefixes)
        logger.info(f"{text} in {destination_id}")
        if destination is not None:
            await self._notify(destination, text)
        return prefixes

    # ------------------------------------------------------------------
    # Front-end entry points
    # ------------------------------------------------------------------

    async def on_watch(self, stream_id: str, destination_id: str, destination: Destination) -> str:
        try:
            await self.subscribe(stream_id, destination_id, destination)
        except NoLiveChatError:
            return messages.no_live_chat(stream_id)
        return messages.now_listening(
            stream_id, self.config.command_prefix, self.config.default_prefixes
        )

    async def on_stop(self, destination_id: str, destination: Destination | None = None) -> str:
        await self.unsubscribe(destination_id, destination)
        return messages.stopped_listening()

    async def on_set_prefixes(
        self,
        destination_id: str,
        tokens: Iterable[str],
        destination: Destination | None = None,
    ) -> str:
        try:
            prefixes = await self.set_prefixes(destination_id, tokens, destination)
        except InvalidFormatError:
            return messages.prefix_usage(self.config.command_prefix)
        return messages.prefixes_set(prefixes)

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    async def poll(self, stream_id: str) -> None:
        """Fetch the next chat page for *stream_id* and act on the outcome."""
        stream = self.table.get(stream_id)
        if stream is None:
            return

        try:
            page = await asyncio.wait_for(
                self.chat_source.fetch_page(stream.chat_session_id, stream.page_cursor),
                timeout=self.config.fetch_timeout_seconds,
            )
        except asyncio.CancelledError:
            raise
        except QuotaExceededError as e:
            result = FetchResult.quota_exceeded(e)
        except Exception as e:  # timeouts included
            result = FetchResult.transient(e)
        else:
            if page.ended:
                result = FetchResult.stream_ended()
            else:
                result = FetchResult.success(page.events, page.next_cursor, page.suggested_interval_ms)

        # The stream may have been dropped, or dropped and re-created, mid-fetch.
        if self.table.get(stream_id) is not stream:
            logger.debug(f"Discarding fetch result for untracked livestream {stream_id}")
            return
        await self._handle_result(stream, result)

    async def on_fetch_result(self, stream_id: str, result: FetchResult) -> None:
        stream = self.table.get(stream_id)
        if stream is None:
            logger.debug(f"Discarding fetch result for untracked livestream {stream_id}")
            return
        await self._handle_result(stream, result)

    async def _handle_result(self, stream: TrackedStream, result: FetchResult) -> None:
        stream_id = stream.stream_id

        if result.status is FetchStatus.SUCCESS:
            if result.next_cursor:
                stream.page_cursor = result.next_cursor
            # Never poll faster than the floor, to stay inside the API quota
            stream.poll_interval_ms = max(
                result.suggested_interval_ms, self.config.poll_interval_floor_ms
            )
            await self._relay(stream, result.events)
            if self.table.get(stream_id) is stream:
                self.scheduler.schedule(stream_id, stream.poll_interval_ms)

        elif result.status is FetchStatus.STREAM_ENDED:
            logger.info(f"Livestream {stream_id} has ended, stopping listening")
            await self._destroy(stream, messages.stream_ended(stream_id))

        elif result.status is FetchStatus.QUOTA_EXCEEDED:
            logger.error(f"Stopped listening for livestream {stream_id} due to YouTube API quota: {result.error}")
            await self._destroy(stream, messages.upstream_error(stream_id))

        else:
            logger.warning(
                f"Fetching chat for {stream_id} failed, retrying in {stream.poll_interval_ms}ms: {result.error!r}"
            )
            self.scheduler.schedule(stream_id, stream.poll_interval_ms)

    async def _destroy(self, stream: TrackedStream, notice: str) -> None:
        self.table.remove(stream.stream_id)
        self.scheduler.discard(stream.stream_id)
        for sub in list(stream.subscribers):
            await self._notify(sub.destination, notice)

    async def _relay(self, stream: TrackedStream, events: Iterable[ChatEvent]) -> None:
        events = tuple(events)
        if not events:
            return

        for sub in list(stream.subscribers):
            prefixes = sub.effective_prefixes(self.config.default_prefixes)
            for b in batch(events, prefixes, self.config.max_batch_size):
                if sub not in stream.subscribers:
                    break  # unsubscribed while we were delivering
                if sub.ledger.already_delivered(b):
                    logger.debug(f"Skipping already delivered batch for {sub.destination_id}")
                    continue
                message_id = await self._notify(sub.destination, b.text)
                if message_id is not None:
                    sub.ledger.record(message_id, b)

    # ------------------------------------------------------------------
    # Collaborator calls
    # ------------------------------------------------------------------

    async def _resolve_session(self, stream_id: str) -> str | None:
        try:
            return await asyncio.wait_for(
                self.chat_source.resolve_session(stream_id),
                timeout=self.config.fetch_timeout_seconds,
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error resolving live chat for {stream_id}: {e!r}")
            return None

    async def _notify(self, destination: Destination, text: str) -> str | None:
        """Deliver *text*; failures are logged and dropped, returning None."""
        try:
            return await asyncio.wait_for(
                destination.deliver(text), timeout=self.config.delivery_timeout_seconds
            )
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError:
            logger.error(f"Delivery timed out after {self.config.delivery_timeout_seconds}s")
        except DeliveryError as e:
            logger.error(f"Delivery failed: {e}")
        except Exception as e:
            logger.exception(f"Unexpected delivery error: {e}")
        return None
