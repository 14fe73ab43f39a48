"""Rate-limited poll scheduler.

All tracked streams share one FIFO queue that is drained at a fixed cadence,
so the number of chat requests per second stays bounded no matter how many
streams are watched. Each stream is put back on the queue only after its own
poll interval has elapsed since its last fetch completed.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable

logger = logging.getLogger("tlbuddy.relay.scheduler")

FetchCallback = Callable[[str], Awaitable[None]]


class PollScheduler:
    def __init__(self, drain_interval_ms: int, fetch: FetchCallback | None = None):
        if drain_interval_ms <= 0:
            raise ValueError("drain_interval_ms must be positive")
        self.drain_interval_ms = drain_interval_ms
        self.fetch = fetch

        self._queue: deque[str] = deque()
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._inflight: set[asyncio.Task] = set()
        self._loop_task: asyncio.Task | None = None

    @property
    def pending(self) -> tuple[str, ...]:
        """Stream ids waiting in the queue, in drain order."""
        return tuple(self._queue)

    @property
    def waiting(self) -> tuple[str, ...]:
        """Stream ids whose re-enqueue delay has not elapsed yet."""
        return tuple(self._timers)

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def enqueue(self, stream_id: str) -> bool:
        """Queue *stream_id* for a fetch. Returns False if it is already queued."""
        if stream_id in self._queue:
            return False
        self._queue.append(stream_id)
        return True

    def schedule(self, stream_id: str, delay_ms: int) -> None:
        """Queue *stream_id* once *delay_ms* has passed."""
        self._cancel_timer(stream_id)
        if delay_ms <= 0:
            self.enqueue(stream_id)
            return

        loop = asyncio.get_running_loop()
        self._timers[stream_id] = loop.call_later(delay_ms / 1000, self._on_timer, stream_id)

    def discard(self, stream_id: str) -> None:
        """Forget any queued or delayed fetch for *stream_id*."""
        self._cancel_timer(stream_id)
        try:
            self._queue.remove(stream_id)
        except ValueError:
            pass

    def drain_once(self) -> asyncio.Task | None:
        """Start the fetch for the stream at the head of the queue, if any."""
        if not self._queue:
            return None
        if self.fetch is None:
            raise RuntimeError("PollScheduler has no fetch callback")

        stream_id = self._queue.popleft()
        task = asyncio.create_task(self._run_fetch(self.fetch, stream_id), name=f"poll:{stream_id}")
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    def start(self) -> None:
        if self.running:
            return
        self._loop_task = asyncio.create_task(self._drain_loop(), name="poll-scheduler")
        logger.info(f"Poll scheduler started (drain every {self.drain_interval_ms}ms)")

    async def stop(self) -> None:
        """Stop draining and cancel delayed and in-flight fetches."""
        tasks = list(self._inflight)
        if self._loop_task is not None:
            tasks.append(self._loop_task)
            self._loop_task = None

        for stream_id in list(self._timers):
            self._cancel_timer(stream_id)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Poll scheduler stopped")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _on_timer(self, stream_id: str) -> None:
        self._timers.pop(stream_id, None)
        self.enqueue(stream_id)

    def _cancel_timer(self, stream_id: str) -> None:
        handle = self._timers.pop(stream_id, None)
        if handle is not None:
            handle.cancel()

    async def _run_fetch(self, fetch: FetchCallback, stream_id: str) -> None:
        try:
            await fetch(stream_id)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Unhandled error while polling {stream_id}: {e}")

    async def _drain_loop(self) -> None:
        interval = self.drain_interval_ms / 1000
        while True:
            self.drain_once()
            await asyncio.sleep(interval)
