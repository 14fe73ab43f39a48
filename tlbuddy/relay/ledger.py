"""Per-subscriber record of delivered batches."""

from __future__ import annotations

from collections import Counter, deque

from .models import Batch, DeliveryRecord

# Overlapping pages only ever repeat recent events, so older history can go.
DEFAULT_LEDGER_SIZE = 500


class DedupLedger:
    """Delivery history for one subscriber.

    The upstream feed can return overlapping pages (for example after a cursor
    hiccup), so every batch is checked against what this subscriber has
    already been sent. Subscribers with different prefixes batch the same
    events differently, which is why the history is kept per subscriber.

    Only the last ``max_records`` deliveries are remembered.
    """

    def __init__(self, max_records: int = DEFAULT_LEDGER_SIZE) -> None:
        if max_records < 1:
            raise ValueError("max_records must be at least 1")
        self.max_records = max_records
        self._records: deque[DeliveryRecord] = deque()
        self._seen: Counter[str] = Counter()

    def already_delivered(self, batch: Batch) -> bool:
        return any(event_id in self._seen for event_id in batch.event_ids)

    def record(self, message_id: str, batch: Batch) -> DeliveryRecord:
        entry = DeliveryRecord(message_id=message_id, event_ids=batch.event_ids)
        self._records.append(entry)
        self._seen.update(batch.event_ids)

        while len(self._records) > self.max_records:
            self._forget(self._records.popleft())
        return entry

    def _forget(self, record: DeliveryRecord) -> None:
        for event_id in record.event_ids:
            self._seen[event_id] -= 1
            if self._seen[event_id] <= 0:
                del self._seen[event_id]

    @property
    def records(self) -> tuple[DeliveryRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)
