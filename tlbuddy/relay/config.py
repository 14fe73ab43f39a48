"""Relay engine tuning knobs."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CHAT_PREFIXES: tuple[str, ...] = ("[EN]", "EN:")

# Lowest live chat poll interval allowed; YouTube may ask for a slower one.
# 30 seconds keeps roughly 80 continuously watched streams a day inside the
# default YouTube Data API quota.
DEFAULT_POLL_INTERVAL_FLOOR_MS = 30_000

# Minimum gap between any two chat page requests across all streams.
DEFAULT_DRAIN_INTERVAL_MS = 2_000

DEFAULT_MAX_BATCH_SIZE = 5


@dataclass(frozen=True)
class RelayConfig:
    default_prefixes: tuple[str, ...] = DEFAULT_CHAT_PREFIXES
    poll_interval_floor_ms: int = DEFAULT_POLL_INTERVAL_FLOOR_MS
    drain_interval_ms: int = DEFAULT_DRAIN_INTERVAL_MS
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE
    fetch_timeout_seconds: float = 15.0
    delivery_timeout_seconds: float = 10.0
    command_prefix: str = "!"
