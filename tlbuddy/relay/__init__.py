"""Livestream chat relay engine."""

from .batcher import batch, render_line
from .config import DEFAULT_CHAT_PREFIXES, RelayConfig
from .controller import StreamLifecycleController, normalize_prefixes
from .errors import (
    DeliveryError,
    InvalidFormatError,
    NoLiveChatError,
    QuotaExceededError,
    RelayError,
    TransientFetchError,
)
from .interfaces import ChatSource, Destination
from .ledger import DedupLedger
from .matcher import matches
from .models import (
    Batch,
    ChatEvent,
    ChatPage,
    DeliveryRecord,
    EventKind,
    FetchResult,
    FetchStatus,
    Subscriber,
    TrackedStream,
)
from .scheduler import PollScheduler
from .table import SubscriptionTable

__all__ = [
    # Engine
    "PollScheduler",
    "StreamLifecycleController",
    "SubscriptionTable",
    "DedupLedger",
    # Pure helpers
    "batch",
    "matches",
    "normalize_prefixes",
    "render_line",
    # Config
    "DEFAULT_CHAT_PREFIXES",
    "RelayConfig",
    # Interfaces
    "ChatSource",
    "Destination",
    # Models
    "Batch",
    "ChatEvent",
    "ChatPage",
    "DeliveryRecord",
    "EventKind",
    "FetchResult",
    "FetchStatus",
    "Subscriber",
    "TrackedStream",
    # Errors
    "DeliveryError",
    "InvalidFormatError",
    "NoLiveChatError",
    "QuotaExceededError",
    "RelayError",
    "TransientFetchError",
]
