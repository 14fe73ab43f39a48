"""Relay error types"""


class RelayError(Exception):
    """Base class for errors raised by the relay engine and its collaborators."""


class NoLiveChatError(RelayError):
    """The requested video has no active live chat."""

    def __init__(self, stream_id: str):
        super().__init__(f"No live chat found for video {stream_id}")
        self.stream_id = stream_id


class InvalidFormatError(RelayError):
    """A command was given malformed arguments."""


class TransientFetchError(RelayError):
    """A chat fetch failed for a reason worth retrying on the next cycle."""


class QuotaExceededError(RelayError):
    """The upstream API reported that its request quota is exhausted."""


class DeliveryError(RelayError):
    """A notification could not be delivered to its destination."""
