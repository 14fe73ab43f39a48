"""User-facing notification texts."""

from __future__ import annotations

from collections.abc import Sequence

WATCH_COMMAND = "tlwatch"
STOP_COMMAND = "tlstop"
PREFIX_COMMAND = "tlprefix"


def watch_usage(command_prefix: str) -> str:
    return (
        "Couldn't find that video ID!\n"
        f"Format: `{command_prefix}{WATCH_COMMAND} https://www.youtube.com/watch?v=###########`"
    )


def now_listening(stream_id: str, command_prefix: str, default_prefixes: Sequence[str]) -> str:
    return (
        f"Listening for translations for video `{stream_id}`.\n"
        f"Stop with `{command_prefix}{STOP_COMMAND}` and set prefixes to listen for with "
        f"`{command_prefix}{PREFIX_COMMAND}` (Defaults to: `{' '.join(default_prefixes)}`)"
    )


def no_live_chat(stream_id: str) -> str:
    return (
        f"Couldn't find a live chat for video `{stream_id}`, is it a livestream?\n"
        "Or an internal error may have occurred."
    )


def stopped_listening() -> str:
    return "No longer listening for translations."


def prefixes_set(prefixes: Sequence[str]) -> str:
    return f"Now also listening for translation prefixes: `{' '.join(prefixes)}`"


def prefix_usage(command_prefix: str) -> str:
    return (
        "Couldn't add translation prefix!\n"
        f"Format (space-separated): `{command_prefix}{PREFIX_COMMAND} [ES] ES:`"
    )


def stream_ended(stream_id: str) -> str:
    return f"Livestream has ended for `{stream_id}`, stopping listening."


def upstream_error(stream_id: str) -> str:
    return f"Stopped listening for livestream: `{stream_id}`, an internal error occurred."
