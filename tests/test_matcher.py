from conftest import text_event

from tlbuddy.relay import ChatEvent, EventKind, matches


def test_matches_prefix_anywhere_in_text() -> None:
    assert matches(text_event("1", "[EN] hello"), ["[EN]"])
    assert matches(text_event("2", "lol EN: world"), ["[EN]", "EN:"])


def test_matches_is_case_insensitive() -> None:
    assert matches(text_event("1", "[en] hello"), ["[EN]"])
    assert matches(text_event("2", "EN: hi"), ["en:"])


def test_no_prefix_present() -> None:
    assert not matches(text_event("1", "konnichiwa"), ["[EN]", "EN:"])


def test_non_text_events_never_match() -> None:
    super_chat = ChatEvent(id="1", author="Rich", text="[EN] $5 thanks", kind=EventKind.SUPER_CHAT)
    sticker = ChatEvent(id="2", author="Rich", text="[EN]", kind=EventKind.SUPER_STICKER)

    assert not matches(super_chat, ["[EN]"])
    assert not matches(sticker, ["[EN]"])


def test_blank_prefix_is_ignored() -> None:
    assert not matches(text_event("1", "anything"), [""])
