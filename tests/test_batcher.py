import pytest
from conftest import text_event

from tlbuddy.relay import ChatEvent, EventKind, batch, render_line


def test_mixed_page_yields_single_batch() -> None:
    events = [
        ChatEvent(id="1", author="Ana", text="[EN] hello", kind=EventKind.TEXT),
        ChatEvent(id="2", author="Rich", text="$5 super chat", kind=EventKind.SUPER_CHAT),
        ChatEvent(id="3", author="Bo", text="EN: world", kind=EventKind.TEXT),
    ]

    batches = batch(events, ["[EN", "EN:"], max_batch_size=5)

    assert len(batches) == 1
    assert batches[0].event_ids == frozenset({"1", "3"})
    assert batches[0].text == "> **Ana** - [EN] hello\n> **Bo** - EN: world"


def test_render_line() -> None:
    assert render_line(text_event("1", "EN: hi", author="Kei")) == "> **Kei** - EN: hi"


def test_no_matches_yields_no_batches() -> None:
    assert batch([text_event("1", "nothing here")], ["[EN]"], max_batch_size=5) == []
    assert batch([], ["[EN]"], max_batch_size=5) == []


def test_batches_are_capped_and_cover_every_match_once() -> None:
    events = [text_event(str(i), f"[EN] line {i}") for i in range(12)]
    events.insert(4, text_event("skip", "no prefix"))

    batches = batch(events, ["[EN]"], max_batch_size=5)

    assert [len(b) for b in batches] == [5, 5, 2]
    covered = [i for b in batches for i in b.event_ids]
    assert sorted(covered, key=int) == [str(i) for i in range(12)]
    assert len(covered) == len(set(covered))


def test_batches_preserve_input_order() -> None:
    events = [text_event(str(i), f"EN: {i}") for i in range(4)]

    batches = batch(events, ["EN:"], max_batch_size=3)

    assert batches[0].text.splitlines() == [
        "> **Viewer** - EN: 0",
        "> **Viewer** - EN: 1",
        "> **Viewer** - EN: 2",
    ]
    assert batches[1].text == "> **Viewer** - EN: 3"


def test_exact_multiple_has_no_trailing_batch() -> None:
    events = [text_event(str(i), "[EN] x") for i in range(4)]

    assert [len(b) for b in batch(events, ["[EN]"], max_batch_size=2)] == [2, 2]


def test_invalid_batch_size() -> None:
    with pytest.raises(ValueError):
        batch([text_event("1", "[EN] x")], ["[EN]"], max_batch_size=0)
