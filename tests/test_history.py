from __future__ import annotations

import pytest

from session.history import ConversationHistory, HistoryEntry


def _fill(history: ConversationHistory, sender: str, count: int) -> None:
    for i in range(count):
        history.append(sender, HistoryEntry(role="user", content=f"m{i}"))


def test_append_creates_sequence_in_order() -> None:
    history = ConversationHistory(max_history=20, keep_recent=12)
    history.add("u1", "user", "hi")
    history.add("u1", "assistant", "hello")

    assert history.as_messages("u1") == [
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
    ]


def test_read_after_exceeding_bound_keeps_recent_entries() -> None:
    history = ConversationHistory(max_history=20, keep_recent=12)
    _fill(history, "u1", 21)

    entries = history.get("u1")
    assert len(entries) == 12
    assert [e.content for e in entries] == [f"m{i}" for i in range(9, 21)]


def test_buffer_may_exceed_bound_by_one_before_compaction() -> None:
    history = ConversationHistory(max_history=20, keep_recent=12)
    _fill(history, "u1", 20)
    history.append("u1", HistoryEntry(role="user", content="m20"))
    assert len(history._store["u1"]) == 21

    history.append("u1", HistoryEntry(role="user", content="m21"))
    contents = [e.content for e in history._store["u1"]]
    assert contents == [f"m{i}" for i in range(9, 22)]


def test_get_returns_live_reference() -> None:
    history = ConversationHistory()
    live = history.get("u1")
    history.add("u1", "user", "x")

    assert live == [HistoryEntry(role="user", content="x")]


def test_senders_are_independent() -> None:
    history = ConversationHistory(max_history=4, keep_recent=2)
    _fill(history, "a", 10)
    history.add("b", "user", "only")

    assert [e.content for e in history.get("b")] == ["only"]
    assert len(history.get("a")) == 4


def test_invalid_bounds_rejected() -> None:
    with pytest.raises(ValueError):
        ConversationHistory(max_history=5, keep_recent=6)
