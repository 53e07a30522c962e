from __future__ import annotations

import pytest

from lru_memory_cache.errors import StaleHandleError
from lru_memory_cache.recency import RecencyList


def _keys(entries: RecencyList) -> list[str]:
    return [entry.key for entry in entries]


def test_push_front_orders_newest_first() -> None:
    entries = RecencyList()
    entries.push_front("a", b"1", 2)
    entries.push_front("b", b"2", 2)
    entries.push_front("c", b"3", 2)

    assert _keys(entries) == ["c", "b", "a"]
    assert len(entries) == 3
    assert entries.entry(entries.tail()).key == "a"  # type: ignore[arg-type]
    assert entries.entry(entries.head()).key == "c"  # type: ignore[arg-type]


def test_handles_survive_unrelated_mutations() -> None:
    entries = RecencyList()
    first = entries.push_front("a", b"1", 2)
    middle = entries.push_front("b", b"2", 2)
    entries.push_front("c", b"3", 2)

    entries.remove(middle)
    entries.push_front("d", b"4", 2)
    entries.move_to_front(first)

    assert entries.entry(first).key == "a"
    assert _keys(entries) == ["a", "d", "c"]


def test_removed_handle_is_stale_even_after_slot_reuse() -> None:
    entries = RecencyList()
    old = entries.push_front("a", b"1", 2)
    entries.remove(old)
    new = entries.push_front("b", b"2", 2)

    assert new.slot == old.slot
    assert entries.is_valid(old) is False
    with pytest.raises(StaleHandleError):
        entries.entry(old)
    with pytest.raises(StaleHandleError):
        entries.move_to_front(old)
    assert entries.entry(new).key == "b"


def test_replace_to_front_swaps_value() -> None:
    entries = RecencyList()
    handle = entries.push_front("a", b"1", 2)
    entries.push_front("b", b"2", 2)

    old_size = entries.replace_to_front(handle, b"longer", 7)

    assert old_size == 2
    assert _keys(entries) == ["a", "b"]
    assert entries.entry(handle).value == b"longer"
    assert entries.entry(handle).size == 7


def test_pop_back_and_previous() -> None:
    entries = RecencyList()
    entries.push_front("a", b"1", 2)
    entries.push_front("b", b"2", 2)

    tail = entries.tail()
    assert tail is not None
    before_tail = entries.previous(tail)
    assert before_tail is not None
    assert entries.entry(before_tail).key == "b"
    assert entries.previous(before_tail) is None

    popped = entries.pop_back()
    assert popped is not None
    assert popped.key == "a"
    assert _keys(entries) == ["b"]
    assert entries.pop_back() is not None
    assert entries.pop_back() is None
    assert entries.head() is None
    assert entries.tail() is None


def test_clear_invalidates_every_handle() -> None:
    entries = RecencyList()
    handles = [entries.push_front(key, b"v", 2) for key in "abc"]

    entries.clear()

    assert len(entries) == 0
    assert list(entries) == []
    assert not any(entries.is_valid(handle) for handle in handles)
    entries.push_front("z", b"v", 2)
    assert _keys(entries) == ["z"]
