from __future__ import annotations

import pytest

from lru_memory_cache import LruCache, StaleReferenceError


def test_get_ref_returns_none_on_miss() -> None:
    lru = LruCache()
    lru.put("firstname", "Daan")

    assert lru.get_ref("address") is None


def test_get_ref_reads_value_and_promotes() -> None:
    lru = LruCache()
    lru.put("firstname", "Daan")
    lru.put("lastname", "Kolthof")

    ref = lru.get_ref("firstname")

    assert ref is not None
    assert ref.is_valid is True
    assert ref.value == "Daan"
    assert lru.keys() == ["firstname", "lastname"]


def test_ref_expires_on_next_mutating_call() -> None:
    lru = LruCache()
    lru.put("firstname", "Daan")
    lru.put("lastname", "Kolthof")
    ref = lru.get_ref("lastname")
    assert ref is not None

    lru.get("firstname")

    assert ref.is_valid is False
    with pytest.raises(StaleReferenceError):
        _ = ref.value


def test_ref_survives_read_only_queries() -> None:
    lru = LruCache()
    lru.put("firstname", "Daan")
    ref = lru.get_ref("firstname")
    assert ref is not None

    lru.peek("firstname")
    lru.items()
    lru.size()
    lru.stats()

    assert ref.value == "Daan"


@pytest.mark.parametrize(
    "mutate",
    [
        lambda lru: lru.put("other", "x"),
        lambda lru: lru.evict_one(),
        lambda lru: lru.evict_pass(),
        lambda lru: lru.clear(),
        lambda lru: lru.delete("firstname"),
    ],
)
def test_ref_expires_on_every_mutation(mutate) -> None:
    lru = LruCache()
    lru.put("firstname", "Daan")
    ref = lru.get_ref("firstname")
    assert ref is not None

    mutate(lru)

    assert ref.is_valid is False
