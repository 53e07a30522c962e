from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math

from lru_memory_cache.budget import CacheBudget
from lru_memory_cache.errors import (
    CacheInvariantError,
    ConfigError,
    EmptyCacheError,
    StaleReferenceError,
)
from lru_memory_cache.models import (
    Blob,
    CacheLimit,
    CacheLookup,
    CacheStats,
    EvictionPolicy,
    Handle,
    entry_size,
)
from lru_memory_cache.recency import RecencyList

logger = logging.getLogger(__name__)


def _default_index() -> dict[str, Handle]:
    return {}


@dataclass(slots=True)
class ValueRef:
    """Borrowed view of a cached value.

    Valid only until the next mutating call on the owning cache; reading it
    afterwards raises StaleReferenceError. Copy the value out to keep it.
    """

    _cache: LruCache
    _handle: Handle
    _epoch: int

    @property
    def is_valid(self) -> bool:
        return self._cache.epoch == self._epoch

    @property
    def value(self) -> Blob:
        if not self.is_valid:
            raise StaleReferenceError(
                "Value reference used after the cache was mutated"
            )
        return self._cache._entries.entry(self._handle).value


@dataclass(slots=True)
class LruCache:
    budget: CacheBudget = field(default_factory=CacheBudget)
    policy: EvictionPolicy = EvictionPolicy.FRACTIONAL
    eviction_fraction: float = CacheLimit.EVICTION_FRACTION.value
    _entries: RecencyList = field(default_factory=RecencyList)
    _index: dict[str, Handle] = field(default_factory=_default_index)
    _bytes_used: int = 0
    _epoch: int = 0
    _hits: int = 0
    _misses: int = 0
    _evictions: int = 0
    _dropped_writes: int = 0

    def __post_init__(self) -> None:
        if not 0.0 < self.eviction_fraction <= 1.0:
            raise ConfigError(
                f"eviction_fraction must be in (0, 1], got {self.eviction_fraction}"
            )

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    @property
    def epoch(self) -> int:
        return self._epoch

    def size(self) -> int:
        return len(self._index)

    def empty(self) -> bool:
        return not self._index

    def get(self, key: str) -> CacheLookup:
        handle = self._promote(key)
        if handle is None:
            return CacheLookup.miss()
        return CacheLookup.hit(self._entries.entry(handle).value)

    def get_ref(self, key: str) -> ValueRef | None:
        handle = self._promote(key)
        if handle is None:
            return None
        return ValueRef(_cache=self, _handle=handle, _epoch=self._epoch)

    def peek(self, key: str) -> CacheLookup:
        handle = self._index.get(key)
        if handle is None:
            return CacheLookup.miss()
        return CacheLookup.hit(self._entries.entry(handle).value)

    def put(self, key: str, value: Blob) -> None:
        if not isinstance(key, str):
            raise TypeError(f"Cache keys must be str, got {type(key).__name__}")
        if not isinstance(value, (bytes, str)):
            raise TypeError(
                f"Cache values must be bytes or str, got {type(value).__name__}"
            )
        self._epoch += 1
        size = entry_size(key, value)
        handle = self._index.get(key)
        if handle is None:
            if not self._make_room(key, None, 1, size, size):
                return
            self._index[key] = self._entries.push_front(key, value, size)
            self._bytes_used += size
            return

        old_size = self._entries.entry(handle).size
        if not self._make_room(key, handle, 0, size - old_size, size):
            return
        self._entries.replace_to_front(handle, value, size)
        self._bytes_used += size - old_size

    def delete(self, key: str) -> bool:
        handle = self._index.pop(key, None)
        if handle is None:
            return False
        self._epoch += 1
        entry = self._entries.remove(handle)
        self._bytes_used -= entry.size
        return True

    def evict_one(self) -> str:
        tail = self._entries.tail()
        if tail is None:
            raise EmptyCacheError("Cannot evict from an empty cache")
        self._epoch += 1
        return self._evict(tail)

    def evict_pass(self) -> list[str]:
        if self.empty():
            return []
        count = self.pass_size()
        evicted = [self.evict_one() for _ in range(count)]
        logger.debug(
            "Eviction pass removed %d entries, %d remain", len(evicted), len(self)
        )
        return evicted

    def pass_size(self) -> int:
        if self.empty():
            return 0
        # rounding keeps 30 * 0.1 from ceiling to 4
        share = math.ceil(round(len(self) * self.eviction_fraction, 6))
        return min(len(self), max(CacheLimit.MIN_EVICTIONS.value, share))

    def clear(self) -> None:
        self._epoch += 1
        self._entries.clear()
        self._index.clear()
        self._bytes_used = 0

    def items(self) -> list[tuple[str, Blob]]:
        return [(entry.key, entry.value) for entry in self._entries]

    def keys(self) -> list[str]:
        return [entry.key for entry in self._entries]

    def stats(self) -> CacheStats:
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            evictions=self._evictions,
            dropped_writes=self._dropped_writes,
            entries=len(self._index),
            bytes_used=self._bytes_used,
        )

    def validate(self) -> None:
        seen: set[str] = set()
        total_bytes = 0
        for handle in self._entries.handles():
            entry = self._entries.entry(handle)
            if entry.key in seen:
                raise CacheInvariantError(
                    f"Duplicate key in recency list: {entry.key!r}"
                )
            seen.add(entry.key)
            if self._index.get(entry.key) != handle:
                raise CacheInvariantError(
                    f"Entry {entry.key!r} has no matching index mapping"
                )
            total_bytes += entry.size
        if len(seen) != len(self._index) or len(self._entries) != len(seen):
            raise CacheInvariantError(
                f"Index holds {len(self._index)} keys, recency list holds {len(seen)}"
            )
        for key, handle in self._index.items():
            if not self._entries.is_valid(handle):
                raise CacheInvariantError(
                    f"Index entry {key!r} references a freed slot"
                )
            if self._entries.entry(handle).key != key:
                raise CacheInvariantError(f"Index entry {key!r} references another key")
        if total_bytes != self._bytes_used:
            raise CacheInvariantError(
                f"Accounted {self._bytes_used} bytes, entries hold {total_bytes}"
            )

    def _promote(self, key: str) -> Handle | None:
        self._epoch += 1
        handle = self._index.get(key)
        if handle is None:
            self._misses += 1
            return None
        self._entries.move_to_front(handle)
        self._hits += 1
        return handle

    def _evict(self, handle: Handle) -> str:
        entry = self._entries.remove(handle)
        del self._index[entry.key]
        self._bytes_used -= entry.size
        self._evictions += 1
        logger.debug("Evicted %r (%d bytes)", entry.key, entry.size)
        return entry.key

    def _fits(self, extra_entries: int, extra_bytes: int) -> bool:
        return self.budget.admits(
            len(self._index) + extra_entries, self._bytes_used + extra_bytes
        )

    def _make_room(
        self,
        key: str,
        keep: Handle | None,
        extra_entries: int,
        extra_bytes: int,
        size: int,
    ) -> bool:
        if self._fits(extra_entries, extra_bytes):
            return True
        if self.policy is EvictionPolicy.FRACTIONAL:
            self.evict_pass()
            self._drop(key, size)
            return False
        if not self.budget.can_ever_hold(size):
            self._drop(key, size)
            return False
        while not self._fits(extra_entries, extra_bytes):
            victim = self._entries.tail()
            if victim is not None and victim == keep:
                victim = self._entries.previous(victim)
            if victim is None:
                self._drop(key, size)
                return False
            self._evict(victim)
        return True

    def _drop(self, key: str, size: int) -> None:
        self._dropped_writes += 1
        logger.warning(
            "Dropped write for %r (%d bytes): cache budget exhausted", key, size
        )
