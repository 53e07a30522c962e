from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

type Blob = bytes | str


class CacheLimit(Enum):
    EVICTION_FRACTION = 0.1
    MIN_EVICTIONS = 1


class EvictionPolicy(str, Enum):
    FRACTIONAL = "fractional"  # reactive pass, triggering write is dropped
    LRU = "lru"  # evict until the write fits


@dataclass(frozen=True, slots=True)
class Handle:
    slot: int
    generation: int


@dataclass(frozen=True, slots=True)
class Entry:
    key: str
    value: Blob
    size: int


@dataclass(frozen=True, slots=True)
class CacheLookup:
    found: bool
    value: Blob | None

    @classmethod
    def hit(cls, value: Blob) -> CacheLookup:
        return cls(found=True, value=value)

    @classmethod
    def miss(cls) -> CacheLookup:
        return cls(found=False, value=None)


@dataclass(frozen=True, slots=True)
class CacheStats:
    hits: int
    misses: int
    evictions: int
    dropped_writes: int
    entries: int
    bytes_used: int


def blob_size(value: Blob) -> int:
    if isinstance(value, str):
        return len(value.encode("utf-8"))
    return len(value)


def entry_size(key: str, value: Blob) -> int:
    return blob_size(key) + blob_size(value)
