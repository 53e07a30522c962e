from __future__ import annotations

from dataclasses import dataclass

from lru_memory_cache.errors import ConfigError


@dataclass(frozen=True, slots=True)
class CacheBudget:
    max_entries: int | None = None
    max_bytes: int | None = None

    def __post_init__(self) -> None:
        if self.max_entries is not None and self.max_entries < 0:
            raise ConfigError(f"max_entries must be >= 0, got {self.max_entries}")
        if self.max_bytes is not None and self.max_bytes < 0:
            raise ConfigError(f"max_bytes must be >= 0, got {self.max_bytes}")

    @property
    def bounded(self) -> bool:
        return self.max_entries is not None or self.max_bytes is not None

    def admits(self, entries: int, bytes_used: int) -> bool:
        if self.max_entries is not None and entries > self.max_entries:
            return False
        if self.max_bytes is not None and bytes_used > self.max_bytes:
            return False
        return True

    def can_ever_hold(self, size: int) -> bool:
        return self.admits(1, size)
