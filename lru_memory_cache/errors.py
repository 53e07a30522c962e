from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CacheError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True, slots=True)
class EmptyCacheError(CacheError):
    pass


@dataclass(frozen=True, slots=True)
class StaleHandleError(CacheError):
    pass


@dataclass(frozen=True, slots=True)
class StaleReferenceError(CacheError):
    pass


@dataclass(frozen=True, slots=True)
class CacheInvariantError(CacheError):
    pass


@dataclass(frozen=True, slots=True)
class ConfigError(CacheError):
    pass
