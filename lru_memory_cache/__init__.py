from __future__ import annotations

from lru_memory_cache.budget import CacheBudget
from lru_memory_cache.cache import LruCache, ValueRef
from lru_memory_cache.config import CacheConfig, build_cache, load_config, save_config
from lru_memory_cache.errors import (
    CacheError,
    CacheInvariantError,
    ConfigError,
    EmptyCacheError,
    StaleHandleError,
    StaleReferenceError,
)
from lru_memory_cache.models import CacheLookup, CacheStats, EvictionPolicy

__all__ = [
    "LruCache",
    "ValueRef",
    "CacheLookup",
    "CacheStats",
    "CacheBudget",
    "EvictionPolicy",
    "CacheConfig",
    "build_cache",
    "load_config",
    "save_config",
    "CacheError",
    "CacheInvariantError",
    "ConfigError",
    "EmptyCacheError",
    "StaleHandleError",
    "StaleReferenceError",
]
