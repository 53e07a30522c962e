from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
import os
from pathlib import Path
from typing import Final

from lru_memory_cache.budget import CacheBudget
from lru_memory_cache.cache import LruCache
from lru_memory_cache.errors import ConfigError
from lru_memory_cache.models import CacheLimit, EvictionPolicy

CONFIG_DIR_NAME: Final[str] = "lru_memory_cache"
CONFIG_FILE_NAME: Final[str] = "config.json"
CONFIG_PATH_ENV: Final[str] = "LRU_CACHE_CONFIG"
MAX_ENTRIES_ENV: Final[str] = "LRU_CACHE_MAX_ENTRIES"
MAX_BYTES_ENV: Final[str] = "LRU_CACHE_MAX_BYTES"
POLICY_ENV: Final[str] = "LRU_CACHE_POLICY"
EVICTION_FRACTION_ENV: Final[str] = "LRU_CACHE_EVICTION_FRACTION"

type JsonValue = (
    str | int | float | bool | None | list["JsonValue"] | dict[str, "JsonValue"]
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CacheConfig:
    budget: CacheBudget = field(default_factory=CacheBudget)
    policy: EvictionPolicy = EvictionPolicy.FRACTIONAL
    eviction_fraction: float = CacheLimit.EVICTION_FRACTION.value

    def __post_init__(self) -> None:
        if not 0.0 < self.eviction_fraction <= 1.0:
            raise ConfigError(
                f"eviction_fraction must be in (0, 1], got {self.eviction_fraction}"
            )


def config_path() -> Path:
    explicit = os.environ.get(CONFIG_PATH_ENV)
    if explicit:
        return Path(explicit)
    xdg_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_home:
        return Path(xdg_home) / CONFIG_DIR_NAME / CONFIG_FILE_NAME
    return Path.home() / ".config" / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def load_config() -> CacheConfig:
    path = config_path()
    if not path.exists():
        return _apply_env_overrides(CacheConfig())
    try:
        raw_data = path.read_text(encoding="utf-8")
        payload: JsonValue = json.loads(raw_data)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable cache config %s: %s", path, exc)
        return _apply_env_overrides(CacheConfig())
    return _apply_env_overrides(_parse_config(payload))


def save_config(config: CacheConfig) -> None:
    path = config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = _config_to_dict(config)
    data = json.dumps(payload, ensure_ascii=True, indent=2)
    path.write_text(data, encoding="utf-8")


def build_cache(config: CacheConfig | None = None) -> LruCache:
    resolved = config if config is not None else load_config()
    return LruCache(
        budget=resolved.budget,
        policy=resolved.policy,
        eviction_fraction=resolved.eviction_fraction,
    )


def _parse_config(payload: JsonValue) -> CacheConfig:
    payload_dict = _get_dict(payload)
    if payload_dict is None:
        return CacheConfig()
    budget_data = _get_dict(payload_dict.get("budget"))
    budget = CacheBudget(
        max_entries=_get_limit(budget_data.get("max_entries")) if budget_data else None,
        max_bytes=_get_limit(budget_data.get("max_bytes")) if budget_data else None,
    )
    return CacheConfig(
        budget=budget,
        policy=_get_policy(payload_dict.get("policy"), EvictionPolicy.FRACTIONAL),
        eviction_fraction=_get_fraction(
            payload_dict.get("eviction_fraction"),
            CacheLimit.EVICTION_FRACTION.value,
        ),
    )


def _apply_env_overrides(config: CacheConfig) -> CacheConfig:
    budget = config.budget
    max_entries = _env_limit(MAX_ENTRIES_ENV)
    max_bytes = _env_limit(MAX_BYTES_ENV)
    if max_entries is not None or max_bytes is not None:
        budget = CacheBudget(
            max_entries=max_entries if max_entries is not None else budget.max_entries,
            max_bytes=max_bytes if max_bytes is not None else budget.max_bytes,
        )
    policy = _get_policy(os.environ.get(POLICY_ENV), config.policy)
    fraction_raw = os.environ.get(EVICTION_FRACTION_ENV, "").strip()
    fraction = config.eviction_fraction
    if fraction_raw:
        try:
            fraction = _get_fraction(float(fraction_raw), fraction)
        except ValueError:
            logger.warning("Ignoring %s=%r", EVICTION_FRACTION_ENV, fraction_raw)
    return CacheConfig(budget=budget, policy=policy, eviction_fraction=fraction)


def _config_to_dict(config: CacheConfig) -> dict[str, JsonValue]:
    return {
        "budget": {
            "max_entries": config.budget.max_entries,
            "max_bytes": config.budget.max_bytes,
        },
        "policy": config.policy.value,
        "eviction_fraction": config.eviction_fraction,
    }


def _env_limit(name: str) -> int | None:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        return _get_limit(int(raw))
    except ValueError:
        logger.warning("Ignoring %s=%r", name, raw)
        return None


def _get_dict(value: JsonValue | None) -> dict[str, JsonValue] | None:
    if isinstance(value, dict):
        return value
    return None


def _get_limit(value: JsonValue | None) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if value < 0:
        return None
    return value


def _get_policy(value: JsonValue | None, default: EvictionPolicy) -> EvictionPolicy:
    if not isinstance(value, str):
        return default
    try:
        return EvictionPolicy(value.strip().lower())
    except ValueError:
        return default


def _get_fraction(value: JsonValue | None, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not 0.0 < value <= 1.0:
        return default
    return float(value)
