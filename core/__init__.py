"""
Core Module Package.

Infrastructure shared by every other package.

Components:
- clock: injectable time source
- cache: TTL cache and memoize wrapper
- concurrency: timeouts and tolerant join
- config: AppConfig loaded from env / .env / YAML
- exceptions: base exception hierarchy
- constants: TTL and timeout defaults
"""

from core.cache import CacheEntry, TtlCache, hash_key, make_cache_key, memoize
from core.clock import ClockFactory, ClockProtocol, MockClock, SystemClock, to_iso8601
from core.concurrency import SettledResult, gather_settled, with_timeout
from core.config import AppConfig, CacheTTLs, get_config, set_config
from core.exceptions import (
    ConfigurationError,
    IncentiveSystemError,
    OperationTimeoutError,
    ValidationError,
)


__all__ = [
    "CacheEntry",
    "TtlCache",
    "hash_key",
    "make_cache_key",
    "memoize",
    "ClockFactory",
    "ClockProtocol",
    "MockClock",
    "SystemClock",
    "to_iso8601",
    "SettledResult",
    "gather_settled",
    "with_timeout",
    "AppConfig",
    "CacheTTLs",
    "get_config",
    "set_config",
    "ConfigurationError",
    "IncentiveSystemError",
    "OperationTimeoutError",
    "ValidationError",
]
