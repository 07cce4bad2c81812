"""
Core Module - TTL Cache.

============================================================
RESPONSIBILITY
============================================================
In-memory key/value store with per-entry expiry, plus the
`memoize` wrapper used by every remote-calling component.

- Lazy eviction on read
- Expired entries swept from set() at most once per check_period
- Hit/miss statistics
- Glob-style invalidation

============================================================
SEMANTICS
============================================================
memoize(source_fn, key_fn, ttl_seconds, cache):
- live entry under key_fn(*args) -> returned, source_fn not called
- otherwise source_fn(*args) is awaited and stored for ttl_seconds
- a raised exception stores nothing and propagates
- a resolved None is stored like any other value
- concurrent misses on the same key are not coalesced

Instances are passed through constructors. There is no
module-level cache.

============================================================
"""

import fnmatch
import hashlib
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from core.clock import ClockFactory, ClockProtocol


logger = logging.getLogger(__name__)

T = TypeVar("T")


# ============================================================
# CACHE ENTRY
# ============================================================

@dataclass
class CacheEntry:
    """A stored value and its lifetime, in Unix seconds."""
    value: Any
    created_at: float
    expires_at: float
    hits: int = 0

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


# ============================================================
# TTL CACHE
# ============================================================

class TtlCache:
    """
    Process-local TTL cache.

    Usage:
        cache = TtlCache(clock=MockClock())
        cache.set("tokenPrice:1:0xabc", 1.0, ttl=600)
        cache.get("tokenPrice:1:0xabc")
    """

    def __init__(
        self,
        clock: Optional[ClockProtocol] = None,
        default_ttl: float = 300,
        name: str = "cache",
        check_period: float = 600,
    ) -> None:
        self._clock = clock
        self._default_ttl = default_ttl
        self._check_period = check_period
        self._last_sweep: Optional[float] = None
        self._name = name
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    @property
    def name(self) -> str:
        return self._name

    def _now(self) -> float:
        clock = self._clock or ClockFactory.get_clock()
        return clock.timestamp()

    def get(self, key: str) -> Optional[Any]:
        """Return the live value under key, or None."""
        entry = self.get_entry(key)
        return entry.value if entry else None

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Return the live entry under key, evicting it if expired."""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if entry.is_expired(self._now()):
            del self._entries[key]
            self._misses += 1
            return None

        entry.hits += 1
        self._hits += 1
        return entry

    def has(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and not entry.is_expired(self._now())

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        now = self._now()
        self._maybe_sweep(now)
        ttl = self._default_ttl if ttl is None else ttl
        self._entries[key] = CacheEntry(
            value=value,
            created_at=now,
            expires_at=now + ttl,
        )

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> list[str]:
        return list(self._entries.keys())

    def invalidate(self, pattern: str) -> int:
        """
        Remove every key matching a glob pattern.

        Returns:
            Number of removed entries
        """
        matching = [key for key in self._entries if fnmatch.fnmatchcase(key, pattern)]
        for key in matching:
            del self._entries[key]
        if matching:
            logger.info(f"[{self._name}] Invalidated {len(matching)} entries matching '{pattern}'")
        return len(matching)

    def _maybe_sweep(self, now: float) -> None:
        if self._last_sweep is None:
            self._last_sweep = now
            return
        if now - self._last_sweep < self._check_period:
            return
        self._last_sweep = now
        removed = self.clean_expired()
        if removed:
            logger.debug(f"[{self._name}] Swept {removed} expired entries")

    def clean_expired(self) -> int:
        """Sweep expired entries. Returns the number removed."""
        now = self._now()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def get_stats(self) -> dict[str, Any]:
        total = self._hits + self._misses
        return {
            "name": self._name,
            "size": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / total if total > 0 else 0.0,
        }

    def __len__(self) -> int:
        return len(self._entries)


# ============================================================
# MEMOIZE
# ============================================================

def memoize(
    source_fn: Callable[..., Awaitable[T]],
    key_fn: Callable[..., str],
    ttl_seconds: float,
    cache: TtlCache,
) -> Callable[..., Awaitable[T]]:
    """
    Wrap an async function with a TTL cache lookup.

    Args:
        source_fn: Coroutine function producing the value
        key_fn: Derives the cache key from the same arguments
        ttl_seconds: Lifetime of a stored value
        cache: Store to read from and write to

    Returns:
        Coroutine function with the same signature as source_fn
    """

    async def wrapped(*args: Any, **kwargs: Any) -> T:
        key = key_fn(*args, **kwargs)
        entry = cache.get_entry(key)
        if entry is not None:
            logger.debug(f"[{cache.name}] Cache hit: {key}")
            return entry.value

        logger.debug(f"[{cache.name}] Cache miss: {key}")
        value = await source_fn(*args, **kwargs)
        cache.set(key, value, ttl_seconds)
        return value

    wrapped.__name__ = getattr(source_fn, "__name__", "memoized")
    wrapped.__doc__ = getattr(source_fn, "__doc__", None)
    return wrapped


# ============================================================
# KEY HELPERS
# ============================================================

def make_cache_key(*parts: Any) -> str:
    """Join key parts with ':'."""
    return ":".join(str(part) for part in parts)


def hash_key(obj: Any) -> str:
    """md5 hex digest of the canonical JSON form of obj."""
    payload = json.dumps(obj, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.md5(payload.encode()).hexdigest()


__all__ = [
    "CacheEntry",
    "TtlCache",
    "memoize",
    "make_cache_key",
    "hash_key",
]
