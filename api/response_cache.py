"""
Response Cache - whole-response HTTP cache as aiohttp middleware.

- GET only, on an explicit set of paths
- Only 2xx responses are stored
- Key: http:{method}:{path}:{md5 of method, path and query}
- X-Cache: HIT | MISS and X-Cache-Key headers on cached paths
- Bypassed entirely when disabled
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from aiohttp import web

from core.cache import TtlCache, hash_key, make_cache_key
from core.constants import DEFAULT_REQUEST_TTL, HTTP_CACHE_PREFIX


logger = logging.getLogger(__name__)


CACHED_PATHS: frozenset[str] = frozenset({"/incentives", "/wrapper-tokens"})


@dataclass(frozen=True)
class CachedResponse:
    status: int
    body: bytes
    content_type: str


class ResponseCache:
    """
    Usage:
        response_cache = ResponseCache(TtlCache(name="http"), ttl=300)
        app = web.Application(middlewares=[response_cache.middleware])
    """

    def __init__(
        self,
        cache: Optional[TtlCache] = None,
        ttl: float = DEFAULT_REQUEST_TTL,
        enabled: bool = True,
        paths: Iterable[str] = CACHED_PATHS,
    ) -> None:
        self._cache = cache if cache is not None else TtlCache(default_ttl=ttl, name="http")
        self._ttl = ttl
        self._enabled = enabled
        self._paths = frozenset(paths)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @staticmethod
    def cache_key(request: web.Request) -> str:
        query = {key: request.query.getall(key) for key in sorted(set(request.query.keys()))}
        digest = hash_key({"method": request.method, "path": request.path, "query": query})
        return make_cache_key(HTTP_CACHE_PREFIX, request.method, request.path, digest)

    def is_cacheable(self, request: web.Request) -> bool:
        return self._enabled and request.method == "GET" and request.path in self._paths

    @web.middleware
    async def middleware(self, request: web.Request, handler):
        if not self.is_cacheable(request):
            return await handler(request)

        key = self.cache_key(request)
        cached: Optional[CachedResponse] = self._cache.get(key)
        if cached is not None:
            logger.info(f"[HTTP Cache] HIT: {request.path}")
            return web.Response(
                body=cached.body,
                status=cached.status,
                content_type=cached.content_type,
                headers={"X-Cache": "HIT", "X-Cache-Key": key},
            )

        logger.info(f"[HTTP Cache] MISS: {request.path}")
        response = await handler(request)
        response.headers["X-Cache"] = "MISS"
        response.headers["X-Cache-Key"] = key

        if 200 <= response.status < 300 and isinstance(response, web.Response) and response.body is not None:
            self._cache.set(
                key,
                CachedResponse(
                    status=response.status,
                    body=bytes(response.body),
                    content_type=response.content_type,
                ),
                ttl=self._ttl,
            )
            logger.debug(f"[HTTP Cache] STORED: {key}")

        return response

    def invalidate(self, pattern: Optional[str] = None) -> int:
        """Drop entries whose key contains pattern, or everything."""
        if pattern is None:
            count = len(self._cache)
            self._cache.clear()
            logger.info("[HTTP Cache] Cleared all cache")
            return count

        count = self._cache.invalidate(f"*{pattern}*")
        logger.info(f"[HTTP Cache] Invalidated {count} keys matching: {pattern}")
        return count

    def get_stats(self) -> dict[str, Any]:
        return {
            "enabled": self._enabled,
            "ttl": self._ttl,
            **self._cache.get_stats(),
        }
