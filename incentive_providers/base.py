"""
Base Incentive Provider - Abstract interface for all incentive sources.

All providers MUST implement this interface to ensure:
- Isolation
- Replaceability
- A uniform fetch + health contract
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

import aiohttp

from chain.tokens import TokenBook, get_default_token_book
from core.cache import TtlCache, hash_key, make_cache_key, memoize
from core.clock import ClockFactory, ClockProtocol
from core.concurrency import with_timeout
from core.constants import (
    DEFAULT_HEALTH_CHECK_TIMEOUT,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_PROVIDER_FETCH_TTL,
    PROVIDER_CACHE_PREFIX,
    USER_AGENT,
)
from incentive_providers.exceptions import FetchError, RateLimitError
from incentive_providers.models import FetchOptions, Incentive, IncentiveSource, IncentiveType


logger = logging.getLogger(__name__)


class BaseIncentiveProvider(ABC):
    """
    Abstract base class for all incentive providers.

    Each provider must:
    1. Implement name / source - identity of the upstream
    2. Implement fetch_raw() - raw upstream payload
    3. Implement normalize() - payload to Incentive records
    4. Implement health_check() - True when the upstream answers

    Provided here:
    - get_incentives(): fetch_raw() + normalize() behind a per-provider TTL cache
    - is_healthy(): health_check() with a timeout, never raises
    - aiohttp session and JSON request helpers
    """

    # Variants this provider can emit, used to skip it for type filters
    INCENTIVE_TYPES: tuple[IncentiveType, ...] = (IncentiveType.TOKEN,)

    def __init__(
        self,
        cache: Optional[TtlCache] = None,
        cache_ttl: float = DEFAULT_PROVIDER_FETCH_TTL,
        clock: Optional[ClockProtocol] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        health_check_timeout: float = DEFAULT_HEALTH_CHECK_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
        token_book: Optional[TokenBook] = None,
    ) -> None:
        self._cache = cache if cache is not None else TtlCache(clock=clock, name=f"provider-{self.name}")
        self._cache_ttl = cache_ttl
        self._clock = clock
        self._token_book = token_book or get_default_token_book()
        self._timeout = timeout
        self._health_check_timeout = health_check_timeout
        self._session = session
        self._owns_session = session is None

        self._cached_fetch = memoize(
            self._fetch_uncached,
            self.cache_key,
            cache_ttl,
            self._cache,
        )

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this provider."""
        pass

    @property
    @abstractmethod
    def source(self) -> IncentiveSource:
        """Provenance tag set on every emitted incentive."""
        pass

    @abstractmethod
    async def fetch_raw(self, options: FetchOptions) -> Any:
        """
        Fetch the raw upstream payload.

        Options may be used to narrow the upstream query. Callers
        re-filter the result, so over-fetching is safe.

        Raises:
            FetchError: If the upstream cannot be read
        """
        pass

    @abstractmethod
    async def normalize(self, raw: Any, options: FetchOptions) -> list[Incentive]:
        """
        Convert a raw payload to incentives.

        Records that cannot be resolved to known tokens are skipped
        with a warning, never emitted half-filled.
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Probe the upstream.

        May raise; is_healthy() turns any exception into False.
        """
        pass

    # --------------------------------------------------------
    # Fetching
    # --------------------------------------------------------

    def cache_key(self, options: Optional[FetchOptions] = None) -> str:
        options = options or FetchOptions()
        return make_cache_key(PROVIDER_CACHE_PREFIX, self.name, hash_key(options.to_dict()))

    async def get_incentives(self, options: Optional[FetchOptions] = None) -> list[Incentive]:
        """Cached fetch + normalize. Errors propagate and are not cached."""
        return await self._cached_fetch(options or FetchOptions())

    async def _fetch_uncached(self, options: FetchOptions) -> list[Incentive]:
        started = time.monotonic()
        raw = await self.fetch_raw(options)
        incentives = await self.normalize(raw, options)
        logger.info(
            f"[{self.name}] Fetched {len(incentives)} incentives "
            f"in {(time.monotonic() - started) * 1000:.0f}ms"
        )
        return incentives

    def now(self) -> int:
        """Current Unix time in seconds."""
        return (self._clock or ClockFactory.get_clock()).unix_seconds()

    # --------------------------------------------------------
    # Health
    # --------------------------------------------------------

    async def is_healthy(self, timeout: Optional[float] = None) -> bool:
        """
        Health probe bounded by a timeout.

        Any exception, a timeout, or a False probe result yields False.
        """
        budget = self._health_check_timeout if timeout is None else timeout
        try:
            healthy = await with_timeout(self.health_check(), budget, f"{self.name} health check")
        except Exception as e:
            logger.warning(f"[{self.name}] Health check failed: {e}")
            return False
        return bool(healthy)

    # --------------------------------------------------------
    # HTTP helpers
    # --------------------------------------------------------

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers=self._get_default_headers(),
            )
            self._owns_session = True
        return self._session

    def _get_default_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }

    async def _make_request(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """Make HTTP request and decode the JSON body."""
        session = await self._get_session()

        start_time = time.time()
        try:
            async with session.request(method, url, params=params, headers=headers) as response:
                latency_ms = (time.time() - start_time) * 1000

                if response.status == 429:
                    retry_after = response.headers.get("Retry-After")
                    raise RateLimitError(
                        message="Rate limit exceeded",
                        source_name=self.name,
                        retry_after_seconds=int(retry_after) if retry_after and retry_after.isdigit() else None,
                        request_url=url,
                    )

                if response.status >= 400:
                    body = await response.text()
                    raise FetchError(
                        message=f"HTTP {response.status}",
                        source_name=self.name,
                        status_code=response.status,
                        response_body=body[:1000],
                        request_url=url,
                    )

                data = await response.json(content_type=None)
                logger.debug(f"[{self.name}] {method} {url} completed in {latency_ms:.1f}ms")
                return data

        except aiohttp.ClientError as e:
            raise FetchError(
                message=f"Connection error: {e}",
                source_name=self.name,
                request_url=url,
                original_error=e,
            ) from e
        except asyncio.TimeoutError as e:
            raise FetchError(
                message="Request timed out",
                source_name=self.name,
                request_url=url,
                original_error=e,
            ) from e
        except ValueError as e:
            raise FetchError(
                message=f"Invalid JSON body: {e}",
                source_name=self.name,
                request_url=url,
                original_error=e,
            ) from e

    async def _probe(self, url: str) -> bool:
        """True when a GET on url answers 2xx."""
        session = await self._get_session()
        async with session.get(url) as response:
            return 200 <= response.status < 300

    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "BaseIncentiveProvider":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name} source={self.source.value}>"
