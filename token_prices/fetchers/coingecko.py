"""
CoinGecko price fetcher - external market index.

Current prices only. Supports a fixed set of asset platforms;
tokens on other chains are reported as unknown.
"""

import asyncio
import logging
from typing import Any, Optional

import aiohttp

from core.constants import DEFAULT_HTTP_TIMEOUT, USER_AGENT
from token_prices.base import BasePriceFetcher, PriceQuery
from token_prices.exceptions import PriceFetchError, UnsupportedQueryError


logger = logging.getLogger(__name__)


# chain id -> CoinGecko asset platform id
ASSET_PLATFORMS: dict[int, str] = {
    1: "ethereum",
    42161: "arbitrum-one",
    8453: "base",
    43114: "avalanche",
    137: "polygon-pos",
    146: "sonic",
}

SUPPORTED_CURRENCIES = ("usd", "eth", "btc")


class CoingeckoPriceFetcher(BasePriceFetcher):
    """
    Price lookup through CoinGecko's simple/token_price endpoint.

    Response shape: {"<address lowercased>": {"usd": 1.0}}
    """

    BASE_URL = "https://api.coingecko.com/api/v3"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
        currency: str = "usd",
    ) -> None:
        if currency not in SUPPORTED_CURRENCIES:
            raise ValueError(f"Unsupported currency '{currency}'")
        self._api_key = api_key
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None
        self._currency = currency

    @property
    def name(self) -> str:
        return "coingecko"

    async def get_token_price(self, query: PriceQuery) -> Optional[float]:
        if query.is_historical:
            raise UnsupportedQueryError(
                f"block_number is not supported by the {self.name} price fetcher",
                source_name=self.name,
                block_number=query.block_number,
            )

        platform = ASSET_PLATFORMS.get(query.token.chain_id)
        if platform is None:
            return None

        payload = await self._fetch_token_price(platform, query.token.address)
        if not payload:
            return None

        entry = payload.get(query.token.address.lower())
        if not entry:
            return None

        price = entry.get(self._currency)
        return float(price) if price else None

    async def _fetch_token_price(self, platform: str, address: str) -> Optional[dict[str, Any]]:
        """
        GET simple/token_price. Non-2xx answers are treated as unknown.

        Raises:
            PriceFetchError: On connection failure, timeout or a non-JSON body
        """
        url = f"{self.BASE_URL}/simple/token_price/{platform}"
        params = {"contract_addresses": address, "vs_currencies": self._currency}
        session = await self._get_session()

        try:
            async with session.get(url, params=params) as response:
                if response.status >= 400:
                    logger.warning(
                        f"[{self.name}] HTTP {response.status} for {address} on {platform}"
                    )
                    return None
                return await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise PriceFetchError(
                message=f"Request failed: {e!r}",
                source_name=self.name,
                request_url=url,
                original_error=e,
            ) from e

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
            if self._api_key:
                headers["x-cg-demo-api-key"] = self._api_key
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers=headers,
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
