"""
Token Price Service - ordered fallback over price fetchers.

============================================================
RESOLUTION ORDER
============================================================
1. Proxy substitution: a token priced through a stand-in
   (stkGHO -> GHO) is swapped before any fetch
2. Token-specific override fetcher, if configured
3. Fetcher chain: aave -> chainlink -> coingecko -> hardcoded
4. First price wins; a total miss returns None

Results are memoized under tokenPrice:{chainId}:{address}
(historical queries add :{block}).

============================================================
ERRORS
============================================================
- A fetcher transport failure (PriceFetchError, ChainError) is
  logged and the chain moves on to the next fetcher
- UnsupportedQueryError propagates to the caller

============================================================
"""

import logging
from typing import Optional, Sequence

from chain.exceptions import ChainError
from chain.models import Token
from chain.readers import AaveOracleReader
from chain.rpc import ContractReader
from chain.tokens import GHO, STK_GHO, TokenBook
from core.cache import TtlCache, make_cache_key, memoize
from core.constants import DEFAULT_TOKEN_PRICE_TTL, TOKEN_PRICE_CACHE_PREFIX
from token_prices.base import BasePriceFetcher, PriceQuery
from token_prices.exceptions import PriceFetchError
from token_prices.fetchers import (
    AavePoolPriceFetcher,
    ChainlinkPriceFetcher,
    CoingeckoPriceFetcher,
    HardcodedPriceFetcher,
)


logger = logging.getLogger(__name__)


TokenKey = tuple[int, str]

DEFAULT_PROXY_TOKENS: dict[TokenKey, Token] = {
    (STK_GHO.chain_id, STK_GHO.address.lower()): GHO,
}


def price_cache_key(query: PriceQuery) -> str:
    key = make_cache_key(
        TOKEN_PRICE_CACHE_PREFIX,
        query.token.chain_id,
        query.token.address.lower(),
    )
    if query.block_number is not None:
        key = make_cache_key(key, query.block_number)
    return key


def _token_key(token: Token) -> TokenKey:
    return (token.chain_id, token.address.lower())


def _describe(token: Token, requested: Token) -> str:
    if token.same_token(requested):
        return str(token)
    return f"{token} (on behalf of {requested.symbol})"


class TokenPriceService:
    """
    Resolves token USD prices through a fallback chain.

    Usage:
        service = TokenPriceService(
            fetchers=[aave, chainlink, coingecko, hardcoded],
            cache=TtlCache(),
        )
        price = await service.get_token_price(PriceQuery(token))
    """

    def __init__(
        self,
        fetchers: Sequence[BasePriceFetcher],
        cache: TtlCache,
        ttl: float = DEFAULT_TOKEN_PRICE_TTL,
        overrides: Optional[dict[TokenKey, BasePriceFetcher]] = None,
        proxies: Optional[dict[TokenKey, Token]] = None,
    ) -> None:
        self._fetchers = list(fetchers)
        self._overrides = {
            (chain_id, address.lower()): fetcher
            for (chain_id, address), fetcher in (overrides or {}).items()
        }
        proxies = DEFAULT_PROXY_TOKENS if proxies is None else proxies
        self._proxies = {
            (chain_id, address.lower()): token
            for (chain_id, address), token in proxies.items()
        }
        self._cached_resolve = memoize(self._resolve, price_cache_key, ttl, cache)

    @property
    def fetchers(self) -> list[BasePriceFetcher]:
        return list(self._fetchers)

    async def get_token_price(self, query: PriceQuery) -> Optional[float]:
        """
        USD price of query.token, or None when no fetcher knows it.

        Raises:
            UnsupportedQueryError: A fetcher in the chain refused a
                historical query
        """
        return await self._cached_resolve(query)

    async def get_price(self, token: Token, block_number: Optional[int] = None) -> Optional[float]:
        return await self.get_token_price(PriceQuery(token=token, block_number=block_number))

    async def _resolve(self, query: PriceQuery) -> Optional[float]:
        requested = query.token
        proxy = self._proxies.get(_token_key(requested))
        if proxy is not None:
            query = PriceQuery(token=proxy, block_number=query.block_number)
        token = query.token

        override = self._overrides.get(_token_key(token))
        if override is not None:
            price = await self._try_fetcher(override, query)
            if price:
                return price
            logger.warning(
                f"Override fetcher {override.name} set for {_describe(token, requested)} but no price found"
            )

        for fetcher in self._fetchers:
            price = await self._try_fetcher(fetcher, query)
            if price:
                logger.debug(f"[{fetcher.name}] Price found for {_describe(token, requested)}: {price}")
                return price

        logger.warning(f"No price found for {_describe(token, requested)}")
        return None

    async def _try_fetcher(self, fetcher: BasePriceFetcher, query: PriceQuery) -> Optional[float]:
        try:
            return await fetcher.get_token_price(query)
        except (PriceFetchError, ChainError) as e:
            logger.error(f"[{fetcher.name}] Price fetch failed for {query.token}: {e}")
            return None

    async def close(self) -> None:
        for fetcher in self._fetchers:
            await fetcher.close()


def create_token_price_service(
    reader: ContractReader,
    cache: TtlCache,
    ttl: float = DEFAULT_TOKEN_PRICE_TTL,
    coingecko_api_key: Optional[str] = None,
    token_book: Optional[TokenBook] = None,
) -> TokenPriceService:
    """Service with the default fetcher chain."""
    fetchers: list[BasePriceFetcher] = [
        AavePoolPriceFetcher(AaveOracleReader(reader), token_book),
        ChainlinkPriceFetcher(reader),
        CoingeckoPriceFetcher(api_key=coingecko_api_key),
        HardcodedPriceFetcher(),
    ]
    return TokenPriceService(fetchers=fetchers, cache=cache, ttl=ttl)
