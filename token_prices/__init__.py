"""
Token Prices Package - USD price resolution with ordered fallback.

Quick Start:
    from token_prices import PriceQuery, create_token_price_service

    service = create_token_price_service(reader, cache=TtlCache())
    price = await service.get_token_price(PriceQuery(token))
    if price is None:
        ...  # no fetcher knows this token, not an error

Adding New Fetchers:
    1. Subclass BasePriceFetcher
    2. Implement name and get_token_price()
    3. Return None for "unknown", raise only on transport failure
"""

from token_prices.base import BasePriceFetcher, PriceQuery
from token_prices.exceptions import PriceError, PriceFetchError, UnsupportedQueryError
from token_prices.fetchers import (
    AavePoolPriceFetcher,
    ChainlinkPriceFetcher,
    CoingeckoPriceFetcher,
    HardcodedPriceFetcher,
)
from token_prices.service import (
    TokenPriceService,
    create_token_price_service,
    price_cache_key,
)


__all__ = [
    "BasePriceFetcher",
    "PriceQuery",
    "PriceError",
    "PriceFetchError",
    "UnsupportedQueryError",
    "AavePoolPriceFetcher",
    "ChainlinkPriceFetcher",
    "CoingeckoPriceFetcher",
    "HardcodedPriceFetcher",
    "TokenPriceService",
    "create_token_price_service",
    "price_cache_key",
]
