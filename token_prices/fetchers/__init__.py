"""
Price fetcher implementations, in default fallback order.
"""

from token_prices.fetchers.aave_pool import AavePoolPriceFetcher
from token_prices.fetchers.chainlink import ChainlinkPriceFetcher
from token_prices.fetchers.coingecko import ASSET_PLATFORMS, CoingeckoPriceFetcher
from token_prices.fetchers.hardcoded import HARDCODED_PRICES, HardcodedPriceFetcher


__all__ = [
    "AavePoolPriceFetcher",
    "ChainlinkPriceFetcher",
    "CoingeckoPriceFetcher",
    "HardcodedPriceFetcher",
    "ASSET_PLATFORMS",
    "HARDCODED_PRICES",
]
