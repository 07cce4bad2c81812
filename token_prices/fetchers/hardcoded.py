"""
Hardcoded price fetcher - fixed prices for pegged assets with no market.
"""

from typing import Optional

from token_prices.base import BasePriceFetcher, PriceQuery


# symbol -> USD price
HARDCODED_PRICES: dict[str, float] = {
    "GHO": 1.0,
    "stkGHO": 1.0,
}


class HardcodedPriceFetcher(BasePriceFetcher):

    def __init__(self, prices: Optional[dict[str, float]] = None) -> None:
        self._prices = dict(HARDCODED_PRICES if prices is None else prices)

    @property
    def name(self) -> str:
        return "hardcoded"

    async def get_token_price(self, query: PriceQuery) -> Optional[float]:
        return self._prices.get(query.token.symbol)
