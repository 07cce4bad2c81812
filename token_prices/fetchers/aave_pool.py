"""
Aave pool price fetcher - prices quoted by Aave market oracles.

For each Aave market on the token's chain, the token is matched
against the market's reserves (underlying, aToken or variable debt
token). The first market that lists it answers with its oracle
price converted through the market's base currency unit.
"""

import logging
from typing import Optional

from chain.exceptions import ChainError
from chain.models import TokenKind
from chain.readers import AaveOracleReader
from chain.tokens import TokenBook, get_default_token_book
from token_prices.base import BasePriceFetcher, PriceQuery
from token_prices.exceptions import PriceFetchError


logger = logging.getLogger(__name__)


class AavePoolPriceFetcher(BasePriceFetcher):

    def __init__(
        self,
        oracle_reader: AaveOracleReader,
        token_book: Optional[TokenBook] = None,
    ) -> None:
        self._oracle = oracle_reader
        self._book = token_book or get_default_token_book()

    @property
    def name(self) -> str:
        return "aave"

    async def get_token_price(self, query: PriceQuery) -> Optional[float]:
        token = query.token

        for instance in self._book.instances_for_chain(token.chain_id):
            info = self._book.resolve(token.address, token.chain_id, instance_hint=instance.name)
            if info is None or info.instance != instance.name:
                continue
            if info.kind == TokenKind.STATA or not info.underlying_address:
                continue

            try:
                raw_price = await self._oracle.get_asset_price(
                    instance, info.underlying_address, query.block_number,
                )
                unit = await self._oracle.get_base_currency_unit(instance)
            except ChainError as e:
                raise PriceFetchError(
                    message=f"Oracle read failed on {instance.name}",
                    source_name=self.name,
                    original_error=e,
                    context={"token": str(token)},
                ) from e

            price = raw_price / unit
            logger.info(f"[{self.name}] Price found for {token} on {instance.name}: ${price}")
            return price

        return None
