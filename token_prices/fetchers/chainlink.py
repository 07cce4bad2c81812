"""
Chainlink price fetcher - on-chain price feeds.
"""

import logging
from typing import Callable, Optional

from chain.abis import CHAINLINK_AGGREGATOR_ABI
from chain.price_feeds import get_price_feed
from chain.rpc import ContractReader
from token_prices.base import BasePriceFetcher, PriceQuery


logger = logging.getLogger(__name__)


class ChainlinkPriceFetcher(BasePriceFetcher):
    """
    Reads `decimals` and `latestAnswer` of the token's feed.

    Read failures (RPC down, feed not deployed yet at the requested
    block) are logged and reported as unknown.
    """

    def __init__(
        self,
        reader: ContractReader,
        feed_lookup: Callable[[int, str], Optional[str]] = get_price_feed,
    ) -> None:
        self._reader = reader
        self._feed_lookup = feed_lookup

    @property
    def name(self) -> str:
        return "chainlink"

    async def get_token_price(self, query: PriceQuery) -> Optional[float]:
        token = query.token
        feed = self._feed_lookup(token.chain_id, token.address)
        if not feed:
            return None
        return await self._fetch_price_from_feed(token.chain_id, feed, query.block_number)

    async def _fetch_price_from_feed(
        self,
        chain_id: int,
        feed: str,
        block_number: Optional[int],
    ) -> Optional[float]:
        try:
            decimals = await self._reader.read_contract(
                chain_id, feed, CHAINLINK_AGGREGATOR_ABI, "decimals", block_number=block_number,
            )
            answer = await self._reader.read_contract(
                chain_id, feed, CHAINLINK_AGGREGATOR_ABI, "latestAnswer", block_number=block_number,
            )
        except Exception as e:
            logger.warning(f"[{self.name}] Could not read feed {feed} on chain {chain_id}: {e}")
            return None

        return int(answer) / 10 ** int(decimals)
