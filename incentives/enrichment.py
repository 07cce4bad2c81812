"""
Token enrichment - attach price feeds to tokens that lack one.

Lookup order, first feed found wins:
1. Aave token book (underlying, aToken, vToken)
2. Wrapper map, then the book entry of the wrapped aToken
3. Static per-chain price feed table

A token with no feed anywhere is left as is.
"""

import copy
import logging
from typing import Callable, Iterable, Optional

from chain.models import Token
from chain.price_feeds import get_price_feed
from chain.tokens import TokenBook, get_default_token_book
from chain.wrapper_tokens import resolve_wrapper_token
from incentive_providers.models import Incentive


logger = logging.getLogger(__name__)


class TokenEnricher:
    """
    Fills Token.price_feed across incentives.

    Usage:
        enricher = TokenEnricher()
        enriched = enricher.enrich(incentives)
    """

    def __init__(
        self,
        token_book: Optional[TokenBook] = None,
        wrapper_lookup: Callable[[str, int], Optional[str]] = resolve_wrapper_token,
        feed_lookup: Callable[[int, str], Optional[str]] = get_price_feed,
    ) -> None:
        self._token_book = token_book or get_default_token_book()
        self._wrapper_lookup = wrapper_lookup
        self._feed_lookup = feed_lookup

    def find_price_feed(self, token: Token) -> Optional[str]:
        info = self._token_book.resolve(token.address, token.chain_id)
        if info is not None and info.token.price_feed:
            return info.token.price_feed

        wrapped = self._wrapper_lookup(token.address, token.chain_id)
        if wrapped:
            wrapped_info = self._token_book.resolve(wrapped, token.chain_id)
            if wrapped_info is not None and wrapped_info.token.price_feed:
                return wrapped_info.token.price_feed

        return self._feed_lookup(token.chain_id, token.address)

    def enrich_token(self, token: Token) -> Token:
        if token.price_feed:
            return token
        feed = self.find_price_feed(token)
        if feed is None:
            return token
        return token.with_enrichment(price_feed=feed)

    def enrich(self, incentives: Iterable[Incentive]) -> list[Incentive]:
        """Copies of the incentives with every token enriched."""
        enriched = []
        for incentive in incentives:
            clone = copy.copy(incentive)
            clone.map_tokens(self.enrich_token)
            enriched.append(clone)
        return enriched
