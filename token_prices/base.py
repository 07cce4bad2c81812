"""
Base Price Fetcher - Abstract interface for all price strategies.

A fetcher answers "what is the USD price of this token" or
declines with None. It raises only for transport failures
(PriceFetchError) or queries it cannot honour
(UnsupportedQueryError).
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from chain.models import Token


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceQuery:
    """A price request: current price when block_number is None."""
    token: Token
    block_number: Optional[int] = None

    @property
    def is_historical(self) -> bool:
        return self.block_number is not None


class BasePriceFetcher(ABC):
    """
    Abstract base class for price fetchers.

    Each fetcher must:
    1. Implement name - used in logs and overrides
    2. Implement get_token_price() - price or None
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this fetcher."""
        pass

    @abstractmethod
    async def get_token_price(self, query: PriceQuery) -> Optional[float]:
        """
        Resolve the USD price of query.token.

        Returns:
            Price, or None when this fetcher does not know the token

        Raises:
            PriceFetchError: Transport/protocol failure
            UnsupportedQueryError: Historical query not supported
        """
        pass

    async def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name}>"
