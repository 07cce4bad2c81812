"""
Chain Models - Token and lending-market descriptors.

Value objects shared by price fetchers, incentive providers and
the aggregation service.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional


class TokenKind(Enum):
    """Role of a token inside an Aave market."""
    UNDERLYING = "UNDERLYING"
    A_TOKEN = "A_TOKEN"
    V_TOKEN = "V_TOKEN"
    STATA = "STATA"


@dataclass(frozen=True)
class Token:
    """
    An ERC20 token on one chain.

    Identity is (address, chain_id) with the address compared
    case-insensitively. `price` and `price_feed` are enrichment
    fields, set through with_enrichment() which returns a copy.
    """
    name: str
    symbol: str
    address: str
    chain_id: int
    decimals: int
    price: Optional[float] = None
    price_feed: Optional[str] = None

    def __post_init__(self) -> None:
        if self.decimals < 0:
            raise ValueError(f"decimals must be >= 0, got {self.decimals}")

    @property
    def identity(self) -> tuple[str, int]:
        return (self.address.lower(), self.chain_id)

    def same_token(self, other: "Token") -> bool:
        return self.identity == other.identity

    def with_enrichment(
        self,
        price: Optional[float] = None,
        price_feed: Optional[str] = None,
    ) -> "Token":
        """Copy with price / price_feed set, keeping existing values when None."""
        return replace(
            self,
            price=price if price is not None else self.price,
            price_feed=price_feed if price_feed is not None else self.price_feed,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "symbol": self.symbol,
            "address": self.address,
            "chainId": self.chain_id,
            "decimals": self.decimals,
        }
        if self.price is not None:
            data["price"] = self.price
        if self.price_feed is not None:
            data["priceFeed"] = self.price_feed
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Token":
        return cls(
            name=data.get("name") or data["symbol"],
            symbol=data["symbol"],
            address=data["address"],
            chain_id=int(data["chainId"]),
            decimals=int(data["decimals"]),
            price=data.get("price"),
            price_feed=data.get("priceFeed"),
        )

    def __str__(self) -> str:
        return f"{self.symbol}({self.address}@{self.chain_id})"


@dataclass(frozen=True)
class TokenInfo:
    """A token as known to the static token book."""
    token: Token
    kind: TokenKind
    instance: Optional[str] = None
    underlying_address: Optional[str] = None


@dataclass(frozen=True)
class AaveInstance:
    """Contract addresses of one Aave V3 market."""
    name: str
    chain_id: int
    pool_addresses_provider: str
    oracle: str
    ui_incentive_data_provider: Optional[str] = None
    # Human name used in descriptions, e.g. "Aave V3 Ethereum"
    display_name: Optional[str] = None

    @property
    def label(self) -> str:
        return self.display_name or self.name
