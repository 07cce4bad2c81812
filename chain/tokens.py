"""
Token Book - static lookup of Aave markets and their tokens.

============================================================
RESPONSIBILITY
============================================================
Answers "what is this address on this chain?" for underlying
assets, aTokens, variable debt tokens and static aTokens.

- resolve() never raises, it returns None on a miss
- instance_hint disambiguates an address listed in several markets
- Aave tokens carry their Chainlink feed as price_feed when known

============================================================
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from chain.models import AaveInstance, Token, TokenInfo, TokenKind
from chain.price_feeds import get_price_feed


logger = logging.getLogger(__name__)


# ============================================================
# AAVE INSTANCES
# ============================================================

AAVE_V3_ETHEREUM = AaveInstance(
    name="AaveV3Ethereum",
    chain_id=1,
    pool_addresses_provider="0x2f39d218133AFaB8F2B819B1066c7E434Ad94E9e",
    oracle="0x54586bE62E3c3580375aE3723C145253060Ca0C2",
    ui_incentive_data_provider="0x5a40cDe2b76Da2beD545efB3ae15708eE56aAF9c",
    display_name="Aave V3 Ethereum",
)

AAVE_V3_BASE = AaveInstance(
    name="AaveV3Base",
    chain_id=8453,
    pool_addresses_provider="0xe20fCBdBfFC4Dd138cE8b2E6FBb6CB49777ad64D",
    oracle="0x2Cc0Fc26eD4563A5ce5e8bdcfe1A2878676Ae156",
    display_name="Aave V3 Base",
)

AAVE_INSTANCES: tuple[AaveInstance, ...] = (AAVE_V3_ETHEREUM, AAVE_V3_BASE)

# Network part of aToken names/symbols, per instance
_NETWORK_LABELS: dict[str, tuple[str, str]] = {
    "AaveV3Ethereum": ("Ethereum", "Eth"),
    "AaveV3Base": ("Base", "Bas"),
}


# ============================================================
# RESERVES
# ============================================================

@dataclass(frozen=True)
class ReserveEntry:
    """One listed asset of an Aave market."""
    instance: str
    symbol: str
    name: str
    decimals: int
    underlying: str
    a_token: str
    v_token: Optional[str] = None


RESERVES: tuple[ReserveEntry, ...] = (
    # Aave V3 Ethereum
    ReserveEntry("AaveV3Ethereum", "WETH", "Wrapped Ether", 18,
                 "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
                 "0x4d5F47FA6A74757f35C14fD3a6Ef8E3C9BC514E8",
                 "0xeA51d7853EEFb32b6ee06b1C12E6dcCA88Be0fFE"),
    ReserveEntry("AaveV3Ethereum", "USDC", "USD Coin", 6,
                 "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
                 "0x98C23E9d8f34FEFb1B7BD6a91B7FF122F4e16F5c",
                 "0x72E95b8931767C79bA4EeE721354d6E99a61D004"),
    ReserveEntry("AaveV3Ethereum", "DAI", "Dai Stablecoin", 18,
                 "0x6B175474E89094C44Da98b954EedeAC495271d0F",
                 "0x018008bfb33d285247A21d44E50697654f754e63",
                 "0xcF8d0c70c850859266f5C338b38F9D663181C314"),
    ReserveEntry("AaveV3Ethereum", "USDT", "Tether USD", 6,
                 "0xdAC17F958D2ee523a2206206994597C13D831ec7",
                 "0x23878914EFE38d27C4D67Ab83ed1b93A74D4086a",
                 "0x6df1C1E379bC5a00a7b4C6e67A203333772f45A8"),
    ReserveEntry("AaveV3Ethereum", "AAVE", "Aave Token", 18,
                 "0x7Fc66500c84A76Ad7e9c93437bFc5Ac33E2DDaE9",
                 "0xA700b4eB416Be35b2911fd5Dee80678ff64fF6C9",
                 "0xBae535520Abd9f8C85E58929e0006A2c8B372F74"),
    ReserveEntry("AaveV3Ethereum", "wstETH", "Wrapped liquid staked Ether 2.0", 18,
                 "0x7f39C581F595B53c5cb19bD0b3f8dA6c935E2Ca0",
                 "0x0B925eD163218f6662a35e0f0371Ac234f9E9371",
                 "0xC96113eED8cAB59cD8A66813bCB0cEb29F06D2e4"),
    ReserveEntry("AaveV3Ethereum", "GHO", "Gho Token", 18,
                 "0x40D16FC0246aD3160Ccc09B8D0D3A2cD28aE6C2f",
                 "0x00907f9921424583e7ffBfEdf84F92B7B2Be4977",
                 "0x786dBff3f1292ae8F92ea68Cf93c30b34B1ed04B"),
    ReserveEntry("AaveV3Ethereum", "weETH", "Wrapped eETH", 18,
                 "0xCd5fE23C85820F7B72D0926FC9b05b43E359b7ee",
                 "0xBdfa7b7893081B35Fb54027489e2Bc7A38275129"),
    ReserveEntry("AaveV3Ethereum", "USDe", "USDe", 18,
                 "0x4c9EDD5852cd905f086C759E8383e09bff1E68B3",
                 "0x4F5923Fc5FD4a93352581b38B7cD26943012DECF"),
    ReserveEntry("AaveV3Ethereum", "rsETH", "KelpDao Restaked ETH", 18,
                 "0xA1290d69c65A6Fe4DF752f95823fae25cB99e5A7",
                 "0x2D62109243b87C4bA3EE7bA1D91B0dD0A074d7b1"),
    ReserveEntry("AaveV3Ethereum", "ezETH", "Renzo Restaked ETH", 18,
                 "0xbf5495Efe5DB9ce00f80364C8B423567e58d2110",
                 "0x74e5664394998f13B07aF42446380ACef637969f"),
    ReserveEntry("AaveV3Ethereum", "PYUSD", "PayPal USD", 6,
                 "0x6c3ea9036406852006290770BEdFcAbA0e23A0e8",
                 "0x0C0d01AbF3e6aDfcA0989eBbA9d6e85dD58EaB1E"),
    ReserveEntry("AaveV3Ethereum", "EURC", "EURC", 6,
                 "0x1aBaEA1f7C830bD89Acc67eC4af516284b1bC33c",
                 "0xAA6e91C82942aeAE040303Bf96c15a6dBcB82CA0"),
    # Aave V3 Base
    ReserveEntry("AaveV3Base", "WETH", "Wrapped Ether", 18,
                 "0x4200000000000000000000000000000000000006",
                 "0xD4a0e0b9149BCee3C920d2E00b5dE09138fd8bb7"),
    ReserveEntry("AaveV3Base", "USDC", "USD Coin", 6,
                 "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
                 "0x4e65fE4DbA92790696d040ac24Aa414708F5c0AB"),
    ReserveEntry("AaveV3Base", "weETH", "Wrapped eETH", 18,
                 "0x04C0599Ae5A44757c0af6F9eC3b93da8976c150A",
                 "0x7C307e128efA31F540F2E2d976C995E0B65F51F6"),
)

# Tokens that are not reserves of any market
STK_GHO = Token(
    name="Staked GHO",
    symbol="stkGHO",
    address="0x1a88Df1cFe15Af22B3c4c783D4e6F7F9e0C1885d",
    chain_id=1,
    decimals=18,
)

GHO = Token(
    name="Gho Token",
    symbol="GHO",
    address="0x40D16FC0246aD3160Ccc09B8D0D3A2cD28aE6C2f",
    chain_id=1,
    decimals=18,
)

STANDALONE_TOKENS: tuple[Token, ...] = (STK_GHO,)


def _reserve_infos(entry: ReserveEntry, chain_id: int) -> list[TokenInfo]:
    network, prefix = _NETWORK_LABELS.get(entry.instance, (entry.instance, ""))
    feed = get_price_feed(chain_id, entry.underlying)

    infos = [
        TokenInfo(
            token=Token(entry.name, entry.symbol, entry.underlying, chain_id, entry.decimals, price_feed=feed),
            kind=TokenKind.UNDERLYING,
            instance=entry.instance,
            underlying_address=entry.underlying,
        ),
        TokenInfo(
            token=Token(
                f"Aave {network} {entry.symbol}",
                f"a{prefix}{entry.symbol}",
                entry.a_token,
                chain_id,
                entry.decimals,
                price_feed=feed,
            ),
            kind=TokenKind.A_TOKEN,
            instance=entry.instance,
            underlying_address=entry.underlying,
        ),
    ]
    if entry.v_token:
        infos.append(TokenInfo(
            token=Token(
                f"Aave {network} Variable Debt {entry.symbol}",
                f"variableDebt{prefix}{entry.symbol}",
                entry.v_token,
                chain_id,
                entry.decimals,
                price_feed=feed,
            ),
            kind=TokenKind.V_TOKEN,
            instance=entry.instance,
            underlying_address=entry.underlying,
        ))
    return infos


# ============================================================
# TOKEN BOOK
# ============================================================

class TokenBook:
    """
    In-memory index of known tokens and Aave markets.

    Usage:
        book = get_default_token_book()
        info = book.resolve("0x98c23e9d8f34fefb1b7bd6a91b7ff122f4e16f5c", 1)
        info.kind  # TokenKind.A_TOKEN
    """

    def __init__(
        self,
        infos: Iterable[TokenInfo] = (),
        instances: Iterable[AaveInstance] = (),
    ) -> None:
        self._by_address: dict[tuple[int, str], list[TokenInfo]] = {}
        self._instances: dict[str, AaveInstance] = {}
        for instance in instances:
            self.add_instance(instance)
        for info in infos:
            self.add(info)

    @classmethod
    def from_reserves(
        cls,
        reserves: Iterable[ReserveEntry],
        instances: Iterable[AaveInstance],
        standalone: Iterable[Token] = (),
    ) -> "TokenBook":
        instances = list(instances)
        chains = {instance.name: instance.chain_id for instance in instances}
        book = cls(instances=instances)
        for entry in reserves:
            if entry.instance not in chains:
                logger.warning(f"Reserve {entry.symbol} references unknown instance {entry.instance}")
                continue
            for info in _reserve_infos(entry, chains[entry.instance]):
                book.add(info)
        for token in standalone:
            book.add(TokenInfo(token=token, kind=TokenKind.UNDERLYING, underlying_address=token.address))
        return book

    def add(self, info: TokenInfo) -> None:
        key = (info.token.chain_id, info.token.address.lower())
        self._by_address.setdefault(key, []).append(info)

    def add_instance(self, instance: AaveInstance) -> None:
        self._instances[instance.name] = instance

    def resolve(
        self,
        address: str,
        chain_id: int,
        instance_hint: Optional[str] = None,
    ) -> Optional[TokenInfo]:
        """Look up a token. Returns None when unknown."""
        if not address:
            return None
        candidates = self._by_address.get((chain_id, address.lower()))
        if not candidates:
            return None
        if instance_hint:
            for info in candidates:
                if info.instance == instance_hint:
                    return info
        return candidates[0]

    def get_token(
        self,
        address: str,
        chain_id: int,
        instance_hint: Optional[str] = None,
    ) -> Optional[Token]:
        info = self.resolve(address, chain_id, instance_hint)
        return info.token if info else None

    def get_instance(self, name: str) -> Optional[AaveInstance]:
        return self._instances.get(name)

    def instances_for_chain(self, chain_id: int) -> list[AaveInstance]:
        return [i for i in self._instances.values() if i.chain_id == chain_id]

    def list_instances(self) -> list[AaveInstance]:
        return list(self._instances.values())

    def __len__(self) -> int:
        return sum(len(infos) for infos in self._by_address.values())


_default_book: Optional[TokenBook] = None


def get_default_token_book() -> TokenBook:
    """Book built from the static tables in this module."""
    global _default_book
    if _default_book is None:
        _default_book = TokenBook.from_reserves(RESERVES, AAVE_INSTANCES, STANDALONE_TOKENS)
    return _default_book


def resolve_token(
    address: str,
    chain_id: int,
    instance_hint: Optional[str] = None,
) -> Optional[TokenInfo]:
    """Resolve against the default token book."""
    return get_default_token_book().resolve(address, chain_id, instance_hint)
