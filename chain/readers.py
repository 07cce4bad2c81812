"""
Cached contract readers built on a ContractReader.

- Erc20Reader: totalSupply, memoized under totalSupply:{chain}:{address}
- AaveOracleReader: asset prices and base currency unit
- AaveUiIncentivesReader: getReservesIncentivesData, memoized under
  uiIncentivesData:{chain}:{poolAddressesProvider}
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

from chain.abis import AAVE_ORACLE_ABI, ERC20_ABI, UI_INCENTIVE_DATA_PROVIDER_ABI
from chain.exceptions import ChainError
from chain.models import AaveInstance
from chain.rpc import ContractReader
from core.cache import TtlCache, make_cache_key, memoize
from core.constants import (
    DEFAULT_TOTAL_SUPPLY_TTL,
    DEFAULT_UI_INCENTIVES_TTL,
    TOTAL_SUPPLY_CACHE_PREFIX,
    UI_INCENTIVES_CACHE_PREFIX,
)


logger = logging.getLogger(__name__)


# ============================================================
# ERC20
# ============================================================

class Erc20Reader:
    """ERC20 reads with a TTL cache in front."""

    def __init__(
        self,
        reader: ContractReader,
        cache: TtlCache,
        ttl: float = DEFAULT_TOTAL_SUPPLY_TTL,
    ) -> None:
        self._reader = reader
        self.total_supply = memoize(
            self._read_total_supply,
            lambda chain_id, address: make_cache_key(TOTAL_SUPPLY_CACHE_PREFIX, chain_id, address.lower()),
            ttl,
            cache,
        )

    async def _read_total_supply(self, chain_id: int, address: str) -> int:
        value = await self._reader.read_contract(chain_id, address, ERC20_ABI, "totalSupply")
        return int(value)


# ============================================================
# AAVE ORACLE
# ============================================================

class AaveOracleReader:
    """Prices quoted by an Aave market's oracle."""

    def __init__(self, reader: ContractReader) -> None:
        self._reader = reader
        # Base unit never changes for a deployed oracle
        self._base_units: dict[tuple[int, str], int] = {}

    async def get_base_currency_unit(self, instance: AaveInstance) -> int:
        key = (instance.chain_id, instance.oracle.lower())
        if key not in self._base_units:
            value = await self._reader.read_contract(
                instance.chain_id, instance.oracle, AAVE_ORACLE_ABI, "BASE_CURRENCY_UNIT",
            )
            self._base_units[key] = int(value)
        return self._base_units[key]

    async def get_asset_price(
        self,
        instance: AaveInstance,
        asset: str,
        block_number: Optional[int] = None,
    ) -> int:
        value = await self._reader.read_contract(
            instance.chain_id,
            instance.oracle,
            AAVE_ORACLE_ABI,
            "getAssetPrice",
            args=(asset,),
            block_number=block_number,
        )
        return int(value)


# ============================================================
# AAVE UI INCENTIVES
# ============================================================

@dataclass(frozen=True)
class RewardTokenInfo:
    reward_token_symbol: str
    reward_token_address: str
    reward_oracle_address: str
    emission_per_second: int
    incentives_last_update_timestamp: int
    token_incentives_index: int
    emission_end_timestamp: int
    reward_price_feed: int
    reward_token_decimals: int
    precision: int
    price_feed_decimals: int

    @property
    def reward_price(self) -> float:
        """Reward token USD price from the embedded feed answer."""
        return self.reward_price_feed / 10 ** self.price_feed_decimals


@dataclass(frozen=True)
class IncentiveData:
    token_address: str
    incentive_controller_address: str
    rewards_token_information: list[RewardTokenInfo] = field(default_factory=list)


@dataclass(frozen=True)
class ReserveIncentiveData:
    underlying_asset: str
    a_incentive_data: IncentiveData
    v_incentive_data: IncentiveData


def _field(raw: Any, name: str, index: int) -> Any:
    if isinstance(raw, Mapping):
        return raw[name]
    return raw[index]


def _parse_reward_info(raw: Any) -> RewardTokenInfo:
    return RewardTokenInfo(
        reward_token_symbol=str(_field(raw, "rewardTokenSymbol", 0)),
        reward_token_address=str(_field(raw, "rewardTokenAddress", 1)),
        reward_oracle_address=str(_field(raw, "rewardOracleAddress", 2)),
        emission_per_second=int(_field(raw, "emissionPerSecond", 3)),
        incentives_last_update_timestamp=int(_field(raw, "incentivesLastUpdateTimestamp", 4)),
        token_incentives_index=int(_field(raw, "tokenIncentivesIndex", 5)),
        emission_end_timestamp=int(_field(raw, "emissionEndTimestamp", 6)),
        reward_price_feed=int(_field(raw, "rewardPriceFeed", 7)),
        reward_token_decimals=int(_field(raw, "rewardTokenDecimals", 8)),
        precision=int(_field(raw, "precision", 9)),
        price_feed_decimals=int(_field(raw, "priceFeedDecimals", 10)),
    )


def _parse_incentive_data(raw: Any) -> IncentiveData:
    rewards: Sequence[Any] = _field(raw, "rewardsTokenInformation", 2)
    return IncentiveData(
        token_address=str(_field(raw, "tokenAddress", 0)),
        incentive_controller_address=str(_field(raw, "incentiveControllerAddress", 1)),
        rewards_token_information=[_parse_reward_info(r) for r in rewards],
    )


def parse_reserves_incentives_data(raw: Sequence[Any]) -> list[ReserveIncentiveData]:
    """Decode getReservesIncentivesData output (tuples or mappings)."""
    return [
        ReserveIncentiveData(
            underlying_asset=str(_field(item, "underlyingAsset", 0)),
            a_incentive_data=_parse_incentive_data(_field(item, "aIncentiveData", 1)),
            v_incentive_data=_parse_incentive_data(_field(item, "vIncentiveData", 2)),
        )
        for item in raw
    ]


class AaveUiIncentivesReader:
    """Reads and caches per-reserve reward emissions of an Aave market."""

    def __init__(
        self,
        reader: ContractReader,
        cache: TtlCache,
        ttl: float = DEFAULT_UI_INCENTIVES_TTL,
    ) -> None:
        self._reader = reader
        self.get_reserves_incentives_data = memoize(
            self._read_reserves_incentives_data,
            lambda instance: make_cache_key(
                UI_INCENTIVES_CACHE_PREFIX,
                instance.chain_id,
                instance.pool_addresses_provider.lower(),
            ),
            ttl,
            cache,
        )

    async def _read_reserves_incentives_data(
        self,
        instance: AaveInstance,
    ) -> list[ReserveIncentiveData]:
        if not instance.ui_incentive_data_provider:
            raise ChainError(
                f"{instance.name} has no UI incentive data provider",
                source_name=instance.name,
            )
        raw = await self._reader.read_contract(
            instance.chain_id,
            instance.ui_incentive_data_provider,
            UI_INCENTIVE_DATA_PROVIDER_ABI,
            "getReservesIncentivesData",
            args=(instance.pool_addresses_provider,),
        )
        reserves = parse_reserves_incentives_data(raw)
        logger.debug(f"[{instance.name}] Read incentive data for {len(reserves)} reserves")
        return reserves
