"""
Onchain Provider - liquidity mining emissions read from Aave contracts.

============================================================
DATA FLOW
============================================================
UiIncentiveDataProvider.getReservesIncentivesData(pool)
    -> per reserve: supply side (aToken) and borrow side (vToken)
    -> per side: one TokenIncentive per reward token

Status is LIVE while the emission end lies in the future.

============================================================
APR (LIVE only)
============================================================
    reward_usd_per_year = emission/s * SECONDS_PER_YEAR
                          / 10^reward_decimals * reward_price
    supply_usd          = totalSupply / 10^token_decimals * token_price
    apr                 = reward_usd_per_year / supply_usd * 100

A missing price, or an empty supply, gives an APR of 0.

============================================================
"""

import logging
from dataclasses import replace
from typing import Any, Optional, Sequence

from chain.exceptions import ChainError
from chain.models import AaveInstance, Token
from chain.readers import AaveUiIncentivesReader, Erc20Reader, IncentiveData, RewardTokenInfo
from chain.tokens import AAVE_V3_ETHEREUM
from core.cache import make_cache_key
from core.constants import BASE_TIMESTAMP, PROVIDER_CACHE_PREFIX, SECONDS_PER_YEAR
from incentive_providers.base import BaseIncentiveProvider
from incentive_providers.campaigns import config_status
from incentive_providers.models import (
    CampaignConfig,
    FetchOptions,
    Incentive,
    IncentiveSource,
    IncentiveType,
    Status,
    TokenIncentive,
)
from token_prices.service import TokenPriceService


logger = logging.getLogger(__name__)


DEFAULT_INSTANCES: tuple[AaveInstance, ...] = (AAVE_V3_ETHEREUM,)

SUPPLY = "Supply"
BORROW = "Borrow"


def compute_apr(
    reward_info: RewardTokenInfo,
    reward_price: Optional[float],
    token_decimals: int,
    token_price: Optional[float],
    total_supply: int,
) -> float:
    """Yearly reward value over supplied value, in percent."""
    if not reward_price or not token_price:
        return 0.0

    supply_usd = total_supply / 10 ** token_decimals * token_price
    if supply_usd <= 0:
        return 0.0

    reward_per_year = reward_info.emission_per_second * SECONDS_PER_YEAR / 10 ** reward_info.reward_token_decimals
    return reward_per_year * reward_price / supply_usd * 100


class OnchainProvider(BaseIncentiveProvider):
    """
    Aave V3 reward emissions.

    Usage:
        provider = OnchainProvider(
            ui_reader=AaveUiIncentivesReader(reader, cache),
            erc20_reader=Erc20Reader(reader, cache),
            price_service=price_service,
        )
        incentives = await provider.get_incentives()
    """

    CLAIM_LINK = "https://app.aave.com/"

    INCENTIVE_TYPES = (IncentiveType.TOKEN,)

    def __init__(
        self,
        ui_reader: AaveUiIncentivesReader,
        erc20_reader: Erc20Reader,
        price_service: TokenPriceService,
        instances: Optional[Sequence[AaveInstance]] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._ui_reader = ui_reader
        self._erc20_reader = erc20_reader
        self._price_service = price_service
        self._instances = tuple(instances) if instances is not None else DEFAULT_INSTANCES

    @property
    def name(self) -> str:
        return "onchain"

    @property
    def source(self) -> IncentiveSource:
        return IncentiveSource.ONCHAIN_RPC

    @property
    def instances(self) -> tuple[AaveInstance, ...]:
        return self._instances

    def cache_key(self, options: Optional[FetchOptions] = None) -> str:
        chain_ids = options.chain_id if options else None
        scope = ",".join(str(c) for c in sorted(set(chain_ids))) if chain_ids else "all"
        return make_cache_key(PROVIDER_CACHE_PREFIX, self.name, scope)

    # --------------------------------------------------------
    # Fetching
    # --------------------------------------------------------

    async def fetch_raw(self, options: FetchOptions) -> list[tuple[AaveInstance, list]]:
        snapshots = []
        for instance in self._instances:
            if options.chain_id and instance.chain_id not in options.chain_id:
                continue
            reserves = await self._ui_reader.get_reserves_incentives_data(instance)
            snapshots.append((instance, reserves))
        return snapshots

    async def normalize(
        self,
        raw: list[tuple[AaveInstance, list]],
        options: FetchOptions,
    ) -> list[Incentive]:
        now = self.now()
        incentives: list[Incentive] = []
        for instance, reserves in raw:
            for reserve in reserves:
                for side, data in ((SUPPLY, reserve.a_incentive_data), (BORROW, reserve.v_incentive_data)):
                    incentives.extend(
                        await self._side_incentives(instance, reserve.underlying_asset, side, data, now)
                    )
        return incentives

    async def _side_incentives(
        self,
        instance: AaveInstance,
        underlying_address: str,
        side: str,
        data: IncentiveData,
        now: int,
    ) -> list[Incentive]:
        if not data.rewards_token_information:
            return []

        chain_id = instance.chain_id
        rewarded_token = self._token_book.get_token(data.token_address, chain_id, instance.name)
        underlying = self._token_book.get_token(underlying_address, chain_id, instance.name)
        if rewarded_token is None or underlying is None:
            logger.error(
                f"[{self.name}] Token {data.token_address} not found on chain {chain_id}, "
                f"skipping {side.lower()} rewards"
            )
            return []

        incentives: list[Incentive] = []
        for reward_info in data.rewards_token_information:
            reward_token = Token(
                name=reward_info.reward_token_symbol,
                symbol=reward_info.reward_token_symbol,
                address=reward_info.reward_token_address,
                chain_id=chain_id,
                decimals=reward_info.reward_token_decimals,
                price=reward_info.reward_price,
                price_feed=reward_info.reward_oracle_address,
            )

            window = CampaignConfig(
                start_timestamp=BASE_TIMESTAMP,
                end_timestamp=reward_info.emission_end_timestamp,
            )
            status = config_status(window, now)
            apr = None
            if status == Status.LIVE:
                apr = await self._current_apr(rewarded_token, reward_token, reward_info)
            config = replace(window, apr=apr)

            incentives.append(TokenIncentive(
                name=f"{side} {underlying.symbol}",
                description=(
                    f"{side} {underlying.symbol} on {instance.label} "
                    f"to start earning {reward_token.symbol} rewards."
                ),
                claim_link=self.CLAIM_LINK,
                chain_id=chain_id,
                rewarded_token=rewarded_token,
                involved_tokens=[rewarded_token],
                source=self.source,
                status=status,
                all_campaigns_configs=[config],
                current_campaign_config=config if status == Status.LIVE else None,
                reward_token=reward_token,
                current_apr=apr,
            ))
        return incentives

    async def _current_apr(
        self,
        rewarded_token: Token,
        reward_token: Token,
        reward_info: RewardTokenInfo,
    ) -> Optional[float]:
        rewarded_price = await self._price_service.get_price(rewarded_token)
        reward_price = await self._price_service.get_price(reward_token)
        if not rewarded_price or not reward_price:
            return 0.0

        try:
            total_supply = await self._erc20_reader.total_supply(rewarded_token.chain_id, rewarded_token.address)
        except ChainError as e:
            logger.error(f"[{self.name}] Total supply read failed for {rewarded_token}: {e}")
            return None

        return compute_apr(
            reward_info,
            reward_price,
            rewarded_token.decimals,
            rewarded_price,
            total_supply,
        )

    # --------------------------------------------------------
    # Health
    # --------------------------------------------------------

    async def health_check(self) -> bool:
        instance = self._instances[0] if self._instances else AAVE_V3_ETHEREUM
        reserves = await self._ui_reader.get_reserves_incentives_data(instance)
        return len(reserves) > 0
