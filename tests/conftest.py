"""
Shared fixtures for the incentive aggregator test suites.
"""

from typing import Any, Optional

import pytest

from chain.models import Token
from core.cache import TtlCache
from core.clock import MockClock
from incentive_providers.models import (
    CampaignConfig,
    IncentiveSource,
    Status,
    TokenIncentive,
)


# Fixed "now" for status derivation: 2025-01-01T00:00:00Z
NOW = 1735689600

USDC_ADDRESS = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
A_ETH_USDC_ADDRESS = "0x98C23E9d8f34FEFb1B7BD6a91B7FF122F4e16F5c"
AAVE_ADDRESS = "0x7Fc66500c84A76Ad7e9c93437bFc5Ac33E2DDaE9"


@pytest.fixture
def clock() -> MockClock:
    return MockClock.at_timestamp(NOW)


@pytest.fixture
def cache(clock) -> TtlCache:
    return TtlCache(clock=clock, name="test")


@pytest.fixture
def make_token():
    def _make(
        symbol: str = "TKN",
        address: str = "0x" + "11" * 20,
        chain_id: int = 1,
        decimals: int = 18,
        **kwargs: Any,
    ) -> Token:
        return Token(
            name=kwargs.pop("name", symbol),
            symbol=symbol,
            address=address,
            chain_id=chain_id,
            decimals=decimals,
            **kwargs,
        )
    return _make


@pytest.fixture
def make_incentive(make_token):
    """TokenIncentive builder; every field can be overridden."""
    def _make(
        name: str = "Supply TKN",
        chain_id: int = 1,
        status: Status = Status.LIVE,
        source: IncentiveSource = IncentiveSource.ACI_ROUNDS,
        campaigns: Optional[list[CampaignConfig]] = None,
        rewarded: Optional[Token] = None,
        reward: Optional[Token] = None,
        **kwargs: Any,
    ) -> TokenIncentive:
        rewarded = rewarded or make_token("aTKN", "0x" + "aa" * 20, chain_id)
        reward = reward or make_token("RWD", "0x" + "bb" * 20, chain_id)
        return TokenIncentive(
            name=name,
            description=kwargs.pop("description", f"{name} description"),
            claim_link=kwargs.pop("claim_link", "https://example.org/claim"),
            chain_id=chain_id,
            rewarded_token=rewarded,
            involved_tokens=kwargs.pop("involved_tokens", [rewarded]),
            source=source,
            status=status,
            all_campaigns_configs=campaigns if campaigns is not None else [CampaignConfig(0, 100)],
            reward_token=reward,
            **kwargs,
        )
    return _make
