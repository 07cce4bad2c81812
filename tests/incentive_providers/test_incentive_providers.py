"""
Tests for Incentive Providers.

============================================================
PURPOSE
============================================================
Normalization of each upstream, provider caching and health.

TEST PRINCIPLES:
- Upstreams are mocked at _make_request / reader level
- Malformed records are skipped, never emitted half-filled
- Health checks never raise and respect their timeout

============================================================
"""

import asyncio
import itertools
import time
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from chain.exceptions import ContractReadError
from chain.readers import (
    AaveUiIncentivesReader,
    Erc20Reader,
    IncentiveData,
    ReserveIncentiveData,
    RewardTokenInfo,
)
from chain.tokens import AAVE_V3_ETHEREUM
from incentive_providers.base import BaseIncentiveProvider
from incentive_providers.campaigns import campaign_status, select_campaign_configs
from incentive_providers.exceptions import FetchError, NormalizationError, RateLimitError
from incentive_providers.models import (
    CampaignConfig,
    FetchOptions,
    Incentive,
    IncentiveSource,
    IncentiveType,
    Point,
    PointIncentive,
    PointWithoutValueIncentive,
    Status,
    TokenIncentive,
)
from incentive_providers.providers import (
    AciProvider,
    ExternalPointsProvider,
    MerklProvider,
    OnchainProvider,
)
from incentive_providers.providers.merkl import protocol_for_chain
from incentive_providers.providers.onchain import compute_apr
from incentive_providers.providers.points_data import PointCampaign, PointProgram
from incentive_providers.registry import ProviderRegistry, create_default_registry
from core.config import AppConfig
from token_prices.service import TokenPriceService


NOW = 1735689600

USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
A_ETH_USDC = "0x98C23E9d8f34FEFb1B7BD6a91B7FF122F4e16F5c"
STATA_LIKE = "0x" + "5a" * 20
AAVE = "0x7Fc66500c84A76Ad7e9c93437bFc5Ac33E2DDaE9"
CREATOR = "0x" + "c0" * 20


# ============================================================
# FIXTURES
# ============================================================

class StaticProvider(BaseIncentiveProvider):
    """Provider returning a fixed payload, used to test the base class."""

    def __init__(self, payload: Any = None, health: Any = True, health_delay: float = 0, **kwargs):
        self.payload = payload or []
        self.health = health
        self.health_delay = health_delay
        self.fetch_count = 0
        super().__init__(**kwargs)

    @property
    def name(self) -> str:
        return "static"

    @property
    def source(self) -> IncentiveSource:
        return IncentiveSource.HARDCODED

    async def fetch_raw(self, options):
        self.fetch_count += 1
        return self.payload

    async def normalize(self, raw, options):
        return list(raw)

    async def health_check(self) -> bool:
        if self.health_delay:
            await asyncio.sleep(self.health_delay)
        if isinstance(self.health, Exception):
            raise self.health
        return self.health


def aci_token(address: str = A_ETH_USDC, symbol: str = "aEthUSDC", decimals: int = 6) -> dict:
    return {
        "name": symbol,
        "symbol": symbol,
        "address": address,
        "chainId": 1,
        "decimals": decimals,
        "book": {"ORACLE": "0x8fFfFfd4AfB6115b954Bd326cbe7B4BA576818f6"},
    }


def aci_action(**overrides: Any) -> dict:
    action = {
        "displayName": "Supply USDC",
        "chainId": 1,
        "actionTokens": [aci_token()],
        "rewardToken": aci_token(AAVE, "AAVE", 18),
        "campaigns": [
            {"startTimestamp": NOW - 1000, "endTimestamp": NOW - 500, "fixedBudget": 100},
            {"startTimestamp": NOW - 100, "endTimestamp": NOW + 1000, "fixedApr": {"apr": 4.5, "maxBudget": 5000}},
            {"startTimestamp": NOW + 2000, "endTimestamp": NOW + 3000, "fixedBudget": 200},
        ],
        "info": {
            "wholeDescriptionString": "Supply USDC on Aave",
            "forumLink": {"link": "https://governance.aave.com/t/merit"},
        },
        "apr": 4.5,
    }
    action.update(overrides)
    return action


def merkl_reward(address: str = AAVE, kind: str = "TOKEN", symbol: str = "AAVE") -> dict:
    return {"address": address, "symbol": symbol, "name": symbol, "decimals": 18, "chainId": 1, "type": kind}


def merkl_campaign(reward: dict, creator: str = CREATOR, apr: Any = "0.05") -> dict:
    return {
        "creatorAddress": creator,
        "rewardToken": reward,
        "startTimestamp": NOW - 100,
        "endTimestamp": NOW + 100,
        "amount": "1000000",
        "params": {"distributionMethodParameters": {"distributionSettings": {"apr": apr}}},
    }


def merkl_opportunity(**overrides: Any) -> dict:
    opportunity = {
        "name": "Supply USDC on Aave",
        "description": "Lend USDC",
        "chainId": 1,
        "status": "LIVE",
        "apr": 3.2,
        "explorerAddress": A_ETH_USDC,
        "tokens": [
            {"address": A_ETH_USDC, "symbol": "aEthUSDC", "decimals": 6, "chainId": 1},
            {"address": USDC, "symbol": "USDC", "decimals": 6, "chainId": 1},
        ],
        "campaigns": [merkl_campaign(merkl_reward())],
    }
    opportunity.update(overrides)
    return opportunity


def reward_info(end: int = NOW + 1000, emission: int = 10**18) -> RewardTokenInfo:
    return RewardTokenInfo(
        reward_token_symbol="AAVE",
        reward_token_address=AAVE,
        reward_oracle_address="0x547a514d5e3769680Ce22B2361c10Ea13619e8a9",
        emission_per_second=emission,
        incentives_last_update_timestamp=0,
        token_incentives_index=0,
        emission_end_timestamp=end,
        reward_price_feed=100_000_000,
        reward_token_decimals=18,
        precision=18,
        price_feed_decimals=8,
    )


def usdc_reserve(a_rewards: list, v_rewards: list = ()) -> ReserveIncentiveData:
    return ReserveIncentiveData(
        underlying_asset=USDC,
        a_incentive_data=IncentiveData(A_ETH_USDC, "0x1", list(a_rewards)),
        v_incentive_data=IncentiveData("0x72E95b8931767C79bA4EeE721354d6E99a61D004", "0x1", list(v_rewards)),
    )


@pytest.fixture
def onchain_parts():
    ui_reader = MagicMock(spec=AaveUiIncentivesReader)
    ui_reader.get_reserves_incentives_data = AsyncMock(return_value=[usdc_reserve([reward_info()])])
    erc20_reader = MagicMock(spec=Erc20Reader)
    erc20_reader.total_supply = AsyncMock(return_value=315_360_000 * 10**6)
    price_service = MagicMock(spec=TokenPriceService)
    price_service.get_price = AsyncMock(return_value=1.0)
    return ui_reader, erc20_reader, price_service


# ============================================================
# CAMPAIGNS
# ============================================================

class TestCampaignStatus:

    @pytest.mark.parametrize("start,end,now,expected", [
        (10, 20, 5, Status.SOON),
        (10, 20, 10, Status.LIVE),
        (10, 20, 20, Status.LIVE),
        (10, 20, 21, Status.PAST),
        (10, None, 1000, Status.LIVE),
        (10, None, 9, Status.SOON),
    ])
    def test_boundaries(self, start, end, now, expected):
        assert campaign_status(start, end, now) == expected

    def test_every_triple_has_exactly_one_consistent_status(self):
        values = [0, 5, 10, 15]
        for start, end, now in itertools.product(values, values + [None], values):
            status = campaign_status(start, end, now)
            if now < start:
                assert status == Status.SOON
            elif end is None or now <= end:
                assert status == Status.LIVE
            else:
                assert status == Status.PAST

    def test_selection_picks_current_and_next(self):
        configs = [
            CampaignConfig(0, 50),
            CampaignConfig(80, 200),
            CampaignConfig(90, None),
            CampaignConfig(300, 400),
            CampaignConfig(150, 400),
        ]

        selection = select_campaign_configs(configs, now=100)

        assert selection.current == CampaignConfig(90, None)
        assert selection.next == CampaignConfig(150, 400)
        assert selection.all == configs
        assert selection.status == Status.LIVE

    def test_selection_status_without_live_window(self):
        assert select_campaign_configs([CampaignConfig(200, 300)], 100).status == Status.SOON
        assert select_campaign_configs([CampaignConfig(0, 50)], 100).status == Status.PAST
        assert select_campaign_configs([], 100).status == Status.PAST


# ============================================================
# MODELS
# ============================================================

class TestModels:

    def test_token_incentive_to_dict(self, make_incentive):
        incentive = make_incentive(current_apr=2.5, infos_link="https://forum")
        data = incentive.to_dict()

        assert data["type"] == "TOKEN"
        assert data["source"] == "ACI_ROUNDS"
        assert data["currentApr"] == 2.5
        assert data["infosLink"] == "https://forum"
        assert data["allCampaignsConfigs"] == [{"startTimestamp": 0, "endTimestamp": 100}]
        assert "id" not in data
        assert "currentCampaignConfig" not in data

    def test_involved_tokens_must_not_be_empty(self, make_incentive):
        with pytest.raises(ValueError):
            make_incentive(involved_tokens=[])

    def test_reward_identity(self, make_incentive, make_token):
        token_incentive = make_incentive(reward=make_token("RWD", "0xABCDEF" + "0" * 34))
        assert token_incentive.reward_identity() == "0xabcdef" + "0" * 34

        rewarded = make_token()
        point_incentive = PointWithoutValueIncentive(
            name="n", description="d", claim_link="c", chain_id=1,
            rewarded_token=rewarded, involved_tokens=[rewarded],
            source=IncentiveSource.MERKL_API, status=Status.LIVE,
            point=Point(name="Tydro Points", protocol="tydro"),
        )
        assert point_incentive.reward_identity() == "tydro points"

    def test_base_incentive_cannot_be_built(self, make_token):
        rewarded = make_token()
        with pytest.raises(TypeError):
            Incentive(
                name="n", description="d", claim_link="c", chain_id=1,
                rewarded_token=rewarded, involved_tokens=[rewarded],
                source=IncentiveSource.ACI_ROUNDS, status=Status.LIVE,
            )

    def test_max_end_timestamp_treats_open_end_as_zero(self, make_incentive):
        incentive = make_incentive(campaigns=[CampaignConfig(0, None), CampaignConfig(0, 50)])
        assert incentive.max_end_timestamp() == 50

    def test_fetch_options_build(self):
        options = FetchOptions.build(chain_id=1, status="LIVE", source=["ACI_ROUNDS"], reward_token_address="0xAB")

        assert options.chain_id == [1]
        assert options.status == [Status.LIVE]
        assert options.source == [IncentiveSource.ACI_ROUNDS]
        assert options.reward_token_address == ["0xab"]
        assert options.type is None

    def test_fetch_options_rejects_bad_enum(self):
        with pytest.raises(ValueError):
            FetchOptions.build(status="live")

    def test_fetch_options_without(self):
        options = FetchOptions.build(chain_id=1, status="LIVE").without("status")
        assert options.status is None
        assert options.chain_id == [1]

    def test_campaign_config_round_trip_keys(self):
        config = CampaignConfig.from_dict({"startTimestamp": 1, "endTimestamp": 2, "budget": "10"})
        assert config.to_dict() == {"startTimestamp": 1, "endTimestamp": 2, "budget": "10"}


# ============================================================
# BASE PROVIDER
# ============================================================

class TestBaseProvider:

    @pytest.mark.asyncio
    async def test_results_are_cached_per_options(self, cache, make_incentive):
        provider = StaticProvider(payload=[make_incentive()], cache=cache)

        await provider.get_incentives()
        await provider.get_incentives()
        await provider.get_incentives(FetchOptions.build(chain_id=1))

        assert provider.fetch_count == 2

    @pytest.mark.asyncio
    async def test_health_timeout_returns_false_quickly(self):
        provider = StaticProvider(health=True, health_delay=0.2)

        started = time.monotonic()
        healthy = await provider.is_healthy(timeout=0.1)
        elapsed = time.monotonic() - started

        assert healthy is False
        assert elapsed < 0.18

    @pytest.mark.asyncio
    async def test_health_exception_is_false(self):
        provider = StaticProvider(health=RuntimeError("down"))
        assert await provider.is_healthy() is False

    @pytest.mark.asyncio
    async def test_health_success(self):
        assert await StaticProvider(health=True).is_healthy() is True

    @pytest.mark.asyncio
    async def test_make_request_maps_status_codes(self):
        provider = StaticProvider()

        def fake_session(status: int, headers: dict = None):
            response = MagicMock()
            response.status = status
            response.headers = headers or {}
            response.text = AsyncMock(return_value="error body")
            response.json = AsyncMock(return_value={"ok": True})
            context = MagicMock()
            context.__aenter__ = AsyncMock(return_value=response)
            context.__aexit__ = AsyncMock(return_value=False)
            session = MagicMock()
            session.request = MagicMock(return_value=context)
            return session

        with patch.object(provider, "_get_session", AsyncMock(return_value=fake_session(429, {"Retry-After": "3"}))):
            with pytest.raises(RateLimitError) as exc_info:
                await provider._make_request("GET", "https://example.org")
            assert exc_info.value.retry_after_seconds == 3

        with patch.object(provider, "_get_session", AsyncMock(return_value=fake_session(503))):
            with pytest.raises(FetchError) as exc_info:
                await provider._make_request("GET", "https://example.org")
            assert exc_info.value.is_server_error()

        with patch.object(provider, "_get_session", AsyncMock(return_value=fake_session(200))):
            assert await provider._make_request("GET", "https://example.org") == {"ok": True}

    @pytest.mark.asyncio
    async def test_make_request_maps_timeout_and_bad_body(self):
        async def slow(request):
            await asyncio.sleep(0.5)
            return web.json_response([])

        async def html(request):
            return web.Response(text="<html>maintenance</html>", content_type="text/html")

        app = web.Application()
        app.router.add_get("/slow", slow)
        app.router.add_get("/html", html)

        provider = StaticProvider(timeout=0.1)
        async with TestServer(app) as server:
            try:
                with pytest.raises(FetchError, match="timed out"):
                    await provider._make_request("GET", str(server.make_url("/slow")))
                with pytest.raises(FetchError, match="Invalid JSON"):
                    await provider._make_request("GET", str(server.make_url("/html")))
            finally:
                await provider.close()


# ============================================================
# ACI
# ============================================================

class TestAciProvider:

    @pytest.mark.asyncio
    async def test_normalizes_action(self, clock):
        provider = AciProvider(clock=clock)

        incentives = await provider.normalize({"supply-usdc": aci_action()}, FetchOptions())

        assert len(incentives) == 1
        incentive = incentives[0]
        assert isinstance(incentive, TokenIncentive)
        assert incentive.source == IncentiveSource.ACI_ROUNDS
        assert incentive.status == Status.LIVE
        assert incentive.rewarded_token.address == A_ETH_USDC
        assert incentive.reward_token.symbol == "AAVE"
        assert incentive.rewarded_token.price_feed == "0x8fFfFfd4AfB6115b954Bd326cbe7B4BA576818f6"
        assert incentive.current_campaign_config.apr == 4.5
        assert incentive.current_campaign_config.budget == "5000"
        assert incentive.next_campaign_config.start_timestamp == NOW + 2000
        assert len(incentive.all_campaigns_configs) == 3
        assert incentive.infos_link == "https://governance.aave.com/t/merit"
        assert incentive.description == "Supply USDC on Aave"

    @pytest.mark.asyncio
    async def test_action_without_tokens_is_skipped(self, clock):
        provider = AciProvider(clock=clock)
        incentives = await provider.normalize({"a": aci_action(actionTokens=[])}, FetchOptions())
        assert incentives == []

    @pytest.mark.asyncio
    async def test_malformed_action_does_not_stop_others(self, clock):
        provider = AciProvider(clock=clock)
        broken = aci_action()
        del broken["displayName"]

        incentives = await provider.normalize({"broken": broken, "ok": aci_action()}, FetchOptions())

        assert len(incentives) == 1

    @pytest.mark.asyncio
    async def test_fetch_rejects_non_object_payload(self):
        provider = AciProvider()
        with patch.object(provider, "_make_request", AsyncMock(return_value=[])):
            with pytest.raises(NormalizationError):
                await provider.fetch_raw(FetchOptions())

    @pytest.mark.asyncio
    async def test_get_incentives_uses_single_cache_entry(self, cache, clock):
        provider = AciProvider(cache=cache, clock=clock)
        request = AsyncMock(return_value={"a": aci_action()})

        with patch.object(provider, "_make_request", request):
            await provider.get_incentives(FetchOptions.build(chain_id=1))
            await provider.get_incentives(FetchOptions.build(chain_id=8453))

        request.assert_awaited_once()
        assert "provider:aci" in cache.keys()

    @pytest.mark.asyncio
    async def test_fetch_error_propagates_uncached(self, cache):
        provider = AciProvider(cache=cache)
        with patch.object(provider, "_make_request", AsyncMock(side_effect=FetchError("HTTP 500", status_code=500))):
            with pytest.raises(FetchError):
                await provider.get_incentives()
        assert cache.keys() == []


# ============================================================
# MERKL
# ============================================================

class TestMerklProvider:

    def test_protocol_ids(self):
        provider = MerklProvider()
        assert protocol_for_chain(57073) == "tydro"
        assert provider.protocol_ids() == ["aave"]
        assert provider.protocol_ids(FetchOptions.build(chain_id=[1, 57073, 8453])) == ["aave", "tydro"]
        assert provider.cache_key(FetchOptions.build(chain_id=57073)) == "provider:merkl:tydro"

    @pytest.mark.asyncio
    async def test_paginates_until_empty_page(self):
        provider = MerklProvider()
        request = AsyncMock(side_effect=[[merkl_opportunity()], [merkl_opportunity()], []])

        with patch.object(provider, "_make_request", request):
            raw = await provider.fetch_raw(FetchOptions())

        assert len(raw) == 2
        pages = [call.kwargs["params"]["page"] for call in request.await_args_list]
        assert pages == [0, 1, 2]
        params = request.await_args_list[0].kwargs["params"]
        assert params["campaigns"] == "true"
        assert params["mainProtocolId"] == "aave"
        assert params["items"] == 100

    @pytest.mark.asyncio
    async def test_non_list_page_is_rejected(self):
        provider = MerklProvider()
        with patch.object(provider, "_make_request", AsyncMock(return_value={"error": "x"})):
            with pytest.raises(NormalizationError):
                await provider.fetch_raw(FetchOptions())

    def test_filters_creators_and_unknown_explorers(self):
        provider = MerklProvider(whitelisted_creators=[CREATOR.upper().replace("0X", "0x")])
        opportunities = [
            merkl_opportunity(),
            merkl_opportunity(campaigns=[merkl_campaign(merkl_reward(), creator="0x" + "99" * 20)]),
            merkl_opportunity(explorerAddress=STATA_LIKE),
        ]

        kept = provider._filter_opportunities(opportunities)

        assert len(kept) == 1

    def test_empty_whitelist_accepts_every_creator(self):
        provider = MerklProvider()
        opportunity = merkl_opportunity(campaigns=[merkl_campaign(merkl_reward(), creator="0x" + "99" * 20)])
        assert len(provider._filter_opportunities([opportunity])) == 1

    @pytest.mark.asyncio
    async def test_normalizes_token_reward(self, clock):
        provider = MerklProvider(clock=clock)

        incentives = await provider.normalize([merkl_opportunity()], FetchOptions())

        assert len(incentives) == 1
        incentive = incentives[0]
        assert isinstance(incentive, TokenIncentive)
        assert incentive.status == Status.LIVE
        assert incentive.current_apr == 3.2
        assert [t.address for t in incentive.involved_tokens] == [A_ETH_USDC]
        assert incentive.rewarded_token.symbol == "aEthUSDC"
        assert incentive.current_campaign_config.apr == pytest.approx(5.0)
        assert incentive.current_campaign_config.budget == "1000000"

    @pytest.mark.asyncio
    async def test_one_incentive_per_reward_token(self, clock):
        provider = MerklProvider(clock=clock)
        points = merkl_reward("0x" + "77" * 20, "PRETGE", "TYDRO")
        opportunity = merkl_opportunity(campaigns=[
            merkl_campaign(merkl_reward()),
            merkl_campaign(merkl_reward()),
            merkl_campaign(points),
        ])

        incentives = await provider.normalize([opportunity], FetchOptions())

        assert len(incentives) == 2
        token_incentive, point_incentive = incentives
        assert len(token_incentive.all_campaigns_configs) == 2
        assert isinstance(point_incentive, PointWithoutValueIncentive)
        assert point_incentive.point.name == "TYDRO"
        assert point_incentive.point.protocol == "aave"
        assert len(point_incentive.all_campaigns_configs) == 1

    @pytest.mark.asyncio
    async def test_unknown_status_falls_back_to_campaigns(self, clock):
        provider = MerklProvider(clock=clock)
        incentives = await provider.normalize([merkl_opportunity(status="NONE")], FetchOptions())
        assert incentives[0].status == Status.LIVE


# ============================================================
# ONCHAIN
# ============================================================

class TestComputeApr:

    def test_formula(self):
        info = reward_info(emission=10**18)
        apr = compute_apr(info, 1.0, 6, 1.0, 315_360_000 * 10**6)
        assert apr == pytest.approx(10.0)

    def test_missing_price_is_zero(self):
        info = reward_info()
        assert compute_apr(info, None, 6, 1.0, 10**6) == 0.0
        assert compute_apr(info, 1.0, 6, 0, 10**6) == 0.0

    def test_empty_supply_is_zero(self):
        assert compute_apr(reward_info(), 1.0, 6, 1.0, 0) == 0.0


class TestOnchainProvider:

    @pytest.mark.asyncio
    async def test_live_supply_reward(self, clock, onchain_parts):
        ui_reader, erc20_reader, price_service = onchain_parts
        provider = OnchainProvider(ui_reader, erc20_reader, price_service, clock=clock)

        incentives = await provider.get_incentives()

        assert len(incentives) == 1
        incentive = incentives[0]
        assert incentive.name == "Supply USDC"
        assert incentive.description == "Supply USDC on Aave V3 Ethereum to start earning AAVE rewards."
        assert incentive.status == Status.LIVE
        assert incentive.rewarded_token.address == A_ETH_USDC
        assert incentive.reward_token.price == 1.0
        assert incentive.current_apr == pytest.approx(10.0)
        assert incentive.all_campaigns_configs == [CampaignConfig(0, NOW + 1000, apr=incentive.current_apr)]
        assert incentive.current_campaign_config is not None

    @pytest.mark.asyncio
    async def test_ended_emission_is_past_without_apr(self, clock, onchain_parts):
        ui_reader, erc20_reader, price_service = onchain_parts
        ui_reader.get_reserves_incentives_data.return_value = [usdc_reserve([reward_info(end=NOW - 1)])]
        provider = OnchainProvider(ui_reader, erc20_reader, price_service, clock=clock)

        incentives = await provider.get_incentives()

        assert incentives[0].status == Status.PAST
        assert incentives[0].current_apr is None
        assert incentives[0].current_campaign_config is None
        erc20_reader.total_supply.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_emission_ending_now_is_still_live(self, clock, onchain_parts):
        ui_reader, erc20_reader, price_service = onchain_parts
        ui_reader.get_reserves_incentives_data.return_value = [usdc_reserve([reward_info(end=NOW)])]
        provider = OnchainProvider(ui_reader, erc20_reader, price_service, clock=clock)

        incentive = (await provider.get_incentives())[0]

        assert incentive.status == Status.LIVE
        assert incentive.status == campaign_status(0, NOW, NOW)
        assert incentive.current_campaign_config == incentive.all_campaigns_configs[0]
        erc20_reader.total_supply.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_borrow_side_uses_debt_token(self, clock, onchain_parts):
        ui_reader, erc20_reader, price_service = onchain_parts
        ui_reader.get_reserves_incentives_data.return_value = [usdc_reserve([], [reward_info()])]
        provider = OnchainProvider(ui_reader, erc20_reader, price_service, clock=clock)

        incentives = await provider.get_incentives()

        assert incentives[0].name == "Borrow USDC"
        assert incentives[0].rewarded_token.symbol == "variableDebtEthUSDC"

    @pytest.mark.asyncio
    async def test_missing_price_gives_zero_apr(self, clock, onchain_parts):
        ui_reader, erc20_reader, price_service = onchain_parts
        price_service.get_price.return_value = None
        provider = OnchainProvider(ui_reader, erc20_reader, price_service, clock=clock)

        incentives = await provider.get_incentives()

        assert incentives[0].current_apr == 0.0

    @pytest.mark.asyncio
    async def test_supply_read_failure_leaves_apr_unset(self, clock, onchain_parts):
        ui_reader, erc20_reader, price_service = onchain_parts
        erc20_reader.total_supply.side_effect = ContractReadError("boom", 1, A_ETH_USDC, "totalSupply")
        provider = OnchainProvider(ui_reader, erc20_reader, price_service, clock=clock)

        incentives = await provider.get_incentives()

        assert incentives[0].current_apr is None

    @pytest.mark.asyncio
    async def test_other_chains_are_not_read(self, clock, onchain_parts):
        ui_reader, erc20_reader, price_service = onchain_parts
        provider = OnchainProvider(ui_reader, erc20_reader, price_service, clock=clock)

        assert await provider.get_incentives(FetchOptions.build(chain_id=8453)) == []
        ui_reader.get_reserves_incentives_data.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_health(self, onchain_parts):
        ui_reader, erc20_reader, price_service = onchain_parts
        provider = OnchainProvider(ui_reader, erc20_reader, price_service)
        assert await provider.is_healthy() is True

        ui_reader.get_reserves_incentives_data.return_value = []
        assert await provider.is_healthy() is False

        ui_reader.get_reserves_incentives_data.side_effect = ContractReadError("x", 1, "0x", "f")
        assert await provider.is_healthy() is False

    @pytest.mark.asyncio
    async def test_default_instances(self, onchain_parts):
        provider = OnchainProvider(*onchain_parts)
        assert provider.instances == (AAVE_V3_ETHEREUM,)


# ============================================================
# EXTERNAL POINTS
# ============================================================

class TestExternalPointsProvider:

    @pytest.mark.asyncio
    async def test_builds_one_incentive_per_program_chain_token(self, clock):
        clock.advance(days=30)
        provider = ExternalPointsProvider(clock=clock)

        incentives = await provider.get_incentives()

        assert len(incentives) == 9
        assert all(isinstance(i, PointIncentive) for i in incentives)
        assert all(i.source == IncentiveSource.HARDCODED for i in incentives)
        kernel = next(i for i in incentives if i.point.protocol == "Kernel")
        assert kernel.status == Status.PAST
        ethena = next(i for i in incentives if i.point.protocol == "Ethena")
        assert ethena.status == Status.LIVE
        assert ethena.point_value == 20
        assert ethena.point_value_unit == "per_dollar"
        assert ethena.claim_link == "https://www.ethena.fi/sats"

    @pytest.mark.asyncio
    async def test_honours_chain_option(self, clock):
        provider = ExternalPointsProvider(clock=clock)
        incentives = await provider.get_incentives(FetchOptions.build(chain_id=8453))
        assert [i.chain_id for i in incentives] == [8453]

    @pytest.mark.asyncio
    async def test_windows_of_same_token_are_grouped(self, clock):
        program = PointProgram("p", "P Points", "P", "desc", "https://p", "per_token")
        campaigns = [
            PointCampaign("p", 1, A_ETH_USDC, point_value=1, start_timestamp=0, end_timestamp=10),
            PointCampaign("p", 1, A_ETH_USDC.lower(), point_value=2),
        ]
        provider = ExternalPointsProvider(programs=[program], campaigns=campaigns, clock=clock)

        incentives = await provider.get_incentives()

        assert len(incentives) == 1
        assert len(incentives[0].all_campaigns_configs) == 2
        assert incentives[0].point_value == 2
        assert incentives[0].all_campaigns_configs[1].start_timestamp == 0

    @pytest.mark.asyncio
    async def test_unknown_program_and_token_are_skipped(self, clock):
        program = PointProgram("p", "P Points", "P", "desc", "https://p", "per_token")
        campaigns = [
            PointCampaign("missing", 1, A_ETH_USDC),
            PointCampaign("p", 1, "0x" + "00" * 20),
        ]
        provider = ExternalPointsProvider(programs=[program], campaigns=campaigns, clock=clock)

        assert await provider.get_incentives() == []

    @pytest.mark.asyncio
    async def test_always_healthy(self):
        assert await ExternalPointsProvider().is_healthy() is True


# ============================================================
# REGISTRY
# ============================================================

class TestProviderRegistry:

    def test_register_and_lookup(self):
        registry = ProviderRegistry()
        aci = AciProvider()
        merkl = MerklProvider()
        registry.register(aci)
        registry.register(merkl)

        assert registry.list_providers() == ["aci", "merkl"]
        assert registry.get("aci") is aci
        assert "merkl" in registry
        assert registry.by_source(IncentiveSource.MERKL_API) == [merkl]
        assert list(registry) == [aci, merkl]

    def test_register_replaces_same_name(self):
        registry = ProviderRegistry()
        registry.register(AciProvider())
        replacement = AciProvider()
        registry.register(replacement)

        assert len(registry) == 1
        assert registry.get("aci") is replacement

    def test_unregister(self):
        registry = ProviderRegistry()
        registry.register(AciProvider())
        assert registry.unregister("aci") is not None
        assert registry.unregister("aci") is None
        assert len(registry) == 0

    def test_default_registry(self, cache, onchain_parts):
        config = AppConfig(merkl_whitelisted_creators=[CREATOR])
        reader = MagicMock()
        price_service = onchain_parts[2]

        registry = create_default_registry(config, cache, reader, price_service)

        assert registry.list_providers() == ["aci", "merkl", "external_points", "onchain"]
        assert registry.get("merkl")._whitelist == {CREATOR}
        assert {p.source for p in registry} == set(IncentiveSource)

    @pytest.mark.asyncio
    async def test_close_closes_providers(self):
        registry = ProviderRegistry()
        provider = StaticProvider()
        provider.close = AsyncMock()
        registry.register(provider)

        await registry.close()

        provider.close.assert_awaited_once()


class TestIncentiveTypes:

    def test_declared_variants(self):
        assert AciProvider.INCENTIVE_TYPES == (IncentiveType.TOKEN,)
        assert IncentiveType.POINT_WITHOUT_VALUE in MerklProvider.INCENTIVE_TYPES
        assert ExternalPointsProvider.INCENTIVE_TYPES == (IncentiveType.POINT,)
