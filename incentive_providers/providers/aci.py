"""
ACI Provider - curated merit rounds published by the Aave Chan Initiative.

Endpoint:
- /api/merit/all-actions-data - every action with its funding rounds

One TokenIncentive per action. The first action token is the
rewarded token, every action token is involved.
"""

import logging
from typing import Any, Optional

from chain.models import Token
from core.cache import make_cache_key
from core.constants import PROVIDER_CACHE_PREFIX
from incentive_providers.base import BaseIncentiveProvider
from incentive_providers.campaigns import select_campaign_configs
from incentive_providers.exceptions import NormalizationError
from incentive_providers.models import (
    CampaignConfig,
    FetchOptions,
    Incentive,
    IncentiveSource,
    IncentiveType,
    TokenIncentive,
)


logger = logging.getLogger(__name__)


class AciProvider(BaseIncentiveProvider):
    """Aave Chan Initiative merit actions."""

    API_URL = "https://apps.aavechan.com/api/merit/all-actions-data"
    CLAIM_LINK = "https://apps.aavechan.com/merit"

    INCENTIVE_TYPES = (IncentiveType.TOKEN,)

    @property
    def name(self) -> str:
        return "aci"

    @property
    def source(self) -> IncentiveSource:
        return IncentiveSource.ACI_ROUNDS

    def cache_key(self, options: Optional[FetchOptions] = None) -> str:
        # Upstream ignores every option
        return make_cache_key(PROVIDER_CACHE_PREFIX, self.name)

    async def fetch_raw(self, options: FetchOptions) -> dict[str, Any]:
        data = await self._make_request("GET", self.API_URL)
        if not isinstance(data, dict):
            raise NormalizationError(
                message=f"Expected an object of actions, got {type(data).__name__}",
                source_name=self.name,
                raw_data=data,
            )
        return data

    async def normalize(self, raw: dict[str, Any], options: FetchOptions) -> list[Incentive]:
        now = self.now()
        incentives: list[Incentive] = []

        for action_name, action in raw.items():
            try:
                incentive = self._normalize_action(action, now)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"[{self.name}] Skipping malformed action {action_name}: {e}")
                continue
            if incentive is not None:
                incentives.append(incentive)

        return incentives

    def _normalize_action(self, action: dict[str, Any], now: int) -> Optional[TokenIncentive]:
        involved_tokens = [self._to_token(t) for t in action.get("actionTokens") or []]
        if not involved_tokens:
            logger.error(
                f"[{self.name}] No valid rewarded tokens for action "
                f"{action.get('displayName')} on chain {action.get('chainId')}"
            )
            return None

        configs = [self._to_campaign_config(c) for c in action.get("campaigns") or []]
        selection = select_campaign_configs(configs, now)

        info = action.get("info") or {}
        forum_link = (info.get("forumLink") or {}).get("link")

        return TokenIncentive(
            name=action["displayName"],
            description=info.get("wholeDescriptionString") or "",
            claim_link=self.CLAIM_LINK,
            chain_id=int(action["chainId"]),
            rewarded_token=involved_tokens[0],
            involved_tokens=involved_tokens,
            source=self.source,
            status=selection.status,
            all_campaigns_configs=selection.all,
            current_campaign_config=selection.current,
            next_campaign_config=selection.next,
            infos_link=forum_link,
            reward_token=self._to_token(action["rewardToken"]),
            current_apr=action.get("apr"),
        )

    @staticmethod
    def _to_token(raw: dict[str, Any]) -> Token:
        book = raw.get("book") or {}
        return Token(
            name=raw["name"],
            symbol=raw["symbol"],
            address=raw["address"],
            chain_id=int(raw["chainId"]),
            decimals=int(raw["decimals"]),
            price_feed=book.get("ORACLE"),
        )

    @staticmethod
    def _to_campaign_config(raw: dict[str, Any]) -> CampaignConfig:
        fixed_apr = raw.get("fixedApr") or None

        budget = raw.get("fixedBudget")
        if budget is None and fixed_apr is not None:
            budget = fixed_apr.get("maxBudget")

        end = raw.get("endTimestamp")
        return CampaignConfig(
            start_timestamp=int(raw["startTimestamp"]),
            end_timestamp=int(end) if end is not None else None,
            budget=str(budget) if budget is not None else None,
            apr=fixed_apr.get("apr") if fixed_apr is not None else None,
        )

    async def health_check(self) -> bool:
        return await self._probe(self.API_URL)
