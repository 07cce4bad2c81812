"""
Merkl Provider - campaign aggregator REST API.

Endpoints used:
- /v4/opportunities - opportunities with their campaigns (paginated)

Pagination:
- items=100 per page, page=0.. until an empty page comes back

Filtering applied before normalization:
- campaigns from non-whitelisted creators are dropped
  (empty whitelist accepts every creator)
- opportunities whose explorer address is not a known, non-static
  Aave token are dropped
"""

import logging
from typing import Any, Iterable, Optional

from chain.models import Token, TokenKind
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
    Point,
    PointWithoutValueIncentive,
    Status,
    TokenIncentive,
)


logger = logging.getLogger(__name__)


# Main protocol id per chain, Aave on Ink is operated by Tydro
DEFAULT_PROTOCOL = "aave"
CHAIN_PROTOCOLS: dict[int, str] = {
    57073: "tydro",
}

# Merkl reward token type -> incentive variant
REWARD_TYPES: dict[str, IncentiveType] = {
    "TOKEN": IncentiveType.TOKEN,
    "PRETGE": IncentiveType.POINT_WITHOUT_VALUE,
}

_EXCLUDED_INVOLVED_KINDS = (TokenKind.STATA, TokenKind.UNDERLYING)


def protocol_for_chain(chain_id: int) -> str:
    return CHAIN_PROTOCOLS.get(chain_id, DEFAULT_PROTOCOL)


class MerklProvider(BaseIncentiveProvider):
    """
    Merkl opportunities for the Aave protocol family.

    Usage:
        provider = MerklProvider(whitelisted_creators=["0x..."])
        incentives = await provider.get_incentives(FetchOptions.build(chain_id=1))
    """

    API_URL = "https://api.merkl.xyz/v4"
    OPPORTUNITIES_URL = f"{API_URL}/opportunities"
    CLAIM_LINK = "https://app.merkl.xyz/"
    ITEMS_PER_PAGE = 100

    INCENTIVE_TYPES = (IncentiveType.TOKEN, IncentiveType.POINT_WITHOUT_VALUE)

    def __init__(
        self,
        whitelisted_creators: Optional[Iterable[str]] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._whitelist = {a.lower() for a in whitelisted_creators or ()}

    @property
    def name(self) -> str:
        return "merkl"

    @property
    def source(self) -> IncentiveSource:
        return IncentiveSource.MERKL_API

    # --------------------------------------------------------
    # Fetching
    # --------------------------------------------------------

    def protocol_ids(self, options: Optional[FetchOptions] = None) -> list[str]:
        """Distinct main protocol ids needed for the requested chains."""
        chain_ids = options.chain_id if options else None
        if not chain_ids:
            return [DEFAULT_PROTOCOL]
        return sorted({protocol_for_chain(c) for c in chain_ids})

    def cache_key(self, options: Optional[FetchOptions] = None) -> str:
        return make_cache_key(PROVIDER_CACHE_PREFIX, self.name, ",".join(self.protocol_ids(options)))

    async def fetch_raw(self, options: FetchOptions) -> list[dict[str, Any]]:
        params: dict[str, Any] = {
            "campaigns": "true",
            "mainProtocolId": ",".join(self.protocol_ids(options)),
            "items": self.ITEMS_PER_PAGE,
        }

        opportunities: list[dict[str, Any]] = []
        page = 0
        while True:
            batch = await self._make_request(
                "GET",
                self.OPPORTUNITIES_URL,
                params={**params, "page": page},
            )
            if not isinstance(batch, list):
                raise NormalizationError(
                    message=f"Expected a list of opportunities on page {page}",
                    source_name=self.name,
                    raw_data=batch,
                )
            if not batch:
                break
            opportunities.extend(batch)
            page += 1

        logger.debug(f"[{self.name}] Read {len(opportunities)} opportunities over {page + 1} pages")
        return self._filter_opportunities(opportunities)

    def _filter_opportunities(self, opportunities: list[dict[str, Any]]) -> list[dict[str, Any]]:
        kept = []
        for opportunity in opportunities:
            campaigns = [
                c for c in opportunity.get("campaigns") or []
                if self._is_whitelisted(c.get("creatorAddress"))
            ]
            if not campaigns:
                continue

            explorer = opportunity.get("explorerAddress")
            info = self._token_book.resolve(explorer, opportunity.get("chainId")) if explorer else None
            if info is None or info.kind == TokenKind.STATA:
                continue

            kept.append({**opportunity, "campaigns": campaigns})
        return kept

    def _is_whitelisted(self, creator: Optional[str]) -> bool:
        if not self._whitelist:
            return True
        return bool(creator) and creator.lower() in self._whitelist

    # --------------------------------------------------------
    # Normalization
    # --------------------------------------------------------

    async def normalize(self, raw: list[dict[str, Any]], options: FetchOptions) -> list[Incentive]:
        now = self.now()
        incentives: list[Incentive] = []
        for opportunity in raw:
            try:
                incentives.extend(self._normalize_opportunity(opportunity, now))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(
                    f"[{self.name}] Skipping malformed opportunity {opportunity.get('name')}: {e}"
                )
        return incentives

    def _normalize_opportunity(self, opportunity: dict[str, Any], now: int) -> list[Incentive]:
        chain_id = int(opportunity["chainId"])
        involved_tokens = [
            self._to_token(t) for t in opportunity.get("tokens") or []
            if self._is_involved(t)
        ]

        rewarded_token = self._token_book.get_token(opportunity["explorerAddress"], chain_id)
        if rewarded_token is not None and not any(t.same_token(rewarded_token) for t in involved_tokens):
            involved_tokens.append(rewarded_token)

        if not involved_tokens:
            logger.error(
                f"[{self.name}] No valid rewarded tokens for opportunity "
                f"{opportunity.get('name')} on chain {chain_id}"
            )
            return []
        if rewarded_token is None:
            rewarded_token = involved_tokens[0]

        incentives: list[Incentive] = []
        for raw_reward in self._unique_reward_tokens(opportunity["campaigns"]):
            reward_token = self._to_token(raw_reward)
            incentive_type = REWARD_TYPES.get(raw_reward.get("type"))
            if incentive_type is None:
                logger.error(f"[{self.name}] Unknown reward type {raw_reward.get('type')} for {reward_token}")
                continue

            configs = [
                self._to_campaign_config(c) for c in opportunity["campaigns"]
                if c["rewardToken"]["address"].lower() == reward_token.address.lower()
            ]
            selection = select_campaign_configs(configs, now)

            common: dict[str, Any] = dict(
                name=opportunity["name"],
                description=opportunity.get("description") or "",
                claim_link=self.CLAIM_LINK,
                chain_id=chain_id,
                rewarded_token=rewarded_token,
                involved_tokens=list(involved_tokens),
                source=self.source,
                status=self._status(opportunity.get("status"), selection.status),
                all_campaigns_configs=selection.all,
                current_campaign_config=selection.current,
                next_campaign_config=selection.next,
            )

            if incentive_type == IncentiveType.TOKEN:
                incentives.append(TokenIncentive(
                    **common,
                    reward_token=reward_token,
                    current_apr=opportunity.get("apr"),
                ))
            else:
                incentives.append(PointWithoutValueIncentive(
                    **common,
                    point=Point(
                        name=reward_token.name,
                        protocol=protocol_for_chain(chain_id),
                        token=reward_token,
                    ),
                ))

        return incentives

    def _is_involved(self, raw_token: dict[str, Any]) -> bool:
        info = self._token_book.resolve(raw_token.get("address"), raw_token.get("chainId"))
        return info is not None and info.kind not in _EXCLUDED_INVOLVED_KINDS

    @staticmethod
    def _unique_reward_tokens(campaigns: list[dict[str, Any]]) -> list[dict[str, Any]]:
        seen: dict[str, dict[str, Any]] = {}
        for campaign in campaigns:
            reward = campaign["rewardToken"]
            seen.setdefault(reward["address"].lower(), reward)
        return list(seen.values())

    @staticmethod
    def _status(raw_status: Optional[str], fallback: Status) -> Status:
        try:
            return Status(raw_status)
        except ValueError:
            return fallback

    @staticmethod
    def _to_token(raw: dict[str, Any]) -> Token:
        return Token(
            name=raw.get("name") or raw["symbol"],
            symbol=raw["symbol"],
            address=raw["address"],
            chain_id=int(raw["chainId"]),
            decimals=int(raw["decimals"]),
            price=raw.get("price"),
        )

    @staticmethod
    def _to_campaign_config(raw: dict[str, Any]) -> CampaignConfig:
        params = raw.get("params") or {}
        settings = (params.get("distributionMethodParameters") or {}).get("distributionSettings") or {}
        apr_setup = settings.get("apr")

        end = raw.get("endTimestamp")
        return CampaignConfig(
            start_timestamp=int(raw["startTimestamp"]),
            end_timestamp=int(end) if end is not None else None,
            budget=raw.get("amount"),
            apr=float(apr_setup) * 100 if apr_setup else None,
        )

    async def health_check(self) -> bool:
        return await self._probe(self.OPPORTUNITIES_URL)
