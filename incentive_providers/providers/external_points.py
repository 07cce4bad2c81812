"""
External Points Provider - static point programs, no network I/O.

One PointIncentive per (program, chain, rewarded token). Windows
of the same triple are grouped into one record. The point value is
taken from the LIVE window, if any.
"""

import logging
from typing import Any, Optional, Sequence

from core.cache import make_cache_key
from core.constants import BASE_TIMESTAMP, PROVIDER_CACHE_PREFIX
from incentive_providers.base import BaseIncentiveProvider
from incentive_providers.campaigns import select_campaign_configs
from incentive_providers.models import (
    CampaignConfig,
    FetchOptions,
    Incentive,
    IncentiveSource,
    IncentiveType,
    Point,
    PointIncentive,
)
from incentive_providers.providers.points_data import (
    POINT_CAMPAIGNS,
    POINT_PROGRAMS,
    PointCampaign,
    PointProgram,
)


logger = logging.getLogger(__name__)


class ExternalPointsProvider(BaseIncentiveProvider):
    """Point programs run by other protocols on Aave markets."""

    INCENTIVE_TYPES = (IncentiveType.POINT,)

    def __init__(
        self,
        programs: Optional[Sequence[PointProgram]] = None,
        campaigns: Optional[Sequence[PointCampaign]] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._programs = {p.id: p for p in (programs if programs is not None else POINT_PROGRAMS)}
        self._campaigns = tuple(campaigns if campaigns is not None else POINT_CAMPAIGNS)

    @property
    def name(self) -> str:
        return "external_points"

    @property
    def source(self) -> IncentiveSource:
        return IncentiveSource.HARDCODED

    def cache_key(self, options: Optional[FetchOptions] = None) -> str:
        chain_ids = options.chain_id if options else None
        scope = ",".join(str(c) for c in sorted(set(chain_ids))) if chain_ids else "all"
        return make_cache_key(PROVIDER_CACHE_PREFIX, self.name, scope)

    async def fetch_raw(self, options: FetchOptions) -> list[PointCampaign]:
        if not options.chain_id:
            return list(self._campaigns)
        return [c for c in self._campaigns if c.chain_id in options.chain_id]

    async def normalize(self, raw: list[PointCampaign], options: FetchOptions) -> list[Incentive]:
        grouped: dict[tuple[str, int, str], list[PointCampaign]] = {}
        for campaign in raw:
            key = (campaign.program_id, campaign.chain_id, campaign.rewarded_token_address.lower())
            grouped.setdefault(key, []).append(campaign)

        now = self.now()
        incentives: list[Incentive] = []
        for (program_id, chain_id, address), campaigns in grouped.items():
            program = self._programs.get(program_id)
            if program is None:
                logger.error(f"[{self.name}] Point program {program_id} not found")
                continue

            rewarded_token = self._token_book.get_token(address, chain_id)
            if rewarded_token is None:
                logger.warning(f"[{self.name}] Token {address} not found on chain {chain_id}")
                continue

            selection = select_campaign_configs([self._to_campaign_config(c) for c in campaigns], now)
            incentives.append(PointIncentive(
                name=program.name,
                description=program.description,
                claim_link=program.external_link,
                chain_id=chain_id,
                rewarded_token=rewarded_token,
                involved_tokens=[rewarded_token],
                source=self.source,
                status=selection.status,
                all_campaigns_configs=selection.all,
                current_campaign_config=selection.current,
                next_campaign_config=selection.next,
                point=Point(name=program.name, protocol=program.protocol, tge_price=program.tge_price),
                point_value=selection.current.point_value if selection.current else None,
                point_value_unit=program.point_value_unit,
            ))

        return incentives

    @staticmethod
    def _to_campaign_config(campaign: PointCampaign) -> CampaignConfig:
        start = campaign.start_timestamp
        return CampaignConfig(
            start_timestamp=start if start is not None else BASE_TIMESTAMP,
            end_timestamp=campaign.end_timestamp,
            point_value=campaign.point_value,
        )

    async def health_check(self) -> bool:
        return True
