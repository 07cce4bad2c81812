"""
Incentives Service - fan-out, enrichment and ranking of incentives.

============================================================
RESPONSIBILITY
============================================================
- Query every relevant provider concurrently
- Tolerate any provider failing or timing out
- Run the aggregation pipeline over what came back
- Report per-provider and global health

============================================================
FAILURE POLICY
============================================================
A provider that raises or exceeds its time budget is logged
at error level and contributes nothing. fetch_incentives()
never raises because of a provider; a total outage yields
an empty list.

============================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from core.clock import ClockFactory, ClockProtocol
from core.concurrency import gather_settled, with_timeout
from core.constants import DEFAULT_HEALTH_CHECK_TIMEOUT, DEFAULT_PROVIDER_TIMEOUT
from incentive_providers.base import BaseIncentiveProvider
from incentive_providers.models import FetchOptions, GlobalStatus, Incentive
from incentive_providers.registry import ProviderRegistry
from incentives.aggregation import (
    apply_filters,
    assign_ids,
    gather_equal_incentives,
    sort_incentives,
)
from incentives.enrichment import TokenEnricher


logger = logging.getLogger(__name__)


@dataclass
class ProvidersStatus:
    """Health of every provider plus the derived global status."""
    status: GlobalStatus
    providers_status: dict[str, bool] = field(default_factory=dict)

    @classmethod
    def from_health(cls, health: dict[str, bool]) -> "ProvidersStatus":
        values = list(health.values())
        if all(values):
            status = GlobalStatus.HEALTHY
        elif not any(values):
            status = GlobalStatus.DOWN
        else:
            status = GlobalStatus.DEGRADED
        return cls(status=status, providers_status=dict(health))

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "providersStatus": dict(self.providers_status),
        }


class IncentivesService:
    """
    Aggregates incentives across registered providers.

    Usage:
        service = IncentivesService(registry)
        incentives = await service.fetch_incentives(
            FetchOptions.build(chain_id=1, status="LIVE")
        )
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        enricher: Optional[TokenEnricher] = None,
        clock: Optional[ClockProtocol] = None,
        provider_timeout: Optional[float] = DEFAULT_PROVIDER_TIMEOUT,
        health_check_timeout: float = DEFAULT_HEALTH_CHECK_TIMEOUT,
    ) -> None:
        self._registry = registry
        self._enricher = enricher or TokenEnricher()
        self._clock = clock
        self._provider_timeout = provider_timeout
        self._health_check_timeout = health_check_timeout

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    @property
    def clock(self) -> ClockProtocol:
        return self._clock or ClockFactory.get_clock()

    # --------------------------------------------------------
    # Incentives
    # --------------------------------------------------------

    def select_providers(self, options: FetchOptions) -> list[BaseIncentiveProvider]:
        """Providers able to contribute to the source and type filters."""
        selected = []
        for provider in self._registry:
            if options.source is not None and provider.source not in options.source:
                continue
            if options.type is not None and not set(provider.INCENTIVE_TYPES) & set(options.type):
                continue
            selected.append(provider)
        return selected

    async def fetch_raw_incentives(self, options: FetchOptions) -> list[Incentive]:
        """Tolerant fan-out over the selected providers."""
        providers = self.select_providers(options)
        results = await gather_settled([
            (
                provider.name,
                with_timeout(
                    provider.get_incentives(options),
                    self._provider_timeout,
                    f"Provider {provider.source.value}",
                ),
            )
            for provider in providers
        ])

        incentives: list[Incentive] = []
        for result in results:
            if result.ok:
                incentives.extend(result.value or [])
            else:
                logger.error(f"Provider {result.label} failed: {result.error}")
        return incentives

    async def fetch_incentives(self, options: Optional[FetchOptions] = None) -> list[Incentive]:
        """Finalized incentives: enriched, filtered, identified, merged, sorted."""
        options = options or FetchOptions()

        raw = await self.fetch_raw_incentives(options)
        enriched = self._enricher.enrich(raw)
        filtered = apply_filters(enriched, options)
        identified = assign_ids(filtered)
        merged = gather_equal_incentives(identified)
        result = sort_incentives(merged)

        logger.info(f"Aggregated {len(result)} incentives from {len(raw)} raw records")
        return result

    # --------------------------------------------------------
    # Health
    # --------------------------------------------------------

    async def get_health_status(self) -> dict[str, bool]:
        """Provider source -> healthy. A failing probe counts as unhealthy."""
        providers = list(self._registry)
        results = await gather_settled([
            (provider.source.value, provider.is_healthy(self._health_check_timeout))
            for provider in providers
        ])

        health: dict[str, bool] = {}
        for result in results:
            if not result.ok:
                logger.error(f"Health check of {result.label} raised: {result.error}")
            health[result.label] = bool(result.ok and result.value)
        return health

    async def get_providers_status(self) -> ProvidersStatus:
        return ProvidersStatus.from_health(await self.get_health_status())

    async def close(self) -> None:
        await self._registry.close()
