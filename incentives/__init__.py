"""
Incentives Package - aggregation of provider results.

Quick Start:
    from incentives import IncentivesService
    from incentive_providers import ProviderRegistry, AciProvider, FetchOptions

    registry = ProviderRegistry()
    registry.register(AciProvider())

    service = IncentivesService(registry)
    incentives = await service.fetch_incentives(FetchOptions.build(status="LIVE"))
    status = await service.get_providers_status()
"""

from incentives.aggregation import (
    STATUS_PRIORITY,
    apply_filters,
    assign_ids,
    compute_incentive_id,
    gather_equal_incentives,
    matches_filters,
    sort_campaigns,
    sort_incentives,
)
from incentives.enrichment import TokenEnricher
from incentives.service import IncentivesService, ProvidersStatus


__all__ = [
    "STATUS_PRIORITY",
    "apply_filters",
    "assign_ids",
    "compute_incentive_id",
    "gather_equal_incentives",
    "matches_filters",
    "sort_campaigns",
    "sort_incentives",
    "TokenEnricher",
    "IncentivesService",
    "ProvidersStatus",
]
