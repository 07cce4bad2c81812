"""
Incentive Providers Package - one adapter per incentive upstream.

Features:
- Normalized Incentive records across every upstream
- Per-provider TTL cache in front of each fetch
- Timeout-bounded health checks that never raise
- Providers are plain configuration, registered explicitly

Quick Start:
    from incentive_providers import (
        ProviderRegistry,
        AciProvider,
        MerklProvider,
        FetchOptions,
    )

    async def setup():
        registry = ProviderRegistry()
        registry.register(AciProvider())
        registry.register(MerklProvider())

        options = FetchOptions.build(chain_id=1, status="LIVE")
        for provider in registry:
            incentives = await provider.get_incentives(options)

Adding New Providers:
    1. Create class extending BaseIncentiveProvider
    2. Implement: name, source, fetch_raw(), normalize(), health_check()
    3. Register with ProviderRegistry
    4. No changes needed to the aggregation pipeline
"""

from incentive_providers.base import BaseIncentiveProvider
from incentive_providers.campaigns import (
    CampaignSelection,
    campaign_status,
    config_status,
    select_campaign_configs,
)
from incentive_providers.exceptions import (
    FetchError,
    HealthCheckError,
    NormalizationError,
    ProviderError,
    RateLimitError,
)
from incentive_providers.models import (
    CampaignConfig,
    FetchOptions,
    GlobalStatus,
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
from incentive_providers.registry import ProviderRegistry, create_default_registry


__all__ = [
    # Base
    "BaseIncentiveProvider",
    # Campaigns
    "CampaignSelection",
    "campaign_status",
    "config_status",
    "select_campaign_configs",
    # Exceptions
    "FetchError",
    "HealthCheckError",
    "NormalizationError",
    "ProviderError",
    "RateLimitError",
    # Models
    "CampaignConfig",
    "FetchOptions",
    "GlobalStatus",
    "Incentive",
    "IncentiveSource",
    "IncentiveType",
    "Point",
    "PointIncentive",
    "PointWithoutValueIncentive",
    "Status",
    "TokenIncentive",
    # Providers
    "AciProvider",
    "ExternalPointsProvider",
    "MerklProvider",
    "OnchainProvider",
    # Registry
    "ProviderRegistry",
    "create_default_registry",
]
