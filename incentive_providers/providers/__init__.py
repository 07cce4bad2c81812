"""
Providers package - Incentive source implementations.
"""

from incentive_providers.providers.aci import AciProvider
from incentive_providers.providers.external_points import ExternalPointsProvider
from incentive_providers.providers.merkl import MerklProvider
from incentive_providers.providers.onchain import OnchainProvider


__all__ = [
    "AciProvider",
    "ExternalPointsProvider",
    "MerklProvider",
    "OnchainProvider",
]
