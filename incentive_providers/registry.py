"""
Provider Registry - ordered set of incentive providers.

The registry is plain configuration: providers are registered
explicitly, iteration follows registration order.
"""

import logging
from typing import Iterator, Optional

import aiohttp

from chain.readers import AaveUiIncentivesReader, Erc20Reader
from chain.rpc import ContractReader
from chain.tokens import TokenBook
from core.cache import TtlCache
from core.clock import ClockProtocol
from core.config import AppConfig
from incentive_providers.base import BaseIncentiveProvider
from incentive_providers.models import IncentiveSource
from incentive_providers.providers import (
    AciProvider,
    ExternalPointsProvider,
    MerklProvider,
    OnchainProvider,
)
from token_prices.service import TokenPriceService


logger = logging.getLogger(__name__)


class ProviderRegistry:
    """
    Registered incentive providers, keyed by name.

    Usage:
        registry = ProviderRegistry()
        registry.register(AciProvider())
        registry.register(MerklProvider())

        for provider in registry:
            incentives = await provider.get_incentives()
    """

    def __init__(self) -> None:
        self._providers: dict[str, BaseIncentiveProvider] = {}

    def register(self, provider: BaseIncentiveProvider) -> None:
        """Register a provider, replacing one with the same name."""
        if provider.name in self._providers:
            logger.warning(f"Provider '{provider.name}' already registered, replacing")
        self._providers[provider.name] = provider
        logger.info(f"Registered provider '{provider.name}' ({provider.source.value})")

    def unregister(self, name: str) -> Optional[BaseIncentiveProvider]:
        provider = self._providers.pop(name, None)
        if provider is not None:
            logger.info(f"Unregistered provider '{name}'")
        return provider

    def get(self, name: str) -> Optional[BaseIncentiveProvider]:
        return self._providers.get(name)

    def by_source(self, source: IncentiveSource) -> list[BaseIncentiveProvider]:
        return [p for p in self._providers.values() if p.source == source]

    def list_providers(self) -> list[str]:
        """Provider names in registration order."""
        return list(self._providers)

    async def close(self) -> None:
        for provider in self._providers.values():
            await provider.close()

    def __iter__(self) -> Iterator[BaseIncentiveProvider]:
        return iter(list(self._providers.values()))

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, name: object) -> bool:
        return name in self._providers


def create_default_registry(
    config: AppConfig,
    cache: TtlCache,
    reader: ContractReader,
    price_service: TokenPriceService,
    clock: Optional[ClockProtocol] = None,
    token_book: Optional[TokenBook] = None,
    session: Optional[aiohttp.ClientSession] = None,
) -> ProviderRegistry:
    """Registry with the four standard providers."""
    ttls = config.cache_ttls
    common = dict(
        cache=cache,
        cache_ttl=ttls.provider_fetch,
        clock=clock,
        timeout=config.http_timeout,
        health_check_timeout=config.health_check_timeout,
        session=session,
        token_book=token_book,
    )

    registry = ProviderRegistry()
    registry.register(AciProvider(**common))
    registry.register(MerklProvider(whitelisted_creators=config.merkl_whitelisted_creators, **common))
    registry.register(ExternalPointsProvider(**common))
    registry.register(OnchainProvider(
        ui_reader=AaveUiIncentivesReader(reader, cache, ttls.ui_incentives),
        erc20_reader=Erc20Reader(reader, cache, ttls.total_supply),
        price_service=price_service,
        **common,
    ))
    return registry
