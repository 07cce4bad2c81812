"""
Server - application factory and process wiring.

============================================================
WIRING
============================================================
AppConfig
  └── Web3ContractReader (rpc_urls)
  └── TtlCache (shared by readers, prices, providers)
        ├── TokenPriceService
        ├── ProviderRegistry (ACI, Merkl, external points, onchain)
        └── IncentivesService
  └── ResponseCache (own TtlCache, request TTL)

Everything is built once per process and closed on app cleanup.
============================================================
"""

import logging
from dataclasses import dataclass
from typing import Optional

from aiohttp import web

from api.handlers import IncentivesAPI, setup_routes
from api.response_cache import ResponseCache
from api.serialization import error_envelope, json_response
from chain.rpc import ContractReader, Web3ContractReader
from core.cache import TtlCache
from core.clock import ClockProtocol
from core.config import AppConfig
from incentive_providers.registry import create_default_registry
from incentives.service import IncentivesService
from token_prices.service import TokenPriceService, create_token_price_service


logger = logging.getLogger(__name__)


# ============================================================
# MIDDLEWARE
# ============================================================

@web.middleware
async def not_found_middleware(request: web.Request, handler):
    try:
        return await handler(request)
    except web.HTTPNotFound:
        return json_response(error_envelope("Not Found", "NOT_FOUND"), status=404)


# ============================================================
# CONTEXT
# ============================================================

@dataclass
class AppContext:
    """Long-lived collaborators of one server process."""
    config: AppConfig
    reader: ContractReader
    cache: TtlCache
    price_service: TokenPriceService
    service: IncentivesService
    response_cache: ResponseCache

    async def close(self) -> None:
        await self.service.close()
        await self.price_service.close()
        await self.reader.close()
        logger.info("Incentives context closed")


APP_CONTEXT_KEY = web.AppKey("incentives_context", AppContext)


def build_context(
    config: AppConfig,
    clock: Optional[ClockProtocol] = None,
    reader: Optional[ContractReader] = None,
) -> AppContext:
    """Build the full object graph from configuration."""
    ttls = config.cache_ttls
    reader = reader or Web3ContractReader(config.rpc_urls, request_timeout=config.http_timeout)
    cache = TtlCache(clock=clock, name="incentives")

    price_service = create_token_price_service(
        reader,
        cache,
        ttl=ttls.token_price,
        coingecko_api_key=config.coingecko_api_key,
    )
    registry = create_default_registry(config, cache, reader, price_service, clock=clock)
    service = IncentivesService(
        registry,
        clock=clock,
        provider_timeout=config.provider_timeout,
        health_check_timeout=config.health_check_timeout,
    )
    response_cache = ResponseCache(
        TtlCache(clock=clock, default_ttl=ttls.request, name="http"),
        ttl=ttls.request,
        enabled=not config.disable_cache,
    )

    logger.info(
        f"Built context with {len(registry)} providers, "
        f"response cache {'enabled' if response_cache.enabled else 'disabled'}"
    )
    return AppContext(
        config=config,
        reader=reader,
        cache=cache,
        price_service=price_service,
        service=service,
        response_cache=response_cache,
    )


# ============================================================
# APPLICATION
# ============================================================

def create_app(
    service: IncentivesService,
    response_cache: Optional[ResponseCache] = None,
    config: Optional[AppConfig] = None,
) -> web.Application:
    """
    Create the aiohttp application.

    The response cache is skipped when absent or when the config
    disables caching.
    """
    middlewares = [not_found_middleware]
    if response_cache is not None and not (config and config.disable_cache):
        middlewares.append(response_cache.middleware)

    app = web.Application(middlewares=middlewares)
    setup_routes(app, IncentivesAPI(service, response_cache))
    return app


def create_app_from_config(config: AppConfig) -> web.Application:
    """Application owning its context; everything is closed on cleanup."""
    context = build_context(config)
    app = create_app(context.service, context.response_cache, config)
    app[APP_CONTEXT_KEY] = context

    async def on_cleanup(app: web.Application) -> None:
        await app[APP_CONTEXT_KEY].close()

    app.on_cleanup.append(on_cleanup)
    return app


def run_server(config: AppConfig) -> None:
    app = create_app_from_config(config)
    logger.info(f"Serving incentives API on http://{config.host}:{config.port}")
    web.run_app(app, host=config.host, port=config.port, print=None)
