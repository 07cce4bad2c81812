"""
Incentives API Endpoints.

============================================================
PURPOSE
============================================================
HTTP surface of the aggregator.

PRINCIPLES:
- ALL endpoints are READ-ONLY
- Every body is a JSON envelope
- Caller mistakes are 400 with details, everything else 500

============================================================
"""

import logging
from typing import Optional

from aiohttp import web

from api.response_cache import ResponseCache
from api.serialization import (
    error_envelope,
    incentives_envelope,
    json_response,
    success_envelope,
)
from api.validation import parse_incentives_query, parse_wrapper_token_request
from chain.wrapper_tokens import get_wrapper_token_map, resolve_wrapper_token
from core.exceptions import ValidationError
from incentives.service import IncentivesService


logger = logging.getLogger(__name__)


def validation_error_response(error: ValidationError) -> web.Response:
    return json_response(
        error_envelope(error.message, "VALIDATION_ERROR", error.details),
        status=400,
    )


class IncentivesAPI:
    """
    Request handlers bound to one IncentivesService.

    Usage:
        api = IncentivesAPI(service, response_cache)
        app.router.add_get("/incentives", api.get_incentives)
    """

    def __init__(
        self,
        service: IncentivesService,
        response_cache: Optional[ResponseCache] = None,
    ):
        self._service = service
        self._response_cache = response_cache

    # --------------------------------------------------------
    # INCENTIVES
    # --------------------------------------------------------

    async def ping(self, request: web.Request) -> web.Response:
        """GET /ping"""
        return json_response({"message": "pong"})

    async def get_incentives(self, request: web.Request) -> web.Response:
        """
        GET /incentives

        Filters: chainId, status, source, type, rewardTokenAddress,
        rewardedTokenAddress, involvedTokenAddress.
        """
        try:
            options = parse_incentives_query(request.query)
        except ValidationError as e:
            logger.info(f"Rejected /incentives query: {e.details}")
            return validation_error_response(e)

        try:
            incentives = await self._service.fetch_incentives(options)
            return json_response(incentives_envelope(incentives, self._service.clock))
        except Exception as e:
            logger.error(f"Error fetching incentives: {e}")
            return json_response(
                error_envelope("Failed to fetch incentives", "FETCH_ERROR"),
                status=500,
            )

    # --------------------------------------------------------
    # HEALTH
    # --------------------------------------------------------

    async def incentives_health(self, request: web.Request) -> web.Response:
        """GET /incentives/health"""
        try:
            health = await self._service.get_health_status()
            return json_response(success_envelope(health))
        except Exception as e:
            logger.error(f"Error checking provider health: {e}")
            return json_response(
                error_envelope("Failed to check providers health", "HEALTH_ERROR"),
                status=500,
            )

    async def providers_status(self, request: web.Request) -> web.Response:
        """GET /health"""
        try:
            status = await self._service.get_providers_status()
            return json_response(success_envelope(status.to_dict()))
        except Exception as e:
            logger.error(f"Error computing providers status: {e}")
            return json_response(
                error_envelope("Failed to check providers health", "HEALTH_ERROR"),
                status=500,
            )

    # --------------------------------------------------------
    # WRAPPER TOKENS
    # --------------------------------------------------------

    async def wrapper_tokens(self, request: web.Request) -> web.Response:
        """GET /wrapper-tokens"""
        return json_response(success_envelope(get_wrapper_token_map()))

    async def resolve_wrapper_token(self, request: web.Request) -> web.Response:
        """GET /wrapper-tokens/{address}/resolved-token?chainId="""
        try:
            address, chain_id = parse_wrapper_token_request(
                request.match_info.get("address", ""),
                request.query,
            )
        except ValidationError as e:
            return validation_error_response(e)

        return json_response({"resolvedAddress": resolve_wrapper_token(address, chain_id)})

    # --------------------------------------------------------
    # CACHE
    # --------------------------------------------------------

    async def cache_stats(self, request: web.Request) -> web.Response:
        """GET /cache/stats"""
        if self._response_cache is None:
            return json_response(success_envelope({"enabled": False}))
        return json_response(success_envelope(self._response_cache.get_stats()))


def setup_routes(app: web.Application, api: IncentivesAPI) -> None:
    app.router.add_get("/ping", api.ping)
    app.router.add_get("/incentives", api.get_incentives)
    app.router.add_get("/incentives/health", api.incentives_health)
    app.router.add_get("/health", api.providers_status)
    app.router.add_get("/wrapper-tokens", api.wrapper_tokens)
    app.router.add_get("/wrapper-tokens/{address}/resolved-token", api.resolve_wrapper_token)
    app.router.add_get("/cache/stats", api.cache_stats)
