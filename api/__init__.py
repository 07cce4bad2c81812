"""
API Package - HTTP surface and command line.

Quick Start:
    from api import build_context, create_app
    from core.config import AppConfig

    config = AppConfig.from_env()
    context = build_context(config)
    app = create_app(context.service, context.response_cache, config)

Routes:
    GET /ping
    GET /incentives
    GET /incentives/health
    GET /health
    GET /wrapper-tokens
    GET /wrapper-tokens/{address}/resolved-token?chainId=
    GET /cache/stats
"""

from api.handlers import IncentivesAPI, setup_routes
from api.response_cache import CACHED_PATHS, ResponseCache
from api.serialization import (
    IncentiveEncoder,
    dumps,
    error_envelope,
    incentives_envelope,
    json_response,
    success_envelope,
)
from api.server import (
    AppContext,
    build_context,
    create_app,
    create_app_from_config,
    not_found_middleware,
    run_server,
)
from api.validation import parse_incentives_query, parse_wrapper_token_request


__all__ = [
    "IncentivesAPI",
    "setup_routes",
    "CACHED_PATHS",
    "ResponseCache",
    "IncentiveEncoder",
    "dumps",
    "error_envelope",
    "incentives_envelope",
    "json_response",
    "success_envelope",
    "AppContext",
    "build_context",
    "create_app",
    "create_app_from_config",
    "not_found_middleware",
    "run_server",
    "parse_incentives_query",
    "parse_wrapper_token_request",
]
