"""
Incentives CLI.

============================================================
USAGE
============================================================
    incentives-api serve --port 8000
    incentives-api fetch --chain-id 1 --status LIVE
    incentives-api health

Configuration comes from the environment (and .env), or from
a YAML file given with --config. Command line flags win.
============================================================
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from api.serialization import dumps, incentives_envelope, success_envelope
from api.server import build_context, run_server
from api.validation import parse_incentives_query
from core.config import AppConfig, set_config
from core.exceptions import ValidationError


logger = logging.getLogger(__name__)


# ============================================================
# LOGGING
# ============================================================

def setup_logging(level: str = "INFO") -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ============================================================
# COMMANDS
# ============================================================

async def run_fetch(config: AppConfig, query: dict[str, list[str]]) -> int:
    options = parse_incentives_query(query)
    context = build_context(config)
    try:
        incentives = await context.service.fetch_incentives(options)
        print(dumps(incentives_envelope(incentives, context.service.clock), indent=2))
        return 0
    finally:
        await context.close()


async def run_health(config: AppConfig) -> int:
    context = build_context(config)
    try:
        status = await context.service.get_providers_status()
        print(dumps(success_envelope(status.to_dict()), indent=2))
        return 0 if all(status.providers_status.values()) else 1
    finally:
        await context.close()


# ============================================================
# ARGUMENTS
# ============================================================

FILTER_FLAGS = {
    "chain_id": "chainId",
    "status": "status",
    "source": "source",
    "type": "type",
    "reward_token_address": "rewardTokenAddress",
    "rewarded_token_address": "rewardedTokenAddress",
    "involved_token_address": "involvedTokenAddress",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="incentives-api",
        description="Incentive aggregation service",
    )
    parser.add_argument("--config", type=Path, help="YAML configuration file")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument("--no-cache", action="store_true", help="Bypass the HTTP response cache")

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", help="Bind address")
    serve.add_argument("--port", type=int, help="Bind port")

    fetch = subparsers.add_parser("fetch", help="Aggregate once and print the result")
    for dest, param in FILTER_FLAGS.items():
        fetch.add_argument(
            f"--{dest.replace('_', '-')}",
            dest=dest,
            action="append",
            metavar=param,
            help=f"Filter on {param}; repeat or comma-separate for several values",
        )

    subparsers.add_parser("health", help="Check every provider and print the global status")
    return parser


def load_config(args: argparse.Namespace) -> AppConfig:
    config = AppConfig.from_yaml(args.config) if args.config else AppConfig.from_env()
    if args.log_level:
        config.log_level = args.log_level.upper()
    if args.no_cache:
        config.disable_cache = True
    if getattr(args, "host", None):
        config.host = args.host
    if getattr(args, "port", None):
        config.port = args.port
    return config


def fetch_query(args: argparse.Namespace) -> dict[str, list[str]]:
    return {
        param: getattr(args, dest)
        for dest, param in FILTER_FLAGS.items()
        if getattr(args, dest, None)
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args)
    set_config(config)
    setup_logging(config.log_level)

    if args.command == "serve":
        run_server(config)
        return 0

    if args.command == "fetch":
        try:
            return asyncio.run(run_fetch(config, fetch_query(args)))
        except ValidationError as e:
            for detail in e.details:
                print(f"{detail['field']}: {detail['message']}", file=sys.stderr)
            return 2

    return asyncio.run(run_health(config))


if __name__ == "__main__":
    sys.exit(main())
