"""
Core Module - Configuration.

============================================================
CONFIGURATION SOURCES
============================================================

Configuration can be loaded from:
- Default values
- Environment variables (a .env file is honoured)
- YAML config file

Environment variables:
    HOST, PORT, LOG_LEVEL
    DISABLE_CACHE=true
    PROVIDER_TIMEOUT, HEALTH_CHECK_TIMEOUT, HTTP_TIMEOUT
    CACHE_TTL_PROVIDER_FETCH, CACHE_TTL_REQUEST, CACHE_TTL_TOKEN_PRICE,
    CACHE_TTL_TOTAL_SUPPLY, CACHE_TTL_UI_INCENTIVES
    RPC_URL_<CHAIN_ID>            e.g. RPC_URL_1=https://...
    COINGECKO_API_KEY
    MERKL_WHITELISTED_CREATORS    comma-separated addresses

============================================================
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from core.constants import (
    DEFAULT_HEALTH_CHECK_TIMEOUT,
    DEFAULT_HOST,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_PORT,
    DEFAULT_PROVIDER_FETCH_TTL,
    DEFAULT_PROVIDER_TIMEOUT,
    DEFAULT_REQUEST_TTL,
    DEFAULT_TOKEN_PRICE_TTL,
    DEFAULT_TOTAL_SUPPLY_TTL,
    DEFAULT_UI_INCENTIVES_TTL,
)
from core.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


# =============================================================
# DEFAULT RPC ENDPOINTS
# =============================================================

DEFAULT_RPC_URLS: Dict[int, str] = {
    1: "https://ethereum-rpc.publicnode.com",
    10: "https://optimism-rpc.publicnode.com",
    56: "https://bsc-rpc.publicnode.com",
    100: "https://gnosis-rpc.publicnode.com",
    137: "https://polygon-bor-rpc.publicnode.com",
    146: "https://rpc.soniclabs.com",
    324: "https://1rpc.io/zksync2-era",
    1088: "https://metis-pokt.nodies.app",
    8453: "https://base-rpc.publicnode.com",
    9745: "https://plasma.drpc.org",
    42161: "https://arbitrum-one-rpc.publicnode.com",
    43114: "https://avalanche-c-chain-rpc.publicnode.com",
    57073: "https://ink.drpc.org",
    59144: "https://linea-rpc.publicnode.com",
    534352: "https://scroll-rpc.publicnode.com",
}


# =============================================================
# CACHE TTLS
# =============================================================


@dataclass
class CacheTTLs:
    """Lifetimes, in seconds, of each cached concern."""
    provider_fetch: int = DEFAULT_PROVIDER_FETCH_TTL
    request: int = DEFAULT_REQUEST_TTL
    token_price: int = DEFAULT_TOKEN_PRICE_TTL
    total_supply: int = DEFAULT_TOTAL_SUPPLY_TTL
    ui_incentives: int = DEFAULT_UI_INCENTIVES_TTL

    def __post_init__(self) -> None:
        for name, value in self.to_dict().items():
            if value < 0:
                raise ConfigurationError(
                    f"Cache TTL '{name}' must be >= 0, got {value}",
                    config_key=name,
                )

    def to_dict(self) -> Dict[str, int]:
        return {
            "provider_fetch": self.provider_fetch,
            "request": self.request,
            "token_price": self.token_price,
            "total_supply": self.total_supply,
            "ui_incentives": self.ui_incentives,
        }


# =============================================================
# APPLICATION CONFIG
# =============================================================


@dataclass
class AppConfig:
    """Complete service configuration."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    # Response cache bypass
    disable_cache: bool = False

    # Timeouts (seconds)
    provider_timeout: float = DEFAULT_PROVIDER_TIMEOUT
    health_check_timeout: float = DEFAULT_HEALTH_CHECK_TIMEOUT
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    cache_ttls: CacheTTLs = field(default_factory=CacheTTLs)
    rpc_urls: Dict[int, str] = field(default_factory=lambda: dict(DEFAULT_RPC_URLS))

    coingecko_api_key: Optional[str] = None
    merkl_whitelisted_creators: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not 0 < self.port < 65536:
            raise ConfigurationError(f"Invalid port {self.port}", config_key="port")
        if self.provider_timeout <= 0 or self.health_check_timeout <= 0:
            raise ConfigurationError("Timeouts must be positive", config_key="timeouts")
        self.merkl_whitelisted_creators = [a.lower() for a in self.merkl_whitelisted_creators]

    def get_rpc_url(self, chain_id: int) -> Optional[str]:
        return self.rpc_urls.get(chain_id)

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "AppConfig":
        """Load configuration from environment variables."""
        if dotenv:
            load_dotenv()

        ttls = CacheTTLs()
        for name in ttls.to_dict():
            value = os.getenv(f"CACHE_TTL_{name.upper()}")
            if value:
                setattr(ttls, name, _parse_int(value, f"CACHE_TTL_{name.upper()}"))

        rpc_urls = dict(DEFAULT_RPC_URLS)
        for key, value in os.environ.items():
            if key.startswith("RPC_URL_") and value:
                chain_id = _parse_int(key[len("RPC_URL_"):], key)
                rpc_urls[chain_id] = value

        creators = os.getenv("MERKL_WHITELISTED_CREATORS", "")

        return cls(
            host=os.getenv("HOST", DEFAULT_HOST),
            port=_parse_int(os.getenv("PORT", str(DEFAULT_PORT)), "PORT"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            disable_cache=os.getenv("DISABLE_CACHE", "false").lower() == "true",
            provider_timeout=float(os.getenv("PROVIDER_TIMEOUT", DEFAULT_PROVIDER_TIMEOUT)),
            health_check_timeout=float(os.getenv("HEALTH_CHECK_TIMEOUT", DEFAULT_HEALTH_CHECK_TIMEOUT)),
            http_timeout=float(os.getenv("HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT)),
            cache_ttls=ttls,
            rpc_urls=rpc_urls,
            coingecko_api_key=os.getenv("COINGECKO_API_KEY") or None,
            merkl_whitelisted_creators=[c.strip() for c in creators.split(",") if c.strip()],
        )

    @classmethod
    def from_yaml(cls, path: Path) -> "AppConfig":
        """Load configuration from YAML file, falling back to defaults."""
        try:
            import yaml
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}

            ttls = CacheTTLs(**data.get("cache_ttls", {}))
            rpc_urls = dict(DEFAULT_RPC_URLS)
            rpc_urls.update({int(k): v for k, v in data.get("rpc_urls", {}).items()})

            return cls(
                host=data.get("host", DEFAULT_HOST),
                port=int(data.get("port", DEFAULT_PORT)),
                log_level=str(data.get("log_level", "INFO")).upper(),
                disable_cache=bool(data.get("disable_cache", False)),
                provider_timeout=float(data.get("provider_timeout", DEFAULT_PROVIDER_TIMEOUT)),
                health_check_timeout=float(data.get("health_check_timeout", DEFAULT_HEALTH_CHECK_TIMEOUT)),
                http_timeout=float(data.get("http_timeout", DEFAULT_HTTP_TIMEOUT)),
                cache_ttls=ttls,
                rpc_urls=rpc_urls,
                coingecko_api_key=data.get("coingecko_api_key"),
                merkl_whitelisted_creators=list(data.get("merkl_whitelisted_creators", [])),
            )

        except Exception as e:
            logger.warning(f"Failed to load YAML config from {path}: {e}")
            return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "port": self.port,
            "log_level": self.log_level,
            "disable_cache": self.disable_cache,
            "provider_timeout": self.provider_timeout,
            "health_check_timeout": self.health_check_timeout,
            "http_timeout": self.http_timeout,
            "cache_ttls": self.cache_ttls.to_dict(),
            "rpc_urls": dict(self.rpc_urls),
            "merkl_whitelisted_creators": list(self.merkl_whitelisted_creators),
        }


def _parse_int(value: str, key: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"Expected an integer for {key}, got '{value}'", config_key=key) from e


# =============================================================
# GLOBAL CONFIG
# =============================================================

_default_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration."""
    global _default_config
    if _default_config is None:
        _default_config = AppConfig.from_env()
    return _default_config


def set_config(config: AppConfig) -> None:
    """Set the global configuration."""
    global _default_config
    _default_config = config
