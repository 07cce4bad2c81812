"""
Core Module - Constants.

============================================================
RESPONSIBILITY
============================================================
Single source of truth for magic values shared across packages.

- Cache TTL defaults per cached concern
- Timeout defaults for fetches and health checks
- Cache key prefixes

============================================================
"""

# ============================================================
# TIME
# ============================================================

SECONDS_PER_YEAR = 31536000

# Timestamp used as the start of windows that have no explicit start
BASE_TIMESTAMP = 0


# ============================================================
# CACHE TTLS (seconds)
# ============================================================

DEFAULT_PROVIDER_FETCH_TTL = 120
DEFAULT_REQUEST_TTL = 300
DEFAULT_TOKEN_PRICE_TTL = 600
DEFAULT_TOTAL_SUPPLY_TTL = 900
DEFAULT_UI_INCENTIVES_TTL = 1800


# ============================================================
# TIMEOUTS (seconds)
# ============================================================

DEFAULT_PROVIDER_TIMEOUT = 10.0
DEFAULT_HEALTH_CHECK_TIMEOUT = 5.0
DEFAULT_HTTP_TIMEOUT = 15.0


# ============================================================
# CACHE KEY PREFIXES
# ============================================================

PROVIDER_CACHE_PREFIX = "provider"
TOKEN_PRICE_CACHE_PREFIX = "tokenPrice"
TOTAL_SUPPLY_CACHE_PREFIX = "totalSupply"
UI_INCENTIVES_CACHE_PREFIX = "uiIncentivesData"
HTTP_CACHE_PREFIX = "http"


# ============================================================
# HTTP
# ============================================================

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000
USER_AGENT = "IncentiveAggregator/1.0"
