"""
Wrapper tokens - wrapped aTokens and withdraw wrappers mapped to the
aToken they stand for.

Incentive campaigns are sometimes run on a wrapper contract. The
enrichment step uses this map to find the real Aave token, and so
its price feed.
"""

from typing import Optional


# chain id -> wrapper address -> aToken address
WRAPPER_TOKENS: dict[int, dict[str, str]] = {
    1: {
        # aEthUSDe wrapper
        "0x3a4de44B29995a3D8Cd02d46243E1563E55bCc8b": "0x4F5923Fc5FD4a93352581b38B7cD26943012DECF",
        # aEthPYUSD wrapper
        "0x0f1eb8D5568E9C1ee72E6dE7B5a9e2837A530019": "0x0C0d01AbF3e6aDfcA0989eBbA9d6e85dD58EaB1E",
        # EURC withdraw wrapper
        "0x82a5530942263645dD3B8101740c2a0Ac30c7919": "0xAA6e91C82942aeAE040303Bf96c15a6dBcB82CA0",
    },
}

_NORMALIZED: dict[int, dict[str, str]] = {
    chain_id: {wrapper.lower(): a_token for wrapper, a_token in mapping.items()}
    for chain_id, mapping in WRAPPER_TOKENS.items()
}


def resolve_wrapper_token(address: str, chain_id: int) -> Optional[str]:
    """aToken address behind a wrapper, or None."""
    return _NORMALIZED.get(chain_id, {}).get(address.lower())


def get_wrapper_token_map() -> dict[int, dict[str, str]]:
    """Copy of the full mapping, as published by the API."""
    return {chain_id: dict(mapping) for chain_id, mapping in WRAPPER_TOKENS.items()}
