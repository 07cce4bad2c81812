"""
Static price-feed table: chain id -> token address -> feed address.

Feeds expose the Chainlink aggregator interface (`decimals`,
`latestAnswer`). Lookups are case-insensitive.
"""

from typing import Optional


PRICE_FEEDS: dict[int, dict[str, str]] = {
    # Ethereum mainnet, Chainlink USD feeds
    1: {
        "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2": "0x5f4eC3Df9cbd43714FE2740f5E3616155c5b8419",  # WETH
        "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48": "0x8fFfFfd4AfB6115b954Bd326cbe7B4BA576818f6",  # USDC
        "0x6B175474E89094C44Da98b954EedeAC495271d0F": "0xAed0c38402a5d19df6E4c03F4E2DceD6e29c1ee9",  # DAI
        "0xCd5fE23C85820F7B72D0926FC9b05b43E359b7ee": "0xdDb6F90fFb4d3257dd666b69178e5B3c5Bf41136",  # weETH
        "0xdAC17F958D2ee523a2206206994597C13D831ec7": "0x3E7d1eAB13ad0104d2750B8863b489D65364e32D",  # USDT
        "0x1aBaEA1f7C830bD89Acc67eC4af516284b1bC33c": "0xb49f677943BC038e9857d61E7d053CaA2C1734C1",  # EURC
        "0x4c9EDD5852cd905f086C759E8383e09bff1E68B3": "0xa569d910839Ae8865Da8F8e70FfFb0cBA869F961",  # USDe
        "0x6c3ea9036406852006290770BEdFcAbA0e23A0e8": "0x8f1dF6D7F2db73eECE86a18b4381F4707b918FB1",  # PYUSD
        "0xbf5495Efe5DB9ce00f80364C8B423567e58d2110": "0xF4a3e183F59D2599ee3DF213ff78b1B3b1923696",  # ezETH
        "0xA1290d69c65A6Fe4DF752f95823fae25cB99e5A7": "0xA736eAe8805dDeFFba40cAB8c99bCB309dEaBd9B",  # rsETH
        "0x7Fc66500c84A76Ad7e9c93437bFc5Ac33E2DDaE9": "0x547a514d5e3769680Ce22B2361c10Ea13619e8a9",  # AAVE
    },
    # Plasma
    9745: {
        "0x6100E367285b01F48D07953803A2d8dCA5D19873": "0xF932477C37715aE6657Ab884414Bd9876FE3f750",  # WXPL
    },
}

_NORMALIZED: dict[int, dict[str, str]] = {
    chain_id: {token.lower(): feed for token, feed in feeds.items()}
    for chain_id, feeds in PRICE_FEEDS.items()
}


def get_price_feed(chain_id: int, token_address: str) -> Optional[str]:
    """Feed address for a token, or None."""
    return _NORMALIZED.get(chain_id, {}).get(token_address.lower())


def supported_chains() -> list[int]:
    return sorted(PRICE_FEEDS)
