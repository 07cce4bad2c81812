"""
Minimal contract ABIs for the reads this service performs.
"""

ERC20_ABI = [
    {
        "inputs": [],
        "name": "totalSupply",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "decimals",
        "outputs": [{"internalType": "uint8", "name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
]

CHAINLINK_AGGREGATOR_ABI = [
    {
        "inputs": [],
        "name": "decimals",
        "outputs": [{"internalType": "uint8", "name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "latestAnswer",
        "outputs": [{"internalType": "int256", "name": "", "type": "int256"}],
        "stateMutability": "view",
        "type": "function",
    },
]

AAVE_ORACLE_ABI = [
    {
        "inputs": [{"internalType": "address", "name": "asset", "type": "address"}],
        "name": "getAssetPrice",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "BASE_CURRENCY_UNIT",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]

_REWARD_INFO_COMPONENTS = [
    {"internalType": "string", "name": "rewardTokenSymbol", "type": "string"},
    {"internalType": "address", "name": "rewardTokenAddress", "type": "address"},
    {"internalType": "address", "name": "rewardOracleAddress", "type": "address"},
    {"internalType": "uint256", "name": "emissionPerSecond", "type": "uint256"},
    {"internalType": "uint256", "name": "incentivesLastUpdateTimestamp", "type": "uint256"},
    {"internalType": "uint256", "name": "tokenIncentivesIndex", "type": "uint256"},
    {"internalType": "uint256", "name": "emissionEndTimestamp", "type": "uint256"},
    {"internalType": "int256", "name": "rewardPriceFeed", "type": "int256"},
    {"internalType": "uint8", "name": "rewardTokenDecimals", "type": "uint8"},
    {"internalType": "uint8", "name": "precision", "type": "uint8"},
    {"internalType": "uint8", "name": "priceFeedDecimals", "type": "uint8"},
]

_INCENTIVE_DATA_COMPONENTS = [
    {"internalType": "address", "name": "tokenAddress", "type": "address"},
    {"internalType": "address", "name": "incentiveControllerAddress", "type": "address"},
    {
        "internalType": "struct IUiIncentiveDataProviderV3.RewardInfo[]",
        "name": "rewardsTokenInformation",
        "type": "tuple[]",
        "components": _REWARD_INFO_COMPONENTS,
    },
]

UI_INCENTIVE_DATA_PROVIDER_ABI = [
    {
        "inputs": [
            {
                "internalType": "contract IPoolAddressesProvider",
                "name": "provider",
                "type": "address",
            }
        ],
        "name": "getReservesIncentivesData",
        "outputs": [
            {
                "internalType": "struct IUiIncentiveDataProviderV3.AggregatedReserveIncentiveData[]",
                "name": "",
                "type": "tuple[]",
                "components": [
                    {"internalType": "address", "name": "underlyingAsset", "type": "address"},
                    {
                        "internalType": "struct IUiIncentiveDataProviderV3.IncentiveData",
                        "name": "aIncentiveData",
                        "type": "tuple",
                        "components": _INCENTIVE_DATA_COMPONENTS,
                    },
                    {
                        "internalType": "struct IUiIncentiveDataProviderV3.IncentiveData",
                        "name": "vIncentiveData",
                        "type": "tuple",
                        "components": _INCENTIVE_DATA_COMPONENTS,
                    },
                ],
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
]
