"""
Chain Package - token lookup and blockchain reads.

Two narrow boundaries used by the rest of the system:

Token lookup (static, never raises):
    from chain import resolve_token
    info = resolve_token("0x98C2...", chain_id=1)
    info.kind, info.token

Contract reads (async, may raise ContractReadError):
    reader = Web3ContractReader(config.rpc_urls)
    await reader.read_contract(1, address, ERC20_ABI, "totalSupply")
"""

from chain.exceptions import ChainError, ContractReadError, UnknownChainError
from chain.models import AaveInstance, Token, TokenInfo, TokenKind
from chain.price_feeds import get_price_feed
from chain.readers import (
    AaveOracleReader,
    AaveUiIncentivesReader,
    Erc20Reader,
    IncentiveData,
    ReserveIncentiveData,
    RewardTokenInfo,
)
from chain.rpc import ContractReader, Web3ContractReader
from chain.tokens import (
    AAVE_V3_BASE,
    AAVE_V3_ETHEREUM,
    GHO,
    STK_GHO,
    TokenBook,
    get_default_token_book,
    resolve_token,
)
from chain.wrapper_tokens import get_wrapper_token_map, resolve_wrapper_token


__all__ = [
    "ChainError",
    "ContractReadError",
    "UnknownChainError",
    "AaveInstance",
    "Token",
    "TokenInfo",
    "TokenKind",
    "get_price_feed",
    "AaveOracleReader",
    "AaveUiIncentivesReader",
    "Erc20Reader",
    "IncentiveData",
    "ReserveIncentiveData",
    "RewardTokenInfo",
    "ContractReader",
    "Web3ContractReader",
    "AAVE_V3_BASE",
    "AAVE_V3_ETHEREUM",
    "GHO",
    "STK_GHO",
    "TokenBook",
    "get_default_token_book",
    "resolve_token",
    "get_wrapper_token_map",
    "resolve_wrapper_token",
]
