"""
Contract Reader - the blockchain read boundary.

============================================================
RESPONSIBILITY
============================================================
read_contract(chain_id, address, abi, function_name, args, block_number)

- One AsyncWeb3 client per chain, created lazily from AppConfig.rpc_urls
- Every failure surfaces as ContractReadError (or UnknownChainError)
- No retry and no timeout here, callers own that policy

============================================================
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from web3 import AsyncWeb3
from web3.providers import AsyncHTTPProvider

from chain.exceptions import ContractReadError, UnknownChainError


logger = logging.getLogger(__name__)


def _normalize_arg(value: Any) -> Any:
    """web3 rejects non-checksummed address arguments."""
    if isinstance(value, str) and len(value) == 42 and value.startswith("0x"):
        return AsyncWeb3.to_checksum_address(value)
    return value


class ContractReader(ABC):
    """Read-only access to contract view functions."""

    @abstractmethod
    async def read_contract(
        self,
        chain_id: int,
        address: str,
        abi: list[dict[str, Any]],
        function_name: str,
        args: Sequence[Any] = (),
        block_number: Optional[int] = None,
    ) -> Any:
        """
        Call a view function.

        Raises:
            ContractReadError: On transport or decoding failure
            UnknownChainError: If the chain has no endpoint
        """
        pass

    async def close(self) -> None:
        pass


class Web3ContractReader(ContractReader):
    """
    ContractReader on web3.py's AsyncWeb3.

    Usage:
        reader = Web3ContractReader({1: "https://ethereum-rpc.publicnode.com"})
        supply = await reader.read_contract(1, token, ERC20_ABI, "totalSupply")
    """

    def __init__(
        self,
        rpc_urls: dict[int, str],
        request_timeout: float = 15.0,
    ) -> None:
        self._rpc_urls = dict(rpc_urls)
        self._request_timeout = request_timeout
        self._clients: dict[int, AsyncWeb3] = {}

    def _get_client(self, chain_id: int) -> AsyncWeb3:
        client = self._clients.get(chain_id)
        if client is None:
            url = self._rpc_urls.get(chain_id)
            if not url:
                raise UnknownChainError(chain_id)
            client = AsyncWeb3(
                AsyncHTTPProvider(url, request_kwargs={"timeout": self._request_timeout})
            )
            self._clients[chain_id] = client
            logger.debug(f"Created RPC client for chain {chain_id}")
        return client

    async def read_contract(
        self,
        chain_id: int,
        address: str,
        abi: list[dict[str, Any]],
        function_name: str,
        args: Sequence[Any] = (),
        block_number: Optional[int] = None,
    ) -> Any:
        client = self._get_client(chain_id)
        try:
            contract = client.eth.contract(
                address=AsyncWeb3.to_checksum_address(address),
                abi=abi,
            )
            call = getattr(contract.functions, function_name)(*(_normalize_arg(a) for a in args))
            if block_number is not None:
                return await call.call(block_identifier=block_number)
            return await call.call()
        except Exception as e:
            raise ContractReadError(
                message=f"{function_name} failed: {e}",
                chain_id=chain_id,
                address=address,
                function_name=function_name,
                block_number=block_number,
                original_error=e,
            ) from e

    async def close(self) -> None:
        for client in self._clients.values():
            disconnect = getattr(client.provider, "disconnect", None)
            if disconnect is not None:
                await disconnect()
        self._clients.clear()
