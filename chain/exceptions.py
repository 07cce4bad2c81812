"""
Chain Exceptions - errors raised by contract reads.
"""

from typing import Optional

from core.exceptions import IncentiveSystemError


class ChainError(IncentiveSystemError):
    """Base exception for blockchain access errors."""
    pass


class UnknownChainError(ChainError):
    """No RPC endpoint is configured for the chain."""

    def __init__(self, chain_id: int) -> None:
        super().__init__(f"No RPC endpoint configured for chain {chain_id}", context={"chain_id": chain_id})
        self.chain_id = chain_id


class ContractReadError(ChainError):
    """A contract call failed or returned undecodable data."""

    def __init__(
        self,
        message: str,
        chain_id: int,
        address: str,
        function_name: str,
        block_number: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(
            message,
            source_name=f"{function_name}@{address}",
            original_error=original_error,
            context={
                "chain_id": chain_id,
                "address": address,
                "function_name": function_name,
                "block_number": block_number,
            },
        )
        self.chain_id = chain_id
        self.address = address
        self.function_name = function_name
        self.block_number = block_number
