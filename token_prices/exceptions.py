"""
Token Price Exceptions.

"Price unknown" is not an error: fetchers return None for it.
These exceptions cover transport failures and caller mistakes.
"""

from typing import Any, Optional

from core.exceptions import IncentiveSystemError


class PriceError(IncentiveSystemError):
    """Base exception for price resolution errors."""
    pass


class PriceFetchError(PriceError):
    """A fetcher's upstream could not be reached or answered non-2xx."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        status_code: Optional[int] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, original_error, context)
        self.status_code = status_code
        self.request_url = request_url

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "status_code": self.status_code,
            "request_url": self.request_url,
        })
        return data


class UnsupportedQueryError(PriceError):
    """
    The fetcher cannot answer this kind of query.

    Raised for historical (block_number) queries against a fetcher
    that only knows current prices. Never swallowed.
    """

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        block_number: Optional[int] = None,
    ) -> None:
        super().__init__(message, source_name, context={"block_number": block_number})
        self.block_number = block_number
