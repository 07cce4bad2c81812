"""
Incentive Provider Exceptions.

Raised inside providers and caught at the aggregation join
boundary, where a failing provider simply contributes nothing.
"""

from typing import Any, Optional

from core.exceptions import IncentiveSystemError


class ProviderError(IncentiveSystemError):
    """Base exception for all incentive provider errors."""
    pass


class FetchError(ProviderError):
    """Error fetching from a provider's upstream."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, original_error, context)
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "status_code": self.status_code,
            "response_body": self.response_body,
            "request_url": self.request_url,
        })
        return data

    def is_rate_limited(self) -> bool:
        return self.status_code == 429

    def is_server_error(self) -> bool:
        return self.status_code is not None and 500 <= self.status_code < 600

    def is_client_error(self) -> bool:
        return self.status_code is not None and 400 <= self.status_code < 500


class RateLimitError(FetchError):
    """Upstream answered 429."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        retry_after_seconds: Optional[int] = None,
        request_url: Optional[str] = None,
    ) -> None:
        super().__init__(message, source_name, status_code=429, request_url=request_url)
        self.retry_after_seconds = retry_after_seconds


class NormalizationError(ProviderError):
    """Upstream payload does not have the expected shape."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        raw_data: Optional[Any] = None,
        field_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, source_name, original_error)
        self.raw_data = raw_data
        self.field_name = field_name

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "raw_data": str(self.raw_data)[:500] if self.raw_data else None,
            "field_name": self.field_name,
        })
        return data


class HealthCheckError(ProviderError):
    """Health probe failed."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        timeout: bool = False,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, source_name, original_error)
        self.timeout = timeout
