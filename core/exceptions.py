"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Base exception hierarchy shared by every package.

- One root type so join boundaries can log uniformly
- Every error carries its source and original cause
- Serializable for structured log lines

============================================================
EXCEPTION HIERARCHY
============================================================
IncentiveSystemError (base)
├── ConfigurationError
├── OperationTimeoutError
└── ValidationError

Package-specific subclasses live next to their package:
chain.exceptions, token_prices.exceptions,
incentive_providers.exceptions.

============================================================
"""

from datetime import datetime, timezone
from typing import Any, Optional


# ============================================================
# BASE EXCEPTION
# ============================================================

class IncentiveSystemError(Exception):
    """Base exception for all incentive aggregation errors."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source_name = source_name
        self.original_error = original_error
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "source_name": self.source_name,
            "original_error": str(self.original_error) if self.original_error else None,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.source_name:
            parts.append(f"[source={self.source_name}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


# ============================================================
# CONFIGURATION
# ============================================================

class ConfigurationError(IncentiveSystemError):
    """Invalid or missing configuration."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        source_name: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, None, context)
        self.config_key = config_key

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["config_key"] = self.config_key
        return data


# ============================================================
# TIMEOUTS
# ============================================================

class OperationTimeoutError(IncentiveSystemError):
    """An awaited operation exceeded its time budget."""

    def __init__(
        self,
        message: str,
        timeout_seconds: float,
        source_name: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, None, context)
        self.timeout_seconds = timeout_seconds

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["timeout_seconds"] = self.timeout_seconds
        return data


# ============================================================
# VALIDATION
# ============================================================

class ValidationError(IncentiveSystemError):
    """
    Malformed caller input.

    `details` is a list of {"field", "message"} dicts, one per
    offending field, and is what the API returns to the caller.
    """

    def __init__(
        self,
        message: str,
        details: Optional[list[dict[str, str]]] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, None, None, context)
        self.details = details or []

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["details"] = self.details
        return data


__all__ = [
    "IncentiveSystemError",
    "ConfigurationError",
    "OperationTimeoutError",
    "ValidationError",
]
