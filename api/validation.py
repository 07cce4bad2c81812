"""
Query validation for GET /incentives.

Every filter accepts a single value, a comma-separated list, or a
repeated parameter. Enum values are case-sensitive. All problems
are collected before raising, one detail per offending value.
"""

import re
from typing import Any, Callable, Mapping, Optional

from core.exceptions import ValidationError
from incentive_providers.models import FetchOptions, IncentiveSource, IncentiveType, Status


ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")

# query parameter -> FetchOptions field
QUERY_FIELDS: dict[str, str] = {
    "chainId": "chain_id",
    "status": "status",
    "source": "source",
    "type": "type",
    "rewardTokenAddress": "reward_token_address",
    "rewardedTokenAddress": "rewarded_token_address",
    "involvedTokenAddress": "involved_token_address",
}


def _values(query: Mapping[str, Any], name: str) -> Optional[list[str]]:
    if hasattr(query, "getall"):
        raw = query.getall(name, [])
    else:
        value = query.get(name)
        raw = [] if value is None else (value if isinstance(value, list) else [value])

    values = [part.strip() for item in raw for part in str(item).split(",") if part.strip()]
    return values or None


def _parse_chain_id(value: str) -> int:
    chain_id = int(value)
    if chain_id <= 0:
        raise ValueError
    return chain_id


def _parse_address(value: str) -> str:
    if not ADDRESS_PATTERN.match(value):
        raise ValueError
    return value.lower()


def _enum_parser(enum_cls) -> Callable[[str], Any]:
    def parse(value: str):
        return enum_cls(value)
    return parse


_PARSERS: dict[str, tuple[Callable[[str], Any], str]] = {
    "chainId": (_parse_chain_id, "must be a positive integer"),
    "status": (_enum_parser(Status), f"must be one of {', '.join(s.value for s in Status)}"),
    "source": (_enum_parser(IncentiveSource), f"must be one of {', '.join(s.value for s in IncentiveSource)}"),
    "type": (_enum_parser(IncentiveType), f"must be one of {', '.join(t.value for t in IncentiveType)}"),
    "rewardTokenAddress": (_parse_address, "must be a 0x-prefixed 20-byte hex address"),
    "rewardedTokenAddress": (_parse_address, "must be a 0x-prefixed 20-byte hex address"),
    "involvedTokenAddress": (_parse_address, "must be a 0x-prefixed 20-byte hex address"),
}


def parse_incentives_query(query: Mapping[str, Any]) -> FetchOptions:
    """
    Build FetchOptions from request query parameters.

    Raises:
        ValidationError: With one {field, message} detail per bad value
    """
    details: list[dict[str, str]] = []
    parsed: dict[str, Any] = {}

    for param, field_name in QUERY_FIELDS.items():
        values = _values(query, param)
        if values is None:
            continue

        parser, hint = _PARSERS[param]
        converted = []
        for value in values:
            try:
                converted.append(parser(value))
            except ValueError:
                details.append({"field": param, "message": f"Invalid value '{value}': {hint}"})
        parsed[field_name] = converted

    if details:
        raise ValidationError("Invalid query parameters", details=details)

    return FetchOptions(**parsed)


def parse_wrapper_token_request(address: str, query: Mapping[str, Any]) -> tuple[str, int]:
    """
    Validate GET /wrapper-tokens/{address}/resolved-token.

    Raises:
        ValidationError: If the address or chainId is malformed
    """
    details: list[dict[str, str]] = []

    if not ADDRESS_PATTERN.match(address or ""):
        details.append({"field": "wrapperTokenAddress", "message": "must be a 0x-prefixed 20-byte hex address"})

    chain_id = 0
    raw_chain_id = query.get("chainId")
    if raw_chain_id is None:
        details.append({"field": "chainId", "message": "is required"})
    else:
        try:
            chain_id = _parse_chain_id(raw_chain_id)
        except ValueError:
            details.append({"field": "chainId", "message": "must be a positive integer"})

    if details:
        raise ValidationError("Invalid request parameters", details=details)

    return address.lower(), chain_id
