"""
Response serialization - JSON encoder and result envelopes.

Envelope:
    success -> {"success": true, "data": {...}}
    failure -> {"success": false, "error": {"message", "code", "details"?}}
"""

import json
from dataclasses import asdict, is_dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Optional

from aiohttp import web

from core.clock import ClockProtocol, to_iso8601
from incentive_providers.models import Incentive


# ============================================================
# JSON ENCODER
# ============================================================

class IncentiveEncoder(json.JSONEncoder):
    """JSON encoder for API payloads."""

    def default(self, obj):
        if hasattr(obj, "to_dict"):
            return obj.to_dict()
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, datetime):
            return to_iso8601(obj)
        if isinstance(obj, Decimal):
            return float(obj)
        if is_dataclass(obj) and not isinstance(obj, type):
            return asdict(obj)
        if isinstance(obj, (set, frozenset)):
            return sorted(obj)
        return super().default(obj)


def dumps(data: Any, indent: Optional[int] = None) -> str:
    return json.dumps(data, cls=IncentiveEncoder, indent=indent)


def json_response(
    data: Any,
    status: int = 200,
    headers: Optional[dict[str, str]] = None,
) -> web.Response:
    """Create JSON response."""
    return web.Response(
        text=dumps(data),
        status=status,
        content_type="application/json",
        headers=headers,
    )


# ============================================================
# ENVELOPES
# ============================================================

def success_envelope(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data}


def error_envelope(
    message: str,
    code: str,
    details: Optional[list[dict[str, str]]] = None,
) -> dict[str, Any]:
    error: dict[str, Any] = {"message": message, "code": code}
    if details:
        error["details"] = details
    return {"success": False, "error": error}


def incentives_envelope(incentives: Iterable[Incentive], clock: ClockProtocol) -> dict[str, Any]:
    """Envelope of GET /incentives."""
    items = [i.to_dict() for i in incentives]
    return success_envelope({
        "incentives": items,
        "totalCount": len(items),
        "lastUpdated": to_iso8601(clock.now()),
    })
