"""
Incentive Models - normalized incentive records and query options.

All providers produce these types. Serialization uses the camelCase
field names of the public API.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, ClassVar, Iterable, Iterator, Optional, Sequence, TypeVar, Union

from chain.models import Token


# ============================================================
# ENUMS
# ============================================================

class IncentiveSource(Enum):
    """Provenance of an incentive record."""
    ACI_ROUNDS = "ACI_ROUNDS"
    MERKL_API = "MERKL_API"
    ONCHAIN_RPC = "ONCHAIN_RPC"
    HARDCODED = "HARDCODED"


class IncentiveType(Enum):
    """Variant tag of an incentive record."""
    TOKEN = "TOKEN"
    POINT = "POINT"
    POINT_WITHOUT_VALUE = "POINT_WITHOUT_VALUE"


class Status(Enum):
    """Campaign state relative to now."""
    PAST = "PAST"
    LIVE = "LIVE"
    SOON = "SOON"


class GlobalStatus(Enum):
    """Aggregate health of all providers."""
    HEALTHY = "HEALTHY"
    DEGRADED = "DEGRADED"
    DOWN = "DOWN"


# ============================================================
# CAMPAIGNS
# ============================================================

@dataclass(frozen=True)
class CampaignConfig:
    """One funding window of a reward program. No end means open-ended."""
    start_timestamp: int
    end_timestamp: Optional[int] = None
    budget: Optional[str] = None
    apr: Optional[float] = None
    point_value: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"startTimestamp": self.start_timestamp}
        if self.end_timestamp is not None:
            data["endTimestamp"] = self.end_timestamp
        if self.budget is not None:
            data["budget"] = self.budget
        if self.apr is not None:
            data["apr"] = self.apr
        if self.point_value is not None:
            data["pointValue"] = self.point_value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CampaignConfig":
        end = data.get("endTimestamp")
        return cls(
            start_timestamp=int(data.get("startTimestamp", 0)),
            end_timestamp=int(end) if end is not None else None,
            budget=data.get("budget"),
            apr=data.get("apr"),
            point_value=data.get("pointValue"),
        )


@dataclass(frozen=True)
class Point:
    """A points program rewarded instead of a token."""
    name: str
    protocol: str
    tge_price: Optional[float] = None
    token: Optional[Token] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "protocol": self.protocol}
        if self.tge_price is not None:
            data["tgePrice"] = self.tge_price
        if self.token is not None:
            data["token"] = self.token.to_dict()
        return data


# ============================================================
# INCENTIVES
# ============================================================

@dataclass(kw_only=True)
class Incentive(ABC):
    """
    Base shape shared by every incentive variant.

    `id` stays None until the aggregation pipeline assigns it.
    `involved_tokens` is never empty.
    """
    type: ClassVar[IncentiveType]

    name: str
    description: str
    claim_link: str
    chain_id: int
    rewarded_token: Token
    involved_tokens: list[Token]
    source: IncentiveSource
    status: Status
    all_campaigns_configs: list[CampaignConfig] = field(default_factory=list)
    current_campaign_config: Optional[CampaignConfig] = None
    next_campaign_config: Optional[CampaignConfig] = None
    infos_link: Optional[str] = None
    id: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.involved_tokens:
            raise ValueError(f"Incentive '{self.name}' on chain {self.chain_id} has no involved tokens")

    @abstractmethod
    def reward_identity(self) -> str:
        """Lowercased reward token address or point program name."""

    def max_end_timestamp(self) -> int:
        """Latest campaign end, open-ended or missing ends count as 0."""
        ends = [c.end_timestamp or 0 for c in self.all_campaigns_configs]
        return max(ends, default=0)

    def iter_tokens(self) -> Iterator[Token]:
        yield self.rewarded_token
        yield from self.involved_tokens

    def map_tokens(self, fn) -> None:
        """Replace every token with fn(token)."""
        self.rewarded_token = fn(self.rewarded_token)
        self.involved_tokens = [fn(t) for t in self.involved_tokens]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.id is not None:
            data["id"] = self.id
        data.update({
            "name": self.name,
            "description": self.description,
            "claimLink": self.claim_link,
            "chainId": self.chain_id,
            "type": self.type.value,
            "source": self.source.value,
            "status": self.status.value,
            "rewardedToken": self.rewarded_token.to_dict(),
            "involvedTokens": [t.to_dict() for t in self.involved_tokens],
            "allCampaignsConfigs": [c.to_dict() for c in self.all_campaigns_configs],
        })
        if self.current_campaign_config is not None:
            data["currentCampaignConfig"] = self.current_campaign_config.to_dict()
        if self.next_campaign_config is not None:
            data["nextCampaignConfig"] = self.next_campaign_config.to_dict()
        if self.infos_link is not None:
            data["infosLink"] = self.infos_link
        return data


@dataclass(kw_only=True)
class TokenIncentive(Incentive):
    type: ClassVar[IncentiveType] = IncentiveType.TOKEN

    reward_token: Token
    current_apr: Optional[float] = None

    def reward_identity(self) -> str:
        return self.reward_token.address.lower()

    def iter_tokens(self) -> Iterator[Token]:
        yield from super().iter_tokens()
        yield self.reward_token

    def map_tokens(self, fn) -> None:
        super().map_tokens(fn)
        self.reward_token = fn(self.reward_token)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["rewardToken"] = self.reward_token.to_dict()
        if self.current_apr is not None:
            data["currentApr"] = self.current_apr
        return data


@dataclass(kw_only=True)
class PointIncentive(Incentive):
    type: ClassVar[IncentiveType] = IncentiveType.POINT

    point: Point
    point_value: Optional[float] = None
    point_value_unit: Optional[str] = None

    def reward_identity(self) -> str:
        return self.point.name.lower()

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["point"] = self.point.to_dict()
        if self.point_value is not None:
            data["pointValue"] = self.point_value
        if self.point_value_unit is not None:
            data["pointValueUnit"] = self.point_value_unit
        return data


@dataclass(kw_only=True)
class PointWithoutValueIncentive(Incentive):
    type: ClassVar[IncentiveType] = IncentiveType.POINT_WITHOUT_VALUE

    point: Point

    def reward_identity(self) -> str:
        return self.point.name.lower()

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["point"] = self.point.to_dict()
        return data


# ============================================================
# FETCH OPTIONS
# ============================================================

E = TypeVar("E", bound=Enum)


def _as_list(value: Any) -> Optional[list[Any]]:
    if value is None:
        return None
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def _as_enums(enum_cls: type[E], value: Any) -> Optional[list[E]]:
    values = _as_list(value)
    if values is None:
        return None
    return [v if isinstance(v, enum_cls) else enum_cls(v) for v in values]


@dataclass(frozen=True)
class FetchOptions:
    """
    Query filters. Every dimension is optional; a present dimension
    holds a list whose members are OR-ed, dimensions are AND-ed.
    """
    chain_id: Optional[list[int]] = None
    status: Optional[list[Status]] = None
    source: Optional[list[IncentiveSource]] = None
    type: Optional[list[IncentiveType]] = None
    reward_token_address: Optional[list[str]] = None
    rewarded_token_address: Optional[list[str]] = None
    involved_token_address: Optional[list[str]] = None

    @classmethod
    def build(
        cls,
        chain_id: Union[int, Sequence[int], None] = None,
        status: Union[Status, str, Iterable[Union[Status, str]], None] = None,
        source: Union[IncentiveSource, str, Iterable[Union[IncentiveSource, str]], None] = None,
        type: Union[IncentiveType, str, Iterable[Union[IncentiveType, str]], None] = None,
        reward_token_address: Union[str, Sequence[str], None] = None,
        rewarded_token_address: Union[str, Sequence[str], None] = None,
        involved_token_address: Union[str, Sequence[str], None] = None,
    ) -> "FetchOptions":
        """Accepts scalars or lists, and enum values as strings."""
        chain_ids = _as_list(chain_id)
        return cls(
            chain_id=[int(c) for c in chain_ids] if chain_ids is not None else None,
            status=_as_enums(Status, status),
            source=_as_enums(IncentiveSource, source),
            type=_as_enums(IncentiveType, type),
            reward_token_address=_lowered(reward_token_address),
            rewarded_token_address=_lowered(rewarded_token_address),
            involved_token_address=_lowered(involved_token_address),
        )

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            data[f.name] = [v.value if isinstance(v, Enum) else v for v in value]
        return data

    def without(self, *names: str) -> "FetchOptions":
        """Copy with the given dimensions cleared."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        for name in names:
            values[name] = None
        return FetchOptions(**values)


def _lowered(value: Union[str, Sequence[str], None]) -> Optional[list[str]]:
    values = _as_list(value)
    return [v.lower() for v in values] if values is not None else None
