"""
Aggregation - pure functions of the incentive pipeline.

============================================================
PIPELINE
============================================================
enrich -> apply_filters -> assign_ids -> gather_equal_incentives
       -> sort_incentives

Every step returns new records. Provider results live in a
shared TTL cache and must never be mutated.

============================================================
IDENTITY
============================================================
    id = "inc_" + sha256(
        "{chainId}:{sorted involved addresses, no 0x, joined by -}:{reward}"
    )[:16]

reward is the reward token address (no 0x) or the point program
name, lowercased. Source is not part of the identity, so the same
opportunity seen by two providers merges into one record.

============================================================
"""

import hashlib
import logging
import math
from dataclasses import replace
from typing import Iterable, Optional

from incentive_providers.models import (
    CampaignConfig,
    FetchOptions,
    Incentive,
    Status,
    TokenIncentive,
)


logger = logging.getLogger(__name__)


STATUS_PRIORITY: dict[Status, int] = {
    Status.LIVE: 0,
    Status.SOON: 1,
    Status.PAST: 2,
}


# ============================================================
# FILTERS
# ============================================================

def matches_filters(incentive: Incentive, options: FetchOptions) -> bool:
    """True when the incentive satisfies every present filter dimension."""
    if options.chain_id is not None and incentive.chain_id not in options.chain_id:
        return False
    if options.status is not None and incentive.status not in options.status:
        return False
    if options.source is not None and incentive.source not in options.source:
        return False
    if options.type is not None and incentive.type not in options.type:
        return False

    if options.reward_token_address is not None:
        # Only token incentives have a reward token
        if not isinstance(incentive, TokenIncentive):
            return False
        if incentive.reward_token.address.lower() not in options.reward_token_address:
            return False

    if options.rewarded_token_address is not None:
        if incentive.rewarded_token.address.lower() not in options.rewarded_token_address:
            return False

    if options.involved_token_address is not None:
        wanted = options.involved_token_address
        if not any(t.address.lower() in wanted for t in incentive.involved_tokens):
            return False

    return True


def apply_filters(incentives: Iterable[Incentive], options: Optional[FetchOptions] = None) -> list[Incentive]:
    if options is None or options.is_empty():
        return list(incentives)
    return [i for i in incentives if matches_filters(i, options)]


# ============================================================
# IDENTITY
# ============================================================

def _strip_hex_prefix(value: str) -> str:
    value = value.lower()
    return value[2:] if value.startswith("0x") else value


def compute_incentive_id(incentive: Incentive) -> str:
    addresses = sorted(_strip_hex_prefix(t.address) for t in incentive.involved_tokens)
    reward = _strip_hex_prefix(incentive.reward_identity())
    fingerprint = f"{incentive.chain_id}:{'-'.join(addresses)}:{reward}"
    digest = hashlib.sha256(fingerprint.encode("utf-8")).hexdigest()
    return f"inc_{digest[:16]}"


def assign_ids(incentives: Iterable[Incentive]) -> list[Incentive]:
    return [replace(i, id=compute_incentive_id(i)) for i in incentives]


# ============================================================
# MERGE
# ============================================================

def gather_equal_incentives(incentives: Iterable[Incentive]) -> list[Incentive]:
    """
    Merge records sharing an id.

    Campaign lists are concatenated, nothing is dropped. The record
    whose own campaigns end latest survives with the metadata; on a
    tie the later record wins. Output keeps first-seen id order.
    """
    merged: dict[str, Incentive] = {}

    for incentive in incentives:
        if incentive.id is None:
            raise ValueError(f"Incentive '{incentive.name}' has no id, assign ids before merging")

        existing = merged.get(incentive.id)
        if existing is None:
            merged[incentive.id] = incentive
            continue

        campaigns = existing.all_campaigns_configs + incentive.all_campaigns_configs
        if existing.max_end_timestamp() > incentive.max_end_timestamp():
            survivor = existing
        else:
            survivor = incentive

        logger.debug(f"Merging incentive {incentive.id} ({len(campaigns)} campaigns)")
        merged[incentive.id] = replace(survivor, all_campaigns_configs=campaigns)

    return list(merged.values())


# ============================================================
# SORT
# ============================================================

def _end_key(config: CampaignConfig) -> float:
    return math.inf if config.end_timestamp is None else config.end_timestamp


def sort_campaigns(configs: Iterable[CampaignConfig]) -> list[CampaignConfig]:
    """Ascending end, open-ended windows last."""
    return sorted(configs, key=_end_key)


def sort_incentives(incentives: Iterable[Incentive]) -> list[Incentive]:
    """LIVE, then SOON, then PAST. Stable within a status."""
    ordered = sorted(incentives, key=lambda i: STATUS_PRIORITY[i.status])
    return [replace(i, all_campaigns_configs=sort_campaigns(i.all_campaigns_configs)) for i in ordered]
