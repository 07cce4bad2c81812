"""
Campaign windows - status derivation and current/next selection.

    now < start                       -> SOON
    start <= now <= end, or no end    -> LIVE
    otherwise                         -> PAST
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence

from incentive_providers.models import CampaignConfig, Status


def campaign_status(start: int, end: Optional[int], now: int) -> Status:
    """Status of one window at `now`."""
    if now < start:
        return Status.SOON
    if end is None or now <= end:
        return Status.LIVE
    return Status.PAST


def config_status(config: CampaignConfig, now: int) -> Status:
    return campaign_status(config.start_timestamp, config.end_timestamp, now)


@dataclass
class CampaignSelection:
    current: Optional[CampaignConfig] = None
    next: Optional[CampaignConfig] = None
    all: list[CampaignConfig] = field(default_factory=list)

    @property
    def status(self) -> Status:
        """LIVE if a window is running, SOON if one is scheduled, else PAST."""
        if self.current is not None:
            return Status.LIVE
        if self.next is not None:
            return Status.SOON
        return Status.PAST


def select_campaign_configs(configs: Sequence[CampaignConfig], now: int) -> CampaignSelection:
    """
    Pick the current and next windows.

    current: LIVE window with the latest start
    next: SOON window with the earliest start
    all: every window, in input order
    """
    live = [c for c in configs if config_status(c, now) == Status.LIVE]
    soon = [c for c in configs if config_status(c, now) == Status.SOON]

    current = max(live, key=lambda c: c.start_timestamp) if live else None
    upcoming = min(soon, key=lambda c: c.start_timestamp) if soon else None

    return CampaignSelection(current=current, next=upcoming, all=list(configs))
