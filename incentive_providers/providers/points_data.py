"""
Static point programs and the Aave markets they reward.

Each campaign is one window of one program on one rewarded token.
A missing start means the program runs since inception, a missing
end means it is open-ended.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PointProgram:
    id: str
    name: str
    protocol: str
    description: str
    external_link: str
    # per_token | per_dollar | multiplier
    point_value_unit: str
    tge_price: Optional[float] = None


@dataclass(frozen=True)
class PointCampaign:
    program_id: str
    chain_id: int
    rewarded_token_address: str
    point_value: Optional[float] = None
    start_timestamp: Optional[int] = None
    end_timestamp: Optional[int] = None


# ============================================================
# PROGRAMS
# ============================================================

POINT_PROGRAMS: tuple[PointProgram, ...] = (
    PointProgram(
        id="etherfi",
        name="Etherfi Loyalty Points",
        protocol="Etherfi",
        description="Earn Etherfi loyalty points and EigenLayer points by supplying liquid restaking tokens",
        external_link="https://www.ether.fi/points",
        point_value_unit="per_token",
    ),
    PointProgram(
        id="ethena",
        name="Ethena Sats",
        protocol="Ethena",
        description="Earn Ethena Sats by supplying USDe or sUSDe",
        external_link="https://www.ethena.fi/sats",
        point_value_unit="per_dollar",
    ),
    PointProgram(
        id="kelp",
        name="Kelp Miles",
        protocol="Kelp DAO",
        description="Earn Kelp Miles and EigenLayer points by supplying rsETH",
        external_link="https://kelpdao.xyz/miles",
        point_value_unit="per_token",
    ),
    PointProgram(
        id="renzo",
        name="Renzo ezPoints",
        protocol="Renzo",
        description="Earn Renzo ezPoints by supplying ezETH",
        external_link="https://renzoprotocol.com/ezpoints",
        point_value_unit="per_token",
    ),
    PointProgram(
        id="eigenlayer",
        name="EigenLayer Points",
        protocol="EigenLayer",
        description="Earn EigenLayer points by supplying liquid restaking tokens",
        external_link="https://www.eigenlayer.xyz",
        point_value_unit="multiplier",
    ),
    PointProgram(
        id="sonic",
        name="Sonic Points",
        protocol="Sonic",
        description="Earn Sonic Points by participating in Sonic ecosystem",
        external_link="https://sonic.game",
        point_value_unit="per_dollar",
    ),
    PointProgram(
        id="kernel",
        name="Kernel Points",
        protocol="Kernel",
        description="Earn Kernel points by supplying eligible assets",
        external_link="https://kernel.community",
        point_value_unit="per_token",
    ),
)


# ============================================================
# CAMPAIGNS
# ============================================================

A_ETH_WEETH = "0xBdfa7b7893081B35Fb54027489e2Bc7A38275129"
A_ETH_USDE = "0x4F5923Fc5FD4a93352581b38B7cD26943012DECF"
A_ETH_RSETH = "0x2D62109243b87C4bA3EE7bA1D91B0dD0A074d7b1"
A_ETH_EZETH = "0x74e5664394998f13B07aF42446380ACef637969f"
A_BAS_WEETH = "0x7C307e128efA31F540F2E2d976C995E0B65F51F6"

POINT_CAMPAIGNS: tuple[PointCampaign, ...] = (
    # Etherfi, same rate on every chain
    PointCampaign("etherfi", 1, A_ETH_WEETH, point_value=1),
    PointCampaign("etherfi", 8453, A_BAS_WEETH, point_value=1),
    # Ethena, sats per dollar
    PointCampaign("ethena", 1, A_ETH_USDE, point_value=20),
    # Kelp, miles per ETH per day
    PointCampaign("kelp", 1, A_ETH_RSETH, point_value=10),
    PointCampaign("renzo", 1, A_ETH_EZETH, point_value=1),
    # EigenLayer, every restaking token on mainnet
    PointCampaign("eigenlayer", 1, A_ETH_WEETH, point_value=1),
    PointCampaign("eigenlayer", 1, A_ETH_RSETH, point_value=1),
    PointCampaign("eigenlayer", 1, A_ETH_EZETH, point_value=1),
    # Kernel, calendar year 2024
    PointCampaign(
        "kernel", 1, A_ETH_RSETH,
        point_value=1,
        start_timestamp=1704067200,
        end_timestamp=1735689600,
    ),
)


POINT_PROGRAMS_BY_ID: dict[str, PointProgram] = {p.id: p for p in POINT_PROGRAMS}
