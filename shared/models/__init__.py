"""
Shared models for the SC2 ladder service.
These models describe upstream ladder payloads and the client-facing ranking.
"""

from .ladder import (
    LadderAccount,
    LadderCharacter,
    LadderClan,
    LadderLeague,
    LadderMember,
    LadderTeam,
)
from .ranking import (
    LeagueType,
    MovementStatistics,
    PositionChange,
    RankedPlayer,
    RankingSnapshot,
    RankingStatistics,
)
from .roster import RosterEntry
from .snapshot import SnapshotInfo

__all__ = [
    "LadderAccount",
    "LadderCharacter",
    "LadderClan",
    "LadderLeague",
    "LadderMember",
    "LadderTeam",
    "LeagueType",
    "MovementStatistics",
    "PositionChange",
    "RankedPlayer",
    "RankingSnapshot",
    "RankingStatistics",
    "RosterEntry",
    "SnapshotInfo",
]
