from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Literal, Optional
from datetime import datetime, timezone
from enum import IntEnum

PositionIndicator = Literal["up", "down", "none"]
ActivityStatus = Literal["online", "recent", "inactive", "unknown"]


class LeagueType(IntEnum):
    BRONZE = 0
    SILVER = 1
    GOLD = 2
    PLATINUM = 3
    DIAMOND = 4
    MASTER = 5
    GRANDMASTER = 6


class RankedPlayer(BaseModel):
    """One client-facing ranking row, flattened to the player's main race."""

    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    name: str
    btag: Optional[str] = None
    discriminator: Optional[int] = None
    clan_tag: Optional[str] = None

    rating_last: Optional[int] = None
    race: Optional[str] = None
    total_games: int = Field(default=0, ge=0)
    games_this_season: int = Field(default=0, ge=0)
    games_per_race: Dict[str, int] = Field(default_factory=dict)

    wins: int = 0
    losses: int = 0
    ties: int = 0
    league_type_last: Optional[int] = None
    league_rank: Optional[int] = None
    global_rank: Optional[int] = None
    region_rank: Optional[int] = None

    last_played: Optional[str] = None
    last_date_played: str = "-"
    online: bool = False
    activity_status: ActivityStatus = "unknown"

    position_change_indicator: Optional[PositionIndicator] = None
    previous_position: Optional[int] = None

    @property
    def league_name(self) -> Optional[str]:
        if self.league_type_last is None:
            return None
        try:
            return LeagueType(self.league_type_last).name
        except ValueError:
            return None


class RankingSnapshot(BaseModel):
    data: List[RankedPlayer] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    expiry: Optional[datetime] = None


class PositionChange(BaseModel):
    current_position: int = Field(ge=0)
    previous_position: Optional[int] = Field(default=None, ge=0)
    indicator: PositionIndicator = "none"


class MovementStatistics(BaseModel):
    up: int = 0
    down: int = 0
    unchanged: int = 0
    new: int = 0


class RankingStatistics(BaseModel):
    total_players: int = 0
    active_players: int = 0
    average_rating: float = 0.0
    race_distribution: Dict[str, int] = Field(default_factory=dict)
    league_distribution: Dict[str, int] = Field(default_factory=dict)
