"""
Models for SC2Pulse ladder payloads.
Field names follow the upstream JSON; unknown fields are ignored.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional


class LadderModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class LadderLeague(LadderModel):
    type: Optional[int] = None
    queueType: Optional[int] = None
    teamType: Optional[int] = None


class LadderAccount(LadderModel):
    battleTag: Optional[str] = None
    id: Optional[int] = None
    tag: Optional[str] = None
    discriminator: Optional[int] = None
    partition: Optional[str] = None


class LadderCharacter(LadderModel):
    id: Optional[int] = None
    name: Optional[str] = None
    region: Optional[str] = None
    realm: Optional[int] = None
    battlenetId: Optional[int] = None


class LadderClan(LadderModel):
    tag: Optional[str] = None
    id: Optional[int] = None
    name: Optional[str] = None
    region: Optional[str] = None
    members: Optional[int] = None
    activeMembers: Optional[int] = None
    avgRating: Optional[int] = None
    avgLeagueType: Optional[int] = None
    games: Optional[int] = None


class LadderMember(LadderModel):
    terranGamesPlayed: Optional[int] = None
    protossGamesPlayed: Optional[int] = None
    zergGamesPlayed: Optional[int] = None
    randomGamesPlayed: Optional[int] = None

    character: Optional[LadderCharacter] = None
    account: Optional[LadderAccount] = None
    clan: Optional[LadderClan] = None

    raceGames: Optional[Dict[str, int]] = None


class LadderTeam(LadderModel):
    """One ladder standing of one player for one race in the 1v1 queue."""

    id: Optional[int] = None
    season: Optional[int] = None
    region: Optional[str] = None

    rating: Optional[int] = None
    wins: int = 0
    losses: int = 0
    ties: int = 0

    league: Optional[LadderLeague] = None
    leagueType: Optional[int] = None

    globalRank: Optional[int] = None
    regionRank: Optional[int] = None
    leagueRank: Optional[int] = None

    lastPlayed: Optional[str] = None

    members: List[LadderMember] = Field(default_factory=list)

    @property
    def member(self) -> Optional[LadderMember]:
        return self.members[0] if self.members else None

    @property
    def battle_tag(self) -> Optional[str]:
        member = self.member
        if member is None or member.account is None:
            return None
        return member.account.battleTag or None

    @property
    def league_type(self) -> Optional[int]:
        if self.league is not None and self.league.type is not None:
            return self.league.type
        return self.leagueType
