"""
Merge the per-race ladder teams of one account into a single aggregate.

SC2Pulse returns up to one 1v1 team per race for every tracked character.
Teams are grouped by battle-tag; scalar fields become index-aligned lists
(one element per constituent team) and race game counts are summed.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from api.logging_config import get_logger
from api.metrics import metrics
from shared.models.ladder import (
    LadderAccount,
    LadderCharacter,
    LadderClan,
    LadderMember,
    LadderTeam,
)

logger = get_logger(__name__)

CANONICAL_RACES = ("TERRAN", "ZERG", "PROTOSS", "RANDOM")

LEGACY_RACE_FIELDS = {
    "TERRAN": "terranGamesPlayed",
    "ZERG": "zergGamesPlayed",
    "PROTOSS": "protossGamesPlayed",
    "RANDOM": "randomGamesPlayed",
}


def _from_race_games(member: LadderMember) -> Optional[Dict[str, int]]:
    if not member.raceGames:
        return None
    games = {
        str(race).upper(): int(count)
        for race, count in member.raceGames.items()
        if isinstance(count, (int, float)) and count >= 0
    }
    return games or None


def _from_legacy_fields(member: LadderMember) -> Optional[Dict[str, int]]:
    games = {}
    for race, attr in LEGACY_RACE_FIELDS.items():
        count = getattr(member, attr)
        if isinstance(count, (int, float)) and count > 0:
            games[race] = int(count)
    return games or None


RACE_EXTRACTORS: List[Callable[[LadderMember], Optional[Dict[str, int]]]] = [
    _from_race_games,
    _from_legacy_fields,
]


def extract_race_games(member: Optional[LadderMember]) -> Dict[str, int]:
    """First non-empty result of the extraction strategies, else ``{}``."""
    if member is None:
        return {}
    for extractor in RACE_EXTRACTORS:
        games = extractor(member)
        if games:
            return games
    return {}


def _merge_model(current, incoming):
    """Last-write-wins on the fields the incoming model actually carries."""
    if incoming is None:
        return current
    if current is None:
        return incoming
    updates = {
        name: getattr(incoming, name)
        for name in incoming.model_fields_set
        if getattr(incoming, name) is not None
    }
    return current.model_copy(update=updates)


@dataclass
class ConsolidatedPlayer:
    btag: str
    rating: List[Optional[int]] = field(default_factory=list)
    wins: List[int] = field(default_factory=list)
    losses: List[int] = field(default_factory=list)
    ties: List[int] = field(default_factory=list)
    league_type: List[Optional[int]] = field(default_factory=list)
    global_rank: List[Optional[int]] = field(default_factory=list)
    region_rank: List[Optional[int]] = field(default_factory=list)
    league_rank: List[Optional[int]] = field(default_factory=list)
    last_played: List[Optional[str]] = field(default_factory=list)
    race_games_by_team: List[Dict[str, int]] = field(default_factory=list)
    race_games: Dict[str, int] = field(default_factory=dict)
    account: Optional[LadderAccount] = None
    character: Optional[LadderCharacter] = None
    clan: Optional[LadderClan] = None

    def __len__(self) -> int:
        return len(self.rating)

    def add_team(self, team: LadderTeam) -> None:
        member = team.member
        team_games = extract_race_games(member)

        self.rating.append(team.rating)
        self.wins.append(team.wins)
        self.losses.append(team.losses)
        self.ties.append(team.ties)
        self.league_type.append(team.league_type)
        self.global_rank.append(team.globalRank)
        self.region_rank.append(team.regionRank)
        self.league_rank.append(team.leagueRank)
        self.last_played.append(team.lastPlayed)
        self.race_games_by_team.append(team_games)

        for race, count in team_games.items():
            self.race_games[race] = self.race_games.get(race, 0) + count

        if member is not None:
            self.account = _merge_model(self.account, member.account)
            self.character = _merge_model(self.character, member.character)
            self.clan = _merge_model(self.clan, member.clan)


def consolidate_teams(teams: Iterable[LadderTeam]) -> Dict[str, ConsolidatedPlayer]:
    """Group teams by battle-tag, preserving input order within each group."""
    players: Dict[str, ConsolidatedPlayer] = {}
    dropped = 0
    for team in teams:
        btag = team.battle_tag
        if not btag:
            dropped += 1
            continue
        player = players.get(btag)
        if player is None:
            player = players[btag] = ConsolidatedPlayer(btag=btag)
        player.add_team(team)

    if dropped:
        metrics.data_quality_dropped_total += dropped
        logger.warning(
            "Dropped ladder teams without a battle-tag",
            extra={"context": {"dropped": dropped, "players": len(players)}},
        )
    return players
