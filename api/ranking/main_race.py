"""
Main-race selection: flatten a ConsolidatedPlayer into one RankedPlayer.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from api.logging_config import get_logger
from api.metrics import metrics
from api.ranking.activity import ActivityClassifier
from api.ranking.consolidator import CANONICAL_RACES, ConsolidatedPlayer
from api.ranking.roster import DisplayNameResolver
from shared.models.ranking import RankedPlayer

logger = get_logger(__name__)


def race_order(race_games: Dict[str, int]) -> List[str]:
    """Canonical races first, then any other race keys in first-seen order."""
    ordered = [race for race in CANONICAL_RACES if race in race_games]
    ordered.extend(race for race in race_games if race not in CANONICAL_RACES)
    return ordered


def pick_main_race(race_games: Dict[str, int]) -> Optional[str]:
    """Race with the strictly greatest count; ties keep the earlier race. ``None`` if all zero."""
    best_race = None
    best_games = 0
    for race in race_order(race_games):
        games = race_games.get(race) or 0
        if games > best_games:
            best_race = race
            best_games = games
    return best_race


def constituent_index(player: ConsolidatedPlayer, race: str) -> int:
    """Index of the team contributing the largest single share of ``race``; earliest wins ties."""
    best_index = 0
    best_games = 0
    for idx, games in enumerate(player.race_games_by_team):
        count = games.get(race, 0)
        if count > best_games:
            best_index = idx
            best_games = count
    return best_index


def _at(values: list, index: int):
    return values[index] if 0 <= index < len(values) else None


def select_main_race(
    player: ConsolidatedPlayer,
    resolver: Optional[DisplayNameResolver],
    classifier: ActivityClassifier,
) -> Optional[RankedPlayer]:
    race = pick_main_race(player.race_games)
    if race is None:
        return None

    index = constituent_index(player, race)
    total_games = sum(player.race_games.values())
    last_played = _at(player.last_played, index)

    account = player.account
    character = player.character
    player_id = None
    if character is not None and character.id is not None:
        player_id = character.id
    elif account is not None:
        player_id = account.id

    if resolver is None:
        resolver = DisplayNameResolver()
    name = resolver.resolve(
        btag=player.btag,
        player_id=player_id,
        account_tag=account.tag if account is not None else None,
    )

    return RankedPlayer(
        id=player_id,
        name=name,
        btag=player.btag,
        discriminator=account.discriminator if account is not None else None,
        clan_tag=player.clan.tag if player.clan is not None else None,
        rating_last=_at(player.rating, index),
        race=race,
        total_games=total_games,
        games_this_season=total_games,
        games_per_race=dict(player.race_games),
        wins=_at(player.wins, index) or 0,
        losses=_at(player.losses, index) or 0,
        ties=_at(player.ties, index) or 0,
        league_type_last=_at(player.league_type, index),
        league_rank=_at(player.league_rank, index),
        global_rank=_at(player.global_rank, index),
        region_rank=_at(player.region_rank, index),
        last_played=last_played,
        last_date_played=classifier.last_date_played(last_played),
        online=classifier.is_online(last_played),
        activity_status=classifier.status(last_played),
    )


def sort_by_rating(players: Iterable[RankedPlayer]) -> List[RankedPlayer]:
    """Stable sort, highest rating first; unrated players go last."""
    return sorted(
        players,
        key=lambda p: (p.rating_last is None, -(p.rating_last or 0)),
    )


def build_ranking(
    players: Dict[str, ConsolidatedPlayer],
    resolver: Optional[DisplayNameResolver],
    classifier: ActivityClassifier,
) -> Tuple[List[RankedPlayer], int]:
    """Select every player's main race and sort; returns the ranking and the excluded count."""
    ranked = []
    excluded = 0
    for player in players.values():
        try:
            row = select_main_race(player, resolver, classifier)
        except ValidationError as e:
            metrics.data_quality_dropped_total += 1
            logger.warning(
                "Dropped player row that failed validation",
                extra={"context": {"btag": player.btag, "errors": e.error_count()}},
            )
            excluded += 1
            continue
        if row is None:
            excluded += 1
            continue
        ranked.append(row)
    return sort_by_rating(ranked), excluded
