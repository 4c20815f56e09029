"""
Display filtering and summary statistics over a computed ranking.
"""

import math
from typing import List, Optional, Sequence

from shared.models.ranking import RankedPlayer, RankingStatistics


def _finite(value) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value)


def is_valid_ranking_row(player: RankedPlayer) -> bool:
    return (
        _finite(player.rating_last)
        and _finite(player.league_type_last)
        and isinstance(player.race, str)
    )


def filter_by_minimum_games(
    ranking: Sequence[RankedPlayer], minimum_games: int = 20
) -> List[RankedPlayer]:
    return [p for p in ranking if (p.total_games or 0) >= minimum_games]


def filter_ranking_for_display(
    rows: Optional[Sequence[RankedPlayer]], minimum_games: int = 10
) -> List[RankedPlayer]:
    """
    Keep valid rows with enough games.

    Falls back to all valid rows when nobody meets the games threshold (early
    season), and to the unfiltered input when no row is valid at all.
    """
    if not rows:
        return []
    valid = [row for row in rows if is_valid_ranking_row(row)]
    active = filter_by_minimum_games(valid, minimum_games)
    if active:
        return active
    if valid:
        return valid
    return list(rows)


def ranking_statistics(ranking: Sequence[RankedPlayer]) -> RankingStatistics:
    race_distribution = {}
    league_distribution = {}
    for player in ranking:
        race = player.race or "UNKNOWN"
        race_distribution[race] = race_distribution.get(race, 0) + 1
        league = player.league_name or "UNKNOWN"
        league_distribution[league] = league_distribution.get(league, 0) + 1

    average = 0.0
    if ranking:
        average = sum(p.rating_last or 0 for p in ranking) / len(ranking)

    return RankingStatistics(
        total_players=len(ranking),
        active_players=sum(1 for p in ranking if p.online),
        average_rating=average,
        race_distribution=race_distribution,
        league_distribution=league_distribution,
    )
