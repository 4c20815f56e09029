"""
Position movement between two rankings, matched by battle-tag.
"""

from typing import Dict, List, Sequence

from shared.models.ranking import MovementStatistics, PositionChange, RankedPlayer


def calculate_position_changes(
    current: Sequence[RankedPlayer], previous: Sequence[RankedPlayer]
) -> Dict[str, PositionChange]:
    previous_positions: Dict[str, int] = {}
    for index, player in enumerate(previous):
        if player.btag and player.btag not in previous_positions:
            previous_positions[player.btag] = index

    changes: Dict[str, PositionChange] = {}
    for current_index, player in enumerate(current):
        if not player.btag:
            continue
        previous_index = previous_positions.get(player.btag)
        indicator = "none"
        if previous_index is not None:
            if current_index < previous_index:
                indicator = "up"
            elif current_index > previous_index:
                indicator = "down"
        changes[player.btag] = PositionChange(
            current_position=current_index,
            previous_position=previous_index,
            indicator=indicator,
        )
    return changes


def add_position_indicators(
    current: Sequence[RankedPlayer], previous: Sequence[RankedPlayer]
) -> List[RankedPlayer]:
    """Copies of ``current`` carrying indicators; rows without a battle-tag are left as-is."""
    changes = calculate_position_changes(current, previous)
    result = []
    for player in current:
        change = changes.get(player.btag) if player.btag else None
        if change is None:
            result.append(player)
            continue
        result.append(
            player.model_copy(
                update={
                    "position_change_indicator": change.indicator,
                    "previous_position": change.previous_position,
                }
            )
        )
    return result


def movement_statistics(changes: Dict[str, PositionChange]) -> MovementStatistics:
    stats = MovementStatistics()
    for change in changes.values():
        if change.indicator == "up":
            stats.up += 1
        elif change.indicator == "down":
            stats.down += 1
        elif change.previous_position is not None:
            stats.unchanged += 1
        else:
            stats.new += 1
    return stats
