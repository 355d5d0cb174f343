from dataclasses import dataclass
from typing import Any, Dict, List


@dataclass(frozen=True)
class CommuterLevel:
    name: str
    min_points: int
    max_points: float
    description: str


COMMUTER_LEVELS: List[CommuterLevel] = [
    CommuterLevel('Bronze', 0, 499, 'Getting started with public transport'),
    CommuterLevel('Silver', 500, 1249, 'Regular commuter'),
    CommuterLevel('Gold', 1250, 2499, 'Experienced traveler'),
    CommuterLevel('Platinum', 2500, float('inf'), 'Public transport expert'),
]


def get_commuter_level(points: int) -> CommuterLevel:
    """Level for a points total; negative totals count as zero"""
    valid_points = max(0, points)
    for level in COMMUTER_LEVELS:
        if level.min_points <= valid_points <= level.max_points:
            return level
    return COMMUTER_LEVELS[0]


def get_level_progress(points: int) -> Dict[str, Any]:
    """Current level, next level and progress towards it"""
    current = get_commuter_level(points)
    index = COMMUTER_LEVELS.index(current)

    if index == len(COMMUTER_LEVELS) - 1:
        return {
            'current_level': current,
            'next_level': None,
            'progress_percentage': 100.0,
            'points_to_next': 0,
        }

    next_level = COMMUTER_LEVELS[index + 1]
    points_in_level = max(0, points) - current.min_points
    points_needed = next_level.min_points - current.min_points
    return {
        'current_level': current,
        'next_level': next_level,
        'progress_percentage': min(100.0, points_in_level / points_needed * 100),
        'points_to_next': max(0, next_level.min_points - points),
    }
