"""
Finishing position to fantasy points.

Table values live in config.rules so a series with different points can
swap them without touching the engine.
"""

from typing import Iterable

from config.rules import CUP_FANTASY_RULES


SCORING_RULES = CUP_FANTASY_RULES['scoring']


def points_for_position(position: int) -> int:
    """
    Fantasy points for a finishing position.

    1st = 40, 2nd = 35, then one point less per position down to 2 points
    for 35th. Anything beyond the table scores 1.

    Raises:
        ValueError: position is not a valid finishing position (< 1)
    """
    if position is None or position < 1:
        raise ValueError(f"Invalid finishing position: {position}")

    return SCORING_RULES['finish_points'].get(position, SCORING_RULES['beyond_table_points'])


def last_place_points(positions: Iterable[int]) -> int:
    """
    Points for the worst finishing position actually recorded in a race.

    This is the penalty for no pick, over-usage and unclassified drivers,
    so it tracks the size of the field instead of a fixed number.
    """
    positions = list(positions)
    if not positions:
        raise ValueError("Cannot compute last-place points without results")

    return points_for_position(max(positions))
