"""
Tiebreaker cascade for standings.

Players are ordered by points (regular-season or playoff, caller's choice),
then race wins, top-5s, top-10s, top-15s and top-20s, all descending.

Works on anything exposing those attributes: SeasonStanding instances,
the StatLine dataclass used in tests, or plain objects.
"""

from dataclasses import dataclass
from typing import Any, List, Optional


LEVEL_POINTS = 'points'
LEVEL_WINS = 'wins'
LEVEL_TOP5S = 'top5s'
LEVEL_TOP10S = 'top10s'
LEVEL_TOP15S = 'top15s'
LEVEL_TOP20S = 'top20s'
LEVEL_TIED = 'tied'

# (level, attribute) in cascade order, after the primary points field
TIEBREAK_FIELDS = [
    (LEVEL_WINS, 'race_wins'),
    (LEVEL_TOP5S, 'top_5s'),
    (LEVEL_TOP10S, 'top_10s'),
    (LEVEL_TOP15S, 'top_15s'),
    (LEVEL_TOP20S, 'top_20s'),
]

LEVEL_LABELS = {
    LEVEL_POINTS: 'Points',
    LEVEL_WINS: 'Race Wins',
    LEVEL_TOP5S: 'Top 5s',
    LEVEL_TOP10S: 'Top 10s',
    LEVEL_TOP15S: 'Top 15s',
    LEVEL_TOP20S: 'Top 20s',
    LEVEL_TIED: 'Tied',
}


@dataclass
class StatLine:
    """Minimal stat carrier for ranking outside the database"""
    user_id: int
    regular_season_points: int = 0
    playoff_points: int = 0
    race_wins: int = 0
    top_5s: int = 0
    top_10s: int = 0
    top_15s: int = 0
    top_20s: int = 0


@dataclass
class RankedStanding:
    position: int
    standing: Any
    points: int
    level: Optional[str]
    decided_by_tiebreaker: bool

    @property
    def level_label(self):
        return tiebreaker_label(self.level) if self.level else ''


def primary_field(use_playoff_points: bool) -> str:
    return 'playoff_points' if use_playoff_points else 'regular_season_points'


def sort_key(player, use_playoff_points: bool = False):
    """Ascending sort key that yields the descending cascade order"""
    key = [-getattr(player, primary_field(use_playoff_points))]
    key.extend(-getattr(player, attr) for _, attr in TIEBREAK_FIELDS)
    return tuple(key)


def sort_standings(players, use_playoff_points: bool = False) -> List[Any]:
    """
    Full ordering of players by the cascade.

    The sort is stable: players tied at every level keep their input order,
    so callers that need determinism pass a deterministically ordered list.
    """
    return sorted(players, key=lambda p: sort_key(p, use_playoff_points))


def compare_level(a, b, use_playoff_points: bool = False) -> str:
    """
    First cascade level at which two players differ.

    Returns one of 'points', 'wins', 'top5s', 'top10s', 'top15s', 'top20s'
    or 'tied'.
    """
    field = primary_field(use_playoff_points)
    if getattr(a, field) != getattr(b, field):
        return LEVEL_POINTS

    for level, attr in TIEBREAK_FIELDS:
        if getattr(a, attr) != getattr(b, attr):
            return level

    return LEVEL_TIED


def was_decided_by_tiebreaker(current, previous, use_playoff_points: bool = False) -> bool:
    """True when both exist and have the same points (order came from the cascade)"""
    if current is None or previous is None:
        return False
    field = primary_field(use_playoff_points)
    return getattr(current, field) == getattr(previous, field)


def tiebreaker_label(level: str) -> str:
    return LEVEL_LABELS.get(level, level)


def annotate_standings(players, use_playoff_points: bool = False) -> List[RankedStanding]:
    """
    Rank players and note how each row was separated from the row above.

    The leader has no level. Tied rows share nothing special: positions
    are still 1..n in sorted order.
    """
    field = primary_field(use_playoff_points)
    ranked = []
    previous = None

    for position, player in enumerate(sort_standings(players, use_playoff_points), start=1):
        level = compare_level(player, previous, use_playoff_points) if previous is not None else None
        ranked.append(RankedStanding(
            position=position,
            standing=player,
            points=getattr(player, field),
            level=level,
            decided_by_tiebreaker=was_decided_by_tiebreaker(player, previous, use_playoff_points),
        ))
        previous = player

    return ranked
