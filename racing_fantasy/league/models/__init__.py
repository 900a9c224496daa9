"""
League models module.

This __init__.py imports all models so callers can keep using:
from league.models import League, Race, SeasonStanding, etc.

Model organization:
- base.py: Core entities (User, League, LeagueMember)
- events.py: Races and official results (Race, RaceResult, FreePickRace)
- fantasy.py: Picks, per-race scores and season standings
- chase.py: Playoff bracket (ChaseRound, ChaseElimination)
- pipeline.py: Internal scoring pipeline state (RaceScoringStatus)
"""

# Import base models
from .base import (
    User,
    League,
    LeagueMember,
)

# Import event models
from .events import (
    Race,
    RaceResult,
    FreePickRace,
)

# Import fantasy models
from .fantasy import (
    DriverPick,
    PlayerRaceScore,
    SeasonStanding,
)

# Import chase models
from .chase import (
    ChaseRound,
    ChaseElimination,
)

# Import pipeline models
from .pipeline import (
    RaceScoringStatus,
)

# Explicit exports for clarity
__all__ = [
    # Base models (base.py)
    'User',
    'League',
    'LeagueMember',
    # Event models (events.py)
    'Race',
    'RaceResult',
    'FreePickRace',
    # Fantasy models (fantasy.py)
    'DriverPick',
    'PlayerRaceScore',
    'SeasonStanding',
    # Chase models (chase.py)
    'ChaseRound',
    'ChaseElimination',
    # Pipeline models (pipeline.py)
    'RaceScoringStatus',
]
