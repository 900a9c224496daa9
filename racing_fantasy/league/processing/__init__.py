"""
Scoring and Chase engine.

Plain Python services the Prefect flows and management commands call.

Structure:
- points.py: Finishing position to fantasy points
- race_scoring.py: Score a race for a league
- standings.py: Rebuild season standings, regular-season winner
- tiebreakers.py: Ranking cascade shared by every ordering
- chase.py: Chase seeding, eliminations and championship
- picks.py: Pick lock and usage cap
- results_source.py: Fetch, parse and store race results
- payouts.py: Championship payouts
- exceptions.py: Engine error types
"""
