"""
Prefect flows for the scoring and Chase pipeline.

Flows handle:
- Task orchestration
- Results fetch caching and retries
- Error handling (engine errors become a summary status)
- Slack notifications

Structure:
- score_race.py: Fetch results and score a race for a league
- chase.py: Regular-season winner, Chase seeding, eliminations, championship
"""
