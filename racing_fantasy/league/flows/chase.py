"""
Prefect flows for Chase transitions.

Each flow wraps one engine transition, turns engine errors into a
'failed' summary and optionally posts the outcome to Slack:

- award_regular_season_winner_flow: flag the regular-season champion
- qualify_for_chase_flow: seed the field and open round 1
- process_elimination_flow: close an elimination round
- finalize_championship_flow: crown the champion
"""

from typing import Callable, Dict, Optional

from prefect import flow, task, get_run_logger
from prefect.cache_policies import NONE

from config.notifications import send_chase_notification
from config.rules import CUP_FANTASY_RULES
from league.processing import chase, standings
from league.processing.exceptions import FantasyEngineError


@task(name="Run Chase Transition", cache_policy=NONE)
def run_chase_transition(action: Callable, league_id: int, **kwargs) -> Dict:
    """Load the league and run an engine transition against it"""
    from league.models import League

    logger = get_run_logger()

    league = League.objects.get(id=league_id)
    result = action(league, **kwargs)

    logger.info(f"{action.__name__} for {league}: {result}")
    return result


def _run(action: Callable, title: str, league_id: int, notify: bool, **kwargs) -> Dict:
    from league.models import League

    logger = get_run_logger()
    league = League.objects.get(id=league_id)

    summary = {'league_id': league_id, 'status': 'running'}

    try:
        summary.update(run_chase_transition(action, league_id, **kwargs))
        summary['status'] = 'success'
        summary['message'] = f"{title} complete for {league.name}"
    except FantasyEngineError as e:
        logger.error(f"{title} failed for {league}: {e}")
        summary['status'] = 'failed'
        summary['message'] = str(e)
    except Exception as e:
        logger.error(f"{title} failed for {league} with unexpected error: {e}")
        summary['status'] = 'failed'
        summary['message'] = str(e)

    if notify:
        send_chase_notification(summary, league.name, title)

    return summary


@flow(name="Award Regular Season Winner", log_prints=True)
def award_regular_season_winner_flow(league_id: int, season: Optional[int] = None, notify: bool = False) -> Dict:
    return _run(
        standings.award_regular_season_winner, "Regular-Season Winner", league_id, notify,
        season=season,
    )


@flow(name="Qualify For Chase", log_prints=True)
def qualify_for_chase_flow(league_id: int, season: Optional[int] = None, notify: bool = False) -> Dict:
    """Seed the Chase field from the regular-season standings"""
    return _run(chase.qualify_for_chase, "Chase Field Set", league_id, notify, season=season)


@flow(name="Process Chase Elimination", log_prints=True)
def process_elimination_flow(
    league_id: int,
    round_number: int,
    season: Optional[int] = None,
    notify: bool = False
) -> Dict:
    """Close an elimination round (1-3) and open the next"""
    round_name = CUP_FANTASY_RULES['chase']['round_names'].get(round_number, f"Round {round_number}")
    return _run(
        chase.process_elimination, f"{round_name} Eliminations", league_id, notify,
        round_number=round_number, season=season,
    )


@flow(name="Finalize Chase Championship", log_prints=True)
def finalize_championship_flow(league_id: int, season: Optional[int] = None, notify: bool = False) -> Dict:
    """Record the final order of the championship round"""
    return _run(chase.finalize_championship, "Championship Final", league_id, notify, season=season)
