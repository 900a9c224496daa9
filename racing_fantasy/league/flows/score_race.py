"""
Prefect flow for scoring a race for a league.

This flow orchestrates the scoring process:
1. Fetch results from the results proxy when the race has none stored
   (or when a refresh is requested after a results correction)
2. Store the normalized results
3. Score every member's pick and rebuild the season standings
4. Optionally post a Slack summary

Features:
- Results fetch cached by inputs for RESULTS_CACHE_TTL seconds
- Automatic retries on the fetch
- One scoring run per (league, race) at a time
- Failures reported in the summary instead of raised
"""

from datetime import timedelta
from typing import Dict, Optional

from django.conf import settings
from prefect import flow, task, get_run_logger
from prefect.cache_policies import INPUTS, NONE

from config.notifications import send_scoring_notification
from league.processing.exceptions import FantasyEngineError, ResultsNotAvailableError
from league.processing.race_scoring import score_race
from league.processing.results_source import (
    fetch_results_payload,
    parse_results_payload,
    store_race_results,
)


@task(
    name="Fetch Race Results",
    cache_policy=INPUTS,
    cache_expiration=timedelta(seconds=settings.RESULTS_CACHE_TTL),
    retries=settings.RESULTS_FETCH_RETRIES,
    retry_delay_seconds=settings.RESULTS_FETCH_RETRY_DELAY
)
def fetch_race_results(race_id: int) -> Dict:
    """
    Fetch the normalized results document for a race.

    Cached by race id, so several leagues scoring the same race within the
    TTL share one request.

    Raises:
        ResultsNotAvailableError: Results not published or feed unreachable
    """
    from league.models import Race

    logger = get_run_logger()

    race = Race.objects.get(id=race_id)
    payload = fetch_results_payload(race)

    logger.info(f"Fetched {len(payload.get('results', []))} results for {race}")
    return payload


@task(name="Store Race Results", cache_policy=NONE)
def ingest_race_results(race_id: int, payload: Dict) -> int:
    """Parse a results document and replace the race's stored results"""
    from league.models import Race

    logger = get_run_logger()

    race = Race.objects.get(id=race_id)
    entries = parse_results_payload(payload)
    if not entries:
        raise ResultsNotAvailableError(f"Results document for {race} has no usable rows")

    count = store_race_results(race, entries)
    logger.info(f"Stored {count} results for {race}")
    return count


@task(name="Score Race Picks", cache_policy=NONE)
def score_race_picks(league_id: int, race_id: int, flow_run_id: Optional[str] = None) -> Dict:
    """Score a race for one league and rebuild its standings"""
    from league.models import League, Race

    logger = get_run_logger()

    league = League.objects.get(id=league_id)
    race = Race.objects.get(id=race_id)

    result = score_race(league, race, flow_run_id=flow_run_id)

    logger.info(result['message'])
    for error in result['errors']:
        logger.warning(f"Pick issue: {error}")

    return result


def _current_flow_run_id() -> Optional[str]:
    from prefect.runtime import flow_run

    run_id = flow_run.id
    return str(run_id) if run_id else None


@flow(name="Score Race", log_prints=True)
def score_race_flow(
    league_id: int,
    race_id: int,
    refresh_results: bool = False,
    notify: bool = False
) -> Dict:
    """
    Score a race for a league.

    Args:
        league_id: League to score
        race_id: Race to score
        refresh_results: Re-fetch results even if stored (results correction)
        notify: If True, send a Slack summary

    Returns:
        Summary dict with status 'success', 'not_available' or 'failed'
    """
    from league.models import League, Race

    logger = get_run_logger()

    league = League.objects.get(id=league_id)
    race = Race.objects.get(id=race_id)

    logger.info(f"Scoring {race} for {league}")

    summary = {
        'league_id': league_id,
        'race_id': race_id,
        'status': 'running',
        'results_fetched': False,
    }

    try:
        if refresh_results or not race.has_results:
            fetch = fetch_race_results
            if refresh_results:
                fetch = fetch_race_results.with_options(refresh_cache=True)

            payload = fetch(race_id)
            ingest_race_results(race_id, payload)
            summary['results_fetched'] = True

        result = score_race_picks(league_id, race_id, _current_flow_run_id())
        summary.update(result)

    except ResultsNotAvailableError as e:
        logger.warning(f"Results not available for {race}: {e}")
        summary['status'] = 'not_available'
        summary['message'] = str(e)

    except FantasyEngineError as e:
        logger.error(f"Scoring {race} failed: {e}")
        summary['status'] = 'failed'
        summary['message'] = str(e)
        summary['retryable'] = e.retryable

    except Exception as e:
        logger.error(f"Scoring {race} failed with unexpected error: {e}")
        summary['status'] = 'failed'
        summary['message'] = str(e)

    if notify:
        send_scoring_notification(summary, league.name, race.name)

    return summary
