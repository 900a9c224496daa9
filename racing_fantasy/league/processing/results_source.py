"""
Race results: fetch from the results proxy, normalize, store and load.

The proxy returns one JSON document per race:

    {
        "race_name": "Daytona 500",
        "results": [
            {"driver_id": 4030, "driver_name": "...", "car_number": "5",
             "finishing_position": 1},
            ...
        ],
        "stage_results": [
            {"stage_num": 1, "results": [{"driver_id": 4030, "finishing_position": 1}, ...]},
            ...
        ]
    }

Stage wins are derived here (a driver wins a stage by finishing it 1st),
so the scoring engine only ever sees one flat list of entries per race.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional

import httpx
from django.conf import settings
from django.db import transaction

from .exceptions import ResultsNotAvailableError


logger = logging.getLogger(__name__)


@dataclass
class ResultEntry:
    """One driver's outcome in a race"""
    driver_id: int
    finishing_position: int
    stage_wins: int = 0
    driver_name: str = ''
    car_number: str = ''


def results_feed_url(race) -> str:
    """Feed URL for a race (falls back to race number when no external id)"""
    race_id = race.external_id if race.external_id is not None else race.race_number
    return settings.RESULTS_FEED_URL.format(
        series=race.series,
        season=race.season,
        race_id=race_id,
    )


def fetch_results_payload(race, client: Optional[httpx.Client] = None) -> Dict:
    """
    GET the normalized results document for a race.

    Args:
        race: Race instance
        client: Optional httpx.Client (tests inject one with a MockTransport)

    Returns:
        dict: Parsed JSON payload with a non-empty "results" list

    Raises:
        ResultsNotAvailableError: 404, HTTP error, timeout, transport error
            or a payload without results
    """
    url = results_feed_url(race)

    if client is None:
        with httpx.Client(timeout=settings.RESULTS_FEED_TIMEOUT) as client:
            return _get_payload(client, url, race)

    return _get_payload(client, url, race)


def _get_payload(client: httpx.Client, url: str, race) -> Dict:
    logger.info(f"Fetching results for {race} from {url}")

    try:
        response = client.get(url, timeout=settings.RESULTS_FEED_TIMEOUT)
    except httpx.TimeoutException as e:
        raise ResultsNotAvailableError(f"Results feed timed out for {race}") from e
    except httpx.TransportError as e:
        raise ResultsNotAvailableError(f"Results feed unreachable for {race}: {e}") from e

    if response.status_code == 404:
        raise ResultsNotAvailableError(f"No results published yet for {race}")

    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise ResultsNotAvailableError(
            f"Results feed returned {response.status_code} for {race}"
        ) from e

    try:
        payload = response.json()
    except ValueError as e:
        raise ResultsNotAvailableError(f"Results feed returned invalid JSON for {race}") from e

    if not isinstance(payload, dict) or not payload.get('results'):
        raise ResultsNotAvailableError(f"Results for {race} are empty, try again later")

    return payload


def parse_results_payload(payload: Dict) -> List[ResultEntry]:
    """
    Turn a results document into ResultEntry rows ordered by position.

    Rows without a driver id or a usable position are dropped with a
    warning; a duplicate driver keeps its first row.
    """
    stage_winners = Counter()
    for stage in payload.get('stage_results') or []:
        winner = next(
            (r for r in stage.get('results') or [] if r.get('finishing_position') == 1),
            None,
        )
        if winner and winner.get('driver_id') is not None:
            stage_winners[int(winner['driver_id'])] += 1

    entries = {}
    for row in payload.get('results') or []:
        try:
            driver_id = int(row['driver_id'])
            position = int(row['finishing_position'])
        except (KeyError, TypeError, ValueError):
            logger.warning(f"Skipping malformed result row: {row}")
            continue

        if position < 1:
            logger.warning(f"Skipping result row with position {position}: {row}")
            continue

        if driver_id in entries:
            logger.warning(f"Duplicate result for driver {driver_id}, keeping first")
            continue

        entries[driver_id] = ResultEntry(
            driver_id=driver_id,
            finishing_position=position,
            stage_wins=stage_winners.get(driver_id, 0),
            driver_name=row.get('driver_name') or '',
            car_number=str(row.get('car_number') or ''),
        )

    return sorted(entries.values(), key=lambda e: e.finishing_position)


@transaction.atomic
def store_race_results(race, entries: List[ResultEntry]) -> int:
    """Replace all stored results for a race. Returns the number of rows written."""
    from league.models import RaceResult

    RaceResult.objects.filter(race=race).delete()
    RaceResult.objects.bulk_create([
        RaceResult(
            race=race,
            driver_id=entry.driver_id,
            driver_name=entry.driver_name,
            car_number=entry.car_number,
            finishing_position=entry.finishing_position,
            stage_wins=entry.stage_wins,
        )
        for entry in entries
    ])

    logger.info(f"Stored {len(entries)} results for {race}")
    return len(entries)


def load_race_results(race) -> List[ResultEntry]:
    from league.models import RaceResult

    return [
        ResultEntry(
            driver_id=row.driver_id,
            finishing_position=row.finishing_position,
            stage_wins=row.stage_wins,
            driver_name=row.driver_name,
            car_number=row.car_number,
        )
        for row in RaceResult.objects.filter(race=race).order_by('finishing_position')
    ]
