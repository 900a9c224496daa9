"""
Race scoring engine.

Turns one race's official results and a league's picks into per-player
scores, then rebuilds the league's season standings from those scores.

Structure:
- score_player(): scoring policy for a single member (pure)
- score_race_entries(): every member of a league for one race (pure)
- score_race(): load, score and persist for a league, guarded so only one
  run per (league, race) is in flight
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Count
from django.utils import timezone

from config.rules import CUP_FANTASY_RULES
from .exceptions import (
    LeagueConfigurationError,
    ResultsNotAvailableError,
    ScoringInProgressError,
)
from .points import last_place_points, points_for_position
from .results_source import ResultEntry, load_race_results


logger = logging.getLogger(__name__)

OUTCOME_SCORED = 'scored'
OUTCOME_NO_PICK = 'no_pick'
OUTCOME_OVER_USAGE = 'over_usage'
OUTCOME_NOT_CLASSIFIED = 'not_classified'
OUTCOME_FREE_PICK_WIN = 'free_pick_win'
OUTCOME_FREE_PICK_MISS = 'free_pick_miss'


@dataclass
class PickEntry:
    """A member's pick as the engine sees it"""
    user_id: int
    driver_id: int
    driver_name: str = ''
    usage_count: int = 1


@dataclass
class PlayerScore:
    user_id: int
    points_earned: int
    outcome: str
    driver_id: Optional[int] = None
    driver_name: str = ''
    finishing_position: Optional[int] = None
    is_race_win: bool = False
    stage_wins: int = 0
    playoff_points_earned: int = 0
    is_free_pick: bool = False


@dataclass
class RaceScoringOutcome:
    scores: List[PlayerScore] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def score_player(
    user_id: int,
    pick: Optional[PickEntry],
    results_by_driver: Dict[int, ResultEntry],
    penalty_points: int,
    is_free_pick: bool,
) -> PlayerScore:
    """
    Score one member for one race.

    Policy, first match wins:
    1. No pick: last-place points
    2. Driver used more than the cap in a normal race: last-place points
    3. Free-pick race: win or nothing
    4. Normal race: table points (or last place when the driver is not listed)
    """
    rules = CUP_FANTASY_RULES

    if pick is None:
        return PlayerScore(
            user_id=user_id,
            points_earned=penalty_points,
            outcome=OUTCOME_NO_PICK,
            is_free_pick=is_free_pick,
        )

    base = dict(
        user_id=user_id,
        driver_id=pick.driver_id,
        driver_name=pick.driver_name,
        is_free_pick=is_free_pick,
    )

    if not is_free_pick and pick.usage_count > rules['picks']['max_driver_uses']:
        return PlayerScore(points_earned=penalty_points, outcome=OUTCOME_OVER_USAGE, **base)

    result = results_by_driver.get(pick.driver_id)

    if is_free_pick:
        # Stage wins do not count in free-pick races
        if result is not None and result.finishing_position == 1:
            return PlayerScore(
                points_earned=rules['scoring']['free_pick_win_points'],
                outcome=OUTCOME_FREE_PICK_WIN,
                finishing_position=1,
                is_race_win=True,
                playoff_points_earned=rules['playoff_points']['free_pick_win'],
                **base,
            )
        return PlayerScore(
            points_earned=rules['scoring']['free_pick_miss_points'],
            outcome=OUTCOME_FREE_PICK_MISS,
            finishing_position=result.finishing_position if result else None,
            **base,
        )

    if result is None:
        return PlayerScore(points_earned=penalty_points, outcome=OUTCOME_NOT_CLASSIFIED, **base)

    is_win = result.finishing_position == 1
    playoff_points = result.stage_wins * rules['playoff_points']['stage_win']
    if is_win:
        playoff_points += rules['playoff_points']['race_win']

    return PlayerScore(
        points_earned=points_for_position(result.finishing_position),
        outcome=OUTCOME_SCORED,
        finishing_position=result.finishing_position,
        is_race_win=is_win,
        stage_wins=result.stage_wins,
        playoff_points_earned=playoff_points,
        **base,
    )


def score_race_entries(
    user_ids: Iterable[int],
    picks: Dict[int, PickEntry],
    results: List[ResultEntry],
    is_free_pick: bool,
) -> RaceScoringOutcome:
    """
    Score every eligible member of a league for one race.

    Args:
        user_ids: Members to score
        picks: user id -> PickEntry (members without a pick are absent)
        results: All result entries for the race
        is_free_pick: Race is scored win/no-win

    Returns:
        RaceScoringOutcome with one PlayerScore per member and a list of
        non-fatal anomalies
    """
    if not results:
        raise ResultsNotAvailableError("Race has no results")

    results_by_driver = {entry.driver_id: entry for entry in results}
    penalty = last_place_points(entry.finishing_position for entry in results)

    outcome = RaceScoringOutcome()
    for user_id in user_ids:
        score = score_player(user_id, picks.get(user_id), results_by_driver, penalty, is_free_pick)
        outcome.scores.append(score)

        if score.outcome == OUTCOME_OVER_USAGE:
            outcome.errors.append(
                f"User {user_id} picked driver {score.driver_id} more than "
                f"{CUP_FANTASY_RULES['picks']['max_driver_uses']} times"
            )
        elif score.outcome == OUTCOME_NOT_CLASSIFIED:
            outcome.errors.append(f"User {user_id} picked driver {score.driver_id} who is not in the results")

    return outcome


def driver_usage_counts(league, race) -> Counter:
    """
    (user id, driver id) -> non-free-pick picks in this league season,
    counting races up to and including this one.
    """
    from league.models import DriverPick
    from league.models.events import free_pick_q

    rows = (
        DriverPick.objects
        .filter(
            league=league,
            race__season=race.season,
            race__series=race.series,
            race__race_number__lte=race.race_number,
        )
        .exclude(free_pick_q(league))
        .values('user_id', 'driver_id')
        .annotate(uses=Count('id'))
    )
    return Counter({(row['user_id'], row['driver_id']): row['uses'] for row in rows})


def claim_scoring(league, race, now=None):
    """
    Take the scoring claim for (league, race) in its own transaction.

    A claim older than SCORING_LOCK_TIMEOUT belongs to a run that died and
    is taken over.

    Raises:
        ScoringInProgressError: Another live run holds the claim
    """
    from league.models import RaceScoringStatus

    now = now or timezone.now()
    timeout = settings.SCORING_LOCK_TIMEOUT

    with transaction.atomic():
        status, _ = RaceScoringStatus.objects.select_for_update().get_or_create(
            league=league,
            race=race,
        )
        if status.is_scoring:
            if not status.is_stale(timeout, now):
                raise ScoringInProgressError(f"{race} is already being scored for {league}")
            logger.warning(
                f"Taking over stale scoring claim for {race} in {league} "
                f"(started {status.scoring_started_at})"
            )
        status.mark_started(now)

    return status


def score_race(league, race, now=None, flow_run_id: Optional[str] = None) -> Dict:
    """
    Score a race for a league and rebuild its standings.

    Scores for the race are deleted and rewritten in one transaction, so
    running this twice with the same inputs leaves identical rows.

    Returns:
        dict: status, scored_count, skipped_count, is_free_pick,
              winner_driver_id, errors, message

    Raises:
        ResultsNotAvailableError: No stored results for the race
        LeagueConfigurationError: League has no members, or the race is from
            another series or season
        ScoringInProgressError: Race already being scored for this league
    """
    from league.models import PlayerRaceScore
    from .standings import rebuild_season_standings

    if race.season != league.season or race.series != league.series:
        raise LeagueConfigurationError(
            f"{race} ({race.series} {race.season}) is not part of {league} ({league.series} {league.season})"
        )

    now = now or timezone.now()
    status = claim_scoring(league, race, now)

    try:
        results = load_race_results(race)
        if not results:
            raise ResultsNotAvailableError(f"No results for {race} yet, try again later")

        member_count = league.members.count()
        if member_count == 0:
            raise LeagueConfigurationError(f"{league} has no members")

        eligible_ids = [member.user_id for member in league.scoring_members(now)]
        skipped_count = member_count - len(eligible_ids)

        is_free_pick = race.is_free_pick_for(league)
        usage = driver_usage_counts(league, race)
        picks = {
            pick.user_id: PickEntry(
                user_id=pick.user_id,
                driver_id=pick.driver_id,
                driver_name=pick.driver_name,
                usage_count=usage.get((pick.user_id, pick.driver_id), 0),
            )
            for pick in race.picks.filter(league=league, user_id__in=eligible_ids)
        }

        outcome = score_race_entries(eligible_ids, picks, results, is_free_pick)

        with transaction.atomic():
            race.picks.filter(league=league).update(is_free_pick=is_free_pick)
            PlayerRaceScore.objects.filter(league=league, race=race).delete()
            PlayerRaceScore.objects.bulk_create([
                PlayerRaceScore(
                    league=league,
                    race=race,
                    user_id=score.user_id,
                    driver_id=score.driver_id,
                    driver_name=score.driver_name,
                    points_earned=score.points_earned,
                    finishing_position=score.finishing_position,
                    is_race_win=score.is_race_win,
                    stage_wins=score.stage_wins,
                    playoff_points_earned=score.playoff_points_earned,
                    is_free_pick=score.is_free_pick,
                    outcome=score.outcome,
                )
                for score in outcome.scores
            ])
            rebuild_season_standings(league, race.season)

    except Exception as e:
        status.mark_failed(e)
        raise

    status.mark_scored(len(outcome.scores), timestamp=now, flow_run_id=flow_run_id)

    winner = next((entry for entry in results if entry.finishing_position == 1), None)
    for error in outcome.errors:
        logger.warning(error)

    message = f"Scored {len(outcome.scores)} players for {race}"
    if skipped_count:
        message += f" ({skipped_count} unpaid skipped)"
    if is_free_pick:
        message += " [free pick]"
    logger.info(message)

    return {
        'status': 'success',
        'scored_count': len(outcome.scores),
        'skipped_count': skipped_count,
        'is_free_pick': is_free_pick,
        'winner_driver_id': winner.driver_id if winner else None,
        'errors': outcome.errors,
        'message': message,
    }
