"""
Season standings, rebuilt from per-race scores.

SeasonStanding totals are a fold over the league's PlayerRaceScore rows,
so rescoring a race never double counts. Chase flags and the playoff
window bookkeeping (playoff_points_carried, playoff_window_start) are the
only state not derived from scores; they are written by the Chase engine
and by the regular-season winner award.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from django.db import transaction
from django.db.models import F

from config.rules import CUP_FANTASY_RULES
from .exceptions import ChaseStateError, LeagueConfigurationError
from .tiebreakers import sort_standings


logger = logging.getLogger(__name__)

BUCKET_FIELDS = {
    5: 'top_5s',
    10: 'top_10s',
    15: 'top_15s',
    20: 'top_20s',
}

TOTAL_FIELDS = ['regular_season_points', 'race_wins', 'stage_wins'] + list(BUCKET_FIELDS.values())


@dataclass
class StandingTotals:
    regular_season_points: int = 0
    window_playoff_points: int = 0
    race_wins: int = 0
    stage_wins: int = 0
    top_5s: int = 0
    top_10s: int = 0
    top_15s: int = 0
    top_20s: int = 0


def accumulate_scores(
    scores: Iterable,
    regular_season_end: Optional[int] = None,
    playoff_window_start: int = 0,
) -> StandingTotals:
    """
    Fold one player's race scores into season totals.

    Args:
        scores: Objects with race_number, points_earned, finishing_position,
                is_race_win, stage_wins and playoff_points_earned
        regular_season_end: First Chase race number; races from here on
                don't add regular-season points (None = no Chase yet)
        playoff_window_start: First race number whose playoff points count

    A finishing position increments every bucket it falls inside, so a
    3rd place counts as a top 5, top 10, top 15 and top 20.
    """
    totals = StandingTotals()
    buckets = CUP_FANTASY_RULES['scoring']['finish_buckets']

    for score in scores:
        if regular_season_end is None or score.race_number < regular_season_end:
            totals.regular_season_points += score.points_earned

        if score.race_number >= playoff_window_start:
            totals.window_playoff_points += score.playoff_points_earned

        if score.is_race_win:
            totals.race_wins += 1
        totals.stage_wins += score.stage_wins

        if score.finishing_position is not None:
            for threshold in buckets:
                if score.finishing_position <= threshold:
                    attr = BUCKET_FIELDS[threshold]
                    setattr(totals, attr, getattr(totals, attr) + 1)

    return totals


def apply_totals(standing, totals: StandingTotals):
    for attr in TOTAL_FIELDS:
        setattr(standing, attr, getattr(totals, attr))
    standing.playoff_points = standing.playoff_points_carried + totals.window_playoff_points


def regular_season_end(league, season) -> Optional[int]:
    """Race number the Chase starts at, or None while it hasn't been seeded"""
    from league.models import ChaseRound

    first_round = (
        ChaseRound.objects
        .filter(league=league, season=season, round_number=ChaseRound.ROUND_1)
        .first()
    )
    return first_round.start_race_number if first_round else None


def next_race_number(league, season) -> int:
    """Race number after the last race scored for this league season"""
    from league.models import PlayerRaceScore

    last = (
        PlayerRaceScore.objects
        .filter(league=league, race__season=season)
        .order_by('-race__race_number')
        .values_list('race__race_number', flat=True)
        .first()
    )
    return (last or 0) + 1


@transaction.atomic
def rebuild_season_standings(league, season) -> Dict[int, object]:
    """
    Recompute every SeasonStanding of a league season from its race scores.

    Players with scores but no standing get one. Returns user id -> standing.
    """
    from league.models import PlayerRaceScore, SeasonStanding

    chase_start = regular_season_end(league, season)

    scores_by_user = defaultdict(list)
    scores = (
        PlayerRaceScore.objects
        .filter(league=league, race__season=season)
        .annotate(race_number=F('race__race_number'))
        .order_by('user_id', 'race_number')
    )
    for score in scores:
        scores_by_user[score.user_id].append(score)

    standings = {
        standing.user_id: standing
        for standing in SeasonStanding.objects.select_for_update().filter(league=league, season=season)
    }

    created = 0
    for user_id in sorted(set(scores_by_user) | set(standings)):
        standing = standings.get(user_id)
        if standing is None:
            standing = SeasonStanding(league=league, user_id=user_id, season=season)
            standings[user_id] = standing
            created += 1

        totals = accumulate_scores(
            scores_by_user.get(user_id, []),
            regular_season_end=chase_start,
            playoff_window_start=standing.playoff_window_start,
        )
        apply_totals(standing, totals)
        standing.save()

    logger.debug(f"Rebuilt {len(standings)} standings for {league} ({created} new)")
    return standings


def award_regular_season_winner(league, season=None) -> Dict:
    """
    Flag the regular-season champion and add the bonus playoff points.

    Ranked on regular-season points with the full tiebreaker cascade. Only
    once per season and only before the Chase is seeded.

    Raises:
        ChaseStateError: Winner already awarded or Chase already seeded
        LeagueConfigurationError: No standings to rank
    """
    from league.models import ChaseRound, League, SeasonStanding

    season = season or league.season
    bonus = CUP_FANTASY_RULES['playoff_points']['regular_season_winner']

    with transaction.atomic():
        League.objects.select_for_update().get(pk=league.pk)

        if ChaseRound.objects.filter(league=league, season=season).exists():
            raise ChaseStateError("The Chase has started; the regular season is over")

        if SeasonStanding.objects.filter(league=league, season=season, is_regular_season_winner=True).exists():
            raise ChaseStateError(f"Regular-season winner already awarded for {league} {season}")

        rebuild_season_standings(league, season)
        standings = list(
            SeasonStanding.objects.filter(league=league, season=season)
            .select_related('user')
            .order_by('user_id')
        )
        if not standings:
            raise LeagueConfigurationError(f"No standings for {league} {season}")

        winner = sort_standings(standings, use_playoff_points=False)[0]
        winner.is_regular_season_winner = True
        winner.playoff_points_carried += bonus
        winner.playoff_points += bonus
        winner.save()

    logger.info(f"Regular-season winner for {league} {season}: {winner.user} (+{bonus} playoff points)")

    return {
        'winner': winner.user_id,
        'winner_name': str(winner.user),
        'regular_season_points': winner.regular_season_points,
        'bonus': bonus,
    }
