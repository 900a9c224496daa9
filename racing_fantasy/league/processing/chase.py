"""
Chase (playoff) engine.

A league season moves through explicit phases:

    regular_season -> round 1 -> round 2 -> round 3 -> championship -> complete

The phase is derived from ChaseRound rows. Every transition runs in one
transaction with the League row locked, re-derives the phase after taking
the lock and raises ChaseStateError before writing anything if the
requested transition doesn't match.

Playoff points restart for advancing players at every transition: the
standing's playoff window moves to the next race and its carried points
drop to zero (the top qualifiers carry their regular-season playoff
points into round 1; wild cards start from zero).
"""

import logging
from dataclasses import dataclass
from typing import Dict, List

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from django.utils.module_loading import import_string

from config.rules import CUP_FANTASY_RULES
from .exceptions import ChaseStateError, LeagueConfigurationError
from .standings import next_race_number, rebuild_season_standings
from .tiebreakers import sort_standings


logger = logging.getLogger(__name__)

CHASE_RULES = CUP_FANTASY_RULES['chase']

PHASE_REGULAR_SEASON = 'regular_season'
PHASE_ROUND = 'round'
PHASE_CHAMPIONSHIP = 'championship'
PHASE_COMPLETE = 'complete'

STATUS_SAFE = 'safe'
STATUS_AT_RISK = 'at-risk'
STATUS_ELIMINATED = 'eliminated'

ELIMINATION_ROUNDS = (1, 2, 3)
CHAMPIONSHIP_ROUND = 4


@dataclass(frozen=True)
class ChaseState:
    phase: str
    round_number: int

    @property
    def round_name(self):
        return CHASE_RULES['round_names'].get(self.round_number, f"Round {self.round_number}")


def proportional_cutoff(round_number: int, field_size: int) -> int:
    """
    Players who survive a round.

    A full field (23+) uses the standard 16 / 10 / 4. Smaller fields scale
    each cutoff by field_size / 23, rounded down, never below 4 and never
    above the field. The championship crowns from min(4, field).
    """
    standard = CHASE_RULES['players_remaining'].get(round_number)
    if standard is None:
        raise ValueError(f"No cutoff for round {round_number}")

    if round_number == CHAMPIONSHIP_ROUND:
        return min(standard, field_size)

    full_field = CHASE_RULES['field_size']
    if field_size >= full_field:
        return standard

    scaled = max(field_size * standard // full_field, CHASE_RULES['minimum_remaining'])
    return min(scaled, field_size)


def cutoff_for(round_number: int, field_size: int) -> int:
    """Cutoff from the policy configured in settings.CHASE_CUTOFF_POLICY"""
    policy = import_string(settings.CHASE_CUTOFF_POLICY)
    return policy(round_number, field_size)


def elimination_status(position: int, round_number: int, field_size: int, is_eliminated: bool = False) -> str:
    """
    Where a player sits relative to the elimination line.

    'safe' well above the cutoff, 'at-risk' in the last positions that
    still advance, 'eliminated' below the line (or already out).
    """
    if is_eliminated:
        return STATUS_ELIMINATED

    cutoff = cutoff_for(round_number, field_size)
    if position <= cutoff - CHASE_RULES['at_risk_margin']:
        return STATUS_SAFE
    if position <= cutoff:
        return STATUS_AT_RISK
    return STATUS_ELIMINATED


def get_chase_state(league, season=None) -> ChaseState:
    from league.models import ChaseRound

    season = season or league.season
    rounds = list(ChaseRound.objects.filter(league=league, season=season).order_by('round_number'))

    if not rounds:
        return ChaseState(PHASE_REGULAR_SEASON, ChaseRound.REGULAR_SEASON)

    active = [r for r in rounds if r.is_active]
    if active:
        current = active[0]
        if current.round_number == ChaseRound.REGULAR_SEASON:
            return ChaseState(PHASE_REGULAR_SEASON, ChaseRound.REGULAR_SEASON)
        if current.round_number == ChaseRound.CHAMPIONSHIP:
            return ChaseState(PHASE_CHAMPIONSHIP, ChaseRound.CHAMPIONSHIP)
        return ChaseState(PHASE_ROUND, current.round_number)

    if rounds[-1].round_number == ChaseRound.CHAMPIONSHIP:
        return ChaseState(PHASE_COMPLETE, ChaseRound.CHAMPIONSHIP)

    raise ChaseStateError(
        f"{league} {season} has Chase rounds but none is active and the championship never ran"
    )


def _field_size(league, season) -> int:
    from league.models import ChaseRound

    first_round = ChaseRound.objects.filter(
        league=league, season=season, round_number=ChaseRound.ROUND_1,
    ).first()
    if first_round is None:
        raise LeagueConfigurationError(f"{league} {season} has no round 1")
    return first_round.players_remaining


def _lock_league(league):
    from league.models import League
    return League.objects.select_for_update().get(pk=league.pk)


def _ranked_active_standings(league, season) -> List:
    from league.models import SeasonStanding

    active = list(
        SeasonStanding.objects
        .filter(league=league, season=season, is_eliminated=False)
        .select_related('user')
        .order_by('user_id')
    )
    return sort_standings(active, use_playoff_points=True)


def _start_window(standing, start_race, carried=0):
    standing.playoff_points_carried = carried
    standing.playoff_points = carried
    standing.playoff_window_start = start_race


def qualify_for_chase(league, season=None) -> Dict:
    """
    Seed the Chase field and open round 1.

    The top 20 on regular-season points qualify automatically (ties by user
    id). Up to 3 wild cards come from race winners outside the top 20,
    ranked by the cascade on playoff points. Everyone else is out at
    round 0 without an elimination record.

    Raises:
        ChaseStateError: Chase already seeded
        LeagueConfigurationError: No standings
    """
    from league.models import ChaseRound, SeasonStanding

    season = season or league.season
    now = timezone.now()

    with transaction.atomic():
        _lock_league(league)

        state = get_chase_state(league, season)
        if state.phase != PHASE_REGULAR_SEASON:
            raise ChaseStateError(f"Chase for {league} {season} is already seeded ({state.round_name})")

        rebuild_season_standings(league, season)
        standings = list(
            SeasonStanding.objects.filter(league=league, season=season).order_by('user_id')
        )
        if not standings:
            raise LeagueConfigurationError(f"No standings for {league} {season}")

        by_points = sorted(standings, key=lambda s: (-s.regular_season_points, s.user_id))
        top = by_points[:CHASE_RULES['automatic_qualifiers']]
        rest = by_points[CHASE_RULES['automatic_qualifiers']:]

        race_winners = sorted((s for s in rest if s.race_wins >= 1), key=lambda s: s.user_id)
        wild_cards = sort_standings(race_winners, use_playoff_points=True)[:CHASE_RULES['wild_cards']]

        field_ids = {s.user_id for s in top} | {s.user_id for s in wild_cards}
        start_race = next_race_number(league, season)

        for standing in top:
            _start_window(standing, start_race, carried=standing.playoff_points)
            standing.is_wild_card = False
            standing.is_eliminated = False
            standing.elimination_round = None
            standing.save()

        for standing in wild_cards:
            _start_window(standing, start_race)
            standing.is_wild_card = True
            standing.is_eliminated = False
            standing.elimination_round = None
            standing.save()

        for standing in standings:
            if standing.user_id not in field_ids:
                standing.is_eliminated = True
                standing.elimination_round = ChaseRound.REGULAR_SEASON
                standing.is_wild_card = False
                standing.save()

        ChaseRound.objects.create(
            league=league,
            season=season,
            round_number=ChaseRound.ROUND_1,
            players_remaining=len(field_ids),
            start_race_number=start_race,
            is_active=True,
            started_at=now,
        )

    logger.info(
        f"Chase seeded for {league} {season}: {len(top)} on points + "
        f"{len(wild_cards)} wild cards, round 1 starts at race {start_race}"
    )

    return {
        'qualifier_count': len(field_ids),
        'top_qualifier_count': len(top),
        'wildcard_count': len(wild_cards),
        'eliminated_count': len(standings) - len(field_ids),
        'start_race_number': start_race,
    }


def process_elimination(league, round_number: int, season=None) -> Dict:
    """
    Close an elimination round and open the next one.

    The top `cutoff_for(round, field)` players on playoff points advance and
    restart at zero. The rest are eliminated with placements continuing
    below the cutoff (17th, 18th, ... after round 1 of a full field) and the
    playoff points they held.

    Raises:
        ChaseStateError: round_number isn't the active elimination round
    """
    from league.models import ChaseElimination, ChaseRound

    season = season or league.season
    if round_number not in ELIMINATION_ROUNDS:
        raise ChaseStateError(f"Round {round_number} is not an elimination round")

    now = timezone.now()

    with transaction.atomic():
        _lock_league(league)

        state = get_chase_state(league, season)
        if state.phase != PHASE_ROUND or state.round_number != round_number:
            raise ChaseStateError(
                f"Cannot process round {round_number} for {league} {season}: "
                f"current phase is {state.phase} ({state.round_name})"
            )

        rebuild_season_standings(league, season)
        current_round = ChaseRound.objects.select_for_update().get(
            league=league, season=season, round_number=round_number,
        )
        field_size = _field_size(league, season)
        target = cutoff_for(round_number, field_size)

        ranked = _ranked_active_standings(league, season)
        advancing = ranked[:target]
        eliminated = ranked[target:]

        already_recorded = ChaseElimination.objects.filter(
            league=league, season=season, user_id__in=[s.user_id for s in eliminated],
        )
        if already_recorded.exists():
            raise ChaseStateError(f"Elimination records already exist for round {round_number} players")

        ChaseElimination.objects.bulk_create([
            ChaseElimination(
                league=league,
                user_id=standing.user_id,
                season=season,
                eliminated_round=round_number,
                final_position=target + offset,
                playoff_points_at_elimination=standing.playoff_points,
            )
            for offset, standing in enumerate(eliminated, start=1)
        ])

        for standing in eliminated:
            standing.is_eliminated = True
            standing.elimination_round = round_number
            standing.save()

        start_race = next_race_number(league, season)
        for standing in advancing:
            _start_window(standing, start_race)
            standing.save()

        current_round.is_active = False
        current_round.completed_at = now
        current_round.save()

        ChaseRound.objects.create(
            league=league,
            season=season,
            round_number=round_number + 1,
            players_remaining=len(advancing),
            start_race_number=start_race,
            is_active=True,
            started_at=now,
        )

    logger.info(
        f"Round {round_number} closed for {league} {season}: "
        f"{len(advancing)} advance, {len(eliminated)} eliminated"
    )

    return {
        'round_number': round_number,
        'advancing_count': len(advancing),
        'eliminated_count': len(eliminated),
        'cutoff': target,
        'next_round': round_number + 1,
    }


def finalize_championship(league, season=None) -> Dict:
    """
    Crown the champion and record the final order of the remaining players.

    Raises:
        ChaseStateError: Championship round isn't active
    """
    from league.models import ChaseElimination, ChaseRound

    season = season or league.season
    now = timezone.now()

    with transaction.atomic():
        _lock_league(league)

        state = get_chase_state(league, season)
        if state.phase != PHASE_CHAMPIONSHIP:
            raise ChaseStateError(
                f"Cannot finalize {league} {season}: current phase is {state.phase}"
            )

        rebuild_season_standings(league, season)
        championship = ChaseRound.objects.select_for_update().get(
            league=league, season=season, round_number=ChaseRound.CHAMPIONSHIP,
        )

        ranked = _ranked_active_standings(league, season)
        if not ranked:
            raise LeagueConfigurationError(f"No players left in the championship for {league} {season}")

        ChaseElimination.objects.bulk_create([
            ChaseElimination(
                league=league,
                user_id=standing.user_id,
                season=season,
                eliminated_round=ChaseRound.CHAMPIONSHIP,
                final_position=position,
                playoff_points_at_elimination=standing.playoff_points,
            )
            for position, standing in enumerate(ranked, start=1)
        ])

        championship.is_active = False
        championship.completed_at = now
        championship.save()

    champion = ranked[0]
    logger.info(f"{league} {season} champion: {champion.user} ({champion.playoff_points} playoff points)")

    return {
        'champion': champion.user_id,
        'champion_name': str(champion.user),
        'final_order': [standing.user_id for standing in ranked],
    }
