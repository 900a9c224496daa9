"""
Pick eligibility: lock time and the per-season driver usage cap.

Over-usage is still scored as a penalty by the race scoring engine; these
checks stop members from making such picks in the first place.
"""

import logging
from collections import Counter
from typing import Optional

from django.db import transaction
from django.db.models import Count
from django.utils import timezone

from config.rules import CUP_FANTASY_RULES
from .exceptions import LeagueConfigurationError, PickLockedError, PickNotAllowedError


logger = logging.getLogger(__name__)


def driver_usage(league, user, season, up_to_race_number: Optional[int] = None, exclude_race=None) -> Counter:
    """driver id -> non-free-pick picks this season"""
    from league.models import DriverPick
    from league.models.events import free_pick_q

    picks = DriverPick.objects.filter(
        league=league,
        user=user,
        race__season=season,
    ).exclude(free_pick_q(league))
    if up_to_race_number is not None:
        picks = picks.filter(race__race_number__lte=up_to_race_number)
    if exclude_race is not None:
        picks = picks.exclude(race=exclude_race)

    rows = picks.values('driver_id').annotate(uses=Count('id'))
    return Counter({row['driver_id']: row['uses'] for row in rows})


def _check_unlocked(race, now):
    if race.is_locked(now):
        raise PickLockedError(f"Picks for {race} locked at {race.scheduled_at}")


def submit_pick(league, user, race, driver_id: int, driver_name: str = '', car_number: str = '', now=None):
    """
    Create or change a member's pick for a race.

    Re-picking the driver already chosen for this race is always allowed.
    A different driver must be under the usage cap, free-pick races aside.

    Raises:
        PickLockedError: Race has started
        LeagueConfigurationError: User isn't a member of the league
        PickNotAllowedError: Driver already used the maximum number of times
    """
    from league.models import DriverPick

    now = now or timezone.now()
    _check_unlocked(race, now)

    if not league.members.filter(user=user).exists():
        raise LeagueConfigurationError(f"{user} is not a member of {league}")

    is_free_pick = race.is_free_pick_for(league)

    with transaction.atomic():
        existing = (
            DriverPick.objects.select_for_update()
            .filter(league=league, user=user, race=race)
            .first()
        )

        if not is_free_pick and (existing is None or existing.driver_id != driver_id):
            max_uses = CUP_FANTASY_RULES['picks']['max_driver_uses']
            uses = driver_usage(league, user, race.season, exclude_race=race).get(driver_id, 0)
            if uses >= max_uses:
                raise PickNotAllowedError(
                    f"{driver_name or driver_id} already picked {uses} times this season (max {max_uses})"
                )

        pick, created = DriverPick.objects.update_or_create(
            league=league,
            user=user,
            race=race,
            defaults={
                'driver_id': driver_id,
                'driver_name': driver_name,
                'car_number': car_number,
                'is_free_pick': is_free_pick,
            },
        )

    action = "Created" if created else "Updated"
    logger.info(f"{action} pick for {user} in {race}: {driver_name or driver_id}")
    return pick


def remove_pick(league, user, race, now=None) -> bool:
    """Delete a member's pick. Returns False when there was none."""
    from league.models import DriverPick

    now = now or timezone.now()
    _check_unlocked(race, now)

    deleted, _ = DriverPick.objects.filter(league=league, user=user, race=race).delete()
    return deleted > 0
