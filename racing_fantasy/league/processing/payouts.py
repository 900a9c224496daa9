"""
Championship payouts from the final Chase placements.
"""

from decimal import Decimal
from typing import List, Tuple

from config.rules import CUP_FANTASY_RULES


PAYOUT_FIELDS = ['payout_first', 'payout_second', 'payout_third', 'payout_fourth']


def payout_for_place(league, placement: int) -> Decimal:
    if placement < 1 or placement > CUP_FANTASY_RULES['payouts']['places']:
        return Decimal('0')
    return getattr(league, PAYOUT_FIELDS[placement - 1])


def total_prize_pool(league) -> Decimal:
    return sum((getattr(league, field) for field in PAYOUT_FIELDS), Decimal('0'))


def championship_payouts(league, season=None) -> List[Tuple[object, int, Decimal]]:
    """
    (user, placement, amount) for every paid place of the finished Chase.

    Empty until the championship has been finalized.
    """
    from league.models import ChaseElimination, ChaseRound

    season = season or league.season
    places = CUP_FANTASY_RULES['payouts']['places']

    finalists = (
        ChaseElimination.objects
        .filter(
            league=league,
            season=season,
            eliminated_round=ChaseRound.CHAMPIONSHIP,
            final_position__lte=places,
        )
        .select_related('user')
        .order_by('final_position')
    )

    return [
        (record.user, record.final_position, payout_for_place(league, record.final_position))
        for record in finalists
    ]
