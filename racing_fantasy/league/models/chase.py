"""
Chase (playoff) models.

- ChaseRound: one playoff round for a league season, at most one active
- ChaseElimination: permanent record of how each Chase entrant finished
"""

from django.conf import settings
from django.db import models
from django.db.models import Q

from config.rules import CUP_FANTASY_RULES
from .base import League


class ChaseRound(models.Model):
    """
    A round of the Chase.

    Round numbers: 0 regular season, 1-3 elimination rounds, 4 championship.
    """

    REGULAR_SEASON = 0
    ROUND_1 = 1
    ROUND_2 = 2
    ROUND_3 = 3
    CHAMPIONSHIP = 4

    ROUND_CHOICES = [
        (number, name) for number, name in CUP_FANTASY_RULES['chase']['round_names'].items()
    ]

    league = models.ForeignKey(League, on_delete=models.CASCADE, related_name='chase_rounds')
    season = models.IntegerField()
    round_number = models.IntegerField(choices=ROUND_CHOICES)
    players_remaining = models.IntegerField(help_text="Players who entered this round")
    start_race_number = models.IntegerField(
        null=True,
        blank=True,
        help_text="First race whose playoff points count in this round"
    )
    is_active = models.BooleanField(default=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['league', 'season', 'round_number']
        unique_together = [['league', 'season', 'round_number']]
        constraints = [
            models.UniqueConstraint(
                fields=['league', 'season'],
                condition=Q(is_active=True),
                name='one_active_chase_round_per_league_season',
            ),
        ]
        verbose_name = 'Chase Round'
        verbose_name_plural = 'Chase Rounds'

    def __str__(self):
        state = 'active' if self.is_active else 'closed'
        return f"{self.league.name} {self.season} - {self.get_round_number_display()} ({state})"


class ChaseElimination(models.Model):
    """
    Where a Chase entrant finished. Write-once per league season.

    Eliminated players get the round they went out in; the Final Four get
    round 4 with their championship placement (1 = champion).
    """
    league = models.ForeignKey(League, on_delete=models.CASCADE, related_name='chase_eliminations')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='chase_eliminations')
    season = models.IntegerField()
    eliminated_round = models.IntegerField(choices=ChaseRound.ROUND_CHOICES)
    final_position = models.IntegerField(null=True, blank=True)
    playoff_points_at_elimination = models.IntegerField(default=0)
    eliminated_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['league', 'season', 'final_position']
        unique_together = [['league', 'user', 'season']]
        indexes = [
            models.Index(fields=['league', 'season', 'eliminated_round'], name='elimination_round_idx'),
        ]
        verbose_name = 'Chase Elimination'
        verbose_name_plural = 'Chase Eliminations'

    def __str__(self):
        return f"{self.user} - P{self.final_position} ({self.get_eliminated_round_display()})"

    @property
    def is_champion(self):
        return self.eliminated_round == ChaseRound.CHAMPIONSHIP and self.final_position == 1
