"""
Fantasy game models.

Picks made by league members, the per-race scores computed from them and
the season standings derived from those scores.

Design rationale:
- PlayerRaceScore rows are owned by the scoring engine and fully replaced
  every time a race is (re)scored for a league
- SeasonStanding is a projection rebuilt from PlayerRaceScore rows, so a
  rescore can never double count
"""

from django.conf import settings
from django.db import models
from django.core.validators import MinValueValidator

from .base import League
from .events import Race


class DriverPick(models.Model):
    """
    A member's driver for one race.
    Mutable until the race locks; authoritative once the race is scored.
    """
    league = models.ForeignKey(League, on_delete=models.CASCADE, related_name='picks')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='driver_picks')
    race = models.ForeignKey(Race, on_delete=models.CASCADE, related_name='picks')

    driver_id = models.IntegerField(help_text="Driver id in the results feed")
    driver_name = models.CharField(max_length=200, blank=True)
    car_number = models.CharField(max_length=10, blank=True)
    is_free_pick = models.BooleanField(
        default=False,
        help_text="Made for a free-pick race; does not count against the usage cap"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['league', 'race__race_number', 'user']
        unique_together = [['league', 'user', 'race']]
        indexes = [
            models.Index(fields=['league', 'race'], name='pick_league_race_idx'),
            models.Index(fields=['league', 'user', 'driver_id'], name='pick_league_user_driver_idx'),
        ]
        verbose_name = 'Driver Pick'
        verbose_name_plural = 'Driver Picks'

    def __str__(self):
        return f"{self.user} - {self.race.name}: {self.driver_name or self.driver_id}"


class PlayerRaceScore(models.Model):
    """
    Points a member earned in one race.
    """

    OUTCOME_SCORED = 'scored'
    OUTCOME_NO_PICK = 'no_pick'
    OUTCOME_OVER_USAGE = 'over_usage'
    OUTCOME_NOT_CLASSIFIED = 'not_classified'
    OUTCOME_FREE_PICK_WIN = 'free_pick_win'
    OUTCOME_FREE_PICK_MISS = 'free_pick_miss'

    OUTCOME_CHOICES = [
        (OUTCOME_SCORED, 'Scored'),
        (OUTCOME_NO_PICK, 'No Pick (last place)'),
        (OUTCOME_OVER_USAGE, 'Over-usage (last place)'),
        (OUTCOME_NOT_CLASSIFIED, 'Driver not in results (last place)'),
        (OUTCOME_FREE_PICK_WIN, 'Free Pick Win'),
        (OUTCOME_FREE_PICK_MISS, 'Free Pick Miss'),
    ]

    league = models.ForeignKey(League, on_delete=models.CASCADE, related_name='race_scores')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='race_scores')
    race = models.ForeignKey(Race, on_delete=models.CASCADE, related_name='player_scores')

    driver_id = models.IntegerField(null=True, blank=True)
    driver_name = models.CharField(max_length=200, blank=True)

    points_earned = models.IntegerField(validators=[MinValueValidator(0)])
    finishing_position = models.IntegerField(
        null=True,
        blank=True,
        help_text="Picked driver's finish; empty when there was no valid pick"
    )
    is_race_win = models.BooleanField(default=False)
    stage_wins = models.IntegerField(default=0)
    playoff_points_earned = models.IntegerField(default=0)
    is_free_pick = models.BooleanField(default=False)
    outcome = models.CharField(max_length=20, choices=OUTCOME_CHOICES, default=OUTCOME_SCORED)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['league', 'race__race_number', '-points_earned']
        unique_together = [['league', 'user', 'race']]
        indexes = [
            models.Index(fields=['league', 'race'], name='score_league_race_idx'),
            models.Index(fields=['league', 'user'], name='score_league_user_idx'),
        ]
        verbose_name = 'Player Race Score'
        verbose_name_plural = 'Player Race Scores'

    def __str__(self):
        return f"{self.user} - {self.race.name} ({self.points_earned} pts)"


class SeasonStanding(models.Model):
    """
    A member's running season state within a league.

    Totals are rebuilt from PlayerRaceScore rows. Playoff points are
    `playoff_points_carried` plus the playoff points earned in races numbered
    `playoff_window_start` or later; each Chase reset moves the window.
    """
    league = models.ForeignKey(League, on_delete=models.CASCADE, related_name='standings')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='season_standings')
    season = models.IntegerField()

    regular_season_points = models.IntegerField(default=0)
    playoff_points = models.IntegerField(default=0)
    race_wins = models.IntegerField(default=0)
    stage_wins = models.IntegerField(default=0)
    top_5s = models.IntegerField(default=0)
    top_10s = models.IntegerField(default=0)
    top_15s = models.IntegerField(default=0)
    top_20s = models.IntegerField(default=0)

    # Playoff window bookkeeping
    playoff_points_carried = models.IntegerField(
        default=0,
        help_text="Playoff points carried into the current window (bonuses, pre-Chase total)"
    )
    playoff_window_start = models.IntegerField(
        default=0,
        help_text="First race number whose playoff points count toward the current total"
    )

    # Chase flags
    is_eliminated = models.BooleanField(default=False)
    elimination_round = models.IntegerField(null=True, blank=True)
    is_wild_card = models.BooleanField(default=False)
    is_regular_season_winner = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['league', 'season', '-regular_season_points']
        unique_together = [['league', 'user', 'season']]
        indexes = [
            models.Index(fields=['league', 'season'], name='standing_league_season_idx'),
            models.Index(fields=['league', 'season', 'is_eliminated'], name='standing_eliminated_idx'),
        ]
        verbose_name = 'Season Standing'
        verbose_name_plural = 'Season Standings'

    def __str__(self):
        return f"{self.user} - {self.league.name} {self.season} ({self.regular_season_points} pts)"
