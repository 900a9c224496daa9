"""
Race and result models.

Structure:
- Race: a points race or exhibition in a series season (shared by all leagues)
- RaceResult: official finishing order for a race, replaced wholesale when a
  revised feed is ingested (e.g. after a post-race penalty)
- FreePickRace: league-level designation of a free-pick race
"""

from django.db import models
from django.db.models import Q
from django.utils import timezone

from config.rules import CUP_FANTASY_RULES
from .base import League


class Race(models.Model):
    """
    An individual race in a series season.

    `scheduled_at` doubles as the pick lock time: picks can be made and
    changed until the green flag.
    """
    series = models.CharField(max_length=20, choices=League.SERIES_CHOICES, default=League.SERIES_CUP)
    season = models.IntegerField(db_index=True)
    race_number = models.IntegerField(
        help_text="Order of the race within the season (1 = first race)"
    )
    external_id = models.IntegerField(
        null=True,
        blank=True,
        help_text="Race id in the results feed"
    )
    name = models.CharField(max_length=200)
    track_name = models.CharField(max_length=200, blank=True)
    scheduled_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Green flag time; picks lock at this moment"
    )
    is_exhibition = models.BooleanField(
        default=False,
        help_text="Series-wide free-pick race (win/no-win scoring, no usage count)"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['series', 'season', 'race_number']
        unique_together = [['series', 'season', 'race_number']]
        indexes = [
            models.Index(fields=['external_id'], name='race_external_id_idx'),
        ]

    def __str__(self):
        return f"{self.season} R{self.race_number} {self.name}"

    @property
    def has_results(self):
        return self.results.exists()

    def is_locked(self, now=None):
        if self.scheduled_at is None:
            return False
        now = now or timezone.now()
        return now >= self.scheduled_at

    @property
    def name_suggests_free_pick(self):
        lowered = self.name.lower()
        patterns = CUP_FANTASY_RULES['picks']['free_pick_name_patterns']
        return any(pattern in lowered for pattern in patterns)

    def is_free_pick_for(self, league):
        """
        Whether this race is scored win/no-win for a league.

        Explicit designation (series-wide or league-level) or a name match on
        the exhibition patterns.
        """
        if self.is_exhibition or self.name_suggests_free_pick:
            return True
        return FreePickRace.objects.filter(league=league, race=self).exists()


class RaceResult(models.Model):
    """
    One driver's official outcome in a race.
    """
    race = models.ForeignKey(Race, on_delete=models.CASCADE, related_name='results')
    driver_id = models.IntegerField(help_text="Driver id in the results feed")
    driver_name = models.CharField(max_length=200, blank=True)
    car_number = models.CharField(max_length=10, blank=True)
    finishing_position = models.IntegerField()
    stage_wins = models.IntegerField(
        default=0,
        help_text="Number of stages this driver won"
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['race', 'finishing_position']
        unique_together = [['race', 'driver_id']]
        indexes = [
            models.Index(fields=['race', 'finishing_position'], name='raceresult_race_pos_idx'),
        ]
        verbose_name = 'Race Result'
        verbose_name_plural = 'Race Results'

    def __str__(self):
        return f"{self.race.name} - P{self.finishing_position} {self.driver_name or self.driver_id}"


class FreePickRace(models.Model):
    """League-level free-pick designation."""
    league = models.ForeignKey(League, on_delete=models.CASCADE, related_name='free_pick_races')
    race = models.ForeignKey(Race, on_delete=models.CASCADE, related_name='free_pick_designations')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = [['league', 'race']]
        verbose_name = 'Free Pick Race'
        verbose_name_plural = 'Free Pick Races'

    def __str__(self):
        return f"{self.league.name}: {self.race.name} (free pick)"


def free_pick_q(league, prefix='race__'):
    """
    Q matching free-pick races for a league from their current designation.

    Mirrors Race.is_free_pick_for so usage counts follow exhibition flags,
    league designations and name patterns added after picks were made.
    """
    q = Q(**{f'{prefix}is_exhibition': True})
    q |= Q(**{f'{prefix}in': FreePickRace.objects.filter(league=league).values('race_id')})
    for pattern in CUP_FANTASY_RULES['picks']['free_pick_name_patterns']:
        q |= Q(**{f'{prefix}name__icontains': pattern})
    return q
