"""
Pipeline and infrastructure models.

These models track internal scoring state and are not shown to players.
They exist to manage the scoring pipeline itself.

Models:
- RaceScoringStatus: Tracks scoring runs per league and race
"""

from datetime import timedelta

from django.db import models
from django.utils import timezone

from .base import League
from .events import Race


class RaceScoringStatus(models.Model):
    """
    Tracks scoring of one race for one league.

    Used by the scoring pipeline to:
    - Keep at most one scoring run in flight per (league, race)
    - Record when the race was last (re)scored and how often
    - Store Prefect flow metadata and the last error

    Simple fields (booleans, timestamps) for queryability.
    JSON field for Prefect metadata (flow run ids, run history).
    """

    league = models.ForeignKey(
        League,
        on_delete=models.CASCADE,
        related_name='scoring_statuses',
    )
    race = models.ForeignKey(
        Race,
        on_delete=models.CASCADE,
        related_name='scoring_statuses',
    )

    is_scoring = models.BooleanField(
        default=False,
        help_text="A scoring run currently holds this race"
    )
    scoring_started_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the current (or last) scoring run started"
    )
    last_scored_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When scores were last written successfully"
    )
    times_scored = models.IntegerField(
        default=0,
        help_text="Number of successful scoring runs (rescoring increments this)"
    )
    last_error = models.TextField(blank=True)

    flow_metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Prefect-specific metadata: flow run ids, run history"
    )
    # Example structure:
    # {
    #     'last_flow_run_id': 'abc-123-def-456',
    #     'run_history': [
    #         {'flow_run_id': 'abc-123', 'timestamp': '2025-02-16T23:10:00Z', 'scored_count': 23}
    #     ]
    # }

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['league', 'race__season', 'race__race_number']
        unique_together = [['league', 'race']]
        verbose_name = 'Race Scoring Status'
        verbose_name_plural = 'Race Scoring Statuses'

    def __str__(self):
        if self.is_scoring:
            state = 'scoring'
        elif self.last_scored_at:
            state = f"scored x{self.times_scored}"
        else:
            state = 'not scored'
        return f"{self.league.name} - {self.race.name}: {state}"

    def is_stale(self, timeout_seconds, now=None):
        """A claim older than the timeout belongs to a run that died."""
        if not self.is_scoring or self.scoring_started_at is None:
            return False
        now = now or timezone.now()
        return now - self.scoring_started_at > timedelta(seconds=timeout_seconds)

    def mark_started(self, timestamp=None):
        self.is_scoring = True
        self.scoring_started_at = timestamp or timezone.now()
        self.save(update_fields=['is_scoring', 'scoring_started_at', 'updated_at'])

    def mark_scored(self, scored_count, timestamp=None, flow_run_id=None):
        """Release the claim after a successful run"""
        if timestamp is None:
            timestamp = timezone.now()

        self.is_scoring = False
        self.last_scored_at = timestamp
        self.times_scored += 1
        self.last_error = ''

        if flow_run_id:
            if 'run_history' not in self.flow_metadata:
                self.flow_metadata['run_history'] = []
            self.flow_metadata['run_history'].append({
                'flow_run_id': flow_run_id,
                'timestamp': timestamp.isoformat(),
                'scored_count': scored_count,
            })
            self.flow_metadata['last_flow_run_id'] = flow_run_id

        self.save()

    def mark_failed(self, error):
        """Release the claim after a failed run"""
        self.is_scoring = False
        self.last_error = str(error)
        self.save(update_fields=['is_scoring', 'last_error', 'updated_at'])
