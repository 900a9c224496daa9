"""
Base models shared across the league engine.

These models represent the people and leagues everything else hangs off:
users, fantasy leagues and league membership (with the payment flag that
decides whether a member is scored).
"""

from django.conf import settings
from django.db import models
from django.contrib.auth.models import AbstractUser
from django.utils import timezone


class User(AbstractUser):
    """
    Custom User model - extends Django's AbstractUser.
    Add any custom fields or methods here as needed.
    """
    class Meta:
        db_table = 'auth_user'
        verbose_name = 'User'
        verbose_name_plural = 'Users'

    def __str__(self):
        return self.username


class League(models.Model):
    """
    A fantasy league playing one season of one series.

    Also carries the league settings the engine reads: the payment deadline
    (unpaid members past it are not scored) and the championship payouts.
    """

    SERIES_CUP = 'cup'
    SERIES_XFINITY = 'xfinity'
    SERIES_TRUCKS = 'trucks'

    SERIES_CHOICES = [
        (SERIES_CUP, 'Cup Series'),
        (SERIES_XFINITY, 'Xfinity Series'),
        (SERIES_TRUCKS, 'Truck Series'),
    ]

    name = models.CharField(max_length=100)
    series = models.CharField(max_length=20, choices=SERIES_CHOICES, default=SERIES_CUP)
    season = models.IntegerField(help_text="Season year, e.g. 2025")
    commissioner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='commissioned_leagues',
    )

    payment_deadline = models.DateTimeField(
        null=True,
        blank=True,
        help_text="After this moment only paid members are scored"
    )
    payout_first = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    payout_second = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    payout_third = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    payout_fourth = models.DecimalField(max_digits=10, decimal_places=2, default=0)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-season', 'name']
        indexes = [
            models.Index(fields=['series', 'season'], name='league_series_season_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.season})"

    def is_past_payment_deadline(self, now=None):
        if self.payment_deadline is None:
            return False
        now = now or timezone.now()
        return now > self.payment_deadline

    def scoring_members(self, now=None):
        """Members eligible to be scored right now."""
        members = self.members.select_related('user')
        if self.is_past_payment_deadline(now):
            members = members.filter(payment_status=LeagueMember.PAYMENT_PAID)
        return members


class LeagueMember(models.Model):
    """
    Membership of a user in a league.
    Payment status is maintained elsewhere; the engine only reads it.
    """

    PAYMENT_PAID = 'paid'
    PAYMENT_UNPAID = 'unpaid'
    PAYMENT_PENDING = 'pending'

    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PAID, 'Paid'),
        (PAYMENT_UNPAID, 'Unpaid'),
        (PAYMENT_PENDING, 'Pending'),
    ]

    league = models.ForeignKey(League, on_delete=models.CASCADE, related_name='members')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='league_memberships')
    payment_status = models.CharField(
        max_length=20,
        choices=PAYMENT_STATUS_CHOICES,
        default=PAYMENT_UNPAID,
    )
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['league', 'user__username']
        unique_together = [['league', 'user']]
        verbose_name = 'League Member'
        verbose_name_plural = 'League Members'

    def __str__(self):
        return f"{self.user} in {self.league.name}"
