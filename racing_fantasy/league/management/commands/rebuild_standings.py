"""
Management command to rebuild season standings from stored race scores.

Usage:
    python manage.py rebuild_standings --league 1
"""

from django.core.management.base import BaseCommand

from league.processing.standings import rebuild_season_standings
from ._league_options import add_league_arguments, get_league


class Command(BaseCommand):
    help = 'Recompute season standings from per-race scores'

    def add_arguments(self, parser):
        add_league_arguments(parser)

    def handle(self, *args, **options):
        league = get_league(options)
        season = options.get('season') or league.season

        standings = rebuild_season_standings(league, season)

        self.stdout.write(self.style.SUCCESS(
            f'✅ Rebuilt {len(standings)} standings for {league.name} {season}'
        ))
