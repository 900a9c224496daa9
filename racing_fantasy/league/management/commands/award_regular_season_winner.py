"""
Management command to award the regular-season winner bonus.

Usage:
    python manage.py award_regular_season_winner --league 1
"""

from django.core.management.base import BaseCommand

from league.flows.chase import award_regular_season_winner_flow
from ._league_options import add_league_arguments, get_league, write_summary


class Command(BaseCommand):
    help = 'Flag the regular-season winner and add their playoff point bonus'

    def add_arguments(self, parser):
        add_league_arguments(parser)
        parser.add_argument('--notify', action='store_true', help='Send a Slack summary')

    def handle(self, *args, **options):
        league = get_league(options)

        summary = award_regular_season_winner_flow(
            league_id=league.id,
            season=options.get('season'),
            notify=options['notify'],
        )

        write_summary(self, summary, 'Regular-season winner')
        self.stdout.write(
            f'  {summary["winner_name"]}: {summary["regular_season_points"]} pts, '
            f'+{summary["bonus"]} playoff points'
        )
