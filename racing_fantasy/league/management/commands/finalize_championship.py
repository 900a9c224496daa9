"""
Management command to crown the Chase champion.

Usage:
    python manage.py finalize_championship --league 1
"""

from django.core.management.base import BaseCommand

from league.flows.chase import finalize_championship_flow
from league.processing.payouts import championship_payouts
from ._league_options import add_league_arguments, get_league, write_summary


class Command(BaseCommand):
    help = 'Record the championship final order and print payouts'

    def add_arguments(self, parser):
        add_league_arguments(parser)
        parser.add_argument('--notify', action='store_true', help='Send a Slack summary')

    def handle(self, *args, **options):
        league = get_league(options)

        summary = finalize_championship_flow(
            league_id=league.id,
            season=options.get('season'),
            notify=options['notify'],
        )

        write_summary(self, summary, 'Championship')

        self.stdout.write(f'  Champion:         {summary["champion_name"]}')
        for user, placement, amount in championship_payouts(league, options.get('season')):
            self.stdout.write(f'  P{placement}  {user.username:<20} ${amount}')
