"""
Management command to close a Chase elimination round.

Usage:
    python manage.py process_elimination --league 1 --round 1
"""

from django.core.management.base import BaseCommand

from league.flows.chase import process_elimination_flow
from ._league_options import add_league_arguments, get_league, write_summary


class Command(BaseCommand):
    help = 'Eliminate the players below the cutoff and open the next Chase round'

    def add_arguments(self, parser):
        add_league_arguments(parser)
        parser.add_argument(
            '--round',
            type=int,
            required=True,
            choices=[1, 2, 3],
            help='Elimination round to close (1-3)'
        )
        parser.add_argument('--notify', action='store_true', help='Send a Slack summary')

    def handle(self, *args, **options):
        league = get_league(options)

        summary = process_elimination_flow(
            league_id=league.id,
            round_number=options['round'],
            season=options.get('season'),
            notify=options['notify'],
        )

        if summary.get('status') == 'success':
            self.stdout.write(f'  Cutoff:           {summary["cutoff"]}')
            self.stdout.write(f'  Advancing:        {summary["advancing_count"]}')
            self.stdout.write(f'  Eliminated:       {summary["eliminated_count"]}')

        write_summary(self, summary, f'Round {options["round"]} eliminations')
