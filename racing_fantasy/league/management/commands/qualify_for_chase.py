"""
Management command to seed the Chase field and open round 1.

Usage:
    python manage.py qualify_for_chase --league 1
    python manage.py qualify_for_chase --league 1 --season 2025 --notify
"""

from django.core.management.base import BaseCommand

from league.flows.chase import qualify_for_chase_flow
from ._league_options import add_league_arguments, get_league, write_summary


class Command(BaseCommand):
    help = 'Seed the Chase field from the regular-season standings'

    def add_arguments(self, parser):
        add_league_arguments(parser)
        parser.add_argument('--notify', action='store_true', help='Send a Slack summary')

    def handle(self, *args, **options):
        league = get_league(options)

        summary = qualify_for_chase_flow(
            league_id=league.id,
            season=options.get('season'),
            notify=options['notify'],
        )

        if summary.get('status') == 'success':
            self.stdout.write(f'  Chase field:      {summary["qualifier_count"]}')
            self.stdout.write(f'  On points:        {summary["top_qualifier_count"]}')
            self.stdout.write(f'  Wild cards:       {summary["wildcard_count"]}')
            self.stdout.write(f'  Round 1 starts:   race {summary["start_race_number"]}')

        write_summary(self, summary, 'Chase qualification')
