"""
Management command to score a race for a league.

Fetches results from the results proxy when the race has none stored,
scores every member's pick and rebuilds the season standings.

Usage:
    python manage.py score_race --league 1 --race-number 12
    python manage.py score_race --league 1 --race 340 --refresh
    python manage.py score_race --league 1 --race-number 12 --notify
"""

from django.core.management.base import BaseCommand

from league.flows.score_race import score_race_flow
from ._league_options import add_league_arguments, get_league, get_race, write_summary


class Command(BaseCommand):
    help = 'Score a race for a league and rebuild standings'

    def add_arguments(self, parser):
        add_league_arguments(parser)
        parser.add_argument(
            '--race',
            type=int,
            help='Race id'
        )
        parser.add_argument(
            '--race-number',
            type=int,
            help="Race number within the league's season"
        )
        parser.add_argument(
            '--refresh',
            action='store_true',
            help='Re-fetch results even if already stored (results correction)'
        )
        parser.add_argument(
            '--notify',
            action='store_true',
            help='Send a Slack summary'
        )

    def handle(self, *args, **options):
        league = get_league(options)
        race = get_race(league, options, options.get('season'))

        self.stdout.write(self.style.SUCCESS(f'\n{"="*60}'))
        self.stdout.write(self.style.SUCCESS(f'Scoring {race} for {league}'))
        if options['refresh']:
            self.stdout.write(self.style.WARNING('REFRESH: re-fetching results'))
        self.stdout.write(self.style.SUCCESS(f'{"="*60}\n'))

        summary = score_race_flow(
            league_id=league.id,
            race_id=race.id,
            refresh_results=options['refresh'],
            notify=options['notify'],
        )

        if summary.get('status') == 'success':
            self.stdout.write(f'  Players scored:   {summary["scored_count"]}')
            self.stdout.write(f'  Unpaid skipped:   {summary["skipped_count"]}')
            self.stdout.write(f'  Free pick race:   {"yes" if summary["is_free_pick"] else "no"}')
            self.stdout.write(f'  Winning driver:   {summary["winner_driver_id"]}')
            for error in summary.get('errors', []):
                self.stdout.write(self.style.WARNING(f'  ⚠ {error}'))
            self.stdout.write('')

        write_summary(self, summary, 'Race scoring')
