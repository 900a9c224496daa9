"""
Management command to print league standings with tiebreaker notes.

Usage:
    python manage.py show_standings --league 1
    python manage.py show_standings --league 1 --playoff
"""

from django.core.management.base import BaseCommand

from league.models import ChaseRound, SeasonStanding
from league.processing.chase import elimination_status, get_chase_state, PHASE_ROUND
from league.processing.tiebreakers import annotate_standings
from ._league_options import add_league_arguments, get_league


class Command(BaseCommand):
    help = 'Show season or Chase standings'

    def add_arguments(self, parser):
        add_league_arguments(parser)
        parser.add_argument(
            '--playoff',
            action='store_true',
            help='Rank active Chase players by playoff points'
        )

    def handle(self, *args, **options):
        league = get_league(options)
        season = options.get('season') or league.season
        use_playoff = options['playoff']

        standings = SeasonStanding.objects.filter(league=league, season=season).select_related('user')
        if use_playoff:
            standings = standings.filter(is_eliminated=False)
        standings = list(standings.order_by('user_id'))

        if not standings:
            self.stdout.write(self.style.WARNING(f'No standings for {league.name} {season}'))
            return

        state = get_chase_state(league, season)
        field_size = None
        if use_playoff and state.phase == PHASE_ROUND:
            first_round = ChaseRound.objects.filter(
                league=league, season=season, round_number=ChaseRound.ROUND_1,
            ).first()
            field_size = first_round.players_remaining if first_round else None

        title = 'Chase Standings' if use_playoff else 'Season Standings'
        self.stdout.write(self.style.SUCCESS(f'\n{title} - {league.name} {season} ({state.round_name})'))
        self.stdout.write(f'{"Pos":>4}  {"Player":<20} {"Pts":>5} {"W":>3} {"T5":>3} {"T10":>4}  Note')

        for row in annotate_standings(standings, use_playoff_points=use_playoff):
            standing = row.standing
            note = f'tiebreaker: {row.level_label}' if row.decided_by_tiebreaker else ''
            if field_size:
                note = f'{elimination_status(row.position, state.round_number, field_size)} {note}'.strip()

            line = (
                f'{row.position:>4}  {standing.user.username:<20} {row.points:>5} '
                f'{standing.race_wins:>3} {standing.top_5s:>3} {standing.top_10s:>4}  {note}'
            )
            if standing.is_eliminated and not use_playoff:
                self.stdout.write(self.style.NOTICE(line))
            else:
                self.stdout.write(line)
