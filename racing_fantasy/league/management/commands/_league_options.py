"""
Shared argument handling for the league management commands.
"""

from django.core.management.base import CommandError

from league.models import League, Race


def add_league_arguments(parser, season=True):
    parser.add_argument(
        '--league',
        type=int,
        required=True,
        help='League id'
    )
    if season:
        parser.add_argument(
            '--season',
            type=int,
            help="Season year (default: the league's season)"
        )


def get_league(options):
    try:
        return League.objects.get(id=options['league'])
    except League.DoesNotExist:
        raise CommandError(f"League {options['league']} not found")


def get_race(league, options, season=None):
    """Race by --race id, or by --race-number within the league's series season"""
    season = season or league.season

    try:
        if options.get('race'):
            return Race.objects.get(id=options['race'])
        if options.get('race_number'):
            return Race.objects.get(
                series=league.series,
                season=season,
                race_number=options['race_number'],
            )
    except Race.DoesNotExist:
        raise CommandError('Race not found')

    raise CommandError('Pass --race or --race-number')


def write_summary(command, summary, title):
    """Print a flow summary; raise CommandError when it didn't succeed"""
    status = summary.get('status')

    if status == 'success':
        command.stdout.write(command.style.SUCCESS(f'✅ {title}: {summary.get("message", "done")}'))
        return

    if status == 'not_available':
        command.stdout.write(command.style.WARNING(f'⚠️  {title}: {summary.get("message", "")}'))
        raise CommandError(f'{title}: results not available, try again later')

    raise CommandError(f'{title} failed: {summary.get("message", "unknown error")}')
