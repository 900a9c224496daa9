import django.contrib.auth.models
import django.contrib.auth.validators
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


ROUND_CHOICES = [
    (0, 'Regular Season'),
    (1, 'Round of 16'),
    (2, 'Round of 10'),
    (3, 'Final Four Qualifier'),
    (4, 'Championship'),
]

SERIES_CHOICES = [
    ('cup', 'Cup Series'),
    ('xfinity', 'Xfinity Series'),
    ('trucks', 'Truck Series'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('email', models.EmailField(blank=True, max_length=254, verbose_name='email address')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'User',
                'verbose_name_plural': 'Users',
                'db_table': 'auth_user',
            },
            managers=[
                ('objects', django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='League',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('series', models.CharField(choices=SERIES_CHOICES, default='cup', max_length=20)),
                ('season', models.IntegerField(help_text='Season year, e.g. 2025')),
                ('payment_deadline', models.DateTimeField(blank=True, help_text='After this moment only paid members are scored', null=True)),
                ('payout_first', models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ('payout_second', models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ('payout_third', models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ('payout_fourth', models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('commissioner', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='commissioned_leagues', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-season', 'name'],
                'indexes': [models.Index(fields=['series', 'season'], name='league_series_season_idx')],
            },
        ),
        migrations.CreateModel(
            name='LeagueMember',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('payment_status', models.CharField(choices=[('paid', 'Paid'), ('unpaid', 'Unpaid'), ('pending', 'Pending')], default='unpaid', max_length=20)),
                ('joined_at', models.DateTimeField(auto_now_add=True)),
                ('league', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='members', to='league.league')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='league_memberships', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'League Member',
                'verbose_name_plural': 'League Members',
                'ordering': ['league', 'user__username'],
                'unique_together': {('league', 'user')},
            },
        ),
        migrations.CreateModel(
            name='Race',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('series', models.CharField(choices=SERIES_CHOICES, default='cup', max_length=20)),
                ('season', models.IntegerField(db_index=True)),
                ('race_number', models.IntegerField(help_text='Order of the race within the season (1 = first race)')),
                ('external_id', models.IntegerField(blank=True, help_text='Race id in the results feed', null=True)),
                ('name', models.CharField(max_length=200)),
                ('track_name', models.CharField(blank=True, max_length=200)),
                ('scheduled_at', models.DateTimeField(blank=True, help_text='Green flag time; picks lock at this moment', null=True)),
                ('is_exhibition', models.BooleanField(default=False, help_text='Series-wide free-pick race (win/no-win scoring, no usage count)')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['series', 'season', 'race_number'],
                'indexes': [models.Index(fields=['external_id'], name='race_external_id_idx')],
                'unique_together': {('series', 'season', 'race_number')},
            },
        ),
        migrations.CreateModel(
            name='RaceResult',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('driver_id', models.IntegerField(help_text='Driver id in the results feed')),
                ('driver_name', models.CharField(blank=True, max_length=200)),
                ('car_number', models.CharField(blank=True, max_length=10)),
                ('finishing_position', models.IntegerField()),
                ('stage_wins', models.IntegerField(default=0, help_text='Number of stages this driver won')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('race', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='results', to='league.race')),
            ],
            options={
                'verbose_name': 'Race Result',
                'verbose_name_plural': 'Race Results',
                'ordering': ['race', 'finishing_position'],
                'indexes': [models.Index(fields=['race', 'finishing_position'], name='raceresult_race_pos_idx')],
                'unique_together': {('race', 'driver_id')},
            },
        ),
        migrations.CreateModel(
            name='FreePickRace',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('league', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='free_pick_races', to='league.league')),
                ('race', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='free_pick_designations', to='league.race')),
            ],
            options={
                'verbose_name': 'Free Pick Race',
                'verbose_name_plural': 'Free Pick Races',
                'unique_together': {('league', 'race')},
            },
        ),
        migrations.CreateModel(
            name='DriverPick',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('driver_id', models.IntegerField(help_text='Driver id in the results feed')),
                ('driver_name', models.CharField(blank=True, max_length=200)),
                ('car_number', models.CharField(blank=True, max_length=10)),
                ('is_free_pick', models.BooleanField(default=False, help_text='Made for a free-pick race; does not count against the usage cap')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('league', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='picks', to='league.league')),
                ('race', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='picks', to='league.race')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='driver_picks', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Driver Pick',
                'verbose_name_plural': 'Driver Picks',
                'ordering': ['league', 'race__race_number', 'user'],
                'indexes': [
                    models.Index(fields=['league', 'race'], name='pick_league_race_idx'),
                    models.Index(fields=['league', 'user', 'driver_id'], name='pick_league_user_driver_idx'),
                ],
                'unique_together': {('league', 'user', 'race')},
            },
        ),
        migrations.CreateModel(
            name='PlayerRaceScore',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('driver_id', models.IntegerField(blank=True, null=True)),
                ('driver_name', models.CharField(blank=True, max_length=200)),
                ('points_earned', models.IntegerField(validators=[django.core.validators.MinValueValidator(0)])),
                ('finishing_position', models.IntegerField(blank=True, help_text="Picked driver's finish; empty when there was no valid pick", null=True)),
                ('is_race_win', models.BooleanField(default=False)),
                ('stage_wins', models.IntegerField(default=0)),
                ('playoff_points_earned', models.IntegerField(default=0)),
                ('is_free_pick', models.BooleanField(default=False)),
                ('outcome', models.CharField(choices=[('scored', 'Scored'), ('no_pick', 'No Pick (last place)'), ('over_usage', 'Over-usage (last place)'), ('not_classified', 'Driver not in results (last place)'), ('free_pick_win', 'Free Pick Win'), ('free_pick_miss', 'Free Pick Miss')], default='scored', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('league', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='race_scores', to='league.league')),
                ('race', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='player_scores', to='league.race')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='race_scores', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Player Race Score',
                'verbose_name_plural': 'Player Race Scores',
                'ordering': ['league', 'race__race_number', '-points_earned'],
                'indexes': [
                    models.Index(fields=['league', 'race'], name='score_league_race_idx'),
                    models.Index(fields=['league', 'user'], name='score_league_user_idx'),
                ],
                'unique_together': {('league', 'user', 'race')},
            },
        ),
        migrations.CreateModel(
            name='SeasonStanding',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('season', models.IntegerField()),
                ('regular_season_points', models.IntegerField(default=0)),
                ('playoff_points', models.IntegerField(default=0)),
                ('race_wins', models.IntegerField(default=0)),
                ('stage_wins', models.IntegerField(default=0)),
                ('top_5s', models.IntegerField(default=0)),
                ('top_10s', models.IntegerField(default=0)),
                ('top_15s', models.IntegerField(default=0)),
                ('top_20s', models.IntegerField(default=0)),
                ('playoff_points_carried', models.IntegerField(default=0, help_text='Playoff points carried into the current window (bonuses, pre-Chase total)')),
                ('playoff_window_start', models.IntegerField(default=0, help_text='First race number whose playoff points count toward the current total')),
                ('is_eliminated', models.BooleanField(default=False)),
                ('elimination_round', models.IntegerField(blank=True, null=True)),
                ('is_wild_card', models.BooleanField(default=False)),
                ('is_regular_season_winner', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('league', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='standings', to='league.league')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='season_standings', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Season Standing',
                'verbose_name_plural': 'Season Standings',
                'ordering': ['league', 'season', '-regular_season_points'],
                'indexes': [
                    models.Index(fields=['league', 'season'], name='standing_league_season_idx'),
                    models.Index(fields=['league', 'season', 'is_eliminated'], name='standing_eliminated_idx'),
                ],
                'unique_together': {('league', 'user', 'season')},
            },
        ),
        migrations.CreateModel(
            name='ChaseRound',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('season', models.IntegerField()),
                ('round_number', models.IntegerField(choices=ROUND_CHOICES)),
                ('players_remaining', models.IntegerField(help_text='Players who entered this round')),
                ('start_race_number', models.IntegerField(blank=True, help_text='First race whose playoff points count in this round', null=True)),
                ('is_active', models.BooleanField(default=True)),
                ('started_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('league', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='chase_rounds', to='league.league')),
            ],
            options={
                'verbose_name': 'Chase Round',
                'verbose_name_plural': 'Chase Rounds',
                'ordering': ['league', 'season', 'round_number'],
                'unique_together': {('league', 'season', 'round_number')},
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('is_active', True)), fields=('league', 'season'), name='one_active_chase_round_per_league_season'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ChaseElimination',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('season', models.IntegerField()),
                ('eliminated_round', models.IntegerField(choices=ROUND_CHOICES)),
                ('final_position', models.IntegerField(blank=True, null=True)),
                ('playoff_points_at_elimination', models.IntegerField(default=0)),
                ('eliminated_at', models.DateTimeField(auto_now_add=True)),
                ('league', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='chase_eliminations', to='league.league')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='chase_eliminations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Chase Elimination',
                'verbose_name_plural': 'Chase Eliminations',
                'ordering': ['league', 'season', 'final_position'],
                'indexes': [models.Index(fields=['league', 'season', 'eliminated_round'], name='elimination_round_idx')],
                'unique_together': {('league', 'user', 'season')},
            },
        ),
        migrations.CreateModel(
            name='RaceScoringStatus',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('is_scoring', models.BooleanField(default=False, help_text='A scoring run currently holds this race')),
                ('scoring_started_at', models.DateTimeField(blank=True, help_text='When the current (or last) scoring run started', null=True)),
                ('last_scored_at', models.DateTimeField(blank=True, help_text='When scores were last written successfully', null=True)),
                ('times_scored', models.IntegerField(default=0, help_text='Number of successful scoring runs (rescoring increments this)')),
                ('last_error', models.TextField(blank=True)),
                ('flow_metadata', models.JSONField(blank=True, default=dict, help_text='Prefect-specific metadata: flow run ids, run history')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('league', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='scoring_statuses', to='league.league')),
                ('race', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='scoring_statuses', to='league.race')),
            ],
            options={
                'verbose_name': 'Race Scoring Status',
                'verbose_name_plural': 'Race Scoring Statuses',
                'ordering': ['league', 'race__season', 'race__race_number'],
                'unique_together': {('league', 'race')},
            },
        ),
    ]
