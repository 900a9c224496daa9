"""
Tests for the season standings fold and the regular-season winner award.
"""

from types import SimpleNamespace

from django.test import SimpleTestCase, TestCase

from league.models import ChaseRound, SeasonStanding
from league.processing.exceptions import ChaseStateError, LeagueConfigurationError
from league.processing.standings import (
    accumulate_scores,
    award_regular_season_winner,
    next_race_number,
    rebuild_season_standings,
)
from league.tests.processing.test_base import SEASON, LeagueFixturesMixin


def score(race_number, points=0, position=None, win=False, stage_wins=0, playoff=0):
    return SimpleNamespace(
        race_number=race_number,
        points_earned=points,
        finishing_position=position,
        is_race_win=win,
        stage_wins=stage_wins,
        playoff_points_earned=playoff,
    )


class AccumulateScoresTests(SimpleTestCase):
    """Tests for the pure fold"""

    def test_position_counts_in_every_bucket_it_satisfies(self):
        totals = accumulate_scores([score(1, points=34, position=3)])
        self.assertEqual(
            (totals.top_5s, totals.top_10s, totals.top_15s, totals.top_20s),
            (1, 1, 1, 1)
        )

    def test_buckets_by_position(self):
        totals = accumulate_scores([
            score(1, position=12),
            score(2, position=18),
            score(3, position=25),
            score(4, position=None),
        ])
        self.assertEqual(totals.top_5s, 0)
        self.assertEqual(totals.top_10s, 0)
        self.assertEqual(totals.top_15s, 1)
        self.assertEqual(totals.top_20s, 2)

    def test_sums_points_wins_and_stage_wins(self):
        totals = accumulate_scores([
            score(1, points=40, position=1, win=True, stage_wins=1, playoff=6),
            score(2, points=27, position=10, stage_wins=2, playoff=2),
        ])
        self.assertEqual(totals.regular_season_points, 67)
        self.assertEqual(totals.race_wins, 1)
        self.assertEqual(totals.stage_wins, 3)
        self.assertEqual(totals.window_playoff_points, 8)

    def test_chase_races_excluded_from_regular_season_points(self):
        totals = accumulate_scores(
            [score(1, points=40), score(26, points=35), score(27, points=20)],
            regular_season_end=26,
        )
        self.assertEqual(totals.regular_season_points, 40)

    def test_playoff_window(self):
        totals = accumulate_scores(
            [score(1, playoff=5), score(2, playoff=1), score(3, playoff=6)],
            playoff_window_start=2,
        )
        self.assertEqual(totals.window_playoff_points, 7)


class RebuildSeasonStandingsTests(LeagueFixturesMixin, TestCase):
    """Tests for rebuild_season_standings"""

    def setUp(self):
        self.league = self.create_league()
        self.alice = self.create_member(self.league, 'alice')
        self.bob = self.create_member(self.league, 'bob')
        self.race1 = self.create_race(1)
        self.race2 = self.create_race(2)

    def test_creates_missing_standings(self):
        self.create_score(self.league, self.alice, self.race1, points=40, position=1, win=True, playoff=5)

        standings = rebuild_season_standings(self.league, SEASON)

        self.assertEqual(set(standings), {self.alice.id})
        alice = self.standing_for(self.league, self.alice)
        self.assertEqual(alice.regular_season_points, 40)
        self.assertEqual(alice.playoff_points, 5)

    def test_sum_of_scores_equals_regular_season_points(self):
        self.create_score(self.league, self.alice, self.race1, points=40, position=1)
        self.create_score(self.league, self.alice, self.race2, points=22, position=15)
        self.create_score(self.league, self.bob, self.race1, points=1)

        rebuild_season_standings(self.league, SEASON)
        rebuild_season_standings(self.league, SEASON)

        self.assertEqual(self.standing_for(self.league, self.alice).regular_season_points, 62)
        self.assertEqual(self.standing_for(self.league, self.bob).regular_season_points, 1)

    def test_preserves_chase_state_and_carried_points(self):
        SeasonStanding.objects.create(
            league=self.league,
            user=self.alice,
            season=SEASON,
            playoff_points_carried=15,
            playoff_window_start=2,
            is_regular_season_winner=True,
        )
        self.create_score(self.league, self.alice, self.race1, points=40, position=1, win=True, playoff=5)
        self.create_score(self.league, self.alice, self.race2, points=35, position=2, stage_wins=1, playoff=1)

        rebuild_season_standings(self.league, SEASON)

        alice = self.standing_for(self.league, self.alice)
        self.assertEqual(alice.playoff_points, 16)
        self.assertTrue(alice.is_regular_season_winner)
        self.assertEqual(alice.race_wins, 1)

    def test_regular_season_ends_at_chase_start(self):
        ChaseRound.objects.create(
            league=self.league, season=SEASON, round_number=1,
            players_remaining=2, start_race_number=2,
        )
        self.create_score(self.league, self.alice, self.race1, points=40)
        self.create_score(self.league, self.alice, self.race2, points=35)

        rebuild_season_standings(self.league, SEASON)

        self.assertEqual(self.standing_for(self.league, self.alice).regular_season_points, 40)

    def test_other_leagues_untouched(self):
        other = self.create_league(name='Other League')
        self.create_member(other, 'alice')
        self.create_score(other, self.alice, self.race1, points=40)
        self.create_score(self.league, self.alice, self.race1, points=10)

        rebuild_season_standings(self.league, SEASON)

        self.assertEqual(self.standing_for(self.league, self.alice).regular_season_points, 10)
        self.assertFalse(SeasonStanding.objects.filter(league=other).exists())

    def test_next_race_number(self):
        self.assertEqual(next_race_number(self.league, SEASON), 1)
        self.create_score(self.league, self.alice, self.race2, points=10)
        self.assertEqual(next_race_number(self.league, SEASON), 3)


class AwardRegularSeasonWinnerTests(LeagueFixturesMixin, TestCase):
    """Tests for award_regular_season_winner"""

    def setUp(self):
        self.league = self.create_league()
        self.alice = self.create_member(self.league, 'alice')
        self.bob = self.create_member(self.league, 'bob')
        self.race1 = self.create_race(1)
        self.race2 = self.create_race(2)

    def test_tie_on_points_goes_to_more_wins(self):
        # Both on 75 points, bob has the win
        self.create_score(self.league, self.alice, self.race1, points=40, position=5)
        self.create_score(self.league, self.alice, self.race2, points=35, position=2)
        self.create_score(self.league, self.bob, self.race1, points=40, position=1, win=True, playoff=5)
        self.create_score(self.league, self.bob, self.race2, points=35, position=12)

        result = award_regular_season_winner(self.league)

        self.assertEqual(result['winner'], self.bob.id)
        self.assertEqual(result['bonus'], 15)
        bob = self.standing_for(self.league, self.bob)
        self.assertTrue(bob.is_regular_season_winner)
        self.assertEqual(bob.playoff_points, 20)
        self.assertFalse(self.standing_for(self.league, self.alice).is_regular_season_winner)

    def test_bonus_survives_rebuild(self):
        self.create_score(self.league, self.alice, self.race1, points=40, position=1, win=True, playoff=5)
        award_regular_season_winner(self.league)

        rebuild_season_standings(self.league, SEASON)

        self.assertEqual(self.standing_for(self.league, self.alice).playoff_points, 20)

    def test_only_once(self):
        self.create_score(self.league, self.alice, self.race1, points=40)
        award_regular_season_winner(self.league)

        with self.assertRaises(ChaseStateError):
            award_regular_season_winner(self.league)

    def test_not_after_chase_started(self):
        self.create_score(self.league, self.alice, self.race1, points=40)
        ChaseRound.objects.create(league=self.league, season=SEASON, round_number=1, players_remaining=2)

        with self.assertRaises(ChaseStateError):
            award_regular_season_winner(self.league)

    def test_no_standings(self):
        with self.assertRaises(LeagueConfigurationError):
            award_regular_season_winner(self.league)
