"""
Tests for the race scoring engine.

The pure scoring policy is tested without the database; score_race is
tested against real models.
"""

from datetime import timedelta
from unittest import mock

from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone

from league.models import (
    FreePickRace, LeagueMember, PlayerRaceScore, RaceScoringStatus, SeasonStanding,
)
from league.processing.exceptions import (
    LeagueConfigurationError,
    ResultsNotAvailableError,
    ScoringInProgressError,
)
from league.processing.race_scoring import PickEntry, score_race, score_race_entries
from league.processing.results_source import ResultEntry
from league.tests.processing.test_base import LeagueFixturesMixin


def results(field_size=30, stage_winners=None):
    stage_winners = stage_winners or {}
    return [
        ResultEntry(driver_id=p, finishing_position=p, stage_wins=stage_winners.get(p, 0))
        for p in range(1, field_size + 1)
    ]


class ScoreRaceEntriesTests(SimpleTestCase):
    """Tests for the per-player scoring policy"""

    def score_one(self, pick, is_free_pick=False, field_size=30, stage_winners=None):
        outcome = score_race_entries(
            [1],
            {1: pick} if pick else {},
            results(field_size, stage_winners),
            is_free_pick,
        )
        return outcome.scores[0]

    def test_no_pick_gets_last_place_points(self):
        score = self.score_one(None)
        # 30 cars: 30th pays 7
        self.assertEqual(score.points_earned, 7)
        self.assertEqual(score.outcome, 'no_pick')
        self.assertIsNone(score.finishing_position)

    def test_normal_finish(self):
        score = self.score_one(PickEntry(user_id=1, driver_id=4))
        self.assertEqual(score.points_earned, 33)
        self.assertEqual(score.finishing_position, 4)
        self.assertFalse(score.is_race_win)
        self.assertEqual(score.playoff_points_earned, 0)

    def test_win_with_stage_wins(self):
        score = self.score_one(PickEntry(user_id=1, driver_id=1), stage_winners={1: 2})
        self.assertEqual(score.points_earned, 40)
        self.assertTrue(score.is_race_win)
        self.assertEqual(score.stage_wins, 2)
        self.assertEqual(score.playoff_points_earned, 7)

    def test_stage_wins_without_race_win(self):
        score = self.score_one(PickEntry(user_id=1, driver_id=9), stage_winners={9: 1})
        self.assertEqual(score.playoff_points_earned, 1)

    def test_over_usage_gets_last_place_points(self):
        score = self.score_one(PickEntry(user_id=1, driver_id=1, usage_count=3))
        self.assertEqual(score.outcome, 'over_usage')
        self.assertEqual(score.points_earned, 7)
        self.assertFalse(score.is_race_win)

    def test_second_use_is_fine(self):
        score = self.score_one(PickEntry(user_id=1, driver_id=2, usage_count=2))
        self.assertEqual(score.outcome, 'scored')
        self.assertEqual(score.points_earned, 35)

    def test_driver_missing_from_results(self):
        score = self.score_one(PickEntry(user_id=1, driver_id=99))
        self.assertEqual(score.outcome, 'not_classified')
        self.assertEqual(score.points_earned, 7)

    def test_free_pick_win(self):
        score = self.score_one(PickEntry(user_id=1, driver_id=1), is_free_pick=True, stage_winners={1: 2})
        self.assertEqual(score.points_earned, 10)
        self.assertEqual(score.outcome, 'free_pick_win')
        self.assertEqual(score.finishing_position, 1)
        self.assertTrue(score.is_race_win)
        self.assertEqual(score.playoff_points_earned, 1)
        self.assertEqual(score.stage_wins, 0)

    def test_free_pick_miss(self):
        score = self.score_one(PickEntry(user_id=1, driver_id=2), is_free_pick=True)
        self.assertEqual(score.points_earned, 0)
        self.assertEqual(score.outcome, 'free_pick_miss')
        self.assertEqual(score.finishing_position, 2)
        self.assertEqual(score.playoff_points_earned, 0)

    def test_free_pick_ignores_usage_cap(self):
        score = self.score_one(PickEntry(user_id=1, driver_id=1, usage_count=5), is_free_pick=True)
        self.assertEqual(score.outcome, 'free_pick_win')

    def test_no_pick_in_free_pick_race_still_last_place(self):
        score = self.score_one(None, is_free_pick=True)
        self.assertEqual(score.outcome, 'no_pick')
        self.assertEqual(score.points_earned, 7)

    def test_anomalies_reported_not_raised(self):
        outcome = score_race_entries(
            [1, 2, 3],
            {
                1: PickEntry(user_id=1, driver_id=99),
                2: PickEntry(user_id=2, driver_id=3, usage_count=3),
            },
            results(),
            False,
        )
        self.assertEqual(len(outcome.scores), 3)
        self.assertEqual(len(outcome.errors), 2)

    def test_no_results_raises(self):
        with self.assertRaises(ResultsNotAvailableError):
            score_race_entries([1], {}, [], False)


class ScoreRaceServiceTests(LeagueFixturesMixin, TestCase):
    """Tests for score_race against the database"""

    def setUp(self):
        self.league = self.create_league()
        self.alice = self.create_member(self.league, 'alice')
        self.bob = self.create_member(self.league, 'bob')
        self.carol = self.create_member(self.league, 'carol')
        self.race = self.create_race(1, name='Daytona 500')
        self.add_results(self.race, field_size=36, stage_winners={1: 1, 2: 1})

    def test_scores_every_member(self):
        self.make_pick(self.league, self.alice, self.race, 1)
        self.make_pick(self.league, self.bob, self.race, 10)

        result = score_race(self.league, self.race)

        self.assertEqual(result['status'], 'success')
        self.assertEqual(result['scored_count'], 3)
        self.assertEqual(result['skipped_count'], 0)
        self.assertFalse(result['is_free_pick'])
        self.assertEqual(result['winner_driver_id'], 1)

        alice = PlayerRaceScore.objects.get(league=self.league, race=self.race, user=self.alice)
        self.assertEqual(alice.points_earned, 40)
        self.assertEqual(alice.playoff_points_earned, 6)

        carol = PlayerRaceScore.objects.get(league=self.league, race=self.race, user=self.carol)
        self.assertEqual(carol.outcome, 'no_pick')
        self.assertEqual(carol.points_earned, 1)

    def test_standings_match_scores(self):
        self.make_pick(self.league, self.alice, self.race, 1)
        self.make_pick(self.league, self.bob, self.race, 10)
        score_race(self.league, self.race)

        alice = self.standing_for(self.league, self.alice)
        self.assertEqual(alice.regular_season_points, 40)
        self.assertEqual(alice.playoff_points, 6)
        self.assertEqual(alice.race_wins, 1)
        self.assertEqual(alice.stage_wins, 1)
        self.assertEqual(alice.top_5s, 1)
        self.assertEqual(alice.top_20s, 1)

        bob = self.standing_for(self.league, self.bob)
        self.assertEqual(bob.regular_season_points, 27)
        self.assertEqual(bob.top_5s, 0)
        self.assertEqual(bob.top_10s, 1)

    def test_rescoring_is_idempotent(self):
        self.make_pick(self.league, self.alice, self.race, 1)
        self.make_pick(self.league, self.bob, self.race, 10)

        score_race(self.league, self.race)
        first_scores = list(
            PlayerRaceScore.objects.filter(league=self.league)
            .order_by('user_id')
            .values('user_id', 'points_earned', 'playoff_points_earned', 'outcome')
        )
        first_standings = list(
            SeasonStanding.objects.filter(league=self.league)
            .order_by('user_id')
            .values('user_id', 'regular_season_points', 'playoff_points', 'race_wins', 'top_5s')
        )

        score_race(self.league, self.race)

        self.assertEqual(PlayerRaceScore.objects.filter(league=self.league).count(), 3)
        self.assertEqual(first_scores, list(
            PlayerRaceScore.objects.filter(league=self.league)
            .order_by('user_id')
            .values('user_id', 'points_earned', 'playoff_points_earned', 'outcome')
        ))
        self.assertEqual(first_standings, list(
            SeasonStanding.objects.filter(league=self.league)
            .order_by('user_id')
            .values('user_id', 'regular_season_points', 'playoff_points', 'race_wins', 'top_5s')
        ))

        status = RaceScoringStatus.objects.get(league=self.league, race=self.race)
        self.assertEqual(status.times_scored, 2)
        self.assertFalse(status.is_scoring)

    def test_results_correction_replaces_contribution(self):
        """A revised finishing order changes standings without double counting"""
        self.make_pick(self.league, self.alice, self.race, 1)
        score_race(self.league, self.race)

        # Post-race penalty: driver 1 drops to 5th, driver 5 inherits the win
        self.race.results.filter(driver_id=1).update(finishing_position=5)
        self.race.results.filter(driver_id=5).update(finishing_position=1)
        score_race(self.league, self.race)

        alice = self.standing_for(self.league, self.alice)
        self.assertEqual(alice.regular_season_points, 32)
        self.assertEqual(alice.race_wins, 0)
        self.assertEqual(alice.playoff_points, 1)

    def test_usage_cap_across_races(self):
        race2 = self.create_race(2)
        race3 = self.create_race(3)
        for race in (race2, race3):
            self.add_results(race, field_size=36)
        for race in (self.race, race2, race3):
            self.make_pick(self.league, self.alice, race, 3)

        score_race(self.league, race2)
        score_race(self.league, race3)

        self.assertEqual(
            PlayerRaceScore.objects.get(league=self.league, race=race2, user=self.alice).outcome,
            'scored'
        )
        third = PlayerRaceScore.objects.get(league=self.league, race=race3, user=self.alice)
        self.assertEqual(third.outcome, 'over_usage')
        self.assertEqual(third.points_earned, 1)

    def test_later_picks_do_not_count_toward_usage(self):
        for number in (2, 3):
            race = self.create_race(number)
            self.make_pick(self.league, self.alice, race, 3)
        self.make_pick(self.league, self.alice, self.race, 3)

        score_race(self.league, self.race)

        score = PlayerRaceScore.objects.get(league=self.league, race=self.race, user=self.alice)
        self.assertEqual(score.outcome, 'scored')

    def test_free_pick_race_by_name(self):
        clash = self.create_race(2, name='Busch Light Clash at The Coliseum')
        self.add_results(clash, field_size=23)
        self.make_pick(self.league, self.alice, clash, 1, is_free_pick=True)
        self.make_pick(self.league, self.bob, clash, 2, is_free_pick=True)

        result = score_race(self.league, clash)

        self.assertTrue(result['is_free_pick'])
        alice = PlayerRaceScore.objects.get(league=self.league, race=clash, user=self.alice)
        self.assertEqual(alice.points_earned, 10)
        self.assertEqual(alice.playoff_points_earned, 1)
        bob = PlayerRaceScore.objects.get(league=self.league, race=clash, user=self.bob)
        self.assertEqual(bob.points_earned, 0)

    def test_free_pick_race_by_league_designation(self):
        race = self.create_race(2, name='Bristol Night Race')
        self.add_results(race)
        FreePickRace.objects.create(league=self.league, race=race)

        result = score_race(self.league, race)

        self.assertTrue(result['is_free_pick'])

    def test_free_pick_designated_after_picks_does_not_count_toward_usage(self):
        race2 = self.create_race(2)
        race3 = self.create_race(3)
        self.add_results(race3, field_size=36)
        for race in (self.race, race2, race3):
            self.make_pick(self.league, self.alice, race, 3)

        # Commissioner makes race 1 a free pick once picks are in
        FreePickRace.objects.create(league=self.league, race=self.race)
        score_race(self.league, race3)

        third = PlayerRaceScore.objects.get(league=self.league, race=race3, user=self.alice)
        self.assertEqual(third.outcome, 'scored')
        self.assertEqual(third.points_earned, 34)

    def test_scoring_restamps_free_pick_flag(self):
        self.make_pick(self.league, self.alice, self.race, 3)
        FreePickRace.objects.create(league=self.league, race=self.race)

        score_race(self.league, self.race)

        self.assertTrue(self.race.picks.get(user=self.alice).is_free_pick)

    def test_race_from_another_season_rejected(self):
        other = self.create_race(1, season=2024)
        self.add_results(other)

        with self.assertRaises(LeagueConfigurationError):
            score_race(self.league, other)

        self.assertFalse(RaceScoringStatus.objects.filter(race=other).exists())
        self.assertFalse(SeasonStanding.objects.filter(league=self.league, season=2024).exists())

    def test_race_from_another_series_rejected(self):
        other = self.create_race(1, series='xfinity')
        self.add_results(other)

        with self.assertRaises(LeagueConfigurationError):
            score_race(self.league, other)

    def test_unpaid_members_skipped_after_deadline(self):
        self.league.payment_deadline = timezone.now() - timedelta(days=1)
        self.league.save()
        LeagueMember.objects.filter(league=self.league, user=self.carol).update(
            payment_status=LeagueMember.PAYMENT_UNPAID
        )

        result = score_race(self.league, self.race)

        self.assertEqual(result['scored_count'], 2)
        self.assertEqual(result['skipped_count'], 1)
        self.assertFalse(
            PlayerRaceScore.objects.filter(league=self.league, user=self.carol).exists()
        )

    def test_unpaid_members_scored_before_deadline(self):
        self.league.payment_deadline = timezone.now() + timedelta(days=1)
        self.league.save()
        LeagueMember.objects.filter(league=self.league, user=self.carol).update(
            payment_status=LeagueMember.PAYMENT_UNPAID
        )

        result = score_race(self.league, self.race)

        self.assertEqual(result['skipped_count'], 0)

    def test_no_results_writes_nothing(self):
        race = self.create_race(2)

        with self.assertRaises(ResultsNotAvailableError):
            score_race(self.league, race)

        self.assertFalse(PlayerRaceScore.objects.filter(race=race).exists())
        status = RaceScoringStatus.objects.get(league=self.league, race=race)
        self.assertFalse(status.is_scoring)
        self.assertIn('No results', status.last_error)

    def test_league_without_members(self):
        empty = self.create_league(name='Empty League')

        with self.assertRaises(LeagueConfigurationError):
            score_race(empty, self.race)

        self.assertFalse(PlayerRaceScore.objects.filter(league=empty).exists())

    def test_rejects_second_run_in_flight(self):
        RaceScoringStatus.objects.create(
            league=self.league,
            race=self.race,
            is_scoring=True,
            scoring_started_at=timezone.now(),
        )

        with self.assertRaises(ScoringInProgressError):
            score_race(self.league, self.race)

        self.assertFalse(PlayerRaceScore.objects.filter(league=self.league).exists())

    @override_settings(SCORING_LOCK_TIMEOUT=60)
    def test_takes_over_stale_claim(self):
        RaceScoringStatus.objects.create(
            league=self.league,
            race=self.race,
            is_scoring=True,
            scoring_started_at=timezone.now() - timedelta(minutes=5),
        )

        result = score_race(self.league, self.race)

        self.assertEqual(result['status'], 'success')

    def test_failure_releases_claim(self):
        with mock.patch(
            'league.processing.standings.rebuild_season_standings',
            side_effect=RuntimeError('boom'),
        ):
            with self.assertRaises(RuntimeError):
                score_race(self.league, self.race)

        status = RaceScoringStatus.objects.get(league=self.league, race=self.race)
        self.assertFalse(status.is_scoring)
        self.assertEqual(status.last_error, 'boom')
        self.assertFalse(PlayerRaceScore.objects.filter(league=self.league).exists())

    def test_records_flow_run(self):
        score_race(self.league, self.race, flow_run_id='run-123')

        status = RaceScoringStatus.objects.get(league=self.league, race=self.race)
        self.assertEqual(status.flow_metadata['last_flow_run_id'], 'run-123')
        self.assertEqual(status.flow_metadata['run_history'][0]['scored_count'], 3)
