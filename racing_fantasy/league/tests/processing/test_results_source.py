"""
Tests for fetching, parsing and storing race results.

HTTP calls go through httpx.MockTransport; nothing leaves the process.
"""

import httpx
from django.test import SimpleTestCase, TestCase, override_settings

from league.models import RaceResult
from league.processing.exceptions import ResultsNotAvailableError
from league.processing.results_source import (
    ResultEntry,
    fetch_results_payload,
    load_race_results,
    parse_results_payload,
    results_feed_url,
    store_race_results,
)
from league.tests.processing.test_base import LeagueFixturesMixin


PAYLOAD = {
    'race_name': 'Daytona 500',
    'results': [
        {'driver_id': 4030, 'driver_name': 'William Byron', 'car_number': '24', 'finishing_position': 1},
        {'driver_id': 4153, 'driver_name': 'Tyler Reddick', 'car_number': 45, 'finishing_position': 2},
        {'driver_id': 3989, 'driver_name': 'Chase Briscoe', 'car_number': '19', 'finishing_position': 3},
    ],
    'stage_results': [
        {'stage_num': 1, 'results': [
            {'driver_id': 4153, 'finishing_position': 1},
            {'driver_id': 4030, 'finishing_position': 2},
        ]},
        {'stage_num': 2, 'results': [
            {'driver_id': 4153, 'finishing_position': 1},
        ]},
    ],
}

FEED_URL = 'https://results.test/{series}/{season}/{race_id}.json'


def client_for(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


@override_settings(RESULTS_FEED_URL=FEED_URL)
class FetchResultsPayloadTests(LeagueFixturesMixin, TestCase):
    """Tests for fetch_results_payload"""

    def setUp(self):
        self.race = self.create_race(1, name='Daytona 500', external_id=5546)

    def test_url_uses_external_id(self):
        self.assertEqual(results_feed_url(self.race), 'https://results.test/cup/2025/5546.json')

    def test_url_falls_back_to_race_number(self):
        race = self.create_race(2)
        self.assertEqual(results_feed_url(race), 'https://results.test/cup/2025/2.json')

    def test_returns_payload(self):
        requested = []

        def handler(request):
            requested.append(str(request.url))
            return httpx.Response(200, json=PAYLOAD)

        payload = fetch_results_payload(self.race, client=client_for(handler))

        self.assertEqual(payload['race_name'], 'Daytona 500')
        self.assertEqual(requested, ['https://results.test/cup/2025/5546.json'])

    def test_not_found(self):
        client = client_for(lambda request: httpx.Response(404))
        with self.assertRaises(ResultsNotAvailableError):
            fetch_results_payload(self.race, client=client)

    def test_server_error(self):
        client = client_for(lambda request: httpx.Response(502))
        with self.assertRaises(ResultsNotAvailableError):
            fetch_results_payload(self.race, client=client)

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout('timed out', request=request)

        with self.assertRaises(ResultsNotAvailableError):
            fetch_results_payload(self.race, client=client_for(handler))

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError('refused', request=request)

        with self.assertRaises(ResultsNotAvailableError):
            fetch_results_payload(self.race, client=client_for(handler))

    def test_empty_results(self):
        client = client_for(lambda request: httpx.Response(200, json={'race_name': 'Daytona 500', 'results': []}))
        with self.assertRaises(ResultsNotAvailableError):
            fetch_results_payload(self.race, client=client)

    def test_invalid_json(self):
        client = client_for(lambda request: httpx.Response(200, content=b'<html>'))
        with self.assertRaises(ResultsNotAvailableError):
            fetch_results_payload(self.race, client=client)

    def test_error_is_retryable(self):
        client = client_for(lambda request: httpx.Response(404))
        with self.assertRaises(ResultsNotAvailableError) as ctx:
            fetch_results_payload(self.race, client=client)
        self.assertTrue(ctx.exception.retryable)


class ParseResultsPayloadTests(SimpleTestCase):
    """Tests for parse_results_payload"""

    def test_entries_ordered_by_position(self):
        entries = parse_results_payload(PAYLOAD)
        self.assertEqual([e.driver_id for e in entries], [4030, 4153, 3989])
        self.assertEqual(entries[1].car_number, '45')
        self.assertEqual(entries[0].driver_name, 'William Byron')

    def test_stage_wins_counted_from_stage_winners(self):
        entries = {e.driver_id: e for e in parse_results_payload(PAYLOAD)}
        self.assertEqual(entries[4153].stage_wins, 2)
        self.assertEqual(entries[4030].stage_wins, 0)

    def test_malformed_rows_skipped(self):
        payload = {'results': [
            {'driver_id': 1, 'finishing_position': 1},
            {'driver_id': 2},
            {'driver_id': 'x', 'finishing_position': 2},
            {'driver_id': 3, 'finishing_position': 0},
            {'driver_id': 1, 'finishing_position': 4},
        ]}
        entries = parse_results_payload(payload)
        self.assertEqual(entries, [ResultEntry(driver_id=1, finishing_position=1)])

    def test_missing_stage_results(self):
        entries = parse_results_payload({'results': PAYLOAD['results']})
        self.assertTrue(all(e.stage_wins == 0 for e in entries))


class StoreRaceResultsTests(LeagueFixturesMixin, TestCase):
    """Tests for store_race_results and load_race_results"""

    def setUp(self):
        self.race = self.create_race(1)

    def test_store_and_load(self):
        count = store_race_results(self.race, parse_results_payload(PAYLOAD))

        self.assertEqual(count, 3)
        loaded = load_race_results(self.race)
        self.assertEqual([e.finishing_position for e in loaded], [1, 2, 3])
        self.assertEqual(loaded[1].stage_wins, 2)

    def test_store_replaces_previous_results(self):
        self.add_results(self.race, field_size=38)

        store_race_results(self.race, parse_results_payload(PAYLOAD))

        self.assertEqual(RaceResult.objects.filter(race=self.race).count(), 3)
