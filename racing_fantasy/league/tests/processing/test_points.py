"""
Unit tests for the points table.
"""

from django.test import SimpleTestCase

from league.processing.points import last_place_points, points_for_position


class PointsForPositionTests(SimpleTestCase):
    """Tests for points_for_position"""

    def test_podium_values(self):
        self.assertEqual(points_for_position(1), 40)
        self.assertEqual(points_for_position(2), 35)
        self.assertEqual(points_for_position(3), 34)

    def test_one_point_less_per_position(self):
        self.assertEqual(points_for_position(5), 32)
        self.assertEqual(points_for_position(20), 17)
        self.assertEqual(points_for_position(35), 2)

    def test_beyond_table_scores_one(self):
        """36th and worse all score the floor"""
        for position in (36, 40, 43, 60):
            self.assertEqual(points_for_position(position), 1)

    def test_never_increases_with_position(self):
        values = [points_for_position(p) for p in range(1, 61)]
        self.assertEqual(values, sorted(values, reverse=True))
        self.assertTrue(all(v >= 1 for v in values))

    def test_invalid_position_raises(self):
        with self.assertRaises(ValueError):
            points_for_position(0)
        with self.assertRaises(ValueError):
            points_for_position(-3)


class LastPlacePointsTests(SimpleTestCase):
    """Tests for last_place_points"""

    def test_full_field(self):
        self.assertEqual(last_place_points(range(1, 39)), 1)

    def test_short_field_uses_worst_recorded_position(self):
        # 30th pays 7
        self.assertEqual(last_place_points([3, 1, 30, 12]), 7)

    def test_empty_results_raise(self):
        with self.assertRaises(ValueError):
            last_place_points([])
