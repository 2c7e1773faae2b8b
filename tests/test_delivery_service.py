"""
Tests for delivery distance and opening hours helpers
"""
import unittest
from datetime import datetime

from services.delivery_service import (
    calculate_distance, is_within_delivery_radius, is_restaurant_open, format_time
)

CAPE_TOWN = (-33.9249, 18.4241)
JOHANNESBURG = (-26.2041, 28.0473)


class TestDeliveryHelpers(unittest.TestCase):

    def test_distance_to_self_is_zero(self):
        self.assertEqual(calculate_distance(*CAPE_TOWN, *CAPE_TOWN), 0.0)

    def test_distance_between_cities(self):
        distance = calculate_distance(*CAPE_TOWN, *JOHANNESBURG)
        self.assertGreater(distance, 1200)
        self.assertLess(distance, 1320)
        self.assertEqual(distance, round(distance, 2))

    def test_delivery_radius(self):
        nearby = is_within_delivery_radius(*CAPE_TOWN, -33.95, 18.45, 10)
        self.assertTrue(nearby["is_within_radius"])
        self.assertLess(nearby["distance"], 10)

        far = is_within_delivery_radius(*CAPE_TOWN, *JOHANNESBURG, 10)
        self.assertFalse(far["is_within_radius"])
        self.assertFalse(is_within_delivery_radius(*CAPE_TOWN, *JOHANNESBURG)["is_within_radius"])

    def test_opening_hours(self):
        self.assertTrue(is_restaurant_open("09:00", "17:00", datetime(2025, 3, 1, 12, 0)))
        self.assertFalse(is_restaurant_open("09:00", "17:00", datetime(2025, 3, 1, 18, 0)))

    def test_opening_hours_past_midnight(self):
        self.assertTrue(is_restaurant_open("22:00", "02:00", datetime(2025, 3, 1, 23, 30)))
        self.assertTrue(is_restaurant_open("22:00", "02:00", datetime(2025, 3, 1, 1, 0)))
        self.assertFalse(is_restaurant_open("22:00", "02:00", datetime(2025, 3, 1, 12, 0)))

    def test_format_time(self):
        self.assertEqual(format_time("21:05"), "9:05 PM")
        self.assertEqual(format_time("00:30"), "12:30 AM")
        self.assertEqual(format_time("12:00"), "12:00 PM")
        self.assertEqual(format_time("09:15"), "9:15 AM")


if __name__ == '__main__':
    unittest.main()
