"""
Tests for A/B variant assignment
"""
import unittest
import tempfile
import os
from datetime import datetime, timezone

from database.connection import DatabaseConnection
from database.repository import ExperimentRepository
from models.experiment import Experiment, Variant
from services.experiment_service import ExperimentService, bucket_position, pick_variant

T0 = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestVariantPicking(unittest.TestCase):
    """Test cases for hashing users into weighted variants"""

    def test_bucket_position_is_stable(self):
        first = bucket_position("checkout-button", "u1")
        self.assertEqual(first, bucket_position("checkout-button", "u1"))
        self.assertGreaterEqual(first, 0.0)
        self.assertLess(first, 1.0)
        self.assertNotEqual(first, bucket_position("checkout-button", "u2"))

    def test_pick_variant_by_weight(self):
        variants = [Variant("control", 50), Variant("treatment", 50)]
        self.assertEqual(pick_variant(variants, 0.25), "control")
        self.assertEqual(pick_variant(variants, 0.75), "treatment")

    def test_zero_weight_variant_never_picked(self):
        variants = [Variant("off", 0), Variant("on", 1)]
        self.assertEqual(pick_variant(variants, 0.0), "on")

    def test_no_weights(self):
        self.assertIsNone(pick_variant([], 0.5))
        self.assertIsNone(pick_variant([Variant("a", 0)], 0.5))


class TestExperimentService(unittest.TestCase):
    """Test cases for persisted assignments"""

    def setUp(self):
        """Set up test database"""
        self.test_db = tempfile.NamedTemporaryFile(delete=False, suffix='.db')
        self.test_db.close()
        self.repo = ExperimentRepository(DatabaseConnection(self.test_db.name))
        self.variants = [Variant("control", 70), Variant("pay_now", 30)]
        self.repo.create_experiment(Experiment("checkout-button", "Checkout copy", self.variants))
        self.service = ExperimentService(self.repo, clock=lambda: T0)

    def tearDown(self):
        """Clean up test database"""
        os.unlink(self.test_db.name)

    def test_assignment_follows_hash(self):
        result = self.service.assign_variant("checkout-button", "u1")

        self.assertTrue(result["success"])
        self.assertTrue(result["created"])
        expected = pick_variant(self.variants, bucket_position("checkout-button", "u1"))
        self.assertEqual(result["assignment"]["variant"], expected)
        self.assertEqual(result["assignment"]["assigned_at"], T0.isoformat())

    def test_existing_assignment_returned(self):
        first = self.service.assign_variant("checkout-button", "u1")
        second = self.service.assign_variant("checkout-button", "u1")

        self.assertFalse(second["created"])
        self.assertEqual(first["assignment"]["assignment_id"], second["assignment"]["assignment_id"])

    def test_unknown_experiment(self):
        result = self.service.assign_variant("missing", "u1")
        self.assertFalse(result["success"])
        self.assertEqual(result["error"], "Experiment not found")

    def test_inactive_experiment(self):
        self.repo.create_experiment(Experiment("old", "Old test", self.variants, is_active=False))
        result = self.service.assign_variant("old", "u1")
        self.assertEqual(result["error"], "Experiment is not active")

    def test_track_conversion(self):
        assignment = self.service.assign_variant("checkout-button", "u1")["assignment"]

        self.assertTrue(self.service.track_conversion(assignment["assignment_id"], 149.5)["success"])
        stored = self.repo.get_assignment("checkout-button", "u1")
        self.assertTrue(stored.converted)
        self.assertEqual(stored.conversion_value, 149.5)
        self.assertFalse(self.service.track_conversion("missing")["success"])


if __name__ == '__main__':
    unittest.main()
