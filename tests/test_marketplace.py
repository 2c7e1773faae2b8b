"""
Tests for the EatLocalMarketplace facade and checkout
"""
import unittest
import tempfile
import os
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from core.marketplace import EatLocalMarketplace
from init_db import init_database
from models.chat import FAQEntry
from models.experiment import Experiment, Variant
from models.menu import MenuItem
from models.promo import PromoCode, DiscountType

T0 = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

CAPE_TOWN = (-33.9249, 18.4241)
SEA_POINT = (-33.9160, 18.3870)
STELLENBOSCH = (-33.9321, 18.8602)

MENU = [
    MenuItem("m-bunny", "rA", "Spice House", "Bunny Chow", Decimal("100.00"), "Mutton curry in bread"),
    MenuItem("m-samoosa", "rA", "Spice House", "Samoosas", Decimal("45.00")),
    MenuItem("m-peri", "rB", "Peri Grill", "Peri-Peri Chicken", Decimal("119.99")),
    MenuItem("m-gone", "rB", "Peri Grill", "Sold Out Special", Decimal("50.00"), is_available=False),
]


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class TestEatLocalMarketplace(unittest.TestCase):
    """Test cases for EatLocalMarketplace"""

    def setUp(self):
        """Set up test database"""
        self.test_db = tempfile.NamedTemporaryFile(delete=False, suffix='.db')
        self.test_db.close()
        self.clock = FakeClock(T0)
        self.market = EatLocalMarketplace(self.test_db.name, clock=self.clock)
        for item in MENU:
            self.market.menu_repo.add_menu_item(item)
        self.session_id = "test_session"

    def tearDown(self):
        """Clean up test database"""
        os.unlink(self.test_db.name)

    def add_promo(self, **overrides):
        values = dict(
            id="p-save10", code="SAVE10", discount_type=DiscountType.PERCENTAGE,
            discount_value=Decimal("10"), start_date=T0 - timedelta(days=1),
            end_date=T0 + timedelta(days=30)
        )
        values.update(overrides)
        self.market.promo_repo.create_promo_code(PromoCode(**values))

    def test_initialization(self):
        """Test that the marketplace wires its services"""
        self.assertIsNotNone(self.market.db_connection)
        self.assertIsNotNone(self.market.menu_service)
        self.assertIsNotNone(self.market.promo_service)
        self.assertIsNotNone(self.market.order_service)
        self.assertIsNotNone(self.market.chatbot_service)

    def test_menu_search(self):
        result = self.market.find_menu_items("bunny chow")
        self.assertTrue(result["success"])
        self.assertEqual(result["matches"][0]["menu_item_id"], "m-bunny")
        self.assertNotIn("m-gone", [m["menu_item_id"] for m in result["matches"]])

    def test_add_unknown_or_unavailable_item(self):
        self.assertFalse(self.market.add_to_cart(self.session_id, "missing")["success"])
        self.assertFalse(self.market.add_to_cart(self.session_id, "m-gone")["success"])

    def test_cart_persists_between_calls(self):
        self.market.add_to_cart(self.session_id, "m-bunny", "Extra hot")
        self.market.add_to_cart(self.session_id, "m-bunny")

        details = self.market.get_cart_details(self.session_id)

        self.assertEqual(details["cart_items"][0]["quantity"], 2)
        self.assertEqual(details["cart_items"][0]["special_instructions"], "Extra hot")
        self.assertEqual(details["summary"]["subtotal"], Decimal("200.00"))
        self.assertEqual(details["restaurant_name"], "Spice House")

    def test_restaurant_change_flow(self):
        self.market.add_to_cart(self.session_id, "m-bunny")
        conflict = self.market.add_to_cart(self.session_id, "m-peri")
        self.assertTrue(conflict["conflict"])

        details = self.market.get_cart_details(self.session_id)
        self.assertTrue(details["show_restaurant_change_modal"])
        self.assertEqual(details["pending_item"]["menu_item_id"], "m-peri")

        self.assertTrue(self.market.confirm_restaurant_change(self.session_id)["success"])
        details = self.market.get_cart_details(self.session_id)
        self.assertEqual(details["restaurant_id"], "rB")
        self.assertEqual([i["menu_item_id"] for i in details["cart_items"]], ["m-peri"])

    def test_process_empty_cart_order(self):
        """Test processing order with empty cart"""
        result = self.market.place_order(self.session_id)

        self.assertFalse(result["success"])
        self.assertEqual(result["error"], "Your cart is empty.")

    def test_place_delivery_order(self):
        self.market.add_to_cart(self.session_id, "m-bunny")
        self.market.add_to_cart(self.session_id, "m-samoosa")

        result = self.market.place_order(self.session_id, delivery_fee=Decimal("2.49"))

        self.assertTrue(result["success"])
        order = result["order"]
        self.assertEqual(order["subtotal"], Decimal("145.00"))
        self.assertEqual(order["service_fee"], Decimal("6.525"))
        self.assertEqual(order["total"], Decimal("145.00") + Decimal("6.525") + Decimal("2.49"))
        self.assertEqual(order["estimated_time"], 19)
        self.assertTrue(order["order_number"].startswith("ORD-"))
        self.assertEqual(len(order["pickup_code"]), 4)
        self.assertEqual(self.market.get_cart_details(self.session_id)["cart_items"], [])

        details = self.market.get_order_details(order["order_id"])
        self.assertTrue(details["success"])
        self.assertEqual(Decimal(details["order_info"]["total"]), order["total"])
        self.assertEqual([i["menu_item_id"] for i in details["order_items"]], ["m-bunny", "m-samoosa"])

    def test_pickup_order_has_no_delivery_fee(self):
        self.market.add_to_cart(self.session_id, "m-bunny")
        result = self.market.place_order(self.session_id, fulfillment="pickup")

        self.assertEqual(result["order"]["delivery_fee"], Decimal("0"))
        self.assertEqual(result["order"]["total"], Decimal("104.50"))

    def test_unsupported_fulfillment(self):
        self.market.add_to_cart(self.session_id, "m-bunny")
        result = self.market.place_order(self.session_id, fulfillment="drone")
        self.assertFalse(result["success"])

    def test_order_with_promo_code(self):
        self.add_promo(max_discount_amount=Decimal("5"))
        self.market.add_to_cart(self.session_id, "m-bunny")

        result = self.market.place_order(self.session_id, user_id="u1", promo_code="save10",
                                         fulfillment="pickup")

        self.assertTrue(result["success"])
        self.assertEqual(result["order"]["discount_amount"], Decimal("5"))
        self.assertEqual(result["order"]["total"], Decimal("99.50"))
        self.assertEqual(result["order"]["promo_code_id"], "p-save10")
        self.assertEqual(self.market.promo_repo.get_by_id("p-save10").usage_count, 1)

    def test_invalid_promo_keeps_cart(self):
        self.add_promo(min_order_amount=Decimal("500"))
        self.market.add_to_cart(self.session_id, "m-bunny")

        result = self.market.place_order(self.session_id, promo_code="SAVE10")

        self.assertFalse(result["success"])
        self.assertEqual(result["error"], "Minimum order of R500.00 required")
        self.assertEqual(len(self.market.get_cart_details(self.session_id)["cart_items"]), 1)

    def test_apply_promo_code_uses_cart_subtotal(self):
        self.add_promo()
        self.market.add_to_cart(self.session_id, "m-bunny")

        result = self.market.apply_promo_code(self.session_id, "SAVE10")

        self.assertTrue(result["valid"])
        self.assertEqual(result["discount_amount"], Decimal("10"))
        self.assertEqual(result["label"], "10% off")

    def test_available_promo_codes(self):
        self.add_promo()
        codes = self.market.get_available_promo_codes()
        self.assertEqual([c["code"] for c in codes], ["SAVE10"])
        self.assertEqual(codes[0]["label"], "10% off")

    def test_order_not_found(self):
        self.assertFalse(self.market.get_order_details("missing")["success"])

    def test_support(self):
        reply = self.market.ask_support("where is my order")
        self.assertEqual(reply["intent"], "track_order")

        result = self.market.send_support_message("u1", "thanks!")
        self.assertTrue(result["success"])
        self.assertEqual(result["bot_message"]["intent_detected"], "thanks")
        self.assertIsNotNone(result["session_id"])

    def test_assign_variant(self):
        self.market.experiment_repo.create_experiment(
            Experiment("exp", "Experiment", [Variant("a", 1), Variant("b", 1)])
        )
        result = self.market.assign_variant("exp", "u1")
        self.assertIn(result["assignment"]["variant"], ["a", "b"])

    def test_track_conversion(self):
        self.market.experiment_repo.create_experiment(Experiment("exp", "Experiment", [Variant("a", 1)]))
        assignment_id = self.market.assign_variant("exp", "u1")["assignment"]["assignment_id"]

        self.assertTrue(self.market.track_conversion(assignment_id, 149.99)["success"])
        self.assertFalse(self.market.track_conversion("missing")["success"])

        stored = self.market.experiment_repo.get_assignment("exp", "u1")
        self.assertTrue(stored.converted)
        self.assertEqual(stored.conversion_value, 149.99)

    def test_promo_rejected_for_expired_cart(self):
        """A cart left for more than a day no longer counts toward a minimum order"""
        self.add_promo(code="SAVE", min_order_amount=Decimal("200"))
        for _ in range(3):
            self.market.add_to_cart(self.session_id, "m-bunny")
        self.clock.advance(hours=25)

        result = self.market.apply_promo_code(self.session_id, "SAVE")

        self.assertFalse(result["valid"])
        self.assertEqual(result["error_message"], "Minimum order of R200.00 required")
        self.assertEqual(result["discount_amount"], Decimal("0"))
        self.assertEqual(self.market.get_cart_details(self.session_id)["cart_items"], [])

    def test_order_number_uses_clock(self):
        self.clock.advance(hours=1, minutes=5, seconds=7)
        self.market.add_to_cart(self.session_id, "m-bunny")

        result = self.market.place_order(self.session_id, fulfillment="pickup")

        self.assertTrue(result["order"]["order_number"].startswith("ORD-20250301130507-"))

    def test_check_delivery_nearby_and_open(self):
        result = self.market.check_delivery(*CAPE_TOWN, *SEA_POINT, opening_time="09:00", closing_time="17:00")

        self.assertTrue(result["can_deliver"])
        self.assertTrue(result["is_within_radius"])
        self.assertTrue(result["is_open"])
        self.assertLess(result["distance"], 10)
        self.assertEqual(result["max_radius"], 10)
        self.assertEqual(result["hours"], "9:00 AM - 5:00 PM")

    def test_check_delivery_out_of_radius(self):
        result = self.market.check_delivery(*CAPE_TOWN, *STELLENBOSCH)

        self.assertFalse(result["can_deliver"])
        self.assertFalse(result["is_within_radius"])
        self.assertIsNone(result["is_open"])
        self.assertGreater(result["distance"], 10)
        self.assertIn("within 10 km", result["message"])

        wider = self.market.check_delivery(*CAPE_TOWN, *STELLENBOSCH, max_radius=50)
        self.assertTrue(wider["can_deliver"])

    def test_check_delivery_closed_restaurant(self):
        self.clock.advance(hours=6)

        result = self.market.check_delivery(*CAPE_TOWN, *SEA_POINT, opening_time="09:00", closing_time="17:00")

        self.assertFalse(result["can_deliver"])
        self.assertTrue(result["is_within_radius"])
        self.assertFalse(result["is_open"])
        self.assertIn("closed", result["message"])

    def test_promo_admin(self):
        data = {
            "code": " fresh20 ", "discount_type": "fixed", "discount_value": "20",
            "start_date": T0.isoformat(), "end_date": (T0 + timedelta(days=7)).isoformat()
        }
        self.assertFalse(self.market.create_promo_code(data, None)["success"])

        created = self.market.create_promo_code(data, "admin-1")
        self.assertTrue(created["success"])
        promo_id = created["promo_code"]["id"]
        self.assertEqual(created["promo_code"]["code"], "FRESH20")

        listing = self.market.list_promo_codes()
        self.assertEqual([(p["code"], p["status"], p["label"]) for p in listing],
                         [("FRESH20", "active", "R20.00 off")])

        self.market.add_to_cart(self.session_id, "m-bunny")
        self.assertTrue(self.market.update_promo_code(promo_id, {"min_order_amount": "150"})["success"])
        result = self.market.apply_promo_code(self.session_id, "FRESH20")
        self.assertEqual(result["error_message"], "Minimum order of R150.00 required")

        self.assertFalse(self.market.update_promo_code(promo_id, {"code": "X"})["success"])
        self.assertFalse(self.market.update_promo_code("missing", {"is_active": False})["success"])

        self.assertTrue(self.market.deactivate_promo_code(promo_id)["success"])
        self.assertEqual(self.market.list_promo_codes()[0]["status"], "inactive")
        self.assertEqual(self.market.apply_promo_code(self.session_id, "FRESH20")["error_message"],
                         "Invalid promo code")
        self.assertFalse(self.market.deactivate_promo_code("missing")["success"])

    def test_promo_code_history(self):
        self.add_promo()
        self.market.add_to_cart(self.session_id, "m-bunny")
        order = self.market.place_order(self.session_id, user_id="u1", promo_code="SAVE10")["order"]

        history = self.market.get_promo_code_history("u1")

        self.assertEqual(len(history), 1)
        self.assertEqual(history[0]["code"], "SAVE10")
        self.assertEqual(history[0]["order_id"], order["order_id"])
        self.assertEqual(self.market.get_promo_code_history(None), [])
        self.assertEqual(self.market.get_promo_code_history("u2"), [])

    def test_close_support_session(self):
        session_id = self.market.send_support_message("u1", "hello")["session_id"]
        self.clock.advance(minutes=2)

        result = self.market.close_support_session(session_id, rating=4)

        self.assertTrue(result["success"])
        self.assertEqual(result["resolution_time_seconds"], 120)
        self.assertEqual(self.market.chat_repo.get_session(session_id).satisfaction_rating, 4)
        self.assertFalse(self.market.close_support_session("missing")["success"])

    def test_rate_faq(self):
        self.market.faq_repo.add_entry(
            FAQEntry("faq-radius", "orders", "How far do you deliver?", "Within 10 km.", ["far"])
        )

        self.assertTrue(self.market.rate_faq("faq-radius", helpful=False)["success"])
        self.assertFalse(self.market.rate_faq("missing", helpful=True)["success"])
        self.assertEqual(self.market.chatbot_service.get_faq()[0].not_helpful_count, 1)


class TestMarketplaceWithoutSchema(unittest.TestCase):
    """Support chat reports unavailability when its tables are missing"""

    def setUp(self):
        self.test_db = tempfile.NamedTemporaryFile(delete=False, suffix='.db')
        self.test_db.close()
        self.market = EatLocalMarketplace(self.test_db.name, create_schema=False)

    def tearDown(self):
        os.unlink(self.test_db.name)

    def test_support_chat_unavailable(self):
        result = self.market.send_support_message("u1", "hello")
        self.assertFalse(result["success"])
        self.assertEqual(result["error"], "Support chat is not available right now.")


class TestInitDatabase(unittest.TestCase):
    """Seeding demo data"""

    def setUp(self):
        self.test_db = tempfile.NamedTemporaryFile(delete=False, suffix='.db')
        self.test_db.close()

    def tearDown(self):
        os.unlink(self.test_db.name)

    def test_seed_is_repeatable(self):
        self.assertTrue(init_database(self.test_db.name))
        self.assertTrue(init_database(self.test_db.name))

        market = EatLocalMarketplace(self.test_db.name)
        self.assertEqual(len(market.menu_repo.find_menu_items()), 4)
        self.assertEqual(len(market.chatbot_service.get_faq()), 3)
        self.assertTrue(market.assign_variant("checkout-button", "u1")["success"])


if __name__ == '__main__':
    unittest.main()
