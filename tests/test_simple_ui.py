"""
Tests for the console order flow
"""
import io
import unittest
import tempfile
import os
from contextlib import redirect_stdout
from decimal import Decimal
from unittest.mock import patch

from core.marketplace import EatLocalMarketplace
from models.menu import MenuItem
from ui.simple_ui import SimpleOrderUI


class TestSimpleOrderUI(unittest.TestCase):
    """Test cases for SimpleOrderUI"""

    def setUp(self):
        """Set up test database"""
        self.test_db = tempfile.NamedTemporaryFile(delete=False, suffix='.db')
        self.test_db.close()
        self.market = EatLocalMarketplace(self.test_db.name)
        self.market.menu_repo.add_menu_item(
            MenuItem("m-bunny", "rA", "Spice House", "Bunny Chow", Decimal("89.90"))
        )
        self.market.menu_repo.add_menu_item(
            MenuItem("m-peri", "rB", "Peri Grill", "Peri-Peri Chicken", Decimal("119.99"))
        )
        self.ui = SimpleOrderUI(self.market, session_id="console_test")

    def tearDown(self):
        """Clean up test database"""
        os.unlink(self.test_db.name)

    def run_ui(self, *inputs):
        output = io.StringIO()
        with patch('builtins.input', side_effect=list(inputs)), redirect_stdout(output):
            self.ui.run()
        return output.getvalue()

    def cart_items(self):
        return self.market.get_cart_details("console_test")["cart_items"]

    def test_search_and_add(self):
        output = self.run_ui("bunny chow", "1", "cart", "quit")

        self.assertIn("Bunny Chow added to cart.", output)
        self.assertIn("R89.90", output)
        self.assertEqual(self.cart_items()[0]["menu_item_id"], "m-bunny")

    def test_restaurant_change_confirmed(self):
        output = self.run_ui("bunny chow", "1", "peri-peri chicken", "1", "y", "quit")

        self.assertIn("Started a new cart with Peri Grill.", output)
        self.assertEqual([i["menu_item_id"] for i in self.cart_items()], ["m-peri"])

    def test_restaurant_change_declined(self):
        self.run_ui("bunny chow", "1", "peri-peri chicken", "1", "n", "quit")
        self.assertEqual([i["menu_item_id"] for i in self.cart_items()], ["m-bunny"])

    def test_no_match(self):
        output = self.run_ui("zzzzzz", "quit")
        self.assertIn("Nothing on the menu matches that.", output)

    def test_empty_order(self):
        output = self.run_ui("order", "exit")
        self.assertIn("Order failed: Your cart is empty.", output)

    def test_place_order(self):
        output = self.run_ui("bunny chow", "1", "order", "quit")

        self.assertIn("Pickup code:", output)
        self.assertEqual(self.cart_items(), [])

    def test_help_and_unknown_promo(self):
        output = self.run_ui("help where is my order", "promo NOPE", "quit")

        self.assertIn("Support: I can help you track your order!", output)
        self.assertIn("Invalid promo code", output)


if __name__ == '__main__':
    unittest.main()
