"""
Tests for the Flask API
"""
import unittest
import tempfile
import os
from decimal import Decimal

from app import create_app
from core.marketplace import EatLocalMarketplace
from models.menu import MenuItem
from models.chat import FAQEntry
from models.experiment import Experiment, Variant

BUNNY = {
    "menu_item_id": "m-bunny",
    "name": "Bunny Chow",
    "price": "100.00",
    "restaurant_id": "rA",
    "restaurant_name": "Spice House",
}


class TestApi(unittest.TestCase):
    """Test cases for the HTTP routes"""

    def setUp(self):
        """Set up test database and client"""
        self.test_db = tempfile.NamedTemporaryFile(delete=False, suffix='.db')
        self.test_db.close()
        self.market = EatLocalMarketplace(self.test_db.name)
        self.market.menu_repo.add_menu_item(
            MenuItem("m-peri", "rB", "Peri Grill", "Peri-Peri Chicken", Decimal("119.99"))
        )
        self.market.faq_repo.add_entry(
            FAQEntry("faq-radius", "orders", "How far do you deliver?", "Within 10 km.", ["far"])
        )
        app = create_app(self.market)
        app.config['TESTING'] = True
        self.client = app.test_client()

    def tearDown(self):
        """Clean up test database"""
        os.unlink(self.test_db.name)

    def test_health(self):
        response = self.client.get('/health')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['status'], 'ok')

    def test_add_and_view_cart(self):
        response = self.client.post('/api/cart/items', json=BUNNY)
        self.assertEqual(response.status_code, 200)

        cart = self.client.get('/api/cart').get_json()
        self.assertEqual(len(cart['cart_items']), 1)
        self.assertEqual(cart['restaurant_id'], 'rA')
        self.assertEqual(Decimal(cart['summary']['service_fee']), Decimal("4.5"))

    def test_cart_is_per_client_session(self):
        self.client.post('/api/cart/items', json=BUNNY)
        other = create_app(self.market).test_client()
        self.assertEqual(other.get('/api/cart').get_json()['cart_items'], [])

    def test_restaurant_conflict_returns_409(self):
        self.client.post('/api/cart/items', json=BUNNY)

        response = self.client.post('/api/cart/items', json={"menu_item_id": "m-peri"})
        self.assertEqual(response.status_code, 409)
        self.assertTrue(response.get_json()['conflict'])

        response = self.client.post('/api/cart/restaurant-change/confirm')
        self.assertEqual(response.status_code, 200)
        cart = self.client.get('/api/cart').get_json()
        self.assertEqual(cart['restaurant_id'], 'rB')

    def test_unknown_menu_item_returns_404(self):
        response = self.client.post('/api/cart/items', json={"menu_item_id": "missing"})
        self.assertEqual(response.status_code, 404)

    def test_invalid_body_returns_400(self):
        response = self.client.post('/api/cart/items', json={"price": "-1"})
        self.assertEqual(response.status_code, 400)
        self.assertIn('error', response.get_json())

    def test_update_and_remove_item(self):
        self.client.post('/api/cart/items', json=BUNNY)

        response = self.client.patch('/api/cart/items/m-bunny', json={"quantity": 3})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get('/api/cart').get_json()['summary']['total_quantity'], 3)

        response = self.client.delete('/api/cart/items/m-bunny')
        self.assertEqual(response.get_json()['quantity'], 2)

        self.client.delete('/api/cart')
        self.assertEqual(self.client.get('/api/cart').get_json()['cart_items'], [])

    def test_validate_promo(self):
        response = self.client.post('/api/promo/validate', json={"code": "NOPE", "order_total": "100"})
        body = response.get_json()
        self.assertFalse(body['valid'])
        self.assertEqual(body['error_message'], 'Invalid promo code')

    def test_place_order(self):
        self.assertEqual(self.client.post('/api/orders', json={}).status_code, 400)

        self.client.post('/api/cart/items', json=BUNNY)
        response = self.client.post('/api/orders', json={"fulfillment": "pickup"})

        self.assertEqual(response.status_code, 201)
        order = response.get_json()['order']
        self.assertEqual(Decimal(order['total']), Decimal("104.50"))

        details = self.client.get(f"/api/orders/{order['order_id']}")
        self.assertEqual(details.status_code, 200)
        self.assertEqual(self.client.get('/api/orders/missing').status_code, 404)

    def test_chat_anonymous_and_signed_in(self):
        response = self.client.post('/api/chat', json={"message": "I want a refund"})
        self.assertEqual(response.get_json()['bot_message']['intent'], 'refund')

        response = self.client.post('/api/chat', json={"message": "hello"},
                                    headers={'X-User-Id': 'u1'})
        body = response.get_json()
        self.assertTrue(body['success'])
        self.assertEqual(body['bot_message']['intent_detected'], 'greeting')

    def test_faq(self):
        entries = self.client.get('/api/faq').get_json()
        self.assertEqual([e['id'] for e in entries], ['faq-radius'])
        self.assertEqual(self.client.get('/api/faq?category=payment').get_json(), [])

    def test_faq_categories(self):
        categories = self.client.get('/api/faq/categories').get_json()
        self.assertIn('orders', [c['id'] for c in categories])

    def test_unknown_service_type_rejected(self):
        response = self.client.post('/api/promo/validate',
                                    json={"code": "NOPE", "service_type": "boat"})
        self.assertEqual(response.status_code, 400)

    def test_delivery_check(self):
        response = self.client.post('/api/delivery/check', json={
            "restaurant_lat": -33.9249, "restaurant_lon": 18.4241,
            "address_lat": -33.9160, "address_lon": 18.3870
        })
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertTrue(body['can_deliver'])
        self.assertEqual(body['max_radius'], 10)

        far = self.client.post('/api/delivery/check', json={
            "restaurant_lat": -33.9249, "restaurant_lon": 18.4241,
            "address_lat": -26.2041, "address_lon": 28.0473
        }).get_json()
        self.assertFalse(far['can_deliver'])

        bad = self.client.post('/api/delivery/check', json={
            "restaurant_lat": 100, "restaurant_lon": 18.4241,
            "address_lat": -33.9160, "address_lon": 18.3870, "opening_time": "9am"
        })
        self.assertEqual(bad.status_code, 400)

    def test_promo_admin_routes(self):
        promo = {
            "code": "weekend", "discount_type": "percentage", "discount_value": "15",
            "start_date": "2025-01-01T00:00:00+00:00", "end_date": "2099-01-01T00:00:00+00:00"
        }
        self.assertEqual(self.client.post('/api/admin/promo-codes', json=promo).status_code, 401)

        response = self.client.post('/api/admin/promo-codes', json=promo, headers={'X-User-Id': 'admin-1'})
        self.assertEqual(response.status_code, 201)
        promo_id = response.get_json()['promo_code']['id']

        listing = self.client.get('/api/admin/promo-codes').get_json()
        self.assertEqual([(p['code'], p['status']) for p in listing], [('WEEKEND', 'active')])

        response = self.client.patch(f'/api/admin/promo-codes/{promo_id}', json={"description": "Weekend deal"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['promo_code']['description'], 'Weekend deal')
        self.assertEqual(self.client.patch(f'/api/admin/promo-codes/{promo_id}',
                                           json={"code": "X"}).status_code, 400)
        self.assertEqual(self.client.patch('/api/admin/promo-codes/missing',
                                           json={"is_active": False}).status_code, 404)

        self.assertEqual(self.client.delete(f'/api/admin/promo-codes/{promo_id}').status_code, 200)
        self.assertEqual(self.client.delete('/api/admin/promo-codes/missing').status_code, 404)
        self.assertEqual(self.client.get('/api/admin/promo-codes').get_json()[0]['status'], 'inactive')

    def test_promo_history(self):
        self.assertEqual(self.client.get('/api/promo/history').get_json(), [])
        self.assertEqual(self.client.get('/api/promo/history', headers={'X-User-Id': 'u1'}).get_json(), [])

    def test_close_chat_session(self):
        session_id = self.client.post('/api/chat', json={"message": "hello"},
                                      headers={'X-User-Id': 'u1'}).get_json()['session_id']

        self.assertEqual(self.client.post(f'/api/chat/sessions/{session_id}/close',
                                          json={"rating": 9}).status_code, 400)
        response = self.client.post(f'/api/chat/sessions/{session_id}/close', json={"rating": 5})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.get_json()['success'])
        self.assertEqual(self.client.post('/api/chat/sessions/missing/close', json={}).status_code, 404)

    def test_rate_faq(self):
        response = self.client.post('/api/faq/faq-radius/rate', json={"helpful": True})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get('/api/faq').get_json()[0]['helpful_count'], 1)

        self.assertEqual(self.client.post('/api/faq/missing/rate', json={"helpful": True}).status_code, 404)
        self.assertEqual(self.client.post('/api/faq/faq-radius/rate', json={}).status_code, 400)

    def test_experiment_assignment_and_conversion(self):
        self.market.experiment_repo.create_experiment(Experiment("exp", "Experiment", [Variant("a", 1)]))

        self.assertEqual(self.client.post('/api/experiments/exp/assign').status_code, 401)
        response = self.client.post('/api/experiments/exp/assign', headers={'X-User-Id': 'u1'})
        self.assertEqual(response.status_code, 200)
        assignment_id = response.get_json()['assignment']['assignment_id']

        response = self.client.post(f'/api/experiments/assignments/{assignment_id}/convert',
                                    json={"value": 104.5})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.post('/api/experiments/assignments/missing/convert',
                                          json={}).status_code, 404)


if __name__ == '__main__':
    unittest.main()
