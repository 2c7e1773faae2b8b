"""
Services package for EatLocal
Contains business logic services
"""

from .cart_service import CartService, format_currency, round_currency
from .promo_service import PromoService
from .chatbot_service import ChatbotService
from .experiment_service import ExperimentService
from .menu_service import MenuService
from .order_service import OrderService
from .delivery_service import (
    calculate_distance, is_within_delivery_radius, is_restaurant_open, format_time
)

__all__ = [
    'CartService', 'format_currency', 'round_currency',
    'PromoService', 'ChatbotService', 'ExperimentService',
    'MenuService', 'OrderService',
    'calculate_distance', 'is_within_delivery_radius', 'is_restaurant_open', 'format_time'
]
