"""
Models package for EatLocal
Contains data models and type definitions
"""

from .errors import BackendError, RowValidationError
from .cart import CartItem, CartState, CartSummary, NewCartItem
from .menu import MenuItem
from .order import Order, OrderItem, OrderStatus, FulfillmentType
from .promo import PromoCode, PromoValidationResult, DiscountType, ServiceType, PromoStatus
from .chat import ChatSession, ChatMessage, FAQEntry, BotResponse, Intent, QuickReply
from .experiment import Experiment, Variant, ExperimentAssignment

__all__ = [
    'BackendError', 'RowValidationError',
    'CartItem', 'CartState', 'CartSummary', 'NewCartItem',
    'MenuItem',
    'Order', 'OrderItem', 'OrderStatus', 'FulfillmentType',
    'PromoCode', 'PromoValidationResult', 'DiscountType', 'ServiceType', 'PromoStatus',
    'ChatSession', 'ChatMessage', 'FAQEntry', 'BotResponse', 'Intent', 'QuickReply',
    'Experiment', 'Variant', 'ExperimentAssignment'
]
