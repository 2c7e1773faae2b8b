"""
Order related data models
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Dict, Any
from enum import Enum


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY_FOR_PICKUP = "ready_for_pickup"
    PICKED_UP = "picked_up"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class FulfillmentType(Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"


@dataclass
class OrderItem:
    """Order item data model"""
    order_item_id: str
    order_id: str
    menu_item_id: str
    name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    special_instructions: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "order_item_id": self.order_item_id,
            "order_id": self.order_id,
            "menu_item_id": self.menu_item_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "line_total": self.line_total,
            "special_instructions": self.special_instructions
        }


@dataclass
class Order:
    """Order data model"""
    order_id: str
    order_number: str
    session_id: str
    user_id: Optional[str]
    restaurant_id: str
    restaurant_name: str
    fulfillment: FulfillmentType
    subtotal: Decimal
    service_fee: Decimal
    tax: Decimal
    delivery_fee: Decimal
    discount_amount: Decimal
    total: Decimal
    pickup_code: str
    status: OrderStatus
    estimated_time: int
    promo_code_id: Optional[str] = None
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "order_id": self.order_id,
            "order_number": self.order_number,
            "session_id": self.session_id,
            "user_id": self.user_id,
            "restaurant_id": self.restaurant_id,
            "restaurant_name": self.restaurant_name,
            "fulfillment": self.fulfillment.value,
            "subtotal": self.subtotal,
            "service_fee": self.service_fee,
            "tax": self.tax,
            "delivery_fee": self.delivery_fee,
            "discount_amount": self.discount_amount,
            "total": self.total,
            "pickup_code": self.pickup_code,
            "status": self.status.value,
            "estimated_time": self.estimated_time,
            "promo_code_id": self.promo_code_id,
            "created_at": self.created_at
        }
