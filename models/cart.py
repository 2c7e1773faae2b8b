"""
Cart related data models
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Dict, Any

from .errors import RowValidationError


def _require_str(entity: str, data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise RowValidationError(entity, key, value)
    return value


def _optional_str(entity: str, data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise RowValidationError(entity, key, value)
    return value


def parse_decimal(entity: str, key: str, value: Any) -> Decimal:
    # float는 str을 거쳐서 변환해야 2진 오차가 생기지 않음
    if isinstance(value, bool) or value is None:
        raise RowValidationError(entity, key, value)
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise RowValidationError(entity, key, value)


@dataclass
class NewCartItem:
    """Item requested to be added (no id / quantity yet)"""
    menu_item_id: str
    name: str
    price: Decimal
    restaurant_id: str
    restaurant_name: str
    image_url: Optional[str] = None
    special_instructions: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "menu_item_id": self.menu_item_id,
            "name": self.name,
            "price": str(self.price),
            "restaurant_id": self.restaurant_id,
            "restaurant_name": self.restaurant_name,
            "image_url": self.image_url,
            "special_instructions": self.special_instructions
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NewCartItem":
        if not isinstance(data, dict):
            raise RowValidationError("NewCartItem", "<root>", data)
        return cls(
            menu_item_id=_require_str("NewCartItem", data, "menu_item_id"),
            name=_require_str("NewCartItem", data, "name"),
            price=parse_decimal("NewCartItem", "price", data.get("price")),
            restaurant_id=_require_str("NewCartItem", data, "restaurant_id"),
            restaurant_name=_require_str("NewCartItem", data, "restaurant_name"),
            image_url=_optional_str("NewCartItem", data, "image_url"),
            special_instructions=_optional_str("NewCartItem", data, "special_instructions")
        )


@dataclass
class CartItem:
    """Cart item data model"""
    id: str
    menu_item_id: str
    name: str
    price: Decimal
    quantity: int
    restaurant_id: str
    restaurant_name: str
    image_url: Optional[str] = None
    special_instructions: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "id": self.id,
            "menu_item_id": self.menu_item_id,
            "name": self.name,
            "price": str(self.price),
            "quantity": self.quantity,
            "restaurant_id": self.restaurant_id,
            "restaurant_name": self.restaurant_name,
            "image_url": self.image_url,
            "special_instructions": self.special_instructions
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartItem":
        if not isinstance(data, dict):
            raise RowValidationError("CartItem", "<root>", data)
        quantity = data.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise RowValidationError("CartItem", "quantity", quantity)
        return cls(
            id=_require_str("CartItem", data, "id"),
            menu_item_id=_require_str("CartItem", data, "menu_item_id"),
            name=_require_str("CartItem", data, "name"),
            price=parse_decimal("CartItem", "price", data.get("price")),
            quantity=quantity,
            restaurant_id=_require_str("CartItem", data, "restaurant_id"),
            restaurant_name=_require_str("CartItem", data, "restaurant_name"),
            image_url=_optional_str("CartItem", data, "image_url"),
            special_instructions=_optional_str("CartItem", data, "special_instructions")
        )


@dataclass
class CartState:
    """Client-held cart aggregate (single restaurant at a time)"""
    items: List[CartItem] = field(default_factory=list)
    restaurant_id: Optional[str] = None
    restaurant_name: Optional[str] = None
    expires_at: Optional[datetime] = None
    pending_item: Optional[NewCartItem] = None
    show_restaurant_change_modal: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "items": [item.to_dict() for item in self.items],
            "restaurant_id": self.restaurant_id,
            "restaurant_name": self.restaurant_name,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "pending_item": self.pending_item.to_dict() if self.pending_item else None,
            "show_restaurant_change_modal": self.show_restaurant_change_modal
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartState":
        if not isinstance(data, dict):
            raise RowValidationError("CartState", "<root>", data)

        raw_items = data.get("items", [])
        if not isinstance(raw_items, list):
            raise RowValidationError("CartState", "items", raw_items)
        items = [CartItem.from_dict(item) for item in raw_items]

        expires_at = data.get("expires_at")
        if expires_at is not None:
            try:
                expires_at = datetime.fromisoformat(expires_at)
            except (TypeError, ValueError):
                raise RowValidationError("CartState", "expires_at", expires_at)

        pending = data.get("pending_item")
        state = cls(
            items=items,
            restaurant_id=_optional_str("CartState", data, "restaurant_id"),
            restaurant_name=_optional_str("CartState", data, "restaurant_name"),
            expires_at=expires_at,
            pending_item=NewCartItem.from_dict(pending) if pending else None,
            show_restaurant_change_modal=bool(data.get("show_restaurant_change_modal", False))
        )

        # 비어있지 않은 장바구니는 반드시 레스토랑과 만료시각을 가져야 함
        if state.items and (state.restaurant_id is None or state.expires_at is None):
            raise RowValidationError("CartState", "restaurant_id", state.restaurant_id)
        if any(item.restaurant_id != state.restaurant_id for item in state.items):
            raise RowValidationError("CartState", "items", "mixed restaurants")
        return state


@dataclass
class CartSummary:
    """Cart summary data model"""
    total_items: int
    total_quantity: int
    subtotal: Decimal
    service_fee: Decimal
    tax: Decimal
    total_amount: Decimal

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "total_items": self.total_items,
            "total_quantity": self.total_quantity,
            "subtotal": self.subtotal,
            "service_fee": self.service_fee,
            "tax": self.tax,
            "total_amount": self.total_amount
        }
