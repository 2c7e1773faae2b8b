"""
Menu related data models
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Dict, Any

from .cart import NewCartItem


@dataclass
class MenuItem:
    """Menu item data model"""
    menu_item_id: str
    restaurant_id: str
    restaurant_name: str
    name: str
    price: Decimal
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_available: bool = True
    match_score: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "menu_item_id": self.menu_item_id,
            "restaurant_id": self.restaurant_id,
            "restaurant_name": self.restaurant_name,
            "name": self.name,
            "price": self.price,
            "description": self.description,
            "image_url": self.image_url,
            "is_available": self.is_available,
            "match_score": self.match_score
        }

    def to_cart_item(self, special_instructions: Optional[str] = None) -> NewCartItem:
        # 장바구니 추가 요청 형태로 변환
        return NewCartItem(
            menu_item_id=self.menu_item_id,
            name=self.name,
            price=self.price,
            restaurant_id=self.restaurant_id,
            restaurant_name=self.restaurant_name,
            image_url=self.image_url,
            special_instructions=special_instructions
        )
