"""
Request schemas for the EatLocal API

Each Pydantic model validates one JSON request body before it reaches a service.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.promo import DiscountType, ServiceType

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class AddCartItemRequest(BaseModel):
    menu_item_id: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, description="Required when the item is not in the menu table")
    price: Optional[Decimal] = Field(None, ge=0)
    restaurant_id: Optional[str] = None
    restaurant_name: Optional[str] = None
    image_url: Optional[str] = None
    special_instructions: Optional[str] = None

    def is_inline(self) -> bool:
        return all(v is not None for v in (self.name, self.price, self.restaurant_id, self.restaurant_name))


class UpdateCartItemRequest(BaseModel):
    quantity: Optional[int] = None
    special_instructions: Optional[str] = None


class ValidatePromoRequest(BaseModel):
    code: str
    order_total: Optional[Decimal] = Field(None, ge=0, description="Defaults to the cart subtotal")
    restaurant_id: Optional[str] = None
    service_type: ServiceType = ServiceType.FOOD


class PlaceOrderRequest(BaseModel):
    promo_code: Optional[str] = None
    delivery_fee: Optional[Decimal] = Field(None, ge=0)
    fulfillment: str = Field("delivery", description="delivery | pickup")


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)


class CloseChatRequest(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)


class RateFAQRequest(BaseModel):
    helpful: bool


class DeliveryCheckRequest(BaseModel):
    restaurant_lat: float = Field(..., ge=-90, le=90)
    restaurant_lon: float = Field(..., ge=-180, le=180)
    address_lat: float = Field(..., ge=-90, le=90)
    address_lon: float = Field(..., ge=-180, le=180)
    opening_time: Optional[str] = Field(None, pattern=HHMM_PATTERN, description="HH:MM, 24-hour")
    closing_time: Optional[str] = Field(None, pattern=HHMM_PATTERN, description="HH:MM, 24-hour")


class CreatePromoCodeRequest(BaseModel):
    code: str = Field(..., min_length=1)
    discount_type: DiscountType
    discount_value: Decimal = Field(..., gt=0)
    start_date: datetime
    end_date: datetime
    description: Optional[str] = None
    min_order_amount: Optional[Decimal] = Field(None, ge=0)
    max_discount_amount: Optional[Decimal] = Field(None, ge=0)
    usage_limit: Optional[int] = Field(None, ge=1)
    per_user_limit: Optional[int] = Field(None, ge=1)
    restaurant_ids: List[str] = Field(default_factory=list)
    applicable_to: Optional[str] = None
    is_active: bool = True


class UpdatePromoCodeRequest(BaseModel):
    """Only the fields present in the body are changed"""
    model_config = ConfigDict(extra="forbid")

    description: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, gt=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    min_order_amount: Optional[Decimal] = Field(None, ge=0)
    max_discount_amount: Optional[Decimal] = Field(None, ge=0)
    usage_limit: Optional[int] = Field(None, ge=1)
    per_user_limit: Optional[int] = Field(None, ge=1)
    restaurant_ids: Optional[List[str]] = None
    applicable_to: Optional[str] = None
    is_active: Optional[bool] = None


class ConversionRequest(BaseModel):
    value: Optional[float] = None
