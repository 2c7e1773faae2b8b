"""
Promo code related data models
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Dict, Any

from .cart import parse_decimal
from .errors import RowValidationError


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class ServiceType(Enum):
    FOOD = "food"
    HOTEL = "hotel"
    VENUE = "venue"
    RIDE = "ride"


class PromoStatus(Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    SCHEDULED = "scheduled"
    EXHAUSTED = "exhausted"
    INACTIVE = "inactive"


def _optional_decimal(key: str, value: Any) -> Optional[Decimal]:
    return None if value is None else parse_decimal("PromoCode", key, value)


def _optional_int(key: str, value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise RowValidationError("PromoCode", key, value)
    return value


def _parse_datetime(key: str, value: Any) -> datetime:
    if not isinstance(value, datetime):
        try:
            value = datetime.fromisoformat(value)
        except (TypeError, ValueError):
            raise RowValidationError("PromoCode", key, value)
    # 시간대 정보가 없으면 UTC로 간주
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class PromoCode:
    """Promo code data model"""
    id: str
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    start_date: datetime
    end_date: datetime
    description: Optional[str] = None
    min_order_amount: Optional[Decimal] = None
    max_discount_amount: Optional[Decimal] = None
    usage_limit: Optional[int] = None
    usage_count: int = 0
    per_user_limit: Optional[int] = None
    restaurant_ids: List[str] = field(default_factory=list)
    applicable_to: Optional[str] = None
    is_active: bool = True
    created_by: Optional[str] = None
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "id": self.id,
            "code": self.code,
            "description": self.description,
            "discount_type": self.discount_type.value,
            "discount_value": self.discount_value,
            "min_order_amount": self.min_order_amount,
            "max_discount_amount": self.max_discount_amount,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "usage_limit": self.usage_limit,
            "usage_count": self.usage_count,
            "per_user_limit": self.per_user_limit,
            "restaurant_ids": list(self.restaurant_ids),
            "applicable_to": self.applicable_to,
            "is_active": self.is_active,
            "created_by": self.created_by,
            "created_at": self.created_at
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PromoCode":
        # 저장소에서 읽은 행을 검증하면서 변환
        try:
            discount_type = DiscountType(data.get("discount_type"))
        except ValueError:
            raise RowValidationError("PromoCode", "discount_type", data.get("discount_type"))

        restaurant_ids = data.get("restaurant_ids") or []
        if not isinstance(restaurant_ids, list):
            raise RowValidationError("PromoCode", "restaurant_ids", restaurant_ids)

        code = data.get("code")
        if not isinstance(code, str) or not code:
            raise RowValidationError("PromoCode", "code", code)

        return cls(
            id=str(data.get("id")),
            code=code,
            description=data.get("description"),
            discount_type=discount_type,
            discount_value=parse_decimal("PromoCode", "discount_value", data.get("discount_value")),
            min_order_amount=_optional_decimal("min_order_amount", data.get("min_order_amount")),
            max_discount_amount=_optional_decimal("max_discount_amount", data.get("max_discount_amount")),
            start_date=_parse_datetime("start_date", data.get("start_date")),
            end_date=_parse_datetime("end_date", data.get("end_date")),
            usage_limit=_optional_int("usage_limit", data.get("usage_limit")),
            usage_count=_optional_int("usage_count", data.get("usage_count")) or 0,
            per_user_limit=_optional_int("per_user_limit", data.get("per_user_limit")),
            restaurant_ids=[str(rid) for rid in restaurant_ids],
            applicable_to=data.get("applicable_to"),
            is_active=bool(data.get("is_active", True)),
            created_by=data.get("created_by"),
            created_at=data.get("created_at")
        )


@dataclass
class PromoValidationResult:
    """Result of running a code through the validation checks"""
    valid: bool
    promo_code: Optional[PromoCode]
    discount_amount: Decimal
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "valid": self.valid,
            "promo_code": self.promo_code.to_dict() if self.promo_code else None,
            "discount_amount": self.discount_amount,
            "error_message": self.error_message
        }
