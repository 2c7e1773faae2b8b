"""
Promo service - promo code validation and administration
"""
import uuid
import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Dict, List, Any, Optional

from config import CURRENCY_SYMBOL
from models.promo import PromoCode, PromoValidationResult, DiscountType, PromoStatus
from database.repository import PromoRepository

logger = logging.getLogger(__name__)

# 관리자 수정이 허용되는 컬럼
UPDATABLE_FIELDS = {
    "description", "discount_type", "discount_value", "min_order_amount",
    "max_discount_amount", "start_date", "end_date", "usage_limit",
    "per_user_limit", "restaurant_ids", "applicable_to", "is_active"
}


def _to_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def format_discount(promo: PromoCode) -> str:
    # 할인 표시 문자열
    if promo.discount_type == DiscountType.PERCENTAGE:
        return f"{promo.discount_value.normalize():f}% off"
    return f"{CURRENCY_SYMBOL}{promo.discount_value:.2f} off"


def get_promo_code_status(promo: PromoCode, now: Optional[datetime] = None) -> PromoStatus:
    now = now or datetime.now(timezone.utc)
    if not promo.is_active:
        return PromoStatus.INACTIVE
    if now < promo.start_date:
        return PromoStatus.SCHEDULED
    if now > promo.end_date:
        return PromoStatus.EXPIRED
    if promo.usage_limit and promo.usage_count >= promo.usage_limit:
        return PromoStatus.EXHAUSTED
    return PromoStatus.ACTIVE


def calculate_discount(promo: PromoCode, order_total: Decimal) -> Decimal:
    # 정률/정액 할인 계산 후 최대 할인액, 주문 금액 순으로 상한 적용
    if promo.discount_type == DiscountType.PERCENTAGE:
        discount = order_total * (promo.discount_value / Decimal("100"))
    else:
        discount = promo.discount_value

    if promo.max_discount_amount and discount > promo.max_discount_amount:
        discount = promo.max_discount_amount

    if discount > order_total:
        discount = order_total

    return discount


class PromoService:
    # 프로모션 코드 관련 비즈니스 로직을 처리하는 서비스 클래스

    def __init__(self, promo_repository: PromoRepository,
                 clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.promo_repo = promo_repository
        self.clock = clock

    @staticmethod
    def _invalid(message: str) -> PromoValidationResult:
        return PromoValidationResult(valid=False, promo_code=None,
                                     discount_amount=Decimal("0"), error_message=message)

    def validate_promo_code(self, code: str, order_total, user_id: Optional[str] = None,
                            restaurant_id: Optional[str] = None,
                            service_type: str = "food") -> PromoValidationResult:
        # 순차 검사, 첫 실패에서 중단
        normalized_code = (code or "").strip().upper()
        order_total = _to_decimal(order_total)

        if not normalized_code:
            return self._invalid("Please enter a promo code")

        promo = self.promo_repo.get_active_by_code(normalized_code)
        if not promo:
            return self._invalid("Invalid promo code")

        now = self.clock()
        if now < promo.start_date:
            return self._invalid("This promo code is not yet active")

        if now > promo.end_date:
            return self._invalid("This promo code has expired")

        if promo.min_order_amount and order_total < promo.min_order_amount:
            return self._invalid(
                f"Minimum order of {CURRENCY_SYMBOL}{promo.min_order_amount:.2f} required"
            )

        if promo.usage_limit and promo.usage_count >= promo.usage_limit:
            return self._invalid("This promo code has reached its usage limit")

        if user_id and promo.per_user_limit:
            used = self.promo_repo.count_user_usage(promo.id, user_id)
            if used >= promo.per_user_limit:
                return self._invalid(
                    f"You've already used this promo code {promo.per_user_limit} time(s)"
                )

        if promo.restaurant_ids and restaurant_id:
            if restaurant_id not in promo.restaurant_ids:
                return self._invalid("This promo code is not valid for this restaurant")

        if promo.applicable_to and promo.applicable_to != "all":
            applicable_types = [t.strip() for t in promo.applicable_to.split(",")]
            if service_type not in applicable_types:
                return self._invalid(f"This promo code is not valid for {service_type} orders")

        return PromoValidationResult(
            valid=True,
            promo_code=promo,
            discount_amount=calculate_discount(promo, order_total)
        )

    def record_usage(self, promo_code_id: str, user_id: str, order_id: str,
                     discount_amount) -> Dict[str, Any]:
        # 주문 완료 후 사용 기록
        if not user_id:
            return {"success": False, "error": "User not authenticated"}

        try:
            recorded = self.promo_repo.record_usage(
                usage_id=str(uuid.uuid4()),
                promo_code_id=promo_code_id,
                user_id=user_id,
                order_id=order_id,
                discount_applied=str(_to_decimal(discount_amount)),
                used_at=self.clock().isoformat()
            )
            if not recorded:
                return {"success": False, "error": "Failed to record promo code usage"}

            logger.info("Promo %s used by %s on order %s", promo_code_id, user_id, order_id)
            return {"success": True}

        except Exception as e:
            logger.exception("Promo usage recording failed")
            return {"success": False, "error": str(e)}

    def get_available_promo_codes(self, user_id: Optional[str] = None,
                                  restaurant_id: Optional[str] = None) -> List[PromoCode]:
        # 현재 사용 가능한 코드 (할인값 내림차순)
        now = self.clock()
        codes = [
            promo for promo in self.promo_repo.list_promo_codes(active_only=True)
            if promo.start_date <= now <= promo.end_date
        ]

        if restaurant_id:
            codes = [p for p in codes if not p.restaurant_ids or restaurant_id in p.restaurant_ids]

        codes = [p for p in codes if not (p.usage_limit and p.usage_count >= p.usage_limit)]

        if user_id:
            usage = self.promo_repo.get_user_usage_counts(user_id)
            codes = [
                p for p in codes
                if not p.per_user_limit or usage.get(p.id, 0) < p.per_user_limit
            ]

        codes.sort(key=lambda p: p.discount_value, reverse=True)
        return codes

    def get_promo_code_history(self, user_id: Optional[str]) -> List[Dict[str, Any]]:
        if not user_id:
            return []
        return self.promo_repo.get_usage_history(user_id, limit=20)

    # === 관리자 기능 ===
    def create_promo_code(self, data: Dict[str, Any], created_by: Optional[str]) -> Dict[str, Any]:
        if not created_by:
            return {"success": False, "error": "Not authenticated"}

        try:
            payload = dict(data)
            payload["id"] = payload.get("id") or str(uuid.uuid4())
            payload["code"] = str(payload.get("code", "")).strip().upper()
            payload["usage_count"] = 0
            payload["created_by"] = created_by
            promo = PromoCode.from_dict(payload)

            if not self.promo_repo.create_promo_code(promo):
                return {"success": False, "error": "Failed to create promo code"}

            logger.info("Promo code %s created by %s", promo.code, created_by)
            return {"success": True, "promo_code": promo.to_dict()}

        except Exception as e:
            return {"success": False, "error": str(e)}

    def update_promo_code(self, promo_code_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        try:
            unknown = set(updates) - UPDATABLE_FIELDS
            if unknown:
                return {"success": False, "error": f"Cannot update fields: {', '.join(sorted(unknown))}"}

            existing = self.promo_repo.get_by_id(promo_code_id)
            if not existing:
                return {"success": False, "error": "Promo code not found"}

            # 병합한 결과를 검증한 뒤 저장용 값으로 직렬화
            merged = PromoCode.from_dict(dict(existing.to_dict(), **updates))
            stored = {}
            for column in updates:
                value = getattr(merged, column)
                if column == "restaurant_ids":
                    value = json.dumps(value) if value else None
                elif column == "discount_type":
                    value = value.value
                elif column in ("start_date", "end_date"):
                    value = value.isoformat()
                elif column == "is_active":
                    value = int(value)
                elif isinstance(value, Decimal):
                    value = str(value)
                stored[column] = value

            if not self.promo_repo.update_promo_code(promo_code_id, stored):
                return {"success": False, "error": "Failed to update promo code"}

            return {"success": True, "promo_code": merged.to_dict()}

        except Exception as e:
            return {"success": False, "error": str(e)}

    def deactivate_promo_code(self, promo_code_id: str) -> Dict[str, Any]:
        if not self.promo_repo.update_promo_code(promo_code_id, {"is_active": 0}):
            return {"success": False, "error": "Failed to deactivate promo code"}
        logger.info("Promo code %s deactivated", promo_code_id)
        return {"success": True}

    def list_promo_codes(self) -> List[PromoCode]:
        return self.promo_repo.list_promo_codes()
