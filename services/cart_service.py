"""
Cart service - single-restaurant cart state machine
"""
import uuid
import logging
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict, Any, Optional

from config import (
    SERVICE_FEE_RATE, CART_EXPIRY, CART_STORAGE_KEY,
    CART_STORAGE_VERSION, CURRENCY_SYMBOL
)
from models.cart import CartItem, CartState, CartSummary, NewCartItem
from models.errors import RowValidationError
from database.repository import CartRepository

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def round_currency(amount: Decimal) -> Decimal:
    # 화면 표시용 센트 단위 반올림
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def format_currency(amount: Decimal) -> str:
    return f"{CURRENCY_SYMBOL}{round_currency(amount):,.2f}"


class CartService:
    # 장바구니 상태 전이와 금액 계산을 담당하는 서비스 클래스

    def __init__(self, cart_repository: Optional[CartRepository] = None,
                 session_id: str = "default",
                 clock: Callable[[], datetime] = utc_now):
        # 영속화 어댑터(선택)와 시계 주입, 저장된 장바구니 복원
        self.cart_repo = cart_repository
        self.storage_key = f"{CART_STORAGE_KEY}:{session_id}"
        self.clock = clock
        self.state = self._load()
        # 복원 직후 만료 여부 확인 (만료된 항목으로 계산하지 않도록)
        self.check_expiry()

    # === 영속화 ===
    def _load(self) -> CartState:
        if self.cart_repo is None:
            return CartState()

        data = self.cart_repo.load(self.storage_key, CART_STORAGE_VERSION)
        if data is None:
            return CartState()

        try:
            return CartState.from_dict(data)
        except RowValidationError as e:
            # 현재 형태와 맞지 않는 저장 데이터는 폐기
            logger.warning("Discarding stored cart %s: %s", self.storage_key, e)
            self.cart_repo.delete(self.storage_key)
            return CartState()

    def _persist(self):
        if self.cart_repo is None:
            return
        if not self.cart_repo.save(self.storage_key, CART_STORAGE_VERSION, self.state.to_dict()):
            logger.warning("Cart %s changed in memory but was not persisted", self.storage_key)

    # === 내부 헬퍼 ===
    def _find(self, menu_item_id: str) -> Optional[CartItem]:
        for item in self.state.items:
            if item.menu_item_id == menu_item_id:
                return item
        return None

    def _new_line(self, item: NewCartItem) -> CartItem:
        return CartItem(
            id=str(uuid.uuid4()),
            menu_item_id=item.menu_item_id,
            name=item.name,
            price=item.price,
            quantity=1,
            restaurant_id=item.restaurant_id,
            restaurant_name=item.restaurant_name,
            image_url=item.image_url,
            special_instructions=item.special_instructions
        )

    def _reset(self):
        self.state = CartState()

    def _touch(self):
        # 성공적인 추가 시 만료시각 갱신
        self.state.expires_at = self.clock() + CART_EXPIRY

    def _is_expired(self) -> bool:
        return (
            bool(self.state.items)
            and self.state.expires_at is not None
            and self.clock() >= self.state.expires_at
        )

    def _clear_pending(self):
        self.state.pending_item = None
        self.state.show_restaurant_change_modal = False

    def _after_shrink(self):
        # 장바구니가 비면 레스토랑/만료/대기 정보도 초기화
        if not self.state.items:
            self.state.restaurant_id = None
            self.state.restaurant_name = None
            self.state.expires_at = None
            self._clear_pending()

    # === 상태 전이 ===
    def check_expiry(self) -> bool:
        # 만료된 장바구니를 비움, 비웠으면 True
        if self._is_expired():
            logger.info("Cart %s expired at %s; clearing", self.storage_key, self.state.expires_at)
            self._reset()
            self._persist()
            return True
        return False

    def add_item(self, item: NewCartItem) -> Dict[str, Any]:
        # 메뉴 아이템 추가 (다른 레스토랑이면 확인 대기 상태로 전환)
        self.check_expiry()

        if self.state.items and item.restaurant_id != self.state.restaurant_id:
            self.state.pending_item = item
            self.state.show_restaurant_change_modal = True
            self._persist()
            return {
                "success": False,
                "conflict": True,
                "current_restaurant": self.state.restaurant_name,
                "requested_restaurant": item.restaurant_name,
                "message": (
                    f"Your cart has items from {self.state.restaurant_name}. "
                    f"Start a new cart with {item.restaurant_name}?"
                )
            }

        existing = self._find(item.menu_item_id)
        if existing:
            existing.quantity += 1
        else:
            self.state.items.append(self._new_line(item))
            self.state.restaurant_id = item.restaurant_id
            self.state.restaurant_name = item.restaurant_name

        # 같은 레스토랑 추가가 성공하면 이전 변경 요청은 무효
        self._clear_pending()
        self._touch()
        self._persist()
        return {
            "success": True,
            "conflict": False,
            "quantity": self.get_item_quantity(item.menu_item_id),
            "message": f"{item.name} added to cart."
        }

    def remove_item(self, menu_item_id: str) -> Dict[str, Any]:
        # 수량 1 감소, 마지막 한 개면 라인 제거
        self.check_expiry()

        existing = self._find(menu_item_id)
        if not existing:
            return {"success": False, "message": "Item is not in the cart."}

        if existing.quantity == 1:
            self.state.items.remove(existing)
        else:
            existing.quantity -= 1

        self._after_shrink()
        self._persist()
        return {
            "success": True,
            "quantity": self.get_item_quantity(menu_item_id),
            "message": f"{existing.name} updated."
        }

    def update_quantity(self, menu_item_id: str, quantity: int) -> Dict[str, Any]:
        # 0 이하는 라인 전체 삭제, 그 외에는 수량 교체
        self.check_expiry()

        existing = self._find(menu_item_id)
        if not existing:
            return {"success": False, "message": "Item is not in the cart."}

        if quantity <= 0:
            self.state.items.remove(existing)
            self._after_shrink()
            message = f"{existing.name} removed from cart."
        else:
            existing.quantity = quantity
            message = f"{existing.name} quantity set to {quantity}."

        self._persist()
        return {"success": True, "quantity": self.get_item_quantity(menu_item_id), "message": message}

    def update_instructions(self, menu_item_id: str, instructions: str) -> Dict[str, Any]:
        self.check_expiry()

        existing = self._find(menu_item_id)
        if not existing:
            return {"success": False, "message": "Item is not in the cart."}

        existing.special_instructions = instructions or None
        self._persist()
        return {"success": True, "message": "Instructions updated."}

    def confirm_restaurant_change(self) -> Dict[str, Any]:
        # 기존 장바구니를 버리고 대기 중인 아이템으로 새로 시작
        pending = self.state.pending_item
        if pending is None:
            return {"success": False, "message": "No restaurant change is pending."}

        self.state = CartState(
            items=[self._new_line(pending)],
            restaurant_id=pending.restaurant_id,
            restaurant_name=pending.restaurant_name
        )
        self._touch()
        self._persist()
        logger.info("Cart %s switched to restaurant %s", self.storage_key, pending.restaurant_id)
        return {
            "success": True,
            "message": f"Started a new cart with {pending.restaurant_name}."
        }

    def cancel_restaurant_change(self) -> Dict[str, Any]:
        self._clear_pending()
        self._persist()
        return {"success": True, "message": "Kept your current cart."}

    def clear_cart(self) -> Dict[str, Any]:
        removed = len(self.state.items)
        self._reset()
        self._persist()
        return {"success": True, "removed_items": removed, "message": "Cart cleared."}

    # === 조회 / 금액 계산 ===
    def get_item_quantity(self, menu_item_id: str) -> int:
        existing = self._find(menu_item_id)
        return existing.quantity if existing else 0

    def get_total_items(self) -> int:
        return sum(item.quantity for item in self.state.items)

    def get_subtotal(self) -> Decimal:
        return sum((item.price * item.quantity for item in self.state.items), Decimal("0"))

    def get_service_fee(self) -> Decimal:
        return self.get_subtotal() * SERVICE_FEE_RATE

    def get_tax(self) -> Decimal:
        # 이 단계에서는 세금을 부과하지 않음 (하위 시스템에서 추가될 수 있음)
        return Decimal("0")

    def get_total(self, delivery_fee=Decimal("0")) -> Decimal:
        return self.get_subtotal() + self.get_tax() + self.get_service_fee() + Decimal(str(delivery_fee))

    def get_summary(self, delivery_fee=Decimal("0")) -> CartSummary:
        return CartSummary(
            total_items=len(self.state.items),
            total_quantity=self.get_total_items(),
            subtotal=self.get_subtotal(),
            service_fee=self.get_service_fee(),
            tax=self.get_tax(),
            total_amount=self.get_total(delivery_fee)
        )

    def get_cart_details(self, delivery_fee=Decimal("0")) -> Dict[str, Any]:
        # 현재 장바구니 내용과 총액 정보 조회
        self.check_expiry()

        items = self.state.items
        message = f"There are {len(items)} item(s) in your cart." if items else "Your cart is empty."

        return {
            "success": True,
            "cart_items": [dict(item.to_dict(), line_total=str(item.line_total)) for item in items],
            "summary": self.get_summary(delivery_fee).to_dict(),
            "restaurant_id": self.state.restaurant_id,
            "restaurant_name": self.state.restaurant_name,
            "expires_at": self.state.expires_at.isoformat() if self.state.expires_at else None,
            "pending_item": self.state.pending_item.to_dict() if self.state.pending_item else None,
            "show_restaurant_change_modal": self.state.show_restaurant_change_modal,
            "message": message
        }
