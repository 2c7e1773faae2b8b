"""
Order service - handles checkout of the current cart
"""
import uuid
import random
import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, Optional, Any

from config import DEFAULT_DELIVERY_FEE, ORDER_NUMBER_PREFIX, PICKUP_CODE_LENGTH, DEFAULT_PREP_TIME
from models.order import Order, OrderItem, OrderStatus, FulfillmentType
from database.repository import OrderRepository
from .cart_service import CartService, format_currency, utc_now
from .promo_service import PromoService

logger = logging.getLogger(__name__)


def generate_pickup_code(length: int = PICKUP_CODE_LENGTH) -> str:
    return "".join(random.choice("0123456789") for _ in range(length))


class OrderService:
    # 주문 관련 비즈니스 로직을 처리하는 서비스 클래스

    def __init__(self, order_repository: OrderRepository, promo_service: PromoService,
                 clock: Callable[[], datetime] = utc_now):
        # OrderRepository와 PromoService 인스턴스, 주문번호용 시계 주입
        self.order_repo = order_repository
        self.promo_service = promo_service
        self.clock = clock

    def place_order(self, session_id: str, cart: CartService, user_id: Optional[str] = None,
                    promo_code: Optional[str] = None, delivery_fee=DEFAULT_DELIVERY_FEE,
                    fulfillment: str = "delivery") -> Dict[str, Any]:
        # 장바구니 내용을 바탕으로 최종 주문 처리
        try:
            cart.check_expiry()
            state = cart.state
            if not state.items:
                return {"success": False, "error": "Your cart is empty."}

            try:
                fulfillment_type = FulfillmentType(fulfillment)
            except ValueError:
                return {"success": False, "error": f"Unsupported fulfillment type: {fulfillment}"}

            # 픽업 주문은 배달비 없음
            delivery_fee = Decimal("0") if fulfillment_type == FulfillmentType.PICKUP \
                else Decimal(str(delivery_fee))

            subtotal = cart.get_subtotal()
            total = cart.get_total(delivery_fee)

            # 프로모션 코드 검증 (소계 기준)
            promo = None
            discount = Decimal("0")
            if promo_code:
                validation = self.promo_service.validate_promo_code(
                    promo_code, subtotal, user_id=user_id, restaurant_id=state.restaurant_id
                )
                if not validation.valid:
                    return {"success": False, "error": validation.error_message}
                promo = validation.promo_code
                discount = validation.discount_amount

            order_id = str(uuid.uuid4())
            order_number = f"{ORDER_NUMBER_PREFIX}-{self.clock().strftime('%Y%m%d%H%M%S')}-{order_id[:4].upper()}"

            # 예상 준비 시간 (기본 준비시간 + 라인당 2분)
            estimated_time = DEFAULT_PREP_TIME + len(state.items) * 2

            order = Order(
                order_id=order_id,
                order_number=order_number,
                session_id=session_id,
                user_id=user_id,
                restaurant_id=state.restaurant_id,
                restaurant_name=state.restaurant_name,
                fulfillment=fulfillment_type,
                subtotal=subtotal,
                service_fee=cart.get_service_fee(),
                tax=cart.get_tax(),
                delivery_fee=delivery_fee,
                discount_amount=discount,
                total=total - discount,
                pickup_code=generate_pickup_code(),
                status=OrderStatus.PENDING,
                estimated_time=estimated_time,
                promo_code_id=promo.id if promo else None
            )

            order_items = [
                OrderItem(
                    order_item_id=str(uuid.uuid4()),
                    order_id=order_id,
                    menu_item_id=item.menu_item_id,
                    name=item.name,
                    quantity=item.quantity,
                    unit_price=item.price,
                    line_total=item.line_total,
                    special_instructions=item.special_instructions
                )
                for item in state.items
            ]

            if not self.order_repo.create_order(order, order_items):
                return {"success": False, "error": "Failed to create the order."}

            if promo and user_id:
                usage = self.promo_service.record_usage(promo.id, user_id, order_id, discount)
                if not usage["success"]:
                    # 주문은 이미 생성됨, 경고만 남김
                    logger.warning("Order %s placed but promo usage not recorded: %s",
                                   order_number, usage.get("error"))

            # 성공적인 주문 후 장바구니 비우기
            cart.clear_cart()
            logger.info("Order %s placed for restaurant %s", order_number, order.restaurant_id)

            return {
                "success": True,
                "order": order.to_dict(),
                "items": [item.to_dict() for item in order_items],
                "message": (
                    f"Order {order_number} placed. Total {format_currency(order.total)}, "
                    f"ready in about {estimated_time} minutes."
                )
            }

        except Exception as e:
            logger.exception("Checkout failed for session %s", session_id)
            return {"success": False, "error": str(e)}

    def get_order_details(self, order_id: str) -> Dict[str, Any]:
        # 특정 주문의 상세 정보 조회
        try:
            order_details = self.order_repo.get_order_details(order_id)
            if not order_details:
                return {"success": False, "error": "Order not found."}

            return {
                "success": True,
                "order_info": order_details["order_info"],
                "order_items": order_details["order_items"]
            }

        except Exception as e:
            return {"success": False, "error": str(e)}
