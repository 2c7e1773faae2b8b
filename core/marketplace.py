"""
Main EatLocalMarketplace class - orchestrates all services
"""
from decimal import Decimal
from typing import Dict, List, Any, Optional

from config import DB_PATH, DEFAULT_DELIVERY_FEE, MAX_DELIVERY_RADIUS
from database.connection import DatabaseConnection
from database.repository import (
    CartRepository, MenuRepository, OrderRepository, PromoRepository,
    ChatRepository, FAQRepository, ExperimentRepository
)
from models.cart import NewCartItem
from services.cart_service import CartService
from services.chatbot_service import ChatbotService
from services.delivery_service import is_within_delivery_radius, is_restaurant_open, format_time
from services.experiment_service import ExperimentService
from services.menu_service import MenuService
from services.order_service import OrderService
from services.promo_service import PromoService, format_discount, get_promo_code_status


class EatLocalMarketplace:
    # 메인 클래스 - 모든 서비스를 조율하는 중앙 관리자

    def __init__(self, db_path: str = DB_PATH, clock=None, create_schema: bool = True):
        # 데이터베이스 연결 초기화
        self.db_connection = DatabaseConnection(db_path, create_schema=create_schema)
        self.clock = clock

        # 리포지토리 레이어 초기화 (데이터 접근 계층)
        self.cart_repo = CartRepository(self.db_connection)
        self.menu_repo = MenuRepository(self.db_connection)
        self.order_repo = OrderRepository(self.db_connection)
        self.promo_repo = PromoRepository(self.db_connection)
        self.chat_repo = ChatRepository(self.db_connection)
        self.faq_repo = FAQRepository(self.db_connection)
        self.experiment_repo = ExperimentRepository(self.db_connection)

        # 서비스 레이어 초기화 (비즈니스 로직 계층)
        clock_kwargs = {"clock": clock} if clock else {}
        self.menu_service = MenuService(self.menu_repo)
        self.promo_service = PromoService(self.promo_repo, **clock_kwargs)
        self.chatbot_service = ChatbotService(self.chat_repo, self.faq_repo, **clock_kwargs)
        self.experiment_service = ExperimentService(self.experiment_repo, **clock_kwargs)
        self.order_service = OrderService(self.order_repo, self.promo_service, **clock_kwargs)

    def get_cart(self, session_id: str) -> CartService:
        # 세션별 장바구니 (저장소에서 복원)
        if self.clock:
            return CartService(self.cart_repo, session_id, clock=self.clock)
        return CartService(self.cart_repo, session_id)

    # === 메뉴 관련 메서드들 ===
    def find_menu_items(self, query: str, restaurant_id: Optional[str] = None,
                        limit: int = 5) -> Dict[str, Any]:
        return self.menu_service.find_menu_items(query, restaurant_id, limit)

    # === 장바구니 관련 메서드들 ===
    def add_to_cart(self, session_id: str, menu_item_id: str,
                    special_instructions: Optional[str] = None) -> Dict[str, Any]:
        # 메뉴 ID로 장바구니에 추가
        item = self.menu_service.get_menu_item(menu_item_id)
        if not item:
            return {"success": False, "error": "Menu item not found"}
        return self.get_cart(session_id).add_item(item.to_cart_item(special_instructions))

    def add_item_to_cart(self, session_id: str, item: NewCartItem) -> Dict[str, Any]:
        return self.get_cart(session_id).add_item(item)

    def remove_from_cart(self, session_id: str, menu_item_id: str) -> Dict[str, Any]:
        return self.get_cart(session_id).remove_item(menu_item_id)

    def update_cart_quantity(self, session_id: str, menu_item_id: str, quantity: int) -> Dict[str, Any]:
        return self.get_cart(session_id).update_quantity(menu_item_id, quantity)

    def update_cart_instructions(self, session_id: str, menu_item_id: str,
                                 instructions: str) -> Dict[str, Any]:
        return self.get_cart(session_id).update_instructions(menu_item_id, instructions)

    def confirm_restaurant_change(self, session_id: str) -> Dict[str, Any]:
        return self.get_cart(session_id).confirm_restaurant_change()

    def cancel_restaurant_change(self, session_id: str) -> Dict[str, Any]:
        return self.get_cart(session_id).cancel_restaurant_change()

    def clear_cart(self, session_id: str) -> Dict[str, Any]:
        return self.get_cart(session_id).clear_cart()

    def get_cart_details(self, session_id: str, delivery_fee=Decimal("0")) -> Dict[str, Any]:
        return self.get_cart(session_id).get_cart_details(delivery_fee)

    # === 프로모션 관련 메서드들 ===
    def apply_promo_code(self, session_id: str, code: str, user_id: Optional[str] = None,
                         service_type: str = "food") -> Dict[str, Any]:
        # 현재 장바구니 소계 기준으로 코드 검증
        cart = self.get_cart(session_id)
        result = self.promo_service.validate_promo_code(
            code, cart.get_subtotal(), user_id=user_id,
            restaurant_id=cart.state.restaurant_id, service_type=service_type
        )
        response = result.to_dict()
        if result.valid:
            response["label"] = format_discount(result.promo_code)
        return response

    def get_available_promo_codes(self, user_id: Optional[str] = None,
                                  restaurant_id: Optional[str] = None) -> List[Dict[str, Any]]:
        return [
            dict(promo.to_dict(), label=format_discount(promo))
            for promo in self.promo_service.get_available_promo_codes(user_id, restaurant_id)
        ]

    def get_promo_code_history(self, user_id: Optional[str]) -> List[Dict[str, Any]]:
        return self.promo_service.get_promo_code_history(user_id)

    # === 프로모션 관리자 기능 ===
    def create_promo_code(self, data: Dict[str, Any], created_by: Optional[str]) -> Dict[str, Any]:
        return self.promo_service.create_promo_code(data, created_by)

    def update_promo_code(self, promo_code_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        return self.promo_service.update_promo_code(promo_code_id, updates)

    def deactivate_promo_code(self, promo_code_id: str) -> Dict[str, Any]:
        return self.promo_service.deactivate_promo_code(promo_code_id)

    def list_promo_codes(self) -> List[Dict[str, Any]]:
        # 관리 화면용: 현재 상태와 표시용 할인 문구 포함
        now = self.promo_service.clock()
        return [
            dict(promo.to_dict(), status=get_promo_code_status(promo, now).value,
                 label=format_discount(promo))
            for promo in self.promo_service.list_promo_codes()
        ]

    # === 배달 가능 여부 ===
    def check_delivery(self, restaurant_lat: float, restaurant_lon: float,
                       address_lat: float, address_lon: float,
                       opening_time: Optional[str] = None, closing_time: Optional[str] = None,
                       max_radius: float = MAX_DELIVERY_RADIUS) -> Dict[str, Any]:
        # 배달 반경 확인, 영업시간이 주어지면 영업 여부도 함께 확인
        radius = is_within_delivery_radius(restaurant_lat, restaurant_lon,
                                           address_lat, address_lon, max_radius)
        result = {
            "success": True,
            "is_within_radius": radius["is_within_radius"],
            "distance": radius["distance"],
            "max_radius": max_radius,
            "is_open": None,
            "hours": None
        }

        if opening_time and closing_time:
            now = self.clock() if self.clock else None
            result["is_open"] = is_restaurant_open(opening_time, closing_time, now)
            result["hours"] = f"{format_time(opening_time)} - {format_time(closing_time)}"

        if not result["is_within_radius"]:
            result["can_deliver"] = False
            result["message"] = (
                f"This address is {radius['distance']} km away. "
                f"We only deliver within {max_radius} km."
            )
        elif result["is_open"] is False:
            result["can_deliver"] = False
            result["message"] = f"The restaurant is closed right now. Opening hours: {result['hours']}."
        else:
            result["can_deliver"] = True
            result["message"] = f"Delivery available ({radius['distance']} km away)."
        return result

    # === 주문 관련 메서드들 ===
    def place_order(self, session_id: str, user_id: Optional[str] = None,
                    promo_code: Optional[str] = None, delivery_fee=DEFAULT_DELIVERY_FEE,
                    fulfillment: str = "delivery") -> Dict[str, Any]:
        return self.order_service.place_order(
            session_id, self.get_cart(session_id), user_id=user_id,
            promo_code=promo_code, delivery_fee=delivery_fee, fulfillment=fulfillment
        )

    def get_order_details(self, order_id: str) -> Dict[str, Any]:
        return self.order_service.get_order_details(order_id)

    # === 고객지원 챗봇 ===
    def ask_support(self, message: str) -> Dict[str, Any]:
        # 세션 없이 즉시 응답 (콘솔/비로그인 사용자용)
        return self.chatbot_service.build_response(message).to_dict()

    def send_support_message(self, user_id: str, message: str) -> Dict[str, Any]:
        session = self.chatbot_service.get_or_create_session(user_id)
        if not session:
            return {"success": False, "error": "Support chat is not available right now."}
        result = self.chatbot_service.send_message(session.id, message)
        result["session_id"] = session.id
        return result

    def close_support_session(self, session_id: str, rating: Optional[int] = None) -> Dict[str, Any]:
        return self.chatbot_service.close_session(session_id, rating)

    def rate_faq(self, faq_id: str, helpful: bool) -> Dict[str, Any]:
        return self.chatbot_service.rate_faq(faq_id, helpful)

    # === A/B 실험 ===
    def assign_variant(self, experiment_id: str, user_id: str) -> Dict[str, Any]:
        return self.experiment_service.assign_variant(experiment_id, user_id)

    def track_conversion(self, assignment_id: str,
                         conversion_value: Optional[float] = None) -> Dict[str, Any]:
        return self.experiment_service.track_conversion(assignment_id, conversion_value)
