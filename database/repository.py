"""
Database repository classes
"""
import sqlite3
import json
import logging
from typing import List, Optional, Dict, Any

from models.cart import parse_decimal
from models.chat import ChatSession, ChatMessage, FAQEntry, SessionStatus, SenderType, MessageType
from models.errors import RowValidationError
from models.experiment import Experiment, ExperimentAssignment, Variant
from models.menu import MenuItem
from models.order import Order, OrderItem
from models.promo import PromoCode
from .connection import DatabaseConnection, is_missing_relation

logger = logging.getLogger(__name__)


def _rows_as_dicts(cursor: sqlite3.Cursor) -> List[Dict[str, Any]]:
    columns = [col[0] for col in cursor.description]
    return [dict(zip(columns, row)) for row in cursor.fetchall()]


def _load_json(entity: str, key: str, raw: Optional[str], default):
    if raw is None:
        return default
    try:
        return json.loads(raw)
    except ValueError:
        raise RowValidationError(entity, key, raw)


class CartRepository:
    # 장바구니 영속화 계층 (버전 태그가 붙은 키-값 저장소)

    def __init__(self, db_connection: DatabaseConnection):
        # DatabaseConnection 인스턴스 주입
        self.db = db_connection

    def load(self, storage_key: str, version: int) -> Optional[Dict[str, Any]]:
        # 저장된 장바구니 조회, 버전이 다르거나 깨진 데이터는 폐기
        with self.db.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT version, payload FROM Cart_Storage WHERE storage_key = ?",
                (storage_key,)
            )
            row = cursor.fetchone()

        if not row:
            return None

        stored_version, payload = row
        if stored_version != version:
            logger.info("Discarding cart %s stored with version %s (current %s)",
                        storage_key, stored_version, version)
            self.delete(storage_key)
            return None

        try:
            data = json.loads(payload)
        except ValueError:
            logger.warning("Discarding undecodable cart payload for %s", storage_key)
            self.delete(storage_key)
            return None

        return data if isinstance(data, dict) else None

    def save(self, storage_key: str, version: int, payload: Dict[str, Any]) -> bool:
        # 장바구니 전체를 JSON 문자열로 저장 (덮어쓰기)
        with self.db.get_connection() as conn:
            try:
                conn.execute("""
                INSERT INTO Cart_Storage (storage_key, version, payload, updated_at)
                VALUES (?, ?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(storage_key) DO UPDATE SET
                    version = excluded.version,
                    payload = excluded.payload,
                    updated_at = excluded.updated_at
                """, (storage_key, version, json.dumps(payload)))
                conn.commit()
                return True
            except sqlite3.Error:
                logger.exception("Failed to persist cart %s", storage_key)
                return False

    def delete(self, storage_key: str) -> bool:
        # 저장된 장바구니 삭제
        with self.db.get_connection() as conn:
            try:
                conn.execute("DELETE FROM Cart_Storage WHERE storage_key = ?", (storage_key,))
                conn.commit()
                return True
            except sqlite3.Error:
                logger.exception("Failed to delete cart %s", storage_key)
                return False


class MenuRepository:
    # 메뉴 데이터 접근 계층

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection

    @staticmethod
    def _to_menu_item(row) -> MenuItem:
        return MenuItem(
            menu_item_id=row[0],
            restaurant_id=row[1],
            restaurant_name=row[2],
            name=row[3],
            price=parse_decimal("MenuItem", "price", row[4]),
            description=row[5],
            image_url=row[6],
            is_available=bool(row[7])
        )

    def find_menu_items(self, restaurant_id: Optional[str] = None) -> List[MenuItem]:
        # 주문 가능한 메뉴만 조회 (레스토랑 필터 선택)
        with self.db.get_connection() as conn:
            cursor = conn.cursor()

            sql = """
            SELECT menu_item_id, restaurant_id, restaurant_name, name, price,
                   description, image_url, is_available
            FROM Menu_Items
            WHERE is_available = 1
            """
            params = []

            if restaurant_id:
                sql += " AND restaurant_id = ?"
                params.append(restaurant_id)

            cursor.execute(sql, params)
            return [self._to_menu_item(row) for row in cursor.fetchall()]

    def get_menu_item(self, menu_item_id: str) -> Optional[MenuItem]:
        # 메뉴 ID로 상세 정보 조회
        with self.db.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
            SELECT menu_item_id, restaurant_id, restaurant_name, name, price,
                   description, image_url, is_available
            FROM Menu_Items WHERE menu_item_id = ?
            """, (menu_item_id,))

            result = cursor.fetchone()
            return self._to_menu_item(result) if result else None

    def add_menu_item(self, item: MenuItem) -> bool:
        with self.db.get_connection() as conn:
            try:
                conn.execute("""
                INSERT OR REPLACE INTO Menu_Items (
                    menu_item_id, restaurant_id, restaurant_name, name, price,
                    description, image_url, is_available
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    item.menu_item_id, item.restaurant_id, item.restaurant_name, item.name,
                    str(item.price), item.description, item.image_url, int(item.is_available)
                ))
                conn.commit()
                return True
            except sqlite3.Error:
                logger.exception("Failed to save menu item %s", item.menu_item_id)
                return False


class OrderRepository:
    # 주문 데이터 접근 계층 (주문 생성 및 조회)

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection

    def create_order(self, order: Order, items: List[OrderItem]) -> bool:
        # 주문과 주문 아이템을 하나의 트랜잭션으로 저장
        with self.db.get_connection() as conn:
            cursor = conn.cursor()

            try:
                cursor.execute("""
                INSERT INTO Orders (
                    order_id, order_number, session_id, user_id, restaurant_id, restaurant_name,
                    fulfillment, subtotal, service_fee, tax, delivery_fee, discount_amount, total,
                    pickup_code, status, estimated_time, promo_code_id
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    order.order_id, order.order_number, order.session_id, order.user_id,
                    order.restaurant_id, order.restaurant_name, order.fulfillment.value,
                    str(order.subtotal), str(order.service_fee), str(order.tax),
                    str(order.delivery_fee), str(order.discount_amount), str(order.total),
                    order.pickup_code, order.status.value, order.estimated_time, order.promo_code_id
                ))

                for index, item in enumerate(items):
                    cursor.execute("""
                    INSERT INTO Order_Items (
                        order_item_id, order_id, menu_item_id, name, quantity,
                        unit_price, line_total, special_instructions, line_index
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """, (
                        item.order_item_id, item.order_id, item.menu_item_id, item.name,
                        item.quantity, str(item.unit_price), str(item.line_total),
                        item.special_instructions, index
                    ))

                conn.commit()
                return True

            except sqlite3.Error:
                conn.rollback()
                logger.exception("Failed to create order %s", order.order_number)
                return False

    def get_order_details(self, order_id: str) -> Optional[Dict[str, Any]]:
        # 주문 상세 정보 조회 (주문정보 + 주문아이템들)
        with self.db.get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("SELECT * FROM Orders WHERE order_id = ?", (order_id,))
            orders = _rows_as_dicts(cursor)
            if not orders:
                return None

            cursor.execute("""
            SELECT order_item_id, menu_item_id, name, quantity, unit_price,
                   line_total, special_instructions
            FROM Order_Items WHERE order_id = ?
            ORDER BY line_index
            """, (order_id,))
            order_items = _rows_as_dicts(cursor)

            return {
                "order_info": orders[0],
                "order_items": order_items
            }


class PromoRepository:
    # 프로모션 코드 데이터 접근 계층

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection

    @staticmethod
    def _to_promo(row: Dict[str, Any]) -> PromoCode:
        row = dict(row)
        row["restaurant_ids"] = _load_json("PromoCode", "restaurant_ids", row.get("restaurant_ids"), [])
        row.pop("updated_at", None)
        return PromoCode.from_dict(row)

    def get_active_by_code(self, code: str) -> Optional[PromoCode]:
        # 활성화된 코드만 조회
        with self.db.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Promo_Codes WHERE code = ? AND is_active = 1", (code,))
            rows = _rows_as_dicts(cursor)
        return self._to_promo(rows[0]) if rows else None

    def get_by_id(self, promo_code_id: str) -> Optional[PromoCode]:
        with self.db.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Promo_Codes WHERE id = ?", (promo_code_id,))
            rows = _rows_as_dicts(cursor)
        return self._to_promo(rows[0]) if rows else None

    def list_promo_codes(self, active_only: bool = False) -> List[PromoCode]:
        # 전체 또는 활성 코드 목록 (최신순)
        sql = "SELECT * FROM Promo_Codes"
        if active_only:
            sql += " WHERE is_active = 1"
        sql += " ORDER BY created_at DESC"

        try:
            with self.db.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(sql)
                rows = _rows_as_dicts(cursor)
        except sqlite3.OperationalError as e:
            if is_missing_relation(e):
                logger.warning("Promo_Codes table is missing; treating as empty")
                return []
            raise

        return [self._to_promo(row) for row in rows]

    def count_user_usage(self, promo_code_id: str, user_id: str) -> int:
        with self.db.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
            SELECT COUNT(*) FROM Promo_Code_Usage
            WHERE promo_code_id = ? AND user_id = ?
            """, (promo_code_id, user_id))
            return cursor.fetchone()[0]

    def get_user_usage_counts(self, user_id: str) -> Dict[str, int]:
        # 사용자별 코드 사용 횟수 {promo_code_id: count}
        with self.db.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
            SELECT promo_code_id, COUNT(*) FROM Promo_Code_Usage
            WHERE user_id = ? GROUP BY promo_code_id
            """, (user_id,))
            return {row[0]: row[1] for row in cursor.fetchall()}

    def record_usage(self, usage_id: str, promo_code_id: str, user_id: str, order_id: str,
                     discount_applied: str, used_at: str) -> bool:
        # 사용 기록 추가 및 사용 횟수 증가
        with self.db.get_connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute("""
                INSERT INTO Promo_Code_Usage (
                    usage_id, promo_code_id, user_id, order_id, discount_applied, used_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                """, (usage_id, promo_code_id, user_id, order_id, discount_applied, used_at))
                cursor.execute(
                    "UPDATE Promo_Codes SET usage_count = usage_count + 1 WHERE id = ?",
                    (promo_code_id,)
                )
                conn.commit()
                return True
            except sqlite3.Error:
                conn.rollback()
                logger.exception("Failed to record usage of promo %s", promo_code_id)
                return False

    def get_usage_history(self, user_id: str, limit: int = 20) -> List[Dict[str, Any]]:
        # 사용 이력과 코드 정보 조인
        with self.db.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
            SELECT u.usage_id, u.promo_code_id, u.order_id, u.discount_applied, u.used_at,
                   p.code, p.description, p.discount_type, p.discount_value
            FROM Promo_Code_Usage u
            JOIN Promo_Codes p ON u.promo_code_id = p.id
            WHERE u.user_id = ?
            ORDER BY u.used_at DESC
            LIMIT ?
            """, (user_id, limit))
            return _rows_as_dicts(cursor)

    def create_promo_code(self, promo: PromoCode) -> bool:
        with self.db.get_connection() as conn:
            try:
                conn.execute("""
                INSERT INTO Promo_Codes (
                    id, code, description, discount_type, discount_value, min_order_amount,
                    max_discount_amount, start_date, end_date, usage_limit, usage_count,
                    per_user_limit, restaurant_ids, applicable_to, is_active, created_by
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    promo.id, promo.code, promo.description, promo.discount_type.value,
                    str(promo.discount_value),
                    str(promo.min_order_amount) if promo.min_order_amount is not None else None,
                    str(promo.max_discount_amount) if promo.max_discount_amount is not None else None,
                    promo.start_date.isoformat(), promo.end_date.isoformat(),
                    promo.usage_limit, promo.usage_count, promo.per_user_limit,
                    json.dumps(promo.restaurant_ids) if promo.restaurant_ids else None,
                    promo.applicable_to, int(promo.is_active), promo.created_by
                ))
                conn.commit()
                return True
            except sqlite3.Error:
                logger.exception("Failed to create promo code %s", promo.code)
                return False

    def update_promo_code(self, promo_code_id: str, updates: Dict[str, Any]) -> bool:
        # 허용된 컬럼만 갱신 (값은 미리 직렬화되어 있어야 함)
        if not updates:
            return False
        columns = ", ".join(f"{column} = ?" for column in updates)
        with self.db.get_connection() as conn:
            try:
                cursor = conn.execute(
                    f"UPDATE Promo_Codes SET {columns}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (*updates.values(), promo_code_id)
                )
                conn.commit()
                return cursor.rowcount > 0
            except sqlite3.Error:
                logger.exception("Failed to update promo code %s", promo_code_id)
                return False


class ChatRepository:
    # 지원 채팅 세션/메시지 데이터 접근 계층

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection

    @staticmethod
    def _to_session(row: Dict[str, Any]) -> ChatSession:
        try:
            status = SessionStatus(row["status"])
        except ValueError:
            raise RowValidationError("ChatSession", "status", row["status"])
        return ChatSession(
            id=row["id"],
            user_id=row["user_id"],
            session_type=row["session_type"],
            status=status,
            created_at=row["created_at"],
            escalated_to=row["escalated_to"],
            order_id=row["order_id"],
            satisfaction_rating=row["satisfaction_rating"],
            resolution_time_seconds=row["resolution_time_seconds"],
            closed_at=row["closed_at"]
        )

    def get_active_session(self, user_id: str) -> Optional[ChatSession]:
        # 사용자의 가장 최근 활성 세션 (테이블이 없으면 None)
        try:
            with self.db.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                SELECT * FROM Chat_Sessions
                WHERE user_id = ? AND status = 'active'
                ORDER BY created_at DESC LIMIT 1
                """, (user_id,))
                rows = _rows_as_dicts(cursor)
        except sqlite3.OperationalError as e:
            if is_missing_relation(e):
                logger.warning("Chat_Sessions table is missing; no session available")
                return None
            raise
        return self._to_session(rows[0]) if rows else None

    def get_session(self, session_id: str) -> Optional[ChatSession]:
        with self.db.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Chat_Sessions WHERE id = ?", (session_id,))
            rows = _rows_as_dicts(cursor)
        return self._to_session(rows[0]) if rows else None

    def create_session(self, session: ChatSession) -> bool:
        try:
            with self.db.get_connection() as conn:
                conn.execute("""
                INSERT INTO Chat_Sessions (id, user_id, session_type, status, created_at)
                VALUES (?, ?, ?, ?, ?)
                """, (session.id, session.user_id, session.session_type,
                      session.status.value, session.created_at))
                conn.commit()
                return True
        except sqlite3.Error as e:
            if is_missing_relation(e):
                logger.warning("Chat_Sessions table is missing; session not created")
            else:
                logger.exception("Failed to create chat session %s", session.id)
            return False

    def update_session(self, session_id: str, **fields) -> bool:
        # status, satisfaction_rating 등 임의 컬럼 갱신
        columns = ", ".join(f"{column} = ?" for column in fields)
        with self.db.get_connection() as conn:
            try:
                cursor = conn.execute(
                    f"UPDATE Chat_Sessions SET {columns} WHERE id = ?",
                    (*fields.values(), session_id)
                )
                conn.commit()
                return cursor.rowcount > 0
            except sqlite3.Error:
                logger.exception("Failed to update chat session %s", session_id)
                return False

    def add_message(self, message: ChatMessage) -> bool:
        with self.db.get_connection() as conn:
            try:
                conn.execute("""
                INSERT INTO Chat_Messages (
                    id, session_id, sender_type, content, message_type, metadata,
                    intent_detected, confidence_score, created_at, seq
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?,
                    (SELECT COALESCE(MAX(seq), 0) + 1 FROM Chat_Messages WHERE session_id = ?))
                """, (
                    message.id, message.session_id, message.sender_type.value, message.content,
                    message.message_type.value, json.dumps(message.metadata),
                    message.intent_detected, message.confidence_score, message.created_at,
                    message.session_id
                ))
                conn.commit()
                return True
            except sqlite3.Error:
                logger.exception("Failed to store chat message %s", message.id)
                return False

    def get_messages(self, session_id: str) -> List[ChatMessage]:
        # 세션 메시지 (작성순), 테이블이 없으면 빈 목록
        try:
            with self.db.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("""
                SELECT id, session_id, sender_type, content, message_type, metadata,
                       intent_detected, confidence_score, created_at
                FROM Chat_Messages WHERE session_id = ?
                ORDER BY seq
                """, (session_id,))
                rows = cursor.fetchall()
        except sqlite3.OperationalError as e:
            if is_missing_relation(e):
                logger.warning("Chat_Messages table is missing; treating as empty")
                return []
            raise

        messages = []
        for row in rows:
            try:
                sender_type = SenderType(row[2])
                message_type = MessageType(row[4])
            except ValueError:
                raise RowValidationError("ChatMessage", "sender_type/message_type", (row[2], row[4]))
            messages.append(ChatMessage(
                id=row[0],
                session_id=row[1],
                sender_type=sender_type,
                content=row[3],
                message_type=message_type,
                metadata=_load_json("ChatMessage", "metadata", row[5], {}),
                intent_detected=row[6],
                confidence_score=row[7],
                created_at=row[8]
            ))
        return messages


class FAQRepository:
    # FAQ 데이터 접근 계층

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection

    def list_active(self, category: Optional[str] = None) -> List[FAQEntry]:
        # 활성 FAQ (도움됨 순), 테이블이 없으면 빈 목록
        sql = """
        SELECT id, category, question, answer, keywords, helpful_count, not_helpful_count, is_active
        FROM FAQ_Entries WHERE is_active = 1
        """
        params = []
        if category:
            sql += " AND category = ?"
            params.append(category)
        sql += " ORDER BY helpful_count DESC"

        try:
            with self.db.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(sql, params)
                rows = cursor.fetchall()
        except sqlite3.OperationalError as e:
            if is_missing_relation(e):
                logger.warning("FAQ_Entries table is missing; treating as empty")
                return []
            raise

        return [
            FAQEntry(
                id=row[0],
                category=row[1],
                question=row[2],
                answer=row[3],
                keywords=_load_json("FAQEntry", "keywords", row[4], []),
                helpful_count=row[5],
                not_helpful_count=row[6],
                is_active=bool(row[7])
            )
            for row in rows
        ]

    def add_entry(self, entry: FAQEntry) -> bool:
        with self.db.get_connection() as conn:
            try:
                conn.execute("""
                INSERT OR REPLACE INTO FAQ_Entries (
                    id, category, question, answer, keywords,
                    helpful_count, not_helpful_count, is_active
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    entry.id, entry.category, entry.question, entry.answer,
                    json.dumps(entry.keywords), entry.helpful_count,
                    entry.not_helpful_count, int(entry.is_active)
                ))
                conn.commit()
                return True
            except sqlite3.Error:
                logger.exception("Failed to save FAQ entry %s", entry.id)
                return False

    def increment_counter(self, faq_id: str, helpful: bool) -> bool:
        # 도움됨/도움안됨 카운터 증가
        column = "helpful_count" if helpful else "not_helpful_count"
        with self.db.get_connection() as conn:
            try:
                cursor = conn.execute(
                    f"UPDATE FAQ_Entries SET {column} = {column} + 1 WHERE id = ?",
                    (faq_id,)
                )
                conn.commit()
                return cursor.rowcount > 0
            except sqlite3.Error:
                logger.exception("Failed to rate FAQ entry %s", faq_id)
                return False


class ExperimentRepository:
    # A/B 실험 및 배정 데이터 접근 계층

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection

    def create_experiment(self, experiment: Experiment) -> bool:
        with self.db.get_connection() as conn:
            try:
                conn.execute("""
                INSERT OR REPLACE INTO Experiments (experiment_id, name, variants, is_active)
                VALUES (?, ?, ?, ?)
                """, (
                    experiment.experiment_id, experiment.name,
                    json.dumps([{"name": v.name, "weight": v.weight} for v in experiment.variants]),
                    int(experiment.is_active)
                ))
                conn.commit()
                return True
            except sqlite3.Error:
                logger.exception("Failed to save experiment %s", experiment.experiment_id)
                return False

    def get_experiment(self, experiment_id: str) -> Optional[Experiment]:
        with self.db.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
            SELECT experiment_id, name, variants, is_active
            FROM Experiments WHERE experiment_id = ?
            """, (experiment_id,))
            row = cursor.fetchone()

        if not row:
            return None

        raw_variants = _load_json("Experiment", "variants", row[2], [])
        variants = []
        for raw in raw_variants:
            if not isinstance(raw, dict) or "name" not in raw:
                raise RowValidationError("Experiment", "variants", raw)
            weight = raw.get("weight")
            if isinstance(weight, bool) or not isinstance(weight, (int, float)) or weight < 0:
                raise RowValidationError("Experiment", "weight", weight)
            variants.append(Variant(name=raw["name"], weight=float(weight)))

        return Experiment(experiment_id=row[0], name=row[1], variants=variants, is_active=bool(row[3]))

    def get_assignment(self, experiment_id: str, user_id: str) -> Optional[ExperimentAssignment]:
        with self.db.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
            SELECT assignment_id, experiment_id, user_id, variant, converted, conversion_value, assigned_at
            FROM Experiment_Assignments WHERE experiment_id = ? AND user_id = ?
            """, (experiment_id, user_id))
            row = cursor.fetchone()

        if not row:
            return None
        return ExperimentAssignment(
            assignment_id=row[0],
            experiment_id=row[1],
            user_id=row[2],
            variant=row[3],
            converted=bool(row[4]),
            conversion_value=row[5],
            assigned_at=row[6]
        )

    def create_assignment(self, assignment: ExperimentAssignment) -> bool:
        with self.db.get_connection() as conn:
            try:
                conn.execute("""
                INSERT INTO Experiment_Assignments (
                    assignment_id, experiment_id, user_id, variant, assigned_at
                ) VALUES (?, ?, ?, ?, ?)
                """, (
                    assignment.assignment_id, assignment.experiment_id, assignment.user_id,
                    assignment.variant, assignment.assigned_at
                ))
                conn.commit()
                return True
            except sqlite3.Error:
                logger.exception("Failed to store assignment for %s", assignment.experiment_id)
                return False

    def mark_conversion(self, assignment_id: str, conversion_value: Optional[float] = None) -> bool:
        with self.db.get_connection() as conn:
            try:
                cursor = conn.execute("""
                UPDATE Experiment_Assignments SET converted = 1, conversion_value = ?
                WHERE assignment_id = ?
                """, (conversion_value, assignment_id))
                conn.commit()
                return cursor.rowcount > 0
            except sqlite3.Error:
                logger.exception("Failed to track conversion for %s", assignment_id)
                return False
