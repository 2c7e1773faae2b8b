"""
Database connection management
"""
import sqlite3
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS Cart_Storage (
    storage_key TEXT PRIMARY KEY,
    version INTEGER NOT NULL,
    payload TEXT NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS Menu_Items (
    menu_item_id TEXT PRIMARY KEY,
    restaurant_id TEXT NOT NULL,
    restaurant_name TEXT NOT NULL,
    name TEXT NOT NULL,
    price TEXT NOT NULL,
    description TEXT,
    image_url TEXT,
    is_available INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS Orders (
    order_id TEXT PRIMARY KEY,
    order_number TEXT NOT NULL UNIQUE,
    session_id TEXT NOT NULL,
    user_id TEXT,
    restaurant_id TEXT NOT NULL,
    restaurant_name TEXT NOT NULL,
    fulfillment TEXT NOT NULL,
    subtotal TEXT NOT NULL,
    service_fee TEXT NOT NULL,
    tax TEXT NOT NULL,
    delivery_fee TEXT NOT NULL,
    discount_amount TEXT NOT NULL,
    total TEXT NOT NULL,
    pickup_code TEXT NOT NULL,
    status TEXT DEFAULT 'pending',
    estimated_time INTEGER,
    promo_code_id TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS Order_Items (
    order_item_id TEXT PRIMARY KEY,
    order_id TEXT NOT NULL,
    menu_item_id TEXT NOT NULL,
    name TEXT NOT NULL,
    quantity INTEGER NOT NULL,
    unit_price TEXT NOT NULL,
    line_total TEXT NOT NULL,
    special_instructions TEXT,
    line_index INTEGER NOT NULL,
    FOREIGN KEY(order_id) REFERENCES Orders(order_id)
);

CREATE TABLE IF NOT EXISTS Promo_Codes (
    id TEXT PRIMARY KEY,
    code TEXT NOT NULL UNIQUE,
    description TEXT,
    discount_type TEXT NOT NULL,
    discount_value TEXT NOT NULL,
    min_order_amount TEXT,
    max_discount_amount TEXT,
    start_date TEXT NOT NULL,
    end_date TEXT NOT NULL,
    usage_limit INTEGER,
    usage_count INTEGER NOT NULL DEFAULT 0,
    per_user_limit INTEGER,
    restaurant_ids TEXT,
    applicable_to TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_by TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP
);

CREATE TABLE IF NOT EXISTS Promo_Code_Usage (
    usage_id TEXT PRIMARY KEY,
    promo_code_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    order_id TEXT NOT NULL,
    discount_applied TEXT NOT NULL,
    used_at TEXT NOT NULL,
    FOREIGN KEY(promo_code_id) REFERENCES Promo_Codes(id)
);

CREATE TABLE IF NOT EXISTS Chat_Sessions (
    id TEXT PRIMARY KEY,
    user_id TEXT,
    session_type TEXT NOT NULL DEFAULT 'support',
    status TEXT NOT NULL DEFAULT 'active',
    escalated_to TEXT,
    order_id TEXT,
    satisfaction_rating INTEGER,
    resolution_time_seconds INTEGER,
    created_at TEXT NOT NULL,
    closed_at TEXT
);

CREATE TABLE IF NOT EXISTS Chat_Messages (
    id TEXT PRIMARY KEY,
    session_id TEXT NOT NULL,
    sender_type TEXT NOT NULL,
    content TEXT NOT NULL,
    message_type TEXT NOT NULL DEFAULT 'text',
    metadata TEXT,
    intent_detected TEXT,
    confidence_score REAL,
    created_at TEXT NOT NULL,
    seq INTEGER NOT NULL,
    FOREIGN KEY(session_id) REFERENCES Chat_Sessions(id)
);

CREATE TABLE IF NOT EXISTS FAQ_Entries (
    id TEXT PRIMARY KEY,
    category TEXT NOT NULL,
    question TEXT NOT NULL,
    answer TEXT NOT NULL,
    keywords TEXT,
    helpful_count INTEGER NOT NULL DEFAULT 0,
    not_helpful_count INTEGER NOT NULL DEFAULT 0,
    is_active INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS Experiments (
    experiment_id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    variants TEXT NOT NULL,
    is_active INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS Experiment_Assignments (
    assignment_id TEXT PRIMARY KEY,
    experiment_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    variant TEXT NOT NULL,
    converted INTEGER NOT NULL DEFAULT 0,
    conversion_value REAL,
    assigned_at TEXT NOT NULL,
    UNIQUE(experiment_id, user_id),
    FOREIGN KEY(experiment_id) REFERENCES Experiments(experiment_id)
);
"""


def is_missing_relation(error: Exception) -> bool:
    # 테이블이 아직 생성되지 않은 경우 (마이그레이션 미적용)
    return isinstance(error, sqlite3.OperationalError) and "no such table" in str(error)


class DatabaseConnection:
    # 데이터베이스 연결을 관리하는 클래스

    def __init__(self, db_path: str = "data/eatlocal.db", create_schema: bool = True):
        # 데이터베이스 파일 경로 설정 및 초기화
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        if create_schema:
            self.init_database()

    def init_database(self):
        # 필요한 테이블 생성
        with self.get_connection() as conn:
            conn.executescript(SCHEMA)
            conn.commit()
        logger.debug("Schema ready at %s", self.db_path)

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        # 컨텍스트 매니저를 사용하여 데이터베이스 연결 자동 관리
        conn = sqlite3.connect(self.db_path)
        try:
            yield conn
        finally:
            conn.close()
