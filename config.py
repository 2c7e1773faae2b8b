"""
Runtime configuration and pricing constants for EatLocal
"""
import os
import logging
from datetime import timedelta
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()

# 데이터베이스 / 서버 설정
DB_PATH = os.getenv('EATLOCAL_DB_PATH', 'data/eatlocal.db')
SECRET_KEY = os.getenv('SECRET_KEY', 'your-secret-key-here')
PORT = int(os.getenv('PORT', 5000))
DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

# 가격 정책
SERVICE_FEE_RATE = Decimal("0.045")  # 4.5% settlement fee
DEFAULT_DELIVERY_FEE = Decimal("2.49")
CURRENCY_SYMBOL = "R"

# 장바구니 저장소
CART_STORAGE_KEY = "eatlocal_cart"
CART_STORAGE_VERSION = 2
CART_EXPIRY = timedelta(hours=24)

# 주문
ORDER_NUMBER_PREFIX = "ORD"
PICKUP_CODE_LENGTH = 4
DEFAULT_PREP_TIME = 15  # minutes
MAX_DELIVERY_RADIUS = 10  # km


def configure_logging(level: str = LOG_LEVEL):
    # 루트 로거 설정 (app.py, 콘솔 진입점에서 호출)
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
    )
