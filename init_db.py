#!/usr/bin/env python3
"""
데이터베이스 초기화 스크립트
데모용 메뉴, 프로모션 코드, FAQ, 실험 데이터를 생성합니다.
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import config
from database.connection import DatabaseConnection
from database.repository import MenuRepository, PromoRepository, FAQRepository, ExperimentRepository
from models.chat import FAQEntry
from models.experiment import Experiment, Variant
from models.menu import MenuItem
from models.promo import PromoCode, DiscountType

MENU = [
    MenuItem("m-bunny", "r-durban", "Durban Spice House", "Bunny Chow", Decimal("89.90"),
             "Quarter loaf filled with mutton curry"),
    MenuItem("m-samoosa", "r-durban", "Durban Spice House", "Samoosas (6)", Decimal("45.00"),
             "Beef or vegetable samoosas"),
    MenuItem("m-peri", "r-peri", "Peri-Peri Grill", "Peri-Peri Chicken", Decimal("119.99"),
             "Half flame-grilled chicken"),
    MenuItem("m-chips", "r-peri", "Peri-Peri Grill", "Slap Chips", Decimal("35.50"),
             "Soft vinegar chips"),
]

FAQ = [
    FAQEntry("faq-hours", "support", "What are your support hours?",
             "Our support team is available Mon-Sun, 8am-10pm.",
             ["hours", "open", "available"]),
    FAQEntry("faq-fees", "payment", "What is the service fee?",
             "A 4.5% service fee is added to the food subtotal at checkout.",
             ["service fee", "fee", "charges"]),
    FAQEntry("faq-radius", "orders", "How far do you deliver?",
             "Restaurants deliver within a 10 km radius of their kitchen.",
             ["far", "radius", "distance", "km"]),
]


def init_database(db_path: str = config.DB_PATH) -> bool:
    """Create schema and load demo data"""
    try:
        db = DatabaseConnection(db_path)
        now = datetime.now(timezone.utc)

        menu_repo = MenuRepository(db)
        for item in MENU:
            menu_repo.add_menu_item(item)

        promo_repo = PromoRepository(db)
        if not promo_repo.get_active_by_code("WELCOME10"):
            promo_repo.create_promo_code(PromoCode(
                id="promo-welcome10",
                code="WELCOME10",
                description="10% off your first orders",
                discount_type=DiscountType.PERCENTAGE,
                discount_value=Decimal("10"),
                start_date=now - timedelta(days=1),
                end_date=now + timedelta(days=90),
                min_order_amount=Decimal("100"),
                max_discount_amount=Decimal("50"),
                per_user_limit=1,
                applicable_to="food"
            ))

        faq_repo = FAQRepository(db)
        for entry in FAQ:
            faq_repo.add_entry(entry)

        ExperimentRepository(db).create_experiment(Experiment(
            experiment_id="checkout-button",
            name="Checkout button copy",
            variants=[Variant("control", 50), Variant("pay_now", 50)]
        ))

        print("✅ 데이터베이스 초기화 완료!")
        print(f"📊 Menu_Items: {len(MENU)}개 메뉴")
        print(f"📊 FAQ_Entries: {len(FAQ)}개 항목")
        return True

    except Exception as e:
        print(f"❌ 데이터베이스 초기화 실패: {str(e)}")
        return False


if __name__ == "__main__":
    print("=== EatLocal 데이터베이스 초기화 ===")
    if init_database():
        print("\n이제 main.py 또는 app.py를 실행할 수 있습니다!")
    else:
        print("\n초기화에 실패했습니다. 데이터베이스 경로를 확인해주세요.")
