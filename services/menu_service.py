"""
Menu service - handles menu search and retrieval logic
"""
from typing import Dict, Any, Optional
from difflib import SequenceMatcher

from models.menu import MenuItem
from database.repository import MenuRepository


class MenuService:
    # 메뉴 관련 비즈니스 로직을 처리하는 서비스 클래스

    def __init__(self, menu_repository: MenuRepository):
        # MenuRepository 인스턴스를 주입받아 데이터 접근 계층과 연결
        self.menu_repo = menu_repository

    def similarity(self, a: str, b: str) -> float:
        # 두 문자열 간의 유사도 점수를 계산 (0.0~1.0 범위)
        return SequenceMatcher(None, a.lower(), b.lower()).ratio()

    def find_menu_items(self, query: str, restaurant_id: Optional[str] = None,
                        limit: int = 5) -> Dict[str, Any]:
        # 검색어와 일치하는 메뉴들을 유사도 점수와 함께 반환
        try:
            items = self.menu_repo.find_menu_items(restaurant_id)

            matches = []
            for item in items:
                # 메뉴명과 설명 중 더 높은 점수를 사용
                name_score = self.similarity(query, item.name)
                desc_score = self.similarity(query, item.description or "")
                match_score = max(name_score, desc_score)

                # 임계값 0.3 초과인 경우만 결과에 포함
                if match_score > 0.3:
                    item.match_score = round(match_score, 2)
                    matches.append(item)

            matches.sort(key=lambda x: x.match_score, reverse=True)
            matches = matches[:limit]

            return {
                "success": True,
                "matches": [match.to_dict() for match in matches],
                "total_found": len(matches)
            }

        except Exception as e:
            return {
                "success": False,
                "error": str(e),
                "matches": [],
                "total_found": 0
            }

    def get_menu_item(self, menu_item_id: str) -> Optional[MenuItem]:
        # 메뉴 ID로 특정 메뉴 조회 (주문 불가 메뉴는 제외)
        item = self.menu_repo.get_menu_item(menu_item_id)
        if item and not item.is_available:
            return None
        return item
