"""
Delivery helpers - distance, radius and opening hours checks
"""
import math
from datetime import datetime
from typing import Dict, Any, Optional

from config import MAX_DELIVERY_RADIUS

EARTH_RADIUS_KM = 6371


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    # 하버사인 공식, km 단위 소수 둘째 자리 반올림
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return round(EARTH_RADIUS_KM * c, 2)


def is_within_delivery_radius(restaurant_lat: float, restaurant_lon: float,
                              address_lat: float, address_lon: float,
                              max_radius: float = MAX_DELIVERY_RADIUS) -> Dict[str, Any]:
    distance = calculate_distance(restaurant_lat, restaurant_lon, address_lat, address_lon)
    return {
        "is_within_radius": distance <= max_radius,
        "distance": distance
    }


def _minutes(hhmm: str) -> int:
    hour, minute = (int(part) for part in hhmm.split(":"))
    return hour * 60 + minute


def is_restaurant_open(opening_time: str, closing_time: str, now: Optional[datetime] = None) -> bool:
    # 자정을 넘겨 영업하는 경우도 처리
    now = now or datetime.now()
    current = now.hour * 60 + now.minute
    opening = _minutes(opening_time)
    closing = _minutes(closing_time)

    if closing < opening:
        return current >= opening or current <= closing
    return opening <= current <= closing


def format_time(hhmm: str) -> str:
    # "21:05" → "9:05 PM"
    hour, minute = (int(part) for part in hhmm.split(":"))
    period = "PM" if hour >= 12 else "AM"
    display_hour = 12 if hour == 0 else hour - 12 if hour > 12 else hour
    return f"{display_hour}:{minute:02d} {period}"
