"""
Database package for EatLocal
Contains database connection and repository classes
"""

from .connection import DatabaseConnection, is_missing_relation
from .repository import (
    CartRepository, MenuRepository, OrderRepository, PromoRepository,
    ChatRepository, FAQRepository, ExperimentRepository
)

__all__ = [
    'DatabaseConnection', 'is_missing_relation',
    'CartRepository', 'MenuRepository', 'OrderRepository', 'PromoRepository',
    'ChatRepository', 'FAQRepository', 'ExperimentRepository'
]
