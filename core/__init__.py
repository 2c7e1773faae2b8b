"""
Core package for EatLocal
Contains main business logic and orchestration
"""

from .marketplace import EatLocalMarketplace

__all__ = [
    'EatLocalMarketplace'
]
