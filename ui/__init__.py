"""
UI package for EatLocal
Contains user interface implementations
"""

from .simple_ui import SimpleOrderUI

__all__ = [
    'SimpleOrderUI'
]
