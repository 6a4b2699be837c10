"""
Фоновая очистка истекших данных.
"""

from .expiry_sweeper import ExpirySweeper

__all__ = ["ExpirySweeper"]
