"""
Управление конкурентностью.
"""

from .key_lock import KeyedLockManager

__all__ = ["KeyedLockManager"]
