"""
Keys module - key cache refreshing and the lock that guards it.
"""

from .rwlock import ReadWriteLock
from .refresher import KeyRefresher, RefreshReport

__all__ = ["ReadWriteLock", "KeyRefresher", "RefreshReport"]
