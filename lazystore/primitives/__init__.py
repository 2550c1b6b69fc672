"""
Primitive types used throughout the page store.

This module contains value types that have no dependencies on other
parts of the system, avoiding circular imports.
"""

from .page_status import PageStatus
from .store_stats import StoreStats
from .horizon import Horizon

__all__ = ["PageStatus", "StoreStats", "Horizon"]
