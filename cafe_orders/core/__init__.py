"""
Core module initialization.
Exports configuration, logging utilities and the error taxonomy.
"""

from cafe_orders.core.config import get_settings, Settings, EnvironmentMode, StorageBackend
from cafe_orders.core.exceptions import (
    CafeOrdersError,
    NotFoundError,
    StorageError,
    ValidationError,
)

__all__ = [
    "get_settings",
    "Settings",
    "EnvironmentMode",
    "StorageBackend",
    "CafeOrdersError",
    "NotFoundError",
    "StorageError",
    "ValidationError",
]
