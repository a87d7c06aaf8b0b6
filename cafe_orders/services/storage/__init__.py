"""
Storage Backend Factory

Provides a single entry point for obtaining the storage backend.
The rest of the application only sees BaseStorage.

Usage:
    from cafe_orders.services.storage import get_storage

    storage = get_storage()
    items = await storage.list_menu_items()

Backend Switching:
    - STORAGE_BACKEND=json → JsonFileStorage (menu.json, orders.json, orderhistory.json)
    - STORAGE_BACKEND=database → SqlStorage (DATABASE_URL)

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from functools import lru_cache

from cafe_orders.core.config import StorageBackend, get_settings
from cafe_orders.services.storage.base import BaseStorage
from cafe_orders.services.storage.json_file import JsonFileStorage
from cafe_orders.services.storage.sql import SqlStorage

logger = logging.getLogger(__name__)


@lru_cache()
def get_storage() -> BaseStorage:
    """
    Get the configured storage backend.

    The instance is cached so every request shares the same locks
    (json) or connection pool (database).

    Returns:
        BaseStorage: Configured storage backend
    """
    settings = get_settings()

    if settings.storage_backend == StorageBackend.DATABASE:
        logger.info("Storage: Using SqlStorage")
        return SqlStorage(settings.database_url, echo=settings.database_echo)

    logger.info(f"Storage: Using JsonFileStorage ({settings.data_directory})")
    return JsonFileStorage(
        settings.data_directory,
        lock_timeout=settings.file_lock_timeout,
    )


def reset_storage() -> None:
    """
    Clear the cached storage backend.

    The next call to get_storage() builds a new instance from the
    current settings.
    """
    get_storage.cache_clear()
    logger.debug("Storage cache cleared")


__all__ = [
    "get_storage",
    "reset_storage",
    "BaseStorage",
    "JsonFileStorage",
    "SqlStorage",
]
