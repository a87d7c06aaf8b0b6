"""
                        Services Module

Business logic on top of the storage backends.

Services:
    - storage: json / database backends for the menu, order and history stores
    - menu: menu item CRUD
    - orders: order lifecycle (create, list, complete, history)
    - excel_manager: thread-safe Excel ledger of completed orders
"""

from fastapi import Depends

from cafe_orders.core.config import get_settings
from cafe_orders.services.menu import MenuService
from cafe_orders.services.orders import OrderService
from cafe_orders.services.storage import BaseStorage, get_storage


def get_menu_service(storage: BaseStorage = Depends(get_storage)) -> MenuService:
    """FastAPI dependency returning a MenuService over the configured storage."""
    return MenuService(storage)


def get_order_service(storage: BaseStorage = Depends(get_storage)) -> OrderService:
    """
    FastAPI dependency returning an OrderService.

    Completed orders are queued for the Excel ledger when
    EXCEL_EXPORT_ENABLED is set.
    """
    exporter = None
    if get_settings().excel_export_enabled:
        from cafe_orders.tasks import queue_ledger_export
        exporter = queue_ledger_export
    return OrderService(storage, exporter=exporter)


__all__ = [
    "MenuService",
    "OrderService",
    "get_menu_service",
    "get_order_service",
]
