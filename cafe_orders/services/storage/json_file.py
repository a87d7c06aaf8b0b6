"""
JSON File Storage with Concurrency Control

Persists the three stores as JSON arrays in the data directory:
    - menu.json
    - orders.json
    - orderhistory.json

Each mutation rewrites the affected documents wholesale. All access,
reads included, goes through one critical section: a process-wide
``threading.Lock`` plus a ``FileLock`` on ``store.lock`` so several
worker processes sharing the directory still serialize. Files are
written to a temp file and renamed into place.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, Optional

from filelock import FileLock, Timeout

from cafe_orders.core.exceptions import NotFoundError, StorageError
from cafe_orders.models import new_id
from cafe_orders.schemas import MenuItem, MenuItemCreate, Order, OrderStatus
from cafe_orders.services.storage.base import BaseStorage

logger = logging.getLogger(__name__)

MENU_FILE = "menu.json"
ORDERS_FILE = "orders.json"
HISTORY_FILE = "orderhistory.json"
LOCK_FILE = "store.lock"


class JsonFileStorage(BaseStorage):
    """
    File-backed storage for a single host.

    Attributes:
        data_dir: Directory holding the JSON documents
        lock_timeout: Seconds to wait for the file lock before failing
    """

    def __init__(self, data_directory: str, lock_timeout: int = 30):
        self.data_dir = Path(data_directory)
        self.lock_timeout = lock_timeout
        self._thread_lock = threading.Lock()
        self._file_lock = FileLock(str(self.data_dir / LOCK_FILE), timeout=lock_timeout)

    @property
    def provider_name(self) -> str:
        return "json"

    # =========================================================================
    # FILE HELPERS
    # =========================================================================

    @contextmanager
    def _locked(self) -> Iterator[None]:
        """Hold both locks for the duration of the block."""
        with self._thread_lock:
            try:
                self._file_lock.acquire()
            except Timeout as e:
                logger.error(f"Lock timeout on {self.data_dir / LOCK_FILE}")
                raise StorageError(f"Store lock timeout ({self.lock_timeout}s)", e) from e
            except OSError as e:
                raise StorageError(f"Cannot lock store in {self.data_dir}", e) from e
            try:
                yield
            finally:
                self._file_lock.release()

    def _path(self, name: str) -> Path:
        return self.data_dir / name

    def _read(self, name: str) -> list[dict[str, Any]]:
        path = self._path(name)
        if not path.exists():
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error reading {path}: {e}")
            raise StorageError(f"Could not read {name}", e) from e
        if not isinstance(data, list):
            raise StorageError(f"{name} does not hold a JSON array")
        return data

    def _write(self, name: str, records: list[dict[str, Any]]) -> None:
        path = self._path(name)
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.data_dir,
                prefix=f".{name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                json.dump(records, tmp, indent=2)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.error(f"Error writing {path}: {e}")
            raise StorageError(f"Could not write {name}", e) from e

    @staticmethod
    def _find(records: list[dict[str, Any]], record_id: str) -> Optional[int]:
        for index, record in enumerate(records):
            if record.get("id") == record_id:
                return index
        return None

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def _startup(self) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create data directory {self.data_dir}", e) from e
        with self._locked():
            for name in (MENU_FILE, ORDERS_FILE, HISTORY_FILE):
                if not self._path(name).exists():
                    self._write(name, [])
                    logger.info(f"Created empty store: {self._path(name)}")
                else:
                    self._read(name)

    async def startup(self) -> None:
        await asyncio.to_thread(self._startup)

    def _health_check(self) -> bool:
        try:
            with self._locked():
                for name in (MENU_FILE, ORDERS_FILE, HISTORY_FILE):
                    self._read(name)
            return os.access(self.data_dir, os.W_OK)
        except StorageError as e:
            logger.error(f"JSON storage health check failed: {e}")
            return False

    async def health_check(self) -> bool:
        return await asyncio.to_thread(self._health_check)

    # =========================================================================
    # MENU STORE
    # =========================================================================

    def _list_menu_items(self) -> list[MenuItem]:
        with self._locked():
            return [MenuItem.model_validate(r) for r in self._read(MENU_FILE)]

    async def list_menu_items(self) -> list[MenuItem]:
        return await asyncio.to_thread(self._list_menu_items)

    def _create_menu_item(self, data: MenuItemCreate) -> MenuItem:
        item = MenuItem(id=new_id(), **data.model_dump())
        with self._locked():
            menu = self._read(MENU_FILE)
            menu.append(item.model_dump(mode="json"))
            self._write(MENU_FILE, menu)
        return item

    async def create_menu_item(self, data: MenuItemCreate) -> MenuItem:
        return await asyncio.to_thread(self._create_menu_item, data)

    def _update_menu_item(self, item_id: str, changes: dict[str, Any]) -> MenuItem:
        with self._locked():
            menu = self._read(MENU_FILE)
            index = self._find(menu, item_id)
            if index is None:
                raise NotFoundError("Menu item", item_id)
            item = MenuItem.model_validate({**menu[index], **changes, "id": item_id})
            menu[index] = item.model_dump(mode="json")
            self._write(MENU_FILE, menu)
        return item

    async def update_menu_item(self, item_id: str, changes: dict[str, Any]) -> MenuItem:
        return await asyncio.to_thread(self._update_menu_item, item_id, changes)

    def _delete_menu_item(self, item_id: str) -> bool:
        with self._locked():
            menu = self._read(MENU_FILE)
            index = self._find(menu, item_id)
            if index is None:
                return False
            del menu[index]
            self._write(MENU_FILE, menu)
        return True

    async def delete_menu_item(self, item_id: str) -> bool:
        return await asyncio.to_thread(self._delete_menu_item, item_id)

    # =========================================================================
    # ORDER STORE
    # =========================================================================

    def _insert_order(self, order: Order) -> Order:
        with self._locked():
            orders = self._read(ORDERS_FILE)
            orders.append(order.to_record())
            self._write(ORDERS_FILE, orders)
        return order

    async def insert_order(self, order: Order) -> Order:
        return await asyncio.to_thread(self._insert_order, order)

    def _get_order(self, order_id: str) -> Optional[Order]:
        with self._locked():
            orders = self._read(ORDERS_FILE)
        index = self._find(orders, order_id)
        return None if index is None else Order.model_validate(orders[index])

    async def get_order(self, order_id: str) -> Optional[Order]:
        return await asyncio.to_thread(self._get_order, order_id)

    def _list_orders(self, status: OrderStatus) -> list[Order]:
        with self._locked():
            orders = self._read(ORDERS_FILE)
        return [
            Order.model_validate(r) for r in orders
            if r.get("status", OrderStatus.PENDING.value) == status.value
        ]

    async def list_orders(self, status: OrderStatus = OrderStatus.PENDING) -> list[Order]:
        return await asyncio.to_thread(self._list_orders, status)

    # =========================================================================
    # ORDER HISTORY STORE
    # =========================================================================

    def _complete_order(self, order_id: str, completed_at: datetime) -> Order:
        with self._locked():
            orders = self._read(ORDERS_FILE)
            index = self._find(orders, order_id)
            if index is None:
                raise NotFoundError("Order", order_id)

            completed = Order.model_validate(orders[index]).model_copy(
                update={"status": OrderStatus.COMPLETED, "completed_at": completed_at}
            )

            history = self._read(HISTORY_FILE)
            self._write(HISTORY_FILE, history + [completed.to_record()])

            del orders[index]
            try:
                self._write(ORDERS_FILE, orders)
            except StorageError:
                # Put history back so the order stays in exactly one store
                self._write(HISTORY_FILE, history)
                raise

        logger.debug(f"Order #{order_id} moved to {HISTORY_FILE}")
        return completed

    async def complete_order(self, order_id: str, completed_at: datetime) -> Order:
        return await asyncio.to_thread(self._complete_order, order_id, completed_at)

    def _list_history(self) -> list[Order]:
        with self._locked():
            return [Order.model_validate(r) for r in self._read(HISTORY_FILE)]

    async def list_history(self) -> list[Order]:
        return await asyncio.to_thread(self._list_history)
