"""
Storage Abstract Base Class

Defines the interface contract for all storage backends.
Both JsonFileStorage and SqlStorage own the three stores of the system:

    - Menu Store: item id -> MenuItem
    - Order Store: order id -> pending Order
    - Order History Store: order id -> completed Order (append-only)

Keeping all three behind one object lets ``complete_order`` move a
record from the Order Store to the History Store inside a single
critical section, so no reader ever sees an order in both stores or
in neither.

Design Pattern: Strategy Pattern
    - Backend is picked at startup from STORAGE_BACKEND
    - Services only ever talk to BaseStorage

Author: Khalil Bannouri
Version: 1.0.0
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from cafe_orders.schemas import MenuItem, MenuItemCreate, Order, OrderStatus


class BaseStorage(ABC):
    """
    Abstract base class for storage backends.

    Every method raises ``StorageError`` on I/O or persistence failure.
    Lookups that may miss say so in their docstring: either they return
    ``None``/``False`` or they raise ``NotFoundError``.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the backend.

        Returns:
            str: Backend name (e.g., "json", "database")
        """
        pass

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @abstractmethod
    async def startup(self) -> None:
        """Prepare the backend (create files or tables). Fatal on failure."""
        pass

    async def shutdown(self) -> None:
        """Release resources held by the backend."""
        return None

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify the backend is reachable.

        Returns:
            bool: True if reads and writes can be served
        """
        pass

    # =========================================================================
    # MENU STORE
    # =========================================================================

    @abstractmethod
    async def list_menu_items(self) -> list[MenuItem]:
        """Return all menu items in insertion order."""
        pass

    @abstractmethod
    async def create_menu_item(self, data: MenuItemCreate) -> MenuItem:
        """Store a new item under a freshly assigned id."""
        pass

    @abstractmethod
    async def update_menu_item(self, item_id: str, changes: dict[str, Any]) -> MenuItem:
        """
        Merge ``changes`` into an existing item.

        Raises:
            NotFoundError: If no item has this id
        """
        pass

    @abstractmethod
    async def delete_menu_item(self, item_id: str) -> bool:
        """
        Remove an item.

        Returns:
            bool: False if the item was already absent
        """
        pass

    # =========================================================================
    # ORDER STORE
    # =========================================================================

    @abstractmethod
    async def insert_order(self, order: Order) -> Order:
        """Store a new pending order exactly as given."""
        pass

    @abstractmethod
    async def get_order(self, order_id: str) -> Optional[Order]:
        """Return the pending order with this id, or None."""
        pass

    @abstractmethod
    async def list_orders(self, status: OrderStatus = OrderStatus.PENDING) -> list[Order]:
        """Return orders in the Order Store with the given status."""
        pass

    # =========================================================================
    # ORDER HISTORY STORE
    # =========================================================================

    @abstractmethod
    async def complete_order(self, order_id: str, completed_at: datetime) -> Order:
        """
        Mark a pending order completed and move it into history.

        The read, the history insert and the removal from the Order
        Store happen as one atomic step. Of several concurrent callers
        for the same id, exactly one gets the completed record.

        Args:
            order_id: Order to complete
            completed_at: Completion instant to stamp on the record

        Returns:
            Order: The record as stored in history

        Raises:
            NotFoundError: If the order is not (or no longer) pending
        """
        pass

    @abstractmethod
    async def list_history(self) -> list[Order]:
        """Return every completed order."""
        pass
