"""
Order Service

Owns the order lifecycle:

    pending ──complete()──▶ completed (moved to the Order History Store)

Validation happens before anything is stored; the client-supplied
total is kept as sent. Completion is delegated to the storage backend,
which performs the move atomically. After a successful completion the
record is handed to an optional exporter (the Excel ledger task).

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from cafe_orders.core.exceptions import NotFoundError, ValidationError
from cafe_orders.models import new_id
from cafe_orders.schemas import Order, OrderCreate, OrderStatus
from cafe_orders.services.storage.base import BaseStorage

logger = logging.getLogger(__name__)

# Called with each freshly completed order
CompletionExporter = Callable[[Order], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def matches_search(order: Order, search: str) -> bool:
    """Case-insensitive match on name, phone, table, item names or id."""
    term = search.strip().lower()
    if not term:
        return True
    return (
        term in order.name.lower()
        or term in order.phone
        or term in str(order.table_no)
        or any(term in item.name.lower() for item in order.items)
        or term in order.id.lower()
    )


class OrderService:
    """
    Order lifecycle operations.

    Attributes:
        storage: Backend holding the Order and History stores
        exporter: Optional hook run after each completion
        clock: Source of the current UTC instant
    """

    def __init__(
        self,
        storage: BaseStorage,
        exporter: Optional[CompletionExporter] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.storage = storage
        self.exporter = exporter
        self.clock = clock

    async def create(self, data: Union[OrderCreate, Mapping[str, Any]]) -> Order:
        """
        Validate and store a new pending order.

        Args:
            data: Validated OrderCreate or a raw request mapping

        Returns:
            Order: The stored record, total untouched

        Raises:
            ValidationError: Naming the first offending field
        """
        if not isinstance(data, OrderCreate):
            try:
                data = OrderCreate.model_validate(data)
            except PydanticValidationError as e:
                raise ValidationError.from_errors(e.errors()) from e

        order = Order(
            id=new_id(),
            name=data.name,
            phone=data.phone,
            table_no=data.table_no,
            items=data.items,
            total=data.total,
            status=OrderStatus.PENDING,
            timestamp=self.clock(),
        )
        await self.storage.insert_order(order)

        logger.info(f"Order #{order.id} placed for table {order.table_no} ({order.name}, total {order.total})")
        return order

    async def get(self, order_id: str) -> Order:
        order = await self.storage.get_order(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    async def list_pending(self) -> list[Order]:
        """Pending orders, oldest first."""
        orders = await self.storage.list_orders(OrderStatus.PENDING)
        return sorted(orders, key=lambda o: o.timestamp)

    async def complete(self, order_id: str) -> Order:
        """
        Mark a pending order completed and move it into history.

        Raises:
            NotFoundError: If the order is unknown or already completed
        """
        try:
            order = await self.storage.complete_order(order_id, self.clock())
        except NotFoundError:
            logger.warning(f"Complete requested for unknown order #{order_id}")
            raise

        logger.info(f"Order #{order_id} completed (table {order.table_no})")

        # The move is committed; an exporter failure must not fail the request
        if self.exporter is not None:
            try:
                self.exporter(order)
            except Exception:
                logger.exception(f"Ledger export failed for order #{order_id}")

        return order

    async def list_history(
        self,
        search: Optional[str] = None,
        on_date: Optional[date] = None,
    ) -> list[Order]:
        """
        Completed orders, most recently completed first.

        Args:
            search: Optional text matched against name, phone, table, items, id
            on_date: Optional UTC date the order was placed on
        """
        history = await self.storage.list_history()
        if search:
            history = [o for o in history if matches_search(o, search)]
        if on_date is not None:
            history = [o for o in history if o.timestamp.astimezone(timezone.utc).date() == on_date]
        return sorted(history, key=lambda o: o.completed_at or o.timestamp, reverse=True)
