"""
SQL Database Storage

Stores menu items, pending orders and order history in three tables
through the SQLAlchemy async engine. Works against PostgreSQL in
production (psycopg) and SQLite in tests (aiosqlite).

Completion runs in one transaction: the pending row is locked with
``SELECT ... FOR UPDATE``, copied into ``order_history`` and deleted.
A second completer either finds no row or hits the history primary
key, and both cases surface as ``NotFoundError``.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cafe_orders import models
from cafe_orders.core.exceptions import NotFoundError, StorageError
from cafe_orders.database import create_engine, create_session_maker, init_db
from cafe_orders.schemas import MenuItem, MenuItemCreate, Order, OrderStatus
from cafe_orders.services.storage.base import BaseStorage

logger = logging.getLogger(__name__)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite drops tzinfo; every stored instant is UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlStorage(BaseStorage):
    """
    Database-backed storage.

    Attributes:
        engine: SQLAlchemy async engine
        session_maker: Factory for AsyncSession objects
    """

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        self.engine = create_engine(database_url, echo=echo)
        self.session_maker = create_session_maker(self.engine)

    @property
    def provider_name(self) -> str:
        return "database"

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        """Session with an open transaction; commits on success."""
        try:
            async with self.session_maker() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as e:
            logger.error(f"Database operation failed: {e}")
            raise StorageError("Database operation failed", e) from e

    # =========================================================================
    # CONVERSION
    # =========================================================================

    @staticmethod
    def _menu_item(row: models.MenuItem) -> MenuItem:
        return MenuItem(
            id=row.id,
            name=row.name,
            description=row.description or "",
            price=row.price,
            image=row.image,
        )

    @staticmethod
    def _order(row: Any) -> Order:
        return Order(
            id=row.id,
            name=row.name,
            phone=row.phone,
            table_no=row.table_no,
            items=row.items or [],
            total=row.total,
            status=row.status,
            timestamp=_aware(row.timestamp),
            completed_at=_aware(row.completed_at),
        )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def startup(self) -> None:
        try:
            await init_db(self.engine)
        except (SQLAlchemyError, OSError) as e:
            raise StorageError(f"Database unreachable: {e}", e) from e
        logger.info("Database tables ready")

    async def shutdown(self) -> None:
        await self.engine.dispose()

    async def health_check(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(select(1))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database health check failed: {e}")
            return False

    # =========================================================================
    # MENU STORE
    # =========================================================================

    async def list_menu_items(self) -> list[MenuItem]:
        async with self._transaction() as session:
            result = await session.execute(
                select(models.MenuItem).order_by(models.MenuItem.position)
            )
            return [self._menu_item(row) for row in result.scalars().all()]

    async def create_menu_item(self, data: MenuItemCreate) -> MenuItem:
        async with self._transaction() as session:
            result = await session.execute(
                select(func.coalesce(func.max(models.MenuItem.position), 0))
            )
            row = models.MenuItem(
                id=models.new_id(),
                position=result.scalar_one() + 1,
                **data.model_dump(),
            )
            session.add(row)
        return self._menu_item(row)

    async def update_menu_item(self, item_id: str, changes: dict[str, Any]) -> MenuItem:
        async with self._transaction() as session:
            row = await session.get(models.MenuItem, item_id)
            if row is None:
                raise NotFoundError("Menu item", item_id)
            for key, value in changes.items():
                setattr(row, key, value)
        return self._menu_item(row)

    async def delete_menu_item(self, item_id: str) -> bool:
        async with self._transaction() as session:
            result = await session.execute(
                delete(models.MenuItem)
                .where(models.MenuItem.id == item_id)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount > 0

    # =========================================================================
    # ORDER STORE
    # =========================================================================

    async def insert_order(self, order: Order) -> Order:
        async with self._transaction() as session:
            session.add(models.Order(
                id=order.id,
                name=order.name,
                phone=order.phone,
                table_no=order.table_no,
                items=[item.model_dump() for item in order.items],
                total=order.total,
                status=order.status,
                timestamp=order.timestamp,
                completed_at=order.completed_at,
            ))
        return order

    async def get_order(self, order_id: str) -> Optional[Order]:
        async with self._transaction() as session:
            row = await session.get(models.Order, order_id)
            return None if row is None else self._order(row)

    async def list_orders(self, status: OrderStatus = OrderStatus.PENDING) -> list[Order]:
        async with self._transaction() as session:
            result = await session.execute(
                select(models.Order)
                .where(models.Order.status == status)
                .order_by(models.Order.timestamp)
            )
            return [self._order(row) for row in result.scalars().all()]

    # =========================================================================
    # ORDER HISTORY STORE
    # =========================================================================

    async def complete_order(self, order_id: str, completed_at: datetime) -> Order:
        try:
            async with self._transaction() as session:
                result = await session.execute(
                    select(models.Order)
                    .where(models.Order.id == order_id)
                    .with_for_update()
                )
                row = result.scalar_one_or_none()
                if row is None:
                    raise NotFoundError("Order", order_id)

                record = models.OrderHistory(
                    id=row.id,
                    name=row.name,
                    phone=row.phone,
                    table_no=row.table_no,
                    items=row.items,
                    total=row.total,
                    status=OrderStatus.COMPLETED,
                    timestamp=row.timestamp,
                    completed_at=completed_at,
                )
                session.add(record)
                await session.flush()

                deleted = await session.execute(
                    delete(models.Order)
                    .where(models.Order.id == order_id)
                    .execution_options(synchronize_session=False)
                )
                if deleted.rowcount != 1:
                    raise NotFoundError("Order", order_id)
        except StorageError as e:
            if isinstance(e.cause, IntegrityError):
                # Another caller already moved this order into history
                raise NotFoundError("Order", order_id) from e
            raise

        logger.debug(f"Order #{order_id} moved to order_history")
        return self._order(record)

    async def list_history(self) -> list[Order]:
        async with self._transaction() as session:
            result = await session.execute(
                select(models.OrderHistory).order_by(models.OrderHistory.completed_at.desc())
            )
            return [self._order(row) for row in result.scalars().all()]
