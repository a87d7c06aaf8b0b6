"""
SQLAlchemy Database Models

Tables backing the database storage backend:
- menu_items: the dishes on offer
- orders: pending orders only
- order_history: completed orders, moved here from ``orders``

Author: Khalil Bannouri
Version: 1.0.0
"""

import uuid

from sqlalchemy import Column, DateTime, Float, Integer, JSON, String, Text, Enum

from cafe_orders.database import Base
from cafe_orders.schemas import OrderStatus


def new_id() -> str:
    """Server-assigned identifier shared by every backend."""
    return uuid.uuid4().hex


class MenuItem(Base):
    """A dish on the menu."""
    __tablename__ = "menu_items"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Float, nullable=False, default=0.0)
    image = Column(String(500), nullable=True)

    # Insertion order for listing
    position = Column(Integer, nullable=False, default=0, index=True)

    def __repr__(self):
        return f"<MenuItem {self.id} - {self.name} - {self.price}>"


class OrderColumns:
    """Columns shared by pending and completed orders."""

    id = Column(String(32), primary_key=True)

    # =========================================================================
    # CUSTOMER INFORMATION
    # =========================================================================
    name = Column(String(100), nullable=False)
    phone = Column(String(10), nullable=False, index=True)
    table_no = Column(Integer, nullable=False)

    # =========================================================================
    # ORDER DETAILS
    # =========================================================================
    items = Column(JSON, nullable=False, default=list)  # [{name, price, quantity}]
    total = Column(Float, nullable=False, default=0.0)

    # =========================================================================
    # ORDER STATUS
    # =========================================================================
    status = Column(
        Enum(OrderStatus),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True
    )

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True, index=True)


class Order(OrderColumns, Base):
    """Pending orders awaiting the kitchen."""
    __tablename__ = "orders"

    def __repr__(self):
        return f"<Order #{self.id} - table {self.table_no} - {self.name} - {self.status.value}>"


class OrderHistory(OrderColumns, Base):
    """Completed orders. Rows are inserted once and never updated."""
    __tablename__ = "order_history"

    def __repr__(self):
        return f"<OrderHistory #{self.id} - {self.name} - completed {self.completed_at}>"
