"""
Pydantic Schemas for Request/Response Validation

Menu items, orders and order history records as they travel over the
wire and into the JSON stores. Keys follow the client apps' camelCase
(``tableNo``, ``completedAt``); Python attributes stay snake_case.

Author: Khalil Bannouri
Version: 1.0.0
"""

import math
import re
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PHONE_PATTERN = re.compile(r"[0-9]{10}")
TABLE_NO_PATTERN = re.compile(r"[0-9]+")
# Largest table number both backends can store (SQL INTEGER)
MAX_TABLE_NO = 2**31 - 1


# =============================================================================
# ENUMS
# =============================================================================

class OrderStatus(str, Enum):
    """Order lifecycle: pending until the kitchen marks it completed."""
    PENDING = "pending"
    COMPLETED = "completed"


# =============================================================================
# HELPERS
# =============================================================================

def coerce_price(value: Any) -> Any:
    """
    Coerce a price to a float, falling back to 0 for non-numeric input.

    ``None`` is passed through so partial updates can leave price unset.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return 0.0
    try:
        price = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(price):
        return 0.0
    return price


# =============================================================================
# MENU SCHEMAS
# =============================================================================

class MenuItemCreate(BaseModel):
    """Request schema for adding a dish to the menu."""
    name: str = Field(..., min_length=1, max_length=100, examples=["Masala Dosa"])
    description: str = Field(default="", max_length=500, examples=["Crispy rice crepe"])
    price: float = Field(default=0.0, ge=0, examples=[120.0])
    image: Optional[str] = Field(None, max_length=500, examples=["https://example.com/dosa.jpg"])

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("is required")
        return v

    @field_validator("price", mode="before")
    @classmethod
    def validate_price(cls, v: Any) -> float:
        price = coerce_price(v)
        return 0.0 if price is None else price


class MenuItemUpdate(BaseModel):
    """Partial update: only the fields present in the body are merged."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    price: Optional[float] = Field(None, ge=0)
    image: Optional[str] = Field(None, max_length=500)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("price", mode="before")
    @classmethod
    def validate_price(cls, v: Any) -> Optional[float]:
        return coerce_price(v)

    def changes(self) -> dict[str, Any]:
        """
        Fields to merge into the stored item.

        Explicit nulls are ignored except for ``image``, which may be
        cleared.
        """
        data = self.model_dump(exclude_unset=True)
        return {k: v for k, v in data.items() if v is not None or k == "image"}


class MenuItem(BaseModel):
    """A stored menu item."""
    id: str
    name: str
    description: str = ""
    price: float = 0.0
    image: Optional[str] = None


# =============================================================================
# ORDER SCHEMAS
# =============================================================================

class OrderItem(BaseModel):
    """Single line in an order."""
    name: str = Field(..., min_length=1, max_length=100, examples=["Tea"])
    price: float = Field(..., ge=0, examples=[20])
    quantity: int = Field(..., gt=0, examples=[2])

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)


class OrderCreate(BaseModel):
    """
    Request schema for placing an order from a table.

    ``total`` is trusted as sent by the client and is never recomputed.
    """
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., max_length=100, examples=["Asha"])
    phone: str = Field(..., examples=["9999999999"])
    table_no: int = Field(..., alias="tableNo", examples=[4])
    items: List[OrderItem] = Field(default_factory=list)
    total: float = Field(default=0.0, ge=0, examples=[40])

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v: Any) -> str:
        if v is None or not str(v).strip():
            raise ValueError("is required")
        return str(v).strip()

    @field_validator("phone", mode="before")
    @classmethod
    def validate_phone(cls, v: Any) -> str:
        if isinstance(v, bool) or not isinstance(v, (str, int)):
            raise ValueError("must be exactly 10 digits")
        phone = str(v)
        if not PHONE_PATTERN.fullmatch(phone):
            raise ValueError("must be exactly 10 digits")
        return phone

    @field_validator("table_no", mode="before")
    @classmethod
    def validate_table_no(cls, v: Any) -> int:
        if v is None or isinstance(v, bool):
            raise ValueError("is required")
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("is required")
            if not TABLE_NO_PATTERN.fullmatch(v):
                raise ValueError("must be a positive integer")
            v = int(v)
        if isinstance(v, float) and v.is_integer():
            v = int(v)
        if not isinstance(v, int) or v <= 0 or v > MAX_TABLE_NO:
            raise ValueError("must be a positive integer")
        return v


class Order(BaseModel):
    """A stored order, pending or completed."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    phone: str
    table_no: int = Field(..., alias="tableNo")
    items: List[OrderItem] = Field(default_factory=list)
    total: float = 0.0
    status: OrderStatus = OrderStatus.PENDING
    timestamp: datetime
    completed_at: Optional[datetime] = Field(None, alias="completedAt")

    def to_record(self) -> dict[str, Any]:
        """Serialize with wire keys, as written to the JSON stores."""
        return self.model_dump(mode="json", by_alias=True)


class OrderStatusUpdate(BaseModel):
    """Body of ``PUT /api/orders/{id}``; only ``completed`` is accepted."""
    status: OrderStatus


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    field: Optional[str] = None
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    time: datetime
    storage: str
    storage_status: str
    pending_orders: Optional[int] = None
