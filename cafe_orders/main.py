"""
FastAPI Application Entry Point

Cafe ordering backend: customers place orders from their table, the
admin dashboard polls live orders, completes them, and reviews history.

Endpoints:
    - GET    /api/menu: List menu items
    - POST   /api/menu: Add a menu item
    - PUT    /api/menu/{id}: Partially update a menu item
    - DELETE /api/menu/{id}: Remove a menu item
    - GET    /api/orders: List pending orders
    - POST   /api/orders: Place an order
    - GET    /api/orders/history: Completed orders, newest first
    - GET    /api/orders/{id}: Get a pending order
    - PATCH  /api/orders/{id}/complete: Complete an order
    - PUT    /api/orders/{id}: Complete an order via {"status": "completed"}
    - GET    /api/health: System health check

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import Any, Optional

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cafe_orders.core.config import get_settings, setup_logging
from cafe_orders.core.exceptions import CafeOrdersError, ValidationError
from cafe_orders.schemas import (
    ErrorResponse,
    HealthResponse,
    MenuItem,
    MenuItemCreate,
    MenuItemUpdate,
    Order,
    OrderCreate,
    OrderStatus,
    OrderStatusUpdate,
)
from cafe_orders.services import get_menu_service, get_order_service
from cafe_orders.services.menu import MenuService
from cafe_orders.services.orders import OrderService
from cafe_orders.services.storage import BaseStorage, get_storage

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.

    Storage that cannot be prepared is fatal: the exception propagates
    and the server refuses to start.
    """
    settings = get_settings()
    storage = get_storage()

    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    await storage.startup()
    logger.info(f"✅ Storage ready: {storage.provider_name}")
    logger.info(f"✅ Ledger export: {'enabled' if settings.excel_export_enabled else 'disabled'}")

    missing = settings.validate_production_config()
    if missing:
        logger.warning(f"⚠️ Unsafe production config: {missing}")

    logger.info("✅ Application ready!")

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await storage.shutdown()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Menu, live order and order history API for the cafe's "
        "customer app and admin dashboard."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, Any]:
    """API root with navigation links."""
    settings = get_settings()
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/api/health",
        "poll_interval_seconds": settings.poll_interval_seconds,
    }


@app.get(
    "/api/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    storage: BaseStorage = Depends(get_storage),
) -> HealthResponse:
    """Report storage reachability and the live order count."""
    healthy = await storage.health_check()
    pending = len(await storage.list_orders(OrderStatus.PENDING)) if healthy else None

    return HealthResponse(
        status="OK" if healthy else "DEGRADED",
        time=datetime.now(timezone.utc),
        storage=storage.provider_name,
        storage_status="healthy" if healthy else "unhealthy",
        pending_orders=pending,
    )


# =============================================================================
# MENU ENDPOINTS
# =============================================================================

@app.get(
    "/api/menu",
    response_model=list[MenuItem],
    tags=["Menu"],
)
async def list_menu(
    service: MenuService = Depends(get_menu_service),
) -> list[MenuItem]:
    """Get all menu items."""
    return await service.list_items()


@app.post(
    "/api/menu",
    response_model=MenuItem,
    status_code=201,
    responses=ERROR_RESPONSES,
    tags=["Menu"],
)
async def create_menu_item(
    payload: MenuItemCreate,
    service: MenuService = Depends(get_menu_service),
) -> MenuItem:
    """Add a menu item. A non-numeric price is stored as 0."""
    return await service.create(payload)


@app.put(
    "/api/menu/{item_id}",
    response_model=MenuItem,
    responses=ERROR_RESPONSES,
    tags=["Menu"],
)
async def update_menu_item(
    item_id: str,
    payload: MenuItemUpdate,
    service: MenuService = Depends(get_menu_service),
) -> MenuItem:
    """Merge the fields present in the body into an existing item."""
    return await service.update(item_id, payload)


@app.delete(
    "/api/menu/{item_id}",
    status_code=204,
    response_class=Response,
    tags=["Menu"],
)
async def delete_menu_item(
    item_id: str,
    service: MenuService = Depends(get_menu_service),
) -> Response:
    """Remove a menu item. Deleting an unknown id also answers 204."""
    await service.delete(item_id)
    return Response(status_code=204)


# =============================================================================
# ORDER ENDPOINTS
# =============================================================================

@app.get(
    "/api/orders",
    response_model=list[Order],
    tags=["Orders"],
    summary="List Pending Orders",
)
async def list_orders(
    service: OrderService = Depends(get_order_service),
) -> list[Order]:
    """Pending orders, oldest first. Polled by the admin dashboard."""
    return await service.list_pending()


@app.post(
    "/api/orders",
    response_model=Order,
    status_code=201,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
    summary="Place Order",
)
async def create_order(
    payload: OrderCreate,
    service: OrderService = Depends(get_order_service),
) -> Order:
    """
    Place an order from a table.

    The phone must be exactly 10 digits; name and tableNo are required.
    The total is stored as sent.
    """
    logger.info(f"Creating order for: {payload.name} (table {payload.table_no})")
    return await service.create(payload)


@app.get(
    "/api/orders/history",
    response_model=list[Order],
    responses=ERROR_RESPONSES,
    tags=["Orders"],
    summary="Order History",
)
async def list_order_history(
    search: Optional[str] = Query(None, max_length=100),
    on_date: Optional[date] = Query(None, alias="date"),
    service: OrderService = Depends(get_order_service),
) -> list[Order]:
    """Completed orders, most recently completed first."""
    return await service.list_history(search=search, on_date=on_date)


@app.get(
    "/api/orders/{order_id}",
    response_model=Order,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
)
async def get_order(
    order_id: str,
    service: OrderService = Depends(get_order_service),
) -> Order:
    """Get a pending order by ID."""
    return await service.get(order_id)


@app.patch(
    "/api/orders/{order_id}/complete",
    response_model=Order,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
    summary="Complete Order",
)
async def complete_order(
    order_id: str,
    service: OrderService = Depends(get_order_service),
) -> Order:
    """Mark an order completed and move it into history."""
    return await service.complete(order_id)


@app.put(
    "/api/orders/{order_id}",
    response_model=Order,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
    summary="Update Order Status",
)
async def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    service: OrderService = Depends(get_order_service),
) -> Order:
    """Same as PATCH /complete; only {"status": "completed"} is accepted."""
    if payload.status != OrderStatus.COMPLETED:
        raise ValidationError("status", "status can only be changed to completed")
    return await service.complete(order_id)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(CafeOrdersError)
async def cafe_orders_error_handler(request: Request, exc: CafeOrdersError) -> JSONResponse:
    """Map the error taxonomy to JSON error bodies."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} → {exc.status_code}: {exc.message}")

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and query params become 400 naming the field."""
    error = ValidationError.from_errors(exc.errors())
    logger.warning(f"{request.method} {request.url.path} → 400: {error.message}")
    return JSONResponse(status_code=400, content=error.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes and wrong methods keep the {error} shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": str(exc) if get_settings().debug else "An unexpected error occurred",
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "cafe_orders.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
    )
