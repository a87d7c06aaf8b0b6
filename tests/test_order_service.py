import asyncio
from datetime import date

import pytest

from cafe_orders.core.exceptions import NotFoundError, ValidationError
from cafe_orders.schemas import Order, OrderStatus
from cafe_orders.services.menu import MenuService
from cafe_orders.services.orders import OrderService


@pytest.fixture
def exported():
    return []


@pytest.fixture
def service(storage, clock, exported):
    return OrderService(storage, exporter=exported.append, clock=clock)


# =============================================================================
# CREATE
# =============================================================================

async def test_create_assigns_unique_ids_and_pending_status(service, order_payload):
    first = await service.create(order_payload)
    second = await service.create(order_payload)

    assert first.id != second.id
    assert first.status == OrderStatus.PENDING
    assert first.completed_at is None
    assert first.table_no == 4
    assert first.total == 40


async def test_create_trusts_client_total(service, order_payload):
    order_payload["total"] = 55
    order = await service.create(order_payload)
    assert order.total == 55


@pytest.mark.parametrize("field, value", [
    ("phone", "12345"),
    ("phone", "12345678901"),
    ("name", ""),
    ("tableNo", ""),
])
async def test_create_rejects_invalid_input_naming_field(service, order_payload, field, value):
    order_payload[field] = value

    with pytest.raises(ValidationError) as exc_info:
        await service.create(order_payload)

    assert exc_info.value.field == field
    assert await service.list_pending() == []


async def test_create_accepts_valid_phone(service, order_payload):
    order_payload["phone"] = "9876543210"
    order = await service.create(order_payload)
    assert order.phone == "9876543210"


# =============================================================================
# LIST / GET
# =============================================================================

async def test_list_pending_oldest_first(service, order_payload):
    ids = [(await service.create({**order_payload, "name": n})).id for n in ["A", "B", "C"]]
    assert [o.id for o in await service.list_pending()] == ids


async def test_get_unknown_order(service):
    with pytest.raises(NotFoundError):
        await service.get("missing")


# =============================================================================
# COMPLETE
# =============================================================================

async def test_asha_scenario(service, order_payload, exported):
    order = await service.create(order_payload)
    assert order.status == OrderStatus.PENDING

    completed = await service.complete(order.id)

    assert completed.status == OrderStatus.COMPLETED
    assert completed.completed_at is not None
    assert completed.completed_at > completed.timestamp
    assert order.id not in [o.id for o in await service.list_pending()]
    assert [o.id for o in await service.list_history()] == [order.id]
    assert exported == [completed]


async def test_complete_unknown_is_not_found_and_not_exported(service, order_payload, exported):
    order = await service.create(order_payload)

    with pytest.raises(NotFoundError):
        await service.complete("missing")

    assert [o.id for o in await service.list_pending()] == [order.id]
    assert await service.list_history() == []
    assert exported == []


async def test_completion_without_exporter(storage, order_payload):
    service = OrderService(storage)
    order = await service.create(order_payload)
    completed = await service.complete(order.id)
    assert completed.status == OrderStatus.COMPLETED


async def test_concurrent_complete_exactly_one_succeeds(storage, clock, order_payload):
    service = OrderService(storage, clock=clock)
    order = await service.create(order_payload)

    results = await asyncio.gather(
        service.complete(order.id),
        service.complete(order.id),
        return_exceptions=True,
    )

    assert sum(isinstance(r, Order) for r in results) == 1
    assert sum(isinstance(r, NotFoundError) for r in results) == 1
    assert await service.list_pending() == []
    assert len(await service.list_history()) == 1


async def test_exporter_failure_keeps_completion(storage, clock, order_payload):
    def broken_exporter(order):
        raise RuntimeError("ledger unavailable")

    service = OrderService(storage, exporter=broken_exporter, clock=clock)
    order = await service.create(order_payload)

    completed = await service.complete(order.id)

    assert completed.status == OrderStatus.COMPLETED
    assert await service.list_pending() == []
    assert [o.id for o in await service.list_history()] == [order.id]


# =============================================================================
# HISTORY
# =============================================================================

async def test_history_newest_completion_first(service, order_payload):
    ids = [(await service.create(order_payload)).id for _ in range(3)]
    for order_id in [ids[1], ids[0], ids[2]]:
        await service.complete(order_id)

    history = await service.list_history()
    assert [o.id for o in history] == [ids[2], ids[0], ids[1]]


async def test_history_search(service, order_payload):
    asha = await service.create(order_payload)
    ravi = await service.create({
        **order_payload,
        "name": "Ravi",
        "phone": "8888888888",
        "tableNo": 12,
        "items": [{"name": "Masala Dosa", "price": 120, "quantity": 1}],
        "total": 120,
    })
    await service.complete(asha.id)
    await service.complete(ravi.id)

    assert [o.id for o in await service.list_history(search="asha")] == [asha.id]
    assert [o.id for o in await service.list_history(search="dosa")] == [ravi.id]
    # ids are hex, so digit-only terms can also hit an id
    assert ravi.id in [o.id for o in await service.list_history(search="8888")]
    assert ravi.id in [o.id for o in await service.list_history(search="12")]
    assert [o.id for o in await service.list_history(search=asha.id[:8])] == [asha.id]
    assert await service.list_history(search="nobody") == []


async def test_history_date_filter(service, order_payload):
    order = await service.create(order_payload)
    await service.complete(order.id)

    assert [o.id for o in await service.list_history(on_date=date(2025, 1, 15))] == [order.id]
    assert await service.list_history(on_date=date(2025, 1, 16)) == []


# =============================================================================
# MENU SERVICE
# =============================================================================

async def test_menu_service_round_trip(storage):
    menu = MenuService(storage)
    item = await menu.create({"name": "Dosa", "description": "Crispy", "price": "abc"})
    assert item.price == 0

    await menu.update(item.id, {"price": 99.5})
    assert [i.price for i in await menu.list_items()] == [99.5]

    await menu.delete(item.id)
    await menu.delete(item.id)
    assert await menu.list_items() == []


async def test_menu_service_errors(storage):
    menu = MenuService(storage)

    with pytest.raises(NotFoundError):
        await menu.update("missing", {"name": "Idli"})

    with pytest.raises(ValidationError) as exc_info:
        await menu.create({"name": "", "price": 10})
    assert exc_info.value.field == "name"
