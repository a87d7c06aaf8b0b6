import pytest


def place_order(client, payload):
    response = client.post("/api/orders", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


# =============================================================================
# ROOT & HEALTH
# =============================================================================

def test_root_banner(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["health"] == "/api/health"


def test_health_reports_storage(client, order_payload):
    place_order(client, order_payload)

    body = client.get("/api/health").json()
    assert body["status"] == "OK"
    assert body["storage"] in ("json", "database")
    assert body["storage_status"] == "healthy"
    assert body["pending_orders"] == 1


def test_unknown_route_keeps_error_shape(client):
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert "error" in response.json()


# =============================================================================
# MENU
# =============================================================================

def test_menu_crud(client):
    assert client.get("/api/menu").json() == []

    created = client.post("/api/menu", json={"name": "Dosa", "description": "Crispy", "price": 120})
    assert created.status_code == 201
    item = created.json()
    assert item["id"]

    updated = client.put(f"/api/menu/{item['id']}", json={"price": 99.5})
    assert updated.status_code == 200
    assert updated.json()["price"] == 99.5
    assert updated.json()["name"] == "Dosa"

    menu = client.get("/api/menu").json()
    assert [(i["id"], i["price"]) for i in menu] == [(item["id"], 99.5)]

    assert client.delete(f"/api/menu/{item['id']}").status_code == 204
    assert client.get("/api/menu").json() == []


def test_menu_non_numeric_price_stored_as_zero(client):
    response = client.post("/api/menu", json={"name": "Mystery", "price": "abc"})
    assert response.status_code == 201
    assert response.json()["price"] == 0


def test_menu_missing_name_rejected(client):
    response = client.post("/api/menu", json={"price": 10})
    assert response.status_code == 400
    assert response.json()["field"] == "name"


def test_delete_unknown_menu_item_is_silent(client):
    assert client.delete("/api/menu/does-not-exist").status_code == 204


def test_update_unknown_menu_item_is_404(client):
    response = client.put("/api/menu/does-not-exist", json={"price": 10})
    assert response.status_code == 404
    assert "error" in response.json()


# =============================================================================
# ORDERS
# =============================================================================

def test_place_and_complete_order(client, order_payload):
    order = place_order(client, order_payload)
    assert order["status"] == "pending"
    assert order["tableNo"] == 4
    assert order["total"] == 40
    assert order["completedAt"] is None

    assert [o["id"] for o in client.get("/api/orders").json()] == [order["id"]]
    assert client.get(f"/api/orders/{order['id']}").json()["name"] == "Asha"

    response = client.patch(f"/api/orders/{order['id']}/complete")
    assert response.status_code == 200
    completed = response.json()
    assert completed["status"] == "completed"
    assert completed["completedAt"] is not None

    assert client.get("/api/orders").json() == []
    history = client.get("/api/orders/history").json()
    assert [o["id"] for o in history] == [order["id"]]
    assert history[0]["completedAt"] is not None


@pytest.mark.parametrize("phone", ["12345", "12345678901", "abcdefghij"])
def test_bad_phone_rejected(client, order_payload, phone):
    order_payload["phone"] = phone

    response = client.post("/api/orders", json=order_payload)

    assert response.status_code == 400
    body = response.json()
    assert body["field"] == "phone"
    assert "10 digits" in body["error"]
    assert client.get("/api/orders").json() == []


def test_missing_table_no_rejected(client, order_payload):
    del order_payload["tableNo"]

    response = client.post("/api/orders", json=order_payload)

    assert response.status_code == 400
    assert response.json() == {"error": "tableNo is required", "field": "tableNo"}


def test_large_quantity_accepted(client, order_payload):
    order_payload["items"] = [{"name": "Tea", "price": 20, "quantity": 100}]

    order = place_order(client, order_payload)

    assert order["items"][0]["quantity"] == 100


def test_oversized_table_no_rejected(client, order_payload):
    order_payload["tableNo"] = str(10**20)

    response = client.post("/api/orders", json=order_payload)

    assert response.status_code == 400
    assert response.json()["field"] == "tableNo"
    assert client.get("/api/orders").json() == []


def test_complete_unknown_order(client):
    response = client.patch("/api/orders/does-not-exist/complete")
    assert response.status_code == 404
    assert "error" in response.json()


def test_complete_twice(client, order_payload):
    order = place_order(client, order_payload)

    assert client.patch(f"/api/orders/{order['id']}/complete").status_code == 200
    assert client.patch(f"/api/orders/{order['id']}/complete").status_code == 404
    assert len(client.get("/api/orders/history").json()) == 1


def test_get_completed_order_is_404(client, order_payload):
    order = place_order(client, order_payload)
    client.patch(f"/api/orders/{order['id']}/complete")

    assert client.get(f"/api/orders/{order['id']}").status_code == 404


def test_put_status_completed(client, order_payload):
    order = place_order(client, order_payload)

    response = client.put(f"/api/orders/{order['id']}", json={"status": "completed"})

    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert client.get("/api/orders").json() == []


def test_put_status_pending_rejected(client, order_payload):
    order = place_order(client, order_payload)

    response = client.put(f"/api/orders/{order['id']}", json={"status": "pending"})

    assert response.status_code == 400
    assert response.json()["field"] == "status"
    assert [o["id"] for o in client.get("/api/orders").json()] == [order["id"]]


def test_pending_orders_oldest_first(client, order_payload):
    ids = [place_order(client, {**order_payload, "name": n})["id"] for n in ["A", "B", "C"]]
    assert [o["id"] for o in client.get("/api/orders").json()] == ids


# =============================================================================
# HISTORY
# =============================================================================

def test_history_newest_first_and_search(client, order_payload):
    first = place_order(client, order_payload)
    second = place_order(client, {**order_payload, "name": "Ravi"})

    client.patch(f"/api/orders/{first['id']}/complete")
    client.patch(f"/api/orders/{second['id']}/complete")

    history = client.get("/api/orders/history").json()
    assert [o["id"] for o in history] == [second["id"], first["id"]]

    found = client.get("/api/orders/history", params={"search": "ravi"}).json()
    assert [o["id"] for o in found] == [second["id"]]


def test_history_date_filter(client, order_payload):
    order = place_order(client, order_payload)
    client.patch(f"/api/orders/{order['id']}/complete")

    assert client.get("/api/orders/history", params={"date": "1999-01-01"}).json() == []

    response = client.get("/api/orders/history", params={"date": "not-a-date"})
    assert response.status_code == 400
    assert response.json()["field"] == "date"
