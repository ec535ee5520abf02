import pytest
from pymongo.errors import PyMongoError

import storage
from schemas import OrderIn
from conftest import product_payload


def order_payload(**overrides):
    data = {
        "orderNumber": "ORD-1001",
        "customerName": "Jane Doe",
        "customerEmail": "jane@example.com",
        "totalAmount": 59.97,
    }
    data.update(overrides)
    return data


@pytest.fixture
def product_id(client, staff_headers):
    return client.post("/api/products", json=product_payload(), headers=staff_headers).json()["id"]


def test_create_order_defaults(client, staff_headers):
    r = client.post("/api/orders", json=order_payload(), headers=staff_headers)
    assert r.status_code == 201
    body = r.json()
    assert body["status"] == "pending"
    assert body["type"] == "sale"
    assert body["totalAmount"] == 59.97


def test_order_with_items(client, staff_headers, product_id):
    payload = order_payload(items=[{"productId": product_id, "quantity": 3, "unitPrice": 19.99}])
    order = client.post("/api/orders", json=payload, headers=staff_headers).json()

    items = client.get(f"/api/orders/{order['id']}/items", headers=staff_headers).json()
    assert len(items) == 1
    assert items[0]["orderId"] == order["id"]
    assert items[0]["productId"] == product_id
    assert items[0]["totalPrice"] == 59.97


def test_order_with_unknown_product_writes_nothing(client, db, staff_headers):
    payload = order_payload(items=[{"productId": "64b7f0c2a1b2c3d4e5f60718", "quantity": 1, "unitPrice": 5}])
    r = client.post("/api/orders", json=payload, headers=staff_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Product 64b7f0c2a1b2c3d4e5f60718 not found"
    assert db["order"].count_documents({}) == 0


def test_item_write_failure_rolls_back_order(db, monkeypatch):
    product = storage.create_entity(db, storage.PRODUCTS, {"name": "W", "sku": "S", "category": "C", "price": 1.0})
    real_create = storage.create_document
    calls = {"items": 0}

    def flaky_create(database, collection, data):
        if collection == storage.ORDER_ITEMS:
            calls["items"] += 1
            if calls["items"] == 2:
                raise PyMongoError("connection reset")
        return real_create(database, collection, data)

    monkeypatch.setattr(storage, "create_document", flaky_create)
    item = {"productId": product["id"], "quantity": 1, "unitPrice": 1.0}
    payload = OrderIn.model_validate(order_payload(items=[item, item]))

    with pytest.raises(PyMongoError):
        storage.create_order(db, payload)
    assert db["order"].count_documents({}) == 0
    assert db["orderitem"].count_documents({}) == 0


def test_invalid_status_message_splits_cleanly(client, staff_headers):
    r = client.post("/api/orders", json=order_payload(status="shipped"), headers=staff_headers)
    assert r.status_code == 400
    message = r.json()["message"]
    entries = message[len("Validation Error: "):].split(", ")
    assert len(entries) == 1
    assert entries[0].startswith("status ")


def test_total_amount_must_be_positive(client, staff_headers):
    r = client.post("/api/orders", json=order_payload(totalAmount=0), headers=staff_headers)
    assert r.status_code == 400
    assert r.json()["message"].split(" ")[2] == "totalAmount"


def test_duplicate_order_number(client, staff_headers):
    client.post("/api/orders", json=order_payload(), headers=staff_headers)
    r = client.post("/api/orders", json=order_payload(customerName="Someone"), headers=staff_headers)
    assert r.status_code == 400


def test_update_status(client, staff_headers):
    order = client.post("/api/orders", json=order_payload(), headers=staff_headers).json()
    r = client.put(f"/api/orders/{order['id']}", json={"status": "completed"}, headers=staff_headers)
    assert r.status_code == 200
    assert r.json()["status"] == "completed"
    assert r.json()["customerName"] == "Jane Doe"


def test_add_item_to_existing_order(client, staff_headers, product_id):
    order = client.post("/api/orders", json=order_payload(), headers=staff_headers).json()
    r = client.post(
        f"/api/orders/{order['id']}/items",
        json={"productId": product_id, "quantity": 2, "unitPrice": 5, "totalPrice": 9.5},
        headers=staff_headers,
    )
    assert r.status_code == 201
    assert r.json()["totalPrice"] == 9.5


def test_items_of_missing_order(client, staff_headers):
    r = client.get("/api/orders/64b7f0c2a1b2c3d4e5f60718/items", headers=staff_headers)
    assert r.status_code == 404
    assert r.json()["message"] == "Order not found"


def test_delete_order_removes_items(client, db, staff_headers, product_id):
    payload = order_payload(items=[{"productId": product_id, "quantity": 1, "unitPrice": 19.99}])
    order = client.post("/api/orders", json=payload, headers=staff_headers).json()
    assert client.delete(f"/api/orders/{order['id']}", headers=staff_headers).status_code == 204
    assert db["orderitem"].count_documents({"orderId": order["id"]}) == 0
    assert client.get(f"/api/orders/{order['id']}", headers=staff_headers).status_code == 404


def test_blank_customer_email_is_treated_as_absent(client, staff_headers):
    r = client.post("/api/orders", json=order_payload(customerEmail=""), headers=staff_headers)
    assert r.status_code == 201
    assert r.json()["customerEmail"] is None


def test_blank_customer_email_on_update_keeps_value(client, staff_headers):
    order = client.post("/api/orders", json=order_payload(), headers=staff_headers).json()
    r = client.put(f"/api/orders/{order['id']}", json={"customerEmail": "", "status": "processing"},
                   headers=staff_headers)
    assert r.status_code == 200
    assert r.json()["customerEmail"] == "jane@example.com"
    assert r.json()["status"] == "processing"


def test_malformed_customer_email_still_rejected(client, staff_headers):
    r = client.post("/api/orders", json=order_payload(customerEmail="jane"), headers=staff_headers)
    assert r.status_code == 400
    assert r.json()["message"].startswith("Validation Error: customerEmail ")
