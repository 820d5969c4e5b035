# Overview: Pytest coverage for the order HTTP endpoints and their role rules.

import pytest

from smallbiz.extensions import db
from smallbiz.models import Product


def _place(client, headers, product, quantity=1, **extra):
    body = {"items": [{"product_id": product.id, "quantity": quantity}], **extra}
    return client.post("/api/orders", json=body, headers=headers)


def _stock(product_id):
    return db.session.get(Product, product_id).stock_quantity


def test_staff_can_place_an_order(client, staff_headers, product_a, customer_a):
    resp = _place(client, staff_headers, product_a, 3, customer_id=customer_a.id, notes="Front desk")

    assert resp.status_code == 201
    order = resp.get_json()["order"]
    assert order["status"] == "pending"
    assert order["total_amount_cents"] == 7500
    assert order["customer"]["id"] == customer_a.id
    assert order["items"][0]["unit_price_cents"] == 2500
    assert _stock(product_a.id) == 7


def test_insufficient_stock_returns_field_errors(client, owner_headers, product_a):
    resp = _place(client, owner_headers, product_a, 11)

    assert resp.status_code == 422
    assert "items.0.quantity" in resp.get_json()["errors"]
    assert _stock(product_a.id) == 10


@pytest.mark.parametrize("notes", [{"x": 1}, ["a", "b"], 42])
def test_non_string_notes_are_a_field_error(client, owner_headers, product_a, notes):
    resp = _place(client, owner_headers, product_a, 1, notes=notes)

    assert resp.status_code == 422
    assert resp.get_json()["errors"]["notes"] == ["notes must be a string"]
    assert _stock(product_a.id) == 10


@pytest.mark.parametrize("customer_id", [True, 1.5, "abc", 0, -3])
def test_malformed_customer_id_is_a_field_error(client, owner_headers, product_a, customer_a, customer_id):
    resp = _place(client, owner_headers, product_a, 1, customer_id=customer_id)

    assert resp.status_code == 422
    assert "customer_id" in resp.get_json()["errors"]
    assert _stock(product_a.id) == 10


def test_numeric_string_customer_id_is_accepted(client, owner_headers, product_a, customer_a):
    resp = _place(client, owner_headers, product_a, 1, customer_id=str(customer_a.id))

    assert resp.status_code == 201
    assert resp.get_json()["order"]["customer"]["id"] == customer_a.id


def test_missing_items(client, owner_headers):
    resp = client.post("/api/orders", json={}, headers=owner_headers)
    assert resp.status_code == 422
    assert "items" in resp.get_json()["errors"]


def test_list_and_get(client, owner_headers, product_a):
    created = _place(client, owner_headers, product_a).get_json()["order"]

    listed = client.get("/api/orders?status=pending", headers=owner_headers).get_json()
    assert [o["id"] for o in listed["items"]] == [created["id"]]

    resp = client.get(f"/api/orders/{created['id']}", headers=owner_headers)
    assert resp.status_code == 200
    assert resp.get_json()["order"]["order_number"] == created["order_number"]


def test_list_rejects_unknown_status(client, owner_headers):
    resp = client.get("/api/orders?status=shipped", headers=owner_headers)
    assert resp.status_code == 422


def test_cancel_restores_stock(client, staff_headers, product_a):
    order = _place(client, staff_headers, product_a, 4).get_json()["order"]

    resp = client.post(f"/api/orders/{order['id']}/cancel", headers=staff_headers)

    assert resp.status_code == 200
    assert resp.get_json()["order"]["status"] == "cancelled"
    assert _stock(product_a.id) == 10


def test_cancelling_a_cancelled_order_is_forbidden(client, owner_headers, product_a):
    order = _place(client, owner_headers, product_a, 4).get_json()["order"]
    client.post(f"/api/orders/{order['id']}/cancel", headers=owner_headers)

    resp = client.post(f"/api/orders/{order['id']}/cancel", headers=owner_headers)

    assert resp.status_code == 403
    assert resp.get_json()["required_capability"] == "CANCEL_ORDER"
    assert _stock(product_a.id) == 10


def test_mark_as_paid_is_owner_only(client, owner_headers, staff_headers, product_a):
    order = _place(client, staff_headers, product_a).get_json()["order"]

    denied = client.post(f"/api/orders/{order['id']}/mark-as-paid", headers=staff_headers)
    assert denied.status_code == 403

    resp = client.post(f"/api/orders/{order['id']}/mark-as-paid", headers=owner_headers)
    assert resp.status_code == 200
    assert resp.get_json()["order"]["status"] == "paid"


def test_mark_cancelled_order_as_paid_conflicts(client, owner_headers, product_a):
    order = _place(client, owner_headers, product_a).get_json()["order"]
    client.post(f"/api/orders/{order['id']}/cancel", headers=owner_headers)

    resp = client.post(f"/api/orders/{order['id']}/mark-as-paid", headers=owner_headers)

    assert resp.status_code == 409


def test_staff_updates_notes_only_while_pending(client, owner_headers, staff_headers, product_a):
    order = _place(client, staff_headers, product_a).get_json()["order"]

    resp = client.put(f"/api/orders/{order['id']}", json={"notes": "Call first"}, headers=staff_headers)
    assert resp.status_code == 200
    assert resp.get_json()["order"]["notes"] == "Call first"

    client.post(f"/api/orders/{order['id']}/mark-as-paid", headers=owner_headers)

    resp = client.put(f"/api/orders/{order['id']}", json={"notes": "Too late"}, headers=staff_headers)
    assert resp.status_code == 403
    assert resp.get_json()["required_capability"] == "UPDATE_ORDER"


def test_owner_update_of_paid_order_conflicts(client, owner_headers, product_a):
    order = _place(client, owner_headers, product_a).get_json()["order"]
    client.post(f"/api/orders/{order['id']}/mark-as-paid", headers=owner_headers)

    resp = client.put(f"/api/orders/{order['id']}", json={"notes": "late"}, headers=owner_headers)

    assert resp.status_code == 409


def test_update_items_is_a_validation_error(client, owner_headers, product_a):
    order = _place(client, owner_headers, product_a).get_json()["order"]

    resp = client.put(
        f"/api/orders/{order['id']}",
        json={"items": [{"product_id": product_a.id, "quantity": 9}]},
        headers=owner_headers,
    )

    assert resp.status_code == 422
    assert "items" in resp.get_json()["errors"]
    assert _stock(product_a.id) == 9


def test_delete_pending_order(client, owner_headers, product_a):
    order = _place(client, owner_headers, product_a, 6).get_json()["order"]

    resp = client.delete(f"/api/orders/{order['id']}", headers=owner_headers)

    assert resp.status_code == 200
    assert _stock(product_a.id) == 10
    assert client.get(f"/api/orders/{order['id']}", headers=owner_headers).status_code == 404


def test_delete_paid_order_conflicts(client, owner_headers, product_a):
    order = _place(client, owner_headers, product_a, 6).get_json()["order"]
    client.post(f"/api/orders/{order['id']}/mark-as-paid", headers=owner_headers)

    resp = client.delete(f"/api/orders/{order['id']}", headers=owner_headers)

    assert resp.status_code == 409
    assert _stock(product_a.id) == 4


def test_staff_cannot_delete_orders(client, staff_headers, product_a):
    order = _place(client, staff_headers, product_a).get_json()["order"]

    resp = client.delete(f"/api/orders/{order['id']}", headers=staff_headers)

    assert resp.status_code == 403
    assert resp.get_json()["required_capability"] == "DELETE_ORDER"
