"""Tests for order placement, history, cancellation and admin fulfilment."""

import re

import pytest

from freshpick.services.product_service import PRODUCTS

ORDER_NUMBER = re.compile(r"^ORD-\d{13}-[A-Z0-9]{9}$")


def _stock(store, product):
    return store.find_one(PRODUCTS, {"_id": product["_id"]})["stock_qty"]


@pytest.fixture
def place_order(client, customer_headers):
    def _place(items, headers=None, **fields):
        payload = {"items": [{"product": p["_id"], "quantity": q} for p, q in items], **fields}
        return client.post("/api/orders", json=payload, headers=headers or customer_headers)

    return _place


class TestCreateOrder:
    def test_prices_order_and_takes_stock(self, store, customer, place_order, make_product):
        product = make_product(price=10.0)

        response = place_order([(product, 2)])

        assert response.status_code == 201
        order = response.json()["data"]
        assert ORDER_NUMBER.match(order["order_number"])
        assert order["customer_id"] == customer["_id"]
        assert order["status"] == "pending"
        assert order["payment_status"] == "pending"
        assert order["items"][0] == {
            "product_id": product["_id"],
            "sku": "SKU-001",
            "name": product["name"],
            "quantity": 2,
            "price": 10.0,
            "discount_percentage": 0.0,
            "total": 20.0,
        }
        assert (order["subtotal"], order["shipping"], order["discount"], order["total"]) == (20.0, 5.0, 0.0, 25.0)
        assert _stock(store, product) == 18

    def test_free_shipping_and_product_discount(self, place_order, make_product):
        product = make_product(price=30.0, discount_percentage=10)

        order = place_order([(product, 2)]).json()["data"]

        assert order["subtotal"] == 60.0
        assert order["shipping"] == 0.0
        assert order["discount"] == 6.0
        assert order["total"] == 54.0

    def test_shipping_defaults_to_registration_address(self, place_order, make_product):
        order = place_order([(make_product(), 1)]).json()["data"]

        assert order["shipping_address"]["city"] == "Colombo"
        assert order["shipping_address"]["country"] == "LK"
        assert order["billing_address"] == order["shipping_address"]

    def test_explicit_shipping_address(self, place_order, make_product):
        address = {"street": "5 Lake Drive", "city": "Galle", "country": "LK"}

        order = place_order([(make_product(), 1)], shipping_address=address).json()["data"]

        assert order["shipping_address"]["street"] == "5 Lake Drive"

    def test_cash_on_delivery_is_stored_as_cash(self, place_order, make_product):
        order = place_order([(make_product(), 1)], payment_method="cash_on_delivery").json()["data"]

        assert order["payment_method"] == "cash"

    def test_insufficient_stock_takes_nothing(self, store, place_order, make_product):
        plenty = make_product(stock_qty=10)
        scarce = make_product(stock_qty=1)

        response = place_order([(plenty, 2), (scarce, 2)])

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "insufficient_stock"
        assert _stock(store, plenty) == 10
        assert _stock(store, scarce) == 1

    def test_unknown_or_archived_product(self, client, customer_headers, make_product):
        archived = make_product(archived=True)

        for ref in ("no-such-product", archived["_id"]):
            response = client.post(
                "/api/orders",
                json={"items": [{"product": ref, "quantity": 1}]},
                headers=customer_headers,
            )
            assert response.status_code == 400
            assert response.json()["error"]["code"] == "product_not_found"

    def test_empty_order_is_rejected(self, client, customer_headers):
        response = client.post("/api/orders", json={"items": []}, headers=customer_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "validation_failed"

    def test_recurring_order_requires_pattern(self, place_order, make_product):
        response = place_order([(make_product(), 1)], is_recurring=True)

        assert response.status_code == 400

    def test_recurrence_marks_order_recurring(self, place_order, make_product):
        order = place_order([(make_product(), 1)], recurrence={"days_of_week": [1, 4]}).json()["data"]

        assert order["is_recurring"] is True
        assert order["schedule_status"] == "active"
        assert order["next_delivery_at"] is not None
        assert order["generated_count"] == 0

    def test_invalid_recurrence(self, place_order, make_product):
        response = place_order([(make_product(), 1)], recurrence={"days_of_week": [7]})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_recurrence"


class TestOrderHistory:
    def test_customer_id_filter_is_ignored_for_customers(
        self, client, customer_headers, place_order, make_product, make_user, headers_for
    ):
        place_order([(make_product(), 1)])
        other = make_user()
        place_order([(make_product(), 1)], headers=headers_for(other))

        data = client.get("/api/orders", params={"customer_id": other["_id"]}, headers=customer_headers).json()["data"]

        assert data["pagination"]["total"] == 1
        assert data["items"][0]["customer_id"] != other["_id"]

    def test_admin_can_filter_by_customer(self, client, admin_headers, customer, place_order, make_product):
        place_order([(make_product(), 1)])

        data = client.get("/api/orders", params={"customer_id": customer["_id"]}, headers=admin_headers).json()["data"]

        assert data["pagination"]["total"] == 1

    def test_other_customers_order_is_not_found(self, client, place_order, make_product, make_user, headers_for):
        order = place_order([(make_product(), 1)]).json()["data"]

        response = client.get(f"/api/orders/{order['id']}", headers=headers_for(make_user()))

        assert response.status_code == 404

    def test_admin_can_read_any_order(self, client, admin_headers, place_order, make_product):
        order = place_order([(make_product(), 1)]).json()["data"]

        response = client.get(f"/api/orders/{order['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["order_number"] == order["order_number"]


class TestCancellation:
    def test_cancel_restocks(self, client, store, customer_headers, place_order, make_product):
        product = make_product()
        order = place_order([(product, 3)]).json()["data"]

        response = client.post(f"/api/orders/{order['id']}/cancel", headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "cancelled"
        assert _stock(store, product) == 20

    def test_cannot_cancel_twice(self, client, store, customer_headers, place_order, make_product):
        product = make_product()
        order = place_order([(product, 3)]).json()["data"]
        client.post(f"/api/orders/{order['id']}/cancel", headers=customer_headers)

        response = client.post(f"/api/orders/{order['id']}/cancel", headers=customer_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "order_not_cancellable"
        assert _stock(store, product) == 20

    def test_cannot_cancel_shipped_order(self, client, admin_headers, customer_headers, place_order, make_product):
        order = place_order([(make_product(), 1)]).json()["data"]
        client.put(f"/api/admin/orders/{order['id']}", json={"status": "shipped"}, headers=admin_headers)

        response = client.post(f"/api/orders/{order['id']}/cancel", headers=customer_headers)

        assert response.status_code == 400

    def test_cancelling_recurring_order_ends_schedule(self, client, customer_headers, place_order, make_product):
        order = place_order([(make_product(), 1)], recurrence={"days_of_week": [2]}).json()["data"]

        cancelled = client.post(f"/api/orders/{order['id']}/cancel", headers=customer_headers).json()["data"]

        assert cancelled["schedule_status"] == "ended"
        assert "next_delivery_at" not in cancelled


class TestAdminFulfilment:
    def test_delivered_stamps_actual_delivery(self, client, admin_headers, place_order, make_product):
        order = place_order([(make_product(), 1)]).json()["data"]

        response = client.put(
            f"/api/admin/orders/{order['id']}",
            json={"status": "delivered", "payment_status": "paid", "tracking_number": "TRK-1"},
            headers=admin_headers,
        )

        data = response.json()["data"]
        assert data["status"] == "delivered"
        assert data["payment_status"] == "paid"
        assert data["actual_delivery"] is not None

    def test_admin_cancel_restocks_and_cannot_reopen(self, client, store, admin_headers, place_order, make_product):
        product = make_product()
        order = place_order([(product, 4)]).json()["data"]

        client.put(f"/api/admin/orders/{order['id']}", json={"status": "cancelled"}, headers=admin_headers)
        reopen = client.put(f"/api/admin/orders/{order['id']}", json={"status": "pending"}, headers=admin_headers)

        assert _stock(store, product) == 20
        assert reopen.status_code == 400
        assert reopen.json()["error"]["code"] == "order_cancelled"

    @pytest.mark.parametrize("shipped_status", ["shipped", "delivered"])
    def test_admin_cancel_after_dispatch_keeps_stock(
        self, client, store, admin_headers, place_order, make_product, shipped_status
    ):
        product = make_product()
        order = place_order([(product, 4)]).json()["data"]
        client.put(f"/api/admin/orders/{order['id']}", json={"status": shipped_status}, headers=admin_headers)

        response = client.put(f"/api/admin/orders/{order['id']}", json={"status": "cancelled"}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "cancelled"
        assert _stock(store, product) == 16

    def test_admin_list_filters_by_status(self, client, admin_headers, place_order, make_product):
        first = place_order([(make_product(), 1)]).json()["data"]
        place_order([(make_product(), 1)])
        client.put(f"/api/admin/orders/{first['id']}", json={"status": "confirmed"}, headers=admin_headers)

        data = client.get("/api/admin/orders", params={"status": "confirmed"}, headers=admin_headers).json()["data"]

        assert [o["id"] for o in data["items"]] == [first["id"]]

    def test_unknown_status_is_rejected(self, client, admin_headers, place_order, make_product):
        order = place_order([(make_product(), 1)]).json()["data"]

        response = client.put(f"/api/admin/orders/{order['id']}", json={"status": "lost"}, headers=admin_headers)

        assert response.status_code == 400

    def test_customers_cannot_use_admin_routes(self, client, customer_headers):
        response = client.get("/api/admin/orders", headers=customer_headers)

        assert response.status_code == 403
