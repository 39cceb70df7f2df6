"""Tests for the customer bag endpoints."""

import pytest

from freshpick.schemas.orders import OrderCreate
from freshpick.services.order_service import OrderService
from freshpick.services.product_service import PRODUCTS


@pytest.fixture
def bag(client, customer_headers, make_product):
    product = make_product(price=4.0)
    response = client.post(
        "/api/bags",
        json={"name": "Weekly Basics", "items": [{"product": product["_id"], "quantity": 2}], "tags": ["Weekly"]},
        headers=customer_headers,
    )
    assert response.status_code == 201
    return response.json()["data"]


class TestBagCrud:
    def test_create_populates_items_and_totals(self, bag):
        assert bag["name"] == "Weekly Basics"
        assert bag["tags"] == ["weekly"]
        assert bag["item_count"] == 1
        assert bag["items"][0]["product"]["price"] == 4.0
        assert bag["total"] == 8.0

    def test_repeated_products_are_merged(self, client, customer_headers, make_product):
        product = make_product(sku="milk-1")
        items = [{"product": "MILK-1", "quantity": 1}, {"product": product["_id"], "quantity": 2}]

        response = client.post("/api/bags", json={"name": "Dairy", "items": items}, headers=customer_headers)

        data = response.json()["data"]
        assert data["item_count"] == 1
        assert data["items"][0]["quantity"] == 3

    def test_create_rejects_insufficient_stock(self, client, customer_headers, make_product):
        product = make_product(stock_qty=1)

        response = client.post(
            "/api/bags",
            json={"name": "Too much", "items": [{"product": product["_id"], "quantity": 5}]},
            headers=customer_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "insufficient_stock"

    def test_list_only_shows_own_bags(self, client, bag, customer_headers, make_user, headers_for):
        other = headers_for(make_user())

        assert len(client.get("/api/bags", headers=customer_headers).json()["data"]) == 1
        assert client.get("/api/bags", headers=other).json()["data"] == []
        assert client.get(f"/api/bags/{bag['id']}", headers=other).status_code == 404

    def test_update_changes_metadata(self, client, bag, customer_headers):
        response = client.put(
            f"/api/bags/{bag['id']}",
            json={"name": "Renamed", "tags": ["Family"]},
            headers=customer_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Renamed"
        assert data["tags"] == ["family"]
        assert data["item_count"] == 1

    def test_delete_is_soft(self, client, store, bag, customer_headers):
        response = client.delete(f"/api/bags/{bag['id']}", headers=customer_headers)

        assert response.status_code == 200
        assert client.get(f"/api/bags/{bag['id']}", headers=customer_headers).status_code == 404
        assert store.find_one("bags", {"_id": bag["id"]})["is_active"] is False

    def test_invalid_bag_id(self, client, customer_headers):
        response = client.get("/api/bags/not-an-id", headers=customer_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_id"

    def test_requires_authentication(self, client):
        assert client.get("/api/bags").status_code == 401


class TestBagItems:
    def test_adding_existing_product_increases_quantity(self, client, bag, customer_headers):
        product_id = bag["items"][0]["product"]["id"]

        response = client.post(
            f"/api/bags/{bag['id']}/items",
            json={"product": product_id, "quantity": 3},
            headers=customer_headers,
        )

        data = response.json()["data"]
        assert data["items"][0]["quantity"] == 5
        assert data["total"] == 20.0

    def test_adding_beyond_stock_is_rejected(self, client, bag, customer_headers):
        product_id = bag["items"][0]["product"]["id"]

        response = client.post(
            f"/api/bags/{bag['id']}/items",
            json={"product": product_id, "quantity": 19},
            headers=customer_headers,
        )

        assert response.status_code == 400

    def test_remove_item(self, client, bag, customer_headers):
        product_id = bag["items"][0]["product"]["id"]

        response = client.delete(f"/api/bags/{bag['id']}/items/{product_id}", headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["data"]["items"] == []

    def test_remove_missing_item(self, client, bag, customer_headers):
        response = client.delete(f"/api/bags/{bag['id']}/items/nope", headers=customer_headers)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "bag_item_not_found"

    def test_deleted_products_drop_out_of_bag_view(self, client, store, bag, customer_headers):
        store.delete_one(PRODUCTS, {"_id": bag["items"][0]["product"]["id"]})

        data = client.get(f"/api/bags/{bag['id']}", headers=customer_headers).json()["data"]

        assert data["items"] == []
        assert data["total"] == 0.0


class TestReorder:
    def _order(self, store, customer, products):
        data = OrderCreate(items=[{"product": p["_id"], "quantity": 2} for p in products])
        return OrderService(store).create_order(customer, data)

    def test_reorder_creates_bag_and_reports_unavailable(self, client, store, customer, customer_headers, make_product):
        kept = make_product(name="Brown Eggs")
        gone = make_product(name="Seasonal Mangoes")
        order = self._order(store, customer, [kept, gone])
        store.update_one(PRODUCTS, {"_id": gone["_id"]}, {"$set": {"archived": True}})

        response = client.post("/api/bags/reorder", json={"order_id": order["_id"]}, headers=customer_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["data"]["bag"]["name"] == f"Reorder {order['order_number']}"
        assert [i["product"]["name"] for i in body["data"]["bag"]["items"]] == ["Brown Eggs"]
        assert body["data"]["unavailable_items"] == [
            {"product_id": gone["_id"], "name": "Seasonal Mangoes", "reason": "unavailable"}
        ]
        assert "1 item(s) unavailable" in body["message"]

    def test_reorder_with_nothing_available(self, client, store, customer, customer_headers, make_product):
        product = make_product()
        order = self._order(store, customer, [product])
        store.update_one(PRODUCTS, {"_id": product["_id"]}, {"$set": {"stock_qty": 0}})

        response = client.post("/api/bags/reorder", json={"order_id": order["_id"]}, headers=customer_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "nothing_to_reorder"

    def test_cannot_reorder_someone_elses_order(self, client, store, make_user, customer_headers, make_product):
        order = self._order(store, make_user(), [make_product()])

        response = client.post("/api/bags/reorder", json={"order_id": order["_id"]}, headers=customer_headers)

        assert response.status_code == 404
