"""Tests for the wishlist, saved addresses, the contact form and customer messages."""

import pytest

from freshpick.services.product_service import PRODUCTS

ADDRESS = {
    "recipient_name": "Nimal Perera",
    "street_address": "12 Temple Road",
    "town": "Nugegoda",
    "city": "Colombo",
    "state": "Western",
    "postal_code": "10250",
    "phone_number": "+94771234567",
}


class TestWishlist:
    def test_add_by_sku_and_list(self, client, customer_headers, make_product):
        product = make_product(sku="tea-1")

        response = client.post("/api/wishlist", json={"product": "TEA-1"}, headers=customer_headers)

        assert response.status_code == 200
        assert [p["id"] for p in response.json()["data"]] == [product["_id"]]
        assert client.get("/api/wishlist", headers=customer_headers).json()["data"][0]["sku"] == "TEA-1"

    def test_adding_twice_keeps_one_entry(self, client, customer_headers, make_product):
        product = make_product()

        client.post("/api/wishlist", json={"product": product["_id"]}, headers=customer_headers)
        response = client.post("/api/wishlist", json={"product": product["_id"]}, headers=customer_headers)

        assert len(response.json()["data"]) == 1

    def test_remove_is_idempotent(self, client, customer_headers, make_product):
        product = make_product()
        client.post("/api/wishlist", json={"product": product["_id"]}, headers=customer_headers)

        for _ in range(2):
            response = client.delete(f"/api/wishlist/{product['_id']}", headers=customer_headers)
            assert response.status_code == 200
            assert response.json()["data"] == []

    def test_archived_products_drop_out(self, client, store, customer_headers, make_product):
        kept, archived = make_product(), make_product()
        for product in (kept, archived):
            client.post("/api/wishlist", json={"product": product["_id"]}, headers=customer_headers)

        store.update_one(PRODUCTS, {"_id": archived["_id"]}, {"$set": {"archived": True}})

        data = client.get("/api/wishlist", headers=customer_headers).json()["data"]
        assert [p["id"] for p in data] == [kept["_id"]]

    def test_unknown_product(self, client, customer_headers):
        response = client.post("/api/wishlist", json={"product": "no-such-product"}, headers=customer_headers)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "product_not_found"

    def test_wishlists_are_private(self, client, customer_headers, make_product, make_user, headers_for):
        client.post("/api/wishlist", json={"product": make_product()["_id"]}, headers=customer_headers)

        assert client.get("/api/wishlist", headers=headers_for(make_user())).json()["data"] == []

    def test_requires_sign_in(self, client):
        assert client.get("/api/wishlist").status_code == 401


class TestAddressBook:
    def test_add_defaults_country_and_type(self, client, customer_headers):
        response = client.post("/api/profile/addresses", json=ADDRESS, headers=customer_headers)

        assert response.status_code == 201
        saved = response.json()["data"]
        assert len(saved) == 1
        assert saved[0]["country_code"] == "LK"
        assert saved[0]["type"] == "Home"
        assert saved[0]["id"]

    def test_update_changes_only_given_fields(self, client, customer_headers):
        address_id = client.post("/api/profile/addresses", json=ADDRESS, headers=customer_headers).json()["data"][0]["id"]

        response = client.put(
            f"/api/profile/addresses/{address_id}",
            json={"city": "Kandy", "type": "Business"},
            headers=customer_headers,
        )

        updated = response.json()["data"][0]
        assert (updated["city"], updated["type"], updated["town"]) == ("Kandy", "Business", "Nugegoda")

    def test_delete(self, client, customer_headers):
        first = client.post("/api/profile/addresses", json=ADDRESS, headers=customer_headers).json()["data"][0]
        client.post("/api/profile/addresses", json={**ADDRESS, "type": "Other"}, headers=customer_headers)

        response = client.delete(f"/api/profile/addresses/{first['id']}", headers=customer_headers)

        remaining = response.json()["data"]
        assert [a["type"] for a in remaining] == ["Other"]
        assert client.get("/api/profile/addresses", headers=customer_headers).json()["data"] == remaining

    @pytest.mark.parametrize(
        "address_id, status_code",
        [("not-an-id", 400), ("0123456789abcdef01234567", 404)],
    )
    def test_unknown_address(self, client, customer_headers, address_id, status_code):
        response = client.delete(f"/api/profile/addresses/{address_id}", headers=customer_headers)

        assert response.status_code == status_code

    def test_other_users_address_is_not_found(self, client, customer_headers, make_user, headers_for):
        address_id = client.post("/api/profile/addresses", json=ADDRESS, headers=customer_headers).json()["data"][0]["id"]

        response = client.put(
            f"/api/profile/addresses/{address_id}", json={"city": "Galle"}, headers=headers_for(make_user())
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "address_not_found"

    def test_missing_required_field(self, client, customer_headers):
        incomplete = {k: v for k, v in ADDRESS.items() if k != "postal_code"}

        response = client.post("/api/profile/addresses", json=incomplete, headers=customer_headers)

        assert response.status_code == 400


class TestContact:
    def test_anonymous_message_is_stored_as_new(self, client, admin_headers):
        response = client.post(
            "/api/contact",
            json={"name": "Kamala", "email": "Kamala@Example.com", "message": "Where is my order?", "type": "order"},
        )

        assert response.status_code == 201
        assert response.json()["data"]["status"] == "new"
        listed = client.get("/api/admin/contact-messages", params={"status": "new"}, headers=admin_headers)
        item = listed.json()["data"]["items"][0]
        assert (item["type"], item["priority"], item["user_id"]) == ("order", "normal", None)

    def test_signed_in_sender_is_linked(self, client, customer, customer_headers, admin_headers):
        client.post(
            "/api/contact",
            json={"email": customer["email"], "message": "Hello"},
            headers=customer_headers,
        )

        items = client.get("/api/admin/contact-messages", headers=admin_headers).json()["data"]["items"]
        assert items[0]["user_id"] == customer["_id"]

    def test_invalid_email(self, client):
        response = client.post("/api/contact", json={"email": "nope", "message": "Hi"})

        assert response.status_code == 400

    def test_customers_cannot_read_contact_messages(self, client, customer_headers):
        assert client.get("/api/admin/contact-messages", headers=customer_headers).status_code == 403


class TestMessages:
    def _send(self, client, admin_headers, recipient, subject="Your delivery"):
        return client.post(
            "/api/admin/messages",
            json={"recipient_id": recipient["_id"], "subject": subject, "content": "Arriving tomorrow"},
            headers=admin_headers,
        )

    def test_inbox_shows_sender_and_unread_count(self, client, admin, admin_headers, customer, customer_headers):
        assert self._send(client, admin_headers, customer).status_code == 201

        data = client.get("/api/messages", headers=customer_headers).json()["data"]

        assert data["unread"] == 1
        assert data["items"][0]["subject"] == "Your delivery"
        assert data["items"][0]["sender"]["email"] == admin["email"]

    def test_mark_read(self, client, admin_headers, customer, customer_headers):
        message = self._send(client, admin_headers, customer).json()["data"]

        response = client.put(f"/api/messages/{message['id']}/read", headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["data"]["is_read"] is True
        assert client.get("/api/messages", headers=customer_headers).json()["data"]["unread"] == 0

    def test_cannot_mark_someone_elses_message(self, client, admin_headers, customer, make_user, headers_for):
        message = self._send(client, admin_headers, customer).json()["data"]

        response = client.put(f"/api/messages/{message['id']}/read", headers=headers_for(make_user()))

        assert response.status_code == 404

    def test_unknown_recipient(self, client, admin_headers):
        response = self._send(client, admin_headers, {"_id": "0123456789abcdef01234567"})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "recipient_not_found"

    def test_customers_cannot_send(self, client, customer, customer_headers):
        assert self._send(client, customer_headers, customer).status_code == 403
