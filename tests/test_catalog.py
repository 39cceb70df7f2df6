"""Tests for the public catalogue endpoints."""

from freshpick.schemas.catalog import BlogCreate
from freshpick.services.blog_service import BlogService


class TestProducts:
    def test_list_is_paginated_and_hides_archived(self, client, make_product):
        for _ in range(3):
            make_product()
        make_product(archived=True)

        response = client.get("/api/products", params={"limit": 2})

        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data["items"]) == 2
        assert data["pagination"] == {
            "page": 1,
            "limit": 2,
            "total": 3,
            "pages": 2,
            "has_next": True,
            "has_prev": False,
        }

    def test_items_embed_category_and_stock_flags(self, client, make_product, category):
        make_product(stock_qty=2, cost_price=8.0)

        item = client.get("/api/products").json()["data"]["items"][0]

        assert item["category"]["id"] == category["_id"]
        assert item["is_low_stock"] is True
        assert item["is_out_of_stock"] is False
        assert item["profit_margin"] == 2.0
        assert item["profit_percentage"] == 25.0
        assert "_id" not in item

    def test_search_is_case_insensitive_and_literal(self, client, make_product):
        make_product(name="Organic Carrots")
        make_product(name="Red Apples")

        found = client.get("/api/products", params={"search": "CARROT"}).json()["data"]["items"]
        literal = client.get("/api/products", params={"search": "(.*)"}).json()["data"]["items"]

        assert [p["name"] for p in found] == ["Organic Carrots"]
        assert literal == []

    def test_price_range_and_sort(self, client, make_product):
        for price in (3.0, 12.0, 7.5, 20.0):
            make_product(price=price)

        response = client.get(
            "/api/products",
            params={"min_price": 5, "max_price": 15, "sort": "price-desc"},
        )

        assert [p["price"] for p in response.json()["data"]["items"]] == [12.0, 7.5]

    def test_in_stock_filter(self, client, make_product):
        make_product(stock_qty=0)
        make_product(stock_qty=4)

        items = client.get("/api/products", params={"in_stock": "true"}).json()["data"]["items"]

        assert [p["stock_qty"] for p in items] == [4]

    def test_unknown_sort_is_rejected(self, client):
        response = client.get("/api/products", params={"sort": "random"})

        assert response.status_code == 400

    def test_limit_is_capped(self, client, make_product):
        make_product()

        response = client.get("/api/products", params={"limit": 1000})

        assert response.json()["data"]["pagination"]["limit"] == 100

    def test_get_by_id_sku_or_slug(self, client, make_product):
        product = make_product(name="Golden Bananas", sku="ban-01")

        for ref in (product["_id"], "BAN-01", "ban-01", "golden-bananas"):
            response = client.get(f"/api/products/{ref}")
            assert response.status_code == 200, ref
            assert response.json()["data"]["id"] == product["_id"]

    def test_get_unknown_product(self, client):
        response = client.get("/api/products/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "product_not_found"

    def test_sku_exists(self, client, make_product):
        make_product(sku="abc-1")

        assert client.get("/api/products/exists/ABC-1").json()["data"]["exists"] is True
        assert client.get("/api/products/exists/zzz").json()["data"] == {"sku": "ZZZ", "exists": False}


class TestCategories:
    def test_only_active_categories_are_listed(self, client, admin_headers, category):
        client.post("/api/admin/categories", json={"name": "Hidden", "is_active": False}, headers=admin_headers)

        response = client.get("/api/categories")

        assert response.status_code == 200
        assert [c["slug"] for c in response.json()["data"]] == ["fresh-vegetables"]


class TestBlogs:
    def _post(self, store, admin, **fields):
        data = {"title": "Seasonal Greens Guide", "content": "Eat your greens.", "published": True, **fields}
        return BlogService(store).create(BlogCreate(**data), admin)

    def test_only_published_posts_are_listed(self, client, store, admin):
        self._post(store, admin)
        self._post(store, admin, title="Draft post here", published=False)

        items = client.get("/api/blogs").json()["data"]["items"]

        assert [p["slug"] for p in items] == ["seasonal-greens-guide"]
        assert items[0]["author_name"].startswith("Admin")

    def test_reading_counts_views(self, client, store, admin):
        self._post(store, admin)

        client.get("/api/blogs/seasonal-greens-guide")
        response = client.get("/api/blogs/seasonal-greens-guide")

        assert response.status_code == 200
        assert response.json()["data"]["views"] == 2

    def test_unpublished_post_is_not_found(self, client, store, admin):
        self._post(store, admin, title="Draft post here", published=False)

        response = client.get("/api/blogs/draft-post-here")

        assert response.status_code == 404

    def test_filter_by_tag(self, client, store, admin):
        self._post(store, admin, tags=["Recipes"])
        self._post(store, admin, title="Farm news today", tags=["news"])

        items = client.get("/api/blogs", params={"tag": "recipes"}).json()["data"]["items"]

        assert [p["title"] for p in items] == ["Seasonal Greens Guide"]
