"""Product catalogue: browsing, lookup and admin maintenance.

Products are addressed by id, SKU or slug. SKUs are stored upper-case and
slugs lower-case, and both are unique.
"""

from __future__ import annotations

import logging
from typing import Any

from freshpick.adapters.store.base import (
    ASCENDING,
    DESCENDING,
    AbstractDocumentStore,
    Document,
    is_valid_id,
)
from freshpick.core.errors import ConflictAppError, NotFoundAppError, ValidationAppError
from freshpick.core.security import utcnow
from freshpick.schemas.catalog import ProductCreate, ProductUpdate
from freshpick.services.category_service import CATEGORIES, require_valid_id
from freshpick.utils.documents import contains_pattern, to_public
from freshpick.utils.pagination import Pagination, build_pagination, skip_for
from freshpick.utils.slugify import slugify

logger = logging.getLogger(__name__)

PRODUCTS = "products"
DEFAULT_MIN_STOCK_LEVEL = 5

SORTS: dict[str, list[tuple[str, int]]] = {
    "price-asc": [("price", ASCENDING), ("_id", ASCENDING)],
    "price-desc": [("price", DESCENDING), ("_id", ASCENDING)],
    "newest": [("created_at", DESCENDING), ("_id", DESCENDING)],
    "oldest": [("created_at", ASCENDING), ("_id", ASCENDING)],
}


def product_ref_filter(ref: str) -> dict[str, Any]:
    """Filter matching a product by id, SKU or slug."""
    ref = ref.strip()
    conditions: list[dict[str, Any]] = [{"sku": ref.upper()}, {"slug": ref.lower()}]
    if is_valid_id(ref):
        conditions.insert(0, {"_id": ref})
    return {"$or": conditions}


def product_view(product: Document, category: Document | None = None) -> dict[str, Any]:
    """Public product representation with derived stock and margin fields."""
    view = to_public(product)
    stock = product.get("stock_qty", 0)
    price = product.get("price") or 0
    cost = product.get("cost_price")
    view["is_out_of_stock"] = stock <= 0
    view["is_low_stock"] = stock <= product.get("min_stock_level", DEFAULT_MIN_STOCK_LEVEL)
    if cost is not None:
        view["profit_margin"] = round(price - cost, 2)
        view["profit_percentage"] = round((price - cost) / cost * 100, 2) if cost else None
    if category is not None:
        view["category"] = {"id": category["_id"], "name": category["name"], "slug": category["slug"]}
    return view


class ProductService:
    def __init__(self, store: AbstractDocumentStore) -> None:
        self.store = store

    def _categories_by_id(self, ids: set[str]) -> dict[str, Document]:
        if not ids:
            return {}
        return {c["_id"]: c for c in self.store.find(CATEGORIES, {"_id": {"$in": sorted(ids)}})}

    def views(self, products: list[Document]) -> list[dict[str, Any]]:
        categories = self._categories_by_id({p["category_id"] for p in products if p.get("category_id")})
        return [product_view(p, categories.get(p.get("category_id"))) for p in products]

    def list_products(
        self,
        *,
        page: int,
        limit: int,
        search: str | None = None,
        category_id: str | None = None,
        supplier_id: str | None = None,
        archived: bool = False,
        min_price: float | None = None,
        max_price: float | None = None,
        in_stock: bool | None = None,
        sort: str = "newest",
    ) -> tuple[list[dict[str, Any]], Pagination]:
        filter: dict[str, Any] = {"archived": True} if archived else {"archived": {"$ne": True}}
        if search:
            pattern = contains_pattern(search)
            filter["$or"] = [
                {"name": pattern},
                {"sku": pattern},
                {"description": pattern},
                {"tags": pattern},
                {"search_content": pattern},
            ]
        if category_id:
            filter["category_id"] = category_id
        if supplier_id:
            filter["supplier_id"] = supplier_id
        if min_price is not None or max_price is not None:
            price: dict[str, float] = {}
            if min_price is not None:
                price["$gte"] = min_price
            if max_price is not None:
                price["$lte"] = max_price
            filter["price"] = price
        if in_stock is True:
            filter["stock_qty"] = {"$gt": 0}
        elif in_stock is False:
            filter["stock_qty"] = {"$lte": 0}

        if sort not in SORTS:
            raise ValidationAppError(
                code="invalid_sort",
                message=f"Unknown sort '{sort}'. Use one of: {', '.join(SORTS)}",
            )

        total = self.store.count(PRODUCTS, filter)
        products = self.store.find(
            PRODUCTS,
            filter,
            sort=SORTS[sort],
            skip=skip_for(page, limit),
            limit=limit,
        )
        return self.views(products), build_pagination(page, limit, total)

    def find(self, ref: str) -> Document | None:
        return self.store.find_one(PRODUCTS, product_ref_filter(ref))

    def get(self, ref: str) -> Document:
        product = self.find(ref)
        if not product:
            raise NotFoundAppError(
                code="product_not_found",
                message="Product not found",
                details={"resource": "product", "resource_id": ref},
            )
        return product

    def get_view(self, ref: str) -> dict[str, Any]:
        return self.views([self.get(ref)])[0]

    def sku_exists(self, sku: str) -> bool:
        return self.store.count(PRODUCTS, {"sku": sku.strip().upper()}) > 0

    def list_low_stock(self) -> list[dict[str, Any]]:
        products = self.store.find(
            PRODUCTS,
            {"archived": {"$ne": True}},
            sort=[("stock_qty", ASCENDING)],
        )
        low = [
            p
            for p in products
            if p.get("stock_qty", 0) <= p.get("min_stock_level", DEFAULT_MIN_STOCK_LEVEL)
        ]
        return self.views(low)

    def _check_references(self, category_id: str | None, supplier_id: str | None) -> None:
        if category_id:
            require_valid_id(category_id, "category")
            if not self.store.find_one(CATEGORIES, {"_id": category_id}):
                raise NotFoundAppError(code="category_not_found", message="Category not found")
        if supplier_id:
            require_valid_id(supplier_id, "supplier")
            if not self.store.find_one("suppliers", {"_id": supplier_id}):
                raise NotFoundAppError(code="supplier_not_found", message="Supplier not found")

    def _ensure_unique(self, *, sku: str | None, slug: str | None, exclude_id: str | None = None) -> None:
        for field, value in (("sku", sku), ("slug", slug)):
            if not value:
                continue
            filter: dict[str, Any] = {field: value}
            if exclude_id:
                filter["_id"] = {"$ne": exclude_id}
            if self.store.find_one(PRODUCTS, filter):
                raise ConflictAppError(
                    code=f"product_{field}_taken",
                    message=f"Product with this {field.upper() if field == 'sku' else field} already exists",
                    details={"field": field},
                )

    def create(self, data: ProductCreate) -> Document:
        sku = data.sku.upper()
        slug = slugify(data.slug or data.name)
        if not slug:
            raise ValidationAppError(code="invalid_slug", message="Product name must contain letters or digits")
        self._check_references(data.category_id, data.supplier_id)
        self._ensure_unique(sku=sku, slug=slug)

        now = utcnow()
        document = data.model_dump(exclude_none=True)
        document.update(
            {
                "sku": sku,
                "slug": slug,
                "min_stock_level": data.min_stock_level
                if data.min_stock_level is not None
                else DEFAULT_MIN_STOCK_LEVEL,
                "is_sold_as_unit": True if data.is_sold_as_unit is None else data.is_sold_as_unit,
                "base_measurement_quantity": data.base_measurement_quantity or 1,
                "measurement_unit": data.measurement_unit or "unit",
                "discount_percentage": data.discount_percentage or 0,
                "images": data.images or [],
                "tags": data.tags or [],
                "attributes": data.attributes or {},
                "archived": bool(data.archived),
                "created_at": now,
                "updated_at": now,
            }
        )
        product = self.store.insert_one(PRODUCTS, document)
        logger.info("product.created", extra={"product_id": product["_id"], "sku": sku})
        return product

    def update(self, ref: str, data: ProductUpdate) -> tuple[Document, Document]:
        before = self.get(ref)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("sku"):
            changes["sku"] = changes["sku"].upper()
        if changes.get("slug"):
            changes["slug"] = slugify(changes["slug"])
        self._ensure_unique(
            sku=changes.get("sku"),
            slug=changes.get("slug"),
            exclude_id=before["_id"],
        )
        self._check_references(changes.get("category_id"), changes.get("supplier_id"))

        changes["updated_at"] = utcnow()
        after = self.store.find_one_and_update(PRODUCTS, {"_id": before["_id"]}, {"$set": changes})
        if after is None:
            raise NotFoundAppError(code="product_not_found", message="Product not found")
        logger.info("product.updated", extra={"product_id": before["_id"], "fields": sorted(changes)})
        return before, after

    def archive(self, ref: str) -> tuple[Document, Document]:
        before = self.get(ref)
        after = self.store.find_one_and_update(
            PRODUCTS,
            {"_id": before["_id"]},
            {"$set": {"archived": True, "updated_at": utcnow()}},
        )
        logger.info("product.archived", extra={"product_id": before["_id"]})
        return before, after or before

    def delete(self, ref: str) -> Document:
        product = self.get(ref)
        self.store.delete_one(PRODUCTS, {"_id": product["_id"]})
        logger.info("product.deleted", extra={"product_id": product["_id"]})
        return product

    def reserve_stock(self, product_id: str, quantity: int) -> bool:
        """Atomically take ``quantity`` units if that many are available."""
        return self.store.update_one(
            PRODUCTS,
            {"_id": product_id, "stock_qty": {"$gte": quantity}},
            {"$inc": {"stock_qty": -quantity}},
        )

    def release_stock(self, product_id: str, quantity: int) -> None:
        self.store.update_one(PRODUCTS, {"_id": product_id}, {"$inc": {"stock_qty": quantity}})
