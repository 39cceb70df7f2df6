"""Bags: named, reusable shopping lists owned by a customer.

Items store the product id, quantity and the price at the time the item was
last touched. Reads re-price every item from the current catalogue.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from freshpick.adapters.store.base import DESCENDING, AbstractDocumentStore, Document
from freshpick.core.errors import NotFoundAppError, ValidationAppError
from freshpick.core.security import utcnow
from freshpick.schemas.bags import BagCreate, BagItemInput, BagUpdate, ReorderRequest
from freshpick.services.category_service import require_valid_id
from freshpick.services.product_service import PRODUCTS, ProductService, product_view
from freshpick.services.recurring_order_service import ORDERS
from freshpick.utils.bag_calculations import calculate_bag_totals, calculate_item_total
from freshpick.utils.documents import to_public

logger = logging.getLogger(__name__)

BAGS = "bags"


class BagService:
    def __init__(self, store: AbstractDocumentStore) -> None:
        self.store = store
        self.products = ProductService(store)

    def _available_product(self, ref: str, quantity: int) -> Document:
        product = self.products.find(ref)
        if not product or product.get("archived"):
            raise NotFoundAppError(
                code="product_not_found",
                message=f"Product {ref} not found",
                details={"resource": "product", "resource_id": ref},
            )
        if product.get("stock_qty", 0) < quantity:
            raise ValidationAppError(
                code="insufficient_stock",
                message=f"Insufficient stock for {product['name']}",
                details={"available": product.get("stock_qty", 0), "requested": quantity},
            )
        return product

    def _merge_items(self, requested: Iterable[BagItemInput]) -> list[dict[str, Any]]:
        """Resolve requested lines, combining repeats of the same product."""
        merged: dict[str, dict[str, Any]] = {}
        for line in requested:
            product = self.products.find(line.product)
            if product is None:
                raise NotFoundAppError(code="product_not_found", message=f"Product {line.product} not found")
            entry = merged.setdefault(product["_id"], {"product_id": product["_id"], "quantity": 0})
            entry["quantity"] += line.quantity
        items = []
        for entry in merged.values():
            product = self._available_product(entry["product_id"], entry["quantity"])
            items.append({**entry, "price": float(product["price"]), "added_at": utcnow()})
        return items

    def get_owned(self, bag_id: str, user: Document) -> Document:
        require_valid_id(bag_id, "bag")
        bag = self.store.find_one(BAGS, {"_id": bag_id, "user_id": user["_id"], "is_active": True})
        if not bag:
            raise NotFoundAppError(code="bag_not_found", message="Bag not found")
        return bag

    def populate(self, bag: Document) -> dict[str, Any]:
        """Attach current product data and totals; vanished products are dropped."""
        ids = [item["product_id"] for item in bag.get("items", [])]
        products = {p["_id"]: p for p in self.store.find(PRODUCTS, {"_id": {"$in": ids}})} if ids else {}

        view = to_public(bag)
        items = []
        pairs = []
        for item in bag.get("items", []):
            product = products.get(item["product_id"])
            if product is None:
                continue
            totals = calculate_item_total(product, item["quantity"])
            items.append(
                {
                    "product": product_view(product),
                    "quantity": item["quantity"],
                    "price": product.get("price"),
                    "added_at": item.get("added_at"),
                    "total": totals.total,
                    "original_total": totals.original_total,
                    "savings": totals.savings,
                    "actual_quantity": totals.actual_quantity,
                }
            )
            pairs.append((product, item["quantity"]))
        totals = calculate_bag_totals(pairs)
        view["items"] = items
        view["item_count"] = len(items)
        view["total"] = totals.total
        view["original_total"] = totals.original_total
        view["savings"] = totals.savings
        return view

    def list_bags(self, user: Document) -> list[dict[str, Any]]:
        bags = self.store.find(
            BAGS,
            {"user_id": user["_id"], "is_active": True},
            sort=[("updated_at", DESCENDING)],
        )
        return [self.populate(bag) for bag in bags]

    def create(self, user: Document, data: BagCreate) -> dict[str, Any]:
        now = utcnow()
        bag = self.store.insert_one(
            BAGS,
            {
                "user_id": user["_id"],
                "name": data.name,
                "description": data.description,
                "items": self._merge_items(data.items),
                "tags": [t.lower() for t in data.tags],
                "is_active": True,
                "created_at": now,
                "updated_at": now,
            },
        )
        logger.info("bag.created", extra={"bag_id": bag["_id"], "item_count": len(bag["items"])})
        return self.populate(bag)

    def get(self, bag_id: str, user: Document) -> dict[str, Any]:
        return self.populate(self.get_owned(bag_id, user))

    def update(self, bag_id: str, user: Document, data: BagUpdate) -> dict[str, Any]:
        self.get_owned(bag_id, user)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("tags") is not None:
            changes["tags"] = [t.lower() for t in changes["tags"]]
        changes["updated_at"] = utcnow()
        bag = self.store.find_one_and_update(BAGS, {"_id": bag_id}, {"$set": changes})
        return self.populate(bag)

    def delete(self, bag_id: str, user: Document) -> None:
        self.get_owned(bag_id, user)
        self.store.update_one(BAGS, {"_id": bag_id}, {"$set": {"is_active": False, "updated_at": utcnow()}})
        logger.info("bag.deleted", extra={"bag_id": bag_id})

    def add_item(self, bag_id: str, user: Document, data: BagItemInput) -> dict[str, Any]:
        """Add a product or increase its quantity, re-checking stock for the total."""
        bag = self.get_owned(bag_id, user)
        product = self.products.find(data.product)
        if product is None:
            raise NotFoundAppError(code="product_not_found", message=f"Product {data.product} not found")

        items = [dict(item) for item in bag.get("items", [])]
        existing = next((item for item in items if item["product_id"] == product["_id"]), None)
        quantity = data.quantity + (existing["quantity"] if existing else 0)
        product = self._available_product(product["_id"], quantity)

        if existing:
            existing["quantity"] = quantity
            existing["price"] = float(product["price"])
        else:
            items.append(
                {
                    "product_id": product["_id"],
                    "quantity": quantity,
                    "price": float(product["price"]),
                    "added_at": utcnow(),
                }
            )
        updated = self.store.find_one_and_update(
            BAGS,
            {"_id": bag_id},
            {"$set": {"items": items, "updated_at": utcnow()}},
        )
        return self.populate(updated)

    def remove_item(self, bag_id: str, user: Document, product_id: str) -> dict[str, Any]:
        bag = self.get_owned(bag_id, user)
        if not any(item["product_id"] == product_id for item in bag.get("items", [])):
            raise NotFoundAppError(code="bag_item_not_found", message="Product is not in this bag")
        updated = self.store.find_one_and_update(
            BAGS,
            {"_id": bag_id},
            {"$pull": {"items": {"product_id": product_id}}, "$set": {"updated_at": utcnow()}},
        )
        return self.populate(updated)

    def reorder(self, user: Document, data: ReorderRequest) -> tuple[dict[str, Any], list[dict[str, Any]]]:
        """Create a bag from a previous order.

        Returns:
            ``(bag, unavailable)`` where ``unavailable`` lists the order items
            that are no longer sold or lack stock.
        """
        require_valid_id(data.order_id, "order")
        order = self.store.find_one(ORDERS, {"_id": data.order_id, "customer_id": user["_id"]})
        if not order:
            raise NotFoundAppError(code="order_not_found", message="Order not found")

        now = utcnow()
        items: list[dict[str, Any]] = []
        unavailable: list[dict[str, Any]] = []
        for line in order.get("items", []):
            product = self.store.find_one(PRODUCTS, {"_id": line["product_id"]})
            if not product or product.get("archived"):
                unavailable.append({"product_id": line["product_id"], "name": line.get("name"), "reason": "unavailable"})
                continue
            if product.get("stock_qty", 0) < line["quantity"]:
                unavailable.append(
                    {
                        "product_id": line["product_id"],
                        "name": product["name"],
                        "reason": "insufficient_stock",
                        "available": product.get("stock_qty", 0),
                    }
                )
                continue
            items.append(
                {
                    "product_id": product["_id"],
                    "quantity": line["quantity"],
                    "price": float(product["price"]),
                    "added_at": now,
                }
            )

        if not items:
            raise ValidationAppError(
                code="nothing_to_reorder",
                message="None of the items from this order are available",
                details={"unavailable": unavailable},
            )

        bag = self.store.insert_one(
            BAGS,
            {
                "user_id": user["_id"],
                "name": data.name or f"Reorder {order['order_number']}",
                "description": None,
                "items": items,
                "tags": ["reorder"],
                "source_order_id": order["_id"],
                "is_active": True,
                "created_at": now,
                "updated_at": now,
            },
        )
        logger.info(
            "bag.reordered",
            extra={"bag_id": bag["_id"], "order_id": order["_id"], "unavailable_count": len(unavailable)},
        )
        return self.populate(bag), unavailable
