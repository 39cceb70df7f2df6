"""Wishlists: one list of saved products per customer."""

from __future__ import annotations

import logging
from typing import Any

from freshpick.adapters.store.base import AbstractDocumentStore, Document
from freshpick.core.errors import NotFoundAppError
from freshpick.core.security import utcnow
from freshpick.services.product_service import PRODUCTS, ProductService

logger = logging.getLogger(__name__)

WISHLISTS = "wishlists"


class WishlistService:
    def __init__(self, store: AbstractDocumentStore) -> None:
        self.store = store
        self.products = ProductService(store)

    def list_products(self, user: Document) -> list[dict[str, Any]]:
        """Saved products in the order they were added; archived or deleted ones are left out."""
        wishlist = self.store.find_one(WISHLISTS, {"user_id": user["_id"]})
        ids = wishlist.get("product_ids", []) if wishlist else []
        if not ids:
            return []
        found = {
            p["_id"]: p
            for p in self.store.find(PRODUCTS, {"_id": {"$in": ids}, "archived": {"$ne": True}})
        }
        return self.products.views([found[i] for i in ids if i in found])

    def add(self, user: Document, ref: str) -> list[dict[str, Any]]:
        product = self.products.find(ref)
        if not product or product.get("archived"):
            raise NotFoundAppError(
                code="product_not_found",
                message="Product not found",
                details={"resource": "product", "resource_id": ref},
            )
        now = utcnow()
        update = {"$addToSet": {"product_ids": product["_id"]}, "$set": {"updated_at": now}}
        if not self.store.update_one(WISHLISTS, {"user_id": user["_id"]}, update):
            self.store.insert_one(
                WISHLISTS,
                {"user_id": user["_id"], "product_ids": [product["_id"]], "created_at": now, "updated_at": now},
            )
        logger.info("wishlist.product_added", extra={"user_id": user["_id"], "product_id": product["_id"]})
        return self.list_products(user)

    def remove(self, user: Document, product_id: str) -> list[dict[str, Any]]:
        """Remove a product; removing one that is not saved is a no-op."""
        self.store.update_one(
            WISHLISTS,
            {"user_id": user["_id"]},
            {"$pull": {"product_ids": product_id}, "$set": {"updated_at": utcnow()}},
        )
        return self.list_products(user)
