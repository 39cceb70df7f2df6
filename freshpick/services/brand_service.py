"""Product brands, identified by a unique three-character code."""

from __future__ import annotations

import logging
import re
from typing import Any

from freshpick.adapters.store.base import ASCENDING, AbstractDocumentStore, Document
from freshpick.core.errors import ConflictAppError, NotFoundAppError
from freshpick.core.security import utcnow
from freshpick.schemas.catalog import BrandCreate, BrandUpdate
from freshpick.services.category_service import require_valid_id
from freshpick.services.product_service import PRODUCTS

logger = logging.getLogger(__name__)

BRANDS = "brands"


class BrandService:
    def __init__(self, store: AbstractDocumentStore) -> None:
        self.store = store

    def _ensure_code_free(self, code: str, exclude_id: str | None = None) -> None:
        filter: dict[str, Any] = {"code": code}
        if exclude_id:
            filter["_id"] = {"$ne": exclude_id}
        if self.store.find_one(BRANDS, filter):
            raise ConflictAppError(
                code="brand_code_taken",
                message=f"Brand with code {code} already exists",
                details={"field": "code"},
            )

    def list_brands(self) -> list[Document]:
        return self.store.find(BRANDS, {}, sort=[("name", ASCENDING)])

    def get(self, brand_id: str) -> Document:
        require_valid_id(brand_id, "brand")
        brand = self.store.find_one(BRANDS, {"_id": brand_id})
        if not brand:
            raise NotFoundAppError(code="brand_not_found", message="Brand not found")
        return brand

    def create(self, data: BrandCreate) -> Document:
        self._ensure_code_free(data.code)
        now = utcnow()
        brand = self.store.insert_one(
            BRANDS,
            {
                "code": data.code,
                "name": data.name,
                "description": data.description,
                "created_at": now,
                "updated_at": now,
            },
        )
        logger.info("brand.created", extra={"brand_id": brand["_id"], "code": brand["code"]})
        return brand

    def update(self, brand_id: str, data: BrandUpdate) -> tuple[Document, Document]:
        before = self.get(brand_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("code") and changes["code"] != before["code"]:
            self._ensure_code_free(changes["code"], exclude_id=brand_id)
        changes["updated_at"] = utcnow()
        after = self.store.find_one_and_update(BRANDS, {"_id": brand_id}, {"$set": changes})
        return before, after or before

    def delete(self, brand_id: str) -> Document:
        """Delete a brand no live product is sold under.

        Raises:
            ConflictAppError: Products still carry the brand's name.
        """
        brand = self.get(brand_id)
        in_use = self.store.count(
            PRODUCTS,
            {
                "brand": {"$regex": f"^{re.escape(brand['name'])}$", "$options": "i"},
                "archived": {"$ne": True},
            },
        )
        if in_use:
            raise ConflictAppError(
                code="brand_in_use",
                message="Brand still has products assigned",
                details={"context": {"product_count": in_use}},
            )
        self.store.delete_one(BRANDS, {"_id": brand_id})
        logger.info("brand.deleted", extra={"brand_id": brand_id})
        return brand
