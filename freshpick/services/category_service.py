"""Category catalogue management."""

from __future__ import annotations

import logging
from typing import Any

from freshpick.adapters.store.base import ASCENDING, AbstractDocumentStore, Document, is_valid_id
from freshpick.core.errors import ConflictAppError, NotFoundAppError, ValidationAppError
from freshpick.core.security import utcnow
from freshpick.schemas.catalog import CategoryCreate, CategoryUpdate
from freshpick.utils.documents import contains_pattern, to_public
from freshpick.utils.pagination import Pagination, build_pagination, skip_for
from freshpick.utils.slugify import slugify

logger = logging.getLogger(__name__)

CATEGORIES = "categories"
PRODUCTS = "products"
CATEGORY_SORT = [("sort_order", ASCENDING), ("name", ASCENDING)]


def require_valid_id(value: str, resource: str) -> str:
    if not is_valid_id(value):
        raise ValidationAppError(
            code="invalid_id",
            message=f"Invalid {resource} ID",
            details={"resource": resource, "resource_id": value},
        )
    return value


class CategoryService:
    def __init__(self, store: AbstractDocumentStore) -> None:
        self.store = store

    def _ensure_slug_free(self, slug: str, exclude_id: str | None = None) -> None:
        filter: dict[str, Any] = {"slug": slug}
        if exclude_id:
            filter["_id"] = {"$ne": exclude_id}
        if self.store.find_one(CATEGORIES, filter):
            raise ConflictAppError(
                code="category_slug_taken",
                message="Category with this slug already exists",
                details={"field": "slug"},
            )

    def _ensure_parent(self, parent_id: str | None, own_id: str | None = None) -> None:
        if not parent_id:
            return
        require_valid_id(parent_id, "parent category")
        if parent_id == own_id:
            raise ValidationAppError(code="invalid_parent", message="A category cannot be its own parent")
        if not self.store.find_one(CATEGORIES, {"_id": parent_id}):
            raise NotFoundAppError(code="parent_category_not_found", message="Parent category not found")

    def list_active(self) -> list[dict[str, Any]]:
        return [to_public(c) for c in self.store.find(CATEGORIES, {"is_active": True}, sort=CATEGORY_SORT)]

    def list_categories(
        self,
        *,
        page: int,
        limit: int,
        search: str | None = None,
        is_active: bool | None = None,
    ) -> tuple[list[dict[str, Any]], Pagination]:
        filter: dict[str, Any] = {}
        if search:
            pattern = contains_pattern(search)
            filter["$or"] = [{"name": pattern}, {"description": pattern}]
        if is_active is not None:
            filter["is_active"] = is_active

        total = self.store.count(CATEGORIES, filter)
        categories = self.store.find(
            CATEGORIES,
            filter,
            sort=CATEGORY_SORT,
            skip=skip_for(page, limit),
            limit=limit,
        )
        items = []
        for category in categories:
            public = to_public(category)
            public["product_count"] = self.store.count(
                PRODUCTS, {"category_id": category["_id"], "archived": {"$ne": True}}
            )
            items.append(public)
        return items, build_pagination(page, limit, total)

    def get(self, category_id: str) -> Document:
        require_valid_id(category_id, "category")
        category = self.store.find_one(CATEGORIES, {"_id": category_id})
        if not category:
            raise NotFoundAppError(code="category_not_found", message="Category not found")
        return category

    def create(self, data: CategoryCreate) -> Document:
        slug = slugify(data.slug or data.name)
        if not slug:
            raise ValidationAppError(code="invalid_slug", message="Category name must contain letters or digits")
        self._ensure_slug_free(slug)
        self._ensure_parent(data.parent_category_id)

        now = utcnow()
        category = self.store.insert_one(
            CATEGORIES,
            {
                "name": data.name,
                "slug": slug,
                "description": data.description,
                "parent_category_id": data.parent_category_id,
                "image_url": data.image_url,
                "is_active": True if data.is_active is None else data.is_active,
                "sort_order": data.sort_order or 0,
                "created_at": now,
                "updated_at": now,
            },
        )
        logger.info("category.created", extra={"category_id": category["_id"], "slug": slug})
        return category

    def update(self, category_id: str, data: CategoryUpdate) -> tuple[Document, Document]:
        """Apply a partial update.

        Returns:
            ``(before, after)`` snapshots for auditing.
        """
        before = self.get(category_id)
        changes = data.model_dump(exclude_unset=True)

        source = changes.pop("slug", None) or changes.get("name")
        if source:
            slug = slugify(source)
            if slug != before["slug"]:
                self._ensure_slug_free(slug, exclude_id=category_id)
            changes["slug"] = slug
        if "parent_category_id" in changes:
            self._ensure_parent(changes["parent_category_id"], own_id=category_id)

        changes["updated_at"] = utcnow()
        after = self.store.find_one_and_update(CATEGORIES, {"_id": category_id}, {"$set": changes})
        if after is None:
            raise NotFoundAppError(code="category_not_found", message="Category not found")
        return before, after

    def delete(self, category_id: str) -> Document:
        category = self.get(category_id)
        in_use = self.store.count(PRODUCTS, {"category_id": category_id, "archived": {"$ne": True}})
        if in_use:
            raise ConflictAppError(
                code="category_in_use",
                message="Category still has products assigned",
                details={"context": {"product_count": in_use}},
            )
        self.store.delete_one(CATEGORIES, {"_id": category_id})
        logger.info("category.deleted", extra={"category_id": category_id})
        return category
