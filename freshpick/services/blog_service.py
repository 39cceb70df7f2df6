"""Blog posts: public reading and admin authoring."""

from __future__ import annotations

import logging
from typing import Any

from freshpick.adapters.store.base import DESCENDING, AbstractDocumentStore, Document
from freshpick.core.errors import ConflictAppError, NotFoundAppError, ValidationAppError
from freshpick.core.security import utcnow
from freshpick.schemas.catalog import BlogCreate, BlogUpdate
from freshpick.services.category_service import require_valid_id
from freshpick.utils.documents import contains_pattern, to_public
from freshpick.utils.pagination import Pagination, build_pagination, skip_for
from freshpick.utils.slugify import slugify

logger = logging.getLogger(__name__)

BLOGS = "blogs"
NEWEST_FIRST = [("published_at", DESCENDING), ("created_at", DESCENDING)]


def _author_name(user: dict[str, Any]) -> str:
    return f"{user.get('first_name', '')} {user.get('last_name') or ''}".strip() or "Fresh Pick"


class BlogService:
    def __init__(self, store: AbstractDocumentStore) -> None:
        self.store = store

    def _ensure_slug_free(self, slug: str, exclude_id: str | None = None) -> None:
        filter: dict[str, Any] = {"slug": slug}
        if exclude_id:
            filter["_id"] = {"$ne": exclude_id}
        if self.store.find_one(BLOGS, filter):
            raise ConflictAppError(
                code="blog_slug_taken",
                message="A blog post with this slug already exists",
                details={"field": "slug"},
            )

    def _list(
        self,
        filter: dict[str, Any],
        *,
        page: int,
        limit: int,
        search: str | None,
        category: str | None,
        tag: str | None,
    ) -> tuple[list[dict[str, Any]], Pagination]:
        if search:
            pattern = contains_pattern(search)
            filter["$or"] = [{"title": pattern}, {"excerpt": pattern}, {"content": pattern}]
        if category:
            filter["category"] = category
        if tag:
            filter["tags"] = tag.lower()
        total = self.store.count(BLOGS, filter)
        posts = self.store.find(BLOGS, filter, sort=NEWEST_FIRST, skip=skip_for(page, limit), limit=limit)
        return [to_public(p) for p in posts], build_pagination(page, limit, total)

    def list_published(
        self,
        *,
        page: int,
        limit: int,
        search: str | None = None,
        category: str | None = None,
        tag: str | None = None,
    ) -> tuple[list[dict[str, Any]], Pagination]:
        return self._list(
            {"published": True, "is_deleted": {"$ne": True}},
            page=page,
            limit=limit,
            search=search,
            category=category,
            tag=tag,
        )

    def list_all(
        self,
        *,
        page: int,
        limit: int,
        search: str | None = None,
        published: bool | None = None,
    ) -> tuple[list[dict[str, Any]], Pagination]:
        filter: dict[str, Any] = {"is_deleted": {"$ne": True}}
        if published is not None:
            filter["published"] = published
        return self._list(filter, page=page, limit=limit, search=search, category=None, tag=None)

    def read_by_slug(self, slug: str) -> Document:
        """Fetch a published post and count the view."""
        post = self.store.find_one_and_update(
            BLOGS,
            {"slug": slug.lower(), "published": True, "is_deleted": {"$ne": True}},
            {"$inc": {"views": 1}},
        )
        if not post:
            raise NotFoundAppError(code="blog_not_found", message="Blog post not found")
        return post

    def get(self, blog_id: str) -> Document:
        require_valid_id(blog_id, "blog")
        post = self.store.find_one(BLOGS, {"_id": blog_id, "is_deleted": {"$ne": True}})
        if not post:
            raise NotFoundAppError(code="blog_not_found", message="Blog post not found")
        return post

    def create(self, data: BlogCreate, author: dict[str, Any]) -> Document:
        slug = slugify(data.slug or data.title)
        if not slug:
            raise ValidationAppError(code="invalid_slug", message="Title must contain letters or digits")
        self._ensure_slug_free(slug)

        now = utcnow()
        document = data.model_dump()
        document.update(
            {
                "slug": slug,
                "excerpt": data.excerpt or data.content[:200],
                "tags": [t.lower() for t in data.tags or []],
                "published": bool(data.published),
                "published_at": now if data.published else None,
                "author_id": author["_id"],
                "author_name": _author_name(author),
                "views": 0,
                "likes": 0,
                "is_deleted": False,
                "created_at": now,
                "updated_at": now,
            }
        )
        post = self.store.insert_one(BLOGS, document)
        logger.info("blog.created", extra={"blog_id": post["_id"], "published": post["published"]})
        return post

    def update(self, blog_id: str, data: BlogUpdate) -> tuple[Document, Document]:
        before = self.get(blog_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("slug"):
            changes["slug"] = slugify(changes["slug"])
            if changes["slug"] != before["slug"]:
                self._ensure_slug_free(changes["slug"], exclude_id=blog_id)
        if changes.get("tags") is not None:
            changes["tags"] = [t.lower() for t in changes["tags"]]
        if changes.get("published") and not before.get("published_at"):
            changes["published_at"] = utcnow()
        changes["updated_at"] = utcnow()
        after = self.store.find_one_and_update(BLOGS, {"_id": blog_id}, {"$set": changes})
        return before, after or before

    def soft_delete(self, blog_id: str) -> Document:
        post = self.get(blog_id)
        self.store.update_one(
            BLOGS,
            {"_id": blog_id},
            {"$set": {"is_deleted": True, "published": False, "updated_at": utcnow()}},
        )
        logger.info("blog.deleted", extra={"blog_id": blog_id})
        return post
