"""Product reviews and per-product rating summaries.

Each customer has at most one review per product; submitting again replaces
the earlier one. Reviews are published straight away (``status: approved``)
and flagged ``is_verified_purchase`` when the customer has a delivered order
containing the product.
"""

from __future__ import annotations

import logging
from typing import Any

from freshpick.adapters.store.base import DESCENDING, AbstractDocumentStore, Document
from freshpick.core.errors import NotFoundAppError
from freshpick.core.security import utcnow
from freshpick.schemas.catalog import ReviewCreate
from freshpick.services.auth_service import USERS
from freshpick.services.category_service import require_valid_id
from freshpick.services.product_service import PRODUCTS
from freshpick.services.recurring_order_service import ORDERS
from freshpick.utils.documents import to_public
from freshpick.utils.pagination import Pagination, build_pagination, skip_for

logger = logging.getLogger(__name__)

REVIEWS = "reviews"
PUBLISHED = "approved"


def summarize_ratings(ratings: list[int]) -> dict[str, Any]:
    distribution = {str(star): 0 for star in range(1, 6)}
    for rating in ratings:
        distribution[str(rating)] += 1
    average = round(sum(ratings) / len(ratings), 1) if ratings else 0.0
    return {"average_rating": average, "total_reviews": len(ratings), "distribution": distribution}


class ReviewService:
    def __init__(self, store: AbstractDocumentStore) -> None:
        self.store = store

    def _live_product(self, product_id: str) -> Document:
        require_valid_id(product_id, "product")
        product = self.store.find_one(PRODUCTS, {"_id": product_id, "archived": {"$ne": True}})
        if not product:
            raise NotFoundAppError(
                code="product_not_found",
                message="Product not found",
                details={"resource": "product", "resource_id": product_id},
            )
        return product

    def _views(self, reviews: list[Document]) -> list[dict[str, Any]]:
        author_ids = list({r["user_id"] for r in reviews})
        authors = (
            {u["_id"]: u for u in self.store.find(USERS, {"_id": {"$in": author_ids}})} if author_ids else {}
        )
        views = []
        for review in reviews:
            view = to_public(review)
            author = authors.get(review["user_id"])
            view["author"] = (
                {"id": author["_id"], "first_name": author.get("first_name"), "last_name": author.get("last_name")}
                if author
                else None
            )
            views.append(view)
        return views

    def list_for_product(
        self, product_id: str, *, page: int, limit: int
    ) -> tuple[list[dict[str, Any]], dict[str, Any], Pagination]:
        """Published reviews for a product, newest first, plus the rating summary of all of them."""
        self._live_product(product_id)
        filter = {"product_id": product_id, "status": PUBLISHED}
        total = self.store.count(REVIEWS, filter)
        reviews = self.store.find(
            REVIEWS,
            filter,
            sort=[("created_at", DESCENDING)],
            skip=skip_for(page, limit),
            limit=limit,
        )
        ratings = [r["rating"] for r in self.store.find(REVIEWS, filter)]
        return self._views(reviews), summarize_ratings(ratings), build_pagination(page, limit, total)

    def has_delivered_purchase(self, user: Document, product_id: str) -> bool:
        return bool(
            self.store.find_one(
                ORDERS,
                {"customer_id": user["_id"], "items.product_id": product_id, "status": "delivered"},
            )
        )

    def submit(self, user: Document, data: ReviewCreate) -> tuple[dict[str, Any], bool]:
        """Create or replace the caller's review of a product.

        Returns:
            ``(review, created)``.

        Raises:
            ValidationAppError: Malformed product id.
            NotFoundAppError: The product does not exist or is archived.
        """
        self._live_product(data.product_id)
        now = utcnow()
        fields = {
            "rating": data.rating,
            "title": data.title,
            "comment": data.comment,
            "status": PUBLISHED,
            "is_verified_purchase": self.has_delivered_purchase(user, data.product_id),
            "updated_at": now,
        }
        key = {"product_id": data.product_id, "user_id": user["_id"]}
        review = self.store.find_one_and_update(REVIEWS, key, {"$set": fields})
        created = review is None
        if created:
            review = self.store.insert_one(REVIEWS, {**key, **fields, "created_at": now})
        logger.info(
            "review.submitted",
            extra={"review_id": review["_id"], "product_id": data.product_id, "rating": data.rating, "is_new": created},
        )
        return self._views([review])[0], created
