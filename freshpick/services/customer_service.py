"""Admin management of user accounts."""

from __future__ import annotations

import logging
from typing import Any

from freshpick.adapters.store.base import DESCENDING, AbstractDocumentStore, Document
from freshpick.core.errors import NotFoundAppError, ValidationAppError
from freshpick.core.security import utcnow
from freshpick.schemas.admin import CustomerUpdate
from freshpick.services.auth_service import USERS, public_user
from freshpick.services.category_service import require_valid_id
from freshpick.utils.documents import contains_pattern
from freshpick.utils.pagination import Pagination, build_pagination, skip_for

logger = logging.getLogger(__name__)


class CustomerService:
    def __init__(self, store: AbstractDocumentStore) -> None:
        self.store = store

    def list_customers(
        self,
        *,
        page: int,
        limit: int,
        search: str | None = None,
        role: str | None = None,
        is_banned: bool | None = None,
    ) -> tuple[list[dict[str, Any]], Pagination]:
        filter: dict[str, Any] = {}
        if search:
            pattern = contains_pattern(search)
            filter["$or"] = [
                {"first_name": pattern},
                {"last_name": pattern},
                {"email": pattern},
                {"phone_number": pattern},
            ]
        if role:
            filter["$and"] = [{"$or": [{"role": role}, {"secondary_roles": role}]}]
        if is_banned is not None:
            filter["is_banned"] = is_banned
        total = self.store.count(USERS, filter)
        users = self.store.find(
            USERS,
            filter,
            sort=[("created_at", DESCENDING)],
            skip=skip_for(page, limit),
            limit=limit,
        )
        return [public_user(u) for u in users], build_pagination(page, limit, total)

    def get(self, customer_id: str) -> Document:
        require_valid_id(customer_id, "customer")
        user = self.store.find_one(USERS, {"_id": customer_id})
        if not user:
            raise NotFoundAppError(code="customer_not_found", message="Customer not found")
        return user

    def update(self, customer_id: str, data: CustomerUpdate, *, acting_user: Document) -> tuple[Document, Document]:
        """Change names, roles or the ban flag.

        Banning revokes every refresh token so the user is signed out on
        their next refresh. Admins cannot ban or demote themselves.
        """
        before = self.get(customer_id)
        changes = data.model_dump(exclude_unset=True)

        if customer_id == acting_user["_id"] and (
            changes.get("is_banned") or ("role" in changes and changes["role"] != before["role"])
        ):
            raise ValidationAppError(
                code="self_modification",
                message="You cannot ban yourself or change your own role",
            )
        if changes.get("secondary_roles") is not None:
            changes["secondary_roles"] = list(dict.fromkeys(changes["secondary_roles"]))
        if changes.get("is_banned"):
            changes["refresh_tokens"] = []

        changes["updated_at"] = utcnow()
        after = self.store.find_one_and_update(USERS, {"_id": customer_id}, {"$set": changes})
        logger.info(
            "customer.updated",
            extra={"customer_id": customer_id, "fields": sorted(k for k in changes if k != "refresh_tokens")},
        )
        return before, after or before

    def delete(self, customer_id: str, *, acting_user: Document) -> Document:
        user = self.get(customer_id)
        if customer_id == acting_user["_id"]:
            raise ValidationAppError(code="self_modification", message="You cannot delete your own account")
        self.store.delete_one(USERS, {"_id": customer_id})
        logger.info("customer.deleted", extra={"customer_id": customer_id})
        return user
