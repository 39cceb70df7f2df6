"""Suppliers: public registration and admin maintenance."""

from __future__ import annotations

import logging
from typing import Any

from freshpick.adapters.store.base import ASCENDING, AbstractDocumentStore, Document
from freshpick.core.errors import ConflictAppError, NotFoundAppError
from freshpick.core.security import utcnow
from freshpick.schemas.catalog import SupplierCreate, SupplierRegistration, SupplierUpdate
from freshpick.services.category_service import require_valid_id
from freshpick.utils.documents import contains_pattern, to_public
from freshpick.utils.pagination import Pagination, build_pagination, skip_for

logger = logging.getLogger(__name__)

SUPPLIERS = "suppliers"
USERS = "users"
DEFAULT_PAYMENT_TERMS = "net-30"


class SupplierService:
    def __init__(self, store: AbstractDocumentStore) -> None:
        self.store = store

    def _ensure_email_free(self, email: str | None, exclude_id: str | None = None) -> None:
        if not email:
            return
        filter: dict[str, Any] = {"email": email}
        if exclude_id:
            filter["_id"] = {"$ne": exclude_id}
        if self.store.find_one(SUPPLIERS, filter):
            raise ConflictAppError(
                code="supplier_email_taken",
                message="Supplier with this email already exists",
                details={"field": "email"},
            )

    def _insert(self, document: dict[str, Any]) -> Document:
        now = utcnow()
        document = {k: v for k, v in document.items() if not (k == "email" and v is None)}
        document.update({"created_at": now, "updated_at": now})
        return self.store.insert_one(SUPPLIERS, document)

    def register(self, data: SupplierRegistration, user: dict[str, Any] | None = None) -> Document:
        """Create a supplier from the public form.

        When the caller is signed in, their account becomes the supplier's
        login: ``supplier_id`` is set and the role switches to ``supplier``.
        """
        self._ensure_email_free(data.email)
        supplier = self._insert(
            {
                "name": data.company_name,
                "contact_name": data.contact_name,
                "email": data.email,
                "phone": data.phone,
                "address": data.address.model_dump() if data.address else None,
                "payment_terms": DEFAULT_PAYMENT_TERMS,
                "notes": data.notes,
                "status": "active",
                "user_id": user["_id"] if user else None,
            }
        )
        if user:
            self.store.update_one(
                USERS,
                {"_id": user["_id"]},
                {"$set": {"supplier_id": supplier["_id"], "role": "supplier", "updated_at": utcnow()}},
            )
        logger.info(
            "supplier.registered",
            extra={"supplier_id": supplier["_id"], "linked_user": bool(user)},
        )
        return supplier

    def list_suppliers(
        self,
        *,
        page: int,
        limit: int,
        search: str | None = None,
        status: str | None = None,
    ) -> tuple[list[dict[str, Any]], Pagination]:
        filter: dict[str, Any] = {}
        if status:
            filter["status"] = status
        if search:
            pattern = contains_pattern(search)
            filter["$or"] = [{"name": pattern}, {"contact_name": pattern}, {"email": pattern}]
        total = self.store.count(SUPPLIERS, filter)
        suppliers = self.store.find(
            SUPPLIERS,
            filter,
            sort=[("name", ASCENDING)],
            skip=skip_for(page, limit),
            limit=limit,
        )
        return [to_public(s) for s in suppliers], build_pagination(page, limit, total)

    def get(self, supplier_id: str) -> Document:
        require_valid_id(supplier_id, "supplier")
        supplier = self.store.find_one(SUPPLIERS, {"_id": supplier_id})
        if not supplier:
            raise NotFoundAppError(code="supplier_not_found", message="Supplier not found")
        return supplier

    def create(self, data: SupplierCreate) -> Document:
        self._ensure_email_free(data.email)
        document = data.model_dump()
        document["payment_terms"] = data.payment_terms or DEFAULT_PAYMENT_TERMS
        document["status"] = data.status or "active"
        supplier = self._insert(document)
        logger.info("supplier.created", extra={"supplier_id": supplier["_id"]})
        return supplier

    def update(self, supplier_id: str, data: SupplierUpdate) -> tuple[Document, Document]:
        before = self.get(supplier_id)
        changes = data.model_dump(exclude_unset=True)
        if "email" in changes:
            self._ensure_email_free(changes["email"], exclude_id=supplier_id)
        changes["updated_at"] = utcnow()
        after = self.store.find_one_and_update(SUPPLIERS, {"_id": supplier_id}, {"$set": changes})
        return before, after or before

    def delete(self, supplier_id: str) -> Document:
        supplier = self.get(supplier_id)
        self.store.delete_one(SUPPLIERS, {"_id": supplier_id})
        logger.info("supplier.deleted", extra={"supplier_id": supplier_id})
        return supplier
