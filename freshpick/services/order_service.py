"""Order placement, history and fulfilment."""

from __future__ import annotations

import logging
from typing import Any

from freshpick.adapters.store.base import DESCENDING, AbstractDocumentStore, Document
from freshpick.core.auth import is_admin
from freshpick.core.errors import NotFoundAppError, ValidationAppError
from freshpick.core.security import utcnow
from freshpick.schemas.orders import OrderCreate, OrderUpdate
from freshpick.services.category_service import require_valid_id
from freshpick.services.order_pricing import calculate_order_totals, resolve_items
from freshpick.services.product_service import ProductService
from freshpick.services.recurring_order_service import (
    ORDERS,
    calculate_next_delivery,
    validate_recurrence_pattern,
)
from freshpick.utils.documents import contains_pattern
from freshpick.utils.order_numbers import generate_order_number
from freshpick.utils.pagination import Pagination, build_pagination, skip_for

logger = logging.getLogger(__name__)

CANCELLABLE_STATUSES = ("pending", "confirmed", "processing")


def normalize_payment_method(method: str) -> str:
    return "cash" if method == "cash_on_delivery" else method


def address_from_registration(user: Document) -> dict[str, Any] | None:
    registered = user.get("registration_address")
    if not registered:
        return None
    return {
        "name": registered.get("recipient_name"),
        "street": registered.get("street_address"),
        "city": registered.get("city"),
        "state": registered.get("state"),
        "zip_code": registered.get("postal_code"),
        "country": registered.get("country_code") or "LK",
        "phone": registered.get("phone_number"),
    }


class OrderService:
    def __init__(self, store: AbstractDocumentStore) -> None:
        self.store = store
        self.products = ProductService(store)

    def _reserve(self, items: list[dict[str, Any]]) -> None:
        """Take stock for every item, undoing earlier reservations on failure."""
        reserved: list[dict[str, Any]] = []
        for item in items:
            if not self.products.reserve_stock(item["product_id"], item["quantity"]):
                for done in reserved:
                    self.products.release_stock(done["product_id"], done["quantity"])
                raise ValidationAppError(
                    code="insufficient_stock",
                    message=f"Insufficient stock for {item['name']}",
                    details={"product": item["product_id"], "requested": item["quantity"]},
                )
            reserved.append(item)

    def _restock(self, order: Document) -> None:
        if not order.get("stock_reserved", True):
            return
        for item in order.get("items", []):
            self.products.release_stock(item["product_id"], item["quantity"])

    def create_order(self, customer: Document, data: OrderCreate) -> Document:
        """Place an order and take its stock.

        Raises:
            ValidationAppError: Unknown products, insufficient stock, a
                missing shipping address or an invalid recurrence pattern.
        """
        now = utcnow()
        items = resolve_items(self.products, data.items)

        shipping_address = (
            data.shipping_address.model_dump() if data.shipping_address else address_from_registration(customer)
        )
        if not shipping_address:
            raise ValidationAppError(
                code="shipping_address_required",
                message="Shipping address is required",
                details={"field": "shipping_address"},
            )
        billing_address = data.billing_address.model_dump() if data.billing_address else shipping_address

        recurrence = data.recurrence.model_dump() if data.recurrence else None
        is_recurring = bool(data.is_recurring) or bool(data.recurrence and data.recurrence.has_content())
        first_delivery = next_delivery_at = None
        if is_recurring:
            valid, errors = validate_recurrence_pattern(recurrence or {}, now)
            if not valid:
                raise ValidationAppError(
                    code="invalid_recurrence",
                    message="Invalid recurrence pattern",
                    details={"errors": errors},
                )
            # The order itself fills the first delivery; the schedule starts after it
            first_delivery = calculate_next_delivery(recurrence, now, inclusive=True)
            if first_delivery:
                next_delivery_at = calculate_next_delivery(recurrence, first_delivery)

        self._reserve(items)

        document: Document = {
            "order_number": generate_order_number(),
            "customer_id": customer["_id"],
            "items": items,
            **calculate_order_totals(items).as_fields(),
            "status": "pending",
            "payment_method": normalize_payment_method(data.payment_method),
            "payment_status": "pending",
            "shipping_address": shipping_address,
            "billing_address": billing_address,
            "tracking_number": None,
            "estimated_delivery": first_delivery,
            "actual_delivery": None,
            "notes": data.notes,
            "is_recurring": is_recurring,
            "stock_reserved": True,
            "created_at": now,
            "updated_at": now,
        }
        if is_recurring:
            document.update(
                {
                    "recurrence": recurrence,
                    "schedule_status": "active" if next_delivery_at else "ended",
                    "last_delivery_at": first_delivery,
                    "generated_count": 0,
                }
            )
            if next_delivery_at:
                document["next_delivery_at"] = next_delivery_at
        try:
            order = self.store.insert_one(ORDERS, document)
        except Exception:
            self._restock(document)
            raise
        logger.info(
            "order.created",
            extra={
                "order_id": order["_id"],
                "order_number": order["order_number"],
                "item_count": len(items),
                "is_recurring": is_recurring,
            },
        )
        return order

    def list_orders(
        self,
        user: Document,
        *,
        page: int,
        limit: int,
        customer_id: str | None = None,
    ) -> tuple[list[Document], Pagination]:
        if customer_id and is_admin(user):
            filter: dict[str, Any] = {"customer_id": customer_id}
        else:
            filter = {"customer_id": user["_id"]}
        return self._page(filter, page=page, limit=limit)

    def _page(self, filter: dict[str, Any], *, page: int, limit: int) -> tuple[list[Document], Pagination]:
        total = self.store.count(ORDERS, filter)
        orders = self.store.find(
            ORDERS,
            filter,
            sort=[("created_at", DESCENDING)],
            skip=skip_for(page, limit),
            limit=limit,
        )
        return orders, build_pagination(page, limit, total)

    def get(self, order_id: str) -> Document:
        require_valid_id(order_id, "order")
        order = self.store.find_one(ORDERS, {"_id": order_id})
        if not order:
            raise NotFoundAppError(code="order_not_found", message="Order not found")
        return order

    def get_order(self, order_id: str, user: Document) -> Document:
        order = self.get(order_id)
        # Other customers' orders are reported as missing
        if order["customer_id"] != user["_id"] and not is_admin(user):
            raise NotFoundAppError(code="order_not_found", message="Order not found")
        return order

    def cancel_order(self, order_id: str, user: Document) -> Document:
        order = self.get_order(order_id, user)
        if order["status"] not in CANCELLABLE_STATUSES:
            raise ValidationAppError(
                code="order_not_cancellable",
                message=f"Order cannot be cancelled once it is {order['status']}",
            )
        cancelled = self.store.find_one_and_update(
            ORDERS,
            {"_id": order_id, "status": {"$in": list(CANCELLABLE_STATUSES)}},
            self._cancel_update(order),
        )
        if cancelled is None:
            raise ValidationAppError(code="order_not_cancellable", message="Order can no longer be cancelled")
        self._restock(order)
        logger.info("order.cancelled", extra={"order_id": order_id})
        return cancelled

    def _cancel_update(self, order: Document) -> dict[str, Any]:
        update: dict[str, Any] = {"$set": {"status": "cancelled", "updated_at": utcnow()}}
        if order.get("is_recurring"):
            update["$set"]["schedule_status"] = "ended"
            update["$unset"] = {"next_delivery_at": ""}
        return update

    def admin_list(
        self,
        *,
        page: int,
        limit: int,
        status: str | None = None,
        customer_id: str | None = None,
        search: str | None = None,
    ) -> tuple[list[Document], Pagination]:
        filter: dict[str, Any] = {}
        if status:
            filter["status"] = status
        if customer_id:
            filter["customer_id"] = customer_id
        if search:
            filter["order_number"] = contains_pattern(search)
        return self._page(filter, page=page, limit=limit)

    def admin_update(self, order_id: str, data: OrderUpdate) -> tuple[Document, Document]:
        """Apply an admin status/payment/tracking change.

        Moving to ``delivered`` stamps ``actual_delivery``; cancelling an order
        that has not shipped yet returns the stock.
        """
        before = self.get(order_id)
        changes = data.model_dump(exclude_unset=True)
        now = utcnow()
        new_status = changes.get("status")
        if before["status"] == "cancelled" and new_status and new_status != "cancelled":
            raise ValidationAppError(code="order_cancelled", message="Cancelled orders cannot be reopened")
        if new_status == "delivered" and before["status"] != "delivered":
            changes["actual_delivery"] = now
        changes["updated_at"] = now

        update: dict[str, Any] = {"$set": changes}
        cancelling = new_status == "cancelled" and before["status"] != "cancelled"
        if cancelling and before.get("is_recurring"):
            changes["schedule_status"] = "ended"
            update["$unset"] = {"next_delivery_at": ""}
        after = self.store.find_one_and_update(ORDERS, {"_id": order_id}, update)
        if cancelling and before["status"] in CANCELLABLE_STATUSES:
            self._restock(before)
        logger.info(
            "order.updated",
            extra={"order_id": order_id, "fields": sorted(changes), "status": (after or before)["status"]},
        )
        return before, after or before
