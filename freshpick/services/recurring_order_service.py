"""Recurring orders: delivery scheduling and order generation.

A recurring order is a template order with ``is_recurring=True``, a
``recurrence`` pattern, a ``schedule_status`` (active, paused, ended) and
the ``next_delivery_at`` it is due for. The template itself fills the first
delivery, recorded in ``estimated_delivery`` and ``last_delivery_at``. Each
processing run turns every due, active template into a new order and
advances the template to the delivery after that.

Weekdays follow the storefront convention 0=Sunday ... 6=Saturday and are
evaluated in UTC.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Any, Mapping

from freshpick.adapters.store.base import ASCENDING, DESCENDING, AbstractDocumentStore, Document
from freshpick.core.auth import is_admin
from freshpick.core.errors import AppError, NotFoundAppError, ValidationAppError
from freshpick.core.security import utcnow
from freshpick.schemas.orders import RecurringOrderUpdate
from freshpick.services.category_service import require_valid_id
from freshpick.services.order_pricing import calculate_order_totals, resolve_items
from freshpick.services.product_service import PRODUCTS, ProductService
from freshpick.utils.order_numbers import generate_order_number

logger = logging.getLogger(__name__)

ORDERS = "orders"
SCAN_WEEKS = 8
UPCOMING_LIMIT = 10


@dataclass
class ProcessingReport:
    processed: int = 0
    created: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def sunday_based_weekday(moment: datetime) -> int:
    return (moment.weekday() + 1) % 7


def validate_recurrence_pattern(pattern: Mapping[str, Any], now: datetime) -> tuple[bool, list[str]]:
    """Check a recurrence pattern.

    Returns:
        ``(valid, errors)``.
    """
    errors: list[str] = []
    days = pattern.get("days_of_week") or []
    include_dates = pattern.get("include_dates") or []
    selected_dates = pattern.get("selected_dates") or []
    start = pattern.get("start_date")
    end = pattern.get("end_date")

    if not (days or include_dates or selected_dates):
        errors.append("At least one recurrence pattern must be specified")
    if start and end and start >= end:
        errors.append("Start date must be before end date")
    if any(not isinstance(day, int) or not 0 <= day <= 6 for day in days):
        errors.append("Days of week must be between 0 (Sunday) and 6 (Saturday)")
    if any(selected <= now for selected in selected_dates):
        errors.append("Selected dates must be in the future")

    return not errors, errors


def calculate_next_delivery(
    pattern: Mapping[str, Any],
    current: datetime,
    *,
    inclusive: bool = False,
) -> datetime | None:
    """Next delivery strictly after ``current`` (or at it, when ``inclusive``).

    Explicit ``selected_dates`` take precedence over everything else. Otherwise
    the earliest of the next matching weekday (scanning up to eight weeks) and
    the next ``include_dates`` entry wins. Dates in ``exclude_dates`` are
    skipped by calendar day. Nothing is returned past ``end_date``.
    """
    start: datetime | None = pattern.get("start_date")
    end: datetime | None = pattern.get("end_date")
    if end and current > end:
        return None

    excluded = {d.date() for d in pattern.get("exclude_dates") or []}

    def is_candidate(moment: datetime) -> bool:
        if moment < current or (moment == current and not inclusive):
            return False
        if start and moment < start:
            return False
        return moment.date() not in excluded

    selected = sorted(d for d in pattern.get("selected_dates") or [] if is_candidate(d))
    if pattern.get("selected_dates"):
        found = selected[0] if selected else None
        return found if found and not (end and found > end) else None

    candidates: list[datetime] = []

    days = set(pattern.get("days_of_week") or [])
    if days:
        if start and start > current:
            anchor, first_offset = start, 0
        else:
            anchor, first_offset = current, 0 if inclusive else 1
        for offset in range(first_offset, first_offset + SCAN_WEEKS * 7):
            moment = anchor + timedelta(days=offset)
            if sunday_based_weekday(moment) in days and is_candidate(moment):
                candidates.append(moment)
                break

    candidates.extend(d for d in pattern.get("include_dates") or [] if is_candidate(d))

    if not candidates:
        return None
    found = min(candidates)
    if end and found > end:
        return None
    return found


def resume_delivery(pattern: Mapping[str, Any], last_delivery: datetime | None, now: datetime) -> datetime | None:
    """Next delivery not before ``now`` and on a later day than ``last_delivery``.

    Used when a schedule is resumed or its pattern changes, so that a day
    already delivered is never scheduled again.
    """
    if last_delivery is None or last_delivery.date() < now.date():
        return calculate_next_delivery(pattern, now, inclusive=True)
    found = calculate_next_delivery(pattern, last_delivery)
    while found is not None and found.date() <= last_delivery.date():
        found = calculate_next_delivery(pattern, found)
    return found


class RecurringOrderService:
    """Generates orders from due recurring templates."""

    def __init__(self, store: AbstractDocumentStore) -> None:
        self.store = store
        self.products = ProductService(store)

    def get_template(self, order_id: str) -> Document:
        require_valid_id(order_id, "order")
        order = self.store.find_one(ORDERS, {"_id": order_id})
        if not order:
            raise NotFoundAppError(code="order_not_found", message="Order not found")
        if not order.get("is_recurring"):
            raise ValidationAppError(code="not_recurring", message="Order is not a recurring order")
        return order

    def _take_stock(self, items: list[dict[str, Any]]) -> list[str]:
        """Reserve stock for every item, or for none.

        Returns:
            Product ids that could not be reserved (empty on success).
        """
        reserved: list[dict[str, Any]] = []
        for item in items:
            if not self.products.reserve_stock(item["product_id"], item["quantity"]):
                for done in reserved:
                    self.products.release_stock(done["product_id"], done["quantity"])
                return self._out_of_stock(items)
            reserved.append(item)
        return []

    def _out_of_stock(self, items: list[dict[str, Any]]) -> list[str]:
        missing = []
        for item in items:
            product = self.store.find_one(PRODUCTS, {"_id": item["product_id"]})
            if not product or product.get("stock_qty", 0) < item["quantity"]:
                missing.append(item["product_id"])
        return missing or [item["product_id"] for item in items]

    def create_next_order_instance(self, order_id: str, now: datetime | None = None) -> Document | None:
        """Create the order for the template's due delivery.

        Returns:
            The generated order, or None when the template is not active or
            its schedule has run out.

        Raises:
            NotFoundAppError: Unknown template.
            ValidationAppError: The order is not recurring.
        """
        now = now or utcnow()
        template = self.get_template(order_id)
        if template.get("schedule_status") != "active":
            return None

        pattern = template.get("recurrence") or {}
        due = template.get("next_delivery_at") or resume_delivery(pattern, template.get("last_delivery_at"), now)
        if due is None:
            self.store.update_one(
                ORDERS,
                {"_id": order_id},
                {"$set": {"schedule_status": "ended", "updated_at": now}, "$unset": {"next_delivery_at": ""}},
            )
            logger.info("recurring_orders.schedule_ended", extra={"order_id": order_id})
            return None

        following = calculate_next_delivery(pattern, due)
        # Claim the delivery first so concurrent runs cannot generate it twice
        claim: dict[str, Any] = {
            "$set": {
                "schedule_status": "active" if following else "ended",
                "last_generated_at": now,
                "last_delivery_at": due,
                "updated_at": now,
            },
            "$inc": {"generated_count": 1},
        }
        if following:
            claim["$set"]["next_delivery_at"] = following
        else:
            claim["$unset"] = {"next_delivery_at": ""}
        claimed = self.store.update_one(
            ORDERS,
            {
                "_id": order_id,
                "schedule_status": "active",
                "next_delivery_at": template.get("next_delivery_at"),
            },
            claim,
        )
        if not claimed:
            logger.info("recurring_orders.already_claimed", extra={"order_id": order_id})
            return None

        items = [dict(item) for item in template.get("items", [])]
        out_of_stock = self._take_stock(items)
        notes = template.get("notes")
        if out_of_stock:
            stock_note = "Out of stock: " + ", ".join(out_of_stock)
            notes = f"{notes}\n{stock_note}" if notes else stock_note

        order = self.store.insert_one(
            ORDERS,
            {
                "order_number": generate_order_number("AUTO"),
                "customer_id": template["customer_id"],
                "items": items,
                "subtotal": template.get("subtotal", 0),
                "tax": template.get("tax", 0),
                "shipping": template.get("shipping", 0),
                "discount": template.get("discount", 0),
                "total": template.get("total", 0),
                "status": "pending" if out_of_stock else "confirmed",
                "payment_method": template.get("payment_method", "cash"),
                "payment_status": "pending",
                "shipping_address": template.get("shipping_address"),
                "billing_address": template.get("billing_address"),
                "estimated_delivery": due,
                "notes": notes,
                "is_recurring": False,
                "parent_order_id": order_id,
                "stock_reserved": not out_of_stock,
                "created_at": now,
                "updated_at": now,
            },
        )
        logger.info(
            "recurring_orders.order_created",
            extra={
                "order_id": order["_id"],
                "parent_order_id": order_id,
                "status": order["status"],
                "out_of_stock_count": len(out_of_stock),
            },
        )
        return order

    def due_templates(self, now: datetime) -> list[Document]:
        return self.store.find(
            ORDERS,
            {
                "is_recurring": True,
                "schedule_status": "active",
                "next_delivery_at": {"$lte": now},
            },
            sort=[("next_delivery_at", ASCENDING)],
        )

    def process_recurring_orders(self, now: datetime | None = None) -> ProcessingReport:
        """Generate orders for every due template.

        Templates are independent: a failure is recorded in the report and
        the run moves on to the next template.
        """
        now = now or utcnow()
        report = ProcessingReport()
        for template in self.due_templates(now):
            report.processed += 1
            try:
                if self.create_next_order_instance(template["_id"], now):
                    report.created += 1
            except AppError as exc:
                report.errors.append(f"Order {template['_id']}: {exc.message}")
                logger.error(
                    "recurring_orders.template_failed",
                    extra={"order_id": template["_id"], "error_code": exc.code},
                )
        logger.info(
            "recurring_orders.run_completed",
            extra={
                "processed": report.processed,
                "created_count": report.created,
                "error_count": len(report.errors),
            },
        )
        return report

    def list_templates(
        self,
        *,
        customer_id: str | None = None,
        schedule_status: str | None = None,
    ) -> list[Document]:
        filter: dict[str, Any] = {"is_recurring": True}
        if customer_id:
            filter["customer_id"] = customer_id
        if schedule_status:
            filter["schedule_status"] = schedule_status
        return self.store.find(ORDERS, filter, sort=[("created_at", DESCENDING)])

    def get_stats(self, now: datetime | None = None) -> dict[str, Any]:
        now = now or utcnow()
        templates = self.store.find(ORDERS, {"is_recurring": True})
        by_status = {"active": 0, "paused": 0, "ended": 0}
        for template in templates:
            status = template.get("schedule_status")
            if status in by_status:
                by_status[status] += 1
        total_value = round(sum(t.get("total", 0) for t in templates), 2)
        upcoming = self.store.find(
            ORDERS,
            {"is_recurring": True, "schedule_status": "active", "next_delivery_at": {"$gte": now}},
            sort=[("next_delivery_at", ASCENDING)],
            limit=UPCOMING_LIMIT,
        )
        return {
            "total": len(templates),
            **by_status,
            "total_value": total_value,
            "avg_order_value": round(total_value / len(templates), 2) if templates else 0,
            "upcoming_deliveries": [
                {
                    "order_id": t["_id"],
                    "order_number": t.get("order_number"),
                    "customer_id": t.get("customer_id"),
                    "next_delivery_at": t.get("next_delivery_at"),
                    "total": t.get("total", 0),
                }
                for t in upcoming
            ],
        }

    def get_for_user(self, order_id: str, user: Document) -> Document:
        template = self.get_template(order_id)
        if template["customer_id"] != user["_id"] and not is_admin(user):
            raise NotFoundAppError(code="order_not_found", message="Order not found")
        return template

    def update_template(
        self,
        order_id: str,
        data: RecurringOrderUpdate,
        user: Document,
        now: datetime | None = None,
    ) -> tuple[Document, Document]:
        """Change the pattern, items or pause state of a recurring order.

        A new pattern or resuming a paused schedule recomputes
        ``next_delivery_at`` from ``now``, skipping the day of the last delivery.

        Raises:
            ValidationAppError: Invalid pattern, unknown products, or the
                schedule has already ended.
        """
        now = now or utcnow()
        before = self.get_for_user(order_id, user)
        if before.get("schedule_status") == "ended":
            raise ValidationAppError(code="schedule_ended", message="This recurring order has ended")

        changes: dict[str, Any] = {"updated_at": now}
        pattern = before.get("recurrence") or {}
        if data.recurrence is not None:
            pattern = data.recurrence.model_dump()
            valid, errors = validate_recurrence_pattern(pattern, now)
            if not valid:
                raise ValidationAppError(
                    code="invalid_recurrence",
                    message="Invalid recurrence pattern",
                    details={"errors": errors},
                )
            changes["recurrence"] = pattern
        if data.items is not None:
            items = resolve_items(self.products, data.items)
            changes["items"] = items
            changes.update(calculate_order_totals(items).as_fields())

        status = data.schedule_status or before.get("schedule_status")
        changes["schedule_status"] = status
        unset: dict[str, str] = {}
        if status == "active" and (data.recurrence is not None or before.get("schedule_status") != "active"):
            following = resume_delivery(pattern, before.get("last_delivery_at"), now)
            if following is None:
                changes["schedule_status"] = "ended"
                unset["next_delivery_at"] = ""
            else:
                changes["next_delivery_at"] = following

        update: dict[str, Any] = {"$set": changes}
        if unset:
            update["$unset"] = unset
        after = self.store.find_one_and_update(ORDERS, {"_id": order_id}, update)
        logger.info(
            "recurring_orders.updated",
            extra={"order_id": order_id, "schedule_status": changes["schedule_status"]},
        )
        return before, after or before

    def end_template(self, order_id: str, user: Document) -> Document:
        self.get_for_user(order_id, user)
        ended = self.store.find_one_and_update(
            ORDERS,
            {"_id": order_id},
            {
                "$set": {"schedule_status": "ended", "updated_at": utcnow()},
                "$unset": {"next_delivery_at": ""},
            },
        )
        logger.info("recurring_orders.ended", extra={"order_id": order_id})
        return ended
