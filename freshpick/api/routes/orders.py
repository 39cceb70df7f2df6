"""Customer orders and recurring delivery schedules."""

from __future__ import annotations

from fastapi import APIRouter, status

from freshpick.api.dependencies import Orders, Page, RecurringOrders
from freshpick.api.responses import paginated, success
from freshpick.core.auth import CurrentUser
from freshpick.schemas.orders import OrderCreate, RecurringOrderUpdate
from freshpick.utils.documents import to_public

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_order(payload: OrderCreate, user: CurrentUser, orders: Orders) -> dict:
    order = orders.create_order(user, payload)
    return success(to_public(order), "Order created successfully")


@router.get("")
def list_orders(
    user: CurrentUser,
    orders: Orders,
    page: Page,
    customer_id: str | None = None,
) -> dict:
    items, pagination = orders.list_orders(user, page=page.page, limit=page.limit, customer_id=customer_id)
    return paginated([to_public(o) for o in items], pagination)


@router.get("/recurring")
def list_recurring(user: CurrentUser, recurring: RecurringOrders) -> dict:
    templates = recurring.list_templates(customer_id=user["_id"])
    return success([to_public(t) for t in templates])


@router.get("/recurring/{order_id}")
def get_recurring(order_id: str, user: CurrentUser, recurring: RecurringOrders) -> dict:
    return success(to_public(recurring.get_for_user(order_id, user)))


@router.put("/recurring/{order_id}")
def update_recurring(
    order_id: str,
    payload: RecurringOrderUpdate,
    user: CurrentUser,
    recurring: RecurringOrders,
) -> dict:
    _, after = recurring.update_template(order_id, payload, user)
    return success(to_public(after), "Recurring order updated")


@router.delete("/recurring/{order_id}")
def end_recurring(order_id: str, user: CurrentUser, recurring: RecurringOrders) -> dict:
    return success(to_public(recurring.end_template(order_id, user)), "Recurring order ended")


@router.get("/{order_id}")
def get_order(order_id: str, user: CurrentUser, orders: Orders) -> dict:
    return success(to_public(orders.get_order(order_id, user)))


@router.post("/{order_id}/cancel")
def cancel_order(order_id: str, user: CurrentUser, orders: Orders) -> dict:
    return success(to_public(orders.cancel_order(order_id, user)), "Order cancelled successfully")
