"""Pydantic schemas for orders and recurring deliveries."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, model_validator

from freshpick.schemas.common import Address, RequestModel, UtcDatetime

OrderStatus = Literal[
    "pending",
    "confirmed",
    "processing",
    "shipped",
    "delivered",
    "cancelled",
    "refunded",
]
PaymentStatus = Literal["pending", "paid", "failed", "refunded"]
PaymentMethodInput = Literal["card", "cash", "cash_on_delivery", "bank_transfer", "digital_wallet"]


class RecurrencePattern(RequestModel):
    """When a recurring order should be delivered.

    ``days_of_week`` uses 0 for Sunday through 6 for Saturday.
    """

    start_date: UtcDatetime | None = None
    end_date: UtcDatetime | None = None
    days_of_week: list[int] = Field(default_factory=list)
    include_dates: list[UtcDatetime] = Field(default_factory=list)
    exclude_dates: list[UtcDatetime] = Field(default_factory=list)
    selected_dates: list[UtcDatetime] = Field(default_factory=list)
    notes: str | None = Field(None, max_length=500)

    def has_content(self) -> bool:
        return bool(self.days_of_week or self.include_dates or self.selected_dates)


class OrderItemInput(RequestModel):
    """An order line; ``product`` may be a product id, SKU or slug."""

    product: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1, le=1000)


class OrderCreate(RequestModel):
    items: list[OrderItemInput] = Field(..., min_length=1)
    payment_method: PaymentMethodInput = "cash"
    shipping_address: Address | None = None
    billing_address: Address | None = None
    notes: str | None = Field(None, max_length=1000)
    is_recurring: bool | None = None
    recurrence: RecurrencePattern | None = None

    @model_validator(mode="after")
    def _recurring_requires_pattern(self) -> "OrderCreate":
        if self.is_recurring and (self.recurrence is None or not self.recurrence.has_content()):
            raise ValueError("Recurring orders need days_of_week, include_dates or selected_dates")
        return self


class OrderUpdate(RequestModel):
    """Admin order update."""

    status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None
    tracking_number: str | None = Field(None, max_length=100)
    estimated_delivery: UtcDatetime | None = None
    notes: str | None = Field(None, max_length=1000)


class RecurringOrderUpdate(RequestModel):
    recurrence: RecurrencePattern | None = None
    items: list[OrderItemInput] | None = Field(None, min_length=1)
    schedule_status: Literal["active", "paused"] | None = None
