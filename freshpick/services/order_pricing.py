"""Order line resolution and totals shared by one-off and recurring orders."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from freshpick.core.config import settings
from freshpick.core.errors import ValidationAppError
from freshpick.schemas.orders import OrderItemInput
from freshpick.services.product_service import ProductService


@dataclass(frozen=True)
class OrderTotals:
    subtotal: float
    tax: float
    shipping: float
    discount: float
    total: float

    def as_fields(self) -> dict[str, float]:
        return {
            "subtotal": self.subtotal,
            "tax": self.tax,
            "shipping": self.shipping,
            "discount": self.discount,
            "total": self.total,
        }


def resolve_items(products: ProductService, items: Iterable[OrderItemInput]) -> list[dict[str, Any]]:
    """Turn requested lines into priced order items.

    Raises:
        ValidationAppError: A product does not exist, is archived or lacks stock.
    """
    resolved: list[dict[str, Any]] = []
    for item in items:
        product = products.find(item.product)
        if not product or product.get("archived"):
            raise ValidationAppError(
                code="product_not_found",
                message=f"Product {item.product} not found",
                details={"field": "items", "product": item.product},
            )
        if product.get("stock_qty", 0) < item.quantity:
            raise ValidationAppError(
                code="insufficient_stock",
                message=f"Insufficient stock for {product['name']}",
                details={
                    "product": product["_id"],
                    "requested": item.quantity,
                    "available": product.get("stock_qty", 0),
                },
            )
        price = float(product["price"])
        resolved.append(
            {
                "product_id": product["_id"],
                "sku": product.get("sku"),
                "name": product["name"],
                "quantity": item.quantity,
                "price": price,
                "discount_percentage": float(product.get("discount_percentage") or 0),
                "total": round(price * item.quantity, 2),
            }
        )
    return resolved


def calculate_order_totals(items: list[dict[str, Any]]) -> OrderTotals:
    subtotal = round(sum(item["total"] for item in items), 2)
    discount = round(
        sum(item["total"] * item.get("discount_percentage", 0) / 100 for item in items),
        2,
    )
    shipping = 0.0 if subtotal > settings.app.free_shipping_threshold else settings.app.flat_shipping_fee
    tax = 0.0
    return OrderTotals(
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        discount=discount,
        total=round(subtotal + tax + shipping - discount, 2),
    )
