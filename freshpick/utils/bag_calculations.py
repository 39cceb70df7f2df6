"""Price arithmetic for bag items.

A product is priced per base quantity (``price`` for
``base_measurement_quantity`` of ``measurement_unit``). Products sold as
units are bought in multiples of the base quantity; loose products (for
example "per kg") are bought by amount.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping


@dataclass(frozen=True)
class ItemTotals:
    total: float
    original_total: float
    savings: float
    actual_quantity: float


@dataclass(frozen=True)
class BagTotals:
    total: float
    original_total: float
    savings: float


def _money(value: float) -> float:
    return round(value, 2)


def calculate_item_total(product: Mapping[str, Any], quantity: float) -> ItemTotals:
    price = float(product.get("price", 0))
    base_quantity = float(product.get("base_measurement_quantity") or 1)
    sold_as_unit = product.get("is_sold_as_unit", True)
    discount = float(product.get("discount_percentage") or 0)

    if sold_as_unit:
        original_total = price * quantity
        actual_quantity = base_quantity * quantity
    else:
        original_total = price / base_quantity * quantity
        actual_quantity = quantity

    savings = original_total * discount / 100 if discount else 0.0
    return ItemTotals(
        total=_money(original_total - savings),
        original_total=_money(original_total),
        savings=_money(savings),
        actual_quantity=actual_quantity,
    )


def calculate_bag_totals(items: Iterable[tuple[Mapping[str, Any], float]]) -> BagTotals:
    """Sum item totals over ``(product, quantity)`` pairs."""
    total = original_total = savings = 0.0
    for product, quantity in items:
        item = calculate_item_total(product, quantity)
        total += item.total
        original_total += item.original_total
        savings += item.savings
    return BagTotals(total=_money(total), original_total=_money(original_total), savings=_money(savings))
