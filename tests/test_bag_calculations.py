"""Tests for bag price arithmetic."""

import pytest

from freshpick.utils.bag_calculations import calculate_bag_totals, calculate_item_total


def test_unit_product_is_priced_per_unit():
    product = {"price": 2.5, "is_sold_as_unit": True, "base_measurement_quantity": 500}

    totals = calculate_item_total(product, 4)

    assert totals.total == 10.0
    assert totals.savings == 0.0
    assert totals.actual_quantity == 2000


def test_loose_product_is_priced_by_amount():
    # 4.00 per 1000 g, buying 250 g
    product = {"price": 4.0, "is_sold_as_unit": False, "base_measurement_quantity": 1000}

    totals = calculate_item_total(product, 250)

    assert totals.total == 1.0
    assert totals.actual_quantity == 250


def test_discount_is_applied_and_reported_as_savings():
    product = {"price": 10.0, "discount_percentage": 15}

    totals = calculate_item_total(product, 3)

    assert totals.original_total == 30.0
    assert totals.savings == 4.5
    assert totals.total == 25.5


def test_missing_fields_default_to_unit_pricing():
    totals = calculate_item_total({"price": 1.99}, 3)

    assert totals.total == pytest.approx(5.97)
    assert totals.actual_quantity == 3


def test_bag_totals_sum_items():
    pairs = [
        ({"price": 10.0, "discount_percentage": 10}, 2),
        ({"price": 3.0}, 1),
    ]

    totals = calculate_bag_totals(pairs)

    assert totals.original_total == 23.0
    assert totals.savings == 2.0
    assert totals.total == 21.0


def test_empty_bag():
    totals = calculate_bag_totals([])

    assert (totals.total, totals.original_total, totals.savings) == (0.0, 0.0, 0.0)
