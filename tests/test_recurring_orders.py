"""Tests for recurring order scheduling and generation."""

from datetime import datetime, timedelta, timezone

import pytest

from freshpick.core.errors import ValidationAppError
from freshpick.schemas.orders import OrderCreate, RecurringOrderUpdate
from freshpick.services.order_service import OrderService
from freshpick.services.product_service import PRODUCTS
from freshpick.services.recurring_order_service import (
    ORDERS,
    RecurringOrderService,
    calculate_next_delivery,
    resume_delivery,
    sunday_based_weekday,
    validate_recurrence_pattern,
)

UTC = timezone.utc
# 2026-01-05 is a Monday
MONDAY = datetime(2026, 1, 5, 9, 0, tzinfo=UTC)
EVERY_DAY = [0, 1, 2, 3, 4, 5, 6]


def day(d: int, hour: int = 9) -> datetime:
    return datetime(2026, 1, d, hour, 0, tzinfo=UTC)


class TestWeekdays:
    @pytest.mark.parametrize(("moment", "expected"), [(day(4), 0), (day(5), 1), (day(10), 6)])
    def test_sunday_is_zero(self, moment, expected):
        assert sunday_based_weekday(moment) == expected


class TestCalculateNextDelivery:
    def test_next_matching_weekday_is_strictly_after_current(self):
        assert calculate_next_delivery({"days_of_week": [1]}, MONDAY) == day(12)
        assert calculate_next_delivery({"days_of_week": [3]}, MONDAY) == day(7)

    def test_inclusive_allows_current_moment(self):
        assert calculate_next_delivery({"days_of_week": [1]}, MONDAY, inclusive=True) == MONDAY

    def test_picks_closest_of_several_weekdays(self):
        assert calculate_next_delivery({"days_of_week": [5, 2]}, MONDAY) == day(6)

    def test_excluded_dates_are_skipped_by_calendar_day(self):
        pattern = {"days_of_week": [3], "exclude_dates": [datetime(2026, 1, 7, tzinfo=UTC)]}

        assert calculate_next_delivery(pattern, MONDAY) == day(14)

    def test_include_dates_compete_with_weekdays(self):
        pattern = {"days_of_week": [3], "include_dates": [day(6, 8), day(2, 8)]}

        assert calculate_next_delivery(pattern, MONDAY) == day(6, 8)

    def test_include_dates_alone(self):
        assert calculate_next_delivery({"include_dates": [day(20)]}, MONDAY) == day(20)
        assert calculate_next_delivery({"include_dates": [day(1)]}, MONDAY) is None

    def test_selected_dates_take_precedence(self):
        pattern = {"days_of_week": [2], "selected_dates": [day(20), day(10)]}

        assert calculate_next_delivery(pattern, MONDAY) == day(10)

    def test_exhausted_selected_dates_end_the_schedule(self):
        pattern = {"days_of_week": [2], "selected_dates": [day(2)]}

        assert calculate_next_delivery(pattern, MONDAY) is None

    def test_future_start_date_anchors_the_search(self):
        start = datetime(2026, 1, 19, tzinfo=UTC)

        assert calculate_next_delivery({"days_of_week": [1], "start_date": start}, MONDAY) == start

    def test_nothing_after_end_date(self):
        end = day(6, 23)

        assert calculate_next_delivery({"days_of_week": [3], "end_date": end}, MONDAY) is None
        assert calculate_next_delivery({"days_of_week": [1], "end_date": end}, day(7)) is None

    def test_empty_pattern(self):
        assert calculate_next_delivery({}, MONDAY) is None


class TestResumeDelivery:
    def test_day_already_delivered_is_skipped(self):
        assert resume_delivery({"days_of_week": EVERY_DAY}, MONDAY, day(5, 12)) == day(6)

    def test_same_day_include_date_is_skipped(self):
        pattern = {"include_dates": [day(5, 18), day(8)]}

        assert resume_delivery(pattern, MONDAY, day(5, 12)) == day(8)

    def test_earlier_delivery_allows_today(self):
        assert resume_delivery({"days_of_week": [3]}, MONDAY, day(7, 12)) == day(7, 12)

    def test_without_previous_delivery(self):
        assert resume_delivery({"days_of_week": [1]}, None, MONDAY) == MONDAY


class TestValidateRecurrencePattern:
    def test_valid_pattern(self):
        assert validate_recurrence_pattern({"days_of_week": [1, 3]}, MONDAY) == (True, [])

    @pytest.mark.parametrize(
        ("pattern", "message"),
        [
            ({}, "At least one recurrence pattern must be specified"),
            ({"days_of_week": [7]}, "Days of week must be between 0 (Sunday) and 6 (Saturday)"),
            ({"days_of_week": [1], "start_date": day(10), "end_date": day(9)}, "Start date must be before end date"),
            ({"selected_dates": [day(1)]}, "Selected dates must be in the future"),
        ],
    )
    def test_invalid_patterns(self, pattern, message):
        valid, errors = validate_recurrence_pattern(pattern, MONDAY)

        assert valid is False
        assert message in errors


@pytest.fixture
def recurring(store):
    return RecurringOrderService(store)


@pytest.fixture
def make_template(store, customer, make_product):
    def _make(recurrence=None, quantity=2, product=None):
        product = product or make_product()
        data = OrderCreate(
            items=[{"product": product["_id"], "quantity": quantity}],
            recurrence=recurrence or {"days_of_week": EVERY_DAY},
        )
        return OrderService(store).create_order(customer, data)

    return _make


def _later(minutes: int = 1) -> datetime:
    return datetime.now(UTC) + timedelta(minutes=minutes)


class TestProcessing:
    def test_due_template_generates_confirmed_order(self, store, recurring, make_template):
        template = make_template()

        report = recurring.process_recurring_orders(template["next_delivery_at"])

        assert report.to_dict() == {"processed": 1, "created": 1, "errors": []}
        generated = store.find_one(ORDERS, {"parent_order_id": template["_id"]})
        assert generated["order_number"].startswith("AUTO-")
        assert generated["status"] == "confirmed"
        assert generated["is_recurring"] is False
        assert generated["total"] == template["total"]
        assert generated["estimated_delivery"] == template["next_delivery_at"]
        assert store.find_one(PRODUCTS, {"_id": template["items"][0]["product_id"]})["stock_qty"] == 16

        updated = store.find_one(ORDERS, {"_id": template["_id"]})
        assert updated["generated_count"] == 1
        assert updated["next_delivery_at"] == template["next_delivery_at"] + timedelta(days=1)

    def test_template_fills_the_first_delivery(self, store, recurring, make_template):
        template = make_template()

        report = recurring.process_recurring_orders(_later())

        assert template["estimated_delivery"] == template["created_at"]
        assert template["next_delivery_at"] == template["estimated_delivery"] + timedelta(days=1)
        assert report.created == 0
        assert store.count(ORDERS, {"parent_order_id": template["_id"]}) == 0
        assert store.find_one(PRODUCTS, {"_id": template["items"][0]["product_id"]})["stock_qty"] == 18

    def test_one_order_per_delivery_date(self, store, recurring, make_template):
        template = make_template(quantity=1)
        start = template["next_delivery_at"]

        for hours in range(0, 72, 6):
            recurring.process_recurring_orders(start + timedelta(hours=hours))

        generated = store.find(ORDERS, {"parent_order_id": template["_id"]})
        deliveries = [template["estimated_delivery"]] + [g["estimated_delivery"] for g in generated]
        assert len(generated) == 3
        assert len({d.date() for d in deliveries}) == len(deliveries)

    def test_single_selected_date_is_filled_by_the_template(self, store, recurring, make_template):
        template = make_template({"selected_dates": [_later(60)]})

        report = recurring.process_recurring_orders(_later(120))

        assert template["schedule_status"] == "ended"
        assert "next_delivery_at" not in template
        assert report.processed == 0

    def test_templates_are_not_generated_twice_for_one_delivery(self, recurring, make_template):
        now = make_template()["next_delivery_at"]

        recurring.process_recurring_orders(now)
        second = recurring.process_recurring_orders(now)

        assert second.processed == 0

    def test_out_of_stock_creates_pending_order_with_note(self, store, recurring, make_template):
        template = make_template()
        product_id = template["items"][0]["product_id"]
        store.update_one(PRODUCTS, {"_id": product_id}, {"$set": {"stock_qty": 1}})

        recurring.process_recurring_orders(template["next_delivery_at"])

        generated = store.find_one(ORDERS, {"parent_order_id": template["_id"]})
        assert generated["status"] == "pending"
        assert generated["stock_reserved"] is False
        assert f"Out of stock: {product_id}" in generated["notes"]
        assert store.find_one(PRODUCTS, {"_id": product_id})["stock_qty"] == 1

    def test_paused_templates_are_skipped(self, store, recurring, make_template):
        template = make_template()
        store.update_one(ORDERS, {"_id": template["_id"]}, {"$set": {"schedule_status": "paused"}})

        report = recurring.process_recurring_orders(_later())

        assert report.processed == 0

    def test_last_selected_date_ends_schedule(self, store, recurring, make_template):
        template = make_template({"selected_dates": [_later(60), _later(60 * 24)]})

        report = recurring.process_recurring_orders(_later(60 * 25))

        assert report.created == 1
        updated = store.find_one(ORDERS, {"_id": template["_id"]})
        assert updated["schedule_status"] == "ended"
        assert "next_delivery_at" not in updated

    def test_failing_template_does_not_stop_the_run(self, store, recurring, make_template):
        make_template()
        store.insert_one(
            ORDERS,
            {
                "_id": "legacy-1",
                "is_recurring": True,
                "schedule_status": "active",
                "next_delivery_at": datetime(2020, 1, 1, tzinfo=UTC),
            },
        )

        report = recurring.process_recurring_orders(_later(60 * 25))

        assert report.processed == 2
        assert report.created == 1
        assert report.errors == ["Order legacy-1: Invalid order ID"]

    def test_create_next_instance_requires_recurring_order(self, store, recurring, customer, make_product):
        order = OrderService(store).create_order(
            customer, OrderCreate(items=[{"product": make_product()["_id"], "quantity": 1}])
        )

        with pytest.raises(ValidationAppError) as exc_info:
            recurring.create_next_order_instance(order["_id"])

        assert exc_info.value.code == "not_recurring"


class TestTemplateManagement:
    def test_pause_and_resume(self, recurring, customer, make_template):
        template = make_template()

        _, paused = recurring.update_template(template["_id"], RecurringOrderUpdate(schedule_status="paused"), customer)
        _, resumed = recurring.update_template(template["_id"], RecurringOrderUpdate(schedule_status="active"), customer)

        assert paused["schedule_status"] == "paused"
        assert resumed["schedule_status"] == "active"
        assert resumed["next_delivery_at"] is not None

    def test_resume_does_not_repeat_the_first_delivery(self, recurring, customer, make_template):
        template = make_template()

        recurring.update_template(template["_id"], RecurringOrderUpdate(schedule_status="paused"), customer)
        _, resumed = recurring.update_template(template["_id"], RecurringOrderUpdate(schedule_status="active"), customer)

        assert resumed["next_delivery_at"].date() > template["estimated_delivery"].date()

    def test_new_pattern_recomputes_next_delivery(self, recurring, customer, make_template):
        template = make_template()
        now = datetime.now(UTC)

        _, after = recurring.update_template(
            template["_id"],
            RecurringOrderUpdate(recurrence={"include_dates": [now + timedelta(days=3)]}),
            customer,
            now=now,
        )

        assert after["next_delivery_at"] == now + timedelta(days=3)

    def test_new_items_are_repriced(self, recurring, customer, make_template, make_product):
        template = make_template()
        dearer = make_product(price=40.0)

        _, after = recurring.update_template(
            template["_id"],
            RecurringOrderUpdate(items=[{"product": dearer["_id"], "quantity": 2}]),
            customer,
        )

        assert after["subtotal"] == 80.0
        assert after["shipping"] == 0.0

    def test_ended_schedule_cannot_be_changed(self, recurring, customer, make_template):
        template = make_template()
        recurring.end_template(template["_id"], customer)

        with pytest.raises(ValidationAppError) as exc_info:
            recurring.update_template(template["_id"], RecurringOrderUpdate(schedule_status="active"), customer)

        assert exc_info.value.code == "schedule_ended"

    def test_stats(self, store, recurring, make_template):
        first = make_template()
        second = make_template()
        store.update_one(ORDERS, {"_id": second["_id"]}, {"$set": {"schedule_status": "paused"}})
        store.update_one(ORDERS, {"_id": first["_id"]}, {"$set": {"next_delivery_at": _later(60)}})

        stats = recurring.get_stats()

        assert stats["total"] == 2
        assert (stats["active"], stats["paused"], stats["ended"]) == (1, 1, 0)
        assert stats["total_value"] == first["total"] + second["total"]
        assert [u["order_id"] for u in stats["upcoming_deliveries"]] == [first["_id"]]


class TestRecurringRoutes:
    def test_customer_lists_and_ends_own_templates(self, client, customer_headers, make_template):
        template = make_template()

        listed = client.get("/api/orders/recurring", headers=customer_headers).json()["data"]
        ended = client.delete(f"/api/orders/recurring/{template['_id']}", headers=customer_headers)

        assert [t["id"] for t in listed] == [template["_id"]]
        assert ended.status_code == 200
        assert ended.json()["data"]["schedule_status"] == "ended"

    def test_pause_via_api(self, client, customer_headers, make_template):
        template = make_template()

        response = client.put(
            f"/api/orders/recurring/{template['_id']}",
            json={"schedule_status": "paused"},
            headers=customer_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["schedule_status"] == "paused"

    def test_other_customers_template_is_hidden(self, client, make_template, make_user, headers_for):
        template = make_template()

        response = client.get(f"/api/orders/recurring/{template['_id']}", headers=headers_for(make_user()))

        assert response.status_code == 404

    def test_admin_processes_and_reads_stats(self, client, store, admin_headers, make_template):
        make_template()
        store.update_many(ORDERS, {}, {"$set": {"next_delivery_at": datetime(2020, 1, 1, tzinfo=UTC)}})

        processed = client.post("/api/admin/orders/recurring/process", headers=admin_headers)
        stats = client.get("/api/admin/orders/recurring/stats", headers=admin_headers)

        assert processed.json()["data"]["created"] == 1
        assert stats.json()["data"]["total"] == 1
        assert store.count("audit_logs", {"action": "process_recurring"}) == 1
