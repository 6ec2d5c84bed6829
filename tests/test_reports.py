"""Tests for sales aggregates and the CSV export."""

from dataclasses import replace
from datetime import datetime

import pytest

from pos.models import InventoryItem, OrderStatus, OrderType, PaymentMethod
from pos.reports import (
    category_sales,
    export_sales_csv,
    filter_orders,
    hour_label,
    hourly_sales,
    low_stock_items,
    order_type_breakdown,
    paid_revenue,
    payment_breakdown,
    sales_summary,
    top_items,
)


@pytest.fixture
def history(running_order, line, burger, lassi):
    """Three orders across the afternoon; the cancelled one never counts."""
    lunch = replace(
        running_order,
        status=OrderStatus.COMPLETED,
        payment_method=PaymentMethod.CASH,
        timestamp=datetime(2026, 10, 19, 13, 10),
    )
    takeaway = replace(
        running_order,
        id="ORD-00002",
        invoice_number="INV-1001",
        table_id=None,
        type=OrderType.TAKE_AWAY,
        items=(line(burger, "L3", quantity=3),),
        total_amount=315.0,
        status=OrderStatus.COMPLETED,
        payment_method=PaymentMethod.BKASH,
        customer_name="Nusrat Jahan",
        customer_phone="01711000000",
        timestamp=datetime(2026, 10, 19, 13, 45),
    )
    voided = replace(
        running_order,
        id="ORD-00003",
        invoice_number="INV-1002",
        items=(line(lassi, "L4", quantity=10),),
        total_amount=525.0,
        status=OrderStatus.CANCELLED,
        timestamp=datetime(2026, 10, 19, 2, 5),
    )
    return (lunch, takeaway, voided)


class TestSummary:
    def test_cancelled_orders_excluded(self, history):
        summary = sales_summary(history)

        assert summary.total_sales == pytest.approx(515.0)
        assert summary.order_count == 2
        assert summary.average_order_value == pytest.approx(257.5)
        assert summary.estimated_gross_profit == pytest.approx(309.0)

    def test_empty_history(self):
        summary = sales_summary(())
        assert summary.order_count == 0
        assert summary.average_order_value == 0

    def test_paid_revenue_skips_unpaid(self, history, running_order):
        assert paid_revenue(history + (running_order,)) == pytest.approx(515.0)


class TestHourly:
    @pytest.mark.parametrize("hour, label", [(0, "12am"), (9, "9am"), (12, "12pm"), (13, "1pm"), (23, "11pm")])
    def test_hour_label(self, hour, label):
        assert hour_label(hour) == label

    def test_business_hours_always_listed(self, history):
        rows = hourly_sales(history)

        assert [row.hour for row in rows] == list(range(8, 24))
        one_pm = next(row for row in rows if row.hour == 13)
        assert one_pm.sales == pytest.approx(515.0)
        assert one_pm.orders == 2
        assert one_pm.label == "1pm"

    def test_late_sale_adds_its_hour(self, history):
        late = replace(history[0], id="ORD-LATE", timestamp=datetime(2026, 10, 19, 3, 0))
        assert [row.hour for row in hourly_sales((late,))][0] == 3

    def test_no_orders_no_rows(self, history):
        assert hourly_sales(history[2:]) == []


class TestBreakdowns:
    def test_top_items_by_revenue(self, history):
        items = top_items(history)

        assert [(item.name, item.quantity, item.revenue) for item in items] == [
            ("Classic Burger", 4, 400.0),
            ("Mango Lassi", 2, 100.0),
        ]

    def test_top_items_limit(self, history):
        assert len(top_items(history, limit=1)) == 1

    def test_payment_and_type(self, history):
        assert payment_breakdown(history) == {PaymentMethod.CASH: 200.0, PaymentMethod.BKASH: 315.0}
        assert order_type_breakdown(history) == {OrderType.DINE_IN: 1, OrderType.TAKE_AWAY: 1}

    def test_category_sales_sorted(self, history):
        assert category_sales(history) == [("Burgers", 400.0), ("Drinks", 100.0)]

    def test_low_stock(self):
        rice = InventoryItem(id="I1", name="Rice", quantity=5, unit="kg", threshold=5)
        oil = InventoryItem(id="I2", name="Oil", quantity=9, unit="l", threshold=2)
        assert low_stock_items((rice, oil)) == [rice]


class TestHistoryFilter:
    def test_newest_first(self, history):
        assert [order.id for order in filter_orders(history)] == ["ORD-00002", "ORD-00001", "ORD-00003"]

    def test_status_and_type(self, history):
        assert [o.id for o in filter_orders(history, status=OrderStatus.CANCELLED)] == ["ORD-00003"]
        assert [o.id for o in filter_orders(history, order_type=OrderType.TAKE_AWAY)] == ["ORD-00002"]

    def test_payment_filter(self, history):
        assert [o.id for o in filter_orders(history, payment="UNPAID")] == ["ORD-00003"]
        assert [o.id for o in filter_orders(history, payment=PaymentMethod.CASH)] == ["ORD-00001"]
        assert [o.id for o in filter_orders(history, payment="BKASH")] == ["ORD-00002"]

    @pytest.mark.parametrize("query, expected", [("nusrat", ["ORD-00002"]), ("inv-1002", ["ORD-00003"]), ("0171", ["ORD-00002"])])
    def test_search(self, history, query, expected):
        assert [o.id for o in filter_orders(history, query=query)] == expected


def test_export_sales_csv(history):
    rows = export_sales_csv(history[:2] + (replace(history[2], invoice_number=None),)).splitlines()

    assert rows[0] == "Date,Order ID,Type,Total,Payment"
    assert rows[1] == "19/10/2026,INV-1000,DINE_IN,200.00,CASH"
    assert rows[2] == "19/10/2026,INV-1001,TAKE_AWAY,315.00,BKASH"
    assert rows[3] == "19/10/2026,ORD-00003,DINE_IN,525.00,Unpaid"
