"""Sales aggregates over order history. Cancelled orders never count."""

from __future__ import annotations

import csv
import io
from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Iterable

from pos.constant import ESTIMATED_COST_RATIO, TOP_ITEMS_LIMIT
from pos.models import InventoryItem, Order, OrderStatus, OrderType, PaymentMethod

UNPAID = "UNPAID"
CSV_HEADER = ("Date", "Order ID", "Type", "Total", "Payment")
BUSINESS_HOURS = range(8, 24)


@dataclass(frozen=True)
class SalesSummary:
    total_sales: float
    order_count: int
    average_order_value: float
    estimated_gross_profit: float


@dataclass(frozen=True)
class HourlySales:
    hour: int
    label: str
    sales: float
    orders: int


@dataclass(frozen=True)
class ItemPerformance:
    name: str
    quantity: int
    revenue: float


def valid_orders(orders: Iterable[Order]) -> list[Order]:
    return [order for order in orders if order.status != OrderStatus.CANCELLED]


def sales_summary(orders: Iterable[Order]) -> SalesSummary:
    counted = valid_orders(orders)
    total = sum((order.total_amount for order in counted), 0.0)
    count = len(counted)
    return SalesSummary(
        total_sales=total,
        order_count=count,
        average_order_value=total / count if count else 0.0,
        estimated_gross_profit=total * (1 - ESTIMATED_COST_RATIO),
    )


def hour_label(hour: int) -> str:
    if hour == 0:
        return "12am"
    if hour == 12:
        return "12pm"
    return f"{hour - 12}pm" if hour > 12 else f"{hour}am"


def hourly_sales(orders: Iterable[Order]) -> list[HourlySales]:
    """Per-hour totals; business hours are always listed, other hours only with sales."""
    counted = valid_orders(orders)
    if not counted:
        return []
    sales: defaultdict[int, float] = defaultdict(float)
    counts: Counter[int] = Counter()
    for order in counted:
        sales[order.timestamp.hour] += order.total_amount
        counts[order.timestamp.hour] += 1
    return [
        HourlySales(hour=hour, label=hour_label(hour), sales=sales[hour], orders=counts[hour])
        for hour in range(24)
        if sales[hour] > 0 or hour in BUSINESS_HOURS
    ]


def top_items(orders: Iterable[Order], limit: int = TOP_ITEMS_LIMIT) -> list[ItemPerformance]:
    """Best sellers by base-price revenue, grouped by item name."""
    quantity: Counter[str] = Counter()
    revenue: defaultdict[str, float] = defaultdict(float)
    for order in valid_orders(orders):
        for item in order.items:
            quantity[item.name] += item.quantity
            revenue[item.name] += item.price * item.quantity
    ranked = sorted(revenue, key=lambda name: revenue[name], reverse=True)
    return [ItemPerformance(name=name, quantity=quantity[name], revenue=revenue[name]) for name in ranked[:limit]]


def payment_breakdown(orders: Iterable[Order]) -> dict[PaymentMethod, float]:
    totals: dict[PaymentMethod, float] = {}
    for order in valid_orders(orders):
        if order.payment_method is not None:
            totals[order.payment_method] = totals.get(order.payment_method, 0.0) + order.total_amount
    return totals


def order_type_breakdown(orders: Iterable[Order]) -> dict[OrderType, int]:
    return dict(Counter(order.type for order in valid_orders(orders)))


def category_sales(orders: Iterable[Order]) -> list[tuple[str, float]]:
    totals: defaultdict[str, float] = defaultdict(float)
    for order in valid_orders(orders):
        for item in order.items:
            totals[item.category] += item.price * item.quantity
    return sorted(totals.items(), key=lambda entry: entry[1], reverse=True)


def low_stock_items(inventory: Iterable[InventoryItem]) -> list[InventoryItem]:
    return [item for item in inventory if item.is_low_stock]


def filter_orders(
    orders: Iterable[Order],
    status: OrderStatus | None = None,
    order_type: OrderType | None = None,
    payment: PaymentMethod | str | None = None,
    query: str = "",
) -> list[Order]:
    """
    Order history search, newest first.

    ``payment`` may be a method or ``"UNPAID"``. ``query`` matches order id,
    invoice number and customer name case-insensitively, and phone as typed.
    """
    needle = query.strip().lower()

    def keep(order: Order) -> bool:
        if status is not None and order.status != status:
            return False
        if order_type is not None and order.type != order_type:
            return False
        if payment == UNPAID:
            if order.payment_method is not None:
                return False
        elif payment is not None and order.payment_method != PaymentMethod(payment):
            return False
        if not needle:
            return True
        return (
            needle in order.id.lower()
            or needle in (order.invoice_number or "").lower()
            or query.strip() in (order.customer_phone or "")
            or needle in (order.customer_name or "").lower()
        )

    return sorted((order for order in orders if keep(order)), key=lambda order: order.timestamp, reverse=True)


def paid_revenue(orders: Iterable[Order]) -> float:
    """Revenue actually collected: paid, non-cancelled orders."""
    return sum((order.total_amount for order in valid_orders(orders) if order.is_paid), 0.0)


def export_sales_csv(orders: Iterable[Order]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for order in orders:
        writer.writerow(
            (
                f"{order.timestamp:%d/%m/%Y}",
                order.invoice_number or order.id,
                order.type.value,
                f"{order.total_amount:.2f}",
                order.payment_method.value if order.payment_method else "Unpaid",
            )
        )
    return buffer.getvalue()
