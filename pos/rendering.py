"""Rich text helpers for the terminal surfaces."""

from __future__ import annotations

from datetime import datetime

from rich.text import Text

from pos.constant import STATUS_BADGE_STYLES, TYPE_BADGE_STYLES
from pos.models import InventoryItem, Order, OrderStatus, OrderType


def status_badge(status: OrderStatus) -> Text:
    return Text(f" {status.value} ", style=STATUS_BADGE_STYLES.get(status.value, "bold"))


def type_badge(order_type: OrderType) -> Text:
    return Text(f" {order_type.value.replace('_', ' ')} ", style=TYPE_BADGE_STYLES.get(order_type.value, "bold"))


def format_elapsed(order: Order, now: datetime | None = None) -> str:
    now = now or datetime.now(order.timestamp.tzinfo)
    minutes = max(0, int((now - order.timestamp).total_seconds() // 60))
    return f"{minutes}m"


def format_order_header(order: Order, table_name: str | None = None, now: datetime | None = None) -> Text:
    """Badge row for a kitchen card: status, type, number, table and age."""
    text = Text()
    text.append_text(status_badge(order.status))
    text.append(" ")
    text.append_text(type_badge(order.type))
    text.append(f" #{order.display_number}", style="bold")
    if table_name:
        text.append(f"  {table_name}")
    text.append(f"  {format_elapsed(order, now)}", style="dim")
    return text


def format_order_items(order: Order) -> Text:
    """Item lines with modifiers and notes; lines not yet sent to the kitchen are flagged."""
    text = Text()
    for idx, item in enumerate(order.items):
        if idx > 0:
            text.append("\n")
        text.append(f"{item.quantity} x {item.name}")
        if not item.is_printed:
            text.append(" NEW", style="bold #f2c94c")
        if item.modifiers:
            text.append(f"\n    [{', '.join(modifier.name for modifier in item.modifiers)}]", style="white")
        if item.notes:
            text.append(f"\n    Note: {item.notes}", style="italic")
    return text


def format_stock_label(item: InventoryItem) -> Text:
    style = "bold #b23a48" if item.is_low_stock else "#5fbf72"
    label = "Low Stock" if item.is_low_stock else "In Stock"
    return Text(f"{item.name}: {item.quantity} {item.unit} ({label})", style=style)
