"""
Fixed-width receipt and kitchen ticket text.

Operators diff printed tickets, so the column arithmetic here is exact: a
32 character line, centring with ``(32 - len) // 2`` leading spaces, item
names cut to 16 characters and amounts right-aligned.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from pos.cart import Totals, line_total, reconstruct_totals
from pos.config import RECEIPT_WIDTH
from pos.models import CartItem, Order, OrderType, PaymentMethod, StoreSettings

LINE = "-" * RECEIPT_WIDTH
BILL_COLUMNS = "Qty Item             Price"


def center(text: str) -> str:
    pad = max(0, (RECEIPT_WIDTH - len(text)) // 2)
    return " " * pad + text


def format_receipt_date(moment: datetime) -> str:
    """Render like ``19/10/2026, 3:04:05 pm``."""
    hour = moment.hour % 12 or 12
    suffix = "am" if moment.hour < 12 else "pm"
    return f"{moment:%d/%m/%Y}, {hour}:{moment:%M:%S} {suffix}"


def _amount(value: float, width: int = 10) -> str:
    return f"{value:.2f}".rjust(width)


def format_rate(rate: float) -> str:
    """Percentages print without a trailing ``.0``."""
    value = float(rate)
    return str(int(value)) if value.is_integer() else str(value)


def _reference_line(order_id: str | None, invoice_number: str | None) -> str:
    if invoice_number:
        return f"Invoice: #{invoice_number}"
    if order_id:
        return f"Order: #{order_id[-6:].upper()}"
    return "Order: [New]"


def _info_block(
    printed_at: datetime,
    order_type: OrderType,
    table_name: str | None,
    order_id: str | None,
    invoice_number: str | None,
) -> list[str]:
    lines = [
        f"Date: {format_receipt_date(printed_at)}",
        _reference_line(order_id, invoice_number),
        f"Type: {order_type.value}",
    ]
    if table_name:
        lines.append(f"Table: {table_name}")
    lines.append(LINE)
    return lines


def render_kot(
    items: Iterable[CartItem],
    settings: StoreSettings,
    order_type: OrderType,
    *,
    table_name: str | None = None,
    order_id: str | None = None,
    invoice_number: str | None = None,
    title: str | None = None,
    printed_at: datetime | None = None,
) -> str:
    """Kitchen order ticket: quantities, names, modifiers and notes only."""
    lines = [center(title or settings.invoice_header or "KITCHEN TICKET"), LINE]
    lines.extend(_info_block(printed_at or datetime.now(), order_type, table_name, order_id, invoice_number))
    for item in items:
        lines.append(f"{item.quantity} x {item.name}")
        if item.modifiers:
            lines.append(f"   [{', '.join(modifier.name for modifier in item.modifiers)}]")
        if item.notes:
            lines.append(f"   Note: {item.notes}")
    lines.append(LINE)
    return "".join(f"{line}\n" for line in lines)


def render_bill(
    items: Iterable[CartItem],
    settings: StoreSettings,
    order_type: OrderType,
    totals: Totals,
    *,
    table_name: str | None = None,
    order_id: str | None = None,
    invoice_number: str | None = None,
    title: str | None = None,
    printed_at: datetime | None = None,
    payment_method: PaymentMethod | None = None,
    show_payment: bool = False,
    show_net_subtotal: bool = False,
) -> str:
    """
    Customer bill with the totals block and footer.

    The counter preview prints the subtotal after discount
    (``show_net_subtotal``); reprints of stored orders print the gross.
    """
    lines = [center(title or settings.invoice_header or "POS"), center(settings.store_name)]
    if settings.address:
        lines.append(center(settings.address))
    if settings.phone:
        lines.append(center(settings.phone))
    lines.append(LINE)
    lines.extend(_info_block(printed_at or datetime.now(), order_type, table_name, order_id, invoice_number))

    lines.append(BILL_COLUMNS)
    for item in items:
        amount = f"{line_total(item):.2f}"
        lines.append(f"{str(item.quantity).ljust(3)} {item.name[:16].ljust(16)} {amount.rjust(8)}")

    lines.append(LINE)
    subtotal = totals.net_subtotal if show_net_subtotal else totals.subtotal
    lines.append(f"Subtotal:    {_amount(subtotal)}")
    if totals.discount > 0:
        lines.append(f"Discount:   -{_amount(totals.discount)}")
    if settings.vat_enabled:
        lines.append(f"VAT ({format_rate(settings.vat_rate)}%):    {_amount(totals.tax)}")
    if settings.service_charge_enabled and totals.service_charge > 0:
        lines.append(
            f"S.Charge ({format_rate(settings.service_charge_rate)}%):{_amount(totals.service_charge)}"
        )
    lines.append(LINE)
    lines.append(f"TOTAL:       {settings.currency_symbol}{_amount(totals.total, 9)}")
    lines.append(LINE)

    if show_payment:
        lines.append(f"Payment: {payment_method.value if payment_method else 'UNPAID'}")
    lines.append(center(settings.invoice_footer or "Thank You!"))
    return "".join(f"{line}\n" for line in lines)


def render_order_receipt(order: Order, settings: StoreSettings, table_name: str | None = None) -> str:
    """Reprint a stored order from its lines, stored total and payment label."""
    return render_bill(
        order.items,
        settings,
        order.type,
        reconstruct_totals(order, settings),
        table_name=table_name,
        order_id=order.id,
        invoice_number=order.display_number,
        title=settings.invoice_header or "RECEIPT",
        printed_at=order.timestamp,
        payment_method=order.payment_method,
        show_payment=True,
    )
