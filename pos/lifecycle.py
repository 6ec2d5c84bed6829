"""
Order and table lifecycle on top of the permissive reducer.

The reducer applies any status it is given. These functions are the
terminal-side operations: they check that a transition is legal, issue the
accompanying table dispatches (the reducer never cascades) and produce the
kitchen ticket text a terminal would print.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Iterable

from pos import actions as act
from pos.cart import NO_DISCOUNT, Discount, Totals, compute_totals, reconstruct_totals
from pos.constant import SPLIT_INVOICE_SUFFIX
from pos.errors import InvalidTransitionError, OrderRejectedError
from pos.models import (
    TERMINAL_STATUSES,
    Order,
    OrderStatus,
    OrderType,
    PaymentMethod,
    Reservation,
    StoreSettings,
    Table,
    TableStatus,
)
from pos.receipt import render_bill, render_kot

if TYPE_CHECKING:
    from pos.session import PosSession

logger = logging.getLogger(__name__)

STATUS_FLOW = (OrderStatus.PENDING, OrderStatus.COOKING, OrderStatus.READY, OrderStatus.COMPLETED)

KOT_NEW_ORDER = "KOT (NEW ORDER)"
KOT_ADD_ON = "KOT (ADD-ON)"
KOT_LAST_ADD_ON = "KOT (LAST ADD-ON)"
KOT_RUNNING_ORDER = "KOT (RUNNING ORDER)"
KOT_REPRINT = "KOT (DUPLICATE / REPRINT)"
KOT_PREVIEW = "KOT (PREVIEW)"

RESERVATION_HOLD_WINDOW = timedelta(hours=1)


@dataclass(frozen=True)
class PlacedOrder:
    """Result of a counter operation: the order as stored plus the ticket to print."""

    order: Order
    kitchen_ticket: str | None
    totals: Totals


def next_status(status: OrderStatus) -> OrderStatus | None:
    if status not in STATUS_FLOW or status == OrderStatus.COMPLETED:
        return None
    return STATUS_FLOW[STATUS_FLOW.index(status) + 1]


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    """Forward along the flow, or CANCELLED from any non-terminal state."""
    if current in TERMINAL_STATUSES:
        return False
    if target == OrderStatus.CANCELLED:
        return True
    if target not in STATUS_FLOW:
        return False
    return STATUS_FLOW.index(target) > STATUS_FLOW.index(current)


def split_invoice_label(settings: StoreSettings) -> str:
    """Cosmetic label for split-off orders; never consumes the counter."""
    return f"{settings.next_invoice_number}{SPLIT_INVOICE_SUFFIX}"


def _new_order_id(now: datetime) -> str:
    return f"ORD-{str(int(now.timestamp() * 1000))[-5:]}"


def _table_name(session: PosSession, table_id: str | None) -> str | None:
    table = session.state.find_table(table_id)
    return table.name if table else None


def _require_order(session: PosSession, order_id: str) -> Order:
    order = session.state.find_order(order_id)
    if order is None:
        raise OrderRejectedError(f"Order {order_id} not found.")
    return order


def _free_table_of(session: PosSession, order: Order) -> None:
    # Only when the table still points at this order; a newer order may own it.
    table = session.state.find_table(order.table_id)
    if table is not None and table.current_order_id == order.id:
        session.dispatch(act.UpdateTableStatus(table.id, TableStatus.AVAILABLE))


def _check_counter_request(session: PosSession, order_type: OrderType, table_id: str | None) -> None:
    if not session.state.cart:
        raise OrderRejectedError("Cart is empty!")
    if order_type == OrderType.DINE_IN and not table_id:
        raise OrderRejectedError("Please select a table for Dine-In orders.")


def place_order(
    session: PosSession,
    order_type: OrderType,
    table_id: str | None = None,
    discount: Discount = NO_DISCOUNT,
    customer_name: str | None = None,
    customer_phone: str | None = None,
    payment_method: PaymentMethod | None = None,
    title: str | None = KOT_NEW_ORDER,
    now: datetime | None = None,
) -> PlacedOrder:
    """Turn the cart into a new PENDING order, print its KOT and seat the table."""
    _check_counter_request(session, order_type, table_id)
    state = session.state
    now = now or datetime.now()
    cart = state.cart
    totals = compute_totals(cart, state.settings, order_type, discount)

    order = Order(
        id=_new_order_id(now),
        table_id=table_id,
        items=cart,
        status=OrderStatus.PENDING,
        type=order_type,
        timestamp=now,
        total_amount=totals.total,
        customer_name=customer_name or None,
        customer_phone=customer_phone or None,
        payment_method=payment_method,
    )
    session.dispatch(act.AddOrder(order))
    ticket = render_kot(
        cart,
        state.settings,
        order_type,
        table_name=_table_name(session, table_id),
        order_id=order.id,
        title=title,
        printed_at=now,
    )
    session.dispatch(act.MarkItemsPrinted(order.id))
    if table_id:
        session.dispatch(act.UpdateTableStatus(table_id, TableStatus.OCCUPIED, order.id))
    session.dispatch(act.ClearCart())

    stored = session.state.find_order(order.id) or order
    logger.info("Placed order id=%s invoice=%s total=%.2f", stored.id, stored.invoice_number, stored.total_amount)
    return PlacedOrder(order=stored, kitchen_ticket=ticket, totals=totals)


def _append_cart(
    session: PosSession,
    order: Order,
    order_type: OrderType,
    discount: Discount,
    title: str,
    now: datetime | None,
) -> tuple[str, Totals]:
    state = session.state
    cart = state.cart
    totals = compute_totals(cart, state.settings, order_type, discount)
    session.dispatch(act.AppendToOrder(order.id, cart, totals.total))
    ticket = render_kot(
        cart,
        state.settings,
        order_type,
        table_name=_table_name(session, order.table_id),
        order_id=order.id,
        invoice_number="ADD-ON" if title == KOT_ADD_ON else None,
        title=title,
        printed_at=now,
    )
    session.dispatch(act.MarkItemsPrinted(order.id))
    return ticket, totals


def send_to_kitchen(
    session: PosSession,
    order_type: OrderType,
    table_id: str | None = None,
    discount: Discount = NO_DISCOUNT,
    customer_phone: str | None = None,
    now: datetime | None = None,
) -> PlacedOrder:
    """
    Send the cart to the kitchen.

    An occupied table with a running order gets the cart appended to that
    order; anything else becomes a new order.
    """
    _check_counter_request(session, order_type, table_id)
    running = session.state.active_order_for_table(table_id)
    table = session.state.find_table(table_id)
    if running is None or table is None or table.status != TableStatus.OCCUPIED:
        return place_order(session, order_type, table_id, discount, customer_phone=customer_phone, now=now)

    ticket, totals = _append_cart(session, running, order_type, discount, KOT_ADD_ON, now)
    session.dispatch(act.ClearCart())
    stored = session.state.find_order(running.id) or running
    logger.info("Appended %d line(s) to order id=%s", len(stored.items) - len(running.items), running.id)
    return PlacedOrder(order=stored, kitchen_ticket=ticket, totals=totals)


def checkout(
    session: PosSession,
    payment_method: PaymentMethod,
    order_type: OrderType,
    table_id: str | None = None,
    discount: Discount = NO_DISCOUNT,
    customer_phone: str | None = None,
    now: datetime | None = None,
) -> PlacedOrder:
    """
    Take payment at the counter.

    For an occupied table the running order is settled, after appending
    whatever is still in the cart. Otherwise the cart becomes a new order that
    already carries its payment label.
    """
    running = session.state.active_order_for_table(table_id)
    table = session.state.find_table(table_id)
    if running is None or table is None or table.status != TableStatus.OCCUPIED:
        return place_order(
            session,
            order_type,
            table_id,
            discount,
            customer_phone=customer_phone,
            payment_method=payment_method,
            title=None,
            now=now,
        )

    ticket = None
    totals = reconstruct_totals(running, session.state.settings)
    if session.state.cart:
        ticket, totals = _append_cart(session, running, order_type, discount, KOT_LAST_ADD_ON, now)
    session.dispatch(act.UpdateOrderPayment(running.id, payment_method))
    session.dispatch(act.UpdateOrderStatus(running.id, OrderStatus.COMPLETED))
    session.dispatch(act.UpdateTableStatus(table.id, TableStatus.AVAILABLE))
    session.dispatch(act.ClearCart())

    stored = session.state.find_order(running.id) or running
    logger.info("Settled table=%s order id=%s payment=%s", table.id, stored.id, payment_method.value)
    return PlacedOrder(order=stored, kitchen_ticket=ticket, totals=totals)


def update_status(session: PosSession, order_id: str, status: OrderStatus) -> Order:
    """Guarded status change; raises ``InvalidTransitionError`` for illegal moves."""
    order = _require_order(session, order_id)
    if not can_transition(order.status, status):
        raise InvalidTransitionError(order.id, order.status.value, status.value)
    session.dispatch(act.UpdateOrderStatus(order.id, status))
    if status in TERMINAL_STATUSES:
        _free_table_of(session, order)
    return session.state.find_order(order.id) or order


def advance_order(session: PosSession, order_id: str) -> Order:
    """Kitchen step: PENDING -> COOKING -> READY -> COMPLETED."""
    order = _require_order(session, order_id)
    target = next_status(order.status)
    if target is None:
        raise InvalidTransitionError(order.id, order.status.value, "next")
    return update_status(session, order.id, target)


def void_order(session: PosSession, order_id: str) -> Order:
    order = update_status(session, order_id, OrderStatus.CANCELLED)
    logger.info("Voided order id=%s", order.id)
    return order


def settle_order(session: PosSession, order_id: str, payment_method: PaymentMethod) -> Order:
    """Record payment; a not-yet-completed order is completed and its table freed."""
    order = _require_order(session, order_id)
    if order.status == OrderStatus.CANCELLED:
        raise InvalidTransitionError(order.id, order.status.value, OrderStatus.COMPLETED.value)
    session.dispatch(act.UpdateOrderPayment(order.id, payment_method))
    if order.status != OrderStatus.COMPLETED:
        session.dispatch(act.UpdateOrderStatus(order.id, OrderStatus.COMPLETED))
        _free_table_of(session, order)
    return session.state.find_order(order.id) or order


def print_kitchen_ticket(session: PosSession, order_id: str, now: datetime | None = None) -> str:
    """
    KOT for a running order.

    Prints only the lines the kitchen has not seen and stamps them; when
    everything was already sent the whole ticket is returned as a reprint.
    """
    order = _require_order(session, order_id)
    settings = session.state.settings
    table_name = _table_name(session, order.table_id)
    unprinted = tuple(item for item in order.items if not item.is_printed)
    if unprinted:
        ticket = render_kot(
            unprinted,
            settings,
            order.type,
            table_name=table_name,
            order_id=order.id,
            invoice_number=order.invoice_number,
            title=KOT_RUNNING_ORDER,
            printed_at=now,
        )
        session.dispatch(act.MarkItemsPrinted(order.id))
        return ticket
    return render_kot(
        order.items,
        settings,
        order.type,
        table_name=table_name,
        order_id=order.id,
        invoice_number=order.invoice_number,
        title=KOT_REPRINT,
        printed_at=now,
    )


def print_bill(session: PosSession, order_id: str, now: datetime | None = None) -> str:
    """Customer bill for a running order, rebuilt from its lines and stored total."""
    order = _require_order(session, order_id)
    settings = session.state.settings
    return render_bill(
        order.items,
        settings,
        order.type,
        reconstruct_totals(order, settings),
        table_name=_table_name(session, order.table_id),
        order_id=order.id,
        invoice_number=order.invoice_number,
        printed_at=now,
    )


def preview_kitchen_ticket(
    session: PosSession, order_type: OrderType, table_id: str | None = None, now: datetime | None = None
) -> str:
    state = session.state
    return render_kot(
        state.cart,
        state.settings,
        order_type,
        table_name=_table_name(session, table_id),
        order_id="Preview",
        title=KOT_PREVIEW,
        printed_at=now,
    )


def preview_bill(
    session: PosSession,
    order_type: OrderType,
    table_id: str | None = None,
    discount: Discount = NO_DISCOUNT,
    now: datetime | None = None,
) -> str:
    """Bill for the cart as it stands, labelled with the invoice number it would get."""
    state = session.state
    return render_bill(
        state.cart,
        state.settings,
        order_type,
        compute_totals(state.cart, state.settings, order_type, discount),
        table_name=_table_name(session, table_id),
        order_id="New",
        invoice_number=state.settings.next_invoice_number,
        printed_at=now,
        show_net_subtotal=True,
    )


def split_order(session: PosSession, order_id: str, target_table_id: str, cart_item_ids: Iterable[str]) -> None:
    ids = tuple(cart_item_ids)
    if not ids or not target_table_id:
        return
    session.dispatch(act.SplitOrder(order_id, target_table_id, ids))


def merge_tables(session: PosSession, parent_id: str, child_ids: Iterable[str]) -> None:
    session.dispatch(act.MergeTables(parent_id, tuple(child for child in child_ids if child != parent_id)))


# --- Tables and reservations ---


def add_table(session: PosSession, now: datetime | None = None) -> Table:
    now = now or datetime.now()
    table = Table(
        id=f"T{str(int(now.timestamp() * 1000))[-4:]}",
        name=f"Table {len(session.state.tables) + 1}",
    )
    session.dispatch(act.AddTable(table))
    return table


def rename_table(session: PosSession, table_id: str, name: str) -> None:
    table = session.state.find_table(table_id)
    if table is None or not name.strip():
        return
    session.dispatch(act.UpdateTable(replace(table, name=name.strip())))


def delete_table(session: PosSession, table_id: str) -> None:
    table = session.state.find_table(table_id)
    if table is None:
        return
    if table.status == TableStatus.OCCUPIED:
        raise OrderRejectedError("Cannot delete an occupied table. Please settle the order first.")
    session.dispatch(act.DeleteTable(table.id))


def toggle_reservation(session: PosSession, table_id: str, is_reserved: bool) -> None:
    session.dispatch(act.ToggleTableReservation(table_id, is_reserved))


def book_reservation(
    session: PosSession,
    table_id: str,
    customer_name: str,
    customer_phone: str,
    date_time: datetime | None,
    guests: int = 2,
    now: datetime | None = None,
) -> Reservation:
    """Add a booking; the table is held as RESERVED when it starts within the hour."""
    if session.state.find_table(table_id) is None or not customer_name or date_time is None:
        raise OrderRejectedError("Please fill in all fields.")
    now = now or datetime.now()
    reservation = Reservation(
        id=f"RES-{int(now.timestamp() * 1000)}",
        customer_name=customer_name,
        customer_phone=customer_phone,
        date_time=date_time,
        guests=guests,
    )
    session.dispatch(act.AddReservation(table_id, reservation))
    if timedelta(0) <= date_time - now <= RESERVATION_HOLD_WINDOW:
        session.dispatch(act.ToggleTableReservation(table_id, True))
    return reservation


def cancel_reservation(session: PosSession, table_id: str, reservation_id: str) -> None:
    session.dispatch(act.RemoveReservation(table_id, reservation_id))
