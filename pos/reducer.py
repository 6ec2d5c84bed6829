"""
The single-writer reducer.

``reduce`` maps a state and an action to the next state without I/O and
without raising. Collections are rebuilt rather than mutated and any
collection an action does not touch keeps its identity, so observers can
detect "no change" with ``is``. Lookups that miss (unknown order, table or
cart line) leave the state untouched.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, TypeVar

from pos import actions as act
from pos.cart import add_line, items_subtotal, update_line
from pos.data import SETTINGS_FIELDS
from pos.lifecycle import split_invoice_label
from pos.models import Order, OrderStatus, OrderType, PosState, TableStatus

T = TypeVar("T")
A = TypeVar("A")

_HANDLERS: dict[type, Callable[[PosState, Any], PosState]] = {}


def _handles(action_type: type[A]) -> Callable[[Callable[[PosState, A], PosState]], Callable[[PosState, A], PosState]]:
    def register(handler: Callable[[PosState, A], PosState]) -> Callable[[PosState, A], PosState]:
        _HANDLERS[action_type] = handler
        return handler

    return register


def handled_action_types() -> frozenset[type]:
    return frozenset(_HANDLERS)


def reduce(state: PosState, action: act.Action) -> PosState:
    """Return the state after ``action``; unknown actions return ``state`` itself."""
    handler = _HANDLERS.get(type(action))
    if handler is None:
        return state
    return handler(state, action)


def _update_where(items: tuple[T, ...], matches: Callable[[T], bool], change: Callable[[T], T]) -> tuple[T, ...]:
    """Apply ``change`` to matching entries; return ``items`` itself when nothing matched."""
    changed = False
    updated: list[T] = []
    for item in items:
        if matches(item):
            item = change(item)
            changed = True
        updated.append(item)
    return tuple(updated) if changed else items


def _without(items: tuple[T, ...], matches: Callable[[T], bool]) -> tuple[T, ...]:
    kept = tuple(item for item in items if not matches(item))
    return kept if len(kept) != len(items) else items


def _update_order(state: PosState, order_id: str, change: Callable[[Order], Order]) -> PosState:
    orders = _update_where(state.orders, lambda order: order.id == order_id, change)
    if orders is state.orders:
        return state
    return replace(state, orders=orders)


# --- Full-state replacement ---


@_handles(act.SetFullState)
def _set_full_state(state: PosState, action: act.SetFullState) -> PosState:
    return replace(action.state, active_staff=state.active_staff)


@_handles(act.RestoreData)
def _restore_data(state: PosState, action: act.RestoreData) -> PosState:
    return replace(
        state,
        orders=state.orders if action.orders is None else tuple(action.orders),
        menu=state.menu if action.menu is None else tuple(action.menu),
        tables=state.tables if action.tables is None else tuple(action.tables),
        inventory=state.inventory if action.inventory is None else tuple(action.inventory),
        settings=state.settings if action.settings is None else action.settings,
        team_members=state.team_members if action.team_members is None else tuple(action.team_members),
    )


# --- Orders ---


@_handles(act.AddOrder)
def _add_order(state: PosState, action: act.AddOrder) -> PosState:
    settings = state.settings
    order = replace(
        action.order,
        items=tuple(replace(item, is_printed=False) for item in action.order.items),
        invoice_number=settings.next_invoice_number,
    )
    return replace(
        state,
        orders=(order,) + state.orders,
        settings=replace(settings, invoice_starting_number=settings.invoice_starting_number + 1),
    )


@_handles(act.AppendToOrder)
def _append_to_order(state: PosState, action: act.AppendToOrder) -> PosState:
    new_items = tuple(replace(item, is_printed=False) for item in action.new_items)

    def append(order: Order) -> Order:
        # New lines mean new kitchen work, so a READY order goes back to COOKING.
        status = OrderStatus.COOKING if order.status == OrderStatus.READY else order.status
        return replace(
            order,
            items=order.items + new_items,
            total_amount=order.total_amount + action.additional_amount,
            status=status,
        )

    return _update_order(state, action.order_id, append)


@_handles(act.MarkItemsPrinted)
def _mark_items_printed(state: PosState, action: act.MarkItemsPrinted) -> PosState:
    order = state.find_order(action.order_id)
    if order is None or all(item.is_printed for item in order.items):
        return state
    return _update_order(
        state,
        action.order_id,
        lambda found: replace(found, items=tuple(replace(item, is_printed=True) for item in found.items)),
    )


@_handles(act.UpdateOrderStatus)
def _update_order_status(state: PosState, action: act.UpdateOrderStatus) -> PosState:
    return _update_order(state, action.order_id, lambda order: replace(order, status=action.status))


@_handles(act.UpdateOrderPayment)
def _update_order_payment(state: PosState, action: act.UpdateOrderPayment) -> PosState:
    return _update_order(state, action.order_id, lambda order: replace(order, payment_method=action.payment_method))


@_handles(act.SplitOrder)
def _split_order(state: PosState, action: act.SplitOrder) -> PosState:
    source = state.find_order(action.original_order_id)
    if source is None:
        return state

    move_ids = set(action.cart_item_ids)
    kept = tuple(item for item in source.items if item.cart_item_id not in move_ids)
    moved = tuple(item for item in source.items if item.cart_item_id in move_ids)
    if not moved:
        return state

    existing_target = state.active_order_for_table(action.target_table_id)
    if existing_target is not None and existing_target.id == source.id:
        # Moving lines onto the table that already holds them changes nothing.
        return state

    # Totals are rebuilt from the lines rather than adjusted by a delta.
    updated_source = replace(
        source,
        items=kept,
        total_amount=items_subtotal(kept),
        status=OrderStatus.COMPLETED if not kept else source.status,
    )

    if existing_target is not None:
        target_items = existing_target.items + moved
        target = replace(existing_target, items=target_items, total_amount=items_subtotal(target_items))
        orders = tuple(
            updated_source if order.id == source.id else target if order.id == target.id else order
            for order in state.orders
        )
    else:
        timestamp = action.timestamp or datetime.now()
        new_id = action.new_order_id or f"ORD-{str(int(timestamp.timestamp() * 1000))[-5:]}"
        target = Order(
            id=new_id,
            # Display label only; the invoice counter is not consumed.
            invoice_number=split_invoice_label(state.settings),
            table_id=action.target_table_id,
            items=moved,
            status=OrderStatus.COOKING,
            type=OrderType.DINE_IN,
            timestamp=timestamp,
            total_amount=items_subtotal(moved),
        )
        orders = (target,) + tuple(updated_source if order.id == source.id else order for order in state.orders)

    def retarget(table):
        if table.id == source.table_id and not kept:
            return replace(table, status=TableStatus.AVAILABLE, current_order_id=None)
        if table.id == action.target_table_id:
            return replace(table, status=TableStatus.OCCUPIED, current_order_id=target.id)
        return table

    tables = _update_where(
        state.tables,
        lambda table: table.id == action.target_table_id or (table.id == source.table_id and not kept),
        retarget,
    )
    return replace(state, orders=orders, tables=tables)


# --- Tables ---


@_handles(act.UpdateTableStatus)
def _update_table_status(state: PosState, action: act.UpdateTableStatus) -> PosState:
    tables = _update_where(
        state.tables,
        lambda table: table.id == action.table_id,
        lambda table: replace(table, status=action.status, current_order_id=action.order_id),
    )
    return state if tables is state.tables else replace(state, tables=tables)


@_handles(act.AddTable)
def _add_table(state: PosState, action: act.AddTable) -> PosState:
    return replace(state, tables=state.tables + (action.table,))


@_handles(act.UpdateTable)
def _update_table(state: PosState, action: act.UpdateTable) -> PosState:
    tables = _update_where(state.tables, lambda table: table.id == action.table.id, lambda _: action.table)
    return state if tables is state.tables else replace(state, tables=tables)


@_handles(act.DeleteTable)
def _delete_table(state: PosState, action: act.DeleteTable) -> PosState:
    remaining = _without(state.tables, lambda table: table.id == action.table_id)
    tables = _update_where(
        remaining,
        lambda table: table.merged_into == action.table_id,
        lambda table: replace(table, merged_into=None, status=TableStatus.AVAILABLE),
    )
    return state if tables is state.tables else replace(state, tables=tables)


@_handles(act.MergeTables)
def _merge_tables(state: PosState, action: act.MergeTables) -> PosState:
    child_ids = set(action.child_ids)

    def merge(table):
        if table.id in child_ids:
            return replace(table, merged_into=action.parent_id, status=TableStatus.OCCUPIED)
        return replace(table, merged_into=None, status=TableStatus.AVAILABLE)

    tables = _update_where(
        state.tables,
        lambda table: table.id != action.parent_id
        and (table.id in child_ids or table.merged_into == action.parent_id),
        merge,
    )
    return state if tables is state.tables else replace(state, tables=tables)


@_handles(act.ToggleTableReservation)
def _toggle_table_reservation(state: PosState, action: act.ToggleTableReservation) -> PosState:
    status = TableStatus.RESERVED if action.is_reserved else TableStatus.AVAILABLE
    tables = _update_where(
        state.tables,
        lambda table: table.id == action.table_id,
        lambda table: replace(table, status=status),
    )
    return state if tables is state.tables else replace(state, tables=tables)


@_handles(act.AddReservation)
def _add_reservation(state: PosState, action: act.AddReservation) -> PosState:
    tables = _update_where(
        state.tables,
        lambda table: table.id == action.table_id,
        lambda table: replace(table, reservations=table.reservations + (action.reservation,)),
    )
    return state if tables is state.tables else replace(state, tables=tables)


@_handles(act.RemoveReservation)
def _remove_reservation(state: PosState, action: act.RemoveReservation) -> PosState:
    tables = _update_where(
        state.tables,
        lambda table: table.id == action.table_id,
        lambda table: replace(
            table,
            reservations=_without(table.reservations, lambda reservation: reservation.id == action.reservation_id),
        ),
    )
    return state if tables is state.tables else replace(state, tables=tables)


# --- Menu ---


@_handles(act.AddMenuItem)
def _add_menu_item(state: PosState, action: act.AddMenuItem) -> PosState:
    return replace(state, menu=state.menu + (action.item,))


@_handles(act.UpdateMenuItem)
def _update_menu_item(state: PosState, action: act.UpdateMenuItem) -> PosState:
    menu = _update_where(state.menu, lambda item: item.id == action.item.id, lambda _: action.item)
    return state if menu is state.menu else replace(state, menu=menu)


@_handles(act.DeleteMenuItem)
def _delete_menu_item(state: PosState, action: act.DeleteMenuItem) -> PosState:
    menu = _without(state.menu, lambda item: item.id == action.item_id)
    return state if menu is state.menu else replace(state, menu=menu)


# --- Inventory ---


@_handles(act.AddInventory)
def _add_inventory(state: PosState, action: act.AddInventory) -> PosState:
    return replace(state, inventory=state.inventory + (action.item,))


@_handles(act.UpdateInventory)
def _update_inventory(state: PosState, action: act.UpdateInventory) -> PosState:
    inventory = _update_where(state.inventory, lambda item: item.id == action.item.id, lambda _: action.item)
    return state if inventory is state.inventory else replace(state, inventory=inventory)


@_handles(act.DeleteInventory)
def _delete_inventory(state: PosState, action: act.DeleteInventory) -> PosState:
    inventory = _without(state.inventory, lambda item: item.id == action.item_id)
    return state if inventory is state.inventory else replace(state, inventory=inventory)


@_handles(act.DeductInventory)
def _deduct_inventory(state: PosState, action: act.DeductInventory) -> PosState:
    inventory = _update_where(
        state.inventory,
        lambda item: item.id == action.item_id,
        lambda item: replace(item, quantity=max(0, item.quantity - action.amount)),
    )
    return state if inventory is state.inventory else replace(state, inventory=inventory)


# --- Cart ---


@_handles(act.AddToCart)
def _add_to_cart(state: PosState, action: act.AddToCart) -> PosState:
    return replace(state, cart=add_line(state.cart, action.item))


@_handles(act.UpdateCartItem)
def _update_cart_item(state: PosState, action: act.UpdateCartItem) -> PosState:
    cart = update_line(state.cart, action.cart_item_id, action.quantity, action.notes, action.modifiers)
    return state if cart is state.cart else replace(state, cart=cart)


@_handles(act.RemoveFromCart)
def _remove_from_cart(state: PosState, action: act.RemoveFromCart) -> PosState:
    cart = _without(state.cart, lambda item: item.cart_item_id == action.cart_item_id)
    return state if cart is state.cart else replace(state, cart=cart)


@_handles(act.ClearCart)
def _clear_cart(state: PosState, action: act.ClearCart) -> PosState:
    return replace(state, cart=()) if state.cart else state


@_handles(act.SetCart)
def _set_cart(state: PosState, action: act.SetCart) -> PosState:
    cart = tuple(action.cart)
    return state if cart is state.cart else replace(state, cart=cart)


# --- Settings and team ---


@_handles(act.UpdateSettings)
def _update_settings(state: PosState, action: act.UpdateSettings) -> PosState:
    changes = {name: value for name, value in action.changes.items() if name in SETTINGS_FIELDS}
    if not changes:
        return state
    return replace(state, settings=replace(state.settings, **changes))


@_handles(act.AddTeamMember)
def _add_team_member(state: PosState, action: act.AddTeamMember) -> PosState:
    return replace(state, team_members=state.team_members + (action.member,))


@_handles(act.UpdateTeamMember)
def _update_team_member(state: PosState, action: act.UpdateTeamMember) -> PosState:
    members = _update_where(state.team_members, lambda member: member.id == action.member.id, lambda _: action.member)
    return state if members is state.team_members else replace(state, team_members=members)


@_handles(act.DeleteTeamMember)
def _delete_team_member(state: PosState, action: act.DeleteTeamMember) -> PosState:
    members = _without(state.team_members, lambda member: member.id == action.member_id)
    return state if members is state.team_members else replace(state, team_members=members)


# --- Staff session (never persisted remotely) ---


@_handles(act.LoginStaff)
def _login_staff(state: PosState, action: act.LoginStaff) -> PosState:
    return replace(state, active_staff=action.member)


@_handles(act.LogoutStaff)
def _logout_staff(state: PosState, action: act.LogoutStaff) -> PosState:
    return replace(state, active_staff=None)
