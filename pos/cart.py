"""Cart line merging and the shared totals pipeline."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable

from pos.constant import DISCOUNT_DETECTION_TOLERANCE
from pos.models import CartItem, Modifier, Order, OrderType, StoreSettings


class DiscountMode(str, Enum):
    PERCENT = "PERCENT"
    FIXED = "FIXED"


@dataclass(frozen=True)
class Discount:
    mode: DiscountMode = DiscountMode.PERCENT
    value: float = 0.0


NO_DISCOUNT = Discount()


@dataclass(frozen=True)
class Totals:
    """Breakdown printed on a bill."""

    subtotal: float
    discount: float
    net_subtotal: float
    tax: float
    service_charge: float
    total: float


def modifier_key(modifiers: Iterable[Modifier] | None) -> tuple[tuple[str, float], ...]:
    """Order-independent identity of a modifier selection."""
    ordered = sorted(modifiers or (), key=lambda modifier: modifier.name)
    return tuple((modifier.name, modifier.price) for modifier in ordered)


def same_line(existing: CartItem, incoming: CartItem) -> bool:
    return existing.id == incoming.id and modifier_key(existing.modifiers) == modifier_key(incoming.modifiers)


def add_line(cart: tuple[CartItem, ...], incoming: CartItem) -> tuple[CartItem, ...]:
    """Merge into a line with the same item and modifier set, or append."""
    for idx, existing in enumerate(cart):
        if not same_line(existing, incoming):
            continue
        merged = replace(existing, quantity=existing.quantity + incoming.quantity)
        return cart[:idx] + (merged,) + cart[idx + 1 :]
    return cart + (incoming,)


def update_line(
    cart: tuple[CartItem, ...],
    cart_item_id: str,
    quantity: int | None = None,
    notes: str | None = None,
    modifiers: tuple[Modifier, ...] | None = None,
) -> tuple[CartItem, ...]:
    """
    Edit one line by id; lines left with a quantity of zero or less are dropped.

    Returns ``cart`` itself when no line has that id.
    """
    if not any(item.cart_item_id == cart_item_id for item in cart):
        return cart
    updated: list[CartItem] = []
    for item in cart:
        if item.cart_item_id == cart_item_id:
            item = replace(
                item,
                quantity=item.quantity if quantity is None else quantity,
                notes=item.notes if notes is None else notes,
                modifiers=item.modifiers if modifiers is None else tuple(modifiers),
            )
        if item.quantity > 0:
            updated.append(item)
    return tuple(updated)


def line_total(item: CartItem) -> float:
    return (item.price + sum(modifier.price for modifier in item.modifiers)) * item.quantity


def items_subtotal(items: Iterable[CartItem]) -> float:
    return sum((line_total(item) for item in items), 0.0)


def discount_amount(subtotal: float, discount: Discount) -> float:
    """Nominal discount clamped to ``[0, subtotal]``."""
    if discount.mode == DiscountMode.PERCENT:
        amount = subtotal * discount.value / 100
    else:
        amount = discount.value
    if amount > subtotal:
        amount = subtotal
    return max(0.0, amount)


def compute_totals(
    items: Iterable[CartItem],
    settings: StoreSettings,
    order_type: OrderType,
    discount: Discount = NO_DISCOUNT,
) -> Totals:
    """Run the receipt pipeline: lines, subtotal, discount, VAT, service charge, total."""
    subtotal = items_subtotal(items)
    discount_value = discount_amount(subtotal, discount)
    net_subtotal = subtotal - discount_value
    tax = net_subtotal * (settings.vat_rate / 100) if settings.vat_enabled else 0.0
    service_charge = 0.0
    if settings.service_charge_enabled and order_type == OrderType.DINE_IN:
        service_charge = net_subtotal * (settings.service_charge_rate / 100)
    return Totals(
        subtotal=subtotal,
        discount=discount_value,
        net_subtotal=net_subtotal,
        tax=tax,
        service_charge=service_charge,
        total=net_subtotal + tax + service_charge,
    )


def reconstruct_totals(order: Order, settings: StoreSettings) -> Totals:
    """
    Rebuild a stored order's breakdown for a reprint.

    Orders keep only ``total_amount``. The gross is recomputed with the same
    pipeline and any shortfall of the stored total beyond the tolerance is
    reported as the discount that was given at the counter.
    """
    gross = compute_totals(order.items, settings, order.type)
    discount_value = 0.0
    if gross.total > order.total_amount + DISCOUNT_DETECTION_TOLERANCE:
        discount_value = gross.total - order.total_amount
    return Totals(
        subtotal=gross.subtotal,
        discount=discount_value,
        net_subtotal=gross.subtotal - discount_value,
        tax=gross.tax,
        service_charge=gross.service_charge,
        total=order.total_amount,
    )
