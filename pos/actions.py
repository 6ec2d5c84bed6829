"""Actions accepted by the reducer, one frozen dataclass per change."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pos.models import (
    CartItem,
    InventoryItem,
    MenuItem,
    Modifier,
    Order,
    OrderStatus,
    PaymentMethod,
    PosState,
    Reservation,
    StoreSettings,
    Table,
    TableStatus,
    TeamMember,
)


@dataclass(frozen=True)
class SetFullState:
    """Replace everything except the caller's active staff session."""

    state: PosState


@dataclass(frozen=True)
class RestoreData:
    """Replace only the sections that are present; cart and session survive."""

    orders: tuple[Order, ...] | None = None
    menu: tuple[MenuItem, ...] | None = None
    tables: tuple[Table, ...] | None = None
    inventory: tuple[InventoryItem, ...] | None = None
    settings: StoreSettings | None = None
    team_members: tuple[TeamMember, ...] | None = None


@dataclass(frozen=True)
class AddOrder:
    order: Order


@dataclass(frozen=True)
class AppendToOrder:
    """Add items to a running order; the caller prices them."""

    order_id: str
    new_items: tuple[CartItem, ...]
    additional_amount: float


@dataclass(frozen=True)
class MarkItemsPrinted:
    order_id: str


@dataclass(frozen=True)
class UpdateOrderStatus:
    order_id: str
    status: OrderStatus


@dataclass(frozen=True)
class UpdateOrderPayment:
    order_id: str
    payment_method: PaymentMethod


@dataclass(frozen=True)
class SplitOrder:
    """
    Move some lines of an order to another table.

    ``new_order_id`` and ``timestamp`` name the order synthesised when the
    target table has nothing running; both are generated when omitted.
    """

    original_order_id: str
    target_table_id: str
    cart_item_ids: tuple[str, ...]
    new_order_id: str | None = None
    timestamp: datetime | None = None


@dataclass(frozen=True)
class UpdateTableStatus:
    table_id: str
    status: TableStatus
    order_id: str | None = None


@dataclass(frozen=True)
class AddTable:
    table: Table


@dataclass(frozen=True)
class UpdateTable:
    table: Table


@dataclass(frozen=True)
class DeleteTable:
    table_id: str


@dataclass(frozen=True)
class MergeTables:
    """``child_ids`` is the complete merge set for ``parent_id``."""

    parent_id: str
    child_ids: tuple[str, ...]


@dataclass(frozen=True)
class ToggleTableReservation:
    table_id: str
    is_reserved: bool


@dataclass(frozen=True)
class AddReservation:
    table_id: str
    reservation: Reservation


@dataclass(frozen=True)
class RemoveReservation:
    table_id: str
    reservation_id: str


@dataclass(frozen=True)
class AddMenuItem:
    item: MenuItem


@dataclass(frozen=True)
class UpdateMenuItem:
    item: MenuItem


@dataclass(frozen=True)
class DeleteMenuItem:
    item_id: str


@dataclass(frozen=True)
class AddInventory:
    item: InventoryItem


@dataclass(frozen=True)
class UpdateInventory:
    item: InventoryItem


@dataclass(frozen=True)
class DeleteInventory:
    item_id: str


@dataclass(frozen=True)
class DeductInventory:
    item_id: str
    amount: float


@dataclass(frozen=True)
class AddToCart:
    item: CartItem


@dataclass(frozen=True)
class UpdateCartItem:
    """Fields left as None keep their current value."""

    cart_item_id: str
    quantity: int | None = None
    notes: str | None = None
    modifiers: tuple[Modifier, ...] | None = None


@dataclass(frozen=True)
class RemoveFromCart:
    cart_item_id: str


@dataclass(frozen=True)
class ClearCart:
    pass


@dataclass(frozen=True)
class SetCart:
    cart: tuple[CartItem, ...]


@dataclass(frozen=True)
class UpdateSettings:
    changes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AddTeamMember:
    member: TeamMember


@dataclass(frozen=True)
class UpdateTeamMember:
    member: TeamMember


@dataclass(frozen=True)
class DeleteTeamMember:
    member_id: str


@dataclass(frozen=True)
class LoginStaff:
    member: TeamMember


@dataclass(frozen=True)
class LogoutStaff:
    pass


Action = (
    SetFullState
    | RestoreData
    | AddOrder
    | AppendToOrder
    | MarkItemsPrinted
    | UpdateOrderStatus
    | UpdateOrderPayment
    | SplitOrder
    | UpdateTableStatus
    | AddTable
    | UpdateTable
    | DeleteTable
    | MergeTables
    | ToggleTableReservation
    | AddReservation
    | RemoveReservation
    | AddMenuItem
    | UpdateMenuItem
    | DeleteMenuItem
    | AddInventory
    | UpdateInventory
    | DeleteInventory
    | DeductInventory
    | AddToCart
    | UpdateCartItem
    | RemoveFromCart
    | ClearCart
    | SetCart
    | UpdateSettings
    | AddTeamMember
    | UpdateTeamMember
    | DeleteTeamMember
    | LoginStaff
    | LogoutStaff
)
