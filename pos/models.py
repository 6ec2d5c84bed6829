"""Domain models for the POS state engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from time import time
from uuid import uuid4


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    COOKING = "COOKING"
    READY = "READY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})


class OrderType(str, Enum):
    DINE_IN = "DINE_IN"
    TAKE_AWAY = "TAKE_AWAY"
    DELIVERY = "DELIVERY"


class PaymentMethod(str, Enum):
    """Recorded label only; nothing is charged."""

    CASH = "CASH"
    CARD = "CARD"
    BKASH = "BKASH"
    NAGAD = "NAGAD"


class TableStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    RESERVED = "RESERVED"


class Role(str, Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    CASHIER = "CASHIER"
    KITCHEN = "KITCHEN"
    WAITER = "WAITER"


@dataclass(frozen=True)
class Modifier:
    """A priced add-on; unique by name within a menu item."""

    name: str
    price: float


@dataclass(frozen=True)
class MenuItem:
    """A sellable dish as configured by staff."""

    id: str
    name: str
    category: str
    price: float
    in_stock: bool = True
    description: str = ""
    image: str = ""
    quantity: int | None = None
    available_modifiers: tuple[Modifier, ...] = ()


@dataclass(frozen=True)
class CartItem:
    """
    One cart or order line.

    Carries a copy of the menu fields used at order time so history never
    depends on the menu item still existing.
    """

    id: str
    name: str
    category: str
    price: float
    cart_item_id: str
    quantity: int
    modifiers: tuple[Modifier, ...] = ()
    notes: str | None = None
    is_printed: bool = False
    description: str = ""
    image: str = ""

    @classmethod
    def from_menu_item(
        cls,
        item: MenuItem,
        quantity: int = 1,
        modifiers: tuple[Modifier, ...] = (),
        notes: str | None = None,
        cart_item_id: str | None = None,
    ) -> CartItem:
        if cart_item_id is None:
            cart_item_id = f"{item.id}-{int(time() * 1000)}-{uuid4().hex[:6]}"
        return cls(
            id=item.id,
            name=item.name,
            category=item.category,
            price=item.price,
            cart_item_id=cart_item_id,
            quantity=quantity,
            modifiers=tuple(modifiers),
            notes=notes,
            description=item.description,
            image=item.image,
        )


@dataclass(frozen=True)
class Order:
    """A placed order; CANCELLED replaces deletion."""

    id: str
    items: tuple[CartItem, ...]
    status: OrderStatus
    type: OrderType
    timestamp: datetime
    total_amount: float
    invoice_number: str | None = None
    table_id: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    payment_method: PaymentMethod | None = None

    @property
    def is_active(self) -> bool:
        return self.status not in TERMINAL_STATUSES

    @property
    def is_paid(self) -> bool:
        return self.payment_method is not None

    @property
    def display_number(self) -> str:
        return self.invoice_number or self.id[-6:].upper()


@dataclass(frozen=True)
class Reservation:
    id: str
    customer_name: str
    customer_phone: str
    date_time: datetime
    guests: int


@dataclass(frozen=True)
class Table:
    """A physical table; ``merged_into`` marks a merge child of another table."""

    id: str
    name: str
    status: TableStatus = TableStatus.AVAILABLE
    current_order_id: str | None = None
    merged_into: str | None = None
    reservations: tuple[Reservation, ...] = ()

    @property
    def is_merge_child(self) -> bool:
        return self.merged_into is not None


@dataclass(frozen=True)
class InventoryItem:
    id: str
    name: str
    quantity: float
    unit: str
    threshold: float

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.threshold


@dataclass(frozen=True)
class TeamMember:
    """A staff profile; the PIN is a local lock-screen code, not a credential."""

    id: str
    name: str
    role: Role
    pin: str | None = None
    email: str | None = None
    phone: str | None = None


@dataclass(frozen=True)
class StoreSettings:
    """The single configuration record of an account."""

    store_name: str
    branch_name: str
    address: str
    phone: str
    email: str
    currency_symbol: str
    vat_rate: float
    vat_enabled: bool
    service_charge_rate: float
    service_charge_enabled: bool
    invoice_header: str
    invoice_footer: str
    invoice_prefix: str
    invoice_starting_number: int
    logo_url: str | None = None

    @property
    def next_invoice_number(self) -> str:
        return f"{self.invoice_prefix}{self.invoice_starting_number}"


# Slice of PosState written to the remote store; cart and active_staff stay local.
PERSISTED_FIELDS = ("orders", "menu", "tables", "inventory", "settings", "team_members")


@dataclass(frozen=True)
class PosState:
    """Everything the reducer owns."""

    settings: StoreSettings
    orders: tuple[Order, ...] = ()
    menu: tuple[MenuItem, ...] = ()
    tables: tuple[Table, ...] = ()
    inventory: tuple[InventoryItem, ...] = ()
    cart: tuple[CartItem, ...] = ()
    team_members: tuple[TeamMember, ...] = ()
    active_staff: TeamMember | None = None

    def find_order(self, order_id: str | None) -> Order | None:
        if order_id is None:
            return None
        return next((order for order in self.orders if order.id == order_id), None)

    def find_table(self, table_id: str | None) -> Table | None:
        if table_id is None:
            return None
        return next((table for table in self.tables if table.id == table_id), None)

    def active_order_for_table(self, table_id: str | None) -> Order | None:
        """Return the table's current order when it is still in progress."""
        table = self.find_table(table_id)
        if table is None:
            return None
        order = self.find_order(table.current_order_id)
        if order is None or not order.is_active:
            return None
        return order

    def persisted_slice(self) -> tuple[object, ...]:
        return tuple(getattr(self, name) for name in PERSISTED_FIELDS)
