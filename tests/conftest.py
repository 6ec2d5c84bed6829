"""Pytest configuration and fixtures."""

from dataclasses import replace
from datetime import datetime

import pytest

from pos.data import default_admin, default_settings
from pos.models import (
    CartItem,
    InventoryItem,
    MenuItem,
    Modifier,
    Order,
    OrderStatus,
    OrderType,
    PosState,
    Table,
)
from pos.persistence import LocalStore, SqliteSnapshotStore
from pos.session import PosSession

CHEESE = Modifier(name="Extra Cheese", price=20.0)
BACON = Modifier(name="Bacon", price=30.0)


@pytest.fixture
def now():
    return datetime(2026, 10, 19, 15, 4, 5)


@pytest.fixture
def settings():
    return default_settings()


@pytest.fixture
def burger():
    return MenuItem(
        id="M1",
        name="Classic Burger",
        category="Burgers",
        price=100.0,
        available_modifiers=(CHEESE, BACON),
    )


@pytest.fixture
def lassi():
    return MenuItem(id="M2", name="Mango Lassi", category="Drinks", price=50.0, quantity=3)


@pytest.fixture
def tables():
    return (
        Table(id="T1", name="Table 1"),
        Table(id="T2", name="Table 2"),
        Table(id="T3", name="Table 3"),
    )


@pytest.fixture
def state(settings, burger, lassi, tables):
    """A hydrated account with a small menu, three tables and the default admin."""
    return PosState(
        settings=settings,
        menu=(burger, lassi),
        tables=tables,
        inventory=(InventoryItem(id="INV-1", name="Rice", quantity=10, unit="kg", threshold=5),),
        team_members=(default_admin(),),
    )


@pytest.fixture
def session(state):
    session = PosSession(account_id="acct-1", state=state)
    yield session
    session.close()


@pytest.fixture
def line():
    """Build a cart line with a fixed id."""

    def build(item, cart_item_id, quantity=1, modifiers=(), **changes):
        built = CartItem.from_menu_item(item, quantity=quantity, modifiers=modifiers, cart_item_id=cart_item_id)
        return replace(built, **changes) if changes else built

    return build


@pytest.fixture
def running_order(burger, lassi, line, now):
    """A COOKING dine-in order on T1 with two lines totalling 200."""
    return Order(
        id="ORD-00001",
        invoice_number="INV-1000",
        table_id="T1",
        items=(line(burger, "L1", is_printed=True), line(lassi, "L2", quantity=2, is_printed=True)),
        status=OrderStatus.COOKING,
        type=OrderType.DINE_IN,
        timestamp=now,
        total_amount=200.0,
    )


@pytest.fixture
def remote(tmp_path):
    return SqliteSnapshotStore(str(tmp_path / "remote.db"))


@pytest.fixture
def local(tmp_path):
    return LocalStore(str(tmp_path / "local.db"))
