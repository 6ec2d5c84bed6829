"""Kitchen display: running orders, status advance, void and ticket printing."""

from __future__ import annotations

import logging
from typing import Callable

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.widgets import Header, Static

from pos.backoffice import login_staff, logout_staff
from pos.errors import PosError
from pos.lifecycle import advance_order, print_kitchen_ticket, void_order
from pos.models import Order, OrderStatus, PosState, TeamMember
from pos.persistence import LocalStore
from pos.pin_modal import PinModal
from pos.printer import check_printer_dependencies, print_ticket
from pos.rendering import format_order_header, format_order_items
from pos.session import PosSession
from pos.sync import SyncAdapter

logger = logging.getLogger(__name__)


def active_orders(state: PosState) -> list[Order]:
    """Orders the kitchen still has to deal with, oldest first."""
    return sorted((order for order in state.orders if order.is_active), key=lambda order: order.timestamp)


def new_pending_order_ids(seen: set[str], orders: tuple[Order, ...]) -> set[str]:
    """Ids of PENDING orders not seen before; every order id is recorded in ``seen``."""
    fresh = {order.id for order in orders if order.id not in seen and order.status == OrderStatus.PENDING}
    seen.update(order.id for order in orders)
    return fresh


class KitchenApp(App):
    """A Textual kitchen display bound to one POS session."""

    TITLE = "Kitchen Display"

    CSS = """
    Screen {
        layout: vertical;
    }

    #main-layout {
        height: 1fr;
    }

    #orders-pane {
        width: 2fr;
        border: round $primary;
        padding: 1;
    }

    #detail-pane {
        width: 3fr;
        border: round $secondary;
        padding: 1;
    }

    #orders-list, #order-detail {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #status-bar {
        height: 2;
        padding: 0 1;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    BINDINGS = [
        ("j", "move(1)", "Next"),
        ("k", "move(-1)", "Previous"),
        ("down", "move(1)", "Next"),
        ("up", "move(-1)", "Previous"),
        ("enter", "confirm", "Advance / unlock"),
        ("v", "void", "Void"),
        ("p", "print_ticket", "Print KOT"),
        ("s", "toggle_sound", "Sound"),
        ("l", "lock", "Lock"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        session: PosSession,
        local: LocalStore | None = None,
        printer: Callable[[str], None] = print_ticket,
        sync: SyncAdapter | None = None,
    ) -> None:
        super().__init__()
        self.session = session
        self.local = local
        self.printer = printer
        self.sync = sync
        self.selected_index = 0
        self.sound_enabled = local.load_sound_enabled() if local is not None else False
        self.system_status = ""
        self._seen_order_ids: set[str] = {order.id for order in session.state.orders}
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def locked(self) -> bool:
        return self.session.state.active_staff is None

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-layout"):
            with Vertical(id="orders-pane"):
                yield Static("Active Orders", id="orders-title", classes="pane-title")
                yield Static(id="orders-list")
            with Vertical(id="detail-pane"):
                yield Static("Order", classes="pane-title")
                yield Static(id="order-detail")
        yield Static(id="status-bar")

    def on_mount(self) -> None:
        _, msg = check_printer_dependencies()
        self.system_status = msg
        if self.sync is not None:
            # Started here so store callbacks are handed to the app loop.
            self.sync.start()
            self._seen_order_ids = {order.id for order in self.session.state.orders}
        self._unsubscribe = self.session.subscribe(self._on_state_change)
        logger.debug("kitchen mounted printer_status=%r", msg)
        self._refresh_all()

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self.sync is not None:
            self.sync.stop()

    def _on_state_change(self, previous: PosState, current: PosState) -> None:
        if current.orders is not previous.orders:
            fresh = new_pending_order_ids(self._seen_order_ids, current.orders)
            if fresh and self.sound_enabled:
                self.bell()
        self._refresh_all()

    def _modal_open(self) -> bool:
        return isinstance(self.screen, PinModal)

    def _rows(self) -> list[Order] | list[TeamMember]:
        if self.locked:
            return list(self.session.state.team_members)
        return active_orders(self.session.state)

    def _selected_order(self) -> Order | None:
        if self.locked:
            return None
        orders = active_orders(self.session.state)
        if not orders:
            return None
        self.selected_index = min(self.selected_index, len(orders) - 1)
        return orders[self.selected_index]

    def action_move(self, delta: int) -> None:
        if self._modal_open():
            return
        rows = self._rows()
        if not rows:
            return
        self.selected_index = (self.selected_index + delta) % len(rows)
        self._refresh_all()

    def action_confirm(self) -> None:
        if self._modal_open():
            return
        if self.locked:
            self._prompt_pin()
            return
        order = self._selected_order()
        if order is None:
            return
        self._run(lambda: advance_order(self.session, order.id), f"Advanced #{order.display_number}")

    def action_void(self) -> None:
        if self._modal_open() or self.locked:
            return
        order = self._selected_order()
        if order is None:
            return
        self._run(lambda: void_order(self.session, order.id), f"Voided #{order.display_number}")

    def action_print_ticket(self) -> None:
        if self._modal_open() or self.locked:
            return
        order = self._selected_order()
        if order is None:
            return
        try:
            ticket = print_kitchen_ticket(self.session, order.id)
            self.printer(ticket)
        except (PosError, RuntimeError) as exc:
            logger.warning("KOT print failed order=%s error=%r", order.id, exc)
            self.system_status = f"Print failed: {exc}"
        else:
            self.system_status = f"KOT printed #{order.display_number}"
        self._refresh_all()

    def action_toggle_sound(self) -> None:
        if self._modal_open():
            return
        self.sound_enabled = not self.sound_enabled
        if self.local is not None:
            self.local.save_sound_enabled(self.sound_enabled)
        if self.sound_enabled:
            self.bell()
        self.system_status = f"Sound {'on' if self.sound_enabled else 'off'}"
        self._refresh_all()

    def action_lock(self) -> None:
        if self._modal_open() or self.locked:
            return
        logout_staff(self.session)
        self.selected_index = 0
        self.system_status = "Locked"
        self._refresh_all()

    def _run(self, operation: Callable[[], object], success: str) -> None:
        try:
            operation()
        except PosError as exc:
            self.system_status = str(exc)
        else:
            self.system_status = success
        self._refresh_all()

    def _prompt_pin(self, error: str = "") -> None:
        members = self.session.state.team_members
        if not members:
            return
        member = members[min(self.selected_index, len(members) - 1)]

        def unlock(pin: str | None) -> None:
            if pin is None:
                return
            try:
                login_staff(self.session, member.id, pin)
            except PosError as exc:
                self._prompt_pin(str(exc))
                return
            self.selected_index = 0
            self.system_status = f"Welcome {member.name}"
            self._refresh_all()

        self.push_screen(PinModal(member, error=error), unlock)

    def _refresh_all(self) -> None:
        try:
            title = self.query_one("#orders-title", Static)
            orders_widget = self.query_one("#orders-list", Static)
            detail_widget = self.query_one("#order-detail", Static)
            status_widget = self.query_one("#status-bar", Static)
        except NoMatches:
            return

        if self.locked:
            title.update("Select Staff")
            orders_widget.update(self._member_lines())
            detail_widget.update("Locked. Pick a team member and press Enter.")
        else:
            title.update("Active Orders")
            orders_widget.update(self._order_lines())
            order = self._selected_order()
            detail_widget.update(format_order_items(order) if order else "(no active orders)")

        staff = self.session.state.active_staff
        who = staff.name if staff else "nobody"
        sound = "on" if self.sound_enabled else "off"
        status_widget.update(f"Staff: {who} | Sound: {sound}\n{self.system_status or 'Ready'}")

    def _member_lines(self) -> Text:
        lines = Text()
        for idx, member in enumerate(self.session.state.team_members):
            if idx > 0:
                lines.append("\n")
            pointer = "➤ " if idx == self.selected_index else "  "
            lines.append(f"{pointer}{member.name} ({member.role.value})")
        return lines

    def _order_lines(self) -> Text | str:
        orders = active_orders(self.session.state)
        if not orders:
            return "(no active orders)"
        lines = Text()
        for idx, order in enumerate(orders):
            if idx > 0:
                lines.append("\n")
            lines.append("➤ " if idx == self.selected_index else "  ")
            table = self.session.state.find_table(order.table_id)
            lines.append_text(format_order_header(order, table.name if table else None))
        return lines
