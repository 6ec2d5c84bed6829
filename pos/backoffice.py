"""Staff lock screen and stock keeping operations."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from pos import actions as act
from pos.data import default_admin
from pos.errors import StaffLoginError
from pos.models import InventoryItem, MenuItem, TeamMember

if TYPE_CHECKING:
    from pos.session import PosSession

logger = logging.getLogger(__name__)

PIN_MAX_LENGTH = 6


def login_staff(session: PosSession, member_id: str, pin: str) -> TeamMember:
    """Unlock the terminal for a team member whose PIN matches."""
    member = next((m for m in session.state.team_members if m.id == member_id), None)
    if member is None or member.pin is None or member.pin != pin:
        logger.info("Rejected staff login member=%s", member_id)
        raise StaffLoginError("Incorrect PIN")
    session.dispatch(act.LoginStaff(member))
    logger.info("Staff login member=%s role=%s", member.id, member.role.value)
    return member


def logout_staff(session: PosSession) -> None:
    session.dispatch(act.LogoutStaff())


def initialize_admin(session: PosSession) -> TeamMember:
    """Add the default admin to a team that has nobody to log in as."""
    admin = default_admin()
    session.dispatch(act.AddTeamMember(admin))
    return admin


def _find_menu_item(session: PosSession, item_id: str) -> MenuItem | None:
    return next((item for item in session.state.menu if item.id == item_id), None)


def _find_inventory_item(session: PosSession, item_id: str) -> InventoryItem | None:
    return next((item for item in session.state.inventory if item.id == item_id), None)


def adjust_menu_quantity(session: PosSession, item_id: str, delta: int) -> MenuItem | None:
    """Change a dish's stock count; it is in stock exactly while the count is positive."""
    item = _find_menu_item(session, item_id)
    if item is None:
        return None
    quantity = max(0, (item.quantity or 0) + delta)
    updated = replace(item, quantity=quantity, in_stock=quantity > 0)
    session.dispatch(act.UpdateMenuItem(updated))
    return updated


def toggle_stock(session: PosSession, item_id: str) -> MenuItem | None:
    item = _find_menu_item(session, item_id)
    if item is None:
        return None
    updated = replace(item, in_stock=not item.in_stock)
    session.dispatch(act.UpdateMenuItem(updated))
    return updated


def adjust_inventory(session: PosSession, item_id: str, delta: float) -> InventoryItem | None:
    item = _find_inventory_item(session, item_id)
    if item is None:
        return None
    updated = replace(item, quantity=max(0, item.quantity + delta))
    session.dispatch(act.UpdateInventory(updated))
    if updated.is_low_stock:
        logger.warning("Low stock item=%s quantity=%s %s", item.name, updated.quantity, item.unit)
    return updated
