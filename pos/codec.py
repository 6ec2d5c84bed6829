"""
Translation between reducer state and the JSON tree kept per account.

The remote tree stores each collection as a map keyed by entity id. Loading
turns the maps back into tuples; the order inside a map is not meaningful.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, TypeVar

from pydantic import TypeAdapter, ValidationError

from pos.constant import DEFAULT_SETTINGS_RAW
from pos.data import SETTINGS_FIELDS, default_settings, seed_team
from pos.models import CartItem, InventoryItem, MenuItem, Order, PosState, StoreSettings, Table, TeamMember

logger = logging.getLogger(__name__)

T = TypeVar("T")

ORDER_ADAPTER = TypeAdapter(Order)
MENU_ADAPTER = TypeAdapter(MenuItem)
TABLE_ADAPTER = TypeAdapter(Table)
INVENTORY_ADAPTER = TypeAdapter(InventoryItem)
TEAM_ADAPTER = TypeAdapter(TeamMember)
CART_ADAPTER = TypeAdapter(CartItem)
SETTINGS_ADAPTER = TypeAdapter(StoreSettings)

# Snapshot key -> (PosState attribute, adapter)
COLLECTIONS: dict[str, tuple[str, TypeAdapter[Any]]] = {
    "orders": ("orders", ORDER_ADAPTER),
    "menu": ("menu", MENU_ADAPTER),
    "tables": ("tables", TABLE_ADAPTER),
    "inventory": ("inventory", INVENTORY_ADAPTER),
    "team_members": ("team_members", TEAM_ADAPTER),
}


def dump_entity(adapter: TypeAdapter[T], entity: T) -> dict[str, Any]:
    return adapter.dump_python(entity, mode="json", exclude_none=True)


def dump_list(adapter: TypeAdapter[T], entities: Iterable[T]) -> list[dict[str, Any]]:
    return [dump_entity(adapter, entity) for entity in entities]


def dump_map(adapter: TypeAdapter[T], entities: Iterable[Any]) -> dict[str, dict[str, Any]]:
    return {entity.id: dump_entity(adapter, entity) for entity in entities}


def entity_records(raw: Any) -> list[Any]:
    """Accept both the keyed-map and plain-list shapes of a collection."""
    if raw is None:
        return []
    if isinstance(raw, dict):
        return list(raw.values())
    if isinstance(raw, list):
        return [record for record in raw if record is not None]
    raise TypeError(f"Expected a map or list of records, got {type(raw).__name__}")


def load_entities(adapter: TypeAdapter[T], raw: Any, strict: bool = False) -> tuple[T, ...]:
    """
    Validate every record of a collection.

    With ``strict`` a bad record raises ``ValidationError``; otherwise it is
    logged and skipped so one corrupt entry never blocks a terminal.
    """
    loaded: list[T] = []
    for record in entity_records(raw):
        try:
            loaded.append(adapter.validate_python(record))
        except ValidationError as exc:
            if strict:
                raise
            logger.warning("Skipping invalid record: %s", exc.errors()[:1])
    return tuple(loaded)


def load_settings(raw: Any, strict: bool = False) -> StoreSettings:
    """Stored settings merged over defaults; unknown keys are ignored."""
    if not isinstance(raw, dict):
        return default_settings()
    merged = dict(DEFAULT_SETTINGS_RAW)
    merged.update({name: value for name, value in raw.items() if name in SETTINGS_FIELDS})
    try:
        return SETTINGS_ADAPTER.validate_python(merged)
    except ValidationError as exc:
        if strict:
            raise
        logger.warning("Invalid stored settings, using defaults: %s", exc.errors()[:1])
        return default_settings()


def to_snapshot(state: PosState) -> dict[str, Any]:
    """Serialise the persisted slice; cart and active staff are never included."""
    snapshot: dict[str, Any] = {
        key: dump_map(adapter, getattr(state, attribute)) for key, (attribute, adapter) in COLLECTIONS.items()
    }
    snapshot["settings"] = dump_entity(SETTINGS_ADAPTER, state.settings)
    return snapshot


def to_data(state: PosState) -> dict[str, Any]:
    """Same sections as the snapshot, collections as lists (backup files)."""
    data: dict[str, Any] = {
        key: dump_list(adapter, getattr(state, attribute)) for key, (attribute, adapter) in COLLECTIONS.items()
    }
    data["settings"] = dump_entity(SETTINGS_ADAPTER, state.settings)
    return data


def from_snapshot(
    data: dict[str, Any] | None,
    cart: tuple[CartItem, ...] = (),
    active_staff: TeamMember | None = None,
) -> PosState:
    """
    Build the state for a loaded snapshot.

    A missing snapshot yields a fresh account. Either way the team is seeded
    with the default admin when empty.
    """
    data = data or {}
    loaded = {
        attribute: load_entities(adapter, data.get(key)) for key, (attribute, adapter) in COLLECTIONS.items()
    }
    loaded["team_members"] = seed_team(loaded["team_members"])
    return PosState(
        settings=load_settings(data.get("settings")),
        cart=cart,
        active_staff=active_staff,
        **loaded,
    )


def dump_cart(cart: Iterable[CartItem]) -> list[dict[str, Any]]:
    return dump_list(CART_ADAPTER, cart)


def load_cart(raw: Any) -> tuple[CartItem, ...]:
    return load_entities(CART_ADAPTER, raw)
