"""Seed records built from the editable constants."""

from __future__ import annotations

from pos.constant import DEFAULT_ADMIN_RAW, DEFAULT_SETTINGS_RAW
from pos.models import PosState, Role, StoreSettings, TeamMember

SETTINGS_FIELDS = frozenset(DEFAULT_SETTINGS_RAW)


def default_settings() -> StoreSettings:
    """Settings applied to accounts that never saved their own."""
    return StoreSettings(**DEFAULT_SETTINGS_RAW)  # type: ignore[arg-type]


def default_admin() -> TeamMember:
    return TeamMember(
        id=DEFAULT_ADMIN_RAW["id"],
        name=DEFAULT_ADMIN_RAW["name"],
        role=Role(DEFAULT_ADMIN_RAW["role"]),
        pin=DEFAULT_ADMIN_RAW["pin"],
    )


def seed_team(members: tuple[TeamMember, ...]) -> tuple[TeamMember, ...]:
    """Guarantee at least one member exists so staff login is never a dead end."""
    if members:
        return members
    return (default_admin(),)


def initial_state() -> PosState:
    """Empty state used before hydration and without an account."""
    return PosState(settings=default_settings())
