"""Exceptions raised outside the reducer."""

from __future__ import annotations


class PosError(Exception):
    """Base class for errors surfaced to terminal operators."""


class BackupFormatError(PosError, ValueError):
    """A backup document is missing required sections or is not JSON."""


class InvalidTransitionError(PosError, ValueError):
    """An order status change the lifecycle policy does not allow."""

    def __init__(self, order_id: str, current: str, target: str) -> None:
        super().__init__(f"Order {order_id} cannot move from {current} to {target}")
        self.order_id = order_id
        self.current = current
        self.target = target


class StaffLoginError(PosError):
    """Unknown team member or wrong PIN."""


class SnapshotStoreError(PosError, RuntimeError):
    """The remote snapshot store could not be read or written."""


class OrderRejectedError(PosError, ValueError):
    """A terminal request that cannot go ahead (empty cart, missing table)."""
