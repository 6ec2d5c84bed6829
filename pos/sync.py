"""
Bridge between the session and the remote snapshot store.

The first remote payload (or its absence) hydrates the session. Later
payloads, written by other terminals on the same account, replace the
persisted slice again unless a local save is pending or in flight, in which
case the local write wins. Every local change to the persisted slice
overwrites the remote tree wholesale after a short debounce. The cart goes
to the device-local store instead.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Callable

from pos.actions import SetCart, SetFullState
from pos.codec import from_snapshot, to_snapshot
from pos.config import SNAPSHOT_POLL_SECONDS, SYNC_DEBOUNCE_SECONDS
from pos.models import PosState
from pos.persistence import LocalStore, SnapshotStore
from pos.session import PosSession

logger = logging.getLogger(__name__)


def persisted_slice_changed(previous: PosState, current: PosState) -> bool:
    """Reference comparison of the remotely persisted collections."""
    return any(before is not after for before, after in zip(previous.persisted_slice(), current.persisted_slice()))


class SyncAdapter:
    """
    Keeps one session and one account's remote snapshot in step.

    Store callbacks may arrive on executor or poller threads; when ``start()``
    ran inside an event loop they are handed to that loop, so the session is
    only ever dispatched to from the loop thread.
    """

    def __init__(
        self,
        session: PosSession,
        remote: SnapshotStore | None,
        local: LocalStore | None = None,
        debounce_seconds: float = SYNC_DEBOUNCE_SECONDS,
        poll_seconds: float | None = SNAPSHOT_POLL_SECONDS,
    ) -> None:
        self.session = session
        self.remote = remote
        self.local = local
        self.debounce_seconds = debounce_seconds
        self.poll_seconds = poll_seconds
        # Consumers wait on this before reading live collections.
        self.ready = asyncio.Event()
        self.hydrated = False
        self._unsubscribe_session: Callable[[], None] | None = None
        self._unsubscribe_remote: Callable[[], None] | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._in_flight: set[asyncio.Future[None]] = set()
        self._poll_task: asyncio.Task[None] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._loop_thread: int | None = None
        # Last snapshot written or applied; payloads equal to it are echoes.
        self._last_snapshot: dict[str, Any] | None = None
        self._applying_remote = False

    @property
    def account_id(self) -> str | None:
        return self.session.account_id

    @property
    def save_pending(self) -> bool:
        return self._timer is not None

    def start(self) -> None:
        try:
            self._loop = asyncio.get_running_loop()
            self._loop_thread = threading.get_ident()
        except RuntimeError:
            self._loop = None

        if self.local is not None:
            cart = self.local.load_cart()
            if cart:
                self.session.dispatch(SetCart(cart))

        self._unsubscribe_session = self.session.subscribe(self._on_state_change)

        if self.account_id is None or self.remote is None:
            logger.info("No signed-in account; remote sync stays idle")
            self.ready.set()
            return

        logger.info("Subscribing to snapshot account=%s", self.account_id)
        self._unsubscribe_remote = self.remote.subscribe(self.account_id, self._on_remote_snapshot)
        if self._loop is not None and self.poll_seconds:
            self._poll_task = self._loop.create_task(self._poll_remote())

    def stop(self) -> None:
        """Detach from the session and store; a debounced save still pending is written now."""
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None
        if self._unsubscribe_remote is not None:
            self._unsubscribe_remote()
            self._unsubscribe_remote = None
        if self._unsubscribe_session is not None:
            self._unsubscribe_session()
            self._unsubscribe_session = None
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            self._save(self._snapshot())

    async def flush(self) -> None:
        """Write a pending save immediately and wait for writes already running."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            self._start_write(asyncio.get_running_loop())
        if self._in_flight:
            await asyncio.gather(*list(self._in_flight))

    async def _poll_remote(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            await asyncio.sleep(self.poll_seconds)
            try:
                await loop.run_in_executor(None, self.remote.poll)
            except Exception:
                logger.exception("Snapshot poll failed account=%s", self.account_id)

    def _on_remote_snapshot(self, data: dict[str, Any] | None) -> None:
        loop = self._loop
        if loop is not None and not loop.is_closed() and threading.get_ident() != self._loop_thread:
            loop.call_soon_threadsafe(self._apply_remote, data)
            return
        self._apply_remote(data)

    def _apply_remote(self, data: dict[str, Any] | None) -> None:
        if self.session.closed:
            return
        if not self.hydrated:
            self.hydrated = True
            if data is None:
                logger.info("No snapshot for account=%s; starting from defaults", self.account_id)
            self._last_snapshot = data
            self._replace_persisted(data)
            self.ready.set()
            return

        if data is None or data == self._last_snapshot:
            return
        if self._timer is not None or self._in_flight:
            # The pending local write replaces the tree anyway.
            logger.debug("Remote snapshot skipped; local save pending account=%s", self.account_id)
            return
        logger.info("Applying remote snapshot account=%s", self.account_id)
        self._last_snapshot = data
        self._applying_remote = True
        try:
            self._replace_persisted(data)
        finally:
            self._applying_remote = False

    def _replace_persisted(self, data: dict[str, Any] | None) -> None:
        current = self.session.state
        self.session.dispatch(SetFullState(from_snapshot(data, cart=current.cart, active_staff=current.active_staff)))

    def _on_state_change(self, previous: PosState, current: PosState) -> None:
        if self.local is not None and current.cart is not previous.cart:
            self.local.save_cart(current.cart)
        if not self.hydrated or self._applying_remote or self.account_id is None or self.remote is None:
            return
        if persisted_slice_changed(previous, current):
            self._schedule_save()

    def _schedule_save(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._save(self._snapshot())
            return
        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(self.debounce_seconds, self._start_write, loop)

    def _start_write(self, loop: asyncio.AbstractEventLoop) -> None:
        self._timer = None
        future = loop.run_in_executor(None, self._save, self._snapshot())
        self._in_flight.add(future)
        future.add_done_callback(self._in_flight.discard)

    def _snapshot(self) -> dict[str, Any]:
        self._last_snapshot = to_snapshot(self.session.state)
        return self._last_snapshot

    def _save(self, snapshot: dict[str, Any]) -> None:
        if self.remote is None or self.account_id is None:
            logger.warning("Snapshot save skipped; no remote store or account")
            return
        try:
            self.remote.save(self.account_id, snapshot)
        except Exception:
            # Write once, no retry; local state stays authoritative.
            logger.exception("Failed to save snapshot account=%s", self.account_id)
            return
        logger.debug("Saved snapshot account=%s", self.account_id)
