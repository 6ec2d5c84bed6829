"""SQLite persistence for account snapshots and device-local state."""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Protocol

from pos.codec import dump_cart, load_cart
from pos.config import DB_PATH, LOCAL_DB_PATH
from pos.errors import SnapshotStoreError
from pos.models import CartItem

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[dict[str, Any] | None], None]

_CART_KEY = "pos_cart"
_SOUND_KEY = "kds_sound"


class SnapshotStore(Protocol):
    """Remote JSON tree keyed by account; writes replace the whole tree."""

    def load(self, account_id: str) -> dict[str, Any] | None: ...

    def save(self, account_id: str, snapshot: dict[str, Any]) -> None: ...

    def subscribe(self, account_id: str, callback: SnapshotCallback) -> Callable[[], None]: ...

    def poll(self) -> None:
        """Deliver writes made elsewhere since the last call; push-based stores do nothing."""
        ...


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _connect(db_path: str) -> sqlite3.Connection:
    db_file = Path(db_path)
    db_file.parent.mkdir(parents=True, exist_ok=True)
    return sqlite3.connect(db_file)


class SqliteSnapshotStore:
    """
    Snapshot store backed by one SQLite row per account.

    Stands in for the hosted realtime database during development and tests.
    Subscribers receive the current value on subscribe and every later save
    made through this instance. Saves made by other instances (other
    terminals sharing the database file) reach them on the next ``poll()``,
    detected through the row's ``updated_at`` stamp.

    Callbacks run on the thread that saved or polled.
    """

    def __init__(self, db_path: str = DB_PATH) -> None:
        self.db_path = db_path
        self._subscribers: dict[str, list[SnapshotCallback]] = {}
        # Last updated_at delivered to this instance's subscribers.
        self._seen: dict[str, str | None] = {}
        self._lock = threading.Lock()
        self.bootstrap_schema()

    def bootstrap_schema(self) -> None:
        """Create persistence schema if it does not already exist."""
        with _connect(self.db_path) as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS snapshots (
                    account_id TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )

    def _read(self, account_id: str) -> tuple[dict[str, Any] | None, str | None]:
        try:
            with _connect(self.db_path) as conn:
                row = conn.execute(
                    "SELECT payload, updated_at FROM snapshots WHERE account_id = ?", (account_id,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise SnapshotStoreError(f"Could not read snapshot for {account_id}: {exc}") from exc
        if row is None:
            return None, None
        return json.loads(row[0]), row[1]

    def load(self, account_id: str) -> dict[str, Any] | None:
        return self._read(account_id)[0]

    def save(self, account_id: str, snapshot: dict[str, Any]) -> None:
        payload = json.dumps(snapshot, ensure_ascii=False)
        stamp = _utc_now_iso()
        with self._lock:
            try:
                with _connect(self.db_path) as conn:
                    with conn:
                        conn.execute(
                            """
                            INSERT INTO snapshots (account_id, payload, updated_at) VALUES (?, ?, ?)
                            ON CONFLICT(account_id) DO UPDATE SET payload = excluded.payload, updated_at = excluded.updated_at
                            """,
                            (account_id, payload, stamp),
                        )
            except sqlite3.Error as exc:
                raise SnapshotStoreError(f"Could not write snapshot for {account_id}: {exc}") from exc
            self._seen[account_id] = stamp
            callbacks = list(self._subscribers.get(account_id, []))

        for callback in callbacks:
            callback(json.loads(payload))

    def subscribe(self, account_id: str, callback: SnapshotCallback) -> Callable[[], None]:
        with self._lock:
            self._subscribers.setdefault(account_id, []).append(callback)
            data, stamp = self._read(account_id)
            self._seen.setdefault(account_id, stamp)
        callback(data)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(account_id, [])
                if callback in callbacks:
                    callbacks.remove(callback)

        return unsubscribe

    def poll(self) -> None:
        """Notify subscribers of rows rewritten by another instance since the last poll or save."""
        with self._lock:
            accounts = [account_id for account_id, callbacks in self._subscribers.items() if callbacks]
        for account_id in accounts:
            with self._lock:
                data, stamp = self._read(account_id)
                if stamp == self._seen.get(account_id):
                    continue
                self._seen[account_id] = stamp
                callbacks = list(self._subscribers.get(account_id, []))
            logger.debug("Snapshot changed elsewhere account=%s updated_at=%s", account_id, stamp)
            for callback in callbacks:
                callback(data)


class LocalStore:
    """Device-scoped key/value store for the cart and the kitchen sound flag."""

    def __init__(self, db_path: str = LOCAL_DB_PATH) -> None:
        self.db_path = db_path
        self.bootstrap_schema()

    def bootstrap_schema(self) -> None:
        with _connect(self.db_path) as conn:
            conn.execute("CREATE TABLE IF NOT EXISTS local_state (key TEXT PRIMARY KEY, value TEXT NOT NULL)")

    def _get(self, key: str) -> str | None:
        with _connect(self.db_path) as conn:
            row = conn.execute("SELECT value FROM local_state WHERE key = ?", (key,)).fetchone()
        return None if row is None else row[0]

    def _set(self, key: str, value: str) -> None:
        with _connect(self.db_path) as conn:
            with conn:
                conn.execute(
                    "INSERT INTO local_state (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (key, value),
                )

    def load_cart(self) -> tuple[CartItem, ...]:
        """Saved cart, or an empty one when nothing usable was stored."""
        raw = self._get(_CART_KEY)
        if raw is None:
            return ()
        try:
            return load_cart(json.loads(raw))
        except (json.JSONDecodeError, TypeError) as exc:
            logger.error("Failed to parse cart: %s", exc)
            return ()

    def save_cart(self, cart: tuple[CartItem, ...]) -> None:
        self._set(_CART_KEY, json.dumps(dump_cart(cart), ensure_ascii=False))

    def load_sound_enabled(self) -> bool:
        return self._get(_SOUND_KEY) == "true"

    def save_sound_enabled(self, enabled: bool) -> None:
        self._set(_SOUND_KEY, "true" if enabled else "false")
