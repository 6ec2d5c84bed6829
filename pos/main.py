"""Entry point for the kitchen display terminal."""

from __future__ import annotations

import logging
from pathlib import Path

from pos.config import ACCOUNT_ID, DEBUG_LOG_PATH
from pos.kitchen_app import KitchenApp
from pos.persistence import LocalStore, SqliteSnapshotStore
from pos.session import PosSession
from pos.sync import SyncAdapter


def configure_logging(path: str = DEBUG_LOG_PATH) -> None:
    """Send logs to a file; the terminal belongs to the UI."""
    log_file = Path(path)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=log_file,
        level=logging.DEBUG,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def main() -> None:
    """Run the Textual application."""
    configure_logging()
    session = PosSession(account_id=ACCOUNT_ID)
    local = LocalStore()
    sync = SyncAdapter(session, SqliteSnapshotStore() if ACCOUNT_ID else None, local)
    try:
        KitchenApp(session, local, sync=sync).run()
    finally:
        session.close()


if __name__ == "__main__":
    main()
