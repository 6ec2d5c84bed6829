"""Runtime configuration defaults for persistence, sync and printing."""

from __future__ import annotations

import os

# Development snapshot store standing in for the hosted realtime database.
DB_PATH = os.environ.get("POS_DB_PATH", "data/pos_remote.db")
# Device-scoped store for the cart and the kitchen sound flag.
LOCAL_DB_PATH = os.environ.get("POS_LOCAL_DB_PATH", "data/pos_local.db")
DEBUG_LOG_PATH = os.environ.get("POS_DEBUG_LOG_PATH", "/tmp/pos-debug.log")

SYNC_DEBOUNCE_SECONDS = float(os.environ.get("POS_SYNC_DEBOUNCE_SECONDS", "0.5"))
SNAPSHOT_POLL_SECONDS = float(os.environ.get("POS_SNAPSHOT_POLL_SECONDS", "1.0"))

RECEIPT_WIDTH = 32
BACKUP_VERSION = "1.0"

PRINTER_USB_VENDOR_ID = 0x28E9
PRINTER_USB_PRODUCT_ID = 0x0289
PRINTER_WIDTH_PX = 384
PRINTER_FONT_SIZE = 22
PRINTER_FONT_PATH = "/System/Library/Fonts/Menlo.ttc"
PRINTER_LEFT_INDENT_PX = 4

# Signed-in account; unset means no account and no remote sync.
ACCOUNT_ID = os.environ.get("POS_ACCOUNT_ID") or None
