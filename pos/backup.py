"""Backup files, restore and the business-data reset."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from pos.actions import RestoreData
from pos.codec import (
    INVENTORY_ADAPTER,
    MENU_ADAPTER,
    ORDER_ADAPTER,
    TABLE_ADAPTER,
    TEAM_ADAPTER,
    load_entities,
    load_settings,
    to_data,
)
from pos.config import BACKUP_VERSION
from pos.errors import BackupFormatError
from pos.models import PosState

logger = logging.getLogger(__name__)

INVALID_BACKUP_MESSAGE = "Invalid backup file format."

Collection = dict[str, Any] | list[Any]


class BackupData(BaseModel):
    """Sections of a backup; ``menu`` and ``settings`` must be present."""

    model_config = ConfigDict(extra="ignore")

    menu: Collection
    settings: dict[str, Any]
    orders: Collection | None = None
    tables: Collection | None = None
    inventory: Collection | None = None
    team_members: Collection | None = None


class BackupDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    version: str = BACKUP_VERSION
    timestamp: str | None = None
    data: BackupData


def export_backup(state: PosState, now: datetime | None = None) -> dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    return {
        "version": BACKUP_VERSION,
        "timestamp": now.isoformat(),
        "data": to_data(state),
    }


def export_backup_json(state: PosState, now: datetime | None = None) -> str:
    return json.dumps(export_backup(state, now), indent=2, ensure_ascii=False)


def backup_filename(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"bhoj_pos_backup_{now:%Y-%m-%d}.json"


def parse_backup(source: str | bytes | dict[str, Any]) -> BackupDocument:
    """Validate a backup document; nothing is applied when this raises."""
    try:
        raw = json.loads(source) if isinstance(source, (str, bytes)) else source
        return BackupDocument.model_validate(raw)
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.warning("Rejected backup: %s", exc)
        raise BackupFormatError(INVALID_BACKUP_MESSAGE) from exc


def restore_action(document: BackupDocument) -> RestoreData:
    """
    Build the restore for a parsed backup.

    Every record is validated up front so a bad entry rejects the whole file
    instead of restoring part of it.
    """
    data = document.data

    def section(adapter, raw):
        return None if raw is None else load_entities(adapter, raw, strict=True)

    try:
        return RestoreData(
            orders=section(ORDER_ADAPTER, data.orders),
            menu=load_entities(MENU_ADAPTER, data.menu, strict=True),
            tables=section(TABLE_ADAPTER, data.tables),
            inventory=section(INVENTORY_ADAPTER, data.inventory),
            settings=load_settings(data.settings, strict=True),
            team_members=section(TEAM_ADAPTER, data.team_members),
        )
    except ValidationError as exc:
        logger.warning("Rejected backup records: %s", exc.errors()[:1])
        raise BackupFormatError(INVALID_BACKUP_MESSAGE) from exc


def reset_action() -> RestoreData:
    """Clear orders, menu, tables and inventory; settings and team stay."""
    return RestoreData(orders=(), menu=(), tables=(), inventory=())
