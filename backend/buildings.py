"""
backend/buildings.py

Single-record operations on the buildings table: fetch, insert, bulk insert,
partial update, delete, delete-by-project.

Identifiers are 32-char lowercase hex strings assigned at insert. Anything else
passed as an id is treated as "not found", never as an error.
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import delete, insert, select, update

from backend.db import buildings_table, get_db_connection, transaction
from backend.schemas_buildings import WIRE_NAMES, BuildingFields

logger = logging.getLogger(__name__)

_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


class UpdateOutcome(str, Enum):
    """Result of a partial update. NOT_FOUND and UNCHANGED are kept apart."""
    NOT_FOUND = "not_found"
    UNCHANGED = "unchanged"
    UPDATED = "updated"


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_building_id() -> str:
    return uuid.uuid4().hex


def is_valid_building_id(value: Any) -> bool:
    return isinstance(value, str) and bool(_ID_PATTERN.match(value))


def _load_extra(raw: Optional[str]) -> Dict[str, Any]:
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        logger.warning("[BUILDINGS] Ignoring unreadable extra_data")
        return {}
    return data if isinstance(data, dict) else {}


def record_from_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Convert a table row into the camelCase record returned by the API.

    Columns holding NULL are omitted, as they would be on a record that never
    had that field. Extra client keys are merged back in.
    """
    record: Dict[str, Any] = {"id": row["id"]}
    for column, wire_name in WIRE_NAMES.items():
        value = row[column]
        if value is not None:
            record[wire_name] = value
    for key, value in _load_extra(row["extra_data"]).items():
        record.setdefault(key, value)
    record["createdAt"] = row["created_at"]
    return record


def _insert_values(fields: BuildingFields, created_at: str) -> Dict[str, Any]:
    # Full column set on every row so executemany sees uniform parameters
    values = fields.column_values()
    extra = fields.extra_values()
    values["id"] = new_building_id()
    values["extra_data"] = json.dumps(extra) if extra else None
    values["created_at"] = created_at
    return values


# ---------------------------------------------------------
# Reads
# ---------------------------------------------------------

def get_buildings_by_project(project_id: str) -> List[Dict[str, Any]]:
    """
    All records of one project, building name ascending.

    Unbounded: assumes projects hold at most a few hundred buildings.
    """
    b = buildings_table
    stmt = select(b).where(b.c.project_id == project_id).order_by(b.c.building_name, b.c.seq)

    with get_db_connection() as conn:
        rows = conn.execute(stmt).mappings().all()

    return [record_from_row(row) for row in rows]


def get_building_by_id(building_id: str) -> Optional[Dict[str, Any]]:
    if not is_valid_building_id(building_id):
        logger.debug("[BUILDINGS] Malformed id %r treated as not found", building_id)
        return None

    b = buildings_table
    with get_db_connection() as conn:
        row = conn.execute(select(b).where(b.c.id == building_id)).mappings().first()

    return record_from_row(row) if row is not None else None


# ---------------------------------------------------------
# Writes
# ---------------------------------------------------------

def create_building(fields: BuildingFields) -> str:
    """Insert one record, stamping createdAt. Returns the new id."""
    values = _insert_values(fields, now_iso())

    with transaction() as conn:
        conn.execute(insert(buildings_table).values(**values))

    logger.info(
        "[BUILDINGS] Created id=%s project_id=%s",
        values["id"], values["project_id"],
    )
    return values["id"]


def upload_buildings(batch: Sequence[BuildingFields]) -> int:
    """
    Insert many records in one transaction.

    All-or-nothing: if any row fails, none are kept. Returns the inserted count.
    """
    if not batch:
        return 0

    created_at = now_iso()
    rows = [_insert_values(fields, created_at) for fields in batch]

    with transaction() as conn:
        conn.execute(insert(buildings_table), rows)

    logger.info("[BUILDINGS] Bulk inserted %s records", len(rows))
    return len(rows)


def update_building(building_id: str, fields: BuildingFields) -> UpdateOutcome:
    """
    Merge the fields the client sent into an existing record.

    id and createdAt are never written. A record whose values already equal
    the payload (or an empty payload) yields UNCHANGED.
    """
    if not is_valid_building_id(building_id):
        return UpdateOutcome.NOT_FOUND

    b = buildings_table
    requested = fields.column_values(only_set=True)
    extra = fields.extra_values()

    with transaction() as conn:
        row = conn.execute(select(b).where(b.c.id == building_id)).mappings().first()
        if row is None:
            return UpdateOutcome.NOT_FOUND

        changes = {column: value for column, value in requested.items() if row[column] != value}

        current_extra = _load_extra(row["extra_data"])
        merged_extra = {**current_extra, **extra}
        if merged_extra != current_extra:
            changes["extra_data"] = json.dumps(merged_extra)

        if not changes:
            return UpdateOutcome.UNCHANGED

        conn.execute(update(b).where(b.c.id == building_id).values(**changes))

    logger.info("[BUILDINGS] Updated id=%s fields=%s", building_id, sorted(changes))
    return UpdateOutcome.UPDATED


def delete_building(building_id: str) -> bool:
    """True if a record was removed; unknown or malformed ids give False."""
    if not is_valid_building_id(building_id):
        return False

    b = buildings_table
    with transaction() as conn:
        result = conn.execute(delete(b).where(b.c.id == building_id))

    deleted = result.rowcount > 0
    if deleted:
        logger.info("[BUILDINGS] Deleted id=%s", building_id)
    return deleted


def delete_all_buildings_in_project(project_id: str) -> Tuple[bool, int]:
    """Remove every record of a project. An empty project gives (True, 0)."""
    b = buildings_table
    with transaction() as conn:
        result = conn.execute(delete(b).where(b.c.project_id == project_id))

    logger.info("[BUILDINGS] Deleted %s records from project_id=%s", result.rowcount, project_id)
    return True, result.rowcount
