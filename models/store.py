"""
YAML-backed record store.

One YAML document per organization holds every table as a list of rows.
Each mutation loads the raw YAML, changes the list in place and writes the
whole document back.
"""

import uuid
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import yaml

from .errors import BackendError, RecordNotFound, RecordValidationError
from .records import RECORD_TYPES, normalize, parse_record, validate_row
from .session import Session
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="store")

# Set by the store, never by callers
MANAGED_FIELDS = ("id", "organization_id", "created_at", "updated_at")


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _dump(data: Dict[str, Any], fp) -> None:
    yaml.dump(
        data,
        fp,
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
        width=120,
    )


def _strip_none(values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


class FleetStore:
    """Table-scoped select/insert/update/delete over organization YAML files."""

    def __init__(self, data_dir: Union[str, Path], clock: Optional[Callable[[], str]] = None):
        self.data_dir = Path(data_dir)
        self.clock = clock or _utcnow

    def path_for(self, organization_id: str) -> Path:
        """Data file for an organization."""
        if not organization_id or "/" in organization_id or organization_id.startswith("."):
            raise RecordValidationError(f"Invalid organization id '{organization_id}'")
        return self.data_dir / f"{organization_id}.yaml"

    # -------------------------------------------------------------------------
    # Raw document access
    # -------------------------------------------------------------------------

    def _load_raw(self, organization_id: str) -> Dict[str, Any]:
        path = self.path_for(organization_id)
        if not path.exists():
            raise BackendError(f"No data file for organization '{organization_id}'")
        try:
            with open(path, "r") as fp:
                data = yaml.load(fp, Loader=yaml.SafeLoader)
        except (OSError, yaml.YAMLError) as exc:
            logger.error("Failed to read %s: %s", path, exc)
            raise BackendError(f"Could not read data for organization '{organization_id}'") from exc
        return normalize(data or {})

    def _write_raw(self, organization_id: str, data: Dict[str, Any]) -> None:
        path = self.path_for(organization_id)
        try:
            with open(path, "w") as fp:
                _dump(data, fp)
        except OSError as exc:
            logger.error("Failed to write %s: %s", path, exc)
            raise BackendError(f"Could not save data for organization '{organization_id}'") from exc

    @staticmethod
    def _table(data: Dict[str, Any], table: str) -> List[Dict[str, Any]]:
        if table not in RECORD_TYPES:
            raise RecordValidationError(f"Unknown table '{table}'")
        if data.get(table) is None:
            data[table] = []
        return data[table]

    # -------------------------------------------------------------------------
    # Organizations
    # -------------------------------------------------------------------------

    def create_organization(self, organization_id: str, name: str) -> Path:
        """Create an empty data file for a new organization."""
        path = self.path_for(organization_id)
        if path.exists():
            raise RecordValidationError(f"Organization '{organization_id}' already exists")
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._write_raw(organization_id, {"organization": {"id": organization_id, "name": name}})
        logger.info("Created organization %s", organization_id)
        return path

    def organization_name(self, session: Session) -> str:
        data = self._load_raw(session.organization_id)
        return (data.get("organization") or {}).get("name", session.organization_id)

    def list_organizations(self) -> List[str]:
        return sorted(p.stem for p in self.data_dir.glob("*.yaml"))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def select(
        self,
        session: Session,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list:
        """
        Fetch records of one table for the session's organization.

        Args:
            filters: column -> value equality; a list/tuple/set value means "in"
            order_by: column to sort on (rows missing it sort last)
            descending: If True, highest/newest first
            limit: maximum number of records returned
        """
        data = self._load_raw(session.organization_id)
        rows = [
            r for r in self._table(data, table)
            if r.get("organization_id") == session.organization_id
        ]

        for column, value in (filters or {}).items():
            if isinstance(value, (list, tuple, set)):
                rows = [r for r in rows if r.get(column) in value]
            else:
                rows = [r for r in rows if r.get(column) == value]

        if order_by:
            present = [r for r in rows if r.get(order_by) is not None]
            missing = [r for r in rows if r.get(order_by) is None]
            present.sort(key=lambda r: r[order_by], reverse=descending)
            rows = present + missing

        if limit is not None:
            rows = rows[:limit]

        return [parse_record(table, r) for r in rows]

    def get(self, session: Session, table: str, record_id: str):
        """Fetch a single record by id or raise RecordNotFound."""
        found = self.select(session, table, filters={"id": record_id}, limit=1)
        if not found:
            raise RecordNotFound(table, record_id)
        return found[0]

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def insert(self, session: Session, table: str, values: Dict[str, Any]):
        """Validate and append a row; returns the stored record."""
        data = self._load_raw(session.organization_id)
        rows = self._table(data, table)

        now = self.clock()
        row = _strip_none({k: v for k, v in normalize(values).items() if k not in MANAGED_FIELDS})
        row = {
            "id": uuid.uuid4().hex,
            "organization_id": session.organization_id,
            **row,
            "created_at": now,
            "updated_at": now,
        }
        validate_row(table, row)

        rows.append(row)
        self._write_raw(session.organization_id, data)
        logger.info("Inserted %s row %s (user=%s)", table, row["id"], session.user_id)
        return parse_record(table, row)

    def update(self, session: Session, table: str, record_id: str, changes: Dict[str, Any]):
        """
        Merge ``changes`` into an existing row.

        A None value removes the column from the row.
        """
        data = self._load_raw(session.organization_id)
        rows = self._table(data, table)
        index = self._index_of(rows, session, table, record_id)

        merged = dict(rows[index])
        for key, value in normalize(changes).items():
            if key in MANAGED_FIELDS:
                continue
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = value
        merged["updated_at"] = self.clock()
        validate_row(table, merged)

        rows[index] = merged
        self._write_raw(session.organization_id, data)
        logger.info("Updated %s row %s (user=%s)", table, record_id, session.user_id)
        return parse_record(table, merged)

    def save(self, session: Session, table: str, record):
        """Write back a whole record previously fetched from the store."""
        return self.update(session, table, record.id, asdict(record))

    def delete(self, session: Session, table: str, record_id: str) -> None:
        """Remove a row by id."""
        data = self._load_raw(session.organization_id)
        rows = self._table(data, table)
        index = self._index_of(rows, session, table, record_id)
        del rows[index]
        self._write_raw(session.organization_id, data)
        logger.info("Deleted %s row %s (user=%s)", table, record_id, session.user_id)

    @staticmethod
    def _index_of(rows, session: Session, table: str, record_id: str) -> int:
        for i, row in enumerate(rows):
            if row.get("id") == record_id and row.get("organization_id") == session.organization_id:
                return i
        raise RecordNotFound(table, record_id)
