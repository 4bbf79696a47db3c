"""
Entity Store - list/create/update over job, machine and worker records

Records are plain dictionaries keyed by ``id``. Sort keys follow the
"field" / "-field" convention (leading minus sorts descending).
"""

import copy
import asyncio
import logging
import uuid
from datetime import datetime, timedelta
from typing import Dict, List, Any, Optional, Iterable, Protocol

from models.exceptions import StorageError


logger = logging.getLogger(__name__)

JOB = "job"
MACHINE = "machine"
WORKER = "worker"
RECORD_TYPES = (JOB, MACHINE, WORKER)

Record = Dict[str, Any]


class EntityStore(Protocol):
    """External collaborator holding the authoritative records."""

    async def list(self, record_type: str, sort_key: Optional[str] = None,
                   limit: Optional[int] = None) -> List[Record]:
        ...

    async def create(self, record_type: str, fields: Record) -> Record:
        ...

    async def update(self, record_type: str, record_id: str, fields: Record) -> Record:
        ...


def sort_records(records: List[Record], sort_key: Optional[str]) -> List[Record]:
    """
    Sort records by a "field" or "-field" key.

    Records missing the field sort last in either direction.
    """
    if not sort_key:
        return records

    descending = sort_key.startswith("-")
    field_name = sort_key.lstrip("-")

    present = [r for r in records if r.get(field_name) is not None]
    missing = [r for r in records if r.get(field_name) is None]
    present.sort(key=lambda r: r[field_name], reverse=descending)
    return present + missing


def normalize_created_date(record: Record) -> Record:
    """
    Store created_date as an ISO string.

    YAML seeds with unquoted timestamps load as date/datetime objects, which
    do not compare with the ISO strings generated on create.
    """
    value = record.get("created_date")
    if value and not isinstance(value, str) and hasattr(value, "isoformat"):
        record["created_date"] = value.isoformat()
    return record


class InMemoryEntityStore:
    """
    Dictionary-backed EntityStore.

    Each operation yields to the event loop once so callers observe the same
    suspension points they would with a remote store.
    """

    def __init__(self, seed: Optional[Dict[str, Iterable[Record]]] = None):
        self._records: Dict[str, Dict[str, Record]] = {t: {} for t in RECORD_TYPES}
        self._last_created: Optional[datetime] = None
        for record_type, records in (seed or {}).items():
            for record in records:
                self._insert(record_type, record)

    def _table(self, record_type: str) -> Dict[str, Record]:
        if record_type not in self._records:
            raise StorageError(f"Unknown record type: {record_type}")
        return self._records[record_type]

    def _next_created_date(self) -> datetime:
        # Strictly increasing so "-created_date" ordering is stable
        now = datetime.now()
        if self._last_created is not None and now <= self._last_created:
            now = self._last_created + timedelta(microseconds=1)
        self._last_created = now
        return now

    def _insert(self, record_type: str, fields: Record) -> Record:
        table = self._table(record_type)
        record = normalize_created_date(copy.deepcopy(dict(fields)))
        record_id = str(record.get("id") or uuid.uuid4().hex[:12])
        if record_id in table:
            raise StorageError(f"{record_type} {record_id} already exists")

        record["id"] = record_id
        if not record.get("created_date"):
            record["created_date"] = self._next_created_date().isoformat()
        table[record_id] = record
        return copy.deepcopy(record)

    async def list(self, record_type: str, sort_key: Optional[str] = None,
                   limit: Optional[int] = None) -> List[Record]:
        """
        List records of one type.

        Args:
            record_type: "job", "machine" or "worker"
            sort_key: Optional "field" / "-field"
            limit: Maximum number of records returned

        Returns:
            Copies of the stored records
        """
        await asyncio.sleep(0)
        records = [copy.deepcopy(r) for r in self._table(record_type).values()]
        records = sort_records(records, sort_key)
        if limit is not None:
            records = records[:limit]
        return records

    async def create(self, record_type: str, fields: Record) -> Record:
        """Create a record and return it with its assigned id."""
        await asyncio.sleep(0)
        record = self._insert(record_type, fields)
        logger.debug("Created %s %s", record_type, record["id"])
        return record

    async def update(self, record_type: str, record_id: str, fields: Record) -> Record:
        """
        Apply a partial update.

        Raises:
            StorageError: If the record does not exist
        """
        await asyncio.sleep(0)
        table = self._table(record_type)
        if record_id not in table:
            raise StorageError(f"{record_type} {record_id} not found")

        changes = {k: v for k, v in copy.deepcopy(dict(fields)).items() if k != "id"}
        normalize_created_date(changes)
        table[record_id].update(changes)
        logger.debug("Updated %s %s: %s", record_type, record_id, sorted(changes))
        return copy.deepcopy(table[record_id])
