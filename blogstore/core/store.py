"""
Record store - per-category keyed collections over a pluggable backing medium.

The store exclusively owns record state: every write copies its input and
every read hands out a copy.
"""

import copy
import json
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, Mapping, Optional

from util.logging import log_store_error

from .db import get_db, health_check, init_db
from .config import ensure_db_directory
from .errors import BackingStoreError, DuplicateIdError, RecordNotFoundError
from .schema import Record, SchemaIndex, next_update_time


class IRecordStore(ABC):
    """Abstract interface for record storage operations."""

    backend = "abstract"

    @abstractmethod
    def insert(self, category: str, record: Record) -> None:
        """Insert a record, raising DuplicateIdError if its id is present."""
        pass

    @abstractmethod
    def lookup_by_id(self, category: str, record_id: str) -> Optional[Record]:
        """Return a copy of the record with record_id, or None."""
        pass

    @abstractmethod
    def scan(self, category: str) -> Iterator[Record]:
        """Lazily yield copies of all records in category, in no particular order."""
        pass

    @abstractmethod
    def mutate(self, category: str, record_id: str, patch: Mapping[str, Any]) -> Record:
        """Merge patch into the record fields and bump its update time."""
        pass

    @abstractmethod
    def delete(self, category: str, record_id: str) -> None:
        """Delete a record, raising RecordNotFoundError if absent."""
        pass

    @abstractmethod
    def clear(self, category: str) -> None:
        """Remove all records of one category."""
        pass

    @abstractmethod
    def clear_all(self) -> None:
        """Remove all records of every category."""
        pass

    def find_by_field(self, category: str, field: str, value: Any) -> Iterator[Record]:
        """Yield records whose field equals value."""
        return (r for r in self.scan(category) if r.value_of(field) == value)

    def count(self, category: str) -> int:
        return sum(1 for _ in self.scan(category))

    def health_check(self) -> bool:
        return True

    def close(self) -> None:
        """Release resources held by the backing medium."""
        pass


def _not_found(category: str, record_id: str) -> RecordNotFoundError:
    return RecordNotFoundError(category, f"no {category} for id {record_id}")


class InMemoryRecordStore(IRecordStore):
    """In-process store: one dict keyed by id per category."""

    backend = "memory"

    def __init__(self, schema: SchemaIndex = None):
        self._records: Dict[str, Dict[str, Record]] = {}
        if schema is not None:
            for category in schema.categories:
                self._records[category] = {}

    def _collection(self, category: str) -> Dict[str, Record]:
        return self._records.setdefault(category, {})

    def insert(self, category: str, record: Record) -> None:
        records = self._collection(category)
        if record.id in records:
            raise DuplicateIdError(category, record.id)
        records[record.id] = record.copy()

    def lookup_by_id(self, category: str, record_id: str) -> Optional[Record]:
        record = self._collection(category).get(record_id)
        return record.copy() if record else None

    def scan(self, category: str) -> Iterator[Record]:
        # Snapshot the values so callers may mutate the store while iterating
        for record in list(self._collection(category).values()):
            yield record.copy()

    def mutate(self, category: str, record_id: str, patch: Mapping[str, Any]) -> Record:
        record = self._collection(category).get(record_id)
        if record is None:
            raise _not_found(category, record_id)
        record.fields.update(copy.deepcopy(dict(patch)))
        record.update_time = next_update_time(record.update_time)
        return record.copy()

    def delete(self, category: str, record_id: str) -> None:
        records = self._collection(category)
        if record_id not in records:
            raise _not_found(category, record_id)
        del records[record_id]

    def clear(self, category: str) -> None:
        self._collection(category).clear()

    def clear_all(self) -> None:
        for records in self._records.values():
            records.clear()

    def count(self, category: str) -> int:
        return len(self._collection(category))


class SQLiteRecordStore(IRecordStore):
    """SQLite store: one records table keyed by (category, id), fields as JSON."""

    backend = "sqlite"

    def __init__(self, db_path: str, schema: SchemaIndex = None):
        self.db_path = db_path
        ensure_db_directory(db_path)
        hints = {}
        if schema is not None:
            hints = {category: schema.index_hints(category) for category in schema.categories}
        self.indexed_fields = {category: set(fields) for category, fields in hints.items()}
        with self._medium("init"):
            init_db(db_path, hints)

    @contextmanager
    def _medium(self, operation: str):
        try:
            yield
        except sqlite3.Error as e:
            log_store_error(operation, self.backend, e)
            raise BackingStoreError(f"database error during {operation}: {e}") from e

    @staticmethod
    def _to_record(row) -> Record:
        record_id, fields, creation_time, update_time = row
        return Record(
            id=record_id,
            fields=json.loads(fields),
            creation_time=datetime.fromisoformat(creation_time),
            update_time=datetime.fromisoformat(update_time),
        )

    def insert(self, category: str, record: Record) -> None:
        with self._medium("insert"), get_db(self.db_path) as conn:
            try:
                # Primary key makes this an atomic insert-if-absent
                conn.execute(
                    "INSERT INTO records (category, id, fields, creation_time, update_time) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (
                        category,
                        record.id,
                        json.dumps(record.fields),
                        record.creation_time.isoformat(),
                        record.update_time.isoformat(),
                    ),
                )
            except sqlite3.IntegrityError:
                raise DuplicateIdError(category, record.id) from None
            conn.commit()

    def lookup_by_id(self, category: str, record_id: str) -> Optional[Record]:
        with self._medium("lookup"), get_db(self.db_path) as conn:
            row = conn.execute(
                "SELECT id, fields, creation_time, update_time FROM records "
                "WHERE category = ? AND id = ?",
                (category, record_id),
            ).fetchone()
        return self._to_record(row) if row else None

    def scan(self, category: str) -> Iterator[Record]:
        with self._medium("scan"), get_db(self.db_path) as conn:
            cursor = conn.execute(
                "SELECT id, fields, creation_time, update_time FROM records WHERE category = ?",
                (category,),
            )
            for row in cursor:
                yield self._to_record(row)

    def find_by_field(self, category: str, field: str, value: Any) -> Iterator[Record]:
        if field not in self.indexed_fields.get(category, ()) or not isinstance(value, str):
            yield from super().find_by_field(category, field, value)
            return
        with self._medium("find_by_field"), get_db(self.db_path) as conn:
            cursor = conn.execute(
                "SELECT id, fields, creation_time, update_time FROM records "
                f"WHERE category = ? AND json_extract(fields, '$.{field}') = ?",
                (category, value),
            )
            for row in cursor:
                yield self._to_record(row)

    def mutate(self, category: str, record_id: str, patch: Mapping[str, Any]) -> Record:
        with self._medium("mutate"), get_db(self.db_path) as conn:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT update_time FROM records WHERE category = ? AND id = ?",
                (category, record_id),
            ).fetchone()
            if row is None:
                conn.rollback()
                raise _not_found(category, record_id)
            update_time = next_update_time(datetime.fromisoformat(row[0]))
            conn.execute(
                "UPDATE records SET fields = json_patch(fields, ?), update_time = ? "
                "WHERE category = ? AND id = ?",
                (json.dumps(dict(patch)), update_time.isoformat(), category, record_id),
            )
            conn.commit()
        return self.lookup_by_id(category, record_id)

    def delete(self, category: str, record_id: str) -> None:
        with self._medium("delete"), get_db(self.db_path) as conn:
            cursor = conn.execute(
                "DELETE FROM records WHERE category = ? AND id = ?", (category, record_id)
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise _not_found(category, record_id)

    def clear(self, category: str) -> None:
        with self._medium("clear"), get_db(self.db_path) as conn:
            conn.execute("DELETE FROM records WHERE category = ?", (category,))
            conn.commit()

    def clear_all(self) -> None:
        with self._medium("clear_all"), get_db(self.db_path) as conn:
            conn.execute("DELETE FROM records")
            conn.commit()

    def count(self, category: str) -> int:
        with self._medium("count"), get_db(self.db_path) as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM records WHERE category = ?", (category,)
            ).fetchone()
        return row[0] if row else 0

    def health_check(self) -> bool:
        return health_check(self.db_path)
