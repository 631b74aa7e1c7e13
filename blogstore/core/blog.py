"""
Blog facade: validation, referential integrity checks and store mutation.

A blog contains accounts, articles and comments. Articles reference their
author account, comments reference an article and a commenter account.

Errors (every failure raises BlogErrors with one or more of these)
======

BAD_CATEGORY:
  Category is not one of the categories in the metadata.

BAD_FIELD:
  A spec contains an unknown field name or a field forbidden for the action.

BAD_FIELD_VALUE:
  The value of a field does not meet its specs.

BAD_ID:
  No record for the specified id (find/remove/update).
  Record being removed is referenced by another category.
  Other category record being referenced does not exist (for example,
  authorId in an article naming a non-existent account).

EXISTS:
  A record being created already exists with the same id.

MISSING_FIELD:
  The value of a required field is not specified.

DB:
  The backing medium failed.
"""

import threading
import uuid
from contextlib import contextmanager
from typing import Any, Dict, List, Mapping

from util.logging import logger

from . import query
from .config import DEFAULT_COUNT, get_record_store
from .errors import (
    BackingStoreError,
    BlogError,
    BlogErrors,
    DuplicateIdError,
    ErrorKind,
    RecordNotFoundError,
)
from .integrity import ReferentialIntegrity
from .meta import BLOG_META
from .schema import ID_FIELD, SYSTEM_FIELDS, Record, SchemaIndex, utcnow
from .store import IRecordStore
from .validator import Validator

ID_LENGTH = 8


class Blog:
    """Entry point for create/find/remove/update/clear over one record store.

    Mutating operations are serialized by a per-instance lock, so a single
    Blog shared by threads is a single writer. Separate processes sharing
    one SQLite file get no isolation beyond single statements.
    """

    def __init__(self, schema: SchemaIndex, store: IRecordStore, validator: Validator = None,
                 default_count: int = DEFAULT_COUNT):
        self.schema = schema
        self.store = store
        self.validator = validator or Validator(schema)
        self.integrity = ReferentialIntegrity(schema, store)
        self.default_count = default_count
        self._write_lock = threading.RLock()

    @classmethod
    def make(cls, meta: Mapping[str, List[Mapping[str, Any]]] = None,
             store: IRecordStore = None, **options) -> "Blog":
        """Build a blog from metadata, using the configured store unless one is given."""
        schema = SchemaIndex(meta or BLOG_META)
        if store is None:
            store = get_record_store(schema)
        logger.info(f"Blog ready with {store.backend} store for {', '.join(schema.categories)}")
        return cls(schema, store, **options)

    @contextmanager
    def _medium(self, operation: str, category: str):
        try:
            yield
        except BackingStoreError as e:
            logger.log_rejected(operation, category, [e])
            raise BlogErrors.single(ErrorKind.DB, str(e)) from e

    def _reject(self, operation: str, category: str, errors: List[BlogError]) -> BlogErrors:
        logger.log_rejected(operation, category, errors)
        return BlogErrors(errors)

    def _generate_id(self, category: str) -> str:
        while True:
            record_id = uuid.uuid4().hex[:ID_LENGTH]
            if self.store.lookup_by_id(category, record_id) is None:
                return record_id

    def meta(self) -> Dict[str, List[Dict[str, Any]]]:
        return self.schema.describe()

    def create(self, category: str, spec: Mapping[str, Any]) -> str:
        """Create a record as per spec and return the id of the new record."""
        fields = self.validator.validate(category, "create", spec)
        with self._write_lock, self._medium("create", category):
            if self.schema.is_derived(category):
                record_id = self._generate_id(category)
            else:
                record_id = fields[ID_FIELD]
            fields.pop(ID_FIELD, None)

            errors = []
            if self.store.lookup_by_id(category, record_id) is not None:
                errors.append(BlogError(
                    ErrorKind.EXISTS, f"object with id {record_id} already exists for {category}"))
            violations = self.integrity.create_check(category, fields)
            errors.extend(self.integrity.create_errors(category, violations))
            if errors:
                raise self._reject("create", category, errors)

            now = utcnow()
            try:
                self.store.insert(category, Record(record_id, fields, now, now))
            except DuplicateIdError as e:
                raise self._reject("create", category, [BlogError(ErrorKind.EXISTS, str(e))]) from None

        logger.log_record_operation("create", category, record_id)
        return record_id

    def find(self, category: str, spec: Mapping[str, Any] = None) -> List[Dict[str, Any]]:
        """Find records of category which meet spec.

        The first returned record is at offset spec._index (default 0)
        within all matches; at most spec._count (default 5) are returned.
        To page through results 10 at a time:
          find() 1: _index 0, _count 10
          find() 2: _index 10, _count 10
          ...
        """
        criteria = self.validator.validate(category, "find", spec)
        with self._medium("find", category):
            try:
                records = query.find(self.store, self.schema, category, criteria, self.default_count)
            except RecordNotFoundError as e:
                raise BlogErrors.single(ErrorKind.BAD_ID, str(e)) from None
        return [record.to_dict() for record in records]

    def remove(self, category: str, spec: Mapping[str, Any]) -> None:
        """Remove the record of category with id spec.id, unless referenced."""
        spec = self.validator.validate(category, "remove", spec)
        record_id = spec[ID_FIELD]
        with self._write_lock, self._medium("remove", category):
            if self.store.lookup_by_id(category, record_id) is None:
                raise self._reject("remove", category, [BlogError(
                    ErrorKind.BAD_ID, f"no {category} for id {record_id} in remove")])
            violations = self.integrity.remove_check(category, record_id)
            if violations:
                raise self._reject(
                    "remove", category,
                    self.integrity.remove_errors(category, record_id, violations))
            try:
                self.store.delete(category, record_id)
            except RecordNotFoundError as e:
                raise self._reject("remove", category, [BlogError(ErrorKind.BAD_ID, str(e))]) from None

        logger.log_record_operation("remove", category, record_id)

    def update(self, category: str, spec: Mapping[str, Any]) -> Dict[str, Any]:
        """Merge the allowed fields of spec into record spec.id; return the updated record."""
        spec = self.validator.validate(category, "update", spec)
        record_id = spec[ID_FIELD]
        allowed = self.schema.allowed_fields(category, "update") - SYSTEM_FIELDS
        patch = {name: value for name, value in spec.items() if name in allowed}
        with self._write_lock, self._medium("update", category):
            try:
                record = self.store.mutate(category, record_id, patch)
            except RecordNotFoundError:
                raise self._reject("update", category, [BlogError(
                    ErrorKind.BAD_ID, f"no {category} for id {record_id} in update")]) from None

        logger.log_record_operation("update", category, record_id, details={"fields": sorted(patch)})
        return record.to_dict()

    def clear(self) -> None:
        """Remove all data for this blog."""
        with self._write_lock, self._medium("clear", "*"):
            self.store.clear_all()
        logger.log_record_operation("clear", "*")

    def close(self) -> None:
        """Release all resources held by this blog."""
        self.store.close()
