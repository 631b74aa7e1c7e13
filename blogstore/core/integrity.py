"""
Referential integrity checks run at the edges of mutation.

References are checked when a record is created and block removal of the
record they name. Nothing is re-validated later and nothing is repaired.
"""

from dataclasses import dataclass
from typing import Any, List, Mapping, Tuple

from util.logging import log_integrity_violation

from .errors import BlogError, BlogErrors, ErrorKind
from .schema import SchemaIndex
from .store import IRecordStore


@dataclass(frozen=True)
class BadReference:
    """A forward reference naming a record that does not exist."""

    field: str
    id: str
    target: str

    def message(self, category: str) -> str:
        return f"invalid id {self.id} for {self.target} for create {category}"


@dataclass(frozen=True)
class BlockedByReference:
    """Records in another category that still reference the record being removed."""

    category: str
    field: str
    ids: Tuple[str, ...]

    def message(self, category: str, record_id: str) -> str:
        return (f"{category} {record_id} referenced by {self.field} "
                f"for {self.category} {', '.join(self.ids)}")


class ReferentialIntegrity:
    def __init__(self, schema: SchemaIndex, store: IRecordStore):
        self.schema = schema
        self.store = store

    def create_check(self, category: str, fields: Mapping[str, Any]) -> List[BadReference]:
        """Check every forward edge of category that fields define."""
        violations = []
        for field, target in self.schema.identifies_of(category).items():
            target_id = fields.get(field)
            if target_id is None:
                continue
            if self.store.lookup_by_id(target, target_id) is None:
                violation = BadReference(field=field, id=target_id, target=target)
                log_integrity_violation("create", category, violation.__dict__)
                violations.append(violation)
        return violations

    def remove_check(self, category: str, record_id: str) -> List[BlockedByReference]:
        """Check every reverse edge of category for records referencing record_id."""
        violations = []
        for ref_category, ref_field in self.schema.identified_by_of(category):
            ids = sorted(r.id for r in self.store.find_by_field(ref_category, ref_field, record_id))
            if ids:
                violation = BlockedByReference(category=ref_category, field=ref_field, ids=tuple(ids))
                log_integrity_violation("remove", category, {
                    "id": record_id,
                    "referenced_by": f"{ref_category}.{ref_field}",
                    "blocking_ids": list(ids),
                })
                violations.append(violation)
        return violations

    def require_create(self, category: str, fields: Mapping[str, Any]) -> None:
        violations = self.create_check(category, fields)
        if violations:
            raise BlogErrors(self.create_errors(category, violations))

    def require_remove(self, category: str, record_id: str) -> None:
        violations = self.remove_check(category, record_id)
        if violations:
            raise BlogErrors(self.remove_errors(category, record_id, violations))

    @staticmethod
    def create_errors(category: str, violations: List[BadReference]) -> List[BlogError]:
        return [BlogError(ErrorKind.BAD_ID, v.message(category)) for v in violations]

    @staticmethod
    def remove_errors(category: str, record_id: str,
                      violations: List[BlockedByReference]) -> List[BlogError]:
        return [BlogError(ErrorKind.BAD_ID, v.message(category, record_id)) for v in violations]
