"""
Error taxonomy for the blog record store.

Every public facade operation fails with a BlogErrors exception carrying a
non-empty, ordered list of BlogError entries. Store-level exceptions are
internal and get translated by the facade.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List


class ErrorKind(str, Enum):
    """Error kinds exposed to callers."""

    BAD_CATEGORY = "BAD_CATEGORY"
    BAD_FIELD = "BAD_FIELD"
    BAD_FIELD_VALUE = "BAD_FIELD_VALUE"
    BAD_ID = "BAD_ID"
    EXISTS = "EXISTS"
    MISSING_FIELD = "MISSING_FIELD"
    DB = "DB"


@dataclass(frozen=True)
class BlogError:
    kind: ErrorKind
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind.value, "message": self.message}

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class BlogErrors(Exception):
    """One failed operation, reported as an ordered list of typed errors."""

    def __init__(self, errors: Iterable[BlogError]):
        self.errors: List[BlogError] = list(errors)
        if not self.errors:
            raise ValueError("BlogErrors requires at least one error")
        super().__init__("; ".join(str(e) for e in self.errors))

    @classmethod
    def single(cls, kind: ErrorKind, message: str) -> "BlogErrors":
        return cls([BlogError(kind, message)])

    @property
    def kinds(self) -> List[ErrorKind]:
        return [e.kind for e in self.errors]

    @property
    def first_kind(self) -> ErrorKind:
        return self.errors[0].kind

    def messages(self) -> List[str]:
        return [e.message for e in self.errors]


class SchemaError(Exception):
    """Fatal configuration error in category metadata."""


class RecordStoreError(Exception):
    """Base class for record store failures."""


class DuplicateIdError(RecordStoreError):
    def __init__(self, category: str, record_id: str):
        self.category = category
        self.record_id = record_id
        super().__init__(f"object with id {record_id} already exists for {category}")


class RecordNotFoundError(RecordStoreError):
    def __init__(self, category: str, message: str):
        self.category = category
        super().__init__(message)


class BackingStoreError(RecordStoreError):
    """The backing medium itself failed (reported to callers as DB)."""
