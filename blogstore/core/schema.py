"""
Record and field types plus the schema index derived from category metadata.
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from .errors import SchemaError
from .meta import ACTIONS

# Fields maintained by the system, never stored in Record.fields
ID_FIELD = "id"
CREATION_TIME = "creationTime"
UPDATE_TIME = "updateTime"
SYSTEM_FIELDS = frozenset({ID_FIELD, CREATION_TIME, UPDATE_TIME})

VALUE_TYPES = ("string", "strings", "datetime")
MATCH_MODES = ("eq", "superset", "le")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def next_update_time(previous: datetime, now: Optional[datetime] = None) -> datetime:
    """Return a timestamp strictly after previous, normally the current time."""
    now = now or utcnow()
    floor = as_utc(previous) + timedelta(microseconds=1)
    return now if now >= floor else floor


@dataclass(frozen=True)
class FieldSpec:
    name: str
    friendly_name: str
    forbidden: FrozenSet[str] = frozenset()
    required: FrozenSet[str] = frozenset()
    identifies: Optional[str] = None
    do_index: bool = False
    value_type: str = "string"
    choices: Optional[Tuple[str, ...]] = None
    match: str = "eq"

    @classmethod
    def from_meta(cls, info: Mapping[str, Any]) -> "FieldSpec":
        name = info["name"]
        value_type = info.get("type", "string")
        match = info.get("match", "eq")
        if value_type not in VALUE_TYPES:
            raise SchemaError(f"field {name}: unknown type {value_type}")
        if match not in MATCH_MODES:
            raise SchemaError(f"field {name}: unknown match mode {match}")
        for action in list(info.get("forbidden", [])) + list(info.get("required", [])):
            if action not in ACTIONS:
                raise SchemaError(f"field {name}: unknown action {action}")
        choices = info.get("choices")
        return cls(
            name=name,
            friendly_name=info.get("friendlyName", name),
            forbidden=frozenset(info.get("forbidden", [])),
            required=frozenset(info.get("required", [])),
            identifies=info.get("identifies"),
            do_index=bool(info.get("doIndex", False)),
            value_type=value_type,
            choices=tuple(choices) if choices else None,
            match=match,
        )

    def to_meta(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "name": self.name,
            "friendlyName": self.friendly_name,
            "forbidden": sorted(self.forbidden),
            "required": sorted(self.required),
            "type": self.value_type,
        }
        if self.identifies:
            info["identifies"] = self.identifies
        if self.do_index:
            info["doIndex"] = True
        if self.choices:
            info["choices"] = list(self.choices)
        if self.match != "eq":
            info["match"] = self.match
        return info


@dataclass
class Record:
    """A stored item. Stores hand out copies, never the stored instance."""

    id: str
    fields: Dict[str, Any]
    creation_time: datetime
    update_time: datetime

    def copy(self) -> "Record":
        return Record(
            id=self.id,
            fields=copy.deepcopy(self.fields),
            creation_time=self.creation_time,
            update_time=self.update_time,
        )

    def value_of(self, name: str) -> Any:
        if name == ID_FIELD:
            return self.id
        if name == CREATION_TIME:
            return self.creation_time
        if name == UPDATE_TIME:
            return self.update_time
        return self.fields.get(name)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {ID_FIELD: self.id}
        data.update(copy.deepcopy(self.fields))
        data[CREATION_TIME] = self.creation_time.isoformat()
        data[UPDATE_TIME] = self.update_time.isoformat()
        return data


@dataclass
class CategoryInfo:
    name: str
    fields: Dict[str, FieldSpec]
    identifies: Dict[str, str] = field(default_factory=dict)
    identified_by: List[Tuple[str, str]] = field(default_factory=list)


class SchemaIndex:
    """Forward and reverse reference graph derived once from metadata."""

    def __init__(self, meta: Mapping[str, List[Mapping[str, Any]]]):
        infos: Dict[str, CategoryInfo] = {}
        for category, field_infos in meta.items():
            fields: Dict[str, FieldSpec] = {}
            for info in field_infos:
                spec = FieldSpec.from_meta(info)
                if spec.name in fields:
                    raise SchemaError(f"duplicate field {spec.name} in {category}")
                fields[spec.name] = spec
            if ID_FIELD not in fields:
                raise SchemaError(f"category {category} has no {ID_FIELD} field")
            id_spec = fields[ID_FIELD]
            if "create" not in id_spec.forbidden | id_spec.required:
                raise SchemaError(
                    f"{ID_FIELD} of {category} must be forbidden or required for create"
                )
            identifies = {f.name: f.identifies for f in fields.values() if f.identifies}
            infos[category] = CategoryInfo(name=category, fields=fields, identifies=identifies)

        for category, info in infos.items():
            for field_name, target in info.identifies.items():
                if target not in infos:
                    raise SchemaError(
                        f"field {field_name} of {category} identifies unknown category {target}"
                    )
                infos[target].identified_by.append((category, field_name))

        self._infos = infos

    @property
    def categories(self) -> Tuple[str, ...]:
        return tuple(self._infos)

    def has_category(self, category: str) -> bool:
        return category in self._infos

    def _info(self, category: str) -> CategoryInfo:
        try:
            return self._infos[category]
        except KeyError:
            raise SchemaError(f"unknown category {category}") from None

    def fields_of(self, category: str) -> Dict[str, FieldSpec]:
        return dict(self._info(category).fields)

    def identifies_of(self, category: str) -> Dict[str, str]:
        return dict(self._info(category).identifies)

    def identified_by_of(self, category: str) -> List[Tuple[str, str]]:
        return list(self._info(category).identified_by)

    def allowed_fields(self, category: str, action: str) -> FrozenSet[str]:
        return frozenset(
            name for name, spec in self._info(category).fields.items()
            if action not in spec.forbidden
        )

    def required_fields(self, category: str, action: str) -> FrozenSet[str]:
        return frozenset(
            name for name, spec in self._info(category).fields.items()
            if action in spec.required
        )

    def index_hints(self, category: str) -> List[str]:
        return [
            name for name, spec in self._info(category).fields.items()
            if spec.do_index and name not in SYSTEM_FIELDS
        ]

    def is_derived(self, category: str) -> bool:
        """Derived categories get system generated ids."""
        return "create" in self._info(category).fields[ID_FIELD].forbidden

    def describe(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            category: [spec.to_meta() for spec in info.fields.values()]
            for category, info in self._infos.items()
        }
