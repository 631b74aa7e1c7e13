"""
Query engine: filtering, ordering and windowing over a record store.

Criteria are combined with logical AND. Matching mode comes from field
metadata: eq (exact equality), superset (record list holds every requested
token) or le (record value at or before the requested one). Matches are
ordered by creation time, newest first, with id as tiebreak, so paging over
an unchanged data set is stable.
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping

from util.logging import logger

from .config import DEFAULT_COUNT, DEFAULT_INDEX
from .errors import RecordNotFoundError
from .schema import ID_FIELD, Record, SchemaIndex, as_utc
from .store import IRecordStore
from .validator import COUNT_FIELD, INDEX_FIELD

Predicate = Callable[[Record], bool]


def _predicate(name: str, match: str, value: Any) -> Predicate:
    if match == "superset":
        wanted = set(value if isinstance(value, (list, tuple, set)) else [value])
        return lambda r: wanted <= set(r.value_of(name) or ())
    if match == "le":
        limit = as_utc(value)
        return lambda r: r.value_of(name) is not None and as_utc(r.value_of(name)) <= limit
    return lambda r: r.value_of(name) == value


def order_records(records: Iterable[Record]) -> List[Record]:
    """Creation time descending, id ascending among equal creation times."""
    by_id = sorted(records, key=lambda r: r.id)
    return sorted(by_id, key=lambda r: as_utc(r.creation_time), reverse=True)


def _candidates(store: IRecordStore, schema: SchemaIndex, category: str,
                criteria: Mapping[str, Any], modes: Mapping[str, str]) -> Iterable[Record]:
    if ID_FIELD in criteria:
        record = store.lookup_by_id(category, criteria[ID_FIELD])
        return [record] if record else []
    for name in schema.index_hints(category):
        if name in criteria and modes.get(name) == "eq":
            return store.find_by_field(category, name, criteria[name])
    return store.scan(category)


def _describe(criteria: Mapping[str, Any]) -> str:
    parts = []
    for name, value in criteria.items():
        if isinstance(value, (list, tuple)):
            value = ",".join(str(v) for v in value)
        parts.append(f"{name} {value}")
    return " and ".join(parts)


def find(store: IRecordStore, schema: SchemaIndex, category: str,
         spec: Mapping[str, Any] = None, default_count: int = DEFAULT_COUNT) -> List[Record]:
    """Return the window of records in category matching spec.

    Args:
        spec: field criteria plus optional _index (offset) and _count (window size)

    Raises:
        RecordNotFoundError: the window is empty
    """
    criteria: Dict[str, Any] = dict(spec or {})
    index = int(criteria.pop(INDEX_FIELD, DEFAULT_INDEX))
    count = int(criteria.pop(COUNT_FIELD, default_count))

    fields = schema.fields_of(category)
    modes = {name: fields[name].match if name in fields else "eq" for name in criteria}
    predicates = [_predicate(name, modes[name], value) for name, value in criteria.items()]

    matches = [
        record for record in _candidates(store, schema, category, criteria, modes)
        if all(p(record) for p in predicates)
    ]
    window = order_records(matches)[index:index + count]
    logger.log_query(category, criteria, index, count, len(matches))

    if not window:
        if criteria:
            message = f"no {category} for {_describe(criteria)}"
        elif matches:
            message = f"no {category} at index {index}"
        else:
            message = f"no data available for {category}"
        raise RecordNotFoundError(category, message)
    return window
