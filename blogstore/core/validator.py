"""
Field validation for blog operations, driven by category metadata.

validate(category, action, spec) returns a sanitized copy of spec or raises
BlogErrors. An unknown category short-circuits; all field errors of one
call are reported together.
"""

import re
from datetime import datetime
from typing import Annotated, Any, Dict, List, Mapping

from pydantic import NonNegativeInt, PositiveInt, StringConstraints, TypeAdapter, ValidationError

from util.logging import logger

from .errors import BlogError, BlogErrors, ErrorKind
from .meta import ACTIONS
from .schema import FieldSpec, SchemaIndex, as_utc

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

_ADAPTERS = {
    "string": TypeAdapter(NonEmptyStr),
    "strings": TypeAdapter(List[NonEmptyStr]),
    "datetime": TypeAdapter(datetime),
}

INDEX_FIELD = "_index"
COUNT_FIELD = "_count"
PAGING_ADAPTERS = {
    INDEX_FIELD: TypeAdapter(NonNegativeInt),
    COUNT_FIELD: TypeAdapter(PositiveInt),
}

_TOKEN_SEPARATORS = re.compile(r"[,\s]+")


def split_tokens(value: str) -> List[str]:
    """Split a comma or whitespace separated token list."""
    return [token for token in _TOKEN_SEPARATORS.split(value.strip()) if token]


def _first_message(error: ValidationError) -> str:
    details = error.errors()
    return details[0]["msg"] if details else str(error)


class Validator:
    """Checks operation specs against the allowed and required fields of a category."""

    def __init__(self, schema: SchemaIndex):
        self.schema = schema

    def validate(self, category: str, action: str, spec: Mapping[str, Any] = None) -> Dict[str, Any]:
        if action not in ACTIONS:
            raise ValueError(f"unknown action {action}")
        if not self.schema.has_category(category):
            raise BlogErrors.single(ErrorKind.BAD_CATEGORY, f"unknown category {category}")

        spec = spec or {}
        fields = self.schema.fields_of(category)
        errors: List[BlogError] = []
        sanitized: Dict[str, Any] = {}

        for name, value in spec.items():
            if name in PAGING_ADAPTERS:
                if action != "find":
                    errors.append(BlogError(
                        ErrorKind.BAD_FIELD, f"{name} is only allowed for find {category}"))
                    continue
                try:
                    sanitized[name] = PAGING_ADAPTERS[name].validate_python(value)
                except ValidationError as e:
                    errors.append(BlogError(
                        ErrorKind.BAD_FIELD_VALUE, f"bad value {value!r} for {name}: {_first_message(e)}"))
                continue

            field = fields.get(name)
            if field is None:
                errors.append(BlogError(ErrorKind.BAD_FIELD, f"unknown {category} field {name}"))
            elif action in field.forbidden:
                errors.append(BlogError(
                    ErrorKind.BAD_FIELD, f"{category} field {name} forbidden for {action}"))
            else:
                try:
                    sanitized[name] = self._check_value(category, field, value)
                except ValueError as e:
                    errors.append(BlogError(ErrorKind.BAD_FIELD_VALUE, str(e)))

        for name in sorted(self.schema.required_fields(category, action) - set(spec)):
            friendly = fields[name].friendly_name
            errors.append(BlogError(
                ErrorKind.MISSING_FIELD,
                f"missing {friendly} field {name} for {action} {category}"))

        if errors:
            logger.log_rejected(f"validate.{action}", category, errors)
            raise BlogErrors(errors)
        return sanitized

    def _check_value(self, category: str, field: FieldSpec, value: Any) -> Any:
        if field.value_type == "strings" and isinstance(value, str):
            value = split_tokens(value)
        try:
            checked = _ADAPTERS[field.value_type].validate_python(value)
        except ValidationError as e:
            raise ValueError(
                f"bad value {value!r} for {category} field {field.name}: {_first_message(e)}") from None

        if field.value_type == "datetime":
            checked = as_utc(checked)
        if field.choices:
            values = checked if isinstance(checked, list) else [checked]
            bad = [v for v in values if v not in field.choices]
            if bad:
                raise ValueError(
                    f"bad value {', '.join(bad)} for {category} field {field.name}; "
                    f"must be one of {', '.join(field.choices)}")
        return checked
