from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Sequence

from sqlsynth.errors import InvalidClauseInput, MissingRequiredColumn
from sqlsynth.values import (
    RawExpression,
    as_rows,
    is_multi_row,
    is_structured_type,
    to_host,
    to_param,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableSchema:
    """
    Column type tags plus the columns every inserted record must carry.

    Type tags are "boolean", a structured tag ("json"), or any other SQL type,
    which passes through untouched.
    """
    types: Mapping[str, str] = field(default_factory=dict)
    required: tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TableSchema:
        """
        Accepts {"types": {...}, "required": [...]}; "req" is an alias of "required".
        """
        required = data.get("required", data.get("req")) or ()
        if isinstance(required, str):
            required = (required,)
        return cls(types=dict(data.get("types") or {}), required=tuple(required))

    @classmethod
    def from_columns(cls, columns: Mapping[str, Any]) -> TableSchema:
        """
        Derive a schema from CREATE TABLE column definitions.

        A column is required when flagged `required`, or when it is declared not
        nullable without a default and is not the primary key.
        """
        types: dict[str, str] = {}
        required: list[str] = []
        for name, spec in columns.items():
            if spec is True:
                types[name] = "integer"
                continue
            if isinstance(spec, str):
                types[name] = spec
                continue
            if not isinstance(spec, Mapping):
                continue
            if spec.get("type"):
                types[name] = str(spec["type"])
            if spec.get("required", False):
                required.append(name)
            elif (
                spec.get("nullable", True) is False
                and spec.get("default") is None
                and not spec.get("pk", False)
            ):
                required.append(name)
        return cls(types=types, required=tuple(required))

    def type_of(self, column: str) -> str | None:
        tag = self.types.get(column)
        return str(tag).lower() if tag is not None else None


def _coerce_schema(schema: TableSchema | Mapping | None) -> TableSchema:
    if schema is None:
        return TableSchema()
    if isinstance(schema, TableSchema):
        return schema
    # A plain mapping is always {column: type}; use TableSchema.from_mapping for the
    # {"types": ..., "required": ...} form.
    return TableSchema(types=dict(schema))


def pre_insert(rows: Mapping | Sequence[Mapping], schema: TableSchema | Mapping | None) -> list[dict]:
    """
    Validate and coerce records before they are bound to an insert.

    Returns new dicts; the input records are left untouched. Raises
    MissingRequiredColumn for the first required column that is absent or None.
    """
    if rows is None:
        raise InvalidClauseInput("insert requires values.")
    schema = _coerce_schema(schema)
    prepared: list[dict] = []
    for row in as_rows(rows):
        for key in schema.required:
            if row.get(key) is None:
                raise MissingRequiredColumn(key)

        out = {}
        for key, value in row.items():
            if isinstance(value, RawExpression):
                out[key] = value
            elif is_structured_type(schema.type_of(key)) and value is not None:
                out[key] = json.dumps(value)
            else:
                out[key] = to_param(value)
        prepared.append(out)

    logger.debug("Prepared %d row(s) for insert", len(prepared))
    return prepared


def post_select(rows: Mapping | Sequence[Mapping], schema: TableSchema | Mapping | None) -> dict | list[dict]:
    """
    Convert rows read back from the database into host values.

    A single row in gives a single dict back; a sequence gives a list of the same length.
    """
    schema = _coerce_schema(schema)
    converted = [
        {key: to_host(value, schema.type_of(key)) for key, value in row.items()}
        for row in as_rows(rows)
    ]
    if is_multi_row(rows) or not isinstance(rows, Mapping):
        return converted
    return converted[0]
