"""Validation helpers applied to rows before any storage engine touches them."""

from __future__ import annotations

import json
from typing import List, Mapping

from ..db.models import Row, TableSchema


def invalid_columns(schema: TableSchema, row: Mapping) -> List[str]:
    """Return the columns of *row* the schema does not know about."""
    return [column for column in row if column not in schema.columns]


def missing_key_columns(schema: TableSchema, row: Mapping) -> List[str]:
    return [column for column in schema.key_columns if column not in row]


def missing_mandatory_columns(schema: TableSchema, row: Mapping) -> List[str]:
    return [column for column in schema.mandatory_columns if column not in row]


def extra_key_only_columns(schema: TableSchema, row: Mapping) -> List[str]:
    """Return the columns of *row* that are not key columns."""
    return [column for column in row if column not in schema.key_columns]


def contains_only_valid_columns(schema: TableSchema, row: Mapping) -> bool:
    return not invalid_columns(schema, row)


def key_columns_contained(schema: TableSchema, row: Mapping) -> bool:
    """
    Checks that every key column is present in *row*.
    A key column mapped to None still counts as present.
    """
    return not missing_key_columns(schema, row)


def exactly_key_columns_contained(schema: TableSchema, row: Mapping) -> bool:
    return not extra_key_only_columns(schema, row) and key_columns_contained(schema, row)


def mandatory_columns_contained(schema: TableSchema, row: Mapping) -> bool:
    return not missing_mandatory_columns(schema, row)


def extract_key(schema: TableSchema, row: Mapping) -> Row:
    """
    Project *row* onto the key columns of *schema*.
    The caller must have checked key_columns_contained first.
    """
    return {column: row[column] for column in schema.key_columns}


def _canonical_value(value):
    # 1 and 1.0 address the same record
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def serialize_key(schema: TableSchema, row: Mapping) -> str:
    """Canonical string address of the record *row* refers to."""
    key = {column: _canonical_value(value) for column, value in extract_key(schema, row).items()}
    return json.dumps(key, separators=(",", ":"))
