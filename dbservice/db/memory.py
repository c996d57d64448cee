"""Volatile storage engine keeping every table in process memory."""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List

from ..utils.validators import extract_key, serialize_key
from .dao import AbstractDAO
from .exceptions import RecordExistsError, RecordNotFoundError, UnknownTableError
from .models import Row, Scalar, TableSchema

logger = logging.getLogger(__name__)

_DECIMAL_RE = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")


def _loosely_equal(stored: Scalar, wanted: Scalar) -> bool:
    """Equality used by search: numeric strings match the numbers they spell."""
    if stored == wanted:
        return True
    if isinstance(stored, bool) or isinstance(wanted, bool):
        return False
    if isinstance(stored, str) and isinstance(wanted, (int, float)):
        stored, wanted = wanted, stored
    if isinstance(stored, (int, float)) and isinstance(wanted, str):
        return bool(_DECIMAL_RE.fullmatch(wanted)) and stored == float(wanted)
    return False


class InMemDAO(AbstractDAO):
    """
    Keeps a nested mapping table name -> serialized key -> row.

    Rows are copied on the way in and on the way out so callers never hold a
    reference into the store.
    """

    def __init__(self, tables: Iterable[TableSchema], strict_inserts: bool = False):
        self.strict_inserts = strict_inserts
        self.database: Dict[str, Dict[str, Row]] = {table.name: {} for table in tables}

    def _table(self, schema: TableSchema) -> Dict[str, Row]:
        try:
            return self.database[schema.name]
        except KeyError:
            raise UnknownTableError(schema.name) from None

    async def insert(self, schema: TableSchema, row: Row) -> None:
        self._check_insert(schema, row)
        table = self._table(schema)
        address = serialize_key(schema, row)
        if self.strict_inserts and address in table:
            raise RecordExistsError(schema.name, extract_key(schema, row))
        table[address] = dict(row)
        logger.debug("Inserted row %s into %s", address, schema.name)

    async def insert_or_update(self, schema: TableSchema, row: Row) -> None:
        self._check_insert(schema, row)
        table = self._table(schema)
        address = serialize_key(schema, row)
        current = dict(table.get(address, {}))
        current.update(row)
        table[address] = current
        logger.debug("Upserted row %s into %s", address, schema.name)

    async def update(self, schema: TableSchema, row: Row) -> None:
        self._check_update(schema, row)
        table = self._table(schema)
        address = serialize_key(schema, row)
        if address not in table:
            raise RecordNotFoundError(schema.name, extract_key(schema, row))
        current = dict(table[address])
        current.update(row)
        table[address] = current
        logger.debug("Updated row %s in %s", address, schema.name)

    async def delete(self, schema: TableSchema, key: Row) -> None:
        self._check_delete(schema, key)
        table = self._table(schema)
        address = serialize_key(schema, key)
        if address not in table:
            raise RecordNotFoundError(schema.name, extract_key(schema, key))
        del table[address]
        logger.debug("Deleted row %s from %s", address, schema.name)

    async def scan(self, schema: TableSchema) -> List[Row]:
        return [dict(row) for row in self._table(schema).values()]

    async def search(self, schema: TableSchema, row_subset: Row) -> List[Row]:
        self._check_search(schema, row_subset)
        result = []
        for row in self._table(schema).values():
            if all(
                column in row and _loosely_equal(row[column], value)
                for column, value in row_subset.items()
            ):
                result.append(dict(row))
        return result
