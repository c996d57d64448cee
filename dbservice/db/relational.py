"""Relational storage engine.

Translates the access contract into parameterized SQL. Column and table names
come from validated schemas and are interpolated into the statement text;
values only ever travel as positional parameters.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Iterable, List, Optional, Tuple

import aiosqlite

from ..utils.validators import extract_key
from . import connection
from .dao import AbstractDAO
from .exceptions import BackendUnavailableError, RecordNotFoundError
from .models import Request, Row, TableSchema

logger = logging.getLogger(__name__)

Statement = Tuple[str, List[Any]]


def _conjunction(columns: Iterable[str], start: int = 1) -> str:
    return " AND ".join(f"{column} = ${i}" for i, column in enumerate(columns, start))


def build_insert(schema: TableSchema, row: Row) -> Statement:
    columns = ", ".join(row)
    placeholders = ", ".join(f"${i}" for i in range(1, len(row) + 1))
    return f"INSERT INTO {schema.name}({columns}) VALUES ({placeholders});", list(row.values())


def build_update(schema: TableSchema, row: Row, scope_by_key: bool = False) -> Statement:
    """
    Set every supplied column. Unless *scope_by_key* is given the statement
    carries no WHERE clause and applies to the whole table.
    """
    assignments = ", ".join(f"{column} = ${i}" for i, column in enumerate(row, 1))
    parameters = list(row.values())
    if not scope_by_key:
        return f"UPDATE {schema.name} SET {assignments};", parameters
    where = _conjunction(schema.key_columns, start=len(row) + 1)
    parameters.extend(row[column] for column in schema.key_columns)
    return f"UPDATE {schema.name} SET {assignments} WHERE {where};", parameters


def build_delete(schema: TableSchema, key: Row) -> Statement:
    return f"DELETE FROM {schema.name} WHERE {_conjunction(key)};", list(key.values())


def build_scan(schema: TableSchema) -> Statement:
    return f"SELECT * FROM {schema.name};", []


def build_search(schema: TableSchema, row_subset: Row) -> Statement:
    if not row_subset:
        return build_scan(schema)
    return (
        f"SELECT * FROM {schema.name} WHERE {_conjunction(row_subset)};",
        list(row_subset.values()),
    )


async def _acquire_connection(factory: Callable[[], Any]):
    """Obtain a connection context from *factory*, awaiting it if it is a coroutine."""
    ctx = factory()
    if inspect.iscoroutine(ctx):
        return await ctx  # type: ignore[no-any-return]
    return ctx


class SQLDAO(AbstractDAO):
    """
    Runs statements against SQLite, or only records them in rehearsal mode.

    Every statement, executed or not, is appended to ``request_history``.
    """

    def __init__(
        self,
        rehearsal: bool = False,
        tables: Iterable[TableSchema] = (),
        scope_updates_by_key: bool = False,
        connection_factory: Optional[Callable[[], Any]] = None,
    ):
        self.rehearsal = rehearsal
        self.tables = list(tables)
        self.scope_updates_by_key = scope_updates_by_key
        self.request_history: List[Request] = []
        self._connection_factory = connection_factory or connection.get_connection

    async def open(self) -> None:
        if self.rehearsal:
            return
        try:
            ctx = await _acquire_connection(self._connection_factory)
            async with ctx as conn:
                await connection.create_tables(conn, self.tables)
        except aiosqlite.Error as e:
            logger.exception("Failed to create tables: %s", e)
            raise BackendUnavailableError(str(e)) from e

    async def close(self) -> None:
        if self.rehearsal:
            return
        await connection.close_pool()

    def _record(self, statement: str, parameters: List[Any]) -> None:
        self.request_history.append(Request(statement, parameters))
        logger.debug("SQL %s params=%s", statement, parameters)

    async def _execute(self, statement: str, parameters: List[Any]) -> int:
        """Run a mutating statement and return the number of rows it touched."""
        self._record(statement, parameters)
        if self.rehearsal:
            return 0
        try:
            ctx = await _acquire_connection(self._connection_factory)
            async with ctx as conn:
                try:
                    cursor = await conn.execute(connection.to_sqlite_placeholders(statement), parameters)
                    await conn.commit()
                except aiosqlite.Error:
                    await conn.rollback()
                    raise
                return cursor.rowcount
        except aiosqlite.Error as e:
            logger.exception("Failed to execute %s: %s", statement, e)
            raise BackendUnavailableError(str(e)) from e

    async def _query(self, statement: str, parameters: List[Any]) -> List[Row]:
        """
        Run a SELECT. NULL columns are left out of the returned rows, since the
        backend cannot tell a column set to NULL from one never set.
        """
        self._record(statement, parameters)
        if self.rehearsal:
            return []
        try:
            ctx = await _acquire_connection(self._connection_factory)
            async with ctx as conn:
                cursor = await conn.execute(connection.to_sqlite_placeholders(statement), parameters)
                rows = await cursor.fetchall()
                return [
                    {column: value for column, value in dict(row).items() if value is not None}
                    for row in rows
                ]
        except aiosqlite.Error as e:
            logger.exception("Failed to query %s: %s", statement, e)
            raise BackendUnavailableError(str(e)) from e

    async def insert(self, schema: TableSchema, row: Row) -> None:
        self._check_insert(schema, row)
        await self._execute(*build_insert(schema, row))

    async def update(self, schema: TableSchema, row: Row) -> None:
        self._check_update(schema, row)
        touched = await self._execute(
            *build_update(schema, row, scope_by_key=self.scope_updates_by_key)
        )
        if not touched and not self.rehearsal:
            raise RecordNotFoundError(schema.name, extract_key(schema, row))

    async def delete(self, schema: TableSchema, key: Row) -> None:
        self._check_delete(schema, key)
        touched = await self._execute(*build_delete(schema, key))
        if not touched and not self.rehearsal:
            raise RecordNotFoundError(schema.name, extract_key(schema, key))

    async def scan(self, schema: TableSchema) -> List[Row]:
        return await self._query(*build_scan(schema))

    async def search(self, schema: TableSchema, row_subset: Row) -> List[Row]:
        self._check_search(schema, row_subset)
        return await self._query(*build_search(schema, row_subset))
