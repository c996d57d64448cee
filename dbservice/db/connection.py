"""Async SQLite connection pool backing the relational engine.

Wraps `aiosqlite` connections in a fixed-size queue, creates the served tables
on demand, and exposes scoped acquire/release via `get_connection`.
"""

from __future__ import annotations

import os
import asyncio
import re
import time
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable

import aiosqlite

from .exceptions import BackendUnavailableError
from .models import TableSchema

DATABASE_PATH = os.getenv("DATABASE_PATH", "dbservice.db")
POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))
POOL_TIMEOUT = float(os.getenv("DB_POOL_TIMEOUT", "30"))  # seconds

_PLACEHOLDER_RE = re.compile(r"\$(\d+)")

logger = logging.getLogger(__name__)

_pool: asyncio.Queue[aiosqlite.Connection] | None = None
_pool_lock = asyncio.Lock()
_pool_initialized = False


def to_sqlite_placeholders(statement: str) -> str:
    """Rewrite `$1`-style ordinals into SQLite's numbered `?1` parameters."""
    return _PLACEHOLDER_RE.sub(r"?\1", statement)


def create_table_statement(schema: TableSchema) -> str:
    """Build the DDL for *schema*; mandatory columns become NOT NULL."""
    column_defs = [
        f"{column} NOT NULL" if column in schema.mandatory_columns else column
        for column in schema.columns
    ]
    column_defs.append(f"PRIMARY KEY ({', '.join(schema.key_columns)})")
    return f"CREATE TABLE IF NOT EXISTS {schema.name} ({', '.join(column_defs)});"


async def create_tables(conn: aiosqlite.Connection, tables: Iterable[TableSchema]) -> None:
    for schema in tables:
        await conn.execute(create_table_statement(schema))
        logger.debug("Ensured table %s exists", schema.name)
    await conn.commit()


async def _open_connection() -> aiosqlite.Connection:
    conn = await aiosqlite.connect(
        DATABASE_PATH,
        timeout=POOL_TIMEOUT,
        cached_statements=128,
    )
    conn.row_factory = aiosqlite.Row
    return conn


async def _initialize_pool() -> None:
    """Create and populate the connection pool."""
    global _pool, _pool_initialized

    # ":memory:" opens a new isolated database per connection, so the pool
    # hands out one shared connection for every acquire.
    if DATABASE_PATH == ":memory:":
        conn = await _open_connection()
        _pool = asyncio.Queue(maxsize=POOL_SIZE)
        for _ in range(POOL_SIZE):
            await _pool.put(conn)
        _pool_initialized = True
        logger.info(
            "Database connection pool initialized with a shared in-memory connection (capacity: %d)",
            POOL_SIZE,
        )
        return

    q: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue(maxsize=POOL_SIZE)
    for i in range(POOL_SIZE):
        try:
            conn = await _open_connection()
            await q.put(conn)
            logger.debug("Opened connection %d/%d", i + 1, POOL_SIZE)
        except aiosqlite.Error as e:
            logger.exception("Error opening database connection [%d]: %s", i + 1, e)
            raise BackendUnavailableError(f"could not open {DATABASE_PATH}: {e}") from e
    _pool = q
    _pool_initialized = True
    logger.info("Database connection pool initialized with size %d", POOL_SIZE)


async def init_pool() -> None:
    global _pool_initialized

    if not _pool_initialized:
        async with _pool_lock:
            if not _pool_initialized:
                logger.info("Initializing database connection pool")
                await _initialize_pool()


@asynccontextmanager
async def get_connection() -> AsyncIterator[aiosqlite.Connection]:
    """
    Acquire a database connection from the pool.

    Usage:
        async with get_connection() as conn:
            await conn.execute(...)
            await conn.commit()
    """
    await init_pool()

    if _pool is None:
        raise BackendUnavailableError("Connection pool is not initialized")
    try:
        conn = await asyncio.wait_for(_pool.get(), timeout=POOL_TIMEOUT)
        logger.debug("Acquired database connection from pool")
    except asyncio.TimeoutError:
        logger.error("Timed out waiting for database connection")
        raise BackendUnavailableError("Database connection timeout")

    # Connection validation: recreate if invalid
    try:
        await conn.execute("SELECT 1;")
    except (aiosqlite.Error, ValueError) as e:
        logger.warning("Database connection is invalid, recreating new connection: %s", e)
        try:
            conn = await _open_connection()
        except aiosqlite.Error as ex:
            await _pool.put(conn)
            logger.error("Failed to recreate database connection: %s", ex)
            raise BackendUnavailableError(f"could not reopen {DATABASE_PATH}: {ex}") from ex

    start_time = time.monotonic()
    try:
        yield conn
    finally:
        elapsed = time.monotonic() - start_time
        logger.debug("Database connection held for %.3f seconds", elapsed)
        _pool.put_nowait(conn)
        logger.debug("Returned database connection to pool")


async def close_pool() -> None:
    """Close all connections in the pool and reset its state."""
    global _pool, _pool_initialized

    if _pool is None:
        return

    closed = set()
    while not _pool.empty():
        conn = await _pool.get()
        if id(conn) in closed:
            continue
        try:
            await conn.close()
        except aiosqlite.Error as exc:  # pragma: no cover - cleanup best effort
            logger.warning("Error closing DB connection: %s", exc)
        closed.add(id(conn))

    _pool = None
    _pool_initialized = False
    logger.info("Database connection pool closed")
