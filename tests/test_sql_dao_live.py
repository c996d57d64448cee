"""Relational engine against a live in-memory SQLite database."""

from unittest.mock import patch

import pytest

from dbservice.db import connection
from dbservice.db.exceptions import (
    BackendUnavailableError,
    ExtraColumnsInKeyOnlyRequestError,
    RecordNotFoundError,
)
from dbservice.db.models import TableSchema
from dbservice.db.relational import SQLDAO

pytestmark = pytest.mark.asyncio

ROW_1 = {"key1": "value1", "key2": "value2", "key3": "value3"}
ROW_2 = {"key1": "value1", "key2": "value3", "key3": "value4"}


async def test_insert_scan_search(sqlite_dao, example_table):
    await sqlite_dao.insert(example_table, dict(ROW_1))
    await sqlite_dao.insert(example_table, dict(ROW_2))

    scanned = await sqlite_dao.scan(example_table)
    assert sorted(scanned, key=lambda r: r["key2"]) == [ROW_1, ROW_2]

    found = await sqlite_dao.search(example_table, {"key1": "value1", "key2": "value3"})
    assert found == [ROW_2]
    assert len(sqlite_dao.request_history) == 4


async def test_reads_omit_null_columns_and_return_booleans_as_ints(sqlite_dao, example_table):
    await sqlite_dao.insert(example_table, {"key1": "a", "key2": "b", "key3": True})
    await sqlite_dao.insert(example_table, {"key1": "a", "key2": "c", "key3": False, "key4": None})

    scanned = await sqlite_dao.scan(example_table)
    assert sorted(scanned, key=lambda r: r["key2"]) == [
        {"key1": "a", "key2": "b", "key3": 1},
        {"key1": "a", "key2": "c", "key3": 0},
    ]
    assert await sqlite_dao.search(example_table, {"key3": True}) == [
        {"key1": "a", "key2": "b", "key3": 1}
    ]


async def test_scoped_update_and_delete(scoped_sqlite_dao, example_table):
    dao = scoped_sqlite_dao
    await dao.insert(example_table, dict(ROW_1))
    await dao.insert(example_table, dict(ROW_2))

    await dao.update(example_table, {"key1": "value1", "key2": "value2", "key4": "value4"})
    found = await dao.search(example_table, {"key1": "value1", "key2": "value2"})
    assert found == [{**ROW_1, "key4": "value4"}]
    untouched = await dao.search(example_table, {"key2": "value3"})
    assert untouched == [ROW_2]

    await dao.delete(example_table, {"key1": "value1", "key2": "value2"})
    assert await dao.scan(example_table) == [ROW_2]


async def test_unscoped_update_applies_to_single_row_table(sqlite_dao, example_table):
    await sqlite_dao.insert(example_table, dict(ROW_1))
    await sqlite_dao.update(example_table, {"key1": "value1", "key2": "value2", "key4": 2})
    assert await sqlite_dao.scan(example_table) == [{**ROW_1, "key4": 2}]


async def test_unscoped_update_touches_every_row(sqlite_dao, example_table):
    """Without a WHERE clause the key assignment collides across rows."""
    await sqlite_dao.insert(example_table, dict(ROW_1))
    await sqlite_dao.insert(example_table, dict(ROW_2))
    with pytest.raises(BackendUnavailableError):
        await sqlite_dao.update(example_table, {"key1": "value1", "key2": "value2", "key4": 2})
    scanned = await sqlite_dao.scan(example_table)
    assert sorted(scanned, key=lambda r: r["key2"]) == [ROW_1, ROW_2]


async def test_missing_records(scoped_sqlite_dao, example_table):
    with pytest.raises(RecordNotFoundError):
        await scoped_sqlite_dao.update(example_table, {"key1": "a", "key2": "b", "key4": 1})
    with pytest.raises(RecordNotFoundError):
        await scoped_sqlite_dao.delete(example_table, {"key1": "a", "key2": "b"})


async def test_delete_with_extra_columns_leaves_storage_alone(sqlite_dao, example_table):
    await sqlite_dao.insert(example_table, dict(ROW_1))
    with pytest.raises(ExtraColumnsInKeyOnlyRequestError):
        await sqlite_dao.delete(example_table, dict(ROW_1))
    assert await sqlite_dao.scan(example_table) == [ROW_1]


async def test_duplicate_insert_is_surfaced(sqlite_dao, example_table):
    await sqlite_dao.insert(example_table, dict(ROW_1))
    with pytest.raises(BackendUnavailableError):
        await sqlite_dao.insert(example_table, dict(ROW_1))


async def test_unknown_table_is_surfaced(sqlite_dao):
    other = TableSchema(name="NOT_CREATED", columns=("id",), key_columns=("id",))
    with pytest.raises(BackendUnavailableError, match="no such table"):
        await sqlite_dao.scan(other)


async def test_connection_factory_failure_is_surfaced(example_table):
    async def broken_factory():
        raise BackendUnavailableError("Database connection timeout")

    dao = SQLDAO(connection_factory=broken_factory)
    with pytest.raises(BackendUnavailableError, match="timeout"):
        await dao.scan(example_table)
    assert dao.request_history == [("SELECT * FROM EXAMPLE;", [])]


async def test_close_resets_pool(example_table):
    with patch.object(connection, "DATABASE_PATH", ":memory:"):
        dao = SQLDAO(tables=[example_table])
        await dao.open()
        assert connection._pool_initialized
        await dao.close()
        assert connection._pool is None
        assert not connection._pool_initialized
