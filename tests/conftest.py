"""
This file contains shared fixtures for the test suite.
"""

import os
from unittest.mock import patch

import pytest
import pytest_asyncio

# Set env vars before any application modules are imported
os.environ.setdefault("TEST_MODE", "1")
os.environ.setdefault("DATABASE_PATH", ":memory:")

from dbservice.db import connection
from dbservice.db.memory import InMemDAO
from dbservice.db.models import TableSchema
from dbservice.db.relational import SQLDAO


EXAMPLE_TABLE = TableSchema(
    name="EXAMPLE",
    key_columns=("key1", "key2"),
    mandatory_columns=("key1", "key2", "key3"),
    columns=("key1", "key2", "key3", "key4"),
)


@pytest.fixture
def example_table() -> TableSchema:
    return EXAMPLE_TABLE


@pytest.fixture
def mem_dao(example_table) -> InMemDAO:
    return InMemDAO([example_table])


@pytest.fixture
def rehearsal_dao() -> SQLDAO:
    return SQLDAO(rehearsal=True)


@pytest.fixture(autouse=True)
def reset_db_connection_pool():
    """
    Reset the SQLite connection pool between tests to ensure isolation.
    """
    setattr(connection, "_pool_initialized", False)
    setattr(connection, "_pool", None)
    yield
    setattr(connection, "_pool_initialized", False)
    setattr(connection, "_pool", None)


@pytest_asyncio.fixture
async def sqlite_dao(example_table):
    """Live relational engine over a fresh in-memory SQLite database."""
    with patch.object(connection, "DATABASE_PATH", ":memory:"):
        dao = SQLDAO(tables=[example_table])
        await dao.open()
        yield dao
        await dao.close()


@pytest_asyncio.fixture
async def scoped_sqlite_dao(example_table):
    """Live relational engine whose updates only touch the addressed row."""
    with patch.object(connection, "DATABASE_PATH", ":memory:"):
        dao = SQLDAO(tables=[example_table], scope_updates_by_key=True)
        await dao.open()
        yield dao
        await dao.close()
