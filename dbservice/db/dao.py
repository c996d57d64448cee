"""Access contract shared by every storage engine.

Both engines run the same precondition pipeline before touching storage, so a
request rejected by one is rejected by the other with the same error type.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from ..utils import validators
from .exceptions import (
    ExtraColumnsInKeyOnlyRequestError,
    InvalidColumnError,
    MissingKeyColumnsError,
    MissingMandatoryColumnsError,
    UnsupportedOperationError,
)
from .models import Row, TableSchema


class AbstractDAO(ABC):
    """Common interface of the in-memory and relational engines."""

    async def open(self) -> None:
        """Acquire whatever resources the engine needs before serving requests."""

    async def close(self) -> None:
        """Release the resources acquired by open()."""

    @abstractmethod
    async def insert(self, schema: TableSchema, row: Row) -> None:
        """
        Inserts a row into a table.
        The row must contain the full key and every mandatory column.
        """

    async def insert_or_update(self, schema: TableSchema, row: Row) -> None:
        """
        Inserts a row, or merges it into the row already stored under its key.
        The row must contain the full key and every mandatory column.
        """
        raise UnsupportedOperationError(
            f"{type(self).__name__} does not support insert_or_update"
        )

    @abstractmethod
    async def update(self, schema: TableSchema, row: Row) -> None:
        """
        Updates an already existing row.
        The row must contain the full key; the columns it carries are merged
        into the stored row.
        """

    @abstractmethod
    async def delete(self, schema: TableSchema, key: Row) -> None:
        """Deletes the row addressed by *key*, which must contain only key columns."""

    @abstractmethod
    async def scan(self, schema: TableSchema) -> List[Row]:
        """Returns every row of a table."""

    @abstractmethod
    async def search(self, schema: TableSchema, row_subset: Row) -> List[Row]:
        """
        Returns the rows whose values match every column of *row_subset*.
        e.g. searching {k1: v1} over [{k1: v1}, {k1: v2}, {k1: v1, k2: v2}]
        yields [{k1: v1}, {k1: v1, k2: v2}]
        """

    # precondition pipeline

    @staticmethod
    def _check_columns(schema: TableSchema, row: Row) -> None:
        invalid = validators.invalid_columns(schema, row)
        if invalid:
            raise InvalidColumnError(schema.name, invalid)

    @staticmethod
    def _check_key(schema: TableSchema, row: Row) -> None:
        missing = validators.missing_key_columns(schema, row)
        if missing:
            raise MissingKeyColumnsError(schema.name, missing)

    @classmethod
    def _check_insert(cls, schema: TableSchema, row: Row) -> None:
        cls._check_columns(schema, row)
        cls._check_key(schema, row)
        missing = validators.missing_mandatory_columns(schema, row)
        if missing:
            raise MissingMandatoryColumnsError(schema.name, missing)

    @classmethod
    def _check_update(cls, schema: TableSchema, row: Row) -> None:
        cls._check_columns(schema, row)
        cls._check_key(schema, row)

    @classmethod
    def _check_delete(cls, schema: TableSchema, key: Row) -> None:
        cls._check_columns(schema, key)
        if validators.exactly_key_columns_contained(schema, key):
            return
        extra = validators.extra_key_only_columns(schema, key)
        if extra:
            raise ExtraColumnsInKeyOnlyRequestError(schema.name, extra)
        cls._check_key(schema, key)

    @classmethod
    def _check_search(cls, schema: TableSchema, row_subset: Row) -> None:
        cls._check_columns(schema, row_subset)
