"""Errors raised by the data access layer.

Every failure is surfaced to the caller as one of these types; the HTTP layer
maps them onto status codes.
"""

from __future__ import annotations

from typing import Iterable


class DAOError(Exception):
    """Base class for all data access errors."""


class InvalidRequestError(DAOError):
    """A row or key does not satisfy the preconditions of an operation."""

    reason = "your request is invalid"

    def __init__(self, table: str, columns: Iterable[str]):
        self.table = table
        self.columns = list(columns)
        super().__init__(f"{self.reason} in table {table}: {', '.join(self.columns)}")


class InvalidColumnError(InvalidRequestError):
    reason = "your request contains columns that do not exist"


class MissingKeyColumnsError(InvalidRequestError):
    reason = "your request is missing key columns"


class MissingMandatoryColumnsError(InvalidRequestError):
    reason = "your request is missing non-null columns"


class ExtraColumnsInKeyOnlyRequestError(InvalidRequestError):
    reason = "your request contains non-key columns"


class RecordNotFoundError(DAOError):
    def __init__(self, table: str, key: dict):
        self.table = table
        self.key = key
        super().__init__(f"no row with key {key} exists in table {table}")


class RecordExistsError(DAOError):
    def __init__(self, table: str, key: dict):
        self.table = table
        self.key = key
        super().__init__(f"a row with key {key} already exists in table {table}")


class UnknownTableError(DAOError):
    def __init__(self, table: str):
        self.table = table
        super().__init__(f"could not find a table named {table}")


class UnsupportedOperationError(DAOError):
    """The engine does not implement the requested operation."""


class BackendUnavailableError(DAOError):
    """The relational backend failed to execute a statement."""
