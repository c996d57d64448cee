"""
HTTP front of the data access layer.

Every table is served on ``/{table_name}`` (case-insensitive):

- GET     -> scan
- POST    -> search (JSON body is the row subset to match)
- PUT     -> insert
- PATCH   -> update
- DELETE  -> delete (JSON body is the key)
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Dict, Iterable, List, Optional

from fastapi import Body, FastAPI, Request
from fastapi.responses import JSONResponse

from ..db.dao import AbstractDAO
from ..db.exceptions import (
    BackendUnavailableError,
    DAOError,
    InvalidRequestError,
    RecordExistsError,
    RecordNotFoundError,
    UnknownTableError,
    UnsupportedOperationError,
)
from ..db.models import Row, Scalar, TableSchema
from ..db.tables import SUPPORTED_TABLES, find_table
from .logging_middleware import LoggingMiddleware

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = [
    (InvalidRequestError, 400),
    (UnknownTableError, 404),
    (RecordNotFoundError, 404),
    (UnsupportedOperationError, 405),
    (RecordExistsError, 409),
    (BackendUnavailableError, 503),
]


def status_for(error: DAOError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 500


def create_app(dao: AbstractDAO, tables: Iterable[TableSchema] = SUPPORTED_TABLES) -> FastAPI:
    """Build the application serving *tables* through *dao*."""
    served = list(tables)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Opening %s", type(dao).__name__)
        await dao.open()
        try:
            yield
        finally:
            logger.info("Closing %s", type(dao).__name__)
            await dao.close()

    app = FastAPI(title="dbservice", lifespan=lifespan)
    app.state.dao = dao
    app.add_middleware(LoggingMiddleware)

    @app.exception_handler(DAOError)
    async def dao_error_handler(request: Request, exc: DAOError) -> JSONResponse:
        status = status_for(exc)
        logger.warning("%s %s failed with %d: %s", request.method, request.url.path, status, exc)
        return JSONResponse(status_code=status, content={"detail": str(exc)})

    @app.get("/{table_name}")
    async def scan(table_name: str) -> List[Row]:
        return await dao.scan(find_table(table_name, served))

    @app.post("/{table_name}")
    async def search(
        table_name: str, row_subset: Optional[Dict[str, Scalar]] = Body(None)
    ) -> List[Row]:
        return await dao.search(find_table(table_name, served), row_subset or {})

    @app.put("/{table_name}")
    async def insert(table_name: str, row: Dict[str, Scalar] = Body(...)) -> str:
        await dao.insert(find_table(table_name, served), row)
        return "success"

    @app.patch("/{table_name}")
    async def update(table_name: str, row: Dict[str, Scalar] = Body(...)) -> str:
        await dao.update(find_table(table_name, served), row)
        return "success"

    @app.delete("/{table_name}")
    async def delete(table_name: str, key: Dict[str, Scalar] = Body(...)) -> str:
        await dao.delete(find_table(table_name, served), key)
        return "success"

    return app
