import logging
import sys

import uvicorn

from dbservice.api.server import create_app
from dbservice.config import AppSettings, get_settings
from dbservice.db import connection
from dbservice.db.dao import AbstractDAO
from dbservice.db.memory import InMemDAO
from dbservice.db.relational import SQLDAO
from dbservice.db.tables import SUPPORTED_TABLES


def build_dao(settings: AppSettings) -> AbstractDAO:
    """Construct the storage engine selected in the settings."""
    if settings.db.engine == "memory":
        return InMemDAO(SUPPORTED_TABLES, strict_inserts=settings.db.strict_inserts)
    connection.DATABASE_PATH = settings.db.path
    return SQLDAO(
        rehearsal=settings.db.rehearsal,
        tables=SUPPORTED_TABLES,
        scope_updates_by_key=settings.db.scope_updates_by_key,
    )


def main():
    """The main function that starts the server."""
    settings = get_settings()

    logging.basicConfig(
        level=settings.log_level_value,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )
    logger = logging.getLogger(__name__)

    app = create_app(build_dao(settings))

    logger.info("Starting server on %s:%d", settings.server.host, settings.server.port)
    uvicorn.run(app, host=settings.server.host, port=settings.server.port, log_config=None)


if __name__ == "__main__":
    try:
        main()
    except (KeyboardInterrupt, SystemExit):
        logging.info("Server stopped.")
