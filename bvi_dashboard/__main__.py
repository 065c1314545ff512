import os
import sys

import structlog
import uvicorn
from pydantic import ValidationError
from sqlalchemy.exc import ArgumentError

from .db import Database
from .logging_setup import configure_structured_logging
from .main import create_app
from .settings import Settings

log = structlog.get_logger("bvi_dashboard")


def main() -> int:
    configure_structured_logging(os.getenv("SERVICE_NAME", "api"), os.getenv("LOG_LEVEL", "INFO"))

    try:
        settings = Settings()
    except ValidationError as e:
        log.error("missing_configuration", errors=[".".join(map(str, err["loc"])) for err in e.errors()])
        return 1

    try:
        database = Database.from_settings(settings)
    except ArgumentError:
        log.error("invalid_configuration", field="database_url")
        return 1

    try:
        database.connect()
    except Exception:
        log.exception("database_connect_failed", url=database.safe_url)
        return 1

    app = create_app(settings, database)
    log.info("api_startup", host=settings.host, port=settings.port)

    # uvicorn handles SIGINT/SIGTERM; the app lifespan closes the database
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
