"""
FastAPI application serving the remote store.

Usage:
    studysync-server
    uvicorn studysync.api.main:create_app --factory --port 3002
"""

from contextlib import asynccontextmanager

import peewee
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as PydanticValidationError

from studysync import __version__
from studysync.api import db
from studysync.api.error_handlers import (
    database_exception_handler,
    global_exception_handler,
    not_found_exception_handler,
    validation_exception_handler,
)
from studysync.api.exceptions import NotFoundError
from studysync.api.middleware import correlation_id_middleware
from studysync.api.repository import RecordRepository
from studysync.api.routers.records import RESOURCE_REQUESTS, make_router
from studysync.config import load_config
from studysync.core.logging_utils import get_logger, setup_json_logging

logger = get_logger(__name__)

_TABLES: dict[str, type[peewee.Model]] = {
    "documents": db.Document,
    "interviews": db.Interview,
    "questions": db.Question,
    "question_banks": db.QuestionBank,
}


def create_app(db_path: str | None = None) -> FastAPI:
    """Build the app. Tables are created here, before any request is served."""
    if db_path is None:
        db_path = load_config().server.db_path
    database = db.open_database(db_path)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        try:
            yield
        finally:
            database.close()
            logger.info("database_closed")

    app = FastAPI(
        title="StudySync Remote Store",
        description="Shared store for documents, interviews and question banks",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.repositories = {
        resource: RecordRepository(database, model, resource)
        for resource, model in _TABLES.items()
    }

    app.middleware("http")(correlation_id_middleware)

    for resource in RESOURCE_REQUESTS:
        app.include_router(make_router(resource), prefix=f"/api/{resource}", tags=[resource])

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    app.add_exception_handler(NotFoundError, not_found_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(PydanticValidationError, validation_exception_handler)
    app.add_exception_handler(peewee.DatabaseError, database_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    logger.info("remote_store_app_created", extra={"db_path": db_path})
    return app


def main() -> None:
    import uvicorn

    config = load_config()
    setup_json_logging(config.runtime.log_level, json_output=config.runtime.log_json)
    app = create_app(config.server.db_path)
    uvicorn.run(app, host=config.server.host, port=config.server.port, log_config=None)


if __name__ == "__main__":
    main()
