"""Exception handlers for the remote store API.

Every error body is a JSON object with an ``error`` message.
"""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError as PydanticValidationError

from studysync.api.exceptions import NotFoundError

logger = logging.getLogger(__name__)


def _correlation_id(request: Request) -> str | None:
    return getattr(request.state, "correlation_id", None)


async def not_found_exception_handler(request: Request, exc: Exception) -> Response:
    if not isinstance(exc, NotFoundError):
        raise exc
    logger.info(
        "api_record_not_found",
        extra={
            "correlation_id": _correlation_id(request),
            "resource": exc.resource,
            "record_id": exc.record_id,
        },
    )
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": str(exc)})


async def validation_exception_handler(request: Request, exc: Exception) -> Response:
    if not isinstance(exc, RequestValidationError | PydanticValidationError):
        raise exc

    formatted_errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning(
        "api_request_validation_failed",
        extra={
            "correlation_id": _correlation_id(request),
            "errors": formatted_errors,
            "path": request.url.path,
        },
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "Request validation failed", "fields": formatted_errors},
    )


async def database_exception_handler(request: Request, exc: Exception) -> Response:
    logger.error(
        "api_database_error",
        exc_info=exc,
        extra={"correlation_id": _correlation_id(request), "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


async def global_exception_handler(request: Request, exc: Exception) -> Response:
    logger.error(
        "api_unhandled_exception",
        exc_info=exc,
        extra={"correlation_id": _correlation_id(request), "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )
