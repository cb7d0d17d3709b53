"""FastAPI middleware for request processing."""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response

from studysync.core.logging_utils import generate_correlation_id, get_logger

logger = get_logger(__name__)


async def correlation_id_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Attach a correlation ID to the request and echo it in the response headers."""
    correlation_id = request.headers.get("X-Correlation-ID") or generate_correlation_id()
    request.state.correlation_id = correlation_id

    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000

    response.headers["X-Correlation-ID"] = correlation_id
    logger.info(
        "api_request",
        extra={
            "correlation_id": correlation_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round(duration_ms, 2),
        },
    )
    return response
