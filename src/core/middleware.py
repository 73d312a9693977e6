"""
FastAPI middleware for request tracing and logging.

Every request gets a short request_id (or keeps the caller's
X-Request-ID), bound into the structlog context so engine logs for
the same search can be correlated.
"""

import time
import uuid
from typing import Any, Callable, Dict, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from core.logging import bind_context, clear_context, get_logger


logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# filters is free-form JSON; keep log lines bounded
_MAX_PARAM_LENGTH = 200


def _loggable_params(request: Request) -> Optional[Dict[str, Any]]:
    if not request.query_params:
        return None
    return {
        key: value if len(value) <= _MAX_PARAM_LENGTH else value[:_MAX_PARAM_LENGTH] + "..."
        for key, value in request.query_params.items()
    }


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """
    Binds request_id/method/path, logs one line per request outcome and
    returns the request id in X-Request-ID.

    Server errors are logged at error level, client errors (405 on
    /api/search, unknown paths) at warning, everything else at info.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        bind_context(request_id=request_id, method=request.method, path=request.url.path)

        started = time.perf_counter()
        logger.debug("Request started", query_params=_loggable_params(request))

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            clear_context()
            raise

        status = response.status_code
        log = logger.error if status >= 500 else logger.warning if status >= 400 else logger.info
        log(
            "Request completed",
            status_code=status,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            query_params=_loggable_params(request),
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        clear_context()
        return response
