import time
from collections.abc import Awaitable, Callable
from uuid import uuid4

import structlog
from fastapi import Request, Response

from .logging_utils import log_api_request

REQUEST_ID_HEADER = "X-Request-ID"


async def log_requests_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Log every HTTP request with its processing time.

    Store events logged while the request runs carry its request id, method
    and path through structlog's context variables.
    """
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex[:12]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id, method=request.method, path=request.url.path
    )
    start_time = time.perf_counter()

    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()

    process_time = (time.perf_counter() - start_time) * 1000

    log_api_request(
        request=request,
        response_status=response.status_code,
        process_time_ms=process_time,
    )

    response.headers[REQUEST_ID_HEADER] = request_id
    return response
