"""FastAPI middleware for request context and access logging.

Add to the app in this order so the context exists before logging runs
(last added runs first):

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestContextMiddleware)
"""

import json
import time

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from league.core.request_context import generate_request_id, set_request_id

REQUEST_ID_HEADER = "X-Request-ID"

# Max body size to log (in bytes) - avoid logging huge payloads
MAX_BODY_LOG_SIZE = 10000

# Body fields that carry athlete credentials
REDACTED_FIELDS = frozenset({"access_token", "refresh_token"})

QUIET_PATHS = frozenset({"/health"})


def redact(body: object) -> object:
    """Mask credential fields in a parsed JSON body."""
    if isinstance(body, dict):
        return {
            key: "***" if key in REDACTED_FIELDS else redact(value)
            for key, value in body.items()
        }
    if isinstance(body, list):
        return [redact(item) for item in body]
    return body


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Put a request id into context and echo it back to the client.

    A caller-supplied ``X-Request-ID`` is reused so a sync can be traced
    across the client and the server; otherwise a fresh UUID is minted.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        set_request_id(request_id)

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log each request and its outcome with timing.

    Bodies of POST/PUT/PATCH requests are logged with credentials masked.
    Health checks are not logged.
    """

    async def _read_body(self, request: Request) -> object:
        body_bytes = await request.body()
        if len(body_bytes) > MAX_BODY_LOG_SIZE:
            return f"<body too large: {len(body_bytes)} bytes>"
        try:
            return redact(json.loads(body_bytes))
        except json.JSONDecodeError:
            return "<non-JSON body>"

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()

        log_data = {
            "method": request.method,
            "path": request.url.path,
            "query_params": str(request.query_params),
            "client_ip": request.client.host if request.client else None,
        }
        if request.method in ("POST", "PUT", "PATCH"):
            log_data["body"] = await self._read_body(request)

        logger.info("Request started", **log_data)

        response = await call_next(request)

        logger.info(
            "Request completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return response
