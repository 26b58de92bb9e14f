"""
HTTP request logging middleware.

Logs every request with method, path, status code, and duration. Requests
addressed to a swap session carry its id in the log context.
"""

import time
import uuid
from typing import Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.stdlib.get_logger("http")

SESSIONS_PREFIX = "/sessions/"


def session_id_from_path(path: str) -> Optional[str]:
    """Return the session id from a `/sessions/{id}/...` path, if any."""
    if not path.startswith(SESSIONS_PREFIX):
        return None
    session_id = path[len(SESSIONS_PREFIX):].split("/", 1)[0]
    return session_id or None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log HTTP requests with timing and status info."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("x-request-id", str(uuid.uuid4())[:8])

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        session_id = session_id_from_path(request.url.path)
        if session_id is not None:
            structlog.contextvars.bind_contextvars(session_id=session_id)

        start = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["x-request-id"] = request_id
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 1)

            if status_code >= 500:
                log = logger.error
            elif status_code >= 400:
                log = logger.warning
            else:
                log = logger.info

            log(
                "http_request",
                method=request.method,
                path=request.url.path,
                status=status_code,
                duration_ms=duration_ms,
            )
