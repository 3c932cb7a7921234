"""Request ID middleware — one ID per HTTP request for log correlation.

Learn: The ID comes from an incoming X-Request-ID header (so a gateway's
trace ID carries through) or is generated. It is bound into structlog's
contextvars, so every router/persistence log line for the request carries
it, and echoed back in the response header.

WebSocket traffic does not pass through here; the WebSocket handler binds
its own connection_id instead.
"""

import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Attach a request ID to logs and responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=request.url.path,
        )

        response: Response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
