import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from structlog.contextvars import bind_contextvars, unbind_contextvars

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag every log line of a request with its id and echo the id back."""

    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        bind_contextvars(request_id=rid)
        try:
            response = await call_next(request)
        finally:
            unbind_contextvars("request_id")
        response.headers[REQUEST_ID_HEADER] = rid
        return response
