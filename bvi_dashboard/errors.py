"""
Exception types raised by the dashboard API.
"""
import functools

import structlog
from fastapi.responses import JSONResponse

log = structlog.get_logger(__name__)

GENERIC_ERROR = "Internal server error"


class DashboardError(Exception):
    """Base class for errors raised by this service"""


class InvalidParameter(DashboardError):
    """A query parameter could not be parsed; surfaced as HTTP 400"""

    def __init__(self, name: str, value):
        super().__init__(f"Invalid {name}: {value!r}")
        self.name = name
        self.value = value


class DatabaseNotConnected(DashboardError):
    """A session was requested while the database is not connected"""


def error_boundary(operation: str, message: str = GENERIC_ERROR):
    """
    Wrap a route handler so any failure is logged and answered with a
    500 carrying only `message`.
    """
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except Exception:
                log.exception("request_failed", operation=operation)
                return JSONResponse(status_code=500, content={"error": message})
        return wrapper
    return decorator
