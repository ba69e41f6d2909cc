"""
Note Taking API — Request ID Middleware
=========================================

What:  Assigns a correlation id to each request, exposes it in the
       X-Request-ID response header, and stamps it on every log record.
Why:   Error responses never carry internal detail; the request id is what
       ties a client-visible 500 to the full stack trace in the server log.
How:   ContextVar set per request, read by the exception handlers and by
       RequestIDLogFilter.
"""

import logging
import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Client-supplied ids end up in log lines; only accept short token-like values
_CLIENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def new_request_id() -> str:
    return uuid.uuid4().hex[:12]


class RequestIDLogFilter(logging.Filter):
    """Adds `request_id` to every record so the log format can print it."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = request_id_var.get("") or "-"
        return True


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Behavior:
        1. Reuse a well-formed X-Request-ID sent by the client
        2. Otherwise generate a new one
        3. Store it in the ContextVar and on request.state
        4. Echo it in the response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        incoming = request.headers.get("X-Request-ID", "")
        rid = incoming if _CLIENT_ID_PATTERN.match(incoming) else new_request_id()

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
