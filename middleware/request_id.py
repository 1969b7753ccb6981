"""
Request ID middleware.

Every request gets an id (the client's X-Request-ID if it sent one),
which is echoed back in the response and stamped on every log record
emitted while the request is being handled.
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Optional
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def _install_record_factory() -> None:
    base_factory = logging.getLogRecordFactory()
    if getattr(base_factory, "_adds_request_id", False):
        return

    def record_factory(*args, **kwargs):
        record = base_factory(*args, **kwargs)
        request_id = _request_id.get()
        # outside a request, leave room for an explicit extra={"request_id": ...}
        if request_id is not None:
            record.request_id = request_id
        return record

    record_factory._adds_request_id = True
    logging.setLogRecordFactory(record_factory)


_install_record_factory()


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        context_token = _request_id.set(request_id)
        try:
            response: Response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            _request_id.reset(context_token)


def get_request_id(request: Request) -> str:
    """Request id stored by RequestIDMiddleware, or "no-request-id"."""
    return getattr(request.state, "request_id", "no-request-id")
