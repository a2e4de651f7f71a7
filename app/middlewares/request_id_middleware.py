from typing import Callable
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.utils.context import reset_request_id, set_request_id

REQUEST_ID_HEADER = "X-Request-ID"

__all__ = ["RequestIDMiddleware", "REQUEST_ID_HEADER"]


def _incoming_or_new(header_value) -> str:
    """Keep a well-formed UUID sent by the client, otherwise mint one."""
    try:
        return str(uuid.UUID(header_value))
    except (ValueError, TypeError):
        return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tags each request with an ID, echoed back in the X-Request-ID header"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = _incoming_or_new(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        # Loggers created during the request pick the id up from the context var
        token = set_request_id(request_id)
        try:
            response = await call_next(request)
        finally:
            reset_request_id(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
