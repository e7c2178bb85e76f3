"""HTTP middleware for TaskVault."""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from .context import REQUEST_ID_HEADER, request_id_bound, resolve_request_id


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Give every request an id, expose it on ``request.state`` and echo it back.

    Error handlers read ``request.state.request_id`` to put the id into the
    error envelope. Log records pick it up from the bound context.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        with request_id_bound(request_id):
            response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


__all__ = ["CorrelationIdMiddleware"]
