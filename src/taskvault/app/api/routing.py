"""Route classes applying transport-level limits."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from fastapi import HTTPException, Request, Response, status
from fastapi.routing import APIRoute
from starlette.types import Message, Receive

logger = logging.getLogger(__name__)

MULTIPART_CONTENT_TYPE = "multipart/form-data"


def _payload_too_large(limit: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        detail=f"Request body exceeds {limit} bytes.",
    )


def _declared_length(request: Request) -> int | None:
    raw = request.headers.get("content-length")
    if raw is None or not raw.strip().isdigit():
        return None
    return int(raw)


def _limited_receive(receive: Receive, limit: int) -> Receive:
    received = 0

    async def receive_with_limit() -> Message:
        nonlocal received
        message = await receive()
        if message["type"] == "http.request":
            received += len(message.get("body", b""))
            if received > limit:
                raise _payload_too_large(limit)
        return message

    return receive_with_limit


class UploadLimitRoute(APIRoute):
    """Reject multipart bodies above the upload cap before the form is parsed.

    A declared ``Content-Length`` over the cap fails straight away. Bodies
    without one are counted while they stream in and fail once they pass it.
    """

    def get_route_handler(self) -> Callable[[Request], Awaitable[Response]]:
        handler = super().get_route_handler()

        async def limited_handler(request: Request) -> Response:
            content_type = request.headers.get("content-type", "")
            if not content_type.lower().startswith(MULTIPART_CONTENT_TYPE):
                return await handler(request)

            limit: int = request.app.state.settings.max_upload_request_bytes
            declared = _declared_length(request)
            if declared is not None and declared > limit:
                logger.info(
                    "Upload rejected before parsing",
                    extra={"content_length": declared, "limit": limit},
                )
                raise _payload_too_large(limit)
            limited = Request(request.scope, _limited_receive(request.receive, limit))
            return await handler(limited)

        return limited_handler


__all__ = ["UploadLimitRoute"]
