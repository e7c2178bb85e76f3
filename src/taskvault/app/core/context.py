"""Request correlation state shared by middleware, handlers and logging."""

from __future__ import annotations

import re
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

REQUEST_ID_HEADER = "X-Request-ID"
NO_REQUEST_ID = "-"

# Client supplied ids are echoed into headers and logs, so keep them tame.
_ACCEPTED_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

_request_id: ContextVar[str] = ContextVar("taskvault_request_id", default=NO_REQUEST_ID)


def get_request_id() -> str:
    """Return the request id bound to the current task, or ``"-"``."""

    return _request_id.get()


def resolve_request_id(candidate: str | None) -> str:
    """Reuse a well-formed inbound id, otherwise mint a new one."""

    if candidate and _ACCEPTED_REQUEST_ID.match(candidate):
        return candidate
    return uuid.uuid4().hex


@contextmanager
def request_id_bound(request_id: str | None) -> Iterator[str]:
    """Bind ``request_id`` for the duration of the block.

    ``None`` leaves the current binding untouched.
    """
    if not request_id:
        yield get_request_id()
        return
    token = _request_id.set(request_id)
    try:
        yield request_id
    finally:
        _request_id.reset(token)


__all__ = [
    "NO_REQUEST_ID",
    "REQUEST_ID_HEADER",
    "get_request_id",
    "request_id_bound",
    "resolve_request_id",
]
