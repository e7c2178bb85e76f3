"""Session cookie lifecycle helpers."""

from __future__ import annotations

from starlette.responses import Response

from .config import Settings
from .security import GeneratedToken


def set_session_cookie(response: Response, token: GeneratedToken, settings: Settings) -> None:
    """Attach the signed session token to ``response``."""

    response.set_cookie(
        key=settings.session_cookie_name,
        value=token.token,
        max_age=settings.session_max_age_seconds,
        path="/",
        secure=settings.session_cookie_secure,
        httponly=True,
        samesite="strict",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    """Expire the session cookie on the client."""

    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        secure=settings.session_cookie_secure,
        httponly=True,
        samesite="strict",
    )


__all__ = ["clear_session_cookie", "set_session_cookie"]
