"""Routes handling registration, login and the session cookie."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from ...core.config import Settings
from ...core.cookies import clear_session_cookie, set_session_cookie
from ...core.security import SessionIdentity, issue_session_token
from ...deps import DatabaseSessionDependency, OptionalIdentityDependency, SettingsDependency
from ...models import User
from ...schemas import LoginRequest, RegisterRequest, UserPublic
from ...services import CredentialStore

router = APIRouter(prefix="/auth", tags=["auth"])


def _map_user(user: User) -> UserPublic:
    return UserPublic.model_validate(user)


def _start_session(response: Response, user: User, settings: Settings) -> None:
    identity = SessionIdentity(id=user.id, username=user.username)
    set_session_cookie(response, issue_session_token(identity, settings=settings), settings)


@router.get(
    "/me",
    response_model=UserPublic | None,
    summary="Return the caller's identity, or null when anonymous",
)
async def me(identity: OptionalIdentityDependency) -> UserPublic | None:
    if identity is None:
        return None
    return UserPublic(id=identity.id, username=identity.username)


@router.post(
    "/register",
    response_model=UserPublic,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account and start a session",
)
async def register(
    payload: RegisterRequest,
    response: Response,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> UserPublic:
    user = await CredentialStore(session).register(payload.username, payload.password)
    _start_session(response, user, settings)
    return _map_user(user)


@router.post(
    "/login",
    response_model=UserPublic,
    summary="Authenticate with username and password",
)
async def login(
    payload: LoginRequest,
    response: Response,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> UserPublic:
    user = await CredentialStore(session).verify(payload.username, payload.password)
    _start_session(response, user, settings)
    return _map_user(user)


@router.post("/logout", response_model=bool, summary="End the current session")
async def logout(response: Response, settings: SettingsDependency) -> bool:
    clear_session_cookie(response, settings)
    return True
