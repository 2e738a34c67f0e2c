"""
ocop_client.devserver.deps

FastAPI dependency wiring for the development backend.

Responsibilities:
- Expose settings and the user directory stashed on app.state.
- Convert a bearer token into the stored `DevUser`.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from ocop_client.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from ocop_client.devserver.users import DevUser, UserDirectory
from ocop_client.settings import Settings

_bearer = HTTPBearer(auto_error=False)


def settings_dep(request: Request) -> Settings:
    # Settings and directory are attached in `ocop_client.devserver.app.create_app`.
    return request.app.state.settings  # type: ignore[attr-defined]


def users_dep(request: Request) -> UserDirectory:
    return request.app.state.users  # type: ignore[attr-defined]


def current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(settings_dep),
    users: UserDirectory = Depends(users_dep),
) -> DevUser:
    if creds is None or not creds.credentials:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Not authorized, no token")

    try:
        payload = decode_and_validate(cfg=JwtConfig.from_settings(settings), token=creds.credentials)
    except JwtValidationError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Not authorized, token failed") from e

    user = users.by_id(str(payload.get("sub", "")))
    if user is None or not user.is_active:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Not authorized, user not found")
    return user


def current_admin(user: DevUser = Depends(current_user)) -> DevUser:
    if user.role != "admin":
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Access denied. Admin privileges required.")
    return user
