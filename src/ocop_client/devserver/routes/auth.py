"""
ocop_client.devserver.routes.auth

Login and "who am I" endpoints in the OCOP backend's envelope format.

Responsibilities:
- `/api/admin/login`, `/api/admin/me` for the admin surfaces (admin role only).
- `/api/auth/login`, `/api/auth/me` for the storefront (any active user).
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from ocop_client.auth.jwt import JwtConfig, issue_token
from ocop_client.devserver.deps import current_admin, current_user, settings_dep, users_dep
from ocop_client.devserver.users import DevUser, UserDirectory
from ocop_client.observability.logging import get_logger
from ocop_client.settings import Settings

log = get_logger(__name__)

admin_router = APIRouter(prefix="/api/admin", tags=["admin"])
auth_router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=256)
    password: str = Field(min_length=1, max_length=256)


def _authenticate(users: UserDirectory, body: LoginRequest, *, admin_only: bool) -> DevUser:
    user = users.by_email(body.email)
    if user is None:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if admin_only and user.role != "admin":
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Access denied. Admin privileges required.")
    if not user.is_active:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Account is deactivated")
    if not user.check_password(body.password):
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return user


def _login_response(user: DevUser, settings: Settings, message: str) -> dict[str, Any]:
    token = issue_token(cfg=JwtConfig.from_settings(settings), subject=user.id, role=user.role)
    log.info("dev_login", user_id=user.id, role=user.role)
    return {
        "success": True,
        "message": message,
        # refreshToken mirrors the access token; the clients never rotate it.
        "data": {"user": user.to_wire(), "token": token, "refreshToken": token},
    }


@admin_router.post("/login")
async def admin_login(
    body: LoginRequest,
    settings: Settings = Depends(settings_dep),
    users: UserDirectory = Depends(users_dep),
) -> dict[str, Any]:
    user = _authenticate(users, body, admin_only=True)
    return _login_response(user, settings, "Admin login successful")


@admin_router.get("/me")
async def admin_me(user: DevUser = Depends(current_admin)) -> dict[str, Any]:
    return {"success": True, "data": user.to_wire()}


@auth_router.post("/login")
async def login(
    body: LoginRequest,
    settings: Settings = Depends(settings_dep),
    users: UserDirectory = Depends(users_dep),
) -> dict[str, Any]:
    user = _authenticate(users, body, admin_only=False)
    return _login_response(user, settings, "Login successful")


@auth_router.get("/me")
async def me(user: DevUser = Depends(current_user)) -> dict[str, Any]:
    return {"success": True, "data": user.to_wire()}
