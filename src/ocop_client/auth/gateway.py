"""
ocop_client.auth.gateway

Auth gateway boundary used by the session manager.

Responsibilities:
- Define the two operations the session core needs (`login`, `who_am_i`).
- Model gateway outcomes as tagged results instead of loosely-shaped dicts.
- Provide the HTTP adapter for the OCOP `{success, message, data}` envelope; all response
  shape checking lives in this module.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import httpx
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from ocop_client.auth.errors import DEFAULT_LOGIN_FAILURE, ErrorKind
from ocop_client.auth.models import Credential, Principal
from ocop_client.observability.logging import get_logger
from ocop_client.settings import ClientSurface

log = get_logger(__name__)

NETWORK_ERROR_MESSAGE = "Network error"
UNEXPECTED_RESPONSE_MESSAGE = "Unexpected response from server"

# Statuses the backend uses to reject an identifier/secret or a credential.
REJECTION_STATUSES = frozenset({400, 401, 403})


@dataclass(frozen=True, slots=True)
class LoginOk:
    principal: Principal
    credential: Credential


@dataclass(frozen=True, slots=True)
class WhoAmIOk:
    principal: Principal


@dataclass(frozen=True, slots=True)
class GatewayFailure:
    kind: ErrorKind
    message: str | None = None


LoginResult = LoginOk | GatewayFailure
WhoAmIResult = WhoAmIOk | GatewayFailure


class AuthGateway(Protocol):
    async def login(self, identifier: str, secret: str) -> LoginResult: ...

    async def who_am_i(self, credential: Credential) -> WhoAmIResult: ...


@dataclass(frozen=True, slots=True)
class GatewayEndpoints:
    login: str
    me: str


# Paths are relative to the configured API base URL.
SURFACE_ENDPOINTS: dict[ClientSurface, GatewayEndpoints] = {
    ClientSurface.web_admin: GatewayEndpoints(login="/admin/login", me="/admin/me"),
    ClientSurface.mobile_admin: GatewayEndpoints(login="/admin/login", me="/admin/me"),
    ClientSurface.storefront: GatewayEndpoints(login="/auth/login", me="/auth/me"),
}


class _UserPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    email: str
    role: str
    name: str = ""
    phone: str = ""
    avatar: str | None = None
    is_active: bool = Field(default=True, validation_alias=AliasChoices("isActive", "is_active"))
    shop: str | None = None

    @field_validator("shop", mode="before")
    @classmethod
    def _shop_ref(cls, v: Any) -> Any:
        # The backend may populate the shop document instead of sending its id.
        if isinstance(v, dict):
            return v.get("_id") or v.get("id")
        return v

    def to_principal(self) -> Principal:
        return Principal(
            id=self.id,
            email=self.email,
            role=self.role,
            name=self.name,
            phone=self.phone,
            avatar=self.avatar,
            is_active=self.is_active,
            shop=self.shop,
        )


class _LoginData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user: _UserPayload
    token: str = Field(min_length=1)


class _Envelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # Required: a response without the discriminator is a server error, not a rejection.
    success: bool
    message: str | None = None
    data: Any = None


def _message_of(body: Any) -> str | None:
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message:
            return message
    return None


def read_envelope(response: httpx.Response) -> _Envelope | GatewayFailure:
    """
    Normalize an HTTP response into either a successful envelope or a tagged failure.

    - 400/401/403: the server rejected the identifier/secret or the credential
    - other 4xx (wrong endpoint, rate limit), 5xx, non-JSON, missing `success`: server error
    - 2xx with `success: false`: rejection carrying the server's message
    """

    try:
        body = response.json()
    except ValueError:
        body = None

    if response.status_code in REJECTION_STATUSES:
        return GatewayFailure(ErrorKind.invalid_credentials, _message_of(body))
    if response.is_error:
        return GatewayFailure(
            ErrorKind.server_error, _message_of(body) or f"HTTP {response.status_code}"
        )

    try:
        envelope = _Envelope.model_validate(body)
    except ValidationError:
        return GatewayFailure(ErrorKind.server_error, UNEXPECTED_RESPONSE_MESSAGE)

    if not envelope.success:
        return GatewayFailure(
            ErrorKind.invalid_credentials, envelope.message or DEFAULT_LOGIN_FAILURE
        )
    return envelope


class HttpAuthGateway:
    """
    `AuthGateway` over the OCOP REST API.

    The `httpx.AsyncClient` is owned by the caller (see `ocop_client.runtime`) and must
    have `base_url` set to the API root.
    """

    def __init__(
        self,
        *,
        http: httpx.AsyncClient,
        endpoints: GatewayEndpoints | None = None,
    ) -> None:
        self._http = http
        self._endpoints = endpoints or SURFACE_ENDPOINTS[ClientSurface.web_admin]

    async def login(self, identifier: str, secret: str) -> LoginResult:
        try:
            r = await self._http.post(
                self._endpoints.login,
                json={"email": identifier, "password": secret},
            )
        except httpx.TransportError as e:
            log.warning("gateway_unreachable", op="login", error=type(e).__name__)
            return GatewayFailure(ErrorKind.network_failure, NETWORK_ERROR_MESSAGE)

        envelope = read_envelope(r)
        if isinstance(envelope, GatewayFailure):
            return envelope
        try:
            data = _LoginData.model_validate(envelope.data)
        except ValidationError:
            log.warning("gateway_bad_payload", op="login", status=r.status_code)
            return GatewayFailure(ErrorKind.server_error, UNEXPECTED_RESPONSE_MESSAGE)
        return LoginOk(principal=data.user.to_principal(), credential=data.token)

    async def who_am_i(self, credential: Credential) -> WhoAmIResult:
        try:
            r = await self._http.get(
                self._endpoints.me,
                headers={"Authorization": f"Bearer {credential}"},
            )
        except httpx.TransportError as e:
            log.warning("gateway_unreachable", op="who_am_i", error=type(e).__name__)
            return GatewayFailure(ErrorKind.network_failure, NETWORK_ERROR_MESSAGE)

        envelope = read_envelope(r)
        if isinstance(envelope, GatewayFailure):
            return envelope
        try:
            user = _UserPayload.model_validate(envelope.data)
        except ValidationError:
            log.warning("gateway_bad_payload", op="who_am_i", status=r.status_code)
            return GatewayFailure(ErrorKind.server_error, UNEXPECTED_RESPONSE_MESSAGE)
        return WhoAmIOk(principal=user.to_principal())


# --- Module Notes -----------------------------------------------------------
# Connection failures are retried by the transport `create_runtime` builds
# (`OCOP_HTTP_RETRIES`); by the time a `TransportError` reaches this layer the
# retries are spent. HTTP error statuses are never retried.
